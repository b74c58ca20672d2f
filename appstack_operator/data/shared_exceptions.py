"""Custom exceptions for appstack_operator."""


class OperatorError(Exception):
    """Base exception for all appstack_operator errors."""


# Control-plane store exceptions
class ControlPlaneError(OperatorError):
    """
    Raised when a call against the control-plane store fails.

    Covers transport failures and any API error that is not one of the
    distinguished conditions below. The reconciler always reschedules.
    """


class ObjectAlreadyExistsError(ControlPlaneError):
    """Raised when creating an object whose identity is already taken."""


class ObjectNotFoundError(ControlPlaneError):
    """Raised when reading an object that does not exist (yet)."""


# Input exceptions
class UnreadableInputError(OperatorError):
    """
    Raised when a static input shipped with the operator cannot be read.

    A missing or invalid migration changelog needs a human to fix it, so
    the reconciler waits a long time before trying again.
    """


class TemplateRenderError(OperatorError):
    """Raised when the application manifest template cannot be rendered."""


class DeploymentControllerError(OperatorError):
    """Raised when the deployment controller rejects or fails a call."""


class StatusWriteError(OperatorError):
    """Raised when a status field is written twice in one invocation."""
