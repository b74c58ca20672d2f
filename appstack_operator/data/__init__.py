from appstack_operator.data.shared_exceptions import (
    ControlPlaneError,
    DeploymentControllerError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
    OperatorError,
    StatusWriteError,
    TemplateRenderError,
    UnreadableInputError,
)
from appstack_operator.data.store import ObjectStore, identify

__all__ = [
    "ControlPlaneError",
    "DeploymentControllerError",
    "ObjectAlreadyExistsError",
    "ObjectNotFoundError",
    "ObjectStore",
    "OperatorError",
    "StatusWriteError",
    "TemplateRenderError",
    "UnreadableInputError",
    "identify",
]
