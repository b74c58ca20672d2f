"""Outcomes of a reconcile step and the result of a whole invocation."""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Advance:
    """Proceed to the next step."""


@dataclass(frozen=True)
class Retry:
    """Stop this invocation and reconcile again after ``delay`` seconds."""

    delay: float
    reason: str = ""
    step: str = ""


@dataclass(frozen=True)
class Fail:
    """Stop, surface ``error`` and reconcile again after ``delay`` seconds."""

    error: Exception
    delay: float
    step: str = ""


Outcome = Union[Advance, Retry, Fail]

ADVANCE = Advance()


@dataclass(frozen=True)
class ReconcileResult:
    """
    Scheduling directive returned to the substrate.

    Attributes:
        requeue_after: Seconds until the next invocation
        error: Error that stopped the invocation, if any
        step: Name of the step that stopped the invocation, if any
    """

    requeue_after: float
    error: Optional[Exception] = None
    step: Optional[str] = None
