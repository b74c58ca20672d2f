from appstack_operator.reconciler.driver import Reconciler
from appstack_operator.reconciler.outcome import (
    ADVANCE,
    Advance,
    Fail,
    Outcome,
    ReconcileResult,
    Retry,
)
from appstack_operator.reconciler.pipeline import Step, evaluate, run_steps
from appstack_operator.reconciler.status_writer import StatusDeltaWriter
from appstack_operator.reconciler.steps import RECONCILE_STEPS

__all__ = [
    "ADVANCE",
    "Advance",
    "Fail",
    "Outcome",
    "RECONCILE_STEPS",
    "ReconcileResult",
    "Reconciler",
    "Retry",
    "StatusDeltaWriter",
    "Step",
    "evaluate",
    "run_steps",
]
