"""Entry point of one reconcile invocation."""

import logging
from typing import Any, Optional, Sequence

from appstack_operator.config import OperatorConfig, get_config
from appstack_operator.constants import UNREADABLE_INPUT_DELAY
from appstack_operator.data.store import ObjectStore
from appstack_operator.entities import AppStack, AppStackValidationError
from appstack_operator.gitops import DeploymentController
from appstack_operator.reconciler.context import ReconcileContext
from appstack_operator.reconciler.outcome import (
    Advance,
    Fail,
    ReconcileResult,
    Retry,
)
from appstack_operator.reconciler.pipeline import Step, run_steps
from appstack_operator.reconciler.steps import RECONCILE_STEPS

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Drives an AppStack one step closer to its declared state.

    Every invocation starts over from the first step. Steps that are already
    satisfied advance without side effects, so the first unsatisfied step
    decides when the next invocation happens.

    Args:
        store: Control-plane store
        deployer: GitOps deployment controller
        config: Operator configuration, read from the environment if omitted
        steps: Step sequence, the canonical order if omitted
    """

    def __init__(
        self,
        store: ObjectStore,
        deployer: DeploymentController,
        config: Optional[OperatorConfig] = None,
        steps: Optional[Sequence[Step]] = None,
    ):
        self.store = store
        self.deployer = deployer
        self.config = config or get_config()
        self.steps = tuple(steps) if steps is not None else RECONCILE_STEPS

    def reconcile(self, record: AppStack) -> ReconcileResult:
        """
        Run one invocation against an already validated AppStack.

        Args:
            record: The AppStack as last read from the store

        Returns:
            When to reconcile again and why
        """
        try:
            ctx = ReconcileContext(
                record=record,
                config=self.config,
                store=self.store,
                deployer=self.deployer,
            )
        except AppStackValidationError as e:
            logger.error("Cannot reconcile AppStack %s: %s", record.name, e)
            return ReconcileResult(UNREADABLE_INPUT_DELAY, error=e)
        outcome = run_steps(self.steps, ctx)

        if isinstance(outcome, Advance):
            logger.debug(
                "%s converged with %d status writes",
                record.name,
                ctx.status.writes,
            )
            return ReconcileResult(self.config.steady_state_interval)
        if isinstance(outcome, Retry):
            logger.info(
                "%s waiting at %s for %ss: %s",
                record.name,
                outcome.step,
                outcome.delay,
                outcome.reason,
            )
            return ReconcileResult(outcome.delay, step=outcome.step)
        if isinstance(outcome, Fail):
            logger.error(
                "%s failed at %s, retrying in %ss: %s",
                record.name,
                outcome.step,
                outcome.delay,
                outcome.error,
            )
            return ReconcileResult(
                outcome.delay, error=outcome.error, step=outcome.step
            )
        raise TypeError(f"Unknown step outcome {outcome!r}")

    def reconcile_manifest(self, manifest: dict[str, Any]) -> ReconcileResult:
        """Validate a raw AppStack object and reconcile it."""
        try:
            record = AppStack.from_manifest(manifest)
        except AppStackValidationError as e:
            name = manifest.get("metadata", {}).get("name", "<unnamed>")
            logger.error("Cannot read AppStack %s: %s", name, e)
            return ReconcileResult(UNREADABLE_INPUT_DELAY, error=e)
        return self.reconcile(record)
