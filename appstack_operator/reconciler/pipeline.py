"""Named steps and the loop that evaluates them in order."""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from appstack_operator.constants import MINUTES, SECONDS, UNREADABLE_INPUT_DELAY
from appstack_operator.data.shared_exceptions import (
    ObjectNotFoundError,
    OperatorError,
    UnreadableInputError,
)
from appstack_operator.entities import AppStackValidationError
from appstack_operator.reconciler.context import ReconcileContext
from appstack_operator.reconciler.outcome import (
    ADVANCE,
    Advance,
    Fail,
    Outcome,
    Retry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    """
    One named unit of reconcile work.

    Attributes:
        name: Step name, reported when the step stops an invocation
        action: Callable returning the step's outcome
        error_delay: Requeue delay when the action raises an OperatorError
        poll_delay: Requeue delay when a read finds no object yet
        condition: Predicate deciding whether the step applies at all
    """

    name: str
    action: Callable[[ReconcileContext], Outcome]
    error_delay: float = 1 * MINUTES
    poll_delay: float = 5 * SECONDS
    condition: Optional[Callable[[ReconcileContext], bool]] = None


def evaluate(step: Step, ctx: ReconcileContext) -> Outcome:
    """
    Run one step, mapping raised errors onto outcomes.

    An object that cannot be read yet is a Retry after the step's poll
    delay. Unreadable static input waits long for a human. Every other
    operator error is a Fail after the step's error delay.
    """
    if step.condition is not None and not step.condition(ctx):
        return ADVANCE
    try:
        return step.action(ctx)
    except ObjectNotFoundError as e:
        return Retry(step.poll_delay, reason=str(e))
    except (UnreadableInputError, AppStackValidationError) as e:
        return Fail(e, UNREADABLE_INPUT_DELAY)
    except OperatorError as e:
        return Fail(e, step.error_delay)


def run_steps(steps: Sequence[Step], ctx: ReconcileContext) -> Outcome:
    """
    Evaluate steps in order, stopping at the first non-Advance outcome.

    Args:
        steps: Steps to run
        ctx: Context of the current invocation

    Returns:
        ADVANCE if every step advanced, otherwise the stopping outcome
        tagged with the name of the step that produced it
    """
    for step in steps:
        outcome = evaluate(step, ctx)
        if isinstance(outcome, Advance):
            logger.debug("Step %s advanced for %s", step.name, ctx.record.name)
            continue
        if not outcome.step:
            outcome = dataclasses.replace(outcome, step=step.name)
        return outcome
    return ADVANCE
