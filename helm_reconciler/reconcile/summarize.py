"""Summary of the conditions of a HelmRelease into the Ready condition."""

import logging

from helm_reconciler import conditions
from helm_reconciler.manifest import Condition, ConditionStatus

from .reconciler import Request

__all__ = ["ready_condition", "summarize"]

_LOGGER = logging.getLogger(__name__)


def ready_condition(
    current: list[Condition], generation: int, test_enabled: bool
) -> Condition | None:
    """Return the Ready condition summarizing the given conditions.

    The first matching rule wins:

    1. Remediated is present: Ready is False with the reason and message of
       Remediated, as a remediation means the release action failed.
    2. Tests are enabled and TestSuccess is present: Ready mirrors TestSuccess.
    3. Released is present: Ready mirrors Released.

    Returns None when no rule matches. The Ready condition always carries the
    given generation, the source conditions are not modified.
    """
    status: ConditionStatus
    if remediated := conditions.get(current, conditions.REMEDIATED_CONDITION):
        source, status = remediated, ConditionStatus.FALSE
    elif test_enabled and (
        test_success := conditions.get(current, conditions.TEST_SUCCESS_CONDITION)
    ):
        source, status = test_success, test_success.status
    elif released := conditions.get(current, conditions.RELEASED_CONDITION):
        source, status = released, released.status
    else:
        return None
    return Condition(
        type=conditions.READY_CONDITION,
        status=status,
        reason=source.reason,
        message=source.message,
        observed_generation=generation,
    )


def summarize(req: Request) -> None:
    """Set the Ready condition of the object from its other conditions.

    An existing Ready condition is replaced at its position, a new one is
    inserted at the front. When there is nothing to summarize any existing
    Ready condition is left as is.
    """
    obj = req.obj
    ready = ready_condition(
        obj.status.conditions, obj.generation, obj.get_test().enable
    )
    if ready is None:
        _LOGGER.debug("No conditions to summarize for %s", obj.namespaced_name)
        return
    conditions.set_condition(obj.status.conditions, ready, prepend=True)
