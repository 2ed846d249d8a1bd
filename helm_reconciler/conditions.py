"""Helpers for reading and writing the conditions of a HelmRelease.

Each condition type appears at most once in the list of conditions. Setting a
condition that already exists replaces it in place and keeps the transition
time when the status did not change.
"""

import datetime

from .manifest import Condition, ConditionStatus, HelmRelease

__all__ = [
    "READY_CONDITION",
    "RELEASED_CONDITION",
    "TEST_SUCCESS_CONDITION",
    "REMEDIATED_CONDITION",
    "get",
    "has",
    "is_true",
    "is_false",
    "set_condition",
    "mark_true",
    "mark_false",
    "mark_unknown",
]

READY_CONDITION = "Ready"
RELEASED_CONDITION = "Released"
TEST_SUCCESS_CONDITION = "TestSuccess"
REMEDIATED_CONDITION = "Remediated"

INSTALL_SUCCEEDED_REASON = "InstallSucceeded"
INSTALL_FAILED_REASON = "InstallFailed"
UPGRADE_SUCCEEDED_REASON = "UpgradeSucceeded"
UPGRADE_FAILED_REASON = "UpgradeFailed"
TEST_SUCCEEDED_REASON = "TestSucceeded"
TEST_FAILED_REASON = "TestFailed"
ROLLBACK_SUCCEEDED_REASON = "RollbackSucceeded"
ROLLBACK_FAILED_REASON = "RollbackFailed"
UNINSTALL_SUCCEEDED_REASON = "UninstallSucceeded"
UNINSTALL_FAILED_REASON = "UninstallFailed"
AWAITING_TESTS_REASON = "AwaitingTests"


def _now() -> str:
    return datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds")


def get(conditions: list[Condition], condition_type: str) -> Condition | None:
    """Return the condition of the given type, if present."""
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None


def has(obj: HelmRelease, condition_type: str) -> bool:
    """Return True if the object has a condition of the given type."""
    return get(obj.status.conditions, condition_type) is not None


def is_true(obj: HelmRelease, condition_type: str) -> bool:
    """Return True if the condition of the given type has status True."""
    if condition := get(obj.status.conditions, condition_type):
        return condition.status == ConditionStatus.TRUE
    return False


def is_false(obj: HelmRelease, condition_type: str) -> bool:
    """Return True if the condition of the given type has status False."""
    if condition := get(obj.status.conditions, condition_type):
        return condition.status == ConditionStatus.FALSE
    return False


def set_condition(
    conditions: list[Condition], condition: Condition, prepend: bool = False
) -> None:
    """Add or replace a condition in the list of conditions.

    An existing condition of the same type is replaced at the same position.
    Its transition time is kept when the status is unchanged. A new condition
    is appended, or inserted at the front when `prepend` is set.
    """
    for i, existing in enumerate(conditions):
        if existing.type != condition.type:
            continue
        if existing.status == condition.status:
            condition.last_transition_time = existing.last_transition_time
        if condition.last_transition_time is None:
            condition.last_transition_time = _now()
        conditions[i] = condition
        return
    if condition.last_transition_time is None:
        condition.last_transition_time = _now()
    if prepend:
        conditions.insert(0, condition)
    else:
        conditions.append(condition)


def _mark(
    obj: HelmRelease,
    condition_type: str,
    status: ConditionStatus,
    reason: str,
    message: str,
) -> None:
    set_condition(
        obj.status.conditions,
        Condition(
            type=condition_type,
            status=status,
            reason=reason,
            message=message,
            observed_generation=obj.generation,
        ),
    )


def mark_true(obj: HelmRelease, condition_type: str, reason: str, message: str) -> None:
    """Set the condition of the given type to True."""
    _mark(obj, condition_type, ConditionStatus.TRUE, reason, message)


def mark_false(
    obj: HelmRelease, condition_type: str, reason: str, message: str
) -> None:
    """Set the condition of the given type to False."""
    _mark(obj, condition_type, ConditionStatus.FALSE, reason, message)


def mark_unknown(
    obj: HelmRelease, condition_type: str, reason: str, message: str
) -> None:
    """Set the condition of the given type to Unknown."""
    _mark(obj, condition_type, ConditionStatus.UNKNOWN, reason, message)
