"""The contract shared by all reconcilers of a Helm action."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from helm_reconciler.manifest import HelmRelease
from helm_reconciler.release import Chart

__all__ = ["ReconcilerType", "Request", "ActionReconciler"]


class ReconcilerType(StrEnum):
    """The kind of change an ActionReconciler makes."""

    RELEASE = "release"
    """Makes a new release in the Helm storage."""

    REMEDIATE = "remediate"
    """Remediates a failed release e.g. with a rollback or uninstall."""

    TEST = "test"
    """Runs the tests of a release without making a new release."""

    UNLOCK = "unlock"
    """Releases a lock held on a release stuck in a pending state."""


@dataclass
class Request:
    """The data for a single pass of an ActionReconciler."""

    obj: HelmRelease
    """The HelmRelease being reconciled, its status is updated in place."""

    chart: Chart
    """The resolved chart to release."""

    values: dict[str, Any]
    """The resolved values to release the chart with."""


class ActionReconciler(ABC):
    """Abstract base class for reconcilers running a single Helm action.

    A reconciler may be called repeatedly with the same Request and must never
    record a release in the history of the object more than once.

    `reconcile` only raises when the action did not modify the Helm storage,
    in which case it can safely be retried. A failure which did modify the
    storage is recorded in the status of the object instead.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier of the action, used in logs and events."""

    @property
    @abstractmethod
    def reconciler_type(self) -> ReconcilerType:
        """The kind of change made by the reconciler."""

    @abstractmethod
    async def reconcile(self, req: Request) -> None:
        """Run the action for the request and record the outcome on the object."""
