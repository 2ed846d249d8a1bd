"""Interface of the engine running Helm actions."""

from abc import ABC, abstractmethod
from typing import Any

from helm_reconciler.manifest import HelmRelease
from helm_reconciler.release import Chart, Release

from .config import ActionConfiguration

__all__ = ["ActionEngine"]


class ActionEngine(ABC):
    """Abstract base class for running Helm actions.

    An engine renders the chart, applies it and records the outcome in the
    release storage of the configuration. Every write must go through
    `config.driver` so that it can be observed by the caller.
    """

    @abstractmethod
    async def install(
        self,
        config: ActionConfiguration,
        obj: HelmRelease,
        chart: Chart,
        values: dict[str, Any],
    ) -> Release:
        """Install the chart as a new release for the HelmRelease.

        Returns the release written to the storage.

        Raises:
            Exception: When the install failed. Releases written to the
                storage before the failure remain in place.
        """
