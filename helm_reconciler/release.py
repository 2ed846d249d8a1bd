"""Helm chart and release records as exchanged with the action engine and storage.

A `Release` is the record an action writes to the release storage. These
types mirror the Helm data model closely enough for the reconcilers to
observe what an action did, they are not serialized by this library.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

__all__ = [
    "ChartMetadata",
    "Chart",
    "ReleaseStatus",
    "ReleaseInfo",
    "HookPhase",
    "HookExecution",
    "Hook",
    "Release",
]

HOOK_EVENT_TEST = "test"


@dataclass(frozen=True)
class ChartMetadata:
    """Metadata of a Helm chart."""

    name: str
    """The name of the chart."""

    version: str
    """The SemVer version of the chart."""

    app_version: str | None = None
    """The version of the application packaged by the chart."""


@dataclass
class Chart:
    """A resolved Helm chart ready to be used by an action."""

    metadata: ChartMetadata
    """The metadata of the chart."""

    values: dict[str, Any] = field(default_factory=dict)
    """The default values of the chart."""

    @property
    def name(self) -> str:
        """Return the name of the chart."""
        return self.metadata.name


class ReleaseStatus(StrEnum):
    """The status of a Helm release."""

    UNKNOWN = "unknown"
    DEPLOYED = "deployed"
    UNINSTALLED = "uninstalled"
    SUPERSEDED = "superseded"
    FAILED = "failed"
    UNINSTALLING = "uninstalling"
    PENDING_INSTALL = "pending-install"
    PENDING_UPGRADE = "pending-upgrade"
    PENDING_ROLLBACK = "pending-rollback"


@dataclass
class ReleaseInfo:
    """Information about the deployment of a release."""

    status: ReleaseStatus = ReleaseStatus.UNKNOWN
    first_deployed: str | None = None
    last_deployed: str | None = None
    deleted: str | None = None
    description: str = ""


class HookPhase(StrEnum):
    """The phase of a hook execution."""

    UNKNOWN = "Unknown"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


@dataclass
class HookExecution:
    """The last execution of a hook."""

    started_at: str | None = None
    completed_at: str | None = None
    phase: HookPhase = HookPhase.UNKNOWN


@dataclass
class Hook:
    """A Helm hook of a release."""

    name: str
    kind: str
    events: list[str] = field(default_factory=list)
    last_run: HookExecution = field(default_factory=HookExecution)

    def is_test(self) -> bool:
        """Return True if the hook runs on the test event."""
        return HOOK_EVENT_TEST in self.events


@dataclass
class Release:
    """A Helm release as stored in the release storage."""

    name: str
    """The name of the release."""

    namespace: str
    """The namespace the release is installed to."""

    version: int
    """The storage revision of the release."""

    chart: Chart
    """The chart the release was made with."""

    config: dict[str, Any] = field(default_factory=dict)
    """The values supplied by the user for the release."""

    info: ReleaseInfo = field(default_factory=ReleaseInfo)
    """Information about the deployment of the release."""

    manifest: str = ""
    """The rendered manifest of the release."""

    hooks: list[Hook] = field(default_factory=list)
    """The hooks of the release."""

    labels: dict[str, str] = field(default_factory=dict)
    """The storage labels of the release."""
