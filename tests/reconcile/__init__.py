"""Test helpers for the reconcilers."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from helm_reconciler.action import ActionConfiguration, ActionEngine
from helm_reconciler.events import EventRecorder, EventType
from helm_reconciler.manifest import HelmRelease
from helm_reconciler.release import Chart, Release, ReleaseInfo, ReleaseStatus
from helm_reconciler.storage import release_key


@dataclass
class Event:
    """An event recorded by the RecordingEventRecorder."""

    annotations: dict[str, str]
    event_type: EventType
    reason: str
    message: str


class RecordingEventRecorder(EventRecorder):
    """An EventRecorder keeping all events in memory."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def annotated_event(
        self,
        obj: HelmRelease,
        annotations: dict[str, str],
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        self.events.append(Event(annotations, event_type, reason, message))


@dataclass
class FakeEngine(ActionEngine):
    """An ActionEngine writing a fixed sequence of releases to the storage.

    Each entry of `writes` is a release status, written as revision 1 of the
    release: first created, then updated. After the writes the engine blocks
    on `block` when set, then raises `error` when set.
    """

    writes: list[ReleaseStatus] = field(
        default_factory=lambda: [ReleaseStatus.PENDING_INSTALL, ReleaseStatus.DEPLOYED]
    )
    error: Exception | None = None
    log_lines: list[str] = field(default_factory=list)
    block: asyncio.Event | None = None
    calls: int = 0

    async def install(
        self,
        config: ActionConfiguration,
        obj: HelmRelease,
        chart: Chart,
        values: dict[str, Any],
    ) -> Release:
        self.calls += 1
        for line in self.log_lines:
            config.log("%s", line)
        release = Release(
            name=obj.get_release_name(),
            namespace=obj.release_namespace,
            version=1,
            chart=chart,
            config=values,
        )
        key = release_key(release.name, release.version)
        for i, status in enumerate(self.writes):
            release.info = ReleaseInfo(
                status=status,
                first_deployed="2024-01-01T00:00:00Z",
                last_deployed="2024-01-01T00:00:00Z",
            )
            if i == 0:
                config.driver.create(key, release)
            else:
                config.driver.update(key, release)
        if self.block is not None:
            await self.block.wait()
        if self.error is not None:
            raise self.error
        return release
