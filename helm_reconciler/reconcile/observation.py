"""Recording of the releases written to the Helm storage during an action."""

import dataclasses
import logging

from helm_reconciler.digest import digest_object, digest_values
from helm_reconciler.manifest import HelmRelease, Snapshot, TestHookStatus
from helm_reconciler.release import HookPhase, Release

__all__ = ["ObservedReleases", "observed_to_snapshot"]

_LOGGER = logging.getLogger(__name__)

ReleaseKey = tuple[str, str, int]


def _test_hooks(release: Release) -> dict[str, TestHookStatus] | None:
    """Return the status of the test hooks which have run for the release."""
    hooks = {
        hook.name: TestHookStatus(
            last_started=hook.last_run.started_at,
            last_completed=hook.last_run.completed_at,
            phase=str(hook.last_run.phase),
        )
        for hook in release.hooks
        if hook.is_test() and hook.last_run.phase != HookPhase.UNKNOWN
    }
    return hooks or None


def observed_to_snapshot(release: Release) -> Snapshot:
    """Return a Snapshot of a release written to the Helm storage."""
    return Snapshot(
        name=release.name,
        namespace=release.namespace,
        version=release.version,
        status=str(release.info.status),
        chart_name=release.chart.metadata.name,
        chart_version=release.chart.metadata.version,
        config_digest=digest_values(release.config),
        digest=digest_object(dataclasses.asdict(release)),
        first_deployed=release.info.first_deployed,
        last_deployed=release.info.last_deployed,
        deleted=release.info.deleted,
        test_hooks=_test_hooks(release),
    )


class ObservedReleases:
    """The releases written to the Helm storage during a single action.

    Only the last write of each release revision is kept.
    """

    def __init__(self) -> None:
        """Initialize ObservedReleases."""
        self._snapshots: dict[ReleaseKey, Snapshot] = {}

    def __len__(self) -> int:
        return len(self._snapshots)

    def observe(self, release: Release) -> None:
        """Storage observer recording a written release."""
        self.record(observed_to_snapshot(release))

    def record(self, snapshot: Snapshot) -> None:
        """Record a snapshot, replacing an earlier one of the same revision."""
        _LOGGER.debug(
            "Observed release %s with status %s",
            snapshot.full_release_name,
            snapshot.status,
        )
        # Replacing a key keeps its position, the order is that of first write.
        self._snapshots[
            (snapshot.namespace, snapshot.name, snapshot.version)
        ] = snapshot

    def record_on_object(self, obj: HelmRelease) -> None:
        """Add the recorded snapshots to the history of the object.

        A history entry for the same revision is replaced when its digest
        differs, and left alone when it is identical. Other entries are kept.
        """
        history = obj.status.history
        for snapshot in self._snapshots.values():
            for i, existing in enumerate(history):
                if not existing.targets(
                    snapshot.name, snapshot.namespace, snapshot.version
                ):
                    continue
                if existing.digest != snapshot.digest:
                    history[i] = snapshot
                break
            else:
                history.append(snapshot)
