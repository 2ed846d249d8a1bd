"""Reconciler installing a Helm release."""

import logging

from helm_reconciler import conditions
from helm_reconciler.action import (
    ActionConfiguration,
    ActionEngine,
    ConfigFactory,
    LogBuffer,
    debug_log,
)
from helm_reconciler.config import InstallConfig
from helm_reconciler.digest import digest_values
from helm_reconciler.events import (
    EventRecorder,
    EventType,
    event_message_with_log,
    event_meta,
)
from helm_reconciler.manifest import ReleaseAction
from helm_reconciler.release import Release

from .observation import ObservedReleases, observed_to_snapshot
from .reconciler import ActionReconciler, ReconcilerType, Request
from .summarize import summarize

__all__ = ["Install"]

_LOGGER = logging.getLogger(__name__)

# Message format for an installation failure.
FMT_INSTALL_FAILURE = "Helm install failed for release %s/%s with chart %s@%s: %s"
# Message format for a successful installation.
FMT_INSTALL_SUCCESS = "Helm install succeeded for release %s with chart %s"
# Message format for a release which has not been tested yet.
FMT_TEST_PENDING = "Helm release %s with chart %s is awaiting tests"


class Install(ActionReconciler):
    """An ActionReconciler which installs a Helm release for the Request.

    Before the installation the history of the object is cleared to mark the
    start of a new release lineage. This ensures we never attempt to roll back
    to a release made before the install.

    The writes to the Helm storage during the installation are observed and
    recorded in the history of the object, also when the installation fails.

    On success the object is marked with Released=True and an event is
    emitted. When tests are enabled the object is also marked with
    TestSuccess=Unknown to indicate we are awaiting the results.
    On failure the object is marked with Released=False and a warning event is
    emitted. Only a failure which modified the Helm storage counts towards the
    active remediation strategy, a failure without any storage write is raised
    to the caller to be retried.

    The Ready condition of the object is summarized at the end of every
    reconciliation.
    """

    def __init__(
        self,
        engine: ActionEngine,
        config_factory: ConfigFactory,
        recorder: EventRecorder,
        config: InstallConfig | None = None,
    ) -> None:
        """Initialize the Install reconciler."""
        self._engine = engine
        self._config_factory = config_factory
        self._recorder = recorder
        self._config = config or InstallConfig()

    @property
    def name(self) -> str:
        return "install"

    @property
    def reconciler_type(self) -> ReconcilerType:
        return ReconcilerType.RELEASE

    async def reconcile(self, req: Request) -> None:
        """Install the chart of the Request and record the outcome."""
        log_buffer = LogBuffer(debug_log(_LOGGER), self._config.log_buffer_size)
        observed = ObservedReleases()
        cfg = self._config_factory.build(log_buffer.log, observed.observe)
        try:
            await self._install(req, cfg, log_buffer, observed)
        finally:
            summarize(req)

    async def _install(
        self,
        req: Request,
        cfg: ActionConfiguration,
        log_buffer: LogBuffer,
        observed: ObservedReleases,
    ) -> None:
        obj = req.obj

        # Mark install attempt on object.
        obj.status.last_attempted_release_action = ReleaseAction.INSTALL

        # An install is always a reset of any previous history.
        obj.status.clear_history()

        _LOGGER.info(
            "Installing chart %s@%s for HelmRelease %s",
            req.chart.name,
            req.chart.metadata.version,
            obj.namespaced_name,
        )
        error: Exception | None = None
        try:
            release = await self._engine.install(cfg, obj, req.chart, req.values)
        except Exception as err:
            error = err
        finally:
            # Releases written before a failure or cancellation are recorded
            # as they remain in the storage.
            observed.record_on_object(obj)

        if error is not None:
            if not observed:
                # Nothing was written to the storage, so there is nothing to
                # remediate and the caller may retry.
                _LOGGER.warning(
                    "Install of HelmRelease %s failed without a release: %s",
                    obj.namespaced_name,
                    error,
                )
                raise error
            self._failure(req, log_buffer, error)
            # Only failures which modified the storage count towards
            # remediation.
            obj.get_install().get_remediation().increment_failure_count(obj)
            return

        self._success(req, release)

    def _failure(self, req: Request, log_buffer: LogBuffer, err: Exception) -> None:
        """Mark the object with Released=False and emit a warning event."""
        obj = req.obj
        msg = FMT_INSTALL_FAILURE % (
            obj.release_namespace,
            obj.get_release_name(),
            req.chart.name,
            req.chart.metadata.version,
            str(err).strip(),
        )
        _LOGGER.warning(msg)

        obj.status.failures += 1
        conditions.mark_false(
            obj,
            conditions.RELEASED_CONDITION,
            conditions.INSTALL_FAILED_REASON,
            msg,
        )

        # The event carries the last lines logged by the action, which are
        # left out of the condition.
        self._recorder.annotated_event(
            obj,
            event_meta(req.chart.metadata.version, digest_values(req.values)),
            EventType.WARNING,
            conditions.INSTALL_FAILED_REASON,
            event_message_with_log(msg, log_buffer),
        )

    def _success(self, req: Request, release: Release) -> None:
        """Mark the object with Released=True and emit an event."""
        obj = req.obj
        cur = obj.status.latest_snapshot() or observed_to_snapshot(release)
        msg = FMT_INSTALL_SUCCESS % (cur.full_release_name, cur.versioned_chart_name)
        _LOGGER.info(msg)

        conditions.mark_true(
            obj,
            conditions.RELEASED_CONDITION,
            conditions.INSTALL_SUCCEEDED_REASON,
            msg,
        )
        if obj.get_test().enable and not cur.has_been_tested():
            conditions.mark_unknown(
                obj,
                conditions.TEST_SUCCESS_CONDITION,
                conditions.AWAITING_TESTS_REASON,
                FMT_TEST_PENDING % (cur.full_release_name, cur.versioned_chart_name),
            )

        self._recorder.annotated_event(
            obj,
            event_meta(cur.chart_version, cur.config_digest),
            EventType.NORMAL,
            conditions.INSTALL_SUCCEEDED_REASON,
            msg,
        )
