"""Tests for the install reconciler."""

import asyncio

import pytest

from helm_reconciler import conditions
from helm_reconciler.action import ConfigFactory
from helm_reconciler.config import InstallConfig
from helm_reconciler.digest import digest_values
from helm_reconciler.events import META_REVISION_KEY, META_TOKEN_KEY, EventType
from helm_reconciler.exceptions import ActionException
from helm_reconciler.manifest import (
    ConditionStatus,
    HelmRelease,
    ReleaseAction,
    Snapshot,
    Test,
)
from helm_reconciler.reconcile import Install, ReconcilerType, Request
from helm_reconciler.release import Chart, ReleaseStatus
from helm_reconciler.storage import InMemoryDriver, release_key

from . import FakeEngine, RecordingEventRecorder

VALUES_TOKEN = digest_values({"replicaCount": 2})
SUCCESS_MESSAGE = (
    "Helm install succeeded for release test-ns/podinfo.v1 with chart podinfo@6.5.4"
)
FAILURE_MESSAGE = (
    "Helm install failed for release test-ns/podinfo with chart podinfo@6.5.4: "
    "timed out waiting for the condition"
)


@pytest.fixture(name="recorder")
def recorder_fixture() -> RecordingEventRecorder:
    """Create an event recorder for testing."""
    return RecordingEventRecorder()


@pytest.fixture(name="request_obj")
def request_fixture(helm_release: HelmRelease, chart: Chart) -> Request:
    """Create a Request to install the test HelmRelease."""
    return Request(obj=helm_release, chart=chart, values=helm_release.values or {})


def make_install(
    engine: FakeEngine,
    config_factory: ConfigFactory,
    recorder: RecordingEventRecorder,
    config: InstallConfig | None = None,
) -> Install:
    return Install(engine, config_factory, recorder, config)


def condition_summary(obj: HelmRelease) -> list[tuple[str, ConditionStatus, str]]:
    """Return the type, status and reason of the conditions of the object."""
    return [(c.type, c.status, c.reason) for c in obj.status.conditions]


def test_install_reconciler_identity(
    config_factory: ConfigFactory, recorder: RecordingEventRecorder
) -> None:
    """Test the name and type of the install reconciler."""
    install = make_install(FakeEngine(), config_factory, recorder)
    assert install.name == "install"
    assert install.reconciler_type == ReconcilerType.RELEASE


async def test_install_success(
    request_obj: Request,
    config_factory: ConfigFactory,
    driver: InMemoryDriver,
    recorder: RecordingEventRecorder,
) -> None:
    """Test a successful install records the release and marks it Ready."""
    engine = FakeEngine()
    install = make_install(engine, config_factory, recorder)
    await install.reconcile(request_obj)
    assert engine.calls == 1

    obj = request_obj.obj
    status = obj.status
    assert status.last_attempted_release_action == ReleaseAction.INSTALL
    assert status.failures == 0
    assert status.install_failures == 0

    # Only the last write of the revision is part of the history
    assert len(status.history) == 1
    snapshot = status.history[0]
    assert snapshot.full_release_name == "test-ns/podinfo.v1"
    assert snapshot.versioned_chart_name == "podinfo@6.5.4"
    assert snapshot.status == "deployed"
    assert snapshot.config_digest == VALUES_TOKEN
    assert driver.get(release_key("podinfo", 1)).info.status == ReleaseStatus.DEPLOYED

    assert condition_summary(obj) == [
        ("Ready", ConditionStatus.TRUE, "InstallSucceeded"),
        ("Released", ConditionStatus.TRUE, "InstallSucceeded"),
    ]
    released = conditions.get(status.conditions, conditions.RELEASED_CONDITION)
    assert released is not None
    assert released.message == SUCCESS_MESSAGE
    assert released.observed_generation == 1
    ready = conditions.get(status.conditions, conditions.READY_CONDITION)
    assert ready is not None
    assert ready.message == SUCCESS_MESSAGE
    assert ready.observed_generation == 1

    assert len(recorder.events) == 1
    event = recorder.events[0]
    assert event.event_type == EventType.NORMAL
    assert event.reason == "InstallSucceeded"
    assert event.message == SUCCESS_MESSAGE
    assert event.annotations == {
        META_REVISION_KEY: "6.5.4",
        META_TOKEN_KEY: VALUES_TOKEN,
    }


async def test_install_success_awaiting_tests(
    request_obj: Request,
    config_factory: ConfigFactory,
    recorder: RecordingEventRecorder,
) -> None:
    """Test a successful install with tests enabled awaits the tests."""
    request_obj.obj.test = Test(enable=True)
    install = make_install(FakeEngine(), config_factory, recorder)
    await install.reconcile(request_obj)

    obj = request_obj.obj
    assert condition_summary(obj) == [
        ("Ready", ConditionStatus.UNKNOWN, "AwaitingTests"),
        ("Released", ConditionStatus.TRUE, "InstallSucceeded"),
        ("TestSuccess", ConditionStatus.UNKNOWN, "AwaitingTests"),
    ]
    test_success = conditions.get(
        obj.status.conditions, conditions.TEST_SUCCESS_CONDITION
    )
    assert test_success is not None
    assert test_success.message == (
        "Helm release test-ns/podinfo.v1 with chart podinfo@6.5.4 is awaiting tests"
    )
    assert [event.event_type for event in recorder.events] == [EventType.NORMAL]


async def test_install_clears_history(
    request_obj: Request,
    config_factory: ConfigFactory,
    recorder: RecordingEventRecorder,
) -> None:
    """Test an install starts a new history for the object."""
    previous = Snapshot(
        name="podinfo",
        namespace="test-ns",
        version=4,
        status="superseded",
        chart_name="podinfo",
        chart_version="6.5.3",
        config_digest="sha256:abc",
        digest="sha256:def",
    )
    request_obj.obj.status.history = [previous]
    install = make_install(FakeEngine(), config_factory, recorder)
    await install.reconcile(request_obj)

    history = request_obj.obj.status.history
    assert [s.full_release_name for s in history] == ["test-ns/podinfo.v1"]


async def test_install_failure_without_release(
    request_obj: Request,
    config_factory: ConfigFactory,
    recorder: RecordingEventRecorder,
) -> None:
    """Test a failure without a storage write is raised to the caller."""
    engine = FakeEngine(
        writes=[], error=ActionException("podinfo", "chart requires kubeVersion")
    )
    install = make_install(engine, config_factory, recorder)
    with pytest.raises(ActionException, match="chart requires kubeVersion"):
        await install.reconcile(request_obj)

    status = request_obj.obj.status
    assert status.last_attempted_release_action == ReleaseAction.INSTALL
    assert status.failures == 0
    assert status.install_failures == 0
    assert status.history == []
    assert status.conditions == []
    assert recorder.events == []


async def test_install_failure_without_release_keeps_ready(
    request_obj: Request,
    config_factory: ConfigFactory,
    recorder: RecordingEventRecorder,
) -> None:
    """Test a raised failure still summarizes the existing conditions."""
    obj = request_obj.obj
    obj.generation = 2
    conditions.mark_false(obj, "Released", "InstallFailed", "previous failure")
    engine = FakeEngine(writes=[], error=RuntimeError("connection refused"))
    install = make_install(engine, config_factory, recorder)
    with pytest.raises(RuntimeError):
        await install.reconcile(request_obj)

    assert condition_summary(obj) == [
        ("Ready", ConditionStatus.FALSE, "InstallFailed"),
        ("Released", ConditionStatus.FALSE, "InstallFailed"),
    ]
    assert obj.status.conditions[0].observed_generation == 2


async def test_install_failure(
    request_obj: Request,
    config_factory: ConfigFactory,
    recorder: RecordingEventRecorder,
) -> None:
    """Test a failure after a storage write is recorded on the object."""
    engine = FakeEngine(
        writes=[ReleaseStatus.PENDING_INSTALL, ReleaseStatus.FAILED],
        error=RuntimeError("timed out waiting for the condition\n"),
        log_lines=["creating 3 resource(s)", "beginning wait for 3 resources"],
    )
    install = make_install(engine, config_factory, recorder)
    await install.reconcile(request_obj)

    obj = request_obj.obj
    status = obj.status
    assert status.last_attempted_release_action == ReleaseAction.INSTALL
    assert status.failures == 1
    assert status.install_failures == 1
    assert status.upgrade_failures == 0
    assert [(s.version, s.status) for s in status.history] == [(1, "failed")]

    assert condition_summary(obj) == [
        ("Ready", ConditionStatus.FALSE, "InstallFailed"),
        ("Released", ConditionStatus.FALSE, "InstallFailed"),
    ]
    released = conditions.get(status.conditions, conditions.RELEASED_CONDITION)
    assert released is not None
    assert released.message == FAILURE_MESSAGE

    assert len(recorder.events) == 1
    event = recorder.events[0]
    assert event.event_type == EventType.WARNING
    assert event.reason == "InstallFailed"
    assert event.message == (
        f"{FAILURE_MESSAGE}\n\nLast Helm logs:\n\n"
        "creating 3 resource(s)\nbeginning wait for 3 resources"
    )
    assert event.annotations == {
        META_REVISION_KEY: "6.5.4",
        META_TOKEN_KEY: VALUES_TOKEN,
    }
    # The log lines are only part of the event
    assert "Last Helm logs" not in released.message


async def test_install_failure_log_buffer_size(
    request_obj: Request,
    config_factory: ConfigFactory,
    recorder: RecordingEventRecorder,
) -> None:
    """Test only the last log lines are part of the failure event."""
    engine = FakeEngine(
        writes=[ReleaseStatus.FAILED],
        error=RuntimeError("timed out waiting for the condition"),
        log_lines=[f"line {i}" for i in range(5)],
    )
    install = make_install(
        engine, config_factory, recorder, InstallConfig(log_buffer_size=2)
    )
    await install.reconcile(request_obj)

    assert len(recorder.events) == 1
    assert recorder.events[0].message.endswith(
        "Last Helm logs:\n\nline 3\nline 4"
    )


async def test_install_failure_counts(
    request_obj: Request,
    config_factory: ConfigFactory,
    driver: InMemoryDriver,
    recorder: RecordingEventRecorder,
) -> None:
    """Test each failure with a storage write counts once."""
    install = make_install(
        FakeEngine(
            writes=[ReleaseStatus.FAILED],
            error=RuntimeError("timed out waiting for the condition"),
        ),
        config_factory,
        recorder,
    )
    await install.reconcile(request_obj)
    driver.delete(release_key("podinfo", 1))
    await install.reconcile(request_obj)

    status = request_obj.obj.status
    assert status.failures == 2
    assert status.install_failures == 2
    assert len(status.history) == 1
    assert request_obj.obj.get_install().get_remediation().retries_exhausted(
        request_obj.obj
    )
    assert [event.event_type for event in recorder.events] == [
        EventType.WARNING,
        EventType.WARNING,
    ]


async def test_install_cancelled(
    request_obj: Request,
    config_factory: ConfigFactory,
    recorder: RecordingEventRecorder,
) -> None:
    """Test the releases written before a cancellation are recorded."""
    engine = FakeEngine(block=asyncio.Event())
    install = make_install(engine, config_factory, recorder)
    task = asyncio.create_task(install.reconcile(request_obj))
    while engine.calls == 0:
        await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    status = request_obj.obj.status
    assert status.last_attempted_release_action == ReleaseAction.INSTALL
    assert [(s.version, s.status) for s in status.history] == [(1, "deployed")]
    assert status.failures == 0
    assert status.conditions == []
    assert recorder.events == []


async def test_install_values_with_mixed_keys(
    request_obj: Request,
    config_factory: ConfigFactory,
    recorder: RecordingEventRecorder,
) -> None:
    """Test values with keys of mixed types are recorded and annotated."""
    request_obj.values = {"replicaCount": 2, 8080: "http", "ports": {443: "https"}}
    engine = FakeEngine(
        writes=[ReleaseStatus.FAILED],
        error=RuntimeError("timed out waiting for the condition"),
    )
    install = make_install(engine, config_factory, recorder)
    await install.reconcile(request_obj)

    status = request_obj.obj.status
    assert [(s.version, s.status) for s in status.history] == [(1, "failed")]
    assert status.history[0].config_digest == digest_values(request_obj.values)
    assert status.install_failures == 1
    assert [event.annotations[META_TOKEN_KEY] for event in recorder.events] == [
        digest_values(request_obj.values)
    ]
