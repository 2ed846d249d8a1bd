"""Tests for the action configuration and logging."""

import logging

import pytest

from helm_reconciler.action import ConfigFactory, LogBuffer, debug_log
from helm_reconciler.release import Chart, ChartMetadata, Release
from helm_reconciler.storage import InMemoryDriver, ObservingDriver, release_key


def test_log_buffer() -> None:
    """Test the log buffer keeps the last lines."""
    lines: list[str] = []

    def log(fmt: str, *args: object) -> None:
        lines.append(fmt % args if args else fmt)

    buffer = LogBuffer(log, 2)
    assert len(buffer) == 0
    assert str(buffer) == ""
    buffer.log("line %d", 1)
    buffer.log("line %d", 2)
    buffer.log("line %s", "three")
    buffer.log("100% done")
    assert len(buffer) == 2
    assert str(buffer) == "line three\n100% done"
    assert lines == ["line 1", "line 2", "line three", "100% done"]


def test_log_buffer_empty() -> None:
    """Test a log buffer without capacity keeps nothing."""
    buffer = LogBuffer(lambda fmt, *args: None, 0)
    buffer.log("line")
    assert len(buffer) == 0


def test_debug_log(caplog: pytest.LogCaptureFixture) -> None:
    """Test the debug log writes to the logger."""
    caplog.set_level(logging.DEBUG)
    log = debug_log(logging.getLogger("test.action"))
    log("creating %d resource(s)", 2)
    assert "creating 2 resource(s)" in caplog.text


def test_config_factory() -> None:
    """Test building configurations with and without observers."""
    driver = InMemoryDriver("test-ns")
    factory = ConfigFactory(driver, "test-ns")
    buffer = LogBuffer(lambda fmt, *args: None, 10)

    config = factory.build(buffer.log)
    assert config.namespace == "test-ns"
    assert config.driver is driver
    config.log("hello")
    assert str(buffer) == "hello"

    observed: list[Release] = []
    config = factory.build(buffer.log, observed.append)
    assert isinstance(config.driver, ObservingDriver)
    config.driver.create(
        release_key("podinfo", 1),
        Release(
            name="podinfo",
            namespace="test-ns",
            version=1,
            chart=Chart(metadata=ChartMetadata(name="podinfo", version="1.0.0")),
        ),
    )
    assert [r.name for r in observed] == ["podinfo"]
    assert [r.name for r in driver.query("podinfo")] == ["podinfo"]
