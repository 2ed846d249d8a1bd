"""Events emitted about the Helm actions run for a HelmRelease."""

from abc import ABC, abstractmethod
from enum import StrEnum
import logging

from .action import LogBuffer
from .manifest import HELM_RELEASE_DOMAIN, HelmRelease

__all__ = [
    "EventType",
    "EventRecorder",
    "LoggingEventRecorder",
    "event_meta",
    "event_message_with_log",
]

_LOGGER = logging.getLogger(__name__)

META_REVISION_KEY = f"{HELM_RELEASE_DOMAIN}/revision"
META_TOKEN_KEY = f"{HELM_RELEASE_DOMAIN}/token"


class EventType(StrEnum):
    """Severity of an event."""

    NORMAL = "Normal"
    WARNING = "Warning"


class EventRecorder(ABC):
    """Abstract base class for a sink of events about a HelmRelease."""

    @abstractmethod
    def annotated_event(
        self,
        obj: HelmRelease,
        annotations: dict[str, str],
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        """Record an event with annotations for the object."""


class LoggingEventRecorder(EventRecorder):
    """An EventRecorder writing events to a logger."""

    def __init__(self, logger: logging.Logger = _LOGGER) -> None:
        """Initialize LoggingEventRecorder."""
        self._logger = logger

    def annotated_event(
        self,
        obj: HelmRelease,
        annotations: dict[str, str],
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        level = logging.WARNING if event_type == EventType.WARNING else logging.INFO
        self._logger.log(
            level,
            "HelmRelease %s %s: %s %s",
            obj.namespaced_name,
            reason,
            message,
            annotations,
        )


def event_meta(revision: str, token: str) -> dict[str, str]:
    """Return the annotations of an event about a chart revision and values."""
    return {
        META_REVISION_KEY: revision,
        META_TOKEN_KEY: token,
    }


def event_message_with_log(msg: str, log: LogBuffer | None) -> str:
    """Return the message extended with the lines retained by the log buffer."""
    if log is not None and len(log) > 0:
        msg = f"{msg}\n\nLast Helm logs:\n\n{log}"
    return msg
