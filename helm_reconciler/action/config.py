"""Configuration handed to the action engine for a single Helm action."""

from dataclasses import dataclass
import logging

from helm_reconciler.storage import Driver, ObservingDriver, ObserveFunc

from .log import LogFunc

__all__ = ["ActionConfiguration", "ConfigFactory"]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ActionConfiguration:
    """Everything an action needs to run against the release storage."""

    namespace: str
    """The namespace of the release storage."""

    driver: Driver
    """The release storage driver, writes through it may be observed."""

    log: LogFunc
    """The function receiving the log lines of the action."""


class ConfigFactory:
    """Factory building an ActionConfiguration for each Helm action."""

    def __init__(self, driver: Driver, namespace: str) -> None:
        """Initialize the factory with the release storage to act on."""
        self._driver = driver
        self._namespace = namespace

    def build(self, log: LogFunc, *observers: ObserveFunc) -> ActionConfiguration:
        """Return a new ActionConfiguration.

        When observers are given, every write of the action to the release
        storage is reported to them.
        """
        driver = self._driver
        if observers:
            driver = ObservingDriver(driver, observers)
        _LOGGER.debug(
            "Building action configuration for storage %s/%s with %d observer(s)",
            driver.name,
            self._namespace,
            len(observers),
        )
        return ActionConfiguration(namespace=self._namespace, driver=driver, log=log)
