"""Release storage driver with an observable write path."""

from collections.abc import Callable, Iterable
import copy
import logging

from helm_reconciler.release import Release

from .driver import Driver

_LOGGER = logging.getLogger(__name__)

ObserveFunc = Callable[[Release], None]
"""Callback invoked with a copy of every release written to the storage."""


class ObservingDriver(Driver):
    """A Driver which reports every write to a set of observers.

    Observers are called after a create, update or delete succeeded on the
    wrapped driver, with a copy of the written release. Reads are passed
    through without notification.
    """

    def __init__(self, driver: Driver, observers: Iterable[ObserveFunc] = ()) -> None:
        """Initialize the ObservingDriver wrapping another driver."""
        self._driver = driver
        self._observers = list(observers)

    @property
    def name(self) -> str:
        return self._driver.name

    def get(self, key: str) -> Release:
        return self._driver.get(key)

    def create(self, key: str, release: Release) -> None:
        self._driver.create(key, release)
        self._notify(key, release)

    def update(self, key: str, release: Release) -> None:
        self._driver.update(key, release)
        self._notify(key, release)

    def delete(self, key: str) -> Release:
        release = self._driver.delete(key)
        self._notify(key, release)
        return release

    def query(self, name: str) -> list[Release]:
        return self._driver.query(name)

    def _notify(self, key: str, release: Release) -> None:
        _LOGGER.debug("Observed write of release %s", key)
        for observer in self._observers:
            observer(copy.deepcopy(release))
