"""Module for in memory release storage."""

import copy
import logging

from helm_reconciler.release import Release
from helm_reconciler.exceptions import ReleaseExistsError, ReleaseNotFoundError

from .driver import Driver

_LOGGER = logging.getLogger(__name__)


class InMemoryDriver(Driver):
    """In-memory implementation of the Driver interface.

    Releases are stored per namespace and copied on the way in and out, so
    callers never share a record with the storage.
    """

    def __init__(self, namespace: str) -> None:
        """Initialize the InMemoryDriver for a storage namespace."""
        self._namespace = namespace
        self._releases: dict[str, Release] = {}

    @property
    def name(self) -> str:
        return "memory"

    def get(self, key: str) -> Release:
        """Return the release stored under the key."""
        if (release := self._releases.get(key)) is None:
            raise ReleaseNotFoundError(
                f"Release {key} not found in namespace {self._namespace}"
            )
        return copy.deepcopy(release)

    def create(self, key: str, release: Release) -> None:
        """Store a new release under the key."""
        if key in self._releases:
            raise ReleaseExistsError(
                f"Release {key} already exists in namespace {self._namespace}"
            )
        _LOGGER.debug("Creating release %s in namespace %s", key, self._namespace)
        self._releases[key] = copy.deepcopy(release)

    def update(self, key: str, release: Release) -> None:
        """Replace the release stored under the key."""
        if key not in self._releases:
            raise ReleaseNotFoundError(
                f"Release {key} not found in namespace {self._namespace}"
            )
        _LOGGER.debug("Updating release %s in namespace %s", key, self._namespace)
        self._releases[key] = copy.deepcopy(release)

    def delete(self, key: str) -> Release:
        """Remove and return the release stored under the key."""
        if (release := self._releases.pop(key, None)) is None:
            raise ReleaseNotFoundError(
                f"Release {key} not found in namespace {self._namespace}"
            )
        _LOGGER.debug("Deleted release %s in namespace %s", key, self._namespace)
        return release

    def query(self, name: str) -> list[Release]:
        """Return all revisions of the named release, oldest first."""
        return sorted(
            (
                copy.deepcopy(release)
                for release in self._releases.values()
                if release.name == name
            ),
            key=lambda release: release.version,
        )
