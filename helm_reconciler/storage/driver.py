"""Release storage driver interface."""

from abc import ABC, abstractmethod

from helm_reconciler.release import Release

__all__ = ["Driver", "release_key"]


def release_key(name: str, version: int) -> str:
    """Return the storage key of a release revision."""
    return f"sh.helm.release.v1.{name}.v{version}"


class Driver(ABC):
    """Abstract base class for a key-value release storage."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the driver, used in logs."""

    @abstractmethod
    def get(self, key: str) -> Release:
        """Return the release stored under the key.

        Raises:
            ReleaseNotFoundError: If no release is stored under the key.
        """

    @abstractmethod
    def create(self, key: str, release: Release) -> None:
        """Store a new release under the key.

        Raises:
            ReleaseExistsError: If a release is already stored under the key.
        """

    @abstractmethod
    def update(self, key: str, release: Release) -> None:
        """Replace the release stored under the key.

        Raises:
            ReleaseNotFoundError: If no release is stored under the key.
        """

    @abstractmethod
    def delete(self, key: str) -> Release:
        """Remove and return the release stored under the key.

        Raises:
            ReleaseNotFoundError: If no release is stored under the key.
        """

    @abstractmethod
    def query(self, name: str) -> list[Release]:
        """Return all revisions of the named release, oldest first."""
