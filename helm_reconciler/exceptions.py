"""Exceptions related to helm-reconciler."""

__all__ = [
    "ReconcilerException",
    "InputException",
    "ActionException",
    "StorageException",
    "ReleaseNotFoundError",
    "ReleaseExistsError",
]


class ReconcilerException(Exception):
    """Generic base exception used for this library."""


class InputException(ReconcilerException):
    """Raised when the input resources are not formatted as expected."""


class ActionException(ReconcilerException):
    """Raised when a Helm action fails to run to completion."""

    def __init__(self, release_name: str, message: str) -> None:
        super().__init__(message)
        self.release_name = release_name


class StorageException(ReconcilerException):
    """Raised when there is a failure reading or writing release storage."""


class ReleaseNotFoundError(StorageException):
    """Raised when a release is not found in storage."""


class ReleaseExistsError(StorageException):
    """Raised when creating a release that already exists in storage."""
