"""Content digests for Helm values and observed releases.

The digests are used for event metadata and to detect whether a release
record changed between observations. They are not intended to provide any
cryptographic guarantees.
"""

import hashlib
import json
from typing import Any

__all__ = [
    "ALGORITHM",
    "digest_values",
    "digest_object",
]

ALGORITHM = "sha256"


def _normalize(obj: Any) -> Any:
    """Return the object with all mapping keys converted to strings.

    YAML documents may contain keys of mixed types e.g. `1: a` next to
    `b: c`, which can not be sorted when encoded.
    """
    if isinstance(obj, dict):
        return {str(key): _normalize(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_normalize(value) for value in obj]
    return obj


def _canonical(obj: Any) -> bytes:
    """Return a stable encoding of a JSON compatible object."""
    return json.dumps(
        _normalize(obj), sort_keys=True, separators=(",", ":"), default=str
    ).encode("utf-8")


def digest_object(obj: Any) -> str:
    """Return the digest of an arbitrary JSON compatible object."""
    return f"{ALGORITHM}:{hashlib.sha256(_canonical(obj)).hexdigest()}"


def digest_values(values: dict[str, Any] | None) -> str:
    """Return the digest of a set of chart values.

    Empty and missing values produce the same digest.
    """
    return digest_object(values or {})
