"""Cache entry model and the JSON codec shared by the stores.

A :class:`CacheEntry` pairs a value with an optional absolute expiry
instant.  Expiry instants are integer milliseconds since the Unix epoch,
the unit the SQLite ``expires_at`` column stores.  ``expires_at=None``
marks a permanent entry.

The Redis and SQLite stores persist values as JSON text through
:func:`serialize_value` / :func:`deserialize_value`.  The memory store
keeps values as live Python objects and skips the codec.
"""

from __future__ import annotations

import json
import math
import time
from typing import Any

from pydantic import BaseModel, ConfigDict

from stash.utils.errors import CacheDeserializationError, CacheSerializationError


def now_ms() -> int:
    """Current wall-clock time in integer epoch milliseconds."""
    return int(time.time() * 1000)


def expires_at_from_ttl(ttl: float | None, now: int | None = None) -> int | None:
    """Convert a TTL in seconds to an absolute expiry instant.

    A falsy TTL (``None`` or ``0``) means "never expires" and yields
    ``None``.  Positive TTLs round to the nearest millisecond, never below
    one, so a tiny TTL still yields a live entry.  Negative or non-finite
    TTLs are rejected.
    """
    if not ttl:
        return None
    if isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
        msg = f"TTL must be a number of seconds, got {ttl!r}"
        raise TypeError(msg)
    if ttl < 0 or not math.isfinite(ttl):
        msg = f"TTL must be a positive number of seconds, got {ttl!r}"
        raise ValueError(msg)
    if now is None:
        now = now_ms()
    return now + max(1, int(round(ttl * 1000)))


def is_expired_at(expires_at: int | None, now: int | None = None) -> bool:
    """Return ``True`` when ``expires_at`` is set and not in the future."""
    if expires_at is None:
        return False
    if now is None:
        now = now_ms()
    return expires_at <= now


class CacheEntry(BaseModel):
    """One cached value with its expiry instant."""

    model_config = ConfigDict(frozen=True)

    value: Any = None
    expires_at: int | None = None

    @classmethod
    def from_ttl(cls, value: Any, ttl: float | None = None, *, now: int | None = None) -> CacheEntry:
        """Build an entry expiring ``ttl`` seconds after ``now``."""
        return cls(value=value, expires_at=expires_at_from_ttl(ttl, now))

    @property
    def permanent(self) -> bool:
        return self.expires_at is None

    def is_expired(self, now: int | None = None) -> bool:
        return is_expired_at(self.expires_at, now)


# ---------------------------------------------------------------------------
# JSON codec
# ---------------------------------------------------------------------------


def serialize_value(value: Any) -> str:
    """Encode ``value`` as compact JSON text.

    Raises
    ------
    CacheSerializationError
        If the value holds types JSON cannot represent (sets, objects,
        NaN, ...).
    """
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        msg = f"Value of type {type(value).__name__} is not JSON serializable: {exc}"
        raise CacheSerializationError(msg) from exc


def deserialize_value(payload: str | bytes) -> Any:
    """Decode JSON text written by :func:`serialize_value`.

    Raises
    ------
    CacheDeserializationError
        If the payload is not valid JSON.
    """
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as exc:
        msg = f"Stored payload is not valid JSON: {exc}"
        raise CacheDeserializationError(msg) from exc
