"""Data models for stash."""

from stash.models.entry import (
    CacheEntry,
    deserialize_value,
    expires_at_from_ttl,
    is_expired_at,
    now_ms,
    serialize_value,
)
from stash.models.store import StoreDefinition, StoreKind

__all__ = [
    "CacheEntry",
    "StoreDefinition",
    "StoreKind",
    "deserialize_value",
    "expires_at_from_ttl",
    "is_expired_at",
    "now_ms",
    "serialize_value",
]
