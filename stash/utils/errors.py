"""Custom exception hierarchy for stash.

All library exceptions inherit from :class:`StashError`, which carries an
optional ``store_name`` so error handlers can tell which configured cache
store (e.g. "default", "sessions") raised the failure.

    StashError  (base -- catch-all for any stash error)
    +-- ConfigurationError         (unknown store kind / unknown store name)
    +-- CacheSerializationError    (value cannot be encoded for storage)
    +-- CacheDeserializationError  (stored payload cannot be decoded)

Faults raised by the backing services themselves (``redis.RedisError``,
``sqlite3.Error``) are NOT wrapped by the stores; they reach the caller
unchanged.
"""


class StashError(Exception):
    """Base exception for all stash errors.

    The ``__str__`` method prefixes the store name in brackets for
    structured log output, e.g. ``[sessions] Stored payload is not valid JSON``.
    """

    def __init__(
        self,
        message: str = "An unexpected cache error occurred",
        store_name: str | None = None,
    ) -> None:
        self._message = message
        self._store_name = store_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def store_name(self) -> str | None:
        return self._store_name

    def __str__(self) -> str:
        if self._store_name:
            return f"[{self._store_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Startup errors
# ---------------------------------------------------------------------------

class ConfigurationError(StashError):
    """Raised when a store definition is unknown, missing or invalid."""

    def __init__(
        self,
        message: str = "Invalid or missing cache store configuration",
        store_name: str | None = None,
    ) -> None:
        super().__init__(message=message, store_name=store_name)


# ---------------------------------------------------------------------------
# Runtime errors
# ---------------------------------------------------------------------------

class CacheSerializationError(StashError):
    """Raised when a value cannot be encoded to its stored text form."""

    def __init__(
        self,
        message: str = "Value cannot be serialized for the cache",
        store_name: str | None = None,
    ) -> None:
        super().__init__(message=message, store_name=store_name)


class CacheDeserializationError(StashError):
    """Raised when a stored payload cannot be decoded.

    A corrupt payload is a hard failure on ``get``, never a cache miss.
    """

    def __init__(
        self,
        message: str = "Stored cache payload cannot be decoded",
        store_name: str | None = None,
    ) -> None:
        super().__init__(message=message, store_name=store_name)
