"""Utility modules for stash.

- **errors** -- Exception hierarchy rooted at StashError.
- **logging** -- structlog setup with console output in development and
  structured JSON in production.
- **sweeper** -- Cancellable asyncio task that periodically purges expired
  entries from the memory and SQLite stores.
"""

# -- Exception hierarchy ---------------------------------------------------
from stash.utils.errors import (
    CacheDeserializationError,
    CacheSerializationError,
    ConfigurationError,
    StashError,
)

# -- Structured logging setup ----------------------------------------------
from stash.utils.logging import configure_logging, get_logger

# -- Background expiry sweep -----------------------------------------------
from stash.utils.sweeper import DEFAULT_SWEEP_INTERVAL, PeriodicSweeper

__all__ = [
    "CacheDeserializationError",
    "CacheSerializationError",
    "ConfigurationError",
    "DEFAULT_SWEEP_INTERVAL",
    "PeriodicSweeper",
    "StashError",
    "configure_logging",
    "get_logger",
]
