"""Composition-root helper for applications embedding stash.

Reads ``.env`` / ``STASH_*`` settings and ``config/config.yaml``,
configures structured logging, and returns a ready :class:`CacheManager`.
Call :meth:`CacheManager.close` at application shutdown.
"""

from __future__ import annotations

import structlog

from stash.config.loader import load_config
from stash.config.settings import Settings
from stash.services.cache_manager import CacheManager
from stash.utils.logging import configure_logging, get_logger


def build_cache(custom_settings: Settings | None = None) -> CacheManager:
    """Assemble a CacheManager from settings and the YAML config file."""
    app_settings = custom_settings or Settings()
    config = load_config(settings=app_settings)

    configure_logging(app_settings, log_level=config.get("logging", {}).get("level"))
    _logger: structlog.stdlib.BoundLogger = get_logger(__name__)

    manager = CacheManager.from_config(config, settings=app_settings)
    _logger.info(
        "cache_ready",
        default_store=manager.default_store_name,
        stores=manager.list_stores(),
    )
    return manager
