"""Application settings loaded from environment variables via pydantic-settings.

Every field maps to an environment variable with the ``STASH_`` prefix,
e.g. ``redis_url`` ← ``STASH_REDIS_URL``.  A ``.env`` file in the working
directory is read too; real environment variables win over it.

The values here are process-wide defaults.  Per-store settings live in the
``cachestores`` section of ``config/config.yaml`` (see
:mod:`stash.config.loader`) and take precedence over them.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """stash settings.

    Environment variables override defaults.  Loaded from .env when present.
    """

    model_config = SettingsConfigDict(
        env_prefix="STASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Store selection ===
    # Name of the cachestores entry used when no name is given.
    cache_store: str = "default"
    config_path: str = "config/config.yaml"

    # === Backend defaults ===
    # Used by redis / sqlite store definitions that omit url / path.
    redis_url: str = ""
    sqlite_path: str = "data/cache.db"
    sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"
