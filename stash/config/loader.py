"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. built-in defaults   -- one ``default`` memory store
  2. config/config.yaml  -- named store definitions checked into the app
  3. environment         -- ``STASH_*`` variables read through Settings

Only settings that were actually supplied by the environment (or .env)
override YAML values; Settings defaults never mask the file.

Resulting shape::

    stash:
      cachestore: default          # store used when no name is given
    cachestores:
      default: {store: memory}
      shared:  {store: redis, url: "redis://localhost:6379/0", prefix: "app:"}
      local:   {store: sqlite, path: data/cache.db}
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from stash.config.settings import Settings

DEFAULT_CONFIG: dict[str, Any] = {
    "stash": {"cachestore": "default"},
    "cachestores": {"default": {"store": "memory"}},
}


def load_config(path: str | Path | None = None, settings: Settings | None = None) -> dict[str, Any]:
    """Load YAML config and merge environment-supplied Settings on top.

    Args:
        path: Path to the YAML file.  Defaults to ``settings.config_path``.
              A missing file is not an error.
        settings: Settings instance; a fresh one is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)

    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
        if yaml_config.get("cachestores"):
            # A file that defines stores replaces the built-in default store.
            config["cachestores"] = {}
        _deep_merge(config, yaml_config)

    explicit = settings.model_fields_set
    env_overrides: dict[str, Any] = {}
    if "cache_store" in explicit:
        env_overrides.setdefault("stash", {})["cachestore"] = settings.cache_store
    if "log_level" in explicit:
        env_overrides.setdefault("logging", {})["level"] = settings.log_level

    _deep_merge(config, env_overrides)
    return config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
