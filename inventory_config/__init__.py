"""
inventory_config -- single entrypoint for runtime settings.

Responsibility:
    ``get_settings()`` returns the process-wide ``InventorySettings``,
    loading them on first use.  Scripts and tests call ``load_settings()``
    directly when they need a specific file.

Resolution order:
    1. Packaged ``defaults.yaml``.
    2. The YAML file named by ``INVENTORY_CONFIG`` (or the ``path``
       argument), merged section by section over the defaults.
    3. ``DATABASE_URL`` replaces ``database.url``.

Architecture position:
    Configuration -- no dependency on kernel, engines or modules.  The
    modules read their sections through ``RestockConfig.from_dict`` and
    ``ClassificationConfig.from_dict``.

Audit relevance:
    Every load emits an ``INVENTORY_CONFIG_TRACE`` log record with the
    source file and the content checksum.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from pathlib import Path

from inventory_config.loader import load_yaml_file, merge_settings, parse_settings
from inventory_config.schema import DatabaseSettings, InventorySettings, LoggingSettings

_logger = logging.getLogger("inventory_kernel.config")

CONFIG_ENV_VAR = "INVENTORY_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"

_DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

_settings: InventorySettings | None = None
_lock = threading.Lock()


def load_settings(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> InventorySettings:
    """Load settings from the defaults, an optional file and the environment.

    Args:
        path: Settings file.  Defaults to ``$INVENTORY_CONFIG`` when set.
        env: Environment mapping, ``os.environ`` by default.

    Raises:
        FileNotFoundError: the named file does not exist.
        ValueError: the merged settings are invalid.
    """
    env = os.environ if env is None else env
    data = load_yaml_file(_DEFAULTS_PATH)

    source = None
    if path is None and env.get(CONFIG_ENV_VAR):
        path = env[CONFIG_ENV_VAR]
    if path is not None:
        source = str(path)
        data = merge_settings(data, load_yaml_file(Path(path)))

    if env.get(DATABASE_URL_ENV_VAR):
        data = merge_settings(data, {"database": {"url": env[DATABASE_URL_ENV_VAR]}})

    settings = parse_settings(data, source=source)
    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "source": source or "defaults",
            "checksum": settings.checksum,
            "database_dialect": settings.database.url.split(":", 1)[0],
        },
    )
    return settings


def get_settings() -> InventorySettings:
    """Process-wide settings, loaded once."""
    global _settings
    with _lock:
        if _settings is None:
            _settings = load_settings()
        return _settings


def reset_settings() -> None:
    """Forget the cached settings. FOR TESTING ONLY."""
    global _settings
    with _lock:
        _settings = None


__all__ = [
    "CONFIG_ENV_VAR",
    "DATABASE_URL_ENV_VAR",
    "DatabaseSettings",
    "InventorySettings",
    "LoggingSettings",
    "get_settings",
    "load_settings",
    "reset_settings",
]
