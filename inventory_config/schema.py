"""
Inventory settings schema.

Frozen dataclasses the YAML settings file is parsed into.  Each class
validates itself in ``__post_init__`` so an invalid file fails at load time,
not at first use.

Module sections (``restock``, ``classification``) are kept as plain
mappings here; the modules turn them into their own config dataclasses via
``RestockConfig.from_dict`` / ``ClassificationConfig.from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings passed to ``init_engine_from_url``."""

    url: str = "sqlite:///inventory.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database.url cannot be empty")
        if self.pool_size <= 0:
            raise ValueError("database.pool_size must be positive")
        if self.max_overflow < 0:
            raise ValueError("database.max_overflow cannot be negative")
        if self.pool_timeout <= 0:
            raise ValueError("database.pool_timeout must be positive")


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {sorted(VALID_LOG_LEVELS)}, got '{self.level}'"
            )


@dataclass(frozen=True)
class InventorySettings:
    """
    The whole settings file.

    ``source`` is the file the settings came from (None for the packaged
    defaults) and ``checksum`` the SHA-256 of the parsed content, so a log
    line can tie a run to the exact configuration it used.
    """

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    restock: dict[str, Any] = field(default_factory=dict)
    classification: dict[str, Any] = field(default_factory=dict)
    source: str | None = None
    checksum: str = ""
