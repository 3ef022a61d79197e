"""
Settings Loader (``inventory_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen dataclasses of
``inventory_config.schema``.

Architecture position
---------------------
**Config layer**.  No dependency on kernel, engines or modules.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown section or key  -> ``ValueError``.
* Invalid value  -> ``ValueError`` from the schema's ``__post_init__``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import DatabaseSettings, InventorySettings, LoggingSettings

_SECTIONS = {"database", "logging", "restock", "classification"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Section '{name}' must be a mapping")
    return value


def _build(cls: type, name: str, values: dict[str, Any]):
    try:
        return cls(**values)
    except TypeError as exc:
        raise ValueError(f"Invalid key in section '{name}': {exc}") from exc


def parse_settings(data: dict[str, Any], source: str | None = None) -> InventorySettings:
    """Parse a settings mapping into ``InventorySettings``."""
    unknown = set(data) - _SECTIONS
    if unknown:
        raise ValueError(f"Unknown settings sections: {sorted(unknown)}")

    return InventorySettings(
        database=_build(DatabaseSettings, "database", _section(data, "database")),
        logging=_build(LoggingSettings, "logging", _section(data, "logging")),
        restock=dict(_section(data, "restock")),
        classification=dict(_section(data, "classification")),
        source=source,
        checksum=compute_checksum(data),
    )


def merge_settings(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Section-wise merge: keys in ``override`` replace keys in ``base``."""
    merged: dict[str, Any] = {name: dict(values or {}) for name, values in base.items()}
    for name, values in override.items():
        merged.setdefault(name, {}).update(values or {})
    return merged
