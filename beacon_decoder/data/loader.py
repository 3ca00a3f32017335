"""
Data loader for vendor parameter dictionaries.
Loads JSON files and validates them into ``ProviderTables``.

The JSON data files live alongside this module in the providers/
subdirectory, one file per vendor:

    {"groups": [{"key": ..., "label": ...}],
     "params": {"<name>": {"label": ..., "group": ..., "hidden": ...}}}
"""

from __future__ import annotations

import json
import pathlib
from typing import Any

import pydantic

from beacon_decoder.models.capability import ProviderTables

# Resolve path to the data directory (same directory as this module)
_DATA_DIR = pathlib.Path(__file__).resolve().parent

# ============================================================================
# JSON File Loading
# ============================================================================


def _load_json(relative_path: str) -> Any:
    """Load and parse a JSON file relative to the data directory.

    Raises:
        FileNotFoundError: If the JSON file does not exist.
        json.JSONDecodeError: If the file contains invalid JSON.
    """
    full_path = _DATA_DIR / relative_path
    if not full_path.exists():
        raise FileNotFoundError(f"Data file not found: {relative_path}")
    with open(full_path, encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as exc:
            raise json.JSONDecodeError(
                f"Invalid JSON in {relative_path}: {exc.msg}",
                exc.doc,
                exc.pos,
            ) from exc


# ============================================================================
# Provider Tables
# ============================================================================

_provider_tables_cache: dict[str, ProviderTables] = {}


def _load_provider_tables(filename: str) -> ProviderTables:
    """Load and validate one vendor table file.

    Raises:
        ValueError: If the file does not match the table schema.
    """
    raw = _load_json(f"providers/{filename}")
    try:
        return ProviderTables.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise ValueError(f"Invalid provider table {filename}: {exc}") from exc


def get_provider_tables(filename: str) -> ProviderTables:
    """Get a vendor's tables by filename (lazy loaded and cached)."""
    if filename not in _provider_tables_cache:
        _provider_tables_cache[filename] = _load_provider_tables(filename)
    return _provider_tables_cache[filename]


def list_provider_table_files() -> list[str]:
    """Filenames of every bundled vendor table."""
    return sorted(p.name for p in (_DATA_DIR / "providers").glob("*.json"))
