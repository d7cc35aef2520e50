#!/usr/bin/env python3
"""
JSON Utilities Module

Provides centralized JSON reading and writing functions with consistent formatting.
Summaries and audit exports carry Decimal and datetime values, so writers use a
default serializer that renders them as strings.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any


def json_default(value: Any) -> Any:
    """Serialize Decimal and date values that the json module cannot handle."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(filepath: str | Path, data: Any, ensure_ascii: bool = False, sort_keys: bool = False) -> None:
    """
    Write data to a JSON file with standard pretty-printing.

    Args:
        filepath: Path to the JSON file
        data: Data to write to the file
        ensure_ascii: If True, escape non-ASCII characters (default: False)
        sort_keys: If True, sort dictionary keys (default: False)
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=ensure_ascii, sort_keys=sort_keys, default=json_default)


def read_json(filepath: str | Path) -> Any:
    """
    Read data from a JSON file.

    Args:
        filepath: Path to the JSON file

    Returns:
        The parsed JSON data
    """
    with open(filepath, encoding="utf-8") as f:
        return json.load(f)


def format_json(data: Any, ensure_ascii: bool = False, sort_keys: bool = False) -> str:
    """
    Format data as a pretty-printed JSON string.

    Args:
        data: Data to format
        ensure_ascii: If True, escape non-ASCII characters (default: False)
        sort_keys: If True, sort dictionary keys (default: False)

    Returns:
        Pretty-printed JSON string
    """
    return json.dumps(data, indent=2, ensure_ascii=ensure_ascii, sort_keys=sort_keys, default=json_default)
