"""Field access shared by engine inputs.

Engine functions take ORM rows, pydantic models, plain objects or dicts
interchangeably; these helpers read a field from any of them.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any


def field_of(record: Any, key: str, default: Any = None) -> Any:
    if isinstance(record, dict):
        return record.get(key, default)
    return getattr(record, key, default)


def date_of(record: Any) -> date:
    value = field_of(record, "date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value
