"""Shared SQLAlchemy and time helpers for the feed services."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, cast
from uuid import UUID

from sqlalchemy.sql import ColumnElement


def eq(column: Any, value: Any) -> ColumnElement[bool]:
    """Typed equality expression helper."""
    return cast(ColumnElement[bool], column == value)


def lt(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column < value)


def desc(column: Any) -> Any:
    """Typed descending ordering helper."""
    return cast(Any, column).desc()


def asc(column: Any) -> Any:
    return cast(Any, column).asc()


def ensure_aware(dt: datetime) -> datetime:
    """Interpret naive values as UTC and normalize aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_canonical_uuid(raw_value: str) -> bool:
    try:
        parsed = UUID(raw_value)
    except ValueError:
        return False
    return str(parsed) == raw_value
