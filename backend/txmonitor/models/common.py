"""Shared base model for API payloads."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Accepts snake_case or camelCase input and serializes to camelCase."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


__all__ = ["ApiModel", "ensure_utc", "utcnow"]
