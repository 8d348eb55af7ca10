"""Schemas for fraud alerts raised during ingestion."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import Field, field_validator

from .common import ApiModel, ensure_utc, utcnow

AlertStatus = Literal["ACTIVE", "RESOLVED", "DISMISSED"]


class AlertRecord(ApiModel):
    """Represents a single alert attached to a stored transaction."""

    id: str
    transaction_id: str = Field(..., description="Internal id of the flagged transaction")
    alert_type: Literal["RULE_BASED", "ML_BASED", "COMBINED"]
    priority: Literal["HIGH", "MEDIUM", "LOW"] = "LOW"
    description: str
    details: Dict[str, Any] = Field(default_factory=dict)
    status: AlertStatus = "ACTIVE"
    assigned_to: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    resolved_at: Optional[datetime] = None

    @field_validator("created_at", "resolved_at")
    @classmethod
    def _normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class AlertUpdate(ApiModel):
    """Reviewer action on an alert."""

    status: Optional[Literal["RESOLVED", "DISMISSED"]] = None
    assigned_to: Optional[str] = None


__all__ = ["AlertRecord", "AlertStatus", "AlertUpdate"]
