"""Pydantic schemas for transaction ingestion and retrieval."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from .common import ApiModel, ensure_utc, utcnow

TransactionType = Literal["DEPOSIT", "WITHDRAWAL", "TRANSFER", "PAYMENT"]
ReviewStatus = Literal["PENDING", "REVIEWED", "APPROVED", "REJECTED"]


class TransactionInput(ApiModel):
    """Raw transaction as submitted by a client or a CSV row."""

    transaction_id: str = Field(..., min_length=1)
    account_id: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    timestamp: datetime
    currency: str = Field(default="USD", min_length=3, max_length=3)
    transaction_type: Optional[TransactionType] = None
    merchant_name: Optional[str] = None
    merchant_category: Optional[str] = None
    location: Optional[str] = None
    device_id: Optional[str] = None
    ip_address: Optional[str] = None

    # Scoring features
    transaction_velocity: int = Field(default=0, ge=0)
    avg_ticket_size: Optional[float] = Field(default=None, ge=0)
    time_of_day: Optional[int] = Field(default=None, ge=0, le=23)
    inter_transaction_interval: Optional[int] = Field(default=None, ge=0)
    day_night_ratio: Optional[float] = None
    ip_country: Optional[str] = None
    billing_country: Optional[str] = None
    geo_velocity: Optional[float] = Field(default=None, ge=0)
    device_fingerprint: Optional[str] = None
    failed_attempts: int = Field(default=0, ge=0)
    email_age: Optional[int] = Field(default=None, ge=0)
    email_domain: Optional[str] = None
    phone_verified: bool = False
    social_profile_presence: bool = False

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()


class TransactionRecord(TransactionInput):
    """Stored transaction enriched with the scoring outcome."""

    id: str
    ml_score: float = Field(default=0.0, ge=0.0, le=1.0)
    risk_level: Literal["LOW", "MEDIUM", "HIGH"] = "LOW"
    confidence: Optional[float] = None
    shap_explanation: Dict[str, float] = Field(default_factory=dict)

    high_value_flag: bool = False
    structuring_flag: bool = False
    ip_mismatch_flag: bool = False
    geo_velocity_flag: bool = False
    multiple_failures_flag: bool = False

    status: Literal["PROCESSED", "FLAGGED", "BLOCKED", "CHALLENGED"] = "PROCESSED"
    alert_generated: bool = False
    review_status: ReviewStatus = "PENDING"

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_audit_timestamps(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ReviewUpdate(ApiModel):
    review_status: ReviewStatus


class RowError(ApiModel):
    """A rejected row from a batch upload."""

    row_index: int
    raw_data: Dict[str, Any]
    error_message: str


class BatchSummary(ApiModel):
    total_rows: int = 0
    processed: int = 0
    errors: int = 0
    alerts_generated: int = 0


class BatchResult(ApiModel):
    message: str = "Batch processing completed"
    summary: BatchSummary
    errors: List[RowError] = Field(default_factory=list)


__all__ = [
    "TransactionInput",
    "TransactionRecord",
    "TransactionType",
    "ReviewStatus",
    "ReviewUpdate",
    "RowError",
    "BatchSummary",
    "BatchResult",
]
