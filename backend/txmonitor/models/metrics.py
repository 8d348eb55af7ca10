"""Schemas for system metrics, dashboard and analytics responses."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from .common import ApiModel, ensure_utc, utcnow


class MetricCreate(ApiModel):
    metric_name: str = Field(..., min_length=1)
    metric_value: float


class SystemMetric(MetricCreate):
    id: str
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class DashboardStats(ApiModel):
    """Headline counts for the dashboard page."""

    total_transactions: int = Field(default=0, ge=0)
    flagged_transactions: int = Field(default=0, ge=0)
    high_risk_transactions: int = Field(default=0, ge=0)
    active_alerts: int = Field(default=0, ge=0)
    metrics: Dict[str, float] = Field(default_factory=dict)


class ScorePercentiles(ApiModel):
    p50: float = 0.0
    p90: float = 0.0
    p99: float = 0.0


class AnalyticsSummary(ApiModel):
    """Aggregates over the most recent transactions and alerts."""

    transaction_count: int = 0
    risk_distribution: Dict[str, int] = Field(default_factory=dict)
    status_distribution: Dict[str, int] = Field(default_factory=dict)
    flag_counts: Dict[str, int] = Field(default_factory=dict)
    hourly_volume: List[int] = Field(default_factory=lambda: [0] * 24)
    average_score: float = 0.0
    score_percentiles: ScorePercentiles = Field(default_factory=ScorePercentiles)
    alert_counts: Dict[str, int] = Field(default_factory=dict)


class ModelEvaluation(ApiModel):
    """Detection quality measured against reviewer decisions."""

    sample_size: int
    accuracy: float
    precision: float
    recall: float
    false_positive_rate: float
    roc_auc: Optional[float] = None


__all__ = [
    "MetricCreate",
    "SystemMetric",
    "DashboardStats",
    "ScorePercentiles",
    "AnalyticsSummary",
    "ModelEvaluation",
]
