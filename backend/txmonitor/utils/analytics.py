"""Aggregate statistics for the dashboard and analytics pages."""

from __future__ import annotations

import logging
from typing import Dict, List

import numpy as np
import pandas as pd

from txmonitor.models import AlertRecord, AnalyticsSummary, DashboardStats, ScorePercentiles, TransactionRecord
from txmonitor.storage.base import TransactionStore

LOGGER = logging.getLogger(__name__)

RISK_LEVELS = ("HIGH", "MEDIUM", "LOW")
STATUSES = ("PROCESSED", "FLAGGED", "BLOCKED", "CHALLENGED")
ALERT_STATUSES = ("ACTIVE", "RESOLVED", "DISMISSED")
FLAG_COLUMNS = {
    "high_value": "high_value_flag",
    "structuring": "structuring_flag",
    "ip_mismatch": "ip_mismatch_flag",
    "geo_velocity": "geo_velocity_flag",
    "multiple_failures": "multiple_failures_flag",
}


def build_dashboard_stats(store: TransactionStore) -> DashboardStats:
    """Headline counts plus the latest value of every system metric."""
    metrics = {metric.metric_name: metric.metric_value for metric in store.latest_system_metrics()}
    return DashboardStats(
        total_transactions=store.count_transactions(),
        flagged_transactions=store.count_transactions(status="FLAGGED"),
        high_risk_transactions=store.count_transactions(risk_level="HIGH"),
        active_alerts=len(store.list_active_alerts()),
        metrics=metrics,
    )


def _transactions_frame(transactions: List[TransactionRecord]) -> pd.DataFrame:
    columns = ["risk_level", "status", "ml_score", "time_of_day", *FLAG_COLUMNS.values()]
    if not transactions:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([record.model_dump(include=set(columns)) for record in transactions])


def _value_counts(series: pd.Series, labels) -> Dict[str, int]:
    counts = series.value_counts()
    return {label: int(counts.get(label, 0)) for label in labels}


def summarize(transactions: List[TransactionRecord], alerts: List[AlertRecord]) -> AnalyticsSummary:
    df = _transactions_frame(transactions)
    alert_statuses = pd.Series([alert.status for alert in alerts], dtype="object")

    if df.empty:
        return AnalyticsSummary(
            risk_distribution={level: 0 for level in RISK_LEVELS},
            status_distribution={status: 0 for status in STATUSES},
            flag_counts={name: 0 for name in FLAG_COLUMNS},
            alert_counts={"total": len(alerts), **_value_counts(alert_statuses, ALERT_STATUSES)},
        )

    hours = pd.to_numeric(df["time_of_day"], errors="coerce").dropna().astype(int)
    hourly = np.bincount(hours[(hours >= 0) & (hours <= 23)].to_numpy(), minlength=24)

    scores = df["ml_score"].astype(float).to_numpy()
    p50, p90, p99 = np.percentile(scores, [50, 90, 99])

    return AnalyticsSummary(
        transaction_count=len(df),
        risk_distribution=_value_counts(df["risk_level"], RISK_LEVELS),
        status_distribution=_value_counts(df["status"], STATUSES),
        flag_counts={name: int(df[column].astype(bool).sum()) for name, column in FLAG_COLUMNS.items()},
        hourly_volume=[int(count) for count in hourly[:24]],
        average_score=round(float(scores.mean()), 4),
        score_percentiles=ScorePercentiles(p50=float(p50), p90=float(p90), p99=float(p99)),
        alert_counts={"total": len(alerts), **_value_counts(alert_statuses, ALERT_STATUSES)},
    )


def build_analytics(store: TransactionStore, limit: int = 1000) -> AnalyticsSummary:
    """Summarize the most recent ``limit`` transactions and alerts."""
    transactions = store.list_transactions(limit=limit)
    alerts = store.list_alerts(limit=limit)
    LOGGER.debug("Building analytics over %d transactions and %d alerts", len(transactions), len(alerts))
    return summarize(transactions, alerts)


__all__ = ["build_dashboard_stats", "build_analytics", "summarize"]
