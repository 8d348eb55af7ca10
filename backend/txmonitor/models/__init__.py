"""Pydantic data models exposed by the transaction monitoring backend."""

from .alerts import AlertRecord, AlertStatus, AlertUpdate
from .metrics import AnalyticsSummary, DashboardStats, MetricCreate, ModelEvaluation, ScorePercentiles, SystemMetric
from .transactions import (
	BatchResult,
	BatchSummary,
	ReviewUpdate,
	RowError,
	TransactionInput,
	TransactionRecord,
)

__all__ = [
	"AlertRecord",
	"AlertStatus",
	"AlertUpdate",
	"AnalyticsSummary",
	"DashboardStats",
	"MetricCreate",
	"ModelEvaluation",
	"ScorePercentiles",
	"SystemMetric",
	"BatchResult",
	"BatchSummary",
	"ReviewUpdate",
	"RowError",
	"TransactionInput",
	"TransactionRecord",
]
