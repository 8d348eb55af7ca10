"""In-process store used by default and in tests."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from txmonitor.models import AlertRecord, SystemMetric, TransactionRecord
from txmonitor.models.common import ensure_utc, utcnow
from txmonitor.storage.base import REVIEWED_STATUSES, AlertStateError, DuplicateTransactionError, TransactionStore


def _newest_first(items: Iterable, key: str) -> list:
    return sorted(items, key=lambda item: getattr(item, key), reverse=True)


def _matches_search(record: TransactionRecord, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.lower()
    return needle in record.transaction_id.lower() or needle in record.account_id.lower()


class MemoryStore(TransactionStore):
    """Dict-backed store; every operation holds a single lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._transactions: Dict[str, TransactionRecord] = {}
        self._alerts: Dict[str, AlertRecord] = {}
        self._metrics: Dict[str, SystemMetric] = {}

    # Transactions

    def create_transaction(self, record: TransactionRecord) -> TransactionRecord:
        with self._lock:
            if self._find_by_transaction_id(record.transaction_id) is not None:
                raise DuplicateTransactionError(f"Transaction {record.transaction_id} already exists")
            self._transactions[record.id] = record
        return record

    def get_transaction(self, record_id: str) -> Optional[TransactionRecord]:
        with self._lock:
            return self._transactions.get(record_id)

    def get_transaction_by_transaction_id(self, transaction_id: str) -> Optional[TransactionRecord]:
        with self._lock:
            return self._find_by_transaction_id(transaction_id)

    def _find_by_transaction_id(self, transaction_id: str) -> Optional[TransactionRecord]:
        for record in self._transactions.values():
            if record.transaction_id == transaction_id:
                return record
        return None

    def update_transaction(self, record_id: str, updates: Dict[str, Any]) -> Optional[TransactionRecord]:
        with self._lock:
            current = self._transactions.get(record_id)
            if current is None:
                return None
            updated = current.model_copy(update={**updates, "updated_at": utcnow()})
            self._transactions[record_id] = updated
        return updated

    def delete_transaction(self, record_id: str) -> bool:
        with self._lock:
            return self._transactions.pop(record_id, None) is not None

    def list_transactions(
        self,
        limit: int = 50,
        offset: int = 0,
        risk_level: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[TransactionRecord]:
        with self._lock:
            records = [
                record
                for record in self._transactions.values()
                if (risk_level is None or record.risk_level == risk_level)
                and (status is None or record.status == status)
                and _matches_search(record, search)
            ]
        return _newest_first(records, "created_at")[offset : offset + limit]

    def list_transactions_by_account(self, account_id: str) -> List[TransactionRecord]:
        with self._lock:
            records = [r for r in self._transactions.values() if r.account_id == account_id]
        return _newest_first(records, "created_at")

    def list_transactions_by_risk_level(self, risk_level: str) -> List[TransactionRecord]:
        with self._lock:
            records = [r for r in self._transactions.values() if r.risk_level == risk_level]
        return _newest_first(records, "created_at")

    def list_flagged_transactions(self) -> List[TransactionRecord]:
        with self._lock:
            records = [r for r in self._transactions.values() if r.status == "FLAGGED" or r.alert_generated]
        return _newest_first(records, "created_at")

    def list_reviewed_transactions(self) -> List[TransactionRecord]:
        with self._lock:
            records = [r for r in self._transactions.values() if r.review_status in REVIEWED_STATUSES]
        return _newest_first(records, "created_at")

    def count_transactions(self, status: Optional[str] = None, risk_level: Optional[str] = None) -> int:
        with self._lock:
            return sum(
                1
                for r in self._transactions.values()
                if (status is None or r.status == status) and (risk_level is None or r.risk_level == risk_level)
            )

    def count_similar_recent_transactions(
        self,
        account_id: str,
        amount_lower_bound: float,
        amount_upper_bound: float,
        window_hours: int,
        as_of: Optional[datetime] = None,
    ) -> int:
        window_end = ensure_utc(as_of) or utcnow()
        window_start = window_end - timedelta(hours=window_hours)
        with self._lock:
            return sum(
                1
                for r in self._transactions.values()
                if r.account_id == account_id
                and amount_lower_bound <= r.amount < amount_upper_bound
                and window_start < r.timestamp <= window_end
            )

    # Alerts

    def create_alert(self, alert: AlertRecord) -> AlertRecord:
        with self._lock:
            self._alerts[alert.id] = alert
        return alert

    def get_alert(self, alert_id: str) -> Optional[AlertRecord]:
        with self._lock:
            return self._alerts.get(alert_id)

    def update_alert(self, alert_id: str, updates: Dict[str, Any]) -> Optional[AlertRecord]:
        with self._lock:
            current = self._alerts.get(alert_id)
            if current is None:
                return None
            changes = dict(updates)
            if "status" in changes and current.status != "ACTIVE":
                raise AlertStateError(f"Alert is already {current.status} and cannot be changed to {changes['status']}")
            if changes.get("status") == "RESOLVED" and current.resolved_at is None:
                changes.setdefault("resolved_at", utcnow())
            updated = current.model_copy(update=changes)
            self._alerts[alert_id] = updated
        return updated

    def list_alerts(self, limit: int = 50, offset: int = 0) -> List[AlertRecord]:
        with self._lock:
            alerts = list(self._alerts.values())
        return _newest_first(alerts, "created_at")[offset : offset + limit]

    def list_alerts_by_priority(self, priority: str) -> List[AlertRecord]:
        with self._lock:
            alerts = [a for a in self._alerts.values() if a.priority == priority]
        return _newest_first(alerts, "created_at")

    def list_active_alerts(self) -> List[AlertRecord]:
        with self._lock:
            alerts = [a for a in self._alerts.values() if a.status == "ACTIVE"]
        return _newest_first(alerts, "created_at")

    # System metrics

    def create_system_metric(self, metric: SystemMetric) -> SystemMetric:
        with self._lock:
            self._metrics[metric.id] = metric
        return metric

    def list_system_metrics(self, metric_name: Optional[str] = None, limit: int = 100) -> List[SystemMetric]:
        with self._lock:
            metrics = [m for m in self._metrics.values() if metric_name is None or m.metric_name == metric_name]
        return _newest_first(metrics, "timestamp")[:limit]

    def latest_system_metrics(self) -> List[SystemMetric]:
        latest: Dict[str, SystemMetric] = {}
        for metric in self.list_system_metrics(limit=len(self._metrics) or 1):
            latest.setdefault(metric.metric_name, metric)
        return list(latest.values())


__all__ = ["MemoryStore"]
