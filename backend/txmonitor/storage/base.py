"""Storage interface shared by the ingestion layer and the API."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from txmonitor.models import AlertRecord, SystemMetric, TransactionRecord

REVIEWED_STATUSES = ("REVIEWED", "APPROVED", "REJECTED")


class DuplicateTransactionError(ValueError):
    """Raised when a transaction id has already been stored."""


class AlertStateError(ValueError):
    """Raised when a status change targets an alert that is no longer ACTIVE."""


class TransactionStore(ABC):
    """Persistence for transactions, alerts and system metrics.

    Implementations raise ``RuntimeError`` when the backing store fails.
    """

    # Transactions

    @abstractmethod
    def create_transaction(self, record: TransactionRecord) -> TransactionRecord: ...

    @abstractmethod
    def get_transaction(self, record_id: str) -> Optional[TransactionRecord]: ...

    @abstractmethod
    def get_transaction_by_transaction_id(self, transaction_id: str) -> Optional[TransactionRecord]: ...

    @abstractmethod
    def update_transaction(self, record_id: str, updates: Dict[str, Any]) -> Optional[TransactionRecord]: ...

    @abstractmethod
    def delete_transaction(self, record_id: str) -> bool:
        """Remove a transaction; returns False when it does not exist."""

    @abstractmethod
    def list_transactions(
        self,
        limit: int = 50,
        offset: int = 0,
        risk_level: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[TransactionRecord]: ...

    @abstractmethod
    def list_transactions_by_account(self, account_id: str) -> List[TransactionRecord]: ...

    @abstractmethod
    def list_flagged_transactions(self) -> List[TransactionRecord]: ...

    @abstractmethod
    def list_reviewed_transactions(self) -> List[TransactionRecord]: ...

    @abstractmethod
    def count_transactions(self, status: Optional[str] = None, risk_level: Optional[str] = None) -> int: ...

    @abstractmethod
    def count_similar_recent_transactions(
        self,
        account_id: str,
        amount_lower_bound: float,
        amount_upper_bound: float,
        window_hours: int,
        as_of: Optional[datetime] = None,
    ) -> int:
        """Count the account's transactions with lower <= amount < upper in the window ending at ``as_of``."""

    @abstractmethod
    def list_transactions_by_risk_level(self, risk_level: str) -> List[TransactionRecord]: ...

    # Alerts

    @abstractmethod
    def create_alert(self, alert: AlertRecord) -> AlertRecord: ...

    @abstractmethod
    def get_alert(self, alert_id: str) -> Optional[AlertRecord]: ...

    @abstractmethod
    def update_alert(self, alert_id: str, updates: Dict[str, Any]) -> Optional[AlertRecord]:
        """Apply updates atomically.

        A ``status`` change is only accepted while the alert is ACTIVE,
        otherwise ``AlertStateError`` is raised. Moving to RESOLVED stamps
        ``resolved_at``.
        """

    @abstractmethod
    def list_alerts(self, limit: int = 50, offset: int = 0) -> List[AlertRecord]: ...

    @abstractmethod
    def list_alerts_by_priority(self, priority: str) -> List[AlertRecord]: ...

    @abstractmethod
    def list_active_alerts(self) -> List[AlertRecord]: ...

    # System metrics

    @abstractmethod
    def create_system_metric(self, metric: SystemMetric) -> SystemMetric: ...

    @abstractmethod
    def list_system_metrics(self, metric_name: Optional[str] = None, limit: int = 100) -> List[SystemMetric]: ...

    @abstractmethod
    def latest_system_metrics(self) -> List[SystemMetric]: ...

    def initialize(self) -> None:
        """Prepare the backend (schema, indexes) before first use."""

    def close(self) -> None:
        """Release backend resources."""


__all__ = ["TransactionStore", "DuplicateTransactionError", "AlertStateError", "REVIEWED_STATUSES"]
