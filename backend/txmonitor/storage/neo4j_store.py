"""Neo4j-backed transaction store.

Graph layout::

    (:Account {account_id})-[:MADE]->(:Transaction)
    (:Alert)-[:RAISED_FOR]->(:Transaction)
    (:SystemMetric)

Map-valued fields are stored as JSON strings and every node carries epoch
seconds next to its ISO timestamps so ordering and window queries stay numeric.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from neo4j import Driver, Query
from neo4j.exceptions import DriverError, Neo4jError
from pydantic import BaseModel

from txmonitor.db.neo4j_client import get_driver
from txmonitor.models import AlertRecord, SystemMetric, TransactionRecord
from txmonitor.models.common import ensure_utc, utcnow
from txmonitor.storage.base import REVIEWED_STATUSES, AlertStateError, DuplicateTransactionError, TransactionStore

LOGGER = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_JSON_FIELDS = ("shap_explanation", "details")

_SCHEMA_STATEMENTS = (
    "CREATE CONSTRAINT transaction_id_unique IF NOT EXISTS "
    "FOR (t:Transaction) REQUIRE t.transaction_id IS UNIQUE",
    "CREATE CONSTRAINT transaction_pk IF NOT EXISTS FOR (t:Transaction) REQUIRE t.id IS UNIQUE",
    "CREATE CONSTRAINT alert_pk IF NOT EXISTS FOR (a:Alert) REQUIRE a.id IS UNIQUE",
    "CREATE CONSTRAINT account_pk IF NOT EXISTS FOR (a:Account) REQUIRE a.account_id IS UNIQUE",
    "CREATE INDEX metric_name IF NOT EXISTS FOR (m:SystemMetric) ON (m.metric_name)",
)


def _epoch(value: datetime) -> float:
    return ensure_utc(value).timestamp()


def _encode_value(key: str, value: Any) -> Any:
    if key in _JSON_FIELDS:
        return json.dumps(value or {})
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    return value


def _to_properties(model: BaseModel) -> Dict[str, Any]:
    props = model.model_dump(mode="json")
    for key in _JSON_FIELDS:
        if key in props:
            props[key] = json.dumps(props[key] or {})
    return props


def _from_node(node: Any, model_cls: Type[ModelT]) -> ModelT:
    data = {key: value for key, value in dict(node).items() if not key.endswith("_epoch")}
    for key in _JSON_FIELDS:
        if isinstance(data.get(key), str):
            data[key] = json.loads(data[key])
    return model_cls.model_validate(data)


def _where(clauses: List[str]) -> str:
    return f"WHERE {' AND '.join(clauses)}" if clauses else ""


class Neo4jStore(TransactionStore):
    """Transaction store that persists to Neo4j through the official driver."""

    def __init__(self, driver: Optional[Driver] = None, lookup_timeout: Optional[float] = None) -> None:
        self._driver_override = driver
        self._lookup_timeout = lookup_timeout

    def _driver(self) -> Driver:
        return self._driver_override or get_driver()

    def _run(self, query: Union[str, Query], **params: Any) -> List[Any]:
        try:
            with self._driver().session() as session:
                return list(session.run(query, **params))
        except (Neo4jError, DriverError, ValueError) as exc:
            LOGGER.exception("Neo4j query failed: %s", exc)
            raise RuntimeError("Transaction store query failed") from exc

    def _single(self, query: Union[str, Query], key: str, **params: Any) -> Optional[Any]:
        records = self._run(query, **params)
        if not records:
            return None
        return records[0].get(key)

    def initialize(self) -> None:
        """Create constraints and indexes used by the store's queries."""
        for statement in _SCHEMA_STATEMENTS:
            self._run(statement)
        LOGGER.info("Neo4j schema constraints ensured")

    # Transactions

    def create_transaction(self, record: TransactionRecord) -> TransactionRecord:
        existing = self._single(
            "MATCH (t:Transaction {transaction_id: $transaction_id}) RETURN count(t) AS existing",
            "existing",
            transaction_id=record.transaction_id,
        )
        if existing:
            raise DuplicateTransactionError(f"Transaction {record.transaction_id} already exists")

        props = _to_properties(record)
        props["timestamp_epoch"] = _epoch(record.timestamp)
        props["created_epoch"] = _epoch(record.created_at)

        query = """
        MERGE (account:Account {account_id: $props.account_id})
        CREATE (t:Transaction)
        SET t = $props
        MERGE (account)-[:MADE]->(t)
        RETURN t AS transaction
        """
        node = self._single(query, "transaction", props=props)
        if node is None:
            raise RuntimeError(f"Transaction {record.transaction_id} was not persisted")
        LOGGER.debug("Persisted transaction %s to Neo4j", record.transaction_id)
        return _from_node(node, TransactionRecord)

    def get_transaction(self, record_id: str) -> Optional[TransactionRecord]:
        node = self._single("MATCH (t:Transaction {id: $id}) RETURN t AS transaction", "transaction", id=record_id)
        return _from_node(node, TransactionRecord) if node is not None else None

    def get_transaction_by_transaction_id(self, transaction_id: str) -> Optional[TransactionRecord]:
        node = self._single(
            "MATCH (t:Transaction {transaction_id: $transaction_id}) RETURN t AS transaction",
            "transaction",
            transaction_id=transaction_id,
        )
        return _from_node(node, TransactionRecord) if node is not None else None

    def update_transaction(self, record_id: str, updates: Dict[str, Any]) -> Optional[TransactionRecord]:
        changes = {key: _encode_value(key, value) for key, value in updates.items()}
        changes["updated_at"] = utcnow().isoformat()
        node = self._single(
            "MATCH (t:Transaction {id: $id}) SET t += $changes RETURN t AS transaction",
            "transaction",
            id=record_id,
            changes=changes,
        )
        return _from_node(node, TransactionRecord) if node is not None else None

    def delete_transaction(self, record_id: str) -> bool:
        deleted = self._single(
            "MATCH (t:Transaction {id: $id}) DETACH DELETE t RETURN count(*) AS deleted",
            "deleted",
            id=record_id,
        )
        return bool(deleted)

    def _transaction_filters(
        self,
        risk_level: Optional[str],
        status: Optional[str],
        search: Optional[str] = None,
    ) -> tuple[str, Dict[str, Any]]:
        clauses: List[str] = []
        params: Dict[str, Any] = {}
        if risk_level:
            clauses.append("t.risk_level = $risk_level")
            params["risk_level"] = risk_level
        if status:
            clauses.append("t.status = $status")
            params["status"] = status
        if search:
            clauses.append("(toLower(t.transaction_id) CONTAINS $search OR toLower(t.account_id) CONTAINS $search)")
            params["search"] = search.lower()
        return _where(clauses), params

    def _list_transactions(self, where: str, params: Dict[str, Any], page: str = "") -> List[TransactionRecord]:
        query = f"""
        MATCH (t:Transaction)
        {where}
        RETURN t AS transaction
        ORDER BY t.created_epoch DESC
        {page}
        """
        return [_from_node(record["transaction"], TransactionRecord) for record in self._run(query, **params)]

    def list_transactions(
        self,
        limit: int = 50,
        offset: int = 0,
        risk_level: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[TransactionRecord]:
        where, params = self._transaction_filters(risk_level, status, search)
        return self._list_transactions(where, {**params, "offset": offset, "limit": limit}, "SKIP $offset LIMIT $limit")

    def list_transactions_by_account(self, account_id: str) -> List[TransactionRecord]:
        query = """
        MATCH (:Account {account_id: $account_id})-[:MADE]->(t:Transaction)
        RETURN t AS transaction
        ORDER BY t.created_epoch DESC
        """
        records = self._run(query, account_id=account_id)
        return [_from_node(record["transaction"], TransactionRecord) for record in records]

    def list_transactions_by_risk_level(self, risk_level: str) -> List[TransactionRecord]:
        where, params = self._transaction_filters(risk_level, None)
        return self._list_transactions(where, params)

    def list_flagged_transactions(self) -> List[TransactionRecord]:
        return self._list_transactions("WHERE t.status = 'FLAGGED' OR t.alert_generated = true", {})

    def list_reviewed_transactions(self) -> List[TransactionRecord]:
        return self._list_transactions("WHERE t.review_status IN $statuses", {"statuses": list(REVIEWED_STATUSES)})

    def count_transactions(self, status: Optional[str] = None, risk_level: Optional[str] = None) -> int:
        where, params = self._transaction_filters(risk_level, status)
        total = self._single(f"MATCH (t:Transaction) {where} RETURN count(t) AS total", "total", **params)
        return int(total or 0)

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
        query = """
        MATCH (:Account {account_id: $account_id})-[:MADE]->(t:Transaction)
        WHERE t.amount >= $lower AND t.amount < $upper
          AND t.timestamp_epoch > $window_start AND t.timestamp_epoch <= $window_end
        RETURN count(t) AS similar
        """
        similar = self._single(
            Query(query, timeout=self._lookup_timeout),
            "similar",
            account_id=account_id,
            lower=amount_lower_bound,
            upper=amount_upper_bound,
            window_start=window_start.timestamp(),
            window_end=window_end.timestamp(),
        )
        return int(similar or 0)

    # Alerts

    def create_alert(self, alert: AlertRecord) -> AlertRecord:
        props = _to_properties(alert)
        props["created_epoch"] = _epoch(alert.created_at)
        query = """
        MATCH (t:Transaction {id: $props.transaction_id})
        CREATE (a:Alert)
        SET a = $props
        MERGE (a)-[:RAISED_FOR]->(t)
        RETURN a AS alert
        """
        node = self._single(query, "alert", props=props)
        if node is None:
            raise ValueError(f"Transaction {alert.transaction_id} not found for alert")
        return _from_node(node, AlertRecord)

    def get_alert(self, alert_id: str) -> Optional[AlertRecord]:
        node = self._single("MATCH (a:Alert {id: $id}) RETURN a AS alert", "alert", id=alert_id)
        return _from_node(node, AlertRecord) if node is not None else None

    def update_alert(self, alert_id: str, updates: Dict[str, Any]) -> Optional[AlertRecord]:
        changes = {key: _encode_value(key, value) for key, value in updates.items()}
        # Status changes match only while the alert is still ACTIVE.
        query = """
        MATCH (a:Alert {id: $id})
        WHERE $status_change = false OR a.status = 'ACTIVE'
        SET a += $changes
        SET a.resolved_at = CASE
            WHEN a.status = 'RESOLVED' THEN coalesce(a.resolved_at, $now)
            ELSE a.resolved_at
        END
        RETURN a AS alert
        """
        status_change = "status" in changes
        node = self._single(
            query,
            "alert",
            id=alert_id,
            changes=changes,
            status_change=status_change,
            now=utcnow().isoformat(),
        )
        if node is not None:
            return _from_node(node, AlertRecord)

        if status_change:
            current = self.get_alert(alert_id)
            if current is not None:
                raise AlertStateError(
                    f"Alert is already {current.status} and cannot be changed to {changes['status']}"
                )
        return None

    def _list_alerts(self, where: str, params: Dict[str, Any], page: str = "") -> List[AlertRecord]:
        query = f"""
        MATCH (a:Alert)
        {where}
        RETURN a AS alert
        ORDER BY a.created_epoch DESC
        {page}
        """
        return [_from_node(record["alert"], AlertRecord) for record in self._run(query, **params)]

    def list_alerts(self, limit: int = 50, offset: int = 0) -> List[AlertRecord]:
        return self._list_alerts("", {"offset": offset, "limit": limit}, "SKIP $offset LIMIT $limit")

    def list_alerts_by_priority(self, priority: str) -> List[AlertRecord]:
        return self._list_alerts("WHERE a.priority = $priority", {"priority": priority})

    def list_active_alerts(self) -> List[AlertRecord]:
        return self._list_alerts("WHERE a.status = 'ACTIVE'", {})

    # System metrics

    def create_system_metric(self, metric: SystemMetric) -> SystemMetric:
        props = _to_properties(metric)
        props["timestamp_epoch"] = _epoch(metric.timestamp)
        node = self._single("CREATE (m:SystemMetric) SET m = $props RETURN m AS metric", "metric", props=props)
        if node is None:
            raise RuntimeError(f"Metric {metric.metric_name} was not persisted")
        return _from_node(node, SystemMetric)

    def list_system_metrics(self, metric_name: Optional[str] = None, limit: int = 100) -> List[SystemMetric]:
        where = "WHERE m.metric_name = $metric_name" if metric_name else ""
        query = f"""
        MATCH (m:SystemMetric)
        {where}
        RETURN m AS metric
        ORDER BY m.timestamp_epoch DESC
        LIMIT $limit
        """
        records = self._run(query, metric_name=metric_name, limit=limit)
        return [_from_node(record["metric"], SystemMetric) for record in records]

    def latest_system_metrics(self) -> List[SystemMetric]:
        query = """
        MATCH (m:SystemMetric)
        WITH m ORDER BY m.timestamp_epoch DESC
        WITH m.metric_name AS name, collect(m)[0] AS latest
        RETURN latest AS metric
        ORDER BY name
        """
        return [_from_node(record["metric"], SystemMetric) for record in self._run(query)]

    def close(self) -> None:
        if self._driver_override is not None:
            self._driver_override.close()


__all__ = ["Neo4jStore"]
