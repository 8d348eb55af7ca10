"""Score and persist incoming transactions, one at a time or in batches."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping
from uuid import uuid4

from pydantic import ValidationError

from txmonitor.models import AlertRecord, BatchResult, BatchSummary, RowError, TransactionInput, TransactionRecord
from txmonitor.scoring.features import TransactionFeatures
from txmonitor.scoring.pipeline import Assessment, RiskScoringPipeline
from txmonitor.storage.base import DuplicateTransactionError, TransactionStore

LOGGER = logging.getLogger(__name__)


def format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into a single readable line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def _enrich(payload: TransactionInput, features: TransactionFeatures, assessment: Assessment) -> TransactionRecord:
    flags = assessment.flags
    data = payload.model_dump()
    data["time_of_day"] = features.time_of_day

    return TransactionRecord(
        **data,
        id=str(uuid4()),
        ml_score=assessment.score.score,
        risk_level=assessment.score.risk_level,
        confidence=assessment.score.confidence,
        shap_explanation=assessment.score.attribution,
        high_value_flag=flags.high_value,
        structuring_flag=flags.structuring,
        ip_mismatch_flag=flags.ip_mismatch,
        geo_velocity_flag=flags.geo_velocity,
        multiple_failures_flag=flags.multiple_failures,
        status=assessment.disposition.status,
        alert_generated=assessment.alert is not None,
    )


def ingest_transaction(
    payload: TransactionInput,
    store: TransactionStore,
    pipeline: RiskScoringPipeline,
) -> TransactionRecord:
    """Score a validated transaction, store it and raise an alert when required."""
    if store.get_transaction_by_transaction_id(payload.transaction_id) is not None:
        raise DuplicateTransactionError(f"Transaction {payload.transaction_id} already exists")

    features = TransactionFeatures.from_mapping(payload.model_dump())
    assessment = pipeline.assess(features)
    record = store.create_transaction(_enrich(payload, features, assessment))

    if assessment.alert is not None:
        draft = assessment.alert
        try:
            store.create_alert(
                AlertRecord(
                    id=str(uuid4()),
                    transaction_id=record.id,
                    alert_type=draft.alert_type,
                    priority=draft.priority,
                    description=draft.description,
                    details=draft.details,
                    status=draft.status,
                )
            )
        except Exception:
            # A transaction that requires an alert is only kept together with it.
            LOGGER.error("Alert write failed for transaction %s, rolling back", record.transaction_id)
            store.delete_transaction(record.id)
            raise
        LOGGER.info(
            "Alert raised for transaction %s (priority=%s, status=%s)",
            record.transaction_id,
            draft.priority,
            record.status,
        )

    LOGGER.info(
        "Ingested transaction %s for account %s: score=%.4f risk=%s status=%s",
        record.transaction_id,
        record.account_id,
        record.ml_score,
        record.risk_level,
        record.status,
    )
    return record


def ingest_batch(
    rows: Iterable[Mapping[str, Any]],
    store: TransactionStore,
    pipeline: RiskScoringPipeline,
) -> BatchResult:
    """Ingest raw rows independently; failures are collected per row."""
    errors: List[RowError] = []
    processed = 0
    alerts_generated = 0
    total = 0

    for row_index, raw in enumerate(rows, start=1):
        total += 1
        raw_data: Dict[str, Any] = dict(raw)
        try:
            payload = TransactionInput.model_validate(raw_data)
            record = ingest_transaction(payload, store, pipeline)
        except ValidationError as exc:
            message = format_validation_error(exc)
        except (ValueError, RuntimeError) as exc:
            message = str(exc)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.exception("Unexpected failure ingesting batch row %d", row_index)
            message = f"Unexpected error: {exc}"
        else:
            processed += 1
            alerts_generated += int(record.alert_generated)
            continue

        LOGGER.warning("Skipping batch row %d: %s", row_index, message)
        errors.append(RowError(row_index=row_index, raw_data=raw_data, error_message=message))

    LOGGER.info(
        "Batch ingestion finished: %d rows, %d processed, %d errors, %d alerts",
        total,
        processed,
        len(errors),
        alerts_generated,
    )
    return BatchResult(
        summary=BatchSummary(
            total_rows=total,
            processed=processed,
            errors=len(errors),
            alerts_generated=alerts_generated,
        ),
        errors=errors,
    )


__all__ = ["ingest_transaction", "ingest_batch", "format_validation_error"]
