"""Endpoints for ingesting and browsing scored transactions."""

from __future__ import annotations

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from txmonitor.api.deps import get_app_settings, get_pipeline, get_store
from txmonitor.config import Settings
from txmonitor.ingest.csv_loader import is_csv_upload, parse_transactions_csv
from txmonitor.ingest.transactions import ingest_batch, ingest_transaction
from txmonitor.models import BatchResult, ReviewUpdate, TransactionInput, TransactionRecord
from txmonitor.scoring.pipeline import RiskScoringPipeline
from txmonitor.storage.base import DuplicateTransactionError, TransactionStore

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])

RiskLevelParam = Literal["LOW", "MEDIUM", "HIGH"]
StatusParam = Literal["PROCESSED", "FLAGGED", "BLOCKED", "CHALLENGED"]


@router.get("", response_model=List[TransactionRecord])
def list_transactions(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    risk_level: Optional[RiskLevelParam] = Query(default=None, alias="riskLevel"),
    status: Optional[StatusParam] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100),
    store: TransactionStore = Depends(get_store),
) -> List[TransactionRecord]:
    """Return transactions newest first, optionally filtered."""
    try:
        return store.list_transactions(limit=limit, offset=offset, risk_level=risk_level, status=status, search=search)
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch transactions: %s", exc)
        raise HTTPException(status_code=502, detail="Failed to fetch transactions") from exc


@router.post("", response_model=TransactionRecord)
@router.post("/single", response_model=TransactionRecord)
def create_transaction(
    payload: TransactionInput,
    store: TransactionStore = Depends(get_store),
    pipeline: RiskScoringPipeline = Depends(get_pipeline),
) -> TransactionRecord:
    """Score and store a single transaction."""
    try:
        return ingest_transaction(payload, store, pipeline)
    except DuplicateTransactionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RuntimeError as exc:
        LOGGER.exception("Failed to create transaction %s: %s", payload.transaction_id, exc)
        raise HTTPException(status_code=502, detail="Failed to create transaction") from exc


@router.post("/upload-csv", response_model=BatchResult)
async def upload_csv(
    csv_file: UploadFile = File(..., alias="csvFile"),
    store: TransactionStore = Depends(get_store),
    pipeline: RiskScoringPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_app_settings),
) -> BatchResult:
    """Bulk-ingest a CSV file; rows that fail are reported, not fatal."""
    if not is_csv_upload(csv_file.filename, csv_file.content_type):
        raise HTTPException(status_code=400, detail="Only CSV files are allowed")

    content = await csv_file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="CSV file exceeds the upload size limit")

    try:
        rows = parse_transactions_csv(content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    result = await run_in_threadpool(ingest_batch, rows, store, pipeline)
    LOGGER.info("CSV upload %s processed: %s", csv_file.filename, result.summary)

    return BatchResult(
        message="CSV processing completed",
        summary=result.summary,
        errors=result.errors[: settings.upload_error_limit],
    )


@router.get("/flagged", response_model=List[TransactionRecord])
def list_flagged(store: TransactionStore = Depends(get_store)) -> List[TransactionRecord]:
    try:
        return store.list_flagged_transactions()
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch flagged transactions: %s", exc)
        raise HTTPException(status_code=502, detail="Failed to fetch flagged transactions") from exc


@router.get("/risk/{level}", response_model=List[TransactionRecord])
def list_by_risk_level(level: str, store: TransactionStore = Depends(get_store)) -> List[TransactionRecord]:
    normalized = level.upper()
    if normalized not in {"LOW", "MEDIUM", "HIGH"}:
        raise HTTPException(status_code=400, detail=f"Unknown risk level: {level}")
    try:
        return store.list_transactions_by_risk_level(normalized)
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch %s risk transactions: %s", normalized, exc)
        raise HTTPException(status_code=502, detail="Failed to fetch transactions by risk level") from exc


@router.get("/{record_id}", response_model=TransactionRecord)
def get_transaction(record_id: str, store: TransactionStore = Depends(get_store)) -> TransactionRecord:
    try:
        record = store.get_transaction(record_id)
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch transaction %s: %s", record_id, exc)
        raise HTTPException(status_code=502, detail="Failed to fetch transaction") from exc

    if record is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return record


@router.patch("/{record_id}/review", response_model=TransactionRecord)
def review_transaction(
    record_id: str,
    payload: ReviewUpdate,
    store: TransactionStore = Depends(get_store),
) -> TransactionRecord:
    """Record a reviewer's decision on a transaction."""
    try:
        record = store.update_transaction(record_id, {"review_status": payload.review_status})
    except RuntimeError as exc:
        LOGGER.exception("Failed to update review status for %s: %s", record_id, exc)
        raise HTTPException(status_code=502, detail="Failed to update transaction") from exc

    if record is None:
        raise HTTPException(status_code=404, detail="Transaction not found")

    LOGGER.info("Transaction %s reviewed as %s", record.transaction_id, payload.review_status)
    return record


__all__ = ["router"]
