"""Endpoints for reviewing alerts raised by the scoring pipeline."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from txmonitor.api.deps import get_store
from txmonitor.models import AlertRecord, AlertUpdate
from txmonitor.storage.base import AlertStateError, TransactionStore

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=List[AlertRecord])
def list_alerts(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: TransactionStore = Depends(get_store),
) -> List[AlertRecord]:
    """Return alerts newest first."""
    try:
        return store.list_alerts(limit=limit, offset=offset)
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch alerts: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/active", response_model=List[AlertRecord])
def list_active_alerts(store: TransactionStore = Depends(get_store)) -> List[AlertRecord]:
    try:
        return store.list_active_alerts()
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch active alerts: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/priority/{priority}", response_model=List[AlertRecord])
def list_alerts_by_priority(priority: str, store: TransactionStore = Depends(get_store)) -> List[AlertRecord]:
    normalized = priority.upper()
    if normalized not in {"HIGH", "MEDIUM", "LOW"}:
        raise HTTPException(status_code=400, detail=f"Unknown priority: {priority}")
    try:
        return store.list_alerts_by_priority(normalized)
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch %s priority alerts: %s", normalized, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/{alert_id}", response_model=AlertRecord)
def get_alert(alert_id: str, store: TransactionStore = Depends(get_store)) -> AlertRecord:
    try:
        alert = store.get_alert(alert_id)
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch alert %s: %s", alert_id, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.patch("/{alert_id}", response_model=AlertRecord)
def update_alert(alert_id: str, payload: AlertUpdate, store: TransactionStore = Depends(get_store)) -> AlertRecord:
    """Resolve, dismiss or assign an alert. Only ACTIVE alerts change status."""
    updates = payload.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No changes supplied")

    try:
        alert = store.update_alert(alert_id, updates)
    except AlertStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except RuntimeError as exc:
        LOGGER.exception("Failed to update alert %s: %s", alert_id, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")

    LOGGER.info("Alert %s updated: %s", alert_id, updates)
    return alert


__all__ = ["router"]
