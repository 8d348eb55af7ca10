"""System metric endpoints and model evaluation."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query

from txmonitor.api.deps import get_store
from txmonitor.ml.evaluation import run_model_evaluation
from txmonitor.models import MetricCreate, ModelEvaluation, SystemMetric
from txmonitor.storage.base import TransactionStore

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("", response_model=List[SystemMetric])
def list_metrics(
    name: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    store: TransactionStore = Depends(get_store),
) -> List[SystemMetric]:
    try:
        return store.list_system_metrics(metric_name=name, limit=limit)
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch metrics: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/latest", response_model=List[SystemMetric])
def latest_metrics(store: TransactionStore = Depends(get_store)) -> List[SystemMetric]:
    """Return the most recent value of each metric."""
    try:
        return store.latest_system_metrics()
    except RuntimeError as exc:
        LOGGER.exception("Failed to fetch latest metrics: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.post("", response_model=SystemMetric)
def record_metric(payload: MetricCreate, store: TransactionStore = Depends(get_store)) -> SystemMetric:
    try:
        return store.create_system_metric(SystemMetric(id=str(uuid4()), **payload.model_dump()))
    except RuntimeError as exc:
        LOGGER.exception("Failed to record metric %s: %s", payload.metric_name, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.post("/evaluate", response_model=ModelEvaluation)
def evaluate_model(store: TransactionStore = Depends(get_store)) -> ModelEvaluation:
    """Score pipeline decisions against reviewed transactions and store the results."""
    try:
        return run_model_evaluation(store)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RuntimeError as exc:
        LOGGER.exception("Failed to evaluate model: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


__all__ = ["router"]
