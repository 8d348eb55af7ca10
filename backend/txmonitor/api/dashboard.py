"""Read-only summaries backing the dashboard and analytics pages."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from txmonitor.api.deps import get_app_settings, get_store
from txmonitor.config import Settings
from txmonitor.models import AnalyticsSummary, DashboardStats
from txmonitor.storage.base import TransactionStore
from txmonitor.utils.analytics import build_analytics, build_dashboard_stats

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(store: TransactionStore = Depends(get_store)) -> DashboardStats:
    try:
        return build_dashboard_stats(store)
    except RuntimeError as exc:
        LOGGER.exception("Failed to build dashboard stats: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/analytics", response_model=AnalyticsSummary)
def analytics(
    store: TransactionStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> AnalyticsSummary:
    try:
        return build_analytics(store, limit=settings.analytics_limit)
    except RuntimeError as exc:
        LOGGER.exception("Failed to build analytics: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


__all__ = ["router"]
