"""API route definitions for the transaction monitor."""

from fastapi import APIRouter

from .alerts import router as alerts_router
from .dashboard import router as dashboard_router
from .metrics import router as metrics_router
from .transactions import router as transactions_router


api_router = APIRouter(prefix="/api")
api_router.include_router(transactions_router)
api_router.include_router(alerts_router)
api_router.include_router(metrics_router)
api_router.include_router(dashboard_router)


__all__ = ["api_router"]
