"""Request-scoped accessors for objects owned by the application."""

from __future__ import annotations

from fastapi import Request

from txmonitor.config import Settings
from txmonitor.scoring.pipeline import RiskScoringPipeline
from txmonitor.storage.base import TransactionStore


def get_store(request: Request) -> TransactionStore:
    return request.app.state.store


def get_pipeline(request: Request) -> RiskScoringPipeline:
    return request.app.state.pipeline


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


__all__ = ["get_store", "get_pipeline", "get_app_settings"]
