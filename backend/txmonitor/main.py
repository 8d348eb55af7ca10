"""FastAPI entry point for the transaction monitoring backend service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from txmonitor.api import api_router
from txmonitor.api.deps import get_pipeline, get_store
from txmonitor.config import Settings, get_settings
from txmonitor.db.neo4j_client import close_driver
from txmonitor.ingest.sample_loader import load_sample_transactions
from txmonitor.scoring.pipeline import RiskScoringPipeline
from txmonitor.scoring.rules import RuleEvaluator
from txmonitor.storage.base import TransactionStore
from txmonitor.storage.memory import MemoryStore
from txmonitor.storage.neo4j_store import Neo4jStore
from txmonitor.storage.seed import seed_system_metrics


LOGGER = logging.getLogger(__name__)


def build_store(settings: Settings) -> TransactionStore:
	"""Instantiate the configured storage backend."""
	if settings.storage_backend == "neo4j":
		return Neo4jStore(lookup_timeout=settings.history_lookup_timeout)
	return MemoryStore()


def build_pipeline(store: TransactionStore, settings: Settings) -> RiskScoringPipeline:
	"""Wire the scoring pipeline to the store's history lookup."""
	evaluator = RuleEvaluator(
		history_lookup=store.count_similar_recent_transactions,
		window_hours=settings.structuring_window_hours,
		min_similar=settings.structuring_min_similar,
	)
	return RiskScoringPipeline(evaluator)


def create_app(store: Optional[TransactionStore] = None, settings: Optional[Settings] = None) -> FastAPI:
	settings = settings or get_settings()
	logging.basicConfig(level=settings.log_level)

	application = FastAPI(
		title="Transaction Monitor Backend",
		version="1.0.0",
		description="Scores incoming transactions for fraud risk and manages the resulting alerts.",
	)

	application.state.settings = settings
	application.state.store = store or build_store(settings)
	application.state.pipeline = build_pipeline(application.state.store, settings)

	application.add_middleware(
		CORSMiddleware,
		allow_origins=settings.cors_allow_origins,
		allow_credentials=False,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	application.include_router(api_router)

	@application.get("/health")
	def healthcheck() -> Dict[str, str]:
		"""Basic readiness probe."""
		return {"status": "ok", "storage": settings.storage_backend}

	@application.on_event("startup")
	def startup_event() -> None:
		"""Prepare the store and seed metrics for a fresh deployment."""
		active_store: TransactionStore = application.state.store
		active_store.initialize()
		if settings.seed_metrics:
			seed_system_metrics(active_store)

	@application.on_event("shutdown")
	def shutdown_event() -> None:
		"""Release the store and close the shared Neo4j driver."""
		application.state.store.close()
		close_driver()

	@application.post("/ingest/sample")
	async def ingest_sample_data(
		path: str | None = None,
		active_store: TransactionStore = Depends(get_store),
		pipeline: RiskScoringPipeline = Depends(get_pipeline),
	) -> Dict[str, Any]:
		"""Load the bundled sample dataset for local experimentation."""
		try:
			result = await run_in_threadpool(load_sample_transactions, active_store, pipeline, path)
		except FileNotFoundError as exc:
			LOGGER.warning("Sample data not found: %s", exc)
			raise HTTPException(status_code=404, detail=str(exc)) from exc
		except ValueError as exc:
			LOGGER.warning("Sample data invalid: %s", exc)
			raise HTTPException(status_code=400, detail=str(exc)) from exc
		except RuntimeError as exc:
			LOGGER.error("Failed to ingest sample data: %s", exc)
			raise HTTPException(status_code=502, detail=str(exc)) from exc

		return {
			"status": "success",
			"message": "Sample dataset ingested",
			"data": result,
		}

	return application


app = create_app()
