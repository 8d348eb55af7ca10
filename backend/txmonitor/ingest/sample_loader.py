"""Utility helpers for loading the bundled sample transactions into the store."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from txmonitor.ingest.transactions import ingest_batch
from txmonitor.scoring.pipeline import RiskScoringPipeline
from txmonitor.storage.base import TransactionStore

LOGGER = logging.getLogger(__name__)

DEFAULT_SAMPLE_PATH = Path(__file__).resolve().parents[2] / "data" / "sample_transactions.json"


def _load_rows(sample_path: Path) -> List[Dict[str, Any]]:
    with sample_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    if isinstance(payload, dict):
        rows = payload.get("sample_transactions", [])
    else:
        rows = payload

    if not isinstance(rows, list):
        raise ValueError("Sample file must contain a list of transactions")

    return [row for row in rows if isinstance(row, dict)]


def load_sample_transactions(
    store: TransactionStore,
    pipeline: RiskScoringPipeline,
    sample_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Score and persist the bundled sample transactions, returning ingestion metadata."""
    path = Path(sample_path or DEFAULT_SAMPLE_PATH)

    if not path.exists():
        raise FileNotFoundError(f"Sample transaction file not found at {path}")

    try:
        rows = _load_rows(path)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Sample file {path} is not valid JSON") from exc

    if not rows:
        raise ValueError("No transactions were found in the sample file")

    result = ingest_batch(rows, store, pipeline)
    LOGGER.info("Loaded sample dataset from %s: %s", path, result.summary)

    return {
        "transaction_count": result.summary.total_rows,
        "processed": result.summary.processed,
        "alerts_generated": result.summary.alerts_generated,
        "errors": [error.model_dump(by_alias=True) for error in result.errors],
        "source": str(path),
    }


__all__ = ["load_sample_transactions", "DEFAULT_SAMPLE_PATH"]
