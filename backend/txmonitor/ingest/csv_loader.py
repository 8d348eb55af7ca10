"""Parse uploaded CSV files into raw transaction rows."""

from __future__ import annotations

import csv
import logging
from io import StringIO
from typing import Dict, List

LOGGER = logging.getLogger(__name__)

# Each required column may use either the camelCase or the snake_case header.
REQUIRED_COLUMNS = {
    "transactionId": "transaction_id",
    "accountId": "account_id",
    "amount": "amount",
    "timestamp": "timestamp",
}


def _missing_columns(fieldnames: List[str]) -> List[str]:
    present = {name.strip() for name in fieldnames if name}
    return [camel for camel, snake in REQUIRED_COLUMNS.items() if camel not in present and snake not in present]


def parse_transactions_csv(content: bytes, encoding: str = "utf-8") -> List[Dict[str, str]]:
    """Return one dict per data row with blank cells removed.

    Raises ``ValueError`` when the payload cannot be decoded or lacks a
    header with the required columns.
    """
    try:
        text = content.decode(encoding).lstrip("\ufeff")
    except UnicodeDecodeError as exc:
        raise ValueError(f"CSV file must be {encoding} encoded") from exc

    reader = csv.DictReader(StringIO(text))
    if reader.fieldnames is None:
        raise ValueError("CSV must include a header row")

    missing = _missing_columns(reader.fieldnames)
    if missing:
        raise ValueError("CSV is missing required columns: " + ", ".join(missing))

    rows: List[Dict[str, str]] = []
    for row in reader:
        cleaned = {
            key.strip(): value.strip()
            for key, value in row.items()
            if key and isinstance(value, str) and value.strip()
        }
        if not cleaned:
            continue
        rows.append(cleaned)

    LOGGER.info("Parsed %d rows from CSV upload", len(rows))
    return rows


def is_csv_upload(filename: str | None, content_type: str | None) -> bool:
    if filename and filename.lower().endswith(".csv"):
        return True
    return content_type in {"text/csv", "application/csv"}


__all__ = ["parse_transactions_csv", "is_csv_upload", "REQUIRED_COLUMNS"]
