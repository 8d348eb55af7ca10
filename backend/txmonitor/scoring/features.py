"""Normalized feature set consumed by the risk scoring pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class TransactionFeatures:
    """Immutable inputs for a single scoring invocation.

    ``account_id`` and ``timestamp`` are context for the structuring history
    lookup; they do not feed the score directly.
    """

    amount: float = 0.0
    transaction_velocity: int = 0
    time_of_day: int = 12
    geo_velocity: Optional[float] = None
    billing_country: Optional[str] = None
    ip_country: Optional[str] = None
    failed_attempts: int = 0
    phone_verified: bool = False
    social_profile_presence: bool = False
    account_id: Optional[str] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TransactionFeatures":
        """Build features from a validated transaction payload.

        Missing optional fields fall back to non-triggering values and an
        absent ``time_of_day`` is taken from the timestamp hour.
        """
        timestamp = data.get("timestamp")
        time_of_day = data.get("time_of_day")
        if time_of_day is None:
            time_of_day = timestamp.hour if isinstance(timestamp, datetime) else 12

        geo_velocity = data.get("geo_velocity")

        return cls(
            amount=float(data.get("amount") or 0.0),
            transaction_velocity=int(data.get("transaction_velocity") or 0),
            time_of_day=int(time_of_day),
            geo_velocity=float(geo_velocity) if geo_velocity is not None else None,
            billing_country=data.get("billing_country") or None,
            ip_country=data.get("ip_country") or None,
            failed_attempts=int(data.get("failed_attempts") or 0),
            phone_verified=bool(data.get("phone_verified") or False),
            social_profile_presence=bool(data.get("social_profile_presence") or False),
            account_id=data.get("account_id"),
            timestamp=timestamp if isinstance(timestamp, datetime) else None,
        )


__all__ = ["TransactionFeatures"]
