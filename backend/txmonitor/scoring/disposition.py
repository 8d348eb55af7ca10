"""Map a score and rule flags to a processing status."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from txmonitor.scoring.rules import RuleFlags
from txmonitor.scoring.scorer import ScoreResult

TransactionStatus = Literal["PROCESSED", "FLAGGED", "BLOCKED", "CHALLENGED"]

_STATUS_BY_RISK = {
    "HIGH": "BLOCKED",
    "MEDIUM": "CHALLENGED",
    "LOW": "PROCESSED",
}


@dataclass(frozen=True)
class Disposition:
    status: TransactionStatus
    alert_required: bool


def resolve_disposition(score: ScoreResult, flags: RuleFlags) -> Disposition:
    """Any triggered rule forces FLAGGED, whatever the score-derived status."""
    status = _STATUS_BY_RISK[score.risk_level]
    if flags.any_triggered:
        status = "FLAGGED"
    return Disposition(status=status, alert_required=status != "PROCESSED")


__all__ = ["Disposition", "TransactionStatus", "resolve_disposition"]
