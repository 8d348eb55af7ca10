"""Build alert payloads for transactions that need review."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal

from txmonitor.scoring.features import TransactionFeatures
from txmonitor.scoring.rules import RuleFlags
from txmonitor.scoring.scorer import ScoreResult

AlertType = Literal["RULE_BASED", "ML_BASED"]
AlertPriority = Literal["HIGH", "MEDIUM", "LOW"]

_FALLBACK_DESCRIPTIONS = {
    "HIGH": "High-risk transaction flagged for review",
    "MEDIUM": "Medium-risk transaction flagged for review",
    "LOW": "Transaction flagged for review",
}


@dataclass(frozen=True)
class AlertDraft:
    """Alert content before it is attached to a stored transaction."""

    alert_type: AlertType
    priority: AlertPriority
    description: str
    details: Dict[str, Any] = field(default_factory=dict)
    status: str = "ACTIVE"


def alert_priority(score: ScoreResult, flags: RuleFlags) -> AlertPriority:
    if score.score > 0.9 or flags.geo_velocity or flags.structuring:
        return "HIGH"
    if score.score > 0.7 or flags.high_value:
        return "MEDIUM"
    return "LOW"


def alert_description(features: TransactionFeatures, flags: RuleFlags, priority: AlertPriority) -> str:
    if flags.structuring:
        return "Potential structuring pattern detected"
    if flags.geo_velocity:
        return "Impossible travel pattern detected"
    if flags.high_value:
        return f"High-value transaction: ${features.amount:,.2f}"
    return _FALLBACK_DESCRIPTIONS[priority]


def synthesize_alert(features: TransactionFeatures, flags: RuleFlags, score: ScoreResult) -> AlertDraft:
    rule_based = flags.high_value or flags.structuring or flags.geo_velocity
    priority = alert_priority(score, flags)

    return AlertDraft(
        alert_type="RULE_BASED" if rule_based else "ML_BASED",
        priority=priority,
        description=alert_description(features, flags, priority),
        details={
            "score": score.score,
            "risk_level": score.risk_level,
            "confidence": score.confidence,
            "flags": flags.as_dict(),
            "attribution": dict(score.attribution),
        },
    )


__all__ = ["AlertDraft", "AlertType", "AlertPriority", "alert_priority", "alert_description", "synthesize_alert"]
