"""Deterministic fraud score derived from rule flags and raw features."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal

from txmonitor.scoring.features import TransactionFeatures
from txmonitor.scoring.rules import RuleFlags

RiskLevel = Literal["LOW", "MEDIUM", "HIGH"]

BASE_SCORE = 0.1
# Adjustments are summed in binary floating point; rounding to this many
# places keeps exact decimal sums such as 0.5 and 0.9 on their band boundary.
SCORE_PRECISION = 10
HIGH_RISK_THRESHOLD = 0.9
MEDIUM_RISK_THRESHOLD = 0.5

# Minimum score enforced by each triggered rule.
FLAG_FLOORS: Dict[str, float] = {
    "high_value": 0.7,
    "structuring": 0.9,
    "geo_velocity": 0.95,
    "ip_mismatch": 0.6,
    "multiple_failures": 0.75,
}


@dataclass(frozen=True)
class ScoreResult:
    score: float
    risk_level: RiskLevel
    confidence: float
    attribution: Dict[str, float] = field(default_factory=dict)


def risk_level_for(score: float) -> RiskLevel:
    """Map a score to its risk band. Both thresholds are strict."""
    if score > HIGH_RISK_THRESHOLD:
        return "HIGH"
    if score > MEDIUM_RISK_THRESHOLD:
        return "MEDIUM"
    return "LOW"


def confidence_for(score: float) -> float:
    return min(0.95, 0.7 + score * 0.25)


def _is_off_hours(hour: int) -> bool:
    return hour < 6 or hour > 22


def _raw_score(features: TransactionFeatures, flags: RuleFlags) -> float:
    score = BASE_SCORE
    triggered = flags.as_dict()
    for name, floor in FLAG_FLOORS.items():
        if triggered[name]:
            score = max(score, floor)

    if features.amount > 50_000:
        score += 0.15
    if features.amount > 100_000:
        score += 0.2

    if features.transaction_velocity > 10:
        score += 0.2
    if features.transaction_velocity > 20:
        score += 0.3

    if _is_off_hours(features.time_of_day):
        score += 0.1

    score += 0.05 * max(features.failed_attempts, 0)

    if not features.phone_verified:
        score += 0.1
    if not features.social_profile_presence:
        score += 0.05

    return score


def attribution_for(features: TransactionFeatures, flags: RuleFlags) -> Dict[str, float]:
    """Descriptive per-factor weights shown next to a score.

    Each factor has its own lookup table; the values are not a decomposition
    of the score and do not sum to it.
    """
    if features.amount > 10_000:
        amount = 0.3
    elif features.amount < 100:
        amount = -0.2
    else:
        amount = -0.1

    if features.transaction_velocity > 10:
        velocity = 0.6
    elif features.transaction_velocity > 5:
        velocity = 0.3
    else:
        velocity = 0.0

    time = 0.2 if _is_off_hours(features.time_of_day) else -0.05

    if flags.geo_velocity:
        geo = 0.8
    elif features.geo_velocity is not None and features.geo_velocity > 100:
        geo = 0.3
    else:
        geo = 0.0

    device = 0.1 * features.failed_attempts if features.failed_attempts > 0 else 0.0

    if not features.phone_verified:
        identity = 0.15
    elif not features.social_profile_presence:
        identity = 0.05
    else:
        identity = -0.05

    return {
        "amount": amount,
        "velocity": velocity,
        "time": time,
        "geo": geo,
        "device": device,
        "identity": identity,
    }


def score_transaction(features: TransactionFeatures, flags: RuleFlags) -> ScoreResult:
    score = round(min(max(_raw_score(features, flags), 0.0), 1.0), SCORE_PRECISION)
    return ScoreResult(
        score=score,
        risk_level=risk_level_for(score),
        confidence=confidence_for(score),
        attribution=attribution_for(features, flags),
    )


__all__ = [
    "RiskLevel",
    "ScoreResult",
    "FLAG_FLOORS",
    "risk_level_for",
    "confidence_for",
    "attribution_for",
    "score_transaction",
]
