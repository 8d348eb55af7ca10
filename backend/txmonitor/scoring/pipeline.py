"""Risk scoring pipeline: rules, score, disposition and optional alert."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from txmonitor.scoring.alerting import AlertDraft, synthesize_alert
from txmonitor.scoring.disposition import Disposition, resolve_disposition
from txmonitor.scoring.features import TransactionFeatures
from txmonitor.scoring.rules import RuleEvaluator, RuleFlags
from txmonitor.scoring.scorer import ScoreResult, score_transaction

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Assessment:
    flags: RuleFlags
    score: ScoreResult
    disposition: Disposition
    alert: Optional[AlertDraft] = None


class RiskScoringPipeline:
    """Run a transaction through every scoring stage.

    The pipeline holds no per-transaction state, so one instance can serve
    concurrent requests.
    """

    def __init__(self, evaluator: Optional[RuleEvaluator] = None) -> None:
        self.evaluator = evaluator or RuleEvaluator()

    def assess(self, features: TransactionFeatures) -> Assessment:
        flags = self.evaluator.evaluate(features)
        score = score_transaction(features, flags)
        disposition = resolve_disposition(score, flags)
        alert = synthesize_alert(features, flags, score) if disposition.alert_required else None

        LOGGER.debug(
            "Assessed transaction for account %s: score=%.4f risk=%s status=%s flags=%s",
            features.account_id,
            score.score,
            score.risk_level,
            disposition.status,
            ",".join(flags.triggered()) or "-",
        )
        return Assessment(flags=flags, score=score, disposition=disposition, alert=alert)


__all__ = ["Assessment", "RiskScoringPipeline"]
