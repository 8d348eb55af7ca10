"""Threshold rules applied to every transaction before scoring."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional

from txmonitor.scoring.features import TransactionFeatures

LOGGER = logging.getLogger(__name__)

HIGH_VALUE_THRESHOLD = 10_000.0
STRUCTURING_LOWER_BOUND = 9_000.0
STRUCTURING_UPPER_BOUND = 10_000.0
GEO_VELOCITY_LIMIT_KMH = 500.0
MAX_FAILED_ATTEMPTS = 5

# (account_id, amount_lower_bound, amount_upper_bound, window_hours, as_of=None) -> count
HistoryLookup = Callable[..., int]


@dataclass(frozen=True)
class RuleFlags:
    """Boolean outcome of each rule for one transaction."""

    high_value: bool = False
    structuring: bool = False
    ip_mismatch: bool = False
    geo_velocity: bool = False
    multiple_failures: bool = False

    @property
    def any_triggered(self) -> bool:
        return any(asdict(self).values())

    def triggered(self) -> List[str]:
        return [name for name, value in asdict(self).items() if value]

    def as_dict(self) -> Dict[str, bool]:
        return asdict(self)


class RuleEvaluator:
    """Evaluate the fixed rule set against a transaction's features.

    Structuring detection needs to know how many similar transactions the
    account made recently, which is answered by ``history_lookup``. Without a
    lookup, or when the lookup fails, structuring is reported as not detected.
    """

    def __init__(
        self,
        history_lookup: Optional[HistoryLookup] = None,
        window_hours: int = 24,
        min_similar: int = 3,
    ) -> None:
        self._history_lookup = history_lookup
        self.window_hours = window_hours
        self.min_similar = min_similar

    def evaluate(self, features: TransactionFeatures) -> RuleFlags:
        return RuleFlags(
            high_value=features.amount > HIGH_VALUE_THRESHOLD,
            structuring=self._detect_structuring(features),
            ip_mismatch=bool(
                features.billing_country
                and features.ip_country
                and features.billing_country != features.ip_country
            ),
            geo_velocity=features.geo_velocity is not None and features.geo_velocity > GEO_VELOCITY_LIMIT_KMH,
            multiple_failures=features.failed_attempts > MAX_FAILED_ATTEMPTS,
        )

    def _detect_structuring(self, features: TransactionFeatures) -> bool:
        if not STRUCTURING_LOWER_BOUND <= features.amount < STRUCTURING_UPPER_BOUND:
            return False
        if self._history_lookup is None or not features.account_id:
            return False

        try:
            similar = self._history_lookup(
                features.account_id,
                STRUCTURING_LOWER_BOUND,
                STRUCTURING_UPPER_BOUND,
                self.window_hours,
                as_of=features.timestamp,
            )
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning(
                "History lookup unavailable for account %s, structuring check skipped: %s",
                features.account_id,
                exc,
            )
            return False

        LOGGER.debug(
            "Account %s has %d similar transactions in the last %dh",
            features.account_id,
            similar,
            self.window_hours,
        )
        return similar >= self.min_similar


def evaluate_rules(features: TransactionFeatures, history_lookup: Optional[HistoryLookup] = None) -> RuleFlags:
    """Evaluate rules once with a throwaway evaluator."""
    return RuleEvaluator(history_lookup=history_lookup).evaluate(features)


__all__ = ["RuleFlags", "RuleEvaluator", "HistoryLookup", "evaluate_rules"]
