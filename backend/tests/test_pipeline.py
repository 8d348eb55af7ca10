import pytest

from txmonitor.scoring.alerting import synthesize_alert
from txmonitor.scoring.disposition import resolve_disposition
from txmonitor.scoring.features import TransactionFeatures
from txmonitor.scoring.pipeline import RiskScoringPipeline
from txmonitor.scoring.rules import RuleEvaluator, RuleFlags
from txmonitor.scoring.scorer import ScoreResult


def _score(value, level):
    return ScoreResult(score=value, risk_level=level, confidence=0.8, attribution={})


def _features(**overrides):
    values = dict(
        amount=200.0,
        transaction_velocity=1,
        time_of_day=14,
        failed_attempts=0,
        phone_verified=True,
        social_profile_presence=True,
    )
    values.update(overrides)
    return TransactionFeatures(**values)


@pytest.mark.parametrize(
    "level, status",
    [("HIGH", "BLOCKED"), ("MEDIUM", "CHALLENGED"), ("LOW", "PROCESSED")],
)
def test_disposition_follows_risk_level(level, status):
    disposition = resolve_disposition(_score(0.5, level), RuleFlags())
    assert disposition.status == status
    assert disposition.alert_required is (status != "PROCESSED")


@pytest.mark.parametrize("level", ["HIGH", "MEDIUM", "LOW"])
def test_any_flag_forces_flagged(level):
    disposition = resolve_disposition(_score(0.2, level), RuleFlags(ip_mismatch=True))
    assert disposition.status == "FLAGGED"
    assert disposition.alert_required is True


def test_scenario_a_high_value_transaction():
    assessment = RiskScoringPipeline().assess(_features(amount=15000, transaction_velocity=0))

    assert assessment.flags == RuleFlags(high_value=True)
    assert assessment.score.score == pytest.approx(0.7)
    assert assessment.score.risk_level == "MEDIUM"
    assert assessment.disposition.status == "FLAGGED"
    assert assessment.disposition.alert_required is True
    assert assessment.alert.priority == "MEDIUM"
    assert assessment.alert.alert_type == "RULE_BASED"
    assert assessment.alert.description == "High-value transaction: $15,000.00"


def test_scenario_b_clean_transaction():
    assessment = RiskScoringPipeline().assess(_features())

    assert not assessment.flags.any_triggered
    assert assessment.score.score == pytest.approx(0.1)
    assert assessment.score.risk_level == "LOW"
    assert assessment.disposition.status == "PROCESSED"
    assert assessment.disposition.alert_required is False
    assert assessment.alert is None


def test_scenario_c_impossible_travel():
    assessment = RiskScoringPipeline().assess(_features(geo_velocity=600))

    assert assessment.flags.geo_velocity is True
    assert assessment.score.score == pytest.approx(0.95)
    assert assessment.score.risk_level == "HIGH"
    assert assessment.disposition.status == "FLAGGED"
    assert assessment.alert.priority == "HIGH"
    assert assessment.alert.description == "Impossible travel pattern detected"


def test_structuring_takes_description_precedence():
    evaluator = RuleEvaluator(history_lookup=lambda *args, **kwargs: 4)
    features = _features(amount=9900, geo_velocity=700, account_id="ACC-9")
    assessment = RiskScoringPipeline(evaluator).assess(features)

    assert assessment.flags.structuring and assessment.flags.geo_velocity
    assert assessment.alert.description == "Potential structuring pattern detected"
    assert assessment.alert.priority == "HIGH"


def test_ml_based_alert_without_rule_flags():
    # Velocity, off-hours and an unverified phone push the score to MEDIUM without any rule firing.
    features = _features(transaction_velocity=25, time_of_day=3, phone_verified=False)
    assessment = RiskScoringPipeline().assess(features)

    assert not assessment.flags.any_triggered
    assert assessment.score.score == pytest.approx(0.8)
    assert assessment.disposition.status == "CHALLENGED"
    assert assessment.alert.alert_type == "ML_BASED"
    assert assessment.alert.priority == "MEDIUM"
    assert assessment.alert.description == "Medium-risk transaction flagged for review"


def test_high_score_without_rule_flags_is_blocked():
    features = _features(
        transaction_velocity=25,
        time_of_day=3,
        failed_attempts=3,
        phone_verified=False,
        social_profile_presence=False,
    )
    assessment = RiskScoringPipeline().assess(features)

    assert not assessment.flags.any_triggered
    assert assessment.score.score == pytest.approx(1.0)
    assert assessment.disposition.status == "BLOCKED"
    assert assessment.alert.priority == "HIGH"
    assert assessment.alert.description == "High-risk transaction flagged for review"


def test_boundary_scores_keep_their_disposition():
    low = RiskScoringPipeline().assess(_features(failed_attempts=4, time_of_day=3, phone_verified=False))
    assert low.score.score == 0.5
    assert low.disposition.status == "PROCESSED"
    assert low.alert is None

    medium = RiskScoringPipeline().assess(
        _features(transaction_velocity=21, failed_attempts=3, phone_verified=False, social_profile_presence=False)
    )
    assert medium.score.score == 0.9
    assert medium.disposition.status == "CHALLENGED"


def test_ip_mismatch_alert_is_ml_based_with_fallback_description():
    features = _features(billing_country="US", ip_country="FR")
    assessment = RiskScoringPipeline().assess(features)

    assert assessment.score.score == pytest.approx(0.6)
    assert assessment.alert.alert_type == "ML_BASED"
    assert assessment.alert.priority == "LOW"
    assert assessment.alert.description == "Transaction flagged for review"


def test_medium_priority_fallback_description():
    alert = synthesize_alert(_features(), RuleFlags(multiple_failures=True), _score(0.8, "MEDIUM"))
    assert alert.priority == "MEDIUM"
    assert alert.description == "Medium-risk transaction flagged for review"


def test_alert_details_snapshot():
    flags = RuleFlags(high_value=True)
    score = ScoreResult(score=0.7, risk_level="MEDIUM", confidence=0.875, attribution={"amount": 0.3})
    alert = synthesize_alert(_features(amount=15000), flags, score)

    assert alert.status == "ACTIVE"
    assert alert.details == {
        "score": 0.7,
        "risk_level": "MEDIUM",
        "confidence": 0.875,
        "flags": flags.as_dict(),
        "attribution": {"amount": 0.3},
    }


def test_pipeline_is_deterministic():
    pipeline = RiskScoringPipeline()
    features = _features(amount=42_000, geo_velocity=450, failed_attempts=3, time_of_day=1)
    assert pipeline.assess(features) == pipeline.assess(features)
