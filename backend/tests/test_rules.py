from datetime import datetime, timezone

import pytest

from txmonitor.scoring.features import TransactionFeatures
from txmonitor.scoring.rules import RuleEvaluator, RuleFlags, evaluate_rules


@pytest.mark.parametrize(
    "amount, expected",
    [(10000, False), (10000.01, True), (9999.99, False), (250000, True)],
)
def test_high_value_threshold_is_strict(amount, expected):
    assert evaluate_rules(TransactionFeatures(amount=amount)).high_value is expected


@pytest.mark.parametrize(
    "geo_velocity, expected",
    [(None, False), (0, False), (500, False), (500.01, True), (600, True)],
)
def test_geo_velocity_threshold_is_strict(geo_velocity, expected):
    assert evaluate_rules(TransactionFeatures(geo_velocity=geo_velocity)).geo_velocity is expected


@pytest.mark.parametrize(
    "billing, ip, expected",
    [
        ("US", "FR", True),
        ("US", "US", False),
        (None, "FR", False),
        ("US", None, False),
        ("", "FR", False),
    ],
)
def test_ip_mismatch_requires_both_countries(billing, ip, expected):
    features = TransactionFeatures(billing_country=billing, ip_country=ip)
    assert evaluate_rules(features).ip_mismatch is expected


@pytest.mark.parametrize("failed_attempts, expected", [(0, False), (5, False), (6, True)])
def test_multiple_failures(failed_attempts, expected):
    assert evaluate_rules(TransactionFeatures(failed_attempts=failed_attempts)).multiple_failures is expected


def test_structuring_uses_history_lookup_in_band():
    calls = []

    def lookup(account_id, lower, upper, window_hours, as_of=None):
        calls.append((account_id, lower, upper, window_hours, as_of))
        return 3

    when = datetime(2024, 3, 1, 15, tzinfo=timezone.utc)
    evaluator = RuleEvaluator(history_lookup=lookup)
    flags = evaluator.evaluate(TransactionFeatures(amount=9500, account_id="ACC-1", timestamp=when))

    assert flags.structuring is True
    assert calls == [("ACC-1", 9000.0, 10000.0, 24, when)]


def test_structuring_below_minimum_similar_count():
    evaluator = RuleEvaluator(history_lookup=lambda *args, **kwargs: 2)
    flags = evaluator.evaluate(TransactionFeatures(amount=9500, account_id="ACC-1"))
    assert flags.structuring is False


@pytest.mark.parametrize("amount", [8999.99, 10000, 12000])
def test_structuring_outside_band_skips_lookup(amount):
    def lookup(*_args, **_kwargs):
        raise AssertionError("lookup should not be called outside the structuring band")

    flags = RuleEvaluator(history_lookup=lookup).evaluate(TransactionFeatures(amount=amount, account_id="ACC-1"))
    assert flags.structuring is False


def test_structuring_lower_bound_is_inclusive():
    evaluator = RuleEvaluator(history_lookup=lambda *args, **kwargs: 5)
    assert evaluator.evaluate(TransactionFeatures(amount=9000, account_id="ACC-1")).structuring is True


def test_structuring_fails_safe_when_lookup_unavailable(caplog):
    def lookup(*_args, **_kwargs):
        raise RuntimeError("store offline")

    evaluator = RuleEvaluator(history_lookup=lookup)
    with caplog.at_level("WARNING"):
        flags = evaluator.evaluate(TransactionFeatures(amount=9500, account_id="ACC-1"))

    assert flags.structuring is False
    assert "structuring check skipped" in caplog.text


def test_structuring_fails_safe_on_timeout():
    def lookup(*_args, **_kwargs):
        raise TimeoutError("slow query")

    flags = RuleEvaluator(history_lookup=lookup).evaluate(TransactionFeatures(amount=9500, account_id="ACC-1"))
    assert flags.structuring is False


def test_structuring_fails_safe_on_misconfigured_store():
    def lookup(*_args, **_kwargs):
        raise ValueError("Missing Neo4j configuration")

    flags = RuleEvaluator(history_lookup=lookup).evaluate(TransactionFeatures(amount=9500, account_id="ACC-1"))
    assert flags.structuring is False


def test_structuring_without_lookup_is_not_detected():
    assert evaluate_rules(TransactionFeatures(amount=9500, account_id="ACC-1")).structuring is False


def test_rules_are_independent():
    features = TransactionFeatures(
        amount=20000,
        geo_velocity=800,
        billing_country="US",
        ip_country="NG",
        failed_attempts=9,
    )
    flags = evaluate_rules(features)
    assert flags.triggered() == ["high_value", "ip_mismatch", "geo_velocity", "multiple_failures"]
    assert flags.any_triggered


def test_no_flags_by_default():
    flags = evaluate_rules(TransactionFeatures())
    assert flags == RuleFlags()
    assert not flags.any_triggered
