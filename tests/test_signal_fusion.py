"""Tests for the signal fusion engine."""

from __future__ import annotations

from decimal import Decimal

import pytest

from core.config import FusionConfig
from core.errors import InvalidInput
from core.signals.fusion import BUY_BASE_REASON, HOLD_BASE_REASON, SignalFusionEngine
from core.types import Action, RiskSignals, RiskTier


# ============================================================================
# Classification
# ============================================================================


@pytest.mark.parametrize(
    "price, action, tier",
    [
        (70001, Action.SELL, RiskTier.HIGH),
        (49999, Action.BUY, RiskTier.MEDIUM),
        (60000, Action.HOLD, RiskTier.LOW),
        (70000, Action.HOLD, RiskTier.LOW),
        (50000, Action.HOLD, RiskTier.LOW),
    ],
)
def test_classification_boundaries(engine, price, action, tier):
    result = engine.classify(price)
    assert result.action is action
    assert result.risk_tier is tier


def test_classify_accepts_decimal_and_float(engine):
    assert engine.classify(Decimal("70000.01")).action is Action.SELL
    assert engine.classify(49999.99).action is Action.BUY


@pytest.mark.parametrize("bad", [0, -1, float("nan"), float("inf"), "60000", None, True])
def test_classify_rejects_non_positive_or_non_numeric(engine, bad):
    with pytest.raises(InvalidInput):
        engine.classify(bad)


def test_thresholds_are_configurable():
    engine = SignalFusionEngine(FusionConfig(low_threshold=Decimal("1"), high_threshold=Decimal("2")))
    assert engine.classify(Decimal("2.5")).action is Action.SELL
    assert engine.classify(Decimal("0.5")).action is Action.BUY
    assert engine.classify(Decimal("1.5")).action is Action.HOLD


def test_inverted_thresholds_rejected():
    with pytest.raises(ValueError):
        FusionConfig(low_threshold=Decimal("70000"), high_threshold=Decimal("50000"))


# ============================================================================
# Explanation
# ============================================================================


def test_sell_with_whale_activity_explanation(engine):
    rec = engine.recommend(75000, RiskSignals(whale_inflow=90, fud_level=20))

    assert rec.action is Action.SELL
    assert rec.explanation == "Price is in high-risk zone. High whale activity detected."


def test_all_reasons_in_append_order(engine):
    rec = engine.recommend(40000, RiskSignals(whale_inflow=81, fud_level=71))

    assert rec.reasons == (
        "Price is in attractive entry zone",
        "High whale activity detected",
        "Market FUD is unusually high",
    )
    assert rec.explanation == (
        "Price is in attractive entry zone. High whale activity detected. Market FUD is unusually high."
    )


def test_hold_with_fud_only(engine):
    rec = engine.recommend(60000, RiskSignals(fud_level=95))
    assert rec.explanation == "Market FUD is unusually high."


def test_hold_without_triggers_falls_back_to_base_reason(engine):
    rec = engine.recommend(60000, RiskSignals(whale_inflow=80, fud_level=70))

    assert rec.reasons == ()
    assert rec.explanation == HOLD_BASE_REASON


def test_out_of_range_signals_are_clamped(engine):
    rec = engine.recommend(60000, RiskSignals(whale_inflow=500, fud_level=-20))
    assert rec.reasons == ("High whale activity detected",)


def test_clamped_constructor():
    signals = RiskSignals.clamped(whale_inflow=150, network_stress=-5, sentiment_score=42, fud_level=100)
    assert signals == RiskSignals(whale_inflow=100, network_stress=0, sentiment_score=42, fud_level=100)


def test_recommendation_to_dict(engine):
    data = engine.recommend(45000).to_dict()

    assert data["action"] == "BUY"
    assert data["riskTier"] == "MEDIUM"
    assert data["explanation"] == "Price is in attractive entry zone."


def test_explain_directly_uses_base_reason(engine):
    reasons, explanation = engine.explain(Action.HOLD, RiskSignals(), BUY_BASE_REASON)
    assert reasons == ()
    assert explanation == BUY_BASE_REASON
