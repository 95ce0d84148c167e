"""Signal fusion: price classification plus rule-based explanation.

Usage:
    from core.signals.fusion import SignalFusionEngine

    engine = SignalFusionEngine()
    rec = engine.recommend(75000, RiskSignals(whale_inflow=90))
    print(rec.action, rec.explanation)
    # Action.SELL  Price is in high-risk zone. High whale activity detected.

The reason order is part of the contract: action reason first, then whale
activity, then FUD.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from core.config import FusionConfig
from core.errors import InvalidInput
from core.types import Action, Classification, Recommendation, RiskSignals, RiskTier

SELL_BASE_REASON = "Price is extremely high. Profit-taking recommended."
BUY_BASE_REASON = "Price is below average range. Could be a good entry point."
HOLD_BASE_REASON = "Price is stable. Market not showing strong movement."

REASON_HIGH_RISK_ZONE = "Price is in high-risk zone"
REASON_ENTRY_ZONE = "Price is in attractive entry zone"
REASON_WHALE_ACTIVITY = "High whale activity detected"
REASON_HIGH_FUD = "Market FUD is unusually high"


def to_positive_price(price: Any) -> Decimal:
    """Coerce a numeric price to Decimal.

    Raises:
        InvalidInput: If price is not a finite number greater than zero
    """
    if isinstance(price, bool) or not isinstance(price, (int, float, Decimal)):
        raise InvalidInput(f"Price must be a number, got {type(price).__name__}")
    if isinstance(price, float) and not math.isfinite(price):
        raise InvalidInput(f"Price must be finite, got {price}")
    try:
        value = Decimal(str(price))
    except InvalidOperation as exc:
        raise InvalidInput(f"Price is not a valid number: {price!r}") from exc
    if not value.is_finite() or value <= 0:
        raise InvalidInput(f"Price must be positive, got {price}")
    return value


class SignalFusionEngine:
    """Combines a price with auxiliary risk signals into a recommendation.

    Stateless apart from its (immutable) config; safe to share across threads.
    """

    def __init__(self, config: Optional[FusionConfig] = None) -> None:
        self.config = config or FusionConfig()

    def classify(self, price: Any) -> Classification:
        """Classify a price against the configured thresholds.

        Args:
            price: Current price (int, float or Decimal)

        Returns:
            Classification with action, risk tier and base reason

        Raises:
            InvalidInput: If price is not a positive number
        """
        value = to_positive_price(price)
        if value > self.config.high_threshold:
            return Classification(Action.SELL, RiskTier.HIGH, SELL_BASE_REASON)
        if value < self.config.low_threshold:
            return Classification(Action.BUY, RiskTier.MEDIUM, BUY_BASE_REASON)
        return Classification(Action.HOLD, RiskTier.LOW, HOLD_BASE_REASON)

    def explain(
        self, action: Action, signals: RiskSignals, base_reason: str
    ) -> tuple[tuple[str, ...], str]:
        """Assemble ordered reasons and the explanation sentence.

        Returns:
            (reasons, explanation); explanation falls back to `base_reason`
            when no rule fired
        """
        reasons: list[str] = []
        if action is Action.SELL:
            reasons.append(REASON_HIGH_RISK_ZONE)
        if action is Action.BUY:
            reasons.append(REASON_ENTRY_ZONE)
        if signals.whale_inflow > self.config.whale_inflow_alert:
            reasons.append(REASON_WHALE_ACTIVITY)
        if signals.fud_level > self.config.fud_alert:
            reasons.append(REASON_HIGH_FUD)

        if reasons:
            return tuple(reasons), ". ".join(reasons) + "."
        return (), base_reason

    def recommend(self, price: Any, signals: Optional[RiskSignals] = None) -> Recommendation:
        """Classify the price and explain it in light of the risk signals.

        Out-of-range signal values are clamped into 0-100 first.
        """
        signals = signals or RiskSignals()
        signals = RiskSignals.clamped(
            whale_inflow=signals.whale_inflow,
            network_stress=signals.network_stress,
            sentiment_score=signals.sentiment_score,
            fud_level=signals.fud_level,
        )
        classification = self.classify(price)
        reasons, explanation = self.explain(classification.action, signals, classification.reason)
        return Recommendation(
            action=classification.action,
            risk_tier=classification.risk_tier,
            reasons=reasons,
            explanation=explanation,
            base_reason=classification.reason,
        )
