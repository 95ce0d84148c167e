from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Optional, Union

from core.errors import InvalidInput

TradeSide = Literal["BUY", "SELL"]

RISK_SIGNAL_MIN = 0
RISK_SIGNAL_MAX = 100


class QuoteSource(str, Enum):
    """Where a canonical quote came from."""

    PRIMARY = "FTSOv2 (On-chain)"
    SECONDARY = "CoinGecko"
    UNAVAILABLE = "Unknown"


class Action(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class RiskTier(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class FeedQuote:
    """Raw payload from a single feed.

    `timestamp` is None for feeds that do not report when the price was observed.
    """

    price: Decimal
    timestamp: Optional[datetime] = None
    volume_24h: Optional[Decimal] = None
    change_24h: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if not self.price.is_finite() or self.price <= 0:
            raise InvalidInput(f"Feed price must be positive, got {self.price}")


@dataclass(frozen=True)
class Available:
    quote: FeedQuote


@dataclass(frozen=True)
class Unavailable:
    reason: str = "unavailable"


FeedResult = Union[Available, Unavailable]


@dataclass(frozen=True)
class Quote:
    """Canonical price observation for one symbol.

    Timestamps are timezone-aware (UTC).
    """

    symbol: str
    price: Optional[Decimal]
    timestamp: Optional[datetime]
    source: QuoteSource
    volume_24h: Optional[Decimal] = None
    change_24h: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if self.source is not QuoteSource.UNAVAILABLE:
            if self.price is None or self.price <= 0:
                raise InvalidInput(f"Quote from {self.source.value} must have a positive price, got {self.price}")

    @property
    def available(self) -> bool:
        return self.source is not QuoteSource.UNAVAILABLE

    def to_dict(self) -> dict[str, Any]:
        """JSON shape returned by the API (timestamp in epoch milliseconds, like TradeRecord)."""
        return {
            "symbol": self.symbol,
            "price": float(self.price) if self.price is not None else None,
            "volume24h": float(self.volume_24h) if self.volume_24h is not None else None,
            "change24h": float(self.change_24h) if self.change_24h is not None else None,
            "timestamp": int(self.timestamp.timestamp() * 1000) if self.timestamp is not None else None,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class RiskSignals:
    """Auxiliary risk indicators, each on a 0-100 scale."""

    whale_inflow: int = 0
    network_stress: int = 0
    sentiment_score: int = 0
    fud_level: int = 0

    @classmethod
    def clamped(
        cls,
        *,
        whale_inflow: int = 0,
        network_stress: int = 0,
        sentiment_score: int = 0,
        fud_level: int = 0,
    ) -> "RiskSignals":
        """Build signals with every field clamped into 0-100."""
        return cls(
            whale_inflow=_clamp(whale_inflow),
            network_stress=_clamp(network_stress),
            sentiment_score=_clamp(sentiment_score),
            fud_level=_clamp(fud_level),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "whaleInflow": self.whale_inflow,
            "networkStress": self.network_stress,
            "sentimentScore": self.sentiment_score,
            "fudLevel": self.fud_level,
        }


def _clamp(value: int) -> int:
    return max(RISK_SIGNAL_MIN, min(RISK_SIGNAL_MAX, int(value)))


@dataclass(frozen=True)
class Classification:
    action: Action
    risk_tier: RiskTier
    reason: str


@dataclass(frozen=True)
class Recommendation:
    action: Action
    risk_tier: RiskTier
    reasons: tuple[str, ...]
    explanation: str
    base_reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "riskTier": self.risk_tier.value,
            "explanation": self.explanation,
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class TradeRecord:
    """Immutable simulated trade.

    `value_usd` is fixed at submission time and never recomputed.
    """

    id: int
    symbol: str
    side: TradeSide
    quantity: Decimal
    price: Decimal
    value_usd: Decimal
    timestamp: datetime

    @property
    def signed_quantity(self) -> Decimal:
        return self.quantity if self.side == "BUY" else -self.quantity

    def to_dict(self) -> dict[str, Any]:
        """JSON shape returned by the API (timestamp in epoch milliseconds)."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "side": self.side,
            "quantity": float(self.quantity),
            "price": float(self.price),
            "valueUSD": float(self.value_usd),
            "timestamp": int(self.timestamp.timestamp() * 1000),
        }
