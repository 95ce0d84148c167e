"""Shared test fixtures for pytest.

Provides feed payloads, fixed clocks and fresh ledgers used across test files.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.config import FusionConfig
from core.execution.ledger import TradeLedger
from core.signals.fusion import SignalFusionEngine
from core.types import Available, FeedQuote, FeedResult, Unavailable

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def ledger() -> TradeLedger:
    """Fresh ledger with a fixed clock."""
    return TradeLedger(clock=lambda: FIXED_NOW)


@pytest.fixture
def engine() -> SignalFusionEngine:
    """Fusion engine with the default 50000 / 70000 thresholds."""
    return SignalFusionEngine(FusionConfig(low_threshold=Decimal("50000"), high_threshold=Decimal("70000")))


@pytest.fixture
def primary_btc() -> Available:
    """On-chain BTC quote observed at 2024-01-01 11:59:58 UTC."""
    return Available(
        FeedQuote(
            price=Decimal("65432.10"),
            timestamp=datetime(2024, 1, 1, 11, 59, 58, tzinfo=timezone.utc),
        )
    )


@pytest.fixture
def secondary_btc() -> Available:
    """CoinGecko BTC quote with auxiliary 24h fields."""
    return Available(
        FeedQuote(
            price=Decimal("65400"),
            volume_24h=Decimal("31000000000"),
            change_24h=Decimal("-1.25"),
        )
    )


class FakeFeed:
    """In-memory PriceFeed for service and API tests."""

    def __init__(self, result: FeedResult = Unavailable("down"), *, delay: float = 0.0, error: Exception | None = None):
        self.result = result
        self.delay = delay
        self.error = error
        self.calls: list[str] = []
        self.closed = False

    async def fetch(self, symbol: str) -> FeedResult:
        self.calls.append(symbol)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_feed() -> type[FakeFeed]:
    """Factory for in-memory feeds: `fake_feed(result, delay=..., error=...)`."""
    return FakeFeed
