"""Hybrid price service: fetch both feeds concurrently, then resolve.

Each feed runs in its own task with its own timeout, so a slow or failing
source never blocks the other.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from core.config import FeedSettings
from core.market_data.coingecko_client import CoinGeckoClient
from core.market_data.ftso import FtsoV2Client
from core.market_data.resolver import normalize_symbol, resolve, resolve_or_raise
from core.types import FeedResult, Quote, Unavailable

logger = logging.getLogger(__name__)


class PriceFeed(Protocol):
    async def fetch(self, symbol: str) -> FeedResult:
        """Fetch a raw quote; failures are returned as Unavailable."""

    async def aclose(self) -> None:
        """Release network resources."""


async def _guarded_fetch(feed: PriceFeed, name: str, symbol: str, timeout: float) -> FeedResult:
    try:
        return await asyncio.wait_for(feed.fetch(symbol), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"[{name}] Timed out after {timeout}s for {symbol}")
        return Unavailable("timeout")
    except Exception as e:  # noqa: BLE001 - isolate per-feed failures
        logger.warning(f"[{name}] Fetch failed for {symbol}: {e}")
        return Unavailable(f"{type(e).__name__}: {e}")


class PriceService:
    """Joins the primary and secondary feeds into canonical quotes."""

    def __init__(
        self,
        *,
        primary: Optional[PriceFeed] = None,
        secondary: Optional[PriceFeed] = None,
        settings: Optional[FeedSettings] = None,
    ) -> None:
        """Initialize the service.

        Args:
            primary: On-chain feed (defaults to FtsoV2Client)
            secondary: Market-data feed (defaults to CoinGeckoClient)
            settings: Feed settings (timeouts, endpoints)
        """
        self.settings = settings or FeedSettings()
        self.primary = primary or FtsoV2Client(self.settings)
        self.secondary = secondary or CoinGeckoClient(self.settings)

    async def fetch_both(self, symbol: str) -> tuple[FeedResult, FeedResult]:
        clean = normalize_symbol(symbol)
        primary, secondary = await asyncio.gather(
            _guarded_fetch(self.primary, "FTSOv2", clean, self.settings.ftso_timeout_seconds),
            _guarded_fetch(self.secondary, "CoinGecko", clean, self.settings.coingecko_timeout_seconds),
        )
        return primary, secondary

    async def get_quote(self, symbol: str) -> Quote:
        """Resolve a quote; returns an UNAVAILABLE quote when both feeds fail."""
        primary, secondary = await self.fetch_both(symbol)
        return resolve(symbol, primary, secondary)

    async def require_quote(self, symbol: str) -> Quote:
        """Resolve a quote, raising PriceUnavailable when both feeds fail."""
        primary, secondary = await self.fetch_both(symbol)
        return resolve_or_raise(symbol, primary, secondary)

    async def aclose(self) -> None:
        await asyncio.gather(self.primary.aclose(), self.secondary.aclose())
