"""CoinGecko market-data feed (secondary source).

Uses the free tier `/simple/price` endpoint (no API key required) for the USD
price plus 24h volume and 24h change. Default timeout is 1.5 s; a slow
response is reported as unavailable.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import httpx

from core.config import FeedSettings
from core.errors import InvalidInput
from core.types import Available, FeedQuote, FeedResult, Unavailable

logger = logging.getLogger(__name__)

COINGECKO_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "XRP": "ripple",
    "SOL": "solana",
    "FLR": "flare-networks",
    "SGB": "songbird",
    "DOGE": "dogecoin",
}


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


class CoinGeckoClient:
    """Async client for CoinGecko simple price lookups."""

    def __init__(
        self,
        settings: Optional[FeedSettings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or FeedSettings()
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.coingecko_timeout_seconds),
                headers={"Accept": "application/json", "User-Agent": "flare-signal-desk/1.0"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CoinGeckoClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def fetch(self, symbol: str) -> FeedResult:
        """Fetch USD price, 24h volume and 24h change for a symbol.

        Args:
            symbol: Asset symbol (e.g. "BTC")

        Returns:
            Available (no timestamp; CoinGecko does not report one) or Unavailable
        """
        clean = symbol.strip().upper()
        coin_id = COINGECKO_IDS.get(clean)
        if coin_id is None:
            return Unavailable(f"no CoinGecko id for {clean}")

        url = f"{self.settings.coingecko_base_url}/simple/price"
        params = {
            "ids": coin_id,
            "vs_currencies": "usd",
            "include_24hr_vol": "true",
            "include_24hr_change": "true",
        }

        try:
            client = await self._get_client()
            response = await client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"[CoinGecko] Timeout fetching {clean}: {e}")
            return Unavailable("timeout")
        except httpx.HTTPError as e:
            logger.warning(f"[CoinGecko] Fetch failed for {clean}: {e}")
            return Unavailable(f"transport error: {e}")
        except ValueError as e:
            logger.warning(f"[CoinGecko] Invalid JSON for {clean}: {e}")
            return Unavailable("bad response")

        entry = data.get(coin_id) if isinstance(data, dict) else None
        if not isinstance(entry, dict):
            logger.warning(f"[CoinGecko] No data for {coin_id}")
            return Unavailable(f"no data for {coin_id}")

        price = _optional_decimal(entry.get("usd"))
        if price is None:
            return Unavailable("missing usd price")

        try:
            quote = FeedQuote(
                price=price,
                volume_24h=_optional_decimal(entry.get("usd_24h_vol")),
                change_24h=_optional_decimal(entry.get("usd_24h_change")),
            )
        except InvalidInput as e:
            logger.warning(f"[CoinGecko] Rejected quote for {clean}: {e}")
            return Unavailable(str(e))

        return Available(quote)
