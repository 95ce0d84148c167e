"""Flare FTSOv2 on-chain price feed (primary source).

Reads block-latency feeds through a plain JSON-RPC `eth_call` against the
FTSOv2 contract:

    function getFeedById(bytes21 _feedId)
        view returns (uint256 _value, int8 _decimals, uint64 _timestamp)

Every failure (unknown symbol, timeout, RPC error, malformed payload) is
returned as `Unavailable` rather than raised, so the resolver can fall back to
the secondary feed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import httpx

from core.config import FeedSettings
from core.errors import InvalidInput
from core.types import Available, FeedQuote, FeedResult, Unavailable

logger = logging.getLogger(__name__)

# keccak256("getFeedById(bytes21)")[:4]
GET_FEED_BY_ID_SELECTOR = "0x93e9f806"

# Block-latency feed ids (category 0x01 + ASCII "<SYMBOL>/USD", zero padded to 21 bytes)
FEED_IDS: dict[str, str] = {
    "FLR": "0x01464c522f55534400000000000000000000000000",
    "BTC": "0x014254432f55534400000000000000000000000000",
    "ETH": "0x014554482f55534400000000000000000000000000",
    "XRP": "0x015852502f55534400000000000000000000000000",
    "SOL": "0x01534f4c2f55534400000000000000000000000000",
    "SGB": "0x015347422f55534400000000000000000000000000",
    "DOGE": "0x01444f47452f555344000000000000000000000000",
}

_WORD_HEX = 64


def encode_get_feed_by_id(feed_id: str) -> str:
    """ABI-encode calldata for getFeedById(bytes21)."""
    raw = feed_id[2:] if feed_id.startswith("0x") else feed_id
    if len(raw) != 42:
        raise ValueError(f"Feed id must be 21 bytes, got {len(raw) // 2}")
    return GET_FEED_BY_ID_SELECTOR + raw.lower().ljust(_WORD_HEX, "0")


def decode_feed_result(data: str) -> tuple[int, int, int]:
    """Decode (uint256 value, int8 decimals, uint64 timestamp) from eth_call output."""
    raw = data[2:] if data.startswith("0x") else data
    if len(raw) < 3 * _WORD_HEX:
        raise ValueError(f"Short eth_call result ({len(raw) // 2} bytes)")

    words = [int(raw[i * _WORD_HEX : (i + 1) * _WORD_HEX], 16) for i in range(3)]
    value, decimals, timestamp = words
    # int8 is sign-extended to a full word
    if decimals >= 1 << 255:
        decimals -= 1 << 256
    return value, decimals, timestamp


class FtsoV2Client:
    """Async JSON-RPC client for FTSOv2 feeds."""

    def __init__(
        self,
        settings: Optional[FeedSettings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Feed endpoints and timeouts (defaults to Coston2)
            client: Optional pre-built httpx client (used by tests)
        """
        self.settings = settings or FeedSettings()
        self._client = client
        self._owns_client = client is None
        self._request_id = 0

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.ftso_timeout_seconds),
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FtsoV2Client":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def _eth_call(self, calldata: str) -> str:
        self._request_id += 1
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": "eth_call",
            "params": [{"to": self.settings.ftso_address, "data": calldata}, "latest"],
        }
        client = await self._get_client()
        resp = await client.post(self.settings.rpc_url, json=payload)
        resp.raise_for_status()
        body = resp.json()
        if body.get("error"):
            raise ValueError(f"RPC error: {body['error']}")
        result = body.get("result")
        if not isinstance(result, str):
            raise ValueError(f"Unexpected RPC result: {result!r}")
        return result

    async def fetch(self, symbol: str) -> FeedResult:
        """Fetch the current on-chain price for a symbol.

        Args:
            symbol: Asset symbol (e.g. "BTC")

        Returns:
            Available with price and on-chain timestamp, or Unavailable with a reason
        """
        clean = symbol.strip().upper()
        feed_id = FEED_IDS.get(clean)
        if feed_id is None:
            logger.warning(f"[FTSOv2] No feed id for {clean}")
            return Unavailable(f"no FTSOv2 feed for {clean}")

        logger.info(f"[FTSOv2] Fetching {clean}...")
        try:
            result = await self._eth_call(encode_get_feed_by_id(feed_id))
            value, decimals, timestamp = decode_feed_result(result)
            quote = FeedQuote(
                price=Decimal(value).scaleb(-decimals),
                timestamp=datetime.fromtimestamp(timestamp, tz=timezone.utc),
            )
        except httpx.TimeoutException as e:
            logger.warning(f"[FTSOv2] Timeout fetching {clean}: {e}")
            return Unavailable("timeout")
        except httpx.HTTPError as e:
            logger.warning(f"[FTSOv2] Fetch failed for {clean}: {e}")
            return Unavailable(f"transport error: {e}")
        except (ValueError, InvalidInput) as e:
            logger.warning(f"[FTSOv2] Bad response for {clean}: {e}")
            return Unavailable(f"bad response: {e}")

        return Available(quote)
