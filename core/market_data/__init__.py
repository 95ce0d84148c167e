"""Price feeds and the hybrid quote resolver."""

from core.market_data.coingecko_client import COINGECKO_IDS, CoinGeckoClient
from core.market_data.ftso import FEED_IDS, FtsoV2Client
from core.market_data.resolver import normalize_symbol, resolve, resolve_or_raise
from core.market_data.service import PriceFeed, PriceService

__all__ = [
    "COINGECKO_IDS",
    "CoinGeckoClient",
    "FEED_IDS",
    "FtsoV2Client",
    "PriceFeed",
    "PriceService",
    "normalize_symbol",
    "resolve",
    "resolve_or_raise",
]
