"""Merge policy for the on-chain (primary) and market-data (secondary) feeds.

Precedence:
- primary available   -> primary price and timestamp, auxiliaries from secondary
- secondary only      -> secondary price, timestamp = resolution time
- neither             -> UNAVAILABLE quote (never a zero price)

The merge is pure and synchronous; fetching, timeouts and retries belong to
the feed clients.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from core.errors import InvalidInput, PriceUnavailable
from core.types import Available, FeedResult, Quote, QuoteSource, Unavailable

logger = logging.getLogger(__name__)


def normalize_symbol(symbol: str) -> str:
    """Strip and uppercase an asset symbol.

    Raises:
        InvalidInput: If the symbol is empty
    """
    clean = (symbol or "").strip().upper()
    if not clean:
        raise InvalidInput("Symbol is required")
    return clean


def resolve(
    symbol: str,
    primary: FeedResult,
    secondary: FeedResult,
    *,
    now: Optional[datetime] = None,
) -> Quote:
    """Resolve one canonical quote from two feed results.

    Args:
        symbol: Asset symbol (normalized to uppercase)
        primary: On-chain feed result
        secondary: Off-chain market-data feed result
        now: Resolution time (defaults to current UTC time)

    Returns:
        Quote; `source` is UNAVAILABLE when neither feed produced a price
    """
    clean = normalize_symbol(symbol)
    resolved_at = now or datetime.now(timezone.utc)
    aux = secondary.quote if isinstance(secondary, Available) else None

    if isinstance(primary, Available):
        logger.debug(f"{clean}: using primary feed (secondary {'present' if aux else 'absent'})")
        return Quote(
            symbol=clean,
            price=primary.quote.price,
            timestamp=primary.quote.timestamp or resolved_at,
            source=QuoteSource.PRIMARY,
            volume_24h=aux.volume_24h if aux else None,
            change_24h=aux.change_24h if aux else None,
        )

    if aux is not None:
        logger.debug(f"{clean}: primary unavailable ({primary.reason}), using secondary feed")
        return Quote(
            symbol=clean,
            price=aux.price,
            timestamp=resolved_at,
            source=QuoteSource.SECONDARY,
            volume_24h=aux.volume_24h,
            change_24h=aux.change_24h,
        )

    logger.warning(f"{clean}: price unavailable from all sources")
    return Quote(symbol=clean, price=None, timestamp=None, source=QuoteSource.UNAVAILABLE)


def resolve_or_raise(
    symbol: str,
    primary: FeedResult,
    secondary: FeedResult,
    *,
    now: Optional[datetime] = None,
) -> Quote:
    """Like `resolve`, but raise PriceUnavailable instead of returning an UNAVAILABLE quote."""
    quote = resolve(symbol, primary, secondary, now=now)
    if not quote.available:
        reasons = tuple(
            f"{name}: {result.reason}"
            for name, result in (("primary", primary), ("secondary", secondary))
            if isinstance(result, Unavailable)
        )
        raise PriceUnavailable(quote.symbol, reasons)
    return quote
