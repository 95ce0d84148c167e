"""Error taxonomy for the price / signal / ledger core."""

from __future__ import annotations


class TradingCoreError(Exception):
    """Base exception for core errors."""


class InvalidInput(TradingCoreError, ValueError):
    """Malformed or out-of-domain request (local validation failure, never retried)."""


class InvalidTrade(InvalidInput):
    """Trade intent rejected before any record was created."""


class InsufficientFunds(InvalidTrade):
    """BUY would cost more than the available demo balance."""

    def __init__(self, required, available):
        super().__init__(f"Not enough demo balance for this trade (required {required}, available {available})")
        self.required = required
        self.available = available


class InsufficientHoldings(InvalidTrade):
    """SELL quantity exceeds the current position."""

    def __init__(self, symbol: str, requested, held):
        super().__init__(f"You only have {held} {symbol} in storage (requested {requested})")
        self.symbol = symbol
        self.requested = requested
        self.held = held


class PriceUnavailable(TradingCoreError):
    """Neither feed produced a quote for the requested symbol."""

    def __init__(self, symbol: str, reasons: tuple[str, ...] = ()):
        detail = f" ({'; '.join(reasons)})" if reasons else ""
        super().__init__(f"Price unavailable from all sources for {symbol}{detail}")
        self.symbol = symbol
        self.reasons = reasons


class ConcurrencyViolation(TradingCoreError):
    """Ledger invariant broken (duplicate id or lost append). Fatal."""
