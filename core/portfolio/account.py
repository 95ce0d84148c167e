"""Demo account: balance and position checks in front of the ledger.

The ledger itself never checks sufficiency. This wrapper evaluates the
balance / holdings view and submits under one lock so two concurrent trades
cannot both spend the same cash.
"""

from __future__ import annotations

import logging
import threading
from decimal import Decimal
from typing import Any, Mapping

from core.errors import InsufficientFunds, InsufficientHoldings
from core.execution.ledger import TradeLedger, validate_trade
from core.types import TradeRecord

logger = logging.getLogger(__name__)

DEFAULT_STARTING_BALANCE = Decimal("100000")


class DemoAccount:
    """Virtual USD balance derived from a starting balance and the trade history."""

    def __init__(self, ledger: TradeLedger, starting_balance: Decimal = DEFAULT_STARTING_BALANCE) -> None:
        if starting_balance < 0:
            raise ValueError("starting_balance must not be negative")
        self.ledger = ledger
        self.starting_balance = starting_balance
        self._lock = threading.Lock()

    def balance(self) -> Decimal:
        return self.starting_balance + self.ledger.cash_flow()

    def holdings(self) -> Mapping[str, Decimal]:
        return self.ledger.holdings()

    def place_trade(self, symbol: Any, side: Any, quantity: Any, price: Any) -> TradeRecord:
        """Check balance (BUY) or position (SELL), then submit to the ledger.

        Raises:
            InvalidTrade: If the intent is malformed
            InsufficientFunds: If a BUY costs more than the balance
            InsufficientHoldings: If a SELL exceeds the current position
        """
        intent = validate_trade(symbol, side, quantity, price)

        with self._lock:
            if intent.side == "BUY":
                available = self.balance()
                if available < intent.value_usd:
                    logger.info(
                        f"Rejected BUY {intent.quantity} {intent.symbol}: needs {intent.value_usd}, balance {available}"
                    )
                    raise InsufficientFunds(intent.value_usd, available)
            else:
                held = self.ledger.holdings_for(intent.symbol)
                if intent.quantity > held:
                    logger.info(f"Rejected SELL {intent.quantity} {intent.symbol}: holding {held}")
                    raise InsufficientHoldings(intent.symbol, intent.quantity, held)

            return self.ledger.record(intent)

    def snapshot(self) -> dict[str, Any]:
        return {
            "balance": float(self.balance()),
            "startingBalance": float(self.starting_balance),
            "holdings": {symbol: float(qty) for symbol, qty in self.holdings().items()},
        }
