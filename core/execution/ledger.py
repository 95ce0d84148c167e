"""Simulated trade ledger.

Append-only store of immutable TradeRecords with derived holdings.

Invariants:
- ids start at 1 and are contiguous in insertion order
- id assignment and append happen in one critical section
- readers see a snapshot taken under the same lock, never a partial append
- value_usd = quantity * price, fixed at submission

Sufficiency checks (enough cash to buy, enough position to sell) are the
caller's job; see `core.portfolio.account.DemoAccount`.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, Overflow
from typing import Any, Callable, Mapping, Optional

from core.errors import ConcurrencyViolation, InvalidTrade
from core.execution.journal import TradeJournal
from core.types import TradeRecord, TradeSide

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _positive_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidTrade(f"{name} must be a number")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidTrade(f"{name} must be a number, got {value!r}") from exc
    if not result.is_finite() or result <= 0:
        raise InvalidTrade(f"{name} must be positive, got {value}")
    # API output is a JSON number
    if not math.isfinite(float(result)):
        raise InvalidTrade(f"{name} is out of range, got {value}")
    return result


@dataclass(frozen=True)
class TradeIntent:
    """Validated, normalized trade request with its USD value precomputed."""

    symbol: str
    side: TradeSide
    quantity: Decimal
    price: Decimal
    value_usd: Decimal


def validate_trade(symbol: Any, side: Any, quantity: Any, price: Any) -> TradeIntent:
    """Normalize and validate a trade intent.

    Returns:
        TradeIntent with symbol/side uppercased and value_usd = quantity * price

    Raises:
        InvalidTrade: If any field is missing or out of domain, or the
            trade value cannot be represented
    """
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidTrade("symbol is required")
    if not isinstance(side, str) or side.strip().upper() not in ("BUY", "SELL"):
        raise InvalidTrade(f"side must be BUY or SELL, got {side!r}")

    qty = _positive_decimal("quantity", quantity)
    px = _positive_decimal("price", price)
    try:
        value_usd = qty * px
    except (Overflow, InvalidOperation) as exc:
        raise InvalidTrade(f"trade value out of range for quantity {quantity} at price {price}") from exc
    if not value_usd.is_finite() or not math.isfinite(float(value_usd)):
        raise InvalidTrade(f"trade value out of range for quantity {quantity} at price {price}")

    return TradeIntent(
        symbol=symbol.strip().upper(),
        side=side.strip().upper(),  # type: ignore[arg-type]
        quantity=qty,
        price=px,
        value_usd=value_usd,
    )


class TradeLedger:
    """Thread-safe, in-memory trade ledger.

    One instance is shared by every caller in the process; tests build their
    own instances.
    """

    def __init__(
        self,
        *,
        journal: Optional[TradeJournal] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Initialize an empty ledger.

        Args:
            journal: Optional append-only journal written on every submission
            clock: Timestamp source (defaults to UTC now)
        """
        self._lock = threading.Lock()
        self._records: list[TradeRecord] = []
        self._next_id = 1
        self._journal = journal
        self._clock = clock or _utc_now

    @classmethod
    def replay(cls, journal: TradeJournal, *, clock: Optional[Clock] = None) -> "TradeLedger":
        """Rebuild a ledger from its journal, restoring the id counter.

        Raises:
            ConcurrencyViolation: If journaled ids are not contiguous from 1
        """
        ledger = cls(journal=journal, clock=clock)
        for record in journal.read():
            if record.id != ledger._next_id:
                raise ConcurrencyViolation(
                    f"Journal {journal.path} out of sequence: expected id {ledger._next_id}, got {record.id}"
                )
            ledger._records.append(record)
            ledger._next_id += 1
        logger.info(f"Replayed {len(ledger._records)} trades from {journal.path}")
        return ledger

    def submit(self, symbol: Any, side: Any, quantity: Any, price: Any) -> TradeRecord:
        """Record a simulated trade.

        Args:
            symbol: Asset symbol (normalized to uppercase)
            side: "BUY" or "SELL"
            quantity: Positive quantity
            price: Positive execution price

        Returns:
            The newly created TradeRecord

        Raises:
            InvalidTrade: If validation fails (no record is created)
            ConcurrencyViolation: If the append invariant is broken
        """
        return self.record(validate_trade(symbol, side, quantity, price))

    def record(self, intent: TradeIntent) -> TradeRecord:
        """Append an already validated intent (see `validate_trade`)."""
        with self._lock:
            record = TradeRecord(
                id=self._next_id,
                symbol=intent.symbol,
                side=intent.side,
                quantity=intent.quantity,
                price=intent.price,
                value_usd=intent.value_usd,
                timestamp=self._clock(),
            )
            if self._journal is not None:
                self._journal.append(record)
            self._records.append(record)
            self._next_id += 1
            if record.id != len(self._records):
                raise ConcurrencyViolation(
                    f"Trade id {record.id} does not match ledger length {len(self._records)}"
                )

        logger.info(f"Recorded trade #{record.id}: {record.side} {record.quantity} {record.symbol} @ {record.price}")
        return record

    def records(self) -> tuple[TradeRecord, ...]:
        """Chronological snapshot (oldest first)."""
        with self._lock:
            return tuple(self._records)

    def history(self) -> tuple[TradeRecord, ...]:
        """Snapshot for presentation (most recent first)."""
        with self._lock:
            return tuple(reversed(self._records))

    def holdings_for(self, symbol: str) -> Decimal:
        """Net signed quantity for a symbol (BUY adds, SELL subtracts)."""
        clean = symbol.strip().upper()
        with self._lock:
            snapshot = tuple(self._records)
        return sum((r.signed_quantity for r in snapshot if r.symbol == clean), Decimal("0"))

    def holdings(self) -> Mapping[str, Decimal]:
        """Net signed quantity for every traded symbol."""
        with self._lock:
            snapshot = tuple(self._records)
        result: dict[str, Decimal] = {}
        for record in snapshot:
            result[record.symbol] = result.get(record.symbol, Decimal("0")) + record.signed_quantity
        return result

    def cash_flow(self) -> Decimal:
        """Net USD flow over the history: sells add, buys subtract."""
        with self._lock:
            snapshot = tuple(self._records)
        return sum(
            (r.value_usd if r.side == "SELL" else -r.value_usd for r in snapshot),
            Decimal("0"),
        )

    @property
    def next_id(self) -> int:
        with self._lock:
            return self._next_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
