"""FastAPI application for hybrid prices, AI suggestions and simulated trades.

Endpoints:
- GET /                 - Liveness text
- GET /price/{symbol}   - Hybrid quote (FTSOv2 on-chain, CoinGecko fallback / aux data)
- POST /ai/suggestion   - Price classification fused with risk signals
- POST /trade           - Record a simulated trade (balance / position checked)
- GET /trades           - Trade history, most recent first
- GET /holdings         - Net position per symbol
- GET /account          - Demo balance and holdings

No authentication; simulation only.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Path
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from core.config import AppSettings
from core.errors import InvalidInput, InvalidTrade, PriceUnavailable
from core.execution.journal import TradeJournal
from core.execution.ledger import TradeLedger
from core.market_data.service import PriceService
from core.portfolio.account import DemoAccount
from core.signals.fusion import SignalFusionEngine
from core.types import RiskSignals

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    if _price_service is not None:
        await _price_service.aclose()


app = FastAPI(
    title="Flare Signal Desk API",
    description="Hybrid FTSOv2/CoinGecko prices, rule-based AI suggestions and simulated trading",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

# Process-wide singletons (built lazily, replaceable in tests)
_settings: AppSettings | None = None
_price_service: PriceService | None = None
_fusion_engine: SignalFusionEngine | None = None
_ledger: TradeLedger | None = None
_account: DemoAccount | None = None


def _get_settings() -> AppSettings:
    global _settings
    if _settings is None:
        _settings = AppSettings.from_env()
    return _settings


def _get_price_service() -> PriceService:
    global _price_service
    if _price_service is None:
        _price_service = PriceService(settings=_get_settings().feeds)
    return _price_service


def _get_fusion_engine() -> SignalFusionEngine:
    global _fusion_engine
    if _fusion_engine is None:
        _fusion_engine = SignalFusionEngine(_get_settings().fusion)
    return _fusion_engine


def _get_ledger() -> TradeLedger:
    """Get or initialize the trade ledger (replayed from the journal if configured)."""
    global _ledger
    if _ledger is None:
        journal_path = _get_settings().journal_path
        if journal_path:
            _ledger = TradeLedger.replay(TradeJournal(journal_path))
        else:
            _ledger = TradeLedger()
    return _ledger


def _get_account() -> DemoAccount:
    global _account
    if _account is None:
        _account = DemoAccount(_get_ledger(), _get_settings().starting_balance)
    return _account


class SuggestionRequest(BaseModel):
    """Request body for an AI suggestion."""

    price: Optional[float] = Field(None, description="Current price in USD")
    whaleInflow: int = Field(0, description="On-chain whale inflow score (0-100)")
    networkStress: int = Field(0, description="Network stress score (0-100)")
    sentimentScore: int = Field(0, description="Sentiment score (0-100)")
    fudLevel: int = Field(0, description="FUD level (0-100)")


class TradeRequest(BaseModel):
    """Request body for a simulated trade."""

    symbol: Optional[str] = Field(None, description="Asset symbol (e.g., BTC)")
    side: Optional[str] = Field(None, description="BUY or SELL")
    quantity: Optional[Decimal] = Field(None, description="Position size in units")
    price: Optional[Decimal] = Field(None, description="Execution price in USD")


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Flare AI Backend is Running"


@app.get("/price/{symbol}")
async def get_price(symbol: str = Path(..., min_length=1, description="Asset symbol")) -> dict[str, Any]:
    """Hybrid price for a symbol.

    Raises:
        HTTPException: 400 for an invalid symbol, 503 when both feeds are unavailable
    """
    service = _get_price_service()
    try:
        quote = await service.require_quote(symbol)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail={"error": "validation_error", "message": str(e)}) from e
    except PriceUnavailable as e:
        raise HTTPException(status_code=503, detail={"error": "price_unavailable", "message": str(e)}) from e
    return quote.to_dict()


@app.post("/ai/suggestion")
async def ai_suggestion(request: SuggestionRequest) -> dict[str, Any]:
    """Classify the price and explain it using the supplied risk signals."""
    if request.price is None:
        raise HTTPException(status_code=400, detail={"error": "validation_error", "message": "Price is required"})

    signals = RiskSignals.clamped(
        whale_inflow=request.whaleInflow,
        network_stress=request.networkStress,
        sentiment_score=request.sentimentScore,
        fud_level=request.fudLevel,
    )
    try:
        rec = _get_fusion_engine().recommend(request.price, signals)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail={"error": "validation_error", "message": str(e)}) from e

    return {
        "market": {"price": request.price},
        "signals": signals.to_dict(),
        "ai": {"action": rec.action.value, "risk": rec.risk_tier.value, "reason": rec.base_reason},
        "explanation": rec.explanation,
        "reasons": list(rec.reasons),
    }


# Sync handlers: FastAPI runs them in its threadpool, off the event loop (ledger lock, journal I/O)
@app.post("/trade")
def create_trade(request: TradeRequest) -> dict[str, Any]:
    """Record a simulated trade after balance / holdings checks."""
    if not request.symbol or not request.side or request.quantity is None or request.price is None:
        raise HTTPException(
            status_code=400,
            detail={"error": "validation_error", "message": "Missing trade fields (symbol, side, quantity, price)"},
        )

    try:
        trade = _get_account().place_trade(request.symbol, request.side, request.quantity, request.price)
    except InvalidTrade as e:
        raise HTTPException(status_code=400, detail={"error": "trade_rejected", "message": str(e)}) from e
    return trade.to_dict()


@app.get("/trades")
def list_trades() -> list[dict[str, Any]]:
    return [trade.to_dict() for trade in _get_ledger().history()]


@app.get("/holdings")
def list_holdings() -> dict[str, float]:
    return {symbol: float(qty) for symbol, qty in _get_ledger().holdings().items()}


@app.get("/account")
def get_account() -> dict[str, Any]:
    return _get_account().snapshot()


@app.exception_handler(Exception)
async def global_exception_handler(_request, exc):
    """Log unexpected errors (including ledger invariant breaks) and return a 500."""
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )
