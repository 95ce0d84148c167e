"""Tests for the HTTP API."""

from __future__ import annotations

import inspect
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import api.main as main
from core.config import AppSettings
from core.execution.journal import TradeJournal
from core.execution.ledger import TradeLedger
from core.market_data.service import PriceService
from core.portfolio.account import DemoAccount
from core.signals.fusion import SignalFusionEngine
from core.types import Unavailable


@pytest.fixture
def feeds(fake_feed):
    return {"primary": fake_feed(), "secondary": fake_feed()}


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch, feeds):
    """Give every test its own ledger, account and fake feeds."""
    settings = AppSettings()
    ledger = TradeLedger()
    monkeypatch.setattr(main, "_settings", settings)
    monkeypatch.setattr(main, "_ledger", ledger)
    monkeypatch.setattr(main, "_account", DemoAccount(ledger, Decimal("100000")))
    monkeypatch.setattr(main, "_fusion_engine", SignalFusionEngine(settings.fusion))
    monkeypatch.setattr(
        main,
        "_price_service",
        PriceService(primary=feeds["primary"], secondary=feeds["secondary"], settings=settings.feeds),
    )
    yield


@pytest.fixture
def client():
    """Create a test client."""
    return TestClient(main.app)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "Flare AI Backend is Running"


class TestPriceEndpoint:
    def test_primary_price(self, client, feeds, primary_btc, secondary_btc):
        feeds["primary"].result = primary_btc
        feeds["secondary"].result = secondary_btc

        response = client.get("/price/btc")

        assert response.status_code == 200
        data = response.json()
        assert data["symbol"] == "BTC"
        assert data["price"] == 65432.10
        assert data["volume24h"] == 31000000000.0
        assert data["source"] == "FTSOv2 (On-chain)"
        assert feeds["primary"].calls == ["BTC"]

    def test_secondary_fallback(self, client, feeds, secondary_btc):
        feeds["secondary"].result = secondary_btc

        data = client.get("/price/BTC").json()

        assert data["source"] == "CoinGecko"
        assert data["price"] == 65400.0

    def test_unavailable_is_503(self, client, feeds):
        feeds["primary"].result = Unavailable("timeout")

        response = client.get("/price/BTC")

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "price_unavailable"


class TestSuggestionEndpoint:
    def test_sell_with_whales(self, client):
        response = client.post("/ai/suggestion", json={"price": 75000, "whaleInflow": 90, "fudLevel": 20})

        assert response.status_code == 200
        data = response.json()
        assert data["ai"]["action"] == "SELL"
        assert data["ai"]["risk"] == "HIGH"
        assert data["explanation"] == "Price is in high-risk zone. High whale activity detected."
        assert data["signals"]["whaleInflow"] == 90

    def test_hold_uses_base_reason(self, client):
        data = client.post("/ai/suggestion", json={"price": 60000}).json()

        assert data["ai"]["action"] == "HOLD"
        assert data["explanation"] == data["ai"]["reason"]

    def test_missing_price(self, client):
        response = client.post("/ai/suggestion", json={})
        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Price is required"

    def test_negative_price(self, client):
        response = client.post("/ai/suggestion", json={"price": -5})
        assert response.status_code == 400

    def test_signals_are_clamped(self, client):
        data = client.post("/ai/suggestion", json={"price": 60000, "whaleInflow": 250}).json()
        assert data["signals"]["whaleInflow"] == 100


class TestTradeEndpoints:
    def test_trade_roundtrip(self, client):
        response = client.post("/trade", json={"symbol": "btc", "side": "BUY", "quantity": 10, "price": 100})

        assert response.status_code == 200
        trade = response.json()
        assert trade["id"] == 1
        assert trade["symbol"] == "BTC"
        assert trade["valueUSD"] == 1000.0
        assert isinstance(trade["timestamp"], int)

        client.post("/trade", json={"symbol": "BTC", "side": "SELL", "quantity": 3, "price": 110})

        trades = client.get("/trades").json()
        assert [t["id"] for t in trades] == [2, 1]
        assert trades[0]["valueUSD"] == 330.0
        assert client.get("/holdings").json() == {"BTC": 7.0}

    def test_missing_fields(self, client):
        response = client.post("/trade", json={"symbol": "BTC", "side": "BUY"})
        assert response.status_code == 400
        assert "Missing trade fields" in response.json()["detail"]["message"]

    def test_invalid_side(self, client):
        response = client.post("/trade", json={"symbol": "BTC", "side": "HOLD", "quantity": 1, "price": 1})
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "trade_rejected"

    def test_insufficient_balance(self, client):
        response = client.post("/trade", json={"symbol": "BTC", "side": "BUY", "quantity": 2, "price": 60000})
        assert response.status_code == 400
        assert "Not enough demo balance" in response.json()["detail"]["message"]
        assert client.get("/trades").json() == []

    def test_sell_more_than_held(self, client):
        response = client.post("/trade", json={"symbol": "ETH", "side": "SELL", "quantity": 1, "price": 3000})
        assert response.status_code == 400
        assert "You only have 0 ETH" in response.json()["detail"]["message"]

    def test_account_snapshot(self, client):
        client.post("/trade", json={"symbol": "BTC", "side": "BUY", "quantity": "0.5", "price": "60000"})

        data = client.get("/account").json()

        assert data["balance"] == 70000.0
        assert data["startingBalance"] == 100000.0
        assert data["holdings"] == {"BTC": 0.5}

    def test_trade_beyond_float_range_rejected(self, client):
        response = client.post(
            "/trade", json={"symbol": "BTC", "side": "BUY", "quantity": "1e309", "price": "1e-305"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "trade_rejected"
        assert client.get("/trades").json() == []

    def test_trade_value_overflow_rejected(self, client):
        response = client.post(
            "/trade", json={"symbol": "BTC", "side": "BUY", "quantity": "1e999999", "price": "10"}
        )

        assert response.status_code == 400
        assert "out of range" in response.json()["detail"]["message"]

    def test_trade_is_journaled(self, client, monkeypatch, tmp_path):
        journal = TradeJournal(tmp_path / "trades.jsonl")
        ledger = TradeLedger(journal=journal)
        monkeypatch.setattr(main, "_ledger", ledger)
        monkeypatch.setattr(main, "_account", DemoAccount(ledger, Decimal("100000")))

        response = client.post("/trade", json={"symbol": "ETH", "side": "BUY", "quantity": "2", "price": "3000"})

        assert response.status_code == 200
        [record] = journal.read()
        assert record.id == response.json()["id"]
        assert record.value_usd == Decimal("6000")

    def test_ledger_endpoints_run_in_threadpool(self):
        for endpoint in (main.create_trade, main.list_trades, main.list_holdings, main.get_account):
            assert not inspect.iscoroutinefunction(endpoint)
