"""
HTTP API tests
==============
Create / quote / trade round trips, error mapping, owner-gated fee updates
and large-integer encoding.
Run with: python3 -m pytest tests/test_api.py -v
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from launchpad_app.auth import hash_password
from launchpad_app.config import Settings
from launchpad_app.main import create_app

E18 = 10**18
_SALT = "test-salt"
_ITERATIONS = 1_000


# ── Helpers ──────────────────────────────────────────────────────────────────

@pytest.fixture
def client():
    settings = Settings(
        owner_username="admin",
        owner_password_hash=hash_password("hunter2", _SALT, _ITERATIONS),
        owner_salt=_SALT,
        password_iterations=_ITERATIONS,
    )
    with TestClient(create_app(settings)) as c:
        yield c


def launch_body(**overrides) -> dict:
    body = dict(
        name="Demo",
        symbol="DEMO",
        total_supply=str(1_000_000 * E18),
        initial_price=str(10**14),
        price_increment=str(10**12),
        graduation_threshold=str(110 * E18),
        enable_sell=True,
        creator="creator",
    )
    body.update(overrides)
    return body


def create(client, **overrides) -> dict:
    resp = client.post("/api/launches", json=launch_body(**overrides))
    assert resp.status_code == 200, resp.text
    return resp.json()


# ── Read surface ─────────────────────────────────────────────────────────────

def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_create_and_list(client):
    created = create(client)
    assert created["launch_id"] == 0
    assert created["config"]["total_supply"] == str(1_000_000 * E18), "unsafe integers travel as strings"
    assert created["config"]["creator_fee_bps"] == 50
    assert created["tokens_sold"] == 0
    assert created["graduated"] is False
    assert int(created["market_cap"]) == 100 * E18

    create(client, symbol="TWO")
    listing = client.get("/api/launches").json()
    assert listing["count"] == 2
    assert [l["symbol"] for l in listing["launches"]] == ["DEMO", "TWO"]
    assert client.get("/api/factory").json()["launch_count"] == 2


def test_invalid_launch_body(client):
    resp = client.post("/api/launches", json=launch_body(initial_price="0"))
    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_error"

    resp = client.post("/api/launches", json=launch_body(total_supply="lots"))
    assert resp.status_code == 422


def test_unknown_launch(client):
    resp = client.get("/api/launches/7")
    assert resp.status_code == 404
    assert resp.json()["code"] == "launch_not_found"


# ── Trading ──────────────────────────────────────────────────────────────────

def test_quote_then_buy_then_sell(client):
    create(client)
    quote = client.get("/api/launches/0/quote/buy", params={"payment": str(10**15)}).json()
    assert int(quote["fee_amount"]) == 10**15 * 150 // 10_000

    resp = client.post(
        "/api/launches/0/buy",
        json={"buyer": "alice", "payment": str(10**15), "min_tokens_out": quote["tokens_out"]},
    )
    assert resp.status_code == 200, resp.text
    trade = resp.json()["trade"]
    assert trade["token_amount"] == quote["tokens_out"]

    account = client.get("/api/launches/0/accounts/alice").json()
    assert account["token_balance"] == quote["tokens_out"]
    assert account["curve_balance"] == quote["tokens_out"]

    sell_amount = int(quote["tokens_out"]) // 2
    sell_quote = client.get("/api/launches/0/quote/sell", params={"amount": str(sell_amount)}).json()
    resp = client.post(
        "/api/launches/0/sell",
        json={"seller": "alice", "token_amount": str(sell_amount), "min_payment_out": sell_quote["payment_out"]},
    )
    assert resp.status_code == 200, resp.text
    assert client.get("/api/launches/0/accounts/alice").json()["payment_balance"] == sell_quote["payment_out"]


def test_buy_slippage_maps_to_conflict(client):
    create(client)
    resp = client.post(
        "/api/launches/0/buy",
        json={"buyer": "alice", "payment": str(10**15), "min_tokens_out": str(10**30)},
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "slippage_exceeded"


def test_sell_disabled_maps_to_forbidden(client):
    create(client, enable_sell=False)
    client.post("/api/launches/0/buy", json={"buyer": "alice", "payment": str(10**15)})
    resp = client.post("/api/launches/0/sell", json={"seller": "alice", "token_amount": "1"})
    assert resp.status_code == 403
    assert resp.json()["code"] == "sell_disabled"


def test_graduation_closes_trading(client):
    create(client)
    resp = client.post("/api/launches/0/buy", json={"buyer": "alice", "payment": str(2 * 10**15)})
    assert resp.json()["trade"]["graduated"] is True
    assert resp.json()["launch"]["liquidity_pool"] == "token-0"

    resp = client.post("/api/launches/0/buy", json={"buyer": "bob", "payment": str(10**15)})
    assert resp.status_code == 409
    assert resp.json()["code"] == "not_open"


def test_curve_table(client):
    create(client)
    table = client.get("/api/launches/0/curve", params={"points": 5}).json()
    assert len(table["rows"]) == 5
    assert table["rows"][0]["price"] == 10**14
    assert table["summary"]["graduation_supply"] == str(10 * E18)


# ── Owner-gated fees ─────────────────────────────────────────────────────────

def test_fee_update_requires_owner_session(client):
    resp = client.post("/api/factory/fees", json={"creator_fee_bps": 10, "platform_fee_bps": 20})
    assert resp.status_code == 401

    resp = client.post("/auth/login", json={"username": "admin", "password": "wrong"})
    assert resp.status_code == 401

    resp = client.post("/auth/login", json={"username": "admin", "password": "hunter2"})
    assert resp.status_code == 200

    resp = client.post("/api/factory/fees", json={"creator_fee_bps": 10, "platform_fee_bps": 20})
    assert resp.status_code == 200, resp.text
    assert resp.json()["default_creator_fee_bps"] == 10

    resp = client.post("/api/factory/fees", json={"creator_fee_bps": 6_000, "platform_fee_bps": 6_000})
    assert resp.status_code == 422
    assert resp.json()["code"] == "fee_out_of_range"

    assert create(client)["config"]["platform_fee_bps"] == 20

    client.post("/auth/logout")
    resp = client.post("/api/factory/fees", json={"creator_fee_bps": 1, "platform_fee_bps": 1})
    assert resp.status_code == 401


# ── Simulation ───────────────────────────────────────────────────────────────

def test_simulate_endpoint(client):
    resp = client.post(
        "/api/simulate",
        json={
            "total_supply": str(1_000_000 * E18),
            "initial_price": str(10**14),
            "price_increment": str(10**12),
            "graduation_threshold": str(110 * E18),
            "num_simulations": 5,
            "max_trades": 50,
            "buy_size_median": 0.0005,
            "random_seed": 3,
        },
    )
    assert resp.status_code == 200, resp.text
    summary = resp.json()["summary"]
    assert summary["num_simulations"] == 5
    assert 0.0 <= summary["graduation_rate"] <= 1.0
