"""
Curve table and launch simulation tests
=======================================
Run with: python3 -m pytest tests/test_simulation.py -v
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from launchpad_app.schemas import PRECISION, CurveParams, SimulationInput
from launchpad_app.services.curve_table import compute_curve_table, graduation_supply
from launchpad_app.services.pricing import market_cap
from launchpad_app.services.simulation import run_launch_simulation

E18 = 10**18


# ── Helpers ──────────────────────────────────────────────────────────────────

def make_params(**overrides) -> CurveParams:
    defaults = dict(
        initial_price=10**14,
        price_increment=10**12,
        total_supply=1_000_000 * E18,
        graduation_threshold=110 * E18,
    )
    defaults.update(overrides)
    return CurveParams(**defaults)


def make_sim(**overrides) -> SimulationInput:
    defaults = dict(
        total_supply=1_000_000 * E18,
        initial_price=10**14,
        price_increment=10**12,
        graduation_threshold=110 * E18,
        num_simulations=20,
        max_trades=200,
        num_traders=10,
        buy_size_median=0.0005,
        buy_size_sigma=0.5,
        sell_probability=0.25,
        random_seed=42,
    )
    defaults.update(overrides)
    return SimulationInput(**defaults)


# ── Curve table ──────────────────────────────────────────────────────────────

def test_curve_table_endpoints():
    params = make_params()
    table = compute_curve_table(params, points=11)
    rows = table["rows"]

    assert len(rows) == 11
    assert rows[0]["tokens_sold"] == 0
    assert rows[-1]["tokens_sold"] == params.total_supply
    assert rows[0]["price"] == params.initial_price
    assert rows[-1]["price"] == params.initial_price + params.price_increment * params.total_supply // PRECISION
    assert rows[0]["cumulative_cost"] == 0
    assert [r["price"] for r in rows] == sorted(r["price"] for r in rows)
    assert rows[-1]["price_display"] == pytest.approx(rows[-1]["price"] / PRECISION)


def test_graduation_supply_is_first_crossing():
    params = make_params()
    s = graduation_supply(params)
    assert s == 10 * E18
    assert market_cap(s, params) >= params.graduation_threshold
    assert market_cap(s - 1, params) < params.graduation_threshold


def test_unreachable_threshold():
    params = make_params(graduation_threshold=10**40)
    assert graduation_supply(params) is None
    summary = compute_curve_table(params, points=3)["summary"]
    assert summary["graduation_supply"] is None
    assert summary["graduation_cost"] is None


def test_curve_table_needs_two_points():
    with pytest.raises(ValueError):
        compute_curve_table(make_params(), points=1)


# ── Simulation ───────────────────────────────────────────────────────────────

def test_seed_reproducibility():
    r1 = run_launch_simulation(make_sim())
    r2 = run_launch_simulation(make_sim())
    assert r1 == r2, "same seed must reproduce the same simulation"


def test_cheap_threshold_always_graduates():
    result = run_launch_simulation(make_sim())
    summary = result["summary"]
    assert summary["graduation_rate"] == 1.0, f"expected every path to graduate, got {summary['graduation_rate']}"
    assert result["trades_to_graduation_quantiles"]["p50"] is not None
    assert summary["median_tokens_sold"] >= 10.0


def test_unreachable_threshold_never_graduates():
    result = run_launch_simulation(make_sim(graduation_threshold=10**40, max_trades=50))
    assert result["summary"]["graduation_rate"] == 0.0
    assert result["trades_to_graduation_quantiles"]["p50"] is None
    assert result["raised_quantiles"]["p50"] > 0


def test_sell_disabled_paths_record_no_sells():
    result = run_launch_simulation(make_sim(enable_sell=False, graduation_threshold=10**40, max_trades=30))
    assert result["summary"]["mean_sells"] == 0.0
