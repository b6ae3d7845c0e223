"""
Monte Carlo launch simulation.

Each path runs a fresh Launch created by a LaunchFactory and drives it with
random traders: lognormal buy sizes, occasional sells of a uniform share of
a holder's curve balance. Rejected trades (cap, curve balance) are counted,
not retried. Paths stop at graduation or after `max_trades` attempts.
"""

import logging
from typing import Dict, List

import numpy as np

from launchpad_app.errors import LaunchpadError
from launchpad_app.schemas import PRECISION, SimulationInput
from launchpad_app.services.curve_table import graduation_supply
from launchpad_app.services.factory import LaunchFactory
from launchpad_app.services.ledger import PaymentLedger
from launchpad_app.services.venue import InMemoryLiquidityVenue

logger = logging.getLogger(__name__)

QUANTILES = [0.05, 0.25, 0.50, 0.75, 0.95]

_SIM_OWNER = "sim-owner"
_SIM_PLATFORM = "sim-platform"
_SIM_CREATOR = "sim-creator"


def _quantiles(values: np.ndarray) -> Dict[str, float]:
    out = {}
    if values.size == 0:
        for q in QUANTILES:
            out[f"p{int(q * 100):02d}"] = None
        out["mean"] = None
        return out
    for q in QUANTILES:
        out[f"p{int(q * 100):02d}"] = float(np.quantile(values, q))
    out["mean"] = float(np.mean(values))
    return out


def _new_launch(params: SimulationInput):
    payments = PaymentLedger()
    factory = LaunchFactory(
        owner=_SIM_OWNER,
        fee_recipient=_SIM_PLATFORM,
        payments=payments,
        venue=InMemoryLiquidityVenue(payments, name="sim-venue"),
        creator_fee_bps=params.creator_fee_bps,
        platform_fee_bps=params.platform_fee_bps,
    )
    launch_id = factory.create_launch(
        name="Simulated",
        symbol="SIM",
        total_supply=params.total_supply,
        initial_price=params.initial_price,
        price_increment=params.price_increment,
        graduation_threshold=params.graduation_threshold,
        enable_sell=params.enable_sell,
        creator=_SIM_CREATOR,
    )
    return factory.get_launch(launch_id), payments


def _simulate_one_path(params: SimulationInput, rng: np.random.Generator) -> Dict[str, float]:
    launch, payments = _new_launch(params)
    traders: List[str] = [f"trader-{i}" for i in range(params.num_traders)]

    mu = np.log(params.buy_size_median)
    buys = sells = rejected = 0
    volume = 0
    graduated_at = None

    for step in range(params.max_trades):
        trader = traders[int(rng.integers(0, len(traders)))]
        is_sell = params.enable_sell and rng.random() < params.sell_probability

        try:
            if is_sell:
                curve_balance = launch.curve_balance_of(trader)
                amount = int(curve_balance * rng.uniform(0.05, 1.0))
                if amount <= 0:
                    rejected += 1
                    continue
                result = launch.sell(amount, 0, trader)
                sells += 1
            else:
                payment = int(rng.lognormal(mu, params.buy_size_sigma) * PRECISION)
                result = launch.buy(0, payment, trader)
                buys += 1
        except LaunchpadError as exc:
            logger.debug("Simulated trade rejected: %s", exc)
            rejected += 1
            continue

        volume += result.payment_amount
        if launch.graduated:
            graduated_at = step + 1
            break

    fees = payments.balance_of(_SIM_CREATOR) + payments.balance_of(_SIM_PLATFORM)
    return {
        "graduated": launch.graduated,
        "trades_to_graduation": graduated_at,
        "tokens_sold": launch.tokens_sold,
        "bnb_raised": launch.bnb_raised,
        "final_price": launch.get_current_price(),
        "volume": volume,
        "fees": fees,
        "buys": buys,
        "sells": sells,
        "rejected": rejected,
    }


def run_launch_simulation(params: SimulationInput):
    n_sims = params.num_simulations

    effective_seed = params.random_seed if params.random_seed is not None else int(np.random.default_rng().integers(0, 2**31))
    seed_rng = np.random.default_rng(effective_seed)
    path_seeds = seed_rng.integers(0, 2**31 - 1, size=n_sims, dtype=np.int64)

    graduated = np.zeros(n_sims, dtype=bool)
    trades_to_graduation = []
    tokens_sold = np.zeros(n_sims, dtype=float)
    raised = np.zeros(n_sims, dtype=float)
    final_price = np.zeros(n_sims, dtype=float)
    volume = np.zeros(n_sims, dtype=float)
    fees = np.zeros(n_sims, dtype=float)
    rejected = np.zeros(n_sims, dtype=float)
    buys = np.zeros(n_sims, dtype=float)
    sells = np.zeros(n_sims, dtype=float)

    for i in range(n_sims):
        sim = _simulate_one_path(params, np.random.default_rng(int(path_seeds[i])))
        graduated[i] = sim["graduated"]
        if sim["trades_to_graduation"] is not None:
            trades_to_graduation.append(sim["trades_to_graduation"])
        tokens_sold[i] = sim["tokens_sold"] / PRECISION
        raised[i] = sim["bnb_raised"] / PRECISION
        final_price[i] = sim["final_price"] / PRECISION
        volume[i] = sim["volume"] / PRECISION
        fees[i] = sim["fees"] / PRECISION
        rejected[i] = sim["rejected"]
        buys[i] = sim["buys"]
        sells[i] = sim["sells"]

    curve_params = params.curve_params()
    grad_supply = graduation_supply(curve_params)

    logger.info(
        "Simulated %d launch paths (seed %d): graduation rate %.1f%%",
        n_sims, effective_seed, float(np.mean(graduated)) * 100,
    )
    return {
        "summary": {
            "num_simulations": n_sims,
            "random_seed": effective_seed,
            "graduation_rate": float(np.mean(graduated)),
            "graduation_supply": grad_supply,
            "median_tokens_sold": float(np.median(tokens_sold)),
            "median_raised": float(np.median(raised)),
            "median_final_price": float(np.median(final_price)),
            "mean_rejected_trades": float(np.mean(rejected)),
            "mean_buys": float(np.mean(buys)),
            "mean_sells": float(np.mean(sells)),
        },
        "trades_to_graduation_quantiles": _quantiles(np.array(trades_to_graduation, dtype=float)),
        "tokens_sold_quantiles": _quantiles(tokens_sold),
        "raised_quantiles": _quantiles(raised),
        "final_price_quantiles": _quantiles(final_price),
        "volume_quantiles": _quantiles(volume),
        "fees_quantiles": _quantiles(fees),
    }
