from typing import Optional

import numpy as np

from launchpad_app.schemas import PRECISION, CurveParams
from launchpad_app.services.pricing import cost_between, current_price, market_cap


def _supply_grid(total_supply: int, points: int):
    """Evenly spaced integer supplies from 0 to total_supply inclusive."""
    return [total_supply * i // (points - 1) for i in range(points)]


def graduation_supply(params: CurveParams) -> Optional[int]:
    """Smallest supply at which the market cap reaches the graduation threshold, or None."""
    if market_cap(params.total_supply, params) < params.graduation_threshold:
        return None
    lo, hi = 0, params.total_supply
    while lo < hi:
        mid = (lo + hi) // 2
        if market_cap(mid, params) >= params.graduation_threshold:
            hi = mid
        else:
            lo = mid + 1
    return lo


def compute_curve_table(params: CurveParams, points: int = 50):
    """Price, market cap and cumulative cost along the curve for display."""
    if points < 2:
        raise ValueError("points must be >= 2")
    supplies = _supply_grid(params.total_supply, points)

    prices = [current_price(s, params) for s in supplies]
    caps = [market_cap(s, params) for s in supplies]
    costs = [cost_between(0, s, params) for s in supplies]

    # Display values in whole units; exact integers stay in the rows.
    price_f = np.array(prices, dtype=float) / PRECISION
    cap_f = np.array(caps, dtype=float) / PRECISION
    cost_f = np.array(costs, dtype=float) / PRECISION
    supply_f = np.array(supplies, dtype=float) / PRECISION
    sold_pct = np.array(supplies, dtype=float) / params.total_supply * 100

    rows = []
    for i, s in enumerate(supplies):
        rows.append({
            "tokens_sold": s,
            "price": prices[i],
            "market_cap": caps[i],
            "cumulative_cost": costs[i],
            "tokens_sold_display": float(supply_f[i]),
            "price_display": float(price_f[i]),
            "market_cap_display": float(cap_f[i]),
            "cumulative_cost_display": float(cost_f[i]),
            "sold_pct": float(sold_pct[i]),
            "graduated": caps[i] >= params.graduation_threshold,
        })

    grad_supply = graduation_supply(params)
    return {
        "rows": rows,
        "summary": {
            "initial_price": params.initial_price,
            "final_price": prices[-1],
            "max_market_cap": caps[-1],
            "full_sale_cost": costs[-1],
            "graduation_threshold": params.graduation_threshold,
            "graduation_supply": grad_supply,
            "graduation_cost": cost_between(0, grad_supply, params) if grad_supply is not None else None,
            "graduation_sold_pct": (grad_supply / params.total_supply * 100) if grad_supply is not None else None,
            "price_multiple": float(price_f[-1] / price_f[0]) if price_f[0] > 0 else None,
            "avg_price_display": float(np.mean(price_f)),
        },
    }
