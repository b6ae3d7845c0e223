"""
Bonding curve pricing.

Linear curve: price(s) = initial_price + price_increment * s / PRECISION,
with prices in payment base units per whole token and supplies in token base
units (both scaled by PRECISION = 1e18).

All functions are pure and work on Python integers, so intermediate products
never overflow. Every division floors, which always rounds against the trader:
a buyer never receives more tokens than the payment covers and a seller never
receives more than the curve collected for that slice of supply.
"""

import math
from typing import Tuple

from launchpad_app.errors import CapExceeded, ValidationError
from launchpad_app.schemas import BPS_DENOMINATOR, PRECISION, CurveParams


def fee_for(amount: int, params: CurveParams) -> int:
    return amount * params.total_fee_bps // BPS_DENOMINATOR


def split_fee(fee_amount: int, params: CurveParams) -> Tuple[int, int]:
    """Split a fee into (creator_share, platform_share) proportionally to the bps."""
    total_bps = params.total_fee_bps
    if fee_amount == 0 or total_bps == 0:
        return 0, 0
    creator_share = fee_amount * params.creator_fee_bps // total_bps
    return creator_share, fee_amount - creator_share


def current_price(supply: int, params: CurveParams) -> int:
    return params.initial_price + params.price_increment * supply // PRECISION


def market_cap(supply: int, params: CurveParams) -> int:
    return current_price(supply, params) * params.total_supply // PRECISION


def cost_between(supply: int, amount: int, params: CurveParams) -> int:
    """Exact area under the curve over [supply, supply + amount], floored."""
    numerator = (
        2 * params.initial_price * PRECISION + params.price_increment * (2 * supply + amount)
    ) * amount
    return numerator // (2 * PRECISION * PRECISION)


def solve_tokens_out(net_payment: int, supply: int, params: CurveParams) -> int:
    """Largest token amount whose curve cost starting at `supply` does not exceed `net_payment`."""
    if net_payment <= 0:
        return 0

    if params.price_increment == 0:
        return net_payment * PRECISION // params.initial_price

    # cost(ds) = (B * ds + inc * ds^2 / 2) / PRECISION^2 with B = p0 * PRECISION + inc * s.
    # Setting cost(ds) = net and solving inc * ds^2 + 2B * ds - 2 * PRECISION^2 * net = 0:
    #   ds = (sqrt(B^2 + 2 * inc * PRECISION^2 * net) - B) / inc
    # isqrt is the exact floor, and flooring the final division keeps ds at or below the real root.
    b = params.initial_price * PRECISION + params.price_increment * supply
    discriminant = b * b + 2 * params.price_increment * PRECISION * PRECISION * net_payment
    return (math.isqrt(discriminant) - b) // params.price_increment


def tokens_for_payment(gross_payment: int, current_supply: int, params: CurveParams) -> Tuple[int, int]:
    """
    Quote a purchase.

    Returns (tokens_out, fee_amount). Raises CapExceeded when the purchase
    would carry the supply past `total_supply`; no partial fill is offered.
    """
    if gross_payment < 0:
        raise ValidationError("payment must be >= 0")
    if current_supply < 0 or current_supply > params.total_supply:
        raise ValidationError(f"current_supply {current_supply} is outside [0, {params.total_supply}]")

    fee_amount = fee_for(gross_payment, params)
    tokens_out = solve_tokens_out(gross_payment - fee_amount, current_supply, params)

    if current_supply + tokens_out > params.total_supply:
        raise CapExceeded(
            f"purchase of {tokens_out} tokens exceeds remaining supply "
            f"{params.total_supply - current_supply}"
        )
    return tokens_out, fee_amount


def payment_for_tokens(token_amount: int, current_supply: int, params: CurveParams) -> Tuple[int, int]:
    """
    Quote a sale back into the curve.

    Returns (gross_payment_out, fee_amount); the seller receives
    gross_payment_out - fee_amount.
    """
    if token_amount < 0:
        raise ValidationError("token_amount must be >= 0")
    if token_amount > current_supply:
        raise ValidationError(f"cannot sell {token_amount} tokens, only {current_supply} sold")

    gross = cost_between(current_supply - token_amount, token_amount, params)
    return gross, fee_for(gross, params)
