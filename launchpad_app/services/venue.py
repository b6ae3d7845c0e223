"""
Liquidity venue used once per launch, at graduation.

The venue pairs a token amount with a base-currency amount in a
constant-product pool and hands back a pool-share receipt. `add_liquidity`
is atomic: it either moves both legs and returns a receipt or raises
LiquidityVenueError without touching any balance.
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Dict, Protocol

from launchpad_app.errors import LiquidityVenueError
from launchpad_app.services.ledger import LaunchToken, PaymentLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidityReceipt:
    pool_id: str
    provider: str
    token_amount: int
    payment_amount: int
    shares: int


@dataclass
class Pool:
    pool_id: str
    token_reserve: int = 0
    payment_reserve: int = 0
    total_shares: int = 0


class LiquidityVenue(Protocol):
    def add_liquidity(
        self, token: LaunchToken, provider: str, token_amount: int, payment_amount: int
    ) -> LiquidityReceipt:
        ...


class InMemoryLiquidityVenue:
    """Constant-product pools keyed by token address."""

    def __init__(self, payments: PaymentLedger, name: str = "venue"):
        self.name = name
        self.payments = payments
        self.pools: Dict[str, Pool] = {}
        self._lock = threading.Lock()

    def pool_account(self, pool_id: str) -> str:
        return f"{self.name}:{pool_id}"

    def add_liquidity(
        self, token: LaunchToken, provider: str, token_amount: int, payment_amount: int
    ) -> LiquidityReceipt:
        if token_amount <= 0 or payment_amount <= 0:
            raise LiquidityVenueError(
                f"both legs must be positive, got tokens={token_amount} payment={payment_amount}"
            )
        if token.balance_of(provider) < token_amount:
            raise LiquidityVenueError(f"{provider} does not hold {token_amount} {token.symbol}")

        with self._lock:
            pool_id = token.address
            pool = self.pools.get(pool_id) or Pool(pool_id=pool_id)

            if pool.total_shares == 0:
                shares = math.isqrt(token_amount * payment_amount)
            else:
                shares = min(
                    token_amount * pool.total_shares // pool.token_reserve,
                    payment_amount * pool.total_shares // pool.payment_reserve,
                )
            if shares <= 0:
                raise LiquidityVenueError("deposit too small to mint pool shares")

            token.transfer(provider, self.pool_account(pool_id), token_amount)
            self.payments.credit(self.pool_account(pool_id), payment_amount)

            pool.token_reserve += token_amount
            pool.payment_reserve += payment_amount
            pool.total_shares += shares
            self.pools[pool_id] = pool

        logger.info(
            "Pool %s funded by %s: tokens=%d payment=%d shares=%d",
            pool_id, provider, token_amount, payment_amount, shares,
        )
        return LiquidityReceipt(
            pool_id=pool_id,
            provider=provider,
            token_amount=token_amount,
            payment_amount=payment_amount,
            shares=shares,
        )
