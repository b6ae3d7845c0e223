"""
Single bonding-curve launch: buy/sell state machine and graduation.

States: open (graduated=False) -> graduated (terminal). Every operation runs
under the launch's own lock, so two trades against the same launch never
interleave. Counters are committed before any external call; graduation
rolls the triggering buy back completely if the venue deposit fails.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from launchpad_app.errors import (
    AlreadyInitialized,
    GraduationFailure,
    InsufficientBalance,
    InsufficientCurveBalance,
    NotOpen,
    SellDisabled,
    SlippageExceeded,
    ValidationError,
)
from launchpad_app.schemas import BPS_DENOMINATOR, CurveParams
from launchpad_app.services import pricing
from launchpad_app.services.ledger import LaunchToken, PaymentLedger
from launchpad_app.services.venue import LiquidityReceipt, LiquidityVenue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeResult:
    side: str
    account: str
    token_amount: int
    payment_amount: int     # gross payment in (buy) or out of the curve (sell)
    fee_amount: int
    creator_fee: int
    platform_fee: int
    tokens_sold: int
    bnb_raised: int
    graduated: bool


class Launch:
    """One token sale. Built uninitialized from a template, then `initialize` runs once."""

    def __init__(self):
        self._lock = threading.RLock()
        self._initialized = False

        self.launch_id: Optional[int] = None
        self.address = ""
        self.creator = ""
        self.platform_fee_recipient = ""
        self.params: Optional[CurveParams] = None
        self.token: Optional[LaunchToken] = None
        self.payments: Optional[PaymentLedger] = None
        self.venue: Optional[LiquidityVenue] = None

        self._tokens_sold = 0
        self._bnb_raised = 0
        self._graduated = False
        self._curve_balances: Dict[str, int] = {}
        self._liquidity_receipt: Optional[LiquidityReceipt] = None

    def clone(self) -> "Launch":
        return type(self)()

    def initialize(
        self,
        launch_id: int,
        address: str,
        creator: str,
        params: CurveParams,
        token: LaunchToken,
        payments: PaymentLedger,
        venue: LiquidityVenue,
        platform_fee_recipient: str,
    ) -> None:
        with self._lock:
            if self._initialized:
                raise AlreadyInitialized(f"launch {self.address} is already initialized")
            self.launch_id = launch_id
            self.address = address
            self.creator = creator
            self.params = params
            self.token = token
            self.payments = payments
            self.venue = venue
            self.platform_fee_recipient = platform_fee_recipient
            self._initialized = True

    # ── State reads ──

    @property
    def tokens_sold(self) -> int:
        return self._tokens_sold

    @property
    def bnb_raised(self) -> int:
        return self._bnb_raised

    @property
    def graduated(self) -> bool:
        return self._graduated

    @property
    def liquidity_receipt(self) -> Optional[LiquidityReceipt]:
        return self._liquidity_receipt

    def curve_balance_of(self, account: str) -> int:
        return self._curve_balances.get(account, 0)

    def get_current_price(self) -> int:
        self._require_initialized()
        return pricing.current_price(self._tokens_sold, self.params)

    def get_market_cap(self) -> int:
        self._require_initialized()
        return pricing.market_cap(self._tokens_sold, self.params)

    def get_tokens_for_payment(self, payment: int) -> Tuple[int, int]:
        self._require_initialized()
        return pricing.tokens_for_payment(payment, self._tokens_sold, self.params)

    def get_payment_for_tokens(self, token_amount: int) -> Tuple[int, int]:
        self._require_initialized()
        return pricing.payment_for_tokens(token_amount, self._tokens_sold, self.params)

    def progress_bps(self) -> int:
        self._require_initialized()
        return self._tokens_sold * BPS_DENOMINATOR // self.params.total_supply

    # ── Trading ──

    def buy(self, min_tokens_out: int, payment: int, caller: str) -> TradeResult:
        with self._lock:
            self._require_initialized()
            if self._graduated:
                raise NotOpen(f"launch {self.address} has graduated")
            if payment <= 0:
                raise ValidationError("payment must be > 0")

            tokens_out, fee_amount = pricing.tokens_for_payment(payment, self._tokens_sold, self.params)
            if tokens_out == 0:
                raise ValidationError(f"payment {payment} is too small to buy any tokens")
            if tokens_out < min_tokens_out:
                raise SlippageExceeded(f"would receive {tokens_out} tokens, minimum is {min_tokens_out}")

            checkpoint = (self._tokens_sold, self._bnb_raised, self._curve_balances.get(caller))

            self._tokens_sold += tokens_out
            self._bnb_raised += payment - fee_amount
            self._curve_balances[caller] = self._curve_balances.get(caller, 0) + tokens_out

            if pricing.market_cap(self._tokens_sold, self.params) >= self.params.graduation_threshold:
                try:
                    self._graduate()
                except Exception as exc:
                    # Whatever the venue raises, the buy is reverted.
                    self._restore(caller, checkpoint)
                    logger.warning("Launch %s: graduation deposit failed, buy reverted: %r", self.address, exc)
                    raise GraduationFailure(f"liquidity deposit failed: {exc}") from exc

            self.token.transfer(self.address, caller, tokens_out)
            creator_fee, platform_fee = self._route_fee(fee_amount)

            logger.debug(
                "Launch %s: %s bought %d tokens for %d (fee %d)",
                self.address, caller, tokens_out, payment, fee_amount,
            )
            return TradeResult(
                side="buy",
                account=caller,
                token_amount=tokens_out,
                payment_amount=payment,
                fee_amount=fee_amount,
                creator_fee=creator_fee,
                platform_fee=platform_fee,
                tokens_sold=self._tokens_sold,
                bnb_raised=self._bnb_raised,
                graduated=self._graduated,
            )

    def sell(self, token_amount: int, min_payment_out: int, caller: str) -> TradeResult:
        with self._lock:
            self._require_initialized()
            if not self.params.enable_sell:
                raise SellDisabled(f"launch {self.address} does not allow selling")
            if self._graduated:
                raise NotOpen(f"launch {self.address} has graduated")
            if token_amount <= 0:
                raise ValidationError("token_amount must be > 0")

            curve_balance = self._curve_balances.get(caller, 0)
            if token_amount > curve_balance:
                raise InsufficientCurveBalance(
                    f"{caller} can sell at most {curve_balance} tokens back to the curve"
                )
            held = self.token.balance_of(caller)
            if held < token_amount:
                raise InsufficientBalance(f"{caller} holds {held} tokens, cannot sell {token_amount}")

            gross, fee_amount = pricing.payment_for_tokens(token_amount, self._tokens_sold, self.params)
            if gross == 0:
                raise ValidationError(f"selling {token_amount} tokens would pay nothing")
            payout = gross - fee_amount
            if payout < min_payment_out:
                raise SlippageExceeded(f"would receive {payout}, minimum is {min_payment_out}")

            self._tokens_sold -= token_amount
            self._bnb_raised -= gross
            self._curve_balances[caller] = curve_balance - token_amount

            self.token.transfer(caller, self.address, token_amount)
            self.payments.credit(caller, payout)
            creator_fee, platform_fee = self._route_fee(fee_amount)

            logger.debug(
                "Launch %s: %s sold %d tokens for %d (fee %d)",
                self.address, caller, token_amount, payout, fee_amount,
            )
            return TradeResult(
                side="sell",
                account=caller,
                token_amount=token_amount,
                payment_amount=gross,
                fee_amount=fee_amount,
                creator_fee=creator_fee,
                platform_fee=platform_fee,
                tokens_sold=self._tokens_sold,
                bnb_raised=self._bnb_raised,
                graduated=self._graduated,
            )

    # ── Internals ──

    def _graduate(self) -> None:
        # Flag first: a reentrant call from the venue already sees a closed launch.
        self._graduated = True
        token_amount = self.params.total_supply - self._tokens_sold
        self._liquidity_receipt = self.venue.add_liquidity(
            self.token, self.address, token_amount, self._bnb_raised
        )
        logger.info(
            "Launch %s graduated: market cap %d >= %d, pooled %d tokens with %d",
            self.address,
            pricing.market_cap(self._tokens_sold, self.params),
            self.params.graduation_threshold,
            token_amount,
            self._bnb_raised,
        )

    def _restore(self, caller: str, checkpoint: Tuple[int, int, Optional[int]]) -> None:
        self._tokens_sold, self._bnb_raised, previous_balance = checkpoint
        if previous_balance is None:
            self._curve_balances.pop(caller, None)
        else:
            self._curve_balances[caller] = previous_balance
        self._graduated = False
        self._liquidity_receipt = None

    def _route_fee(self, fee_amount: int) -> Tuple[int, int]:
        creator_fee, platform_fee = pricing.split_fee(fee_amount, self.params)
        self.payments.credit(self.creator, creator_fee)
        self.payments.credit(self.platform_fee_recipient, platform_fee)
        return creator_fee, platform_fee

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise ValidationError("launch is not initialized")

    def summary(self) -> dict:
        with self._lock:
            self._require_initialized()
            return {
                "launch_id": self.launch_id,
                "address": self.address,
                "name": self.token.name,
                "symbol": self.token.symbol,
                "token": self.token.address,
                "creator": self.creator,
                "config": self.params.model_dump(),
                "tokens_sold": self._tokens_sold,
                "bnb_raised": self._bnb_raised,
                "graduated": self._graduated,
                "current_price": self.get_current_price(),
                "market_cap": self.get_market_cap(),
                "progress_bps": self.progress_bps(),
                "liquidity_pool": self._liquidity_receipt.pool_id if self._liquidity_receipt else None,
            }
