"""
Launch factory and registry.

New launches are cloned from one shared Launch/LaunchToken template and
initialized exactly once. The registry is append-only and ordered by
creation; a launch's identifier is its index in the registry.
"""

import logging
import threading
from typing import List, Optional

import pydantic

from launchpad_app.errors import FeeOutOfRange, LaunchNotFound, Unauthorized, ValidationError
from launchpad_app.schemas import BPS_DENOMINATOR, CurveParams
from launchpad_app.services.launch import Launch
from launchpad_app.services.ledger import LaunchToken, PaymentLedger
from launchpad_app.services.pricing import market_cap
from launchpad_app.services.venue import LiquidityVenue

logger = logging.getLogger(__name__)


def check_fees(creator_fee_bps: int, platform_fee_bps: int) -> None:
    for name, value in (("creator_fee_bps", creator_fee_bps), ("platform_fee_bps", platform_fee_bps)):
        if value < 0 or value > BPS_DENOMINATOR:
            raise FeeOutOfRange(f"{name} must be between 0 and {BPS_DENOMINATOR}, got {value}")
    if creator_fee_bps + platform_fee_bps > BPS_DENOMINATOR:
        raise FeeOutOfRange(
            f"creator_fee_bps + platform_fee_bps must be <= {BPS_DENOMINATOR}, "
            f"got {creator_fee_bps + platform_fee_bps}"
        )


class LaunchFactory:
    def __init__(
        self,
        owner: str,
        fee_recipient: str,
        payments: PaymentLedger,
        venue: LiquidityVenue,
        creator_fee_bps: int = 50,
        platform_fee_bps: int = 100,
        launch_template: Optional[Launch] = None,
        token_template: Optional[LaunchToken] = None,
    ):
        check_fees(creator_fee_bps, platform_fee_bps)
        self.owner = owner
        self.fee_recipient = fee_recipient
        self.payments = payments
        self.venue = venue
        self.default_creator_fee_bps = creator_fee_bps
        self.default_platform_fee_bps = platform_fee_bps
        self.launch_template = launch_template or Launch()
        self.token_template = token_template or LaunchToken()
        self._launches: List[Launch] = []
        self._lock = threading.Lock()

    def create_launch(
        self,
        name: str,
        symbol: str,
        total_supply: int,
        initial_price: int,
        price_increment: int,
        graduation_threshold: int,
        enable_sell: bool,
        creator: str,
    ) -> int:
        if not name or not symbol:
            raise ValidationError("name and symbol must not be empty")
        if not creator:
            raise ValidationError("creator must not be empty")
        if total_supply <= 0:
            raise ValidationError("total_supply must be > 0")
        if initial_price <= 0:
            raise ValidationError("initial_price must be > 0")
        if price_increment < 0:
            raise ValidationError("price_increment must be >= 0")
        if graduation_threshold <= 0:
            raise ValidationError("graduation_threshold must be > 0")

        with self._lock:
            try:
                params = CurveParams(
                    initial_price=initial_price,
                    price_increment=price_increment,
                    total_supply=total_supply,
                    graduation_threshold=graduation_threshold,
                    creator_fee_bps=self.default_creator_fee_bps,
                    platform_fee_bps=self.default_platform_fee_bps,
                    enable_sell=enable_sell,
                )
            except pydantic.ValidationError as exc:
                raise ValidationError(str(exc)) from exc
            if market_cap(total_supply - 1, params) < graduation_threshold <= market_cap(total_supply, params):
                # Only a sell-out buy would cross it, which leaves no tokens to pool.
                raise ValidationError(
                    f"graduation_threshold {graduation_threshold} is only reached by selling the whole supply"
                )

            launch_id = len(self._launches)
            launch = self.launch_template.clone()
            token = self.token_template.clone()
            address = f"launch-{launch_id}"

            token.mint(f"token-{launch_id}", name, symbol, total_supply, to=address)
            launch.initialize(
                launch_id=launch_id,
                address=address,
                creator=creator,
                params=params,
                token=token,
                payments=self.payments,
                venue=self.venue,
                platform_fee_recipient=self.fee_recipient,
            )
            self._launches.append(launch)

        logger.info(
            "Created launch %d (%s/%s) for %s: supply=%d p0=%d inc=%d threshold=%d fees=%d/%d",
            launch_id, name, symbol, creator, total_supply, initial_price, price_increment,
            graduation_threshold, params.creator_fee_bps, params.platform_fee_bps,
        )
        return launch_id

    def get_launch(self, launch_id: int) -> Launch:
        if launch_id < 0 or launch_id >= len(self._launches):
            raise LaunchNotFound(f"no launch with id {launch_id}")
        return self._launches[launch_id]

    def get_all_launches(self) -> List[Launch]:
        return list(self._launches)

    def get_launch_count(self) -> int:
        return len(self._launches)

    def set_default_fees(self, creator_fee_bps: int, platform_fee_bps: int, caller: str) -> None:
        if caller != self.owner:
            raise Unauthorized("only the factory owner can change default fees")
        check_fees(creator_fee_bps, platform_fee_bps)
        with self._lock:
            self.default_creator_fee_bps = creator_fee_bps
            self.default_platform_fee_bps = platform_fee_bps
        logger.info("Default fees set to creator=%d platform=%d bps", creator_fee_bps, platform_fee_bps)

    def info(self) -> dict:
        return {
            "owner": self.owner,
            "fee_recipient": self.fee_recipient,
            "default_creator_fee_bps": self.default_creator_fee_bps,
            "default_platform_fee_bps": self.default_platform_fee_bps,
            "launch_template": type(self.launch_template).__name__,
            "token_template": type(self.token_template).__name__,
            "launch_count": self.get_launch_count(),
        }
