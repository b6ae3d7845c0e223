"""
In-memory custody for the paired token and for the base currency.

`LaunchToken` is the fungible token minted per launch (mint, transfer, balance
query). `PaymentLedger` records base-currency payouts to sellers, fee
recipients and liquidity pools.
"""

import threading
from collections import defaultdict
from typing import Dict

from launchpad_app.errors import InsufficientBalance, ValidationError


class LaunchToken:
    """Fungible token with a fixed supply minted once at creation."""

    def __init__(self):
        self.address = ""
        self.name = ""
        self.symbol = ""
        self.total_supply = 0
        self._balances: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()
        self._minted = False

    def clone(self) -> "LaunchToken":
        return type(self)()

    def mint(self, address: str, name: str, symbol: str, amount: int, to: str) -> None:
        with self._lock:
            if self._minted:
                raise ValidationError(f"token {self.symbol} was already minted")
            if amount <= 0:
                raise ValidationError("mint amount must be > 0")
            self.address = address
            self.name = name
            self.symbol = symbol
            self.total_supply = amount
            self._balances[to] += amount
            self._minted = True

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError("transfer amount must be >= 0")
        with self._lock:
            available = self._balances.get(sender, 0)
            if available < amount:
                raise InsufficientBalance(
                    f"{sender} holds {available} {self.symbol}, cannot transfer {amount}"
                )
            self._balances[sender] = available - amount
            self._balances[recipient] += amount


class PaymentLedger:
    """Base-currency balances credited by launches (sell payouts, fees, pools)."""

    def __init__(self):
        self._balances: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def credit(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError("credit amount must be >= 0")
        if amount == 0:
            return
        with self._lock:
            self._balances[account] += amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)
