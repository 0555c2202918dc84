"""aurafi.integrations.settlement

Where value goes when it leaves the vault.

- fees and creator penalties -> FeeSink
- redemptions and liquidation bounties -> PayoutRail
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@runtime_checkable
class FeeSink(Protocol):
    def deposit(self, amount: int) -> None: ...


@runtime_checkable
class PayoutRail(Protocol):
    def send(self, recipient: str, amount: int) -> None: ...


@dataclass
class FeeAccumulator:
    """Accepts value, returns nothing. Counts what it was given."""

    total: int = 0
    deposits: int = 0

    def deposit(self, amount: int) -> None:
        if amount < 0:
            raise ValueError("deposit amount must be >= 0")
        self.total += amount
        self.deposits += 1


@dataclass
class PayoutLedger:
    """Records native value sent to each recipient."""

    paid: dict[str, int] = field(default_factory=dict)

    def send(self, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("payout amount must be >= 0")
        self.paid[recipient] = self.paid.get(recipient, 0) + amount

    def paid_to(self, recipient: str) -> int:
        return self.paid.get(recipient, 0)

    @property
    def total(self) -> int:
        return sum(self.paid.values())
