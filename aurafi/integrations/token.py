"""aurafi.integrations.token

Restricted-mint token counter.

Only the bound minter (the vault) may mint or burn. Everyone else is refused.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from aurafi.core.exceptions import TokenLedgerError


@runtime_checkable
class TokenLedger(Protocol):
    @property
    def total_supply(self) -> int: ...

    def balance_of(self, owner: str) -> int: ...

    def mint(self, owner: str, qty: int, *, caller: str) -> None: ...

    def burn(self, owner: str, qty: int, *, caller: str) -> None: ...


class RestrictedToken:
    def __init__(self, symbol: str, *, minter: str | None = None) -> None:
        self.symbol = symbol
        self._minter = minter
        self._balances: dict[str, int] = {}
        self._total_supply = 0

    @property
    def minter(self) -> str | None:
        return self._minter

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def bind_minter(self, minter: str) -> None:
        """One-shot. A token serves exactly one vault."""

        if self._minter is not None and self._minter != minter:
            raise TokenLedgerError(f"{self.symbol}: minter already bound to {self._minter}")
        self._minter = minter

    def balance_of(self, owner: str) -> int:
        return self._balances.get(owner, 0)

    def _require_minter(self, caller: str) -> None:
        if self._minter is None or caller != self._minter:
            raise TokenLedgerError(f"{self.symbol}: {caller} is not the minter")

    def mint(self, owner: str, qty: int, *, caller: str) -> None:
        self._require_minter(caller)
        if qty <= 0:
            raise TokenLedgerError(f"{self.symbol}: mint qty must be > 0")
        self._balances[owner] = self.balance_of(owner) + qty
        self._total_supply += qty

    def burn(self, owner: str, qty: int, *, caller: str) -> None:
        self._require_minter(caller)
        if qty <= 0:
            raise TokenLedgerError(f"{self.symbol}: burn qty must be > 0")
        bal = self.balance_of(owner)
        if bal < qty:
            raise TokenLedgerError(f"{self.symbol}: burn {qty} exceeds balance {bal} of {owner}")
        self._balances[owner] = bal - qty
        self._total_supply -= qty
