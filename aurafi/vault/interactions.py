"""aurafi.vault.interactions

Outbound calls made by one vault transaction.

Token moves go out immediately and are recorded so a failed call can reverse
them. Value transfers (fees and payouts) are queued and sent by
``settle`` only once the books reconcile. Sent value is final: if a later
transfer fails, the earlier ones stay sent and are logged.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from aurafi.core.exceptions import InvariantViolation
from aurafi.vault.types import VaultContext


@dataclass(slots=True)
class Interactions:
    ctx: VaultContext
    # (op, owner, qty) for every token move that went through, oldest first.
    token_moves: list[tuple[str, str, int]] = field(default_factory=list)
    # (recipient or None for the fee sink, amount), in call order.
    transfers: list[tuple[str | None, int]] = field(default_factory=list)
    sent: int = 0

    def mint(self, owner: str, qty: int) -> None:
        self.ctx.token.mint(owner, qty, caller=self.ctx.address)
        self.token_moves.append(("mint", owner, qty))

    def burn(self, owner: str, qty: int) -> None:
        self.ctx.token.burn(owner, qty, caller=self.ctx.address)
        self.token_moves.append(("burn", owner, qty))

    def deposit_fee(self, amount: int) -> None:
        if amount > 0:
            self.transfers.append((None, amount))

    def pay(self, recipient: str, amount: int) -> None:
        if amount > 0:
            self.transfers.append((recipient, amount))

    def settle(self) -> None:
        for recipient, amount in self.transfers:
            if recipient is None:
                self.ctx.fee_sink.deposit(amount)
            else:
                self.ctx.payouts.send(recipient, amount)
            self.sent += 1

    def rollback(self) -> None:
        """Reverse every recorded token move, newest first.

        Raises InvariantViolation if the token refuses a reversal; the token
        and the ledger no longer agree at that point.
        """

        if self.sent:
            self.ctx.logger.error(
                "transfers_already_sent",
                extra={"vault": self.ctx.address, "sent": self.transfers[: self.sent]},
            )
        while self.token_moves:
            op, owner, qty = self.token_moves.pop()
            try:
                if op == "mint":
                    self.ctx.token.burn(owner, qty, caller=self.ctx.address)
                else:
                    self.ctx.token.mint(owner, qty, caller=self.ctx.address)
            except Exception as e:
                raise InvariantViolation(f"could not reverse token {op} of {qty} for {owner}") from e
