"""aurafi.vault.guard

One mutating call at a time per ledger.

A collaborator that calls back into the vault while a mutation is running is
refused outright.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from aurafi.core.exceptions import ReentrantCallError


class ReentrancyGuard:
    def __init__(self, name: str) -> None:
        self.name = name
        self._active: str | None = None

    @property
    def active(self) -> str | None:
        return self._active

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        if self._active is not None:
            raise ReentrantCallError(f"{self.name}: {operation} called during {self._active}")
        self._active = operation
        try:
            yield
        finally:
            self._active = None
