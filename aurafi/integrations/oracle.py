"""aurafi.integrations.oracle

Aura comes from outside. The core only ever asks one question:

    get_aura(ledger_id) -> int in [0, aura_max]

No caching, no retries. A failed read fails the calling operation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx

from aurafi import A_MAX, A_MIN
from aurafi.core.config import OracleConfig
from aurafi.core.exceptions import OracleError


@runtime_checkable
class OracleFeed(Protocol):
    def get_aura(self, ledger_id: str) -> int: ...


def check_aura(value: object, *, aura_max: int = A_MAX) -> int:
    """Validate a raw oracle reading. bool is not an int here."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise OracleError(f"aura must be an integer, got {type(value).__name__}")
    if value < A_MIN or value > aura_max:
        raise OracleError(f"aura {value} outside [{A_MIN}, {aura_max}]")
    return value


class StaticOracle:
    """In-memory feed. The admin sets scores; the vault reads them.

    Unknown ledgers fail loudly unless a default is configured.
    """

    def __init__(self, scores: dict[str, int] | None = None, *, default: int | None = None) -> None:
        self._scores: dict[str, int] = {}
        self._default = None if default is None else check_aura(default)
        self.reads = 0
        for ledger_id, aura in (scores or {}).items():
            self.set_aura(ledger_id, aura)

    def set_aura(self, ledger_id: str, aura: int) -> None:
        self._scores[ledger_id] = check_aura(aura)

    def get_aura(self, ledger_id: str) -> int:
        self.reads += 1
        if ledger_id in self._scores:
            return self._scores[ledger_id]
        if self._default is not None:
            return self._default
        raise OracleError(f"no aura recorded for ledger {ledger_id}")


class HttpOracleFeed:
    """Reads aura from an HTTP endpoint.

    Contract: ``GET {base_url}/aura/{ledger_id}`` -> ``{"aura": <int>}``.

    One round-trip per read. Transport errors, non-2xx responses and schema
    mismatches all surface as :class:`OracleError`.
    """

    def __init__(
        self,
        config: OracleConfig | None = None,
        *,
        client: httpx.Client | None = None,
        aura_max: int = A_MAX,
    ) -> None:
        self.config = config or OracleConfig()
        self._aura_max = aura_max
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=self.config.base_url, timeout=self.config.timeout_s)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpOracleFeed:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def get_aura(self, ledger_id: str) -> int:
        try:
            resp = self._client.get(f"/aura/{ledger_id}")
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise OracleError(f"aura read failed for {ledger_id}: {e}") from e
        except ValueError as e:
            raise OracleError(f"aura response for {ledger_id} is not JSON") from e

        if not isinstance(data, dict) or "aura" not in data:
            raise OracleError("response_schema_mismatch")
        return check_aura(data["aura"], aura_max=self._aura_max)
