"""aurafi.core.models

Core domain models.

The event record is immutable. The journal is append-only.
"""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from aurafi.core.events import EventType, canonical_json


class Event(BaseModel):
    """Immutable journal record. ``seq`` counts from 1 per ledger."""

    id: str
    ledger_id: str
    seq: int
    type: EventType
    ts: datetime
    source: str | None = None
    payload: dict[str, Any]
    prev_hash: str | None = None
    hash: str

    model_config = {"frozen": True}


def compute_event_hash(
    *,
    prev_hash: str | None,
    event_type: EventType,
    payload: dict[str, Any],
    ts: datetime,
    event_id: str,
    ledger_id: str,
    seq: int,
    source: str | None = None,
) -> str:
    """SHA-256 over the previous hash, the event header and the canonical payload.

    Hash = sha256(prev_hash | ts | event_id | ledger_id | seq | type | source | payload_json)
    """

    header = [prev_hash or "", ts.isoformat(), event_id, ledger_id, str(seq), str(event_type), source or ""]
    data = "|".join(header) + "|" + canonical_json(payload)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()
