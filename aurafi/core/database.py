"""aurafi.core.database

The journal: append-only vault events with a hash chain.

Ledger state lives in memory and is authoritative. The journal is what lets
someone else check the story afterwards.

One file may hold many ledgers. Each ledger numbers its own events from 1
with no gaps; the hash chain runs across all of them in append order.
"""

from __future__ import annotations

import json
import sqlite3
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from aurafi.core.events import EventType, canonical_json, event_type_for, validate_payload
from aurafi.core.exceptions import EventStoreError
from aurafi.core.models import Event, compute_event_hash
from aurafi.core.time import dt_to_iso, ensure_utc, parse_dt, utc_now

SCHEMA = """
CREATE TABLE IF NOT EXISTS vault_events (
    id TEXT PRIMARY KEY,
    ledger_id TEXT NOT NULL,
    seq INTEGER NOT NULL,
    type TEXT NOT NULL,
    ts TEXT NOT NULL,
    source TEXT,
    payload TEXT NOT NULL,
    prev_hash TEXT,
    hash TEXT NOT NULL UNIQUE,
    UNIQUE (ledger_id, seq)
);

CREATE INDEX IF NOT EXISTS idx_vault_events_type ON vault_events(type);
CREATE INDEX IF NOT EXISTS idx_vault_events_ts ON vault_events(ts);
"""


@dataclass
class Database:
    """SQLite vault journal."""

    db_path: Path

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        with self.conn:
            self.conn.executescript(SCHEMA)
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")
        row = self.conn.execute("SELECT hash FROM vault_events ORDER BY rowid DESC LIMIT 1").fetchone()
        self._head: str | None = None if row is None else str(row[0])

    def close(self) -> None:
        self.conn.close()

    def last_seq(self, ledger_id: str) -> int:
        """Sequence number of the ledger's newest event, 0 if it has none."""

        row = self.conn.execute(
            "SELECT COALESCE(MAX(seq), 0) FROM vault_events WHERE ledger_id = ?", (ledger_id,)
        ).fetchone()
        return int(row[0])

    def append(self, payload: BaseModel, *, source: str | None = None, ts: datetime | None = None) -> Event:
        """Journal one vault event. The event type follows from the payload model."""

        event_type = event_type_for(payload)
        body = payload.model_dump(mode="json")
        ledger_id = body.get("ledger_id")
        if not isinstance(ledger_id, str) or not ledger_id:
            raise EventStoreError(f"{type(payload).__name__} carries no ledger_id")

        with self._lock:
            when = ensure_utc(ts or utc_now())
            event_id = str(uuid.uuid4())
            try:
                seq = self.last_seq(ledger_id) + 1
                h = compute_event_hash(
                    prev_hash=self._head,
                    event_type=event_type,
                    payload=body,
                    ts=when,
                    event_id=event_id,
                    ledger_id=ledger_id,
                    seq=seq,
                    source=source,
                )
                with self.conn:
                    self.conn.execute(
                        "INSERT INTO vault_events (id, ledger_id, seq, type, ts, source, payload, prev_hash, hash) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        (
                            event_id,
                            ledger_id,
                            seq,
                            str(event_type),
                            dt_to_iso(when),
                            source,
                            canonical_json(body),
                            self._head,
                            h,
                        ),
                    )
            except sqlite3.Error as e:
                raise EventStoreError(f"journal append failed for {ledger_id}: {e}") from e

            event = Event(
                id=event_id,
                ledger_id=ledger_id,
                seq=seq,
                type=event_type,
                ts=when,
                source=source,
                payload=json.loads(canonical_json(body)),
                prev_hash=self._head,
                hash=h,
            )
            self._head = h
            return event

    def get_events(
        self,
        *,
        ledger_id: str | None = None,
        event_type: EventType | None = None,
        since: datetime | None = None,
        limit: int = 100,
    ) -> list[Event]:
        """Newest first."""

        clauses: list[str] = []
        args: list[Any] = []
        if ledger_id is not None:
            clauses.append("ledger_id = ?")
            args.append(ledger_id)
        if event_type is not None:
            clauses.append("type = ?")
            args.append(str(event_type))
        if since is not None:
            clauses.append("ts >= ?")
            args.append(dt_to_iso(since))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.conn.execute(
            f"SELECT * FROM vault_events {where} ORDER BY rowid DESC LIMIT ?", (*args, limit)
        ).fetchall()
        return [self._row_to_event(r) for r in rows]

    def replay(self, ledger_id: str) -> list[BaseModel]:
        """Every payload the ledger journaled, oldest first, parsed back into its model."""

        rows = self.conn.execute(
            "SELECT type, payload FROM vault_events WHERE ledger_id = ? ORDER BY seq ASC", (ledger_id,)
        ).fetchall()
        return [validate_payload(EventType(str(r["type"])), json.loads(r["payload"])) for r in rows]

    def count_events(self, *, ledger_id: str | None = None, event_type: EventType | None = None) -> int:
        q = "SELECT COUNT(*) FROM vault_events WHERE (? IS NULL OR ledger_id = ?) AND (? IS NULL OR type = ?)"
        et = None if event_type is None else str(event_type)
        row = self.conn.execute(q, (ledger_id, ledger_id, et, et)).fetchone()
        return int(row[0])

    def verify_hash_chain(self, *, fast: bool = False, last_n: int = 2000) -> bool:
        """Check links, hashes and per-ledger numbering.

        fast=True checks only the newest ``last_n`` events and trusts the
        first one's prev_hash and sequence number.
        """

        rows = self.conn.execute("SELECT * FROM vault_events ORDER BY rowid ASC").fetchall()
        partial = fast and len(rows) > last_n
        if partial:
            rows = rows[-last_n:]
        prev = rows[0]["prev_hash"] if partial else None
        seqs: dict[str, int] = {}

        for row in rows:
            if row["prev_hash"] != prev:
                return False
            e = self._row_to_event(row)
            last = seqs.get(e.ledger_id)
            if last is None:
                if not partial and e.seq != 1:
                    return False
            elif e.seq != last + 1:
                return False
            seqs[e.ledger_id] = e.seq

            expected = compute_event_hash(
                prev_hash=prev,
                event_type=e.type,
                payload=e.payload,
                ts=e.ts,
                event_id=e.id,
                ledger_id=e.ledger_id,
                seq=e.seq,
                source=e.source,
            )
            if expected != e.hash:
                return False
            prev = expected
        return True

    def _row_to_event(self, row: sqlite3.Row) -> Event:
        return Event(
            id=str(row["id"]),
            ledger_id=str(row["ledger_id"]),
            seq=int(row["seq"]),
            type=EventType(str(row["type"])),
            ts=parse_dt(str(row["ts"])),
            source=row["source"],
            payload=json.loads(row["payload"]),
            prev_hash=row["prev_hash"],
            hash=str(row["hash"]),
        )
