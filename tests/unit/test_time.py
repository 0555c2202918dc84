from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from aurafi.core.time import dt_to_iso, ensure_utc, parse_dt, utc_now


def test_utc_now_is_aware_and_utc() -> None:
    now = utc_now()
    assert now.tzinfo is not None
    assert now.tzinfo == UTC


def test_parse_dt_accepts_z_suffix() -> None:
    dt = parse_dt("2026-02-17T23:33:00Z")
    assert dt.tzinfo == UTC
    assert dt.year == 2026


def test_parse_dt_assumes_naive_is_utc() -> None:
    dt = parse_dt("2026-02-17T23:33:00")
    assert dt.tzinfo == UTC


def test_ensure_utc_converts_offsets() -> None:
    plus_two = datetime(2026, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_utc(plus_two) == datetime(2026, 1, 1, 0, 0, tzinfo=UTC)
    assert ensure_utc(plus_two).tzinfo == UTC


def test_dt_to_iso_round_trip() -> None:
    dt = datetime(2026, 1, 1, 12, tzinfo=UTC)
    assert parse_dt(dt_to_iso(dt) or "") == dt
    assert dt_to_iso(None) is None
