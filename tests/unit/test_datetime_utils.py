"""UTC helpers and strictly advancing timestamps."""

from datetime import UTC, datetime, timedelta, timezone

from fileflow.shared.utils.datetime import advance_timestamp, ensure_utc, parse_iso_utc, utc_now


def test_utc_now_is_aware() -> None:
    assert utc_now().tzinfo is UTC


def test_ensure_utc_naive_and_offset() -> None:
    naive = datetime(2024, 1, 1, 12, 0)
    assert ensure_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    plus_two = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_utc(plus_two) == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    assert ensure_utc(None) is None


def test_advance_timestamp_moves_past_future_previous() -> None:
    future = utc_now() + timedelta(hours=1)
    assert advance_timestamp(future) == future + timedelta(microseconds=1)


def test_advance_timestamp_uses_now_when_previous_is_old() -> None:
    old = utc_now() - timedelta(days=1)
    stamp = advance_timestamp(old)
    assert stamp > old
    assert stamp - old > timedelta(hours=23)


def test_advance_timestamp_without_previous() -> None:
    assert advance_timestamp(None).tzinfo is UTC


def test_parse_iso_utc() -> None:
    assert parse_iso_utc("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, tzinfo=UTC)
    assert parse_iso_utc("2024-03-01T10:00:00") == datetime(2024, 3, 1, 10, tzinfo=UTC)
    assert parse_iso_utc(None) is None
