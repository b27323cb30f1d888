from datetime import datetime, timedelta, timezone

import pytest

from tillpoint.time_utils import parse_iso_datetime, to_millis, to_utc_z


def test_wire_format_has_milliseconds_and_z():
    assert to_utc_z(datetime(2026, 10, 19, 9, 30, 0, 123456)) == "2026-10-19T09:30:00.123Z"
    assert to_utc_z(None) is None


def test_offsets_are_normalized_to_naive_utc():
    assert parse_iso_datetime("2026-10-19T11:30:00+02:00") == datetime(2026, 10, 19, 9, 30)
    assert parse_iso_datetime("2026-10-19T09:30:00Z") == datetime(2026, 10, 19, 9, 30)
    assert parse_iso_datetime("2026-10-19T09:30") == datetime(2026, 10, 19, 9, 30)
    assert parse_iso_datetime("  ") is None


def test_aware_datetime_serializes_in_utc():
    aware = datetime(2026, 10, 19, 4, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert to_utc_z(aware) == "2026-10-19T09:30:00.000Z"


def test_garbage_is_rejected():
    with pytest.raises(ValueError):
        parse_iso_datetime("yesterday")


def test_millisecond_value_round_trips():
    value = to_millis(datetime(2026, 10, 19, 9, 30, 0, 987654))
    assert value.microsecond == 987000
    assert parse_iso_datetime(to_utc_z(value)) == value
