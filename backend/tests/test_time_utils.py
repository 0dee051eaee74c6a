# Overview: Pytest coverage for timestamp parsing and serialization.

from datetime import datetime, timedelta, timezone

import pytest

from tillcore.time_utils import parse_sale_timestamp, shift_duration_seconds, to_utc_z
from tillcore.validation import ValidationError


def test_offset_is_converted_to_utc():
    assert parse_sale_timestamp("2026-10-17T14:30:00+02:00") == datetime(2026, 10, 17, 12, 30)
    assert parse_sale_timestamp("2026-10-17T12:30:00Z") == datetime(2026, 10, 17, 12, 30)


def test_naive_and_blank_values():
    assert parse_sale_timestamp("2026-10-17T12:30") == datetime(2026, 10, 17, 12, 30)
    assert parse_sale_timestamp("   ") is None
    assert parse_sale_timestamp(None) is None


def test_aware_datetime_is_normalized():
    aware = datetime(2026, 10, 17, 9, 0, tzinfo=timezone(timedelta(hours=-3)))
    assert parse_sale_timestamp(aware) == datetime(2026, 10, 17, 12, 0)


@pytest.mark.parametrize("bad", ["yesterday", "2026-13-40", 1760700000])
def test_garbage_rejected(bad):
    with pytest.raises(ValidationError):
        parse_sale_timestamp(bad)


def test_shift_duration():
    opened = datetime(2026, 10, 17, 8, 0)
    assert shift_duration_seconds(opened, opened + timedelta(hours=8, seconds=5)) == 28805
    assert shift_duration_seconds(opened, None) is None


def test_to_utc_z_drops_microseconds():
    assert to_utc_z(datetime(2026, 10, 17, 12, 0, 0, 999)) == "2026-10-17T12:00:00Z"
    assert to_utc_z(None) is None
