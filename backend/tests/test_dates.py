from datetime import date, datetime

import pytest

from satsfolio.dates import add_months, iter_months, month_end, month_key, parse_timestamp


def test_parse_plain_date_string():
    assert parse_timestamp("2024-01-15") == datetime(2024, 1, 15)


def test_parse_iso_timestamp_with_z_suffix():
    assert parse_timestamp("2024-05-20T05:12:44.198Z") == datetime(2024, 5, 20, 5, 12, 44, 198000)


def test_parse_offset_timestamp_is_normalised_to_utc():
    assert parse_timestamp("2024-05-20T23:30:00-03:00") == datetime(2024, 5, 21, 2, 30)


def test_parse_date_objects():
    assert parse_timestamp(date(2024, 2, 29)) == datetime(2024, 2, 29)
    assert parse_timestamp(datetime(2024, 2, 29, 8)) == datetime(2024, 2, 29, 8)


@pytest.mark.parametrize("value", ["", "not a date", "2024-13-01", None, 20240101])
def test_parse_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


def test_month_helpers():
    assert month_end(date(2024, 2, 10)) == date(2024, 2, 29)
    assert month_key(date(2024, 2, 10)) == "2024-02"
    assert add_months(date(2024, 1, 1), -1) == date(2023, 12, 1)
    assert add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)


def test_iter_months_is_inclusive():
    months = list(iter_months(date(2023, 11, 20), date(2024, 2, 1)))
    assert months == [date(2023, 11, 1), date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]
