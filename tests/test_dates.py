from datetime import date, datetime

import pytest

from hospital_finance.utils import dates
from hospital_finance.utils.dates import parse_date, resolve_as_on_date, resolve_period


@pytest.fixture
def frozen_today(monkeypatch):
    monkeypatch.setattr(dates, "_today", lambda: date(2024, 5, 17))


def test_parse_date_accepts_common_inputs():
    assert parse_date("2024-02-29") == date(2024, 2, 29)
    assert parse_date("2024-02-29T10:30:00") == date(2024, 2, 29)
    assert parse_date(datetime(2024, 2, 29, 10, 30)) == date(2024, 2, 29)
    assert parse_date("2024-02-30") is None
    assert parse_date("") is None


def test_defaults(frozen_today):
    assert resolve_as_on_date() == date(2024, 5, 17)
    assert resolve_period() == (date(2024, 5, 1), date(2024, 5, 17))


def test_garbage_falls_back_to_defaults(frozen_today):
    assert resolve_as_on_date("17/05/2024") == date(2024, 5, 17)
    assert resolve_period("yesterday", "2024-05-10") == (date(2024, 5, 1), date(2024, 5, 10))


def test_reversed_period_is_swapped(frozen_today):
    assert resolve_period("2024-04-30", "2024-04-01") == (date(2024, 4, 1), date(2024, 4, 30))
