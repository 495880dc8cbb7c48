from datetime import date

import pytest

from backend.app.core.settings import reset_settings
from backend.app.core.time import utc_today
from backend.app.services.numbering import day_prefix, next_invoice_number, parse_sequence

DAY = date(2025, 1, 31)
PREFIX = "PINV/2025/01/31"


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


def test_first_number_of_the_day_uses_base():
    assert next_invoice_number(DAY, []) == f"{PREFIX}980001"


def test_next_number_follows_existing():
    assert next_invoice_number(DAY, [f"{PREFIX}980001"]) == f"{PREFIX}980002"


def test_next_number_is_max_plus_one_not_count():
    existing = [f"{PREFIX}980005", f"{PREFIX}980003"]
    assert next_invoice_number(DAY, existing) == f"{PREFIX}980006"


def test_days_do_not_influence_each_other():
    existing = ["PINV/2025/01/01980007", "PINV/2025/01/01980008"]
    assert next_invoice_number(date(2025, 1, 2), existing) == "PINV/2025/01/02980001"
    assert next_invoice_number(date(2025, 1, 1), existing) == "PINV/2025/01/01980009"


def test_unparseable_numbers_are_skipped():
    existing = [f"{PREFIX}980004-COPY", f"{PREFIX}abc", f"{PREFIX}12", None]
    assert next_invoice_number(DAY, existing) == f"{PREFIX}980001"


def test_missing_or_bad_date_falls_back_to_today():
    today_prefix = day_prefix(utc_today())
    assert next_invoice_number(None, []).startswith(today_prefix)
    assert next_invoice_number("not-a-date", []).startswith(today_prefix)


def test_date_strings_and_datetimes_are_accepted():
    assert day_prefix("2025-01-31") == PREFIX
    assert day_prefix("2025-01-31T18:30:00Z") == PREFIX


def test_allocation_is_pure():
    existing = [f"{PREFIX}980001"]
    assert next_invoice_number(DAY, existing) == next_invoice_number(DAY, existing)
    assert existing == [f"{PREFIX}980001"]


def test_prefix_and_base_overrides():
    assert next_invoice_number(DAY, [], prefix="INV", base=100001) == "INV/2025/01/31100001"


def test_prefix_from_environment(monkeypatch):
    monkeypatch.setenv("GST_INVOICE_PREFIX", "TEST")
    monkeypatch.setenv("GST_INVOICE_SEQUENCE_BASE", "500001")
    reset_settings()
    assert next_invoice_number(DAY, []) == "TEST/2025/01/31500001"


def test_parse_sequence():
    assert parse_sequence(f"{PREFIX}980042", PREFIX) == 980042
    assert parse_sequence("PINV/2025/01/30980042", PREFIX) is None
    assert parse_sequence(42, PREFIX) is None
