"""
Tests for date parsing and derived values.

A fixed "now" is injected everywhere so results do not depend on the day
the tests are run.
"""

import pytest
from datetime import datetime
from mrzlens.models import DecodedFields
from mrzlens.modules.dates import (
    parse_mrz_date,
    resolve_century,
    days_until,
    age_at,
    derive_dates,
)


NOW = datetime(2024, 1, 1, 12, 0)


# =============================================================================
# TEST parse_mrz_date
# =============================================================================

class TestParseMrzDate:

    @pytest.mark.parametrize("yymmdd, is_expiry, expected", [
        ("740812", False, datetime(1974, 8, 12)),
        ("240101", False, datetime(2024, 1, 1)),   # current year stays in 2000s
        ("250101", False, datetime(1925, 1, 1)),   # next year would be in the future
        ("000229", False, datetime(2000, 2, 29)),  # leap day
        ("120415", True, datetime(2012, 4, 15)),
        ("600101", True, datetime(2060, 1, 1)),    # pivot boundary
        ("610101", True, datetime(1961, 1, 1)),
        ("991231", True, datetime(1999, 12, 31)),
    ])
    def test_pivot(self, yymmdd, is_expiry, expected):
        assert parse_mrz_date(yymmdd, is_expiry, today=NOW) == expected

    @pytest.mark.parametrize("yymmdd", [
        "740230",   # February 30
        "741301",   # month 13
        "740800",   # day 0
        "010229",   # 2001 is not a leap year
        "74081",    # too short
        "7408122",  # too long
        "74O812",   # OCR letter
        "<<<<<<",
        "",
        None,
    ])
    def test_invalid_returns_none(self, yymmdd):
        assert parse_mrz_date(yymmdd, is_expiry=True, today=NOW) is None

    def test_default_today(self):
        assert parse_mrz_date("740812", is_expiry=False) == datetime(1974, 8, 12)


class TestResolveCentury:

    def test_birth_pivot_follows_today(self):
        assert resolve_century(30, False, datetime(2029, 6, 1)) == 1930
        assert resolve_century(30, False, datetime(2031, 6, 1)) == 2030


# =============================================================================
# TEST derived values
# =============================================================================

class TestDaysUntil:

    def test_rounds_up(self):
        assert days_until(datetime(2024, 1, 11), NOW) == 10

    def test_expired_is_negative(self):
        assert days_until(datetime(2023, 12, 1), NOW) < 0

    def test_same_day_midnight(self):
        assert days_until(datetime(2024, 1, 1), NOW) == 0


class TestAgeAt:

    def test_specimen(self):
        assert age_at(datetime(1974, 8, 12), NOW) == 49

    def test_newborn(self):
        assert age_at(datetime(2023, 12, 1), NOW) == 0


class TestDeriveDates:

    def test_all_values(self):
        fields = DecodedFields(birth_date="740812", expiry_date="300101")
        parsed = derive_dates(fields, now=NOW)
        assert parsed.birth_date == datetime(1974, 8, 12)
        assert parsed.expiry_date == datetime(2030, 1, 1)
        assert parsed.days_remaining == 2192
        assert parsed.age == 49

    def test_invalid_dates_give_no_derived_values(self):
        fields = DecodedFields(birth_date="74<812", expiry_date="301399")
        parsed = derive_dates(fields, now=NOW)
        assert parsed.birth_date is None
        assert parsed.expiry_date is None
        assert parsed.days_remaining is None
        assert parsed.age is None

    def test_missing_fields(self):
        parsed = derive_dates(DecodedFields(), now=NOW)
        assert parsed.birth_date is None
        assert parsed.days_remaining is None
