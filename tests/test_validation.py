# Overview: Pytest coverage for amount parsing and date-range helpers.

from datetime import datetime

import pytest

from cashdesk.errors import InvalidAmountError, ValidationError
from cashdesk.time_utils import parse_range_bound, to_utc_z
from cashdesk.validation import MAX_AMOUNT_CENTS, clean_text, parse_amount_cents, require_text


class TestParseAmountCents:
    @pytest.mark.parametrize("raw,expected", [(1, 1), ("250", 250), (" 99 ", 99), (MAX_AMOUNT_CENTS, MAX_AMOUNT_CENTS)])
    def test_accepts_integer_cents(self, raw, expected):
        assert parse_amount_cents(raw) == expected

    @pytest.mark.parametrize("raw", [None, True, False, 1.0, "1.5", "2e3", "", "ten", [1], MAX_AMOUNT_CENTS + 1])
    def test_rejects_non_cents(self, raw):
        with pytest.raises(InvalidAmountError):
            parse_amount_cents(raw)

    def test_zero_and_negative_flags(self):
        with pytest.raises(InvalidAmountError):
            parse_amount_cents(0)
        assert parse_amount_cents(0, allow_zero=True) == 0
        with pytest.raises(InvalidAmountError):
            parse_amount_cents(-10)
        assert parse_amount_cents(-10, allow_negative=True) == -10

    def test_error_names_the_field(self):
        with pytest.raises(InvalidAmountError, match="opening_balance_cents"):
            parse_amount_cents("x", field="opening_balance_cents")


class TestText:
    def test_clean_text_strips_and_blanks_to_none(self):
        assert clean_text("  hi ", field="notes") == "hi"
        assert clean_text("   ", field="notes") is None
        assert clean_text(None, field="notes") is None

    def test_max_length(self):
        with pytest.raises(ValidationError):
            clean_text("abcdef", field="name", max_length=5)

    def test_require_text(self):
        with pytest.raises(ValidationError):
            require_text("", field="account")


class TestRangeBounds:
    def test_date_only_covers_whole_day(self):
        assert parse_range_bound("2026-03-02") == datetime(2026, 3, 2, 0, 0)
        assert parse_range_bound("2026-03-02", end=True) == datetime(2026, 3, 2, 23, 59, 59, 999999)

    def test_offset_converted_to_utc(self):
        assert parse_range_bound("2026-03-02T10:00:00+02:00") == datetime(2026, 3, 2, 8, 0)
        assert parse_range_bound("2026-03-02T10:00:00Z") == datetime(2026, 3, 2, 10, 0)

    def test_blank_is_unbounded(self):
        assert parse_range_bound(None) is None
        assert parse_range_bound("  ") is None

    def test_garbage_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_range_bound("last tuesday")

    def test_to_utc_z(self):
        assert to_utc_z(datetime(2026, 3, 2, 8, 0, 0, 123)) == "2026-03-02T08:00:00Z"
        assert to_utc_z(None) is None
