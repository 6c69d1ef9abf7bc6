"""Tests for the clock abstraction and fiscal-year helper."""

from datetime import date, datetime, timezone

import pytest

from ledger_kernel.domain.clock import DeterministicClock, SystemClock, fiscal_year_start


class TestClocks:

    def test_deterministic_clock_is_fixed(self):
        clock = DeterministicClock.on(date(2024, 6, 30))
        assert clock.now() == datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)
        assert clock.now() == clock.now()
        assert clock.today() == date(2024, 6, 30)

    def test_advance(self):
        clock = DeterministicClock.on(date(2024, 6, 30))
        clock.advance(days=1)
        assert clock.today() == date(2024, 7, 1)

    def test_system_clock_is_aware(self):
        assert SystemClock().now().tzinfo is not None


class TestFiscalYearStart:

    @pytest.mark.parametrize(
        "on,month,expected",
        [
            (date(2024, 6, 30), 1, date(2024, 1, 1)),
            (date(2024, 1, 1), 1, date(2024, 1, 1)),
            (date(2024, 6, 30), 4, date(2024, 4, 1)),
            (date(2024, 3, 31), 4, date(2023, 4, 1)),
            (date(2024, 6, 30), 7, date(2023, 7, 1)),
            (date(2024, 12, 31), 12, date(2024, 12, 1)),
        ],
    )
    def test_start(self, on, month, expected):
        assert fiscal_year_start(on, month) == expected

    @pytest.mark.parametrize("month", [0, 13])
    def test_month_bounds(self, month):
        with pytest.raises(ValueError):
            fiscal_year_start(date(2024, 1, 1), month)
