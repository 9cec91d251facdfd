"""Tests for interval, market-hours and accuracy helpers."""

from __future__ import annotations

from datetime import datetime

import pytest

from app.core.utils import INTERVALS, accuracy_pct, interval_to_ms, is_market_hours

MIN = 60_000
HOUR = 3_600_000
DAY = 86_400_000


class TestIntervalToMs:
    @pytest.mark.parametrize(
        "token, expected",
        [
            ("1min", MIN),
            ("5min", 5 * MIN),
            ("15min", 15 * MIN),
            ("30min", 30 * MIN),
            ("45min", 45 * MIN),
            ("1h", HOUR),
            ("2h", 2 * HOUR),
            ("4h", 4 * HOUR),
            ("1day", DAY),
            ("1week", 604_800_000),
            ("1month", 2_592_000_000),
        ],
    )
    def test_known_tokens(self, token: str, expected: int) -> None:
        assert interval_to_ms(token) == expected

    def test_every_supported_interval_is_mapped(self) -> None:
        assert all(interval_to_ms(t) > 0 for t in INTERVALS)

    @pytest.mark.parametrize("token", ["", "daily", "3day", "1year", "xh"])
    def test_unknown_defaults_to_one_day(self, token: str) -> None:
        assert interval_to_ms(token) == DAY


class TestMarketHours:
    def test_weekday_open(self) -> None:
        assert is_market_hours(datetime(2026, 10, 19, 9, 0))
        assert is_market_hours(datetime(2026, 10, 23, 16, 45))

    def test_weekday_closed(self) -> None:
        assert not is_market_hours(datetime(2026, 10, 19, 8, 59))
        assert not is_market_hours(datetime(2026, 10, 19, 17, 0))

    def test_weekend(self) -> None:
        assert not is_market_hours(datetime(2026, 10, 18, 12, 0))


class TestAccuracy:
    def test_exact_prediction(self) -> None:
        assert accuracy_pct("100.00", "100.00") == 100.0

    def test_percentage_error(self) -> None:
        assert accuracy_pct("101.50", "100.00") == 98.5
        assert accuracy_pct("95", "100") == 95.0

    def test_unusable_values(self) -> None:
        assert accuracy_pct("abc", "100") is None
        assert accuracy_pct("100", "0") is None
        assert accuracy_pct(None, "100") is None
