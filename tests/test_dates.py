"""tests/test_dates.py

Unit tests for relative date parsing (assistant/dates.py).
"""

from __future__ import annotations

# Standard Library
import datetime

# Third-Party Libraries
import pytest

# Local Modules
from assistant.dates import add_months, parse_relative_date

TODAY = datetime.date(2025, 1, 31)


class TestParseRelativeDate:
    """Test suite for parse_relative_date with a fixed reference date."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("demain", "2025-02-01"),
            ("tomorrow", "2025-02-01"),
            ("après-demain", "2025-02-02"),
            ("day after tomorrow", "2025-02-02"),
            ("aujourd'hui", "2025-01-31"),
            ("today", "2025-01-31"),
            ("la semaine prochaine", "2025-02-07"),
            ("next week", "2025-02-07"),
            ("le mois prochain", "2025-02-28"),
            ("next month", "2025-02-28"),
            ("dans 3 jours", "2025-02-03"),
            ("in 2 weeks", "2025-02-14"),
            ("dans 2 mois", "2025-03-31"),
            ("2025-06-01", "2025-06-01"),
        ],
    )
    def test_expressions(self, text: str, expected: str) -> None:
        """Test each supported expression in both languages."""
        assert parse_relative_date(text, today=TODAY) == expected

    def test_invalid_iso_date(self) -> None:
        """Test an impossible calendar date yields None."""
        assert parse_relative_date("2025-02-30", today=TODAY) is None

    def test_unknown_expression(self) -> None:
        """Test text without a date expression yields None."""
        assert parse_relative_date("un jour peut-être", today=TODAY) is None

    def test_defaults_to_current_date(self) -> None:
        """Test the reference date defaults to today."""
        assert parse_relative_date("today") == datetime.date.today().isoformat()


class TestAddMonths:
    """Test suite for add_months."""

    def test_clamps_to_month_end(self) -> None:
        """Test the day is clamped when the target month is shorter."""
        assert add_months(datetime.date(2024, 1, 31), 1) == datetime.date(2024, 2, 29)

    def test_crosses_year_boundary(self) -> None:
        """Test months roll over into the next year."""
        assert add_months(datetime.date(2025, 11, 15), 3) == datetime.date(2026, 2, 15)

    def test_negative_shift(self) -> None:
        """Test negative offsets move backwards."""
        assert add_months(datetime.date(2025, 3, 31), -1) == datetime.date(2025, 2, 28)
