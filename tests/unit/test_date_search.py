"""
Unit tests for jump-to-date parsing.
"""

from datetime import date

import pytest

from smartplates.planner.date_search import parse_jump_date


@pytest.mark.parametrize("raw,expected", [
    ("2025-10-15", date(2025, 10, 15)),
    ("15/10/2025", date(2025, 10, 15)),
    ("15.10.2025", date(2025, 10, 15)),
    ("2025-10", date(2025, 10, 1)),
    ("  2025-10-15 ", date(2025, 10, 15)),
    ("29/02/2024", date(2024, 2, 29)),
])
def test_accepted_formats(raw, expected):
    assert parse_jump_date(raw) == expected


@pytest.mark.parametrize("raw", [
    "",
    None,
    "tomorrow",
    "2025/10/15",
    "10-15-2025",
    "5/10/2025",
    "31/02/2025",
    "2025-13",
    "2025-02-30",
])
def test_invalid_input_ignored(raw):
    assert parse_jump_date(raw) is None
