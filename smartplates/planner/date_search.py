"""
Parsing for the calendar's jump-to-date box.
"""

import logging
import re
from datetime import date, datetime
from typing import Optional

logger = logging.getLogger(__name__)

# Checked in order; the first pattern that matches decides the format
JUMP_FORMATS = (
    (re.compile(r"^\d{4}-\d{2}-\d{2}$"), "%Y-%m-%d"),
    (re.compile(r"^\d{2}/\d{2}/\d{4}$"), "%d/%m/%Y"),
    (re.compile(r"^\d{2}\.\d{2}\.\d{4}$"), "%d.%m.%Y"),
    (re.compile(r"^\d{4}-\d{2}$"), "%Y-%m"),
)


def parse_jump_date(raw: Optional[str]) -> Optional[date]:
    """
    Parse user input from the jump-to-date box.

    Accepted: "2025-10-15", "15/10/2025", "15.10.2025" and "2025-10"
    (the first of that month).

    Args:
        raw: Text as typed

    Returns:
        The date, or None for empty input, an unknown format or a date
        that does not exist ("31/02/2025")
    """
    if not raw:
        return None
    text = raw.strip()

    for pattern, fmt in JUMP_FORMATS:
        if pattern.match(text):
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                logger.debug(f"Ignoring invalid date {text!r}")
                return None

    return None
