"""
Monthly calendar view state.

Tracks which month is shown and which date is selected, and renders the
month grid for a set of weekly plans.
"""

import logging
from datetime import date
from typing import Iterable, Optional, Tuple

from ..data.models import MealPlan
from ..dates import DateLike, to_date
from .calendar_grid import MonthGrid, grid_range, reconcile_month
from .date_search import parse_jump_date

logger = logging.getLogger(__name__)


class MonthlyCalendar:
    """Month navigation and selection for the calendar view."""

    def __init__(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        selected: Optional[DateLike] = None,
        today: Optional[DateLike] = None,
    ):
        """
        Initialize the calendar.

        Args:
            year: Year to show (defaults to today's)
            month: Month to show, 1-12 (defaults to today's)
            selected: Initially selected date
            today: Override for the current date
        """
        self.today = to_date(today) if today is not None else date.today()
        self.year = year if year is not None else self.today.year
        self.month = month if month is not None else self.today.month
        if self.month < 1 or self.month > 12:
            raise ValueError(f"Month must be between 1 and 12, got {self.month}")
        self.selected_date: Optional[date] = to_date(selected) if selected is not None else None

    def navigate(self, delta: int) -> Tuple[int, int]:
        """
        Move the view by `delta` months (negative goes back).

        Returns:
            The new (year, month)
        """
        index = self.year * 12 + (self.month - 1) + delta
        self.year, month_index = divmod(index, 12)
        self.month = month_index + 1
        return self.year, self.month

    def next_month(self) -> Tuple[int, int]:
        return self.navigate(1)

    def previous_month(self) -> Tuple[int, int]:
        return self.navigate(-1)

    def go_to_today(self):
        """Show the current month and select today."""
        self.year, self.month = self.today.year, self.today.month
        self.selected_date = self.today

    def select(self, value: DateLike):
        self.selected_date = to_date(value)

    def jump_to_date(self, raw: Optional[str]) -> bool:
        """
        Show the month of a typed date and select it.

        Returns:
            True if the input parsed; False leaves the view unchanged
        """
        target = parse_jump_date(raw)
        if target is None:
            logger.debug(f"Jump ignored, could not parse {raw!r}")
            return False

        self.year, self.month = target.year, target.month
        self.selected_date = target
        return True

    def visible_range(self) -> Tuple[date, date]:
        """First and last dates of the 42-cell grid for the current month."""
        return grid_range(self.year, self.month)

    def render(self, plans: Iterable[MealPlan]) -> MonthGrid:
        """Reconcile plans onto the current month's grid."""
        return reconcile_month(
            self.year,
            self.month,
            plans,
            today=self.today,
            selected=self.selected_date,
        )
