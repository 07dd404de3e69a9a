"""
Monthly calendar grid and reconciliation of weekly plans onto it.

The grid is always 6 weeks x 7 days (42 cells), Sunday first, starting on
the Sunday on or before the first of the month. Cells outside the month
are padding but still show the meals planned for them.
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..data.models import DayMeals, MealPlan
from ..dates import DateLike, to_calendar_date_key

logger = logging.getLogger(__name__)

GRID_CELLS = 42


@dataclass
class CalendarCell:
    """One day in the month grid."""

    date: date
    meals: Optional[DayMeals] = None
    is_today: bool = False
    is_current_month: bool = False
    is_selected: bool = False

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    @property
    def has_events(self) -> bool:
        return self.meals is not None and self.meals.meal_count() > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "date": self.date_key,
            "day": self.date.day,
            "is_today": self.is_today,
            "is_current_month": self.is_current_month,
            "is_selected": self.is_selected,
            "has_events": self.has_events,
            "meal_count": self.meals.meal_count() if self.meals else 0,
            "meals": self.meals.to_dict() if self.meals else None,
        }


@dataclass
class MonthGrid:
    """A reconciled month: the 42 cells plus the month they belong to."""

    year: int
    month: int
    cells: List[CalendarCell] = field(default_factory=list)

    @property
    def title(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    @property
    def weeks(self) -> List[List[CalendarCell]]:
        return [self.cells[i:i + 7] for i in range(0, len(self.cells), 7)]

    def cell_for(self, value: DateLike) -> Optional[CalendarCell]:
        key = to_calendar_date_key(value)
        for cell in self.cells:
            if cell.date_key == key:
                return cell
        return None

    def days_with_meals(self) -> List[CalendarCell]:
        return [cell for cell in self.cells if cell.has_events]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "year": self.year,
            "month": self.month,
            "title": self.title,
            "start_date": self.cells[0].date_key if self.cells else None,
            "end_date": self.cells[-1].date_key if self.cells else None,
            "cells": [cell.to_dict() for cell in self.cells],
        }


def grid_start(year: int, month: int) -> date:
    """
    First date shown in the grid for a month.

    Args:
        year: Four-digit year
        month: 1 (January) through 12

    Returns:
        The Sunday on or before the first of the month

    Raises:
        ValueError: If month is out of range
    """
    if month < 1 or month > 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    first = date(year, month, 1)
    # weekday(): Monday=0 ... Sunday=6
    return first - timedelta(days=(first.weekday() + 1) % 7)


def build_month_grid(year: int, month: int, today: Optional[DateLike] = None) -> List[CalendarCell]:
    """Build the 42 empty cells for a month."""
    today_key = to_calendar_date_key(today or date.today())
    start = grid_start(year, month)

    cells = []
    for offset in range(GRID_CELLS):
        day = start + timedelta(days=offset)
        cells.append(CalendarCell(
            date=day,
            is_today=day.isoformat() == today_key,
            is_current_month=day.month == month and day.year == year,
        ))
    return cells


def reconcile_month(
    year: int,
    month: int,
    plans: Iterable[MealPlan],
    today: Optional[DateLike] = None,
    selected: Optional[DateLike] = None,
) -> MonthGrid:
    """
    Lay every plan day that falls inside the grid onto its cell.

    When two plans cover the same date the cell keeps both: each meal-type
    list is the earlier plan's meals followed by the later plan's.

    Args:
        year: Four-digit year
        month: 1 (January) through 12
        plans: Weekly meal plans in storage order
        today: Date to flag as today (defaults to the local date)
        selected: Date to flag as selected

    Returns:
        MonthGrid with 42 cells
    """
    cells = build_month_grid(year, month, today=today)
    by_key = {cell.date_key: cell for cell in cells}

    if selected is not None:
        selected_cell = by_key.get(to_calendar_date_key(selected))
        if selected_cell is not None:
            selected_cell.is_selected = True

    for plan in plans:
        for day in plan.days:
            try:
                key = day.date_key
            except ValueError:
                logger.warning(f"Skipping day with unreadable date {day.date!r} in plan {plan.id}")
                continue

            cell = by_key.get(key)
            if cell is None or day.meal_count() == 0:
                continue

            if cell.meals is None:
                cell.meals = day
            else:
                logger.warning(f"Plan {plan.id} overlaps another plan on {key}, merging meals")
                cell.meals = cell.meals.merged_with(day)

    return MonthGrid(year=year, month=month, cells=cells)


def grid_range(year: int, month: int) -> Tuple[date, date]:
    """(first, last) dates shown in the grid for a month."""
    start = grid_start(year, month)
    return start, start + timedelta(days=GRID_CELLS - 1)
