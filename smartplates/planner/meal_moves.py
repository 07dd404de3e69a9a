"""
Moving and copying meals between calendar dates.

Operates on the stored weekly plans: the meal is taken out of the plan
covering the source date and appended to the plan covering the
destination date, creating that week's plan if the user has none.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Tuple

from ..data.database import DatabaseInterface
from ..data.models import MEAL_TYPES, MealPlan, MealSlot
from ..dates import DateLike, to_calendar_date_key

logger = logging.getLogger(__name__)


def _find_slot_owner(
    plans: List[MealPlan], value: DateLike, meal_type: str, index: int
) -> Optional[Tuple[MealPlan, List[MealSlot], int]]:
    """
    Map an index into the calendar's merged meal list back to its plan.

    Overlapping plans show on the calendar as one list per meal type, each
    plan's meals after the previous plan's, in storage order.

    Returns:
        (plan, that plan's slot list, index within it), or None when the
        index is past the end of the merged list
    """
    if index < 0:
        return None
    for plan in plans:
        slots = plan.get_day_by_date(value).slots(meal_type)
        if index < len(slots):
            return plan, slots, index
        index -= len(slots)
    return None


def move_meal(
    db: DatabaseInterface,
    user_id: str,
    source_date: DateLike,
    source_meal_type: str,
    source_index: int,
    dest_date: DateLike,
    dest_meal_type: Optional[str] = None,
    copy: bool = False,
) -> bool:
    """
    Move (or copy) one meal to another date.

    Args:
        db: Database interface instance
        user_id: Owner of the plans
        source_date: Date the meal is currently on
        source_meal_type: Meal-type list it is in
        source_index: Position in the calendar cell's list for that meal type
            (plans overlapping the date count in storage order)
        dest_date: Date to put it on
        dest_meal_type: Meal-type list to append to (defaults to the source's)
        copy: Leave the original in place

    Returns:
        True if the meal was moved; False when the source no longer exists
        (no plan for the date or a stale index), in which case nothing is written

    Raises:
        ValueError: If a meal type is not breakfast, lunch, dinner or snacks
    """
    dest_meal_type = dest_meal_type or source_meal_type
    for meal_type in (source_meal_type, dest_meal_type):
        if meal_type not in MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {meal_type}")

    covering = [
        plan for plan in db.get_meal_plans_in_range(user_id, source_date, source_date)
        if plan.covers(source_date)
    ]
    if not covering:
        logger.warning(f"No meal plan covers {to_calendar_date_key(source_date)} for user {user_id}")
        return False

    found = _find_slot_owner(covering, source_date, source_meal_type, source_index)
    if found is None:
        logger.warning(
            f"Stale meal index {source_index} for {source_meal_type} on "
            f"{to_calendar_date_key(source_date)}, nothing moved"
        )
        return False
    source_plan, source_slots, local_index = found

    if source_plan.covers(dest_date):
        dest_plan = source_plan
    else:
        dest_plan = db.find_meal_plan_covering(user_id, dest_date)
        if dest_plan is None:
            dest_plan = MealPlan.create_weekly(user_id, dest_date)
            logger.info(f"Created meal plan for week of {dest_plan.week_start_date}")

    if copy:
        slot = replace(source_slots[local_index])
    else:
        slot = source_slots.pop(local_index)
        source_plan.updated_at = datetime.now()

    dest_plan.get_day_by_date(dest_date).slots(dest_meal_type).append(slot)
    dest_plan.updated_at = datetime.now()

    if dest_plan is not source_plan and not copy:
        db.save_meal_plan(source_plan)
    db.save_meal_plan(dest_plan)

    logger.info(
        f"{'Copied' if copy else 'Moved'} {slot.recipe_name or slot.recipe_id} from "
        f"{to_calendar_date_key(source_date)} {source_meal_type} to "
        f"{to_calendar_date_key(dest_date)} {dest_meal_type}"
    )
    return True
