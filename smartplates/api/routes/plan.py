"""
Plan routes for the FastAPI application.

Provides endpoints for:
- Creating weekly meal plans and adding meals
- Rendering the monthly calendar
- Jumping to a typed date
- Moving or copying a meal between dates
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Request, HTTPException, Depends
from pydantic import BaseModel

from ...data.models import MealPlan, MealSlot
from ...dates import to_date
from ...planner.date_search import parse_jump_date
from ...planner.meal_moves import move_meal
from ..services.planner_service import get_planner_service, AsyncPlannerService

logger = logging.getLogger(__name__)

router = APIRouter()


# Request/Response models
class CreatePlanRequest(BaseModel):
    """Request body for creating a weekly meal plan."""
    user_id: str
    week_of: Optional[str] = None  # Any date in the week; defaults to this week
    title: Optional[str] = None


class AddMealRequest(BaseModel):
    """Request body for adding a meal to a plan."""
    day_index: int
    meal_type: str = "dinner"
    recipe_id: Optional[str] = None
    recipe_name: Optional[str] = None
    image: Optional[str] = None
    servings: int = 1
    notes: Optional[str] = None
    cooking_time: Optional[int] = None
    prep_time: Optional[int] = None


class MoveMealRequest(BaseModel):
    """Request body for moving (or copying) a meal to another date."""
    user_id: str
    source_date: str
    source_meal_type: str
    source_index: int
    dest_date: str
    dest_meal_type: Optional[str] = None
    copy_meal: bool = False  # Leave the original in place


class PlanResponse(BaseModel):
    """Response model for a meal plan."""
    success: bool
    plan: Optional[dict] = None
    error: Optional[str] = None


def get_service(request: Request) -> AsyncPlannerService:
    """Dependency to get the planner service."""
    return get_planner_service()


@router.post("/meal-plans", response_model=PlanResponse)
async def create_meal_plan(
    plan_request: CreatePlanRequest,
    service: AsyncPlannerService = Depends(get_service)
):
    """
    Create an empty weekly plan (Monday through Sunday).

    Args:
        plan_request: Owner, week and optional title

    Returns:
        PlanResponse with the stored plan
    """
    try:
        week_of = to_date(plan_request.week_of) if plan_request.week_of else date.today()
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {plan_request.week_of}")

    try:
        meal_plan = MealPlan.create_weekly(plan_request.user_id, week_of, title=plan_request.title)
        await service.run(service.db.save_meal_plan, meal_plan)
        return PlanResponse(success=True, plan=meal_plan.to_dict())

    except Exception as e:
        logger.exception(f"Error creating meal plan: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/meal-plans/{meal_plan_id}", response_model=PlanResponse)
async def get_meal_plan(
    meal_plan_id: str,
    service: AsyncPlannerService = Depends(get_service)
):
    """Get a meal plan by ID."""
    try:
        meal_plan = await service.run(service.db.get_meal_plan, meal_plan_id)
        if not meal_plan:
            raise HTTPException(status_code=404, detail="Meal plan not found")
        return PlanResponse(success=True, plan=meal_plan.to_dict())

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error getting meal plan: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/meal-plans/{meal_plan_id}/meals", response_model=PlanResponse)
async def add_meal(
    meal_plan_id: str,
    meal_request: AddMealRequest,
    service: AsyncPlannerService = Depends(get_service)
):
    """
    Append a meal to one day of a plan.

    Args:
        meal_plan_id: Plan to modify
        meal_request: Day index (0 = Monday), meal type and recipe
    """
    try:
        meal_plan = await service.run(service.db.get_meal_plan, meal_plan_id)
        if not meal_plan:
            raise HTTPException(status_code=404, detail="Meal plan not found")

        slot = MealSlot(
            recipe_id=meal_request.recipe_id,
            recipe_name=meal_request.recipe_name,
            image=meal_request.image,
            servings=meal_request.servings,
            notes=meal_request.notes,
            cooking_time=meal_request.cooking_time,
            prep_time=meal_request.prep_time,
        )
        meal_plan.add_meal(meal_request.day_index, meal_request.meal_type, slot)
        await service.run(service.db.save_meal_plan, meal_plan)
        return PlanResponse(success=True, plan=meal_plan.to_dict())

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error adding meal: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/calendar/jump")
async def jump_to_date(
    user_id: str,
    value: str,
    year: int,
    month: int,
    service: AsyncPlannerService = Depends(get_service)
):
    """
    Resolve a typed date to the month that contains it.

    Unparseable input is ignored: the month the caller was showing
    (`year`/`month`) is returned unchanged with `jumped` false.
    """
    target = parse_jump_date(value)
    selected = None
    if target is not None:
        year, month, selected = target.year, target.month, target.isoformat()

    try:
        grid = await service.run(service.render_month, user_id, year, month, selected)
        return {"success": True, "jumped": target is not None, "calendar": grid.to_dict()}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error jumping to date: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/calendar/{year}/{month}")
async def get_month(
    year: int,
    month: int,
    user_id: str,
    selected: Optional[str] = None,
    service: AsyncPlannerService = Depends(get_service)
):
    """
    Render the 42-cell month grid with every plan that overlaps it.

    Args:
        year: Four-digit year
        month: 1 (January) through 12
        user_id: Plan owner
        selected: Optional selected date (YYYY-MM-DD)
    """
    try:
        grid = await service.run(service.render_month, user_id, year, month, selected)
        return {"success": True, "calendar": grid.to_dict()}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error rendering calendar: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/calendar/move-meal")
async def move_meal_between_dates(
    move_request: MoveMealRequest,
    service: AsyncPlannerService = Depends(get_service)
):
    """
    Move or copy a meal to another date.

    A stale source (the meal is no longer at that index) is not an error:
    the response has `moved` false and nothing is changed.
    """
    try:
        moved = await service.run(
            move_meal,
            service.db,
            move_request.user_id,
            move_request.source_date,
            move_request.source_meal_type,
            move_request.source_index,
            move_request.dest_date,
            dest_meal_type=move_request.dest_meal_type,
            copy=move_request.copy_meal,
        )
        return {"success": True, "moved": moved}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error moving meal: {e}")
        raise HTTPException(status_code=500, detail=str(e))
