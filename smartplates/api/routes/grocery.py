"""
Grocery routes for the FastAPI application.

Provides endpoints for:
- Generating a grocery list from a meal plan
- Getting a list and checking items off
- Exporting a list as text or PDF
- Saving named copies of lists
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Request, HTTPException, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel

from ...data.models import GroceryItem
from ...errors import (
    GroceryItemNotFoundError,
    GroceryListNotFoundError,
    MealPlanNotFoundError,
    UnsupportedExportFormat,
)
from ...grocery.aggregator import GroceryListOptions
from ..services.planner_service import get_planner_service, AsyncPlannerService

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateGroceryListRequest(BaseModel):
    """Request body for generating a grocery list."""
    meal_plan_id: str
    include_estimates: bool = False
    categorize_items: bool = False
    merge_similar_items: bool = True
    exclude_staples: bool = False


class ToggleItemRequest(BaseModel):
    """Request body for checking an item off."""
    item_name: str
    is_purchased: bool


class SaveGroceryListRequest(BaseModel):
    """Request body for saving a named copy of a list."""
    user_id: str
    name: str
    grocery_list_id: Optional[str] = None
    items: Optional[List[dict]] = None


class GroceryListResponse(BaseModel):
    """Response wrapping a grocery list."""
    success: bool
    grocery_list: Optional[dict] = None
    error: Optional[str] = None


def get_service(request: Request) -> AsyncPlannerService:
    """Dependency to get the planner service."""
    return get_planner_service()


@router.post("/grocery-lists", response_model=GroceryListResponse)
async def create_grocery_list(
    list_request: CreateGroceryListRequest,
    service: AsyncPlannerService = Depends(get_service)
):
    """
    Generate (or regenerate) the grocery list for a meal plan.

    Args:
        list_request: Meal plan ID and generation flags

    Returns:
        GroceryListResponse with the stored list
    """
    options = GroceryListOptions(
        include_estimates=list_request.include_estimates,
        categorize_items=list_request.categorize_items,
        merge_similar_items=list_request.merge_similar_items,
        exclude_staples=list_request.exclude_staples,
    )
    try:
        grocery_list = await service.run(
            service.generator.generate_list, list_request.meal_plan_id, options
        )
        return GroceryListResponse(success=True, grocery_list=grocery_list.to_dict())

    except MealPlanNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error generating grocery list: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/grocery-lists/{list_id}", response_model=GroceryListResponse)
async def get_grocery_list(
    list_id: str,
    service: AsyncPlannerService = Depends(get_service)
):
    """Get a grocery list by ID."""
    try:
        grocery_list = await service.run(service.generator.get_list, list_id)
        return GroceryListResponse(success=True, grocery_list=grocery_list.to_dict())

    except GroceryListNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error getting grocery list: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/grocery-lists/{list_id}/items", response_model=GroceryListResponse)
async def toggle_grocery_item(
    list_id: str,
    toggle_request: ToggleItemRequest,
    service: AsyncPlannerService = Depends(get_service)
):
    """
    Mark an item purchased or not purchased.

    Setting an item to the state it already has is accepted and changes nothing.
    """
    try:
        grocery_list = await service.run(
            service.generator.toggle_item,
            list_id,
            toggle_request.item_name,
            toggle_request.is_purchased,
        )
        return GroceryListResponse(success=True, grocery_list=grocery_list.to_dict())

    except (GroceryListNotFoundError, GroceryItemNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error updating grocery item: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/grocery-lists/{list_id}/export")
async def export_list(
    list_id: str,
    format: str = Query("text"),
    service: AsyncPlannerService = Depends(get_service)
):
    """
    Download a grocery list.

    Args:
        list_id: Grocery list ID
        format: "text" or "pdf"

    Returns:
        The document as an attachment
    """
    try:
        document = await service.run(service.generator.export_list, list_id, format)

        return Response(
            content=document.content,
            media_type=document.media_type,
            headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
        )

    except GroceryListNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnsupportedExportFormat as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error exporting grocery list: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/saved-grocery-lists")
async def save_grocery_list(
    save_request: SaveGroceryListRequest,
    service: AsyncPlannerService = Depends(get_service)
):
    """
    Save a named copy of a grocery list.

    Items come either from an existing list (grocery_list_id) or inline.
    """
    if not save_request.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")

    try:
        if save_request.grocery_list_id:
            grocery_list = await service.run(
                service.generator.get_list, save_request.grocery_list_id
            )
            items = grocery_list.items
        elif save_request.items is not None:
            items = [GroceryItem.from_dict(item) for item in save_request.items]
        else:
            raise HTTPException(status_code=400, detail="Provide grocery_list_id or items")

        saved = await service.run(
            service.generator.save_named_list, save_request.user_id, save_request.name, items
        )
        return {"success": True, "saved_list": saved.to_dict()}

    except HTTPException:
        raise
    except GroceryListNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error saving grocery list: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/saved-grocery-lists")
async def list_saved_grocery_lists(
    user_id: str,
    service: AsyncPlannerService = Depends(get_service)
):
    """Get a user's saved lists, newest first."""
    try:
        saved = await service.run(service.generator.list_saved, user_id)
        return {"success": True, "saved_lists": [s.to_dict() for s in saved]}

    except Exception as e:
        logger.exception(f"Error listing saved grocery lists: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/saved-grocery-lists/{saved_id}")
async def delete_saved_grocery_list(
    saved_id: str,
    user_id: str,
    service: AsyncPlannerService = Depends(get_service)
):
    """Delete a saved list. Only the owner can delete it."""
    deleted = await service.run(service.generator.delete_saved, saved_id, user_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Saved grocery list not found")
    return {"status": "deleted", "id": saved_id}
