"""API routes for the meal plan calendar."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from mealplanner.logging_config import get_logger
from mealplanner.routers.dependencies import get_store, store_http_error
from mealplanner.schemas import DEFAULT_MEAL_TYPE, MealPlanEntry
from mealplanner.store.base import BackingStoreError
from mealplanner.store.sql import SqlBackingStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/meal-plans", tags=["meal-plans"])


class MealPlanCreateRequest(BaseModel):
    """Request to schedule a recipe on a day."""

    recipe_id: str
    planned_date: date
    meal_type: str = Field(DEFAULT_MEAL_TYPE, min_length=1, max_length=20)


class MealPlanListResponse(BaseModel):
    """Planned meals in a date range."""

    meal_plans: list[MealPlanEntry]
    total: int


@router.get("", response_model=MealPlanListResponse)
async def list_meal_plans(
    start_date: Annotated[date, Query(description="First day (inclusive)")],
    end_date: Annotated[date, Query(description="Last day (inclusive)")],
    store: SqlBackingStore = Depends(get_store),
) -> MealPlanListResponse:
    """List planned meals between two dates."""
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be on or after start_date",
        )

    try:
        meals = await store.list_meal_plans(start_date, end_date)
    except BackingStoreError as e:
        raise store_http_error(e)

    return MealPlanListResponse(meal_plans=meals, total=len(meals))


@router.post("", response_model=MealPlanEntry, status_code=status.HTTP_201_CREATED)
async def create_meal_plan(
    request: MealPlanCreateRequest,
    store: SqlBackingStore = Depends(get_store),
) -> MealPlanEntry:
    """Schedule a recipe on a day."""
    logger.info(
        f"Planning recipe {request.recipe_id} on {request.planned_date} ({request.meal_type})"
    )
    try:
        return await store.create_meal_plan(
            request.recipe_id, request.planned_date, request.meal_type
        )
    except BackingStoreError as e:
        raise store_http_error(e)


@router.delete("/{meal_plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meal_plan(
    meal_plan_id: int,
    store: SqlBackingStore = Depends(get_store),
) -> None:
    """Remove a planned meal."""
    try:
        await store.delete_meal_plan(meal_plan_id)
    except BackingStoreError as e:
        raise store_http_error(e)
