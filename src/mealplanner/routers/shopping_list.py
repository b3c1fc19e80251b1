"""API routes for the household shopping list."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from mealplanner.logging_config import get_logger
from mealplanner.plan.shopping_list import (
    NoIngredientsFoundError,
    ShoppingListGenerator,
    ShoppingListService,
)
from mealplanner.routers.dependencies import get_store, store_http_error
from mealplanner.schemas import ShoppingItem, ShoppingItemPatch, ShoppingItemRef
from mealplanner.store.base import BackingStoreError
from mealplanner.store.sql import SqlBackingStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/shopping-list", tags=["shopping-list"])


# =============================================================================
# Request/Response Schemas
# =============================================================================


class ShoppingItemResponse(BaseModel):
    """Shopping item as returned by the API."""

    id: int
    ref: ShoppingItemRef
    ingredient_id: str | None = None
    custom_name: str | None = None
    quantity: str | None = None
    unit: str | None = None
    display_quantity: str | None = None
    checked: bool = False
    count: int = 1

    @classmethod
    def from_item(cls, item: ShoppingItem) -> "ShoppingItemResponse":
        return cls(
            id=item.id,
            ref=item.ref,
            quantity=item.quantity,
            unit=item.unit,
            checked=item.checked,
            count=item.count,
            ingredient_id=item.ingredient_id,
            custom_name=item.custom_name,
            display_quantity=item.display_quantity,
        )


class ShoppingListResponse(BaseModel):
    """Shopping list with unchecked/checked counts."""

    items: list[ShoppingItemResponse]
    remaining_count: int
    checked_count: int


class AddIngredientRequest(BaseModel):
    """Request to add one of an ingredient."""

    ingredient_id: str


class AddCustomItemRequest(BaseModel):
    """Request to add a free-text item."""

    name: str


class GenerateRequest(BaseModel):
    """Request to generate list entries from planned meals."""

    dates: list[date] = Field(description="Days whose planned meals to shop for")


class GenerateResponse(BaseModel):
    """Result of a generation run."""

    items_processed: int
    created: int
    merged: int
    items: list[ShoppingItemResponse]


class ClearResponse(BaseModel):
    """Number of removed items."""

    removed: int


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=ShoppingListResponse)
async def list_shopping_items(
    store: SqlBackingStore = Depends(get_store),
) -> ShoppingListResponse:
    """List the shopping list, unchecked items first."""
    try:
        items = await ShoppingListService(store).list_items()
    except BackingStoreError as e:
        raise store_http_error(e)

    checked = sum(1 for item in items if item.checked)
    return ShoppingListResponse(
        items=[ShoppingItemResponse.from_item(item) for item in items],
        remaining_count=len(items) - checked,
        checked_count=checked,
    )


@router.post(
    "/items/ingredient",
    response_model=ShoppingItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_ingredient(
    request: AddIngredientRequest,
    store: SqlBackingStore = Depends(get_store),
) -> ShoppingItemResponse:
    """Add one of an ingredient, or add one more if it is already on the list."""
    try:
        item = await ShoppingListService(store).add_ingredient(request.ingredient_id)
    except BackingStoreError as e:
        raise store_http_error(e)
    return ShoppingItemResponse.from_item(item)


@router.post(
    "/items/custom",
    response_model=ShoppingItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_custom_item(
    request: AddCustomItemRequest,
    store: SqlBackingStore = Depends(get_store),
) -> ShoppingItemResponse:
    """Add a free-text item."""
    try:
        item = await ShoppingListService(store).add_custom_item(request.name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except BackingStoreError as e:
        raise store_http_error(e)
    return ShoppingItemResponse.from_item(item)


@router.patch("/items/{item_id}", response_model=ShoppingItemResponse)
async def update_item(
    item_id: int,
    patch: ShoppingItemPatch,
    store: SqlBackingStore = Depends(get_store),
) -> ShoppingItemResponse:
    """Update quantity, unit, checked state or count of an item."""
    try:
        item = await store.update_shopping_item(item_id, patch)
    except BackingStoreError as e:
        raise store_http_error(e)
    return ShoppingItemResponse.from_item(item)


@router.post("/items/{item_id}/toggle", response_model=ShoppingItemResponse)
async def toggle_item(
    item_id: int,
    store: SqlBackingStore = Depends(get_store),
) -> ShoppingItemResponse:
    """Flip the checked state of an item."""
    try:
        item = await ShoppingListService(store).toggle_item(item_id)
    except BackingStoreError as e:
        raise store_http_error(e)
    return ShoppingItemResponse.from_item(item)


@router.post("/items/{item_id}/increment", response_model=ShoppingItemResponse)
async def increment_item(
    item_id: int,
    store: SqlBackingStore = Depends(get_store),
) -> ShoppingItemResponse:
    """Add one to an item's quantity."""
    try:
        item = await ShoppingListService(store).increment_item(item_id)
    except BackingStoreError as e:
        raise store_http_error(e)
    return ShoppingItemResponse.from_item(item)


@router.post("/items/{item_id}/decrement", response_model=ShoppingItemResponse)
async def decrement_item(
    item_id: int,
    store: SqlBackingStore = Depends(get_store),
) -> ShoppingItemResponse:
    """Remove one from an item's numeric quantity."""
    try:
        item = await ShoppingListService(store).decrement_item(item_id)
    except BackingStoreError as e:
        raise store_http_error(e)
    return ShoppingItemResponse.from_item(item)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    store: SqlBackingStore = Depends(get_store),
) -> None:
    """Delete a single item."""
    try:
        await ShoppingListService(store).delete_item(item_id)
    except BackingStoreError as e:
        raise store_http_error(e)


@router.delete("/checked", response_model=ClearResponse)
async def clear_checked(
    store: SqlBackingStore = Depends(get_store),
) -> ClearResponse:
    """Remove all checked items."""
    try:
        removed = await ShoppingListService(store).clear_checked()
    except BackingStoreError as e:
        raise store_http_error(e)
    return ClearResponse(removed=removed)


@router.delete("", response_model=ClearResponse)
async def clear_all(
    store: SqlBackingStore = Depends(get_store),
) -> ClearResponse:
    """Remove every item."""
    try:
        removed = await ShoppingListService(store).clear_all()
    except BackingStoreError as e:
        raise store_http_error(e)
    return ClearResponse(removed=removed)


@router.post("/generate", response_model=GenerateResponse)
async def generate_shopping_list(
    request: GenerateRequest,
    store: SqlBackingStore = Depends(get_store),
) -> GenerateResponse:
    """
    Add the ingredients of every meal planned on the selected days.

    Quantities of the same ingredient are summed where possible and merged into
    the existing unchecked entry for that ingredient. Running this twice for the
    same days adds the ingredients twice.
    """
    logger.info(f"Generate requested for {len(request.dates)} day(s)")

    try:
        result = await ShoppingListGenerator(store).generate(request.dates)
    except NoIngredientsFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BackingStoreError as e:
        raise store_http_error(e)

    return GenerateResponse(
        items_processed=result.items_processed,
        created=result.created,
        merged=result.merged,
        items=[ShoppingItemResponse.from_item(item) for item in result.items],
    )
