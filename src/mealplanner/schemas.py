"""Common data schemas shared by the store, the planner and the API."""

from datetime import date, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator

Season = Literal["spring", "summer", "autumn", "winter"]
ALL_SEASONS: tuple[str, ...] = ("spring", "summer", "autumn", "winter")
DEFAULT_MEAL_TYPE = "dinner"


class IngredientLine(BaseModel):
    """One ingredient entry on one recipe."""

    ingredient_id: str | None = None
    quantity: str | None = None
    unit: str | None = None

    class Config:
        from_attributes = True


class IngredientRef(BaseModel):
    """Shopping item that refers to a known ingredient."""

    kind: Literal["ingredient"] = "ingredient"
    ingredient_id: str


class CustomRef(BaseModel):
    """Shopping item entered as free text."""

    kind: Literal["custom"] = "custom"
    name: str = Field(min_length=1)


ShoppingItemRef = Annotated[Union[IngredientRef, CustomRef], Field(discriminator="kind")]


class ShoppingItem(BaseModel):
    """Persisted shopping list entry."""

    id: int
    ref: ShoppingItemRef
    quantity: str | None = None
    unit: str | None = None
    checked: bool = False
    count: int = 1
    sort_order: int = 0
    created_at: datetime | None = None

    @property
    def ingredient_id(self) -> str | None:
        """Ingredient id when the item refers to an ingredient."""
        return self.ref.ingredient_id if isinstance(self.ref, IngredientRef) else None

    @property
    def custom_name(self) -> str | None:
        """Free-text name when the item is a custom entry."""
        return self.ref.name if isinstance(self.ref, CustomRef) else None

    @property
    def display_quantity(self) -> str | None:
        """Quantity and unit as shown on the list, or None when there is no quantity."""
        if not self.quantity:
            return None
        if self.unit:
            return f"{self.quantity} {self.unit}"
        return self.quantity


class ShoppingItemPatch(BaseModel):
    """Partial update of a shopping item. Only explicitly set fields are written."""

    quantity: str | None = None
    unit: str | None = None
    checked: bool | None = None
    count: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def reject_null_flags(self) -> "ShoppingItemPatch":
        """Quantity and unit may be cleared, checked and count may not."""
        for name in ("checked", "count"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class MealPlanEntry(BaseModel):
    """A recipe scheduled on a given day."""

    id: int
    recipe_id: str
    planned_date: date
    meal_type: str = DEFAULT_MEAL_TYPE
    recipe_name: str | None = None


class RecipeDetail(BaseModel):
    """Recipe with its ordered ingredient lines."""

    id: str
    name: str
    description: str | None = None
    season: list[Season] = Field(default_factory=list)
    base_id: str | None = None
    cuisine_id: str | None = None
    difficulty: str | None = None
    tag_ids: list[str] = Field(default_factory=list)
    ingredient_lines: list[IngredientLine] = Field(default_factory=list)


class RecipeInput(BaseModel):
    """Recipe fields accepted on create and update. Tags and lines are replaced wholesale."""

    name: str = Field(min_length=1)
    description: str | None = None
    season: list[Season] = Field(default_factory=list)
    base_id: str | None = None
    cuisine_id: str | None = None
    difficulty: str | None = None
    tag_ids: list[str] = Field(default_factory=list)
    ingredient_lines: list[IngredientLine] = Field(default_factory=list)


class RecipeFilters(BaseModel):
    """In-memory recipe filter selection."""

    search: str = ""
    seasons: list[Season] = Field(default_factory=list)
    bases: list[str] = Field(default_factory=list)
    cuisines: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    difficulties: list[str] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        """Check if any filter is set."""
        return bool(
            self.search
            or self.seasons
            or self.bases
            or self.cuisines
            or self.tags
            or self.difficulties
        )
