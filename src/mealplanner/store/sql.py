"""SQLAlchemy implementation of the backing store."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mealplanner import models
from mealplanner.logging_config import get_logger
from mealplanner.schemas import (
    DEFAULT_MEAL_TYPE,
    CustomRef,
    IngredientLine,
    IngredientRef,
    MealPlanEntry,
    RecipeDetail,
    RecipeInput,
    ShoppingItem,
    ShoppingItemPatch,
    ShoppingItemRef,
)
from mealplanner.store.base import BackingStore, BackingStoreError, RecordNotFoundError

logger = get_logger(__name__)


def _to_shopping_item(row: models.ShoppingItem) -> ShoppingItem:
    ref: ShoppingItemRef
    if row.ingredient_id is not None:
        ref = IngredientRef(ingredient_id=row.ingredient_id)
    else:
        ref = CustomRef(name=row.custom_name or "")
    return ShoppingItem(
        id=row.id,
        ref=ref,
        quantity=row.quantity,
        unit=row.unit,
        checked=row.checked,
        count=row.count,
        sort_order=row.sort_order,
        created_at=row.created_at,
    )


def _to_recipe_detail(recipe: models.Recipe) -> RecipeDetail:
    return RecipeDetail(
        id=recipe.id,
        name=recipe.name,
        description=recipe.description,
        season=recipe.season or [],
        base_id=recipe.base_id,
        cuisine_id=recipe.cuisine_id,
        difficulty=recipe.difficulty,
        tag_ids=[tag.id for tag in recipe.tags],
        ingredient_lines=[IngredientLine.model_validate(line) for line in recipe.ingredient_lines],
    )


def _to_meal_plan_entry(meal: models.MealPlan) -> MealPlanEntry:
    return MealPlanEntry(
        id=meal.id,
        recipe_id=meal.recipe_id,
        planned_date=meal.planned_date,
        meal_type=meal.meal_type,
        recipe_name=meal.recipe.name if meal.recipe else None,
    )


class SqlBackingStore(BackingStore):
    """
    Household-scoped store on top of an AsyncSession.

    Every write is committed on its own; a failed statement rolls back only
    that call and surfaces as BackingStoreError.
    """

    def __init__(self, session: AsyncSession, household_id: str):
        self.session = session
        self.household_id = household_id

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Backing store operation {operation} failed: {e}")
            raise BackingStoreError(f"{operation} failed", operation=operation) from e

    # =========================================================================
    # Shopping Items
    # =========================================================================

    async def _get_shopping_row(self, item_id: int) -> models.ShoppingItem:
        result = await self.session.execute(
            select(models.ShoppingItem).where(
                models.ShoppingItem.id == item_id,
                models.ShoppingItem.household_id == self.household_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise RecordNotFoundError("Shopping item", item_id)
        return row

    async def list_shopping_items(self) -> list[ShoppingItem]:
        async with self._guard("list_shopping_items"):
            result = await self.session.execute(
                select(models.ShoppingItem)
                .where(models.ShoppingItem.household_id == self.household_id)
                .order_by(
                    models.ShoppingItem.checked.asc(),
                    models.ShoppingItem.sort_order.asc(),
                    models.ShoppingItem.created_at.asc(),
                    models.ShoppingItem.id.asc(),
                )
            )
            return [_to_shopping_item(row) for row in result.scalars().all()]

    async def get_shopping_item(self, item_id: int) -> ShoppingItem:
        async with self._guard("get_shopping_item"):
            return _to_shopping_item(await self._get_shopping_row(item_id))

    async def create_shopping_item(
        self,
        ref: ShoppingItemRef,
        quantity: str | None,
        unit: str | None,
        count: int = 1,
    ) -> ShoppingItem:
        row = models.ShoppingItem(
            household_id=self.household_id,
            ingredient_id=ref.ingredient_id if isinstance(ref, IngredientRef) else None,
            custom_name=ref.name if isinstance(ref, CustomRef) else None,
            quantity=quantity,
            unit=unit,
            checked=False,
            count=count,
        )
        async with self._guard("create_shopping_item"):
            if row.ingredient_id is not None:
                await self._require_ingredients([row.ingredient_id])
            self.session.add(row)
            await self.session.commit()
            await self.session.refresh(row)
        return _to_shopping_item(row)

    async def update_shopping_item(self, item_id: int, patch: ShoppingItemPatch) -> ShoppingItem:
        async with self._guard("update_shopping_item"):
            row = await self._get_shopping_row(item_id)
            for field_name, value in patch.model_dump(exclude_unset=True).items():
                setattr(row, field_name, value)
            await self.session.commit()
            await self.session.refresh(row)
        return _to_shopping_item(row)

    async def delete_shopping_item(self, item_id: int) -> None:
        async with self._guard("delete_shopping_item"):
            row = await self._get_shopping_row(item_id)
            await self.session.delete(row)
            await self.session.commit()

    async def delete_checked_shopping_items(self) -> int:
        async with self._guard("delete_checked_shopping_items"):
            result = await self.session.execute(
                delete(models.ShoppingItem).where(
                    models.ShoppingItem.household_id == self.household_id,
                    models.ShoppingItem.checked.is_(True),
                )
            )
            await self.session.commit()
        return result.rowcount or 0

    async def delete_all_shopping_items(self) -> int:
        async with self._guard("delete_all_shopping_items"):
            result = await self.session.execute(
                delete(models.ShoppingItem).where(
                    models.ShoppingItem.household_id == self.household_id
                )
            )
            await self.session.commit()
        return result.rowcount or 0

    # =========================================================================
    # Meal Plans
    # =========================================================================

    async def list_meal_plans(self, start_date: date, end_date: date) -> list[MealPlanEntry]:
        async with self._guard("list_meal_plans"):
            result = await self.session.execute(
                select(models.MealPlan)
                .options(selectinload(models.MealPlan.recipe))
                .where(
                    models.MealPlan.household_id == self.household_id,
                    models.MealPlan.planned_date >= start_date,
                    models.MealPlan.planned_date <= end_date,
                )
                .order_by(models.MealPlan.planned_date.asc(), models.MealPlan.id.asc())
            )
            return [_to_meal_plan_entry(meal) for meal in result.scalars().all()]

    async def create_meal_plan(
        self,
        recipe_id: str,
        planned_date: date,
        meal_type: str = DEFAULT_MEAL_TYPE,
    ) -> MealPlanEntry:
        async with self._guard("create_meal_plan"):
            recipe = await self._get_recipe_row(recipe_id)
            meal = models.MealPlan(
                household_id=self.household_id,
                recipe_id=recipe.id,
                planned_date=planned_date,
                meal_type=meal_type,
            )
            meal.recipe = recipe
            self.session.add(meal)
            await self.session.commit()
        return _to_meal_plan_entry(meal)

    async def delete_meal_plan(self, meal_plan_id: int) -> None:
        async with self._guard("delete_meal_plan"):
            result = await self.session.execute(
                delete(models.MealPlan).where(
                    models.MealPlan.id == meal_plan_id,
                    models.MealPlan.household_id == self.household_id,
                )
            )
            if not result.rowcount:
                raise RecordNotFoundError("Meal plan", meal_plan_id)
            await self.session.commit()

    # =========================================================================
    # Recipes
    # =========================================================================

    @staticmethod
    def _recipe_query():
        # Bulk tag and ingredient removals bypass collections already in the session.
        return (
            select(models.Recipe)
            .options(
                selectinload(models.Recipe.ingredient_lines),
                selectinload(models.Recipe.tags),
            )
            .execution_options(populate_existing=True)
        )

    async def _get_recipe_row(
        self,
        recipe_id: str,
        include_deleted: bool = False,
    ) -> models.Recipe:
        query = self._recipe_query().where(
            models.Recipe.id == recipe_id,
            models.Recipe.household_id == self.household_id,
        )
        if not include_deleted:
            query = query.where(models.Recipe.is_deleted.is_(False))

        recipe = (await self.session.execute(query)).scalar_one_or_none()
        if recipe is None:
            raise RecordNotFoundError("Recipe", recipe_id)
        return recipe

    async def _load_tags(self, tag_ids: list[str]) -> list[models.Tag]:
        if not tag_ids:
            return []
        result = await self.session.execute(
            select(models.Tag).where(
                models.Tag.id.in_(tag_ids),
                models.Tag.household_id == self.household_id,
            )
        )
        tags = list(result.scalars().all())
        missing = set(tag_ids) - {tag.id for tag in tags}
        if missing:
            raise RecordNotFoundError("Tag", sorted(missing)[0])
        return tags

    async def _require_ingredients(self, ingredient_ids: list[str | None]) -> None:
        wanted = {ingredient_id for ingredient_id in ingredient_ids if ingredient_id}
        if not wanted:
            return
        result = await self.session.execute(
            select(models.Ingredient.id).where(
                models.Ingredient.id.in_(wanted),
                models.Ingredient.household_id == self.household_id,
            )
        )
        missing = wanted - set(result.scalars().all())
        if missing:
            raise RecordNotFoundError("Ingredient", sorted(missing)[0])

    async def _require_base(self, base_id: str | None) -> None:
        if base_id is not None:
            await self._get_base_row(base_id)

    async def _check_references(self, data: RecipeInput) -> list[models.Tag]:
        await self._require_base(data.base_id)
        await self._require_ingredients([line.ingredient_id for line in data.ingredient_lines])
        return await self._load_tags(data.tag_ids)

    @staticmethod
    def _build_lines(lines: list[IngredientLine]) -> list[models.RecipeIngredient]:
        return [
            models.RecipeIngredient(
                ingredient_id=line.ingredient_id,
                quantity=line.quantity or None,
                unit=line.unit or None,
                sort_order=index,
            )
            for index, line in enumerate(lines)
        ]

    async def get_recipe_with_ingredients(self, recipe_id: str) -> RecipeDetail | None:
        # Deleted recipes stay resolvable so meals planned before the delete still shop.
        async with self._guard("get_recipe_with_ingredients"):
            try:
                recipe = await self._get_recipe_row(recipe_id, include_deleted=True)
            except RecordNotFoundError:
                return None
            return _to_recipe_detail(recipe)

    async def get_recipe(self, recipe_id: str) -> RecipeDetail:
        """Get a live recipe. Raises RecordNotFoundError if absent or deleted."""
        async with self._guard("get_recipe"):
            return _to_recipe_detail(await self._get_recipe_row(recipe_id))

    async def list_recipes(self) -> list[RecipeDetail]:
        async with self._guard("list_recipes"):
            result = await self.session.execute(
                self._recipe_query()
                .where(
                    models.Recipe.household_id == self.household_id,
                    models.Recipe.is_deleted.is_(False),
                )
                .order_by(models.Recipe.created_at.desc())
            )
            return [_to_recipe_detail(recipe) for recipe in result.scalars().all()]

    async def create_recipe(self, data: RecipeInput) -> RecipeDetail:
        async with self._guard("create_recipe"):
            tags = await self._check_references(data)
            recipe = models.Recipe(
                id=str(uuid.uuid4()),
                household_id=self.household_id,
                name=data.name,
                description=data.description,
                season=list(data.season),
                base_id=data.base_id,
                cuisine_id=data.cuisine_id,
                difficulty=data.difficulty,
                ingredient_lines=self._build_lines(data.ingredient_lines),
                tags=tags,
            )
            self.session.add(recipe)
            await self.session.commit()
        return _to_recipe_detail(recipe)

    async def update_recipe(self, recipe_id: str, data: RecipeInput) -> RecipeDetail:
        async with self._guard("update_recipe"):
            recipe = await self._get_recipe_row(recipe_id)
            tags = await self._check_references(data)
            recipe.name = data.name
            recipe.description = data.description
            recipe.season = list(data.season)
            recipe.base_id = data.base_id
            recipe.cuisine_id = data.cuisine_id
            recipe.difficulty = data.difficulty
            recipe.tags = tags
            recipe.ingredient_lines = self._build_lines(data.ingredient_lines)
            await self.session.commit()
        return _to_recipe_detail(recipe)

    async def delete_recipe(self, recipe_id: str) -> None:
        """Soft-delete a recipe. Its planned meals are kept."""
        async with self._guard("delete_recipe"):
            recipe = await self._get_recipe_row(recipe_id)
            recipe.is_deleted = True
            recipe.deleted_at = datetime.utcnow()
            await self.session.commit()
        logger.info(f"Recipe {recipe_id} marked deleted")

    # =========================================================================
    # Ingredients, Tags and Bases
    # =========================================================================

    async def _get_owned_row(self, model, entity: str, record_id: str):
        result = await self.session.execute(
            select(model).where(model.id == record_id, model.household_id == self.household_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise RecordNotFoundError(entity, record_id)
        return row

    async def _get_base_row(self, base_id: str) -> models.RecipeBase:
        return await self._get_owned_row(models.RecipeBase, "Base", base_id)

    async def _list_owned(self, model) -> list:
        result = await self.session.execute(
            select(model).where(model.household_id == self.household_id).order_by(model.name.asc())
        )
        return list(result.scalars().all())

    async def list_ingredients(self) -> list[models.Ingredient]:
        async with self._guard("list_ingredients"):
            return await self._list_owned(models.Ingredient)

    async def create_ingredient(self, name: str) -> models.Ingredient:
        ingredient = models.Ingredient(
            id=str(uuid.uuid4()),
            household_id=self.household_id,
            name=name,
        )
        async with self._guard("create_ingredient"):
            self.session.add(ingredient)
            await self.session.commit()
        return ingredient

    async def update_ingredient(self, ingredient_id: str, name: str) -> models.Ingredient:
        async with self._guard("update_ingredient"):
            ingredient = await self._get_owned_row(models.Ingredient, "Ingredient", ingredient_id)
            ingredient.name = name
            await self.session.commit()
        return ingredient

    async def delete_ingredient(self, ingredient_id: str) -> None:
        """Delete an ingredient, unlinking it from recipe lines and dropping its list items."""
        async with self._guard("delete_ingredient"):
            await self._get_owned_row(models.Ingredient, "Ingredient", ingredient_id)
            await self.session.execute(
                update(models.RecipeIngredient)
                .where(models.RecipeIngredient.ingredient_id == ingredient_id)
                .values(ingredient_id=None)
            )
            await self.session.execute(
                delete(models.ShoppingItem).where(
                    models.ShoppingItem.ingredient_id == ingredient_id
                )
            )
            await self.session.execute(
                delete(models.Ingredient).where(models.Ingredient.id == ingredient_id)
            )
            await self.session.commit()

    async def list_tags(self) -> list[models.Tag]:
        async with self._guard("list_tags"):
            return await self._list_owned(models.Tag)

    async def create_tag(self, name: str, color: str | None = None) -> models.Tag:
        tag = models.Tag(
            id=str(uuid.uuid4()),
            household_id=self.household_id,
            name=name,
            color=color,
        )
        async with self._guard("create_tag"):
            self.session.add(tag)
            await self.session.commit()
        return tag

    async def update_tag(self, tag_id: str, name: str, color: str | None = None) -> models.Tag:
        async with self._guard("update_tag"):
            tag = await self._get_owned_row(models.Tag, "Tag", tag_id)
            tag.name = name
            tag.color = color
            await self.session.commit()
        return tag

    async def delete_tag(self, tag_id: str) -> None:
        async with self._guard("delete_tag"):
            await self._get_owned_row(models.Tag, "Tag", tag_id)
            await self.session.execute(
                delete(models.recipe_tags).where(models.recipe_tags.c.tag_id == tag_id)
            )
            await self.session.execute(delete(models.Tag).where(models.Tag.id == tag_id))
            await self.session.commit()

    async def list_bases(self) -> list[models.RecipeBase]:
        async with self._guard("list_bases"):
            return await self._list_owned(models.RecipeBase)

    async def create_base(self, name: str) -> models.RecipeBase:
        base = models.RecipeBase(
            id=str(uuid.uuid4()),
            household_id=self.household_id,
            name=name,
        )
        async with self._guard("create_base"):
            self.session.add(base)
            await self.session.commit()
        return base

    async def update_base(self, base_id: str, name: str) -> models.RecipeBase:
        async with self._guard("update_base"):
            base = await self._get_base_row(base_id)
            base.name = name
            await self.session.commit()
        return base

    async def delete_base(self, base_id: str) -> None:
        """Delete a base; recipes using it keep existing without a base."""
        async with self._guard("delete_base"):
            await self._get_base_row(base_id)
            await self.session.execute(
                update(models.Recipe)
                .where(
                    models.Recipe.base_id == base_id,
                    models.Recipe.household_id == self.household_id,
                )
                .values(base_id=None)
            )
            await self.session.execute(
                delete(models.RecipeBase).where(models.RecipeBase.id == base_id)
            )
            await self.session.commit()
