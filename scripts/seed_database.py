#!/usr/bin/env python
"""
Database seeding script for a demo household.

This script is designed to run when the database container starts up. It will:

1. Wait for the database to accept connections
2. Create all tables
3. Check if the household already has recipes (skip if already seeded)
4. Create demo ingredients, tags and recipes
5. Plan the recipes across the current week

Run with: python scripts/seed_database.py

Environment Variables:
    SEED_HOUSEHOLD_ID: Household to seed (default: the configured default household)
    SEED_SKIP_IF_EXISTS: Skip seeding if recipes exist (default: true)
    SEED_PLAN_WEEK: Plan the demo recipes on the current week (default: true)
    DATABASE_URL: Database connection string
"""

import asyncio
import os
import sys
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from mealplanner.config import settings
from mealplanner.database import AsyncSessionLocal, Base, async_engine
from mealplanner.logging_config import configure_logging, get_logger
from mealplanner.schemas import IngredientLine, RecipeInput
from mealplanner.store import BackingStoreError, SqlBackingStore

# Configure logging
configure_logging(log_level=os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)

# Configuration from environment
SEED_HOUSEHOLD_ID = os.getenv("SEED_HOUSEHOLD_ID", settings.default_household_id)
SEED_SKIP_IF_EXISTS = os.getenv("SEED_SKIP_IF_EXISTS", "true").lower() == "true"
SEED_PLAN_WEEK = os.getenv("SEED_PLAN_WEEK", "true").lower() == "true"

DEMO_INGREDIENTS = [
    "flour",
    "milk",
    "eggs",
    "salt",
    "butter",
    "tomatoes",
    "pasta",
    "onion",
    "garlic",
    "basil",
]

DEMO_TAGS = {
    "quick": "#4caf50",
    "vegetarian": "#8bc34a",
    "comfort": "#ff9800",
}

# (name, seasons, difficulty, tags, [(ingredient, quantity, unit)])
DEMO_RECIPES = [
    (
        "Pancakes",
        ["spring", "summer", "autumn", "winter"],
        "easy",
        ["quick", "vegetarian"],
        [("flour", "200", "g"), ("milk", "0,5", "l"), ("eggs", "2", None), ("salt", "", None)],
    ),
    (
        "Tomato pasta",
        ["summer", "autumn"],
        "easy",
        ["quick", "vegetarian"],
        [
            ("pasta", "400", "g"),
            ("tomatoes", "6", None),
            ("onion", "1", None),
            ("garlic", "2 cloves", None),
            ("basil", "a handful", None),
        ],
    ),
    (
        "Onion soup",
        ["autumn", "winter"],
        "medium",
        ["comfort"],
        [("onion", "4", None), ("butter", "50", "g"), ("flour", "1", "tbsp"), ("salt", "", None)],
    ),
]


async def wait_for_database(max_retries: int = 30, retry_delay: int = 2) -> bool:
    """Wait for the database to be available."""
    logger.info("Waiting for database to be ready...")

    for attempt in range(max_retries):
        try:
            async with async_engine.connect() as conn:
                await conn.execute(select(1))
            logger.info("Database is ready")
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.debug(f"Database not ready (attempt {attempt + 1}/{max_retries}): {e}")
            await asyncio.sleep(retry_delay)

    logger.error("Database did not become ready in time")
    return False


async def init_database() -> None:
    """Initialize database tables."""
    logger.info("Initializing database tables...")
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def create_demo_recipes(store: SqlBackingStore) -> list[str]:
    """Create demo ingredients, tags and recipes. Returns the recipe ids."""
    ingredient_ids = {}
    for name in DEMO_INGREDIENTS:
        ingredient = await store.create_ingredient(name)
        ingredient_ids[name] = ingredient.id

    tag_ids = {}
    for name, color in DEMO_TAGS.items():
        tag = await store.create_tag(name, color)
        tag_ids[name] = tag.id

    recipe_ids = []
    for name, seasons, difficulty, tags, lines in DEMO_RECIPES:
        recipe = await store.create_recipe(
            RecipeInput(
                name=name,
                season=seasons,
                difficulty=difficulty,
                tag_ids=[tag_ids[tag] for tag in tags],
                ingredient_lines=[
                    IngredientLine(
                        ingredient_id=ingredient_ids[ingredient],
                        quantity=quantity,
                        unit=unit,
                    )
                    for ingredient, quantity, unit in lines
                ],
            )
        )
        recipe_ids.append(recipe.id)
        logger.info(f"Created recipe {name!r} with {len(lines)} ingredient line(s)")

    return recipe_ids


async def plan_current_week(store: SqlBackingStore, recipe_ids: list[str]) -> int:
    """Plan the recipes on alternating days of the current week."""
    monday = date.today() - timedelta(days=date.today().weekday())
    planned = 0
    for offset, recipe_id in zip(range(0, 7, 2), recipe_ids):
        await store.create_meal_plan(recipe_id, monday + timedelta(days=offset))
        planned += 1
    return planned


async def seed_database() -> dict:
    """
    Main seeding function.

    Returns:
        Dictionary with seeding results.
    """
    results = {
        "status": "unknown",
        "household_id": SEED_HOUSEHOLD_ID,
        "recipes_created": 0,
        "meals_planned": 0,
        "skipped": False,
    }

    if not await wait_for_database():
        results["status"] = "failed"
        results["error"] = "Database not available"
        return results

    await init_database()

    async with AsyncSessionLocal() as session:
        store = SqlBackingStore(session, SEED_HOUSEHOLD_ID)

        existing = await store.list_recipes()
        logger.info(f"Found {len(existing)} existing recipes for {SEED_HOUSEHOLD_ID}")

        if SEED_SKIP_IF_EXISTS and existing:
            logger.info("Household already has recipes, skipping seed")
            results["status"] = "skipped"
            results["skipped"] = True
            return results

        try:
            recipe_ids = await create_demo_recipes(store)
            results["recipes_created"] = len(recipe_ids)

            if SEED_PLAN_WEEK:
                results["meals_planned"] = await plan_current_week(store, recipe_ids)
        except BackingStoreError as e:
            logger.error(f"Seeding failed during {e.operation}: {e}")
            results["status"] = "failed"
            results["error"] = str(e)
            return results

    results["status"] = "completed"
    logger.info(f"Seeding completed: {results}")
    return results


async def run_seed() -> dict:
    """Seed the database and release the engine's connections."""
    try:
        return await seed_database()
    finally:
        await async_engine.dispose()


def main():
    """Entry point for the seed script."""
    logger.info("=" * 60)
    logger.info("Database Seeding Script")
    logger.info("=" * 60)
    logger.info(f"Household: {SEED_HOUSEHOLD_ID}")
    logger.info(f"Skip if exists: {SEED_SKIP_IF_EXISTS}")
    logger.info(f"Plan current week: {SEED_PLAN_WEEK}")
    logger.info("=" * 60)

    results = asyncio.run(run_seed())

    logger.info("=" * 60)
    logger.info("Seeding Results:")
    for key, value in results.items():
        logger.info(f"  {key}: {value}")
    logger.info("=" * 60)

    sys.exit(0 if results["status"] in ("completed", "skipped") else 1)


if __name__ == "__main__":
    main()
