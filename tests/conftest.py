"""Pytest configuration and shared fixtures."""

import os

# Keep the application's module-level engine off PostgreSQL during tests.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from mealplanner.database import Base, get_db
from mealplanner.schemas import IngredientLine, MealPlanEntry, RecipeDetail
from mealplanner.store.base import BackingStore
from mealplanner.store.sql import SqlBackingStore

TEST_HOUSEHOLD = "household-test"

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (require external services)"
    )
    config.addinivalue_line("markers", "slow: marks tests as slow running")


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def week_dates() -> list[date]:
    """Monday to Sunday of a planning week."""
    return [date(2024, 3, day) for day in range(4, 11)]


@pytest.fixture
def sample_recipes() -> dict[str, RecipeDetail]:
    """Recipes sharing flour and salt, with free-form quantities."""
    return {
        "recipe-pancakes": RecipeDetail(
            id="recipe-pancakes",
            name="Pancakes",
            season=["spring", "summer", "autumn", "winter"],
            ingredient_lines=[
                IngredientLine(ingredient_id="flour", quantity="200", unit="g"),
                IngredientLine(ingredient_id="salt", quantity="", unit=None),
                IngredientLine(ingredient_id="milk", quantity="0,5", unit="l"),
            ],
        ),
        "recipe-bread": RecipeDetail(
            id="recipe-bread",
            name="Bread",
            season=["winter"],
            ingredient_lines=[
                IngredientLine(ingredient_id="flour", quantity="100", unit="g"),
                IngredientLine(ingredient_id="salt", quantity=None, unit="tsp"),
                IngredientLine(ingredient_id="yeast", quantity="1 sachet", unit=None),
                IngredientLine(ingredient_id=None, quantity="1", unit="l"),
            ],
        ),
    }


@pytest.fixture
def sample_meals() -> list[MealPlanEntry]:
    """Two planned meals in one week and one in the following week."""
    return [
        MealPlanEntry(id=1, recipe_id="recipe-pancakes", planned_date=date(2024, 3, 4)),
        MealPlanEntry(id=2, recipe_id="recipe-bread", planned_date=date(2024, 3, 6)),
        MealPlanEntry(id=3, recipe_id="recipe-bread", planned_date=date(2024, 3, 12)),
    ]


@pytest.fixture
def mock_store():
    """Mock backing store with an empty shopping list."""
    store = AsyncMock(spec=BackingStore)
    store.list_shopping_items.return_value = []
    store.list_meal_plans.return_value = []
    store.get_recipe_with_ingredients.return_value = None
    return store


# =============================================================================
# SQLite Test Database Fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed SQLite database, unique per test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'mealplanner_test.db'}"


@pytest_asyncio.fixture
async def db_session(database_url):
    """Create all tables and yield an async session."""
    engine = create_async_engine(database_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def sql_store(db_session) -> SqlBackingStore:
    """SQL backing store for the test household."""
    return SqlBackingStore(db_session, TEST_HOUSEHOLD)


@pytest.fixture
def api_client(database_url):
    """TestClient whose database dependency points at a fresh SQLite file."""
    from mealplanner.main import app

    sync_engine = create_engine(database_url.replace("+aiosqlite", ""))
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(database_url, poolclass=NullPool)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app, headers={"X-Household-Id": TEST_HOUSEHOLD})

    yield client

    app.dependency_overrides.clear()
