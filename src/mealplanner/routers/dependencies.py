"""Shared FastAPI dependencies and error mapping for the API routers."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from mealplanner.config import settings
from mealplanner.database import get_db
from mealplanner.store.base import BackingStoreError, RecordNotFoundError
from mealplanner.store.sql import SqlBackingStore

HOUSEHOLD_HEADER = "X-Household-Id"


def resolve_household_id(header_value: str | None) -> str:
    """Household for a request, falling back to the configured default."""
    return header_value or settings.default_household_id


async def get_household_id(
    x_household_id: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the household for the request."""
    return resolve_household_id(x_household_id)


async def get_store(
    household_id: str = Depends(get_household_id),
    db: AsyncSession = Depends(get_db),
) -> SqlBackingStore:
    """Get a backing store scoped to the request's household."""
    return SqlBackingStore(db, household_id)


def store_http_error(error: BackingStoreError) -> HTTPException:
    """Translate a backing store failure into an HTTP error."""
    if isinstance(error, RecordNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))

    detail = "Storage operation failed"
    if settings.is_development and error.__cause__ is not None:
        detail = f"{detail}: {error.__cause__}"
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
