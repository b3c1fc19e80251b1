"""Household-scoped persistence behind an abstract backing store."""

from mealplanner.store.base import BackingStore, BackingStoreError, RecordNotFoundError
from mealplanner.store.sql import SqlBackingStore

__all__ = [
    "BackingStore",
    "BackingStoreError",
    "RecordNotFoundError",
    "SqlBackingStore",
]
