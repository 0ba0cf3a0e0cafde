"""Catalog and layout overlay fetchers.

Both degrade instead of raising: a failed catalog read yields an empty
catalog plus the error for the caller to surface, and a failed overlay read
yields no personalization at all.
"""

from typing import Optional

from ..errors import FetchFailure, RecordStoreError
from ..utils.logging import get_logger
from .types import CatalogRecord, OverlayEntry

logger = get_logger("engine.fetchers")


async def fetch_catalog(store) -> tuple[list[CatalogRecord], Optional[FetchFailure]]:
    """Read the shared catalog in creation order.

    Returns (items, None) on success and ([], FetchFailure) on store failure.
    No retry is attempted.
    """
    try:
        items = await store.list_catalog_items()
    except RecordStoreError as e:
        failure = FetchFailure("catalog", e)
        logger.error("catalog_fetch_failed", error=str(e))
        return [], failure
    return list(items), None


async def fetch_overlay(store, user_id: Optional[int]) -> dict[int, OverlayEntry]:
    """Read the user's overlay as a mapping of item_id to entry."""
    if user_id is None:
        return {}
    try:
        entries = await store.list_overlay_entries(user_id)
    except RecordStoreError as e:
        logger.warning("overlay_fetch_failed", user_id=user_id, error=str(e))
        return {}
    return {entry.item_id: entry for entry in entries}
