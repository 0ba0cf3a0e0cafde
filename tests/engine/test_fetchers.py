"""Tests for the catalog and overlay fetchers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from apphub.engine.fetchers import fetch_catalog, fetch_overlay
from apphub.engine.types import OverlayEntry
from apphub.errors import FetchFailure, RecordStoreError


def _store(**methods):
    store = MagicMock()
    for name, mock in methods.items():
        setattr(store, name, mock)
    return store


class TestFetchCatalog:
    @pytest.mark.asyncio
    async def test_returns_items(self, two_item_catalog):
        store = _store(list_catalog_items=AsyncMock(return_value=two_item_catalog))
        items, failure = await fetch_catalog(store)
        assert items == two_item_catalog
        assert failure is None

    @pytest.mark.asyncio
    async def test_store_failure_degrades_to_empty(self):
        store = _store(list_catalog_items=AsyncMock(side_effect=RecordStoreError("list_catalog_items")))
        items, failure = await fetch_catalog(store)
        assert items == []
        assert isinstance(failure, FetchFailure)
        assert failure.source == "catalog"

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self):
        mock = AsyncMock(side_effect=RecordStoreError("list_catalog_items"))
        await fetch_catalog(_store(list_catalog_items=mock))
        assert mock.await_count == 1


class TestFetchOverlay:
    @pytest.mark.asyncio
    async def test_keyed_by_item_id(self):
        entries = [
            OverlayEntry(item_id=4, position=2, pinned=True, user_id=7),
            OverlayEntry(item_id=9, position=1, user_id=7),
        ]
        store = _store(list_overlay_entries=AsyncMock(return_value=entries))
        overlay = await fetch_overlay(store, 7)

        assert set(overlay) == {4, 9}
        assert overlay[4].pinned is True
        store.list_overlay_entries.assert_awaited_once_with(7)

    @pytest.mark.asyncio
    async def test_without_user_skips_store(self):
        mock = AsyncMock()
        assert await fetch_overlay(_store(list_overlay_entries=mock), None) == {}
        mock.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_errors_swallowed(self):
        store = _store(list_overlay_entries=AsyncMock(side_effect=RecordStoreError("list_overlay_entries")))
        assert await fetch_overlay(store, 7) == {}
