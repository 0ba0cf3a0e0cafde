"""Tests for the RecordStore against in-memory and file-backed SQLite databases."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from apphub.engine.session import HubSession
from apphub.engine.types import OverlayEntry, UserIdentity
from apphub.errors import CatalogItemNotFound, RecordStoreError
from apphub.models.base import Base
from apphub.models.user import User
from apphub.store.record_store import RecordStore


@pytest_asyncio.fixture
async def store():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    yield RecordStore(db_session_factory=factory)
    await engine.dispose()


@pytest_asyncio.fixture
async def file_store(tmp_path):
    """A store on a database file, so each session gets its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'hub.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield RecordStore(db_session_factory=async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()


def _failing_store():
    """A store whose sessions raise a driver error on every query."""
    session = AsyncMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("disk I/O error")))
    return RecordStore(db_session_factory=MagicMock(return_value=session))


class TestCatalog:
    @pytest.mark.asyncio
    async def test_create_and_list_in_creation_order(self, store):
        first = await store.create_catalog_item(title="Mail", icon="Mail", access_list=[3, 2, 3])
        second = await store.create_catalog_item(title="Drive", icon="favicon", url="https://drive.example.com")

        items = await store.list_catalog_items()
        assert [item.id for item in items] == [first.id, second.id]
        assert items[0].access_list == (2, 3)
        assert items[0].card_color == "bg-white"
        assert items[1].url == "https://drive.example.com"
        assert items[1].access_list == ()

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, store):
        created = await store.create_catalog_item(title="Wiki", description="Docs", access_list=[1])
        updated = await store.update_catalog_item(created.id, title="Handbook", description=None, access_list=[4])

        assert updated.title == "Handbook"
        assert updated.description == "Docs"
        assert updated.access_list == (4,)

    @pytest.mark.asyncio
    async def test_update_unknown_item(self, store):
        with pytest.raises(CatalogItemNotFound):
            await store.update_catalog_item(404, title="Nope")

    @pytest.mark.asyncio
    async def test_delete_leaves_overlay_orphaned(self, store):
        item = await store.create_catalog_item(title="Temp")
        await store.upsert_overlay_entries([OverlayEntry(item_id=item.id, position=1, user_id=7)])

        await store.delete_catalog_item(item.id)

        assert await store.list_catalog_items() == []
        assert [e.item_id for e in await store.list_overlay_entries(7)] == [item.id]

    @pytest.mark.asyncio
    async def test_delete_unknown_item(self, store):
        with pytest.raises(CatalogItemNotFound):
            await store.delete_catalog_item(404)


class TestOverlay:
    @pytest.mark.asyncio
    async def test_upsert_updates_instead_of_duplicating(self, store):
        await store.upsert_overlay_entries([
            OverlayEntry(item_id=1, position=1, user_id=7),
            OverlayEntry(item_id=2, position=2, user_id=7),
        ])
        written = await store.upsert_overlay_entries([OverlayEntry(item_id=2, position=1, pinned=True, user_id=7)])

        entries = {e.item_id: e for e in await store.list_overlay_entries(7)}
        assert written == 1
        assert len(entries) == 2
        assert entries[2].position == 1
        assert entries[2].pinned is True

    @pytest.mark.asyncio
    async def test_overlay_partitioned_by_user(self, store):
        await store.upsert_overlay_entries([
            OverlayEntry(item_id=1, position=5, user_id=7),
            OverlayEntry(item_id=1, position=9, user_id=8),
        ])
        assert [e.position for e in await store.list_overlay_entries(7)] == [5]
        assert [e.position for e in await store.list_overlay_entries(8)] == [9]

    @pytest.mark.asyncio
    async def test_last_duplicate_in_batch_wins(self, store):
        written = await store.upsert_overlay_entries([
            OverlayEntry(item_id=1, position=1, user_id=7),
            OverlayEntry(item_id=1, position=3, user_id=7),
        ])
        assert written == 1
        assert [e.position for e in await store.list_overlay_entries(7)] == [3]

    @pytest.mark.asyncio
    async def test_empty_batch_is_noop(self, store):
        assert await store.upsert_overlay_entries([]) == 0

    @pytest.mark.asyncio
    async def test_entry_without_user_rejected(self, store):
        with pytest.raises(ValueError):
            await store.upsert_overlay_entries([OverlayEntry(item_id=1, position=1)])


class TestOverlappingWrites:
    @pytest.mark.asyncio
    async def test_concurrent_upserts_of_same_key_both_succeed(self, file_store):
        written = await asyncio.gather(
            file_store.upsert_overlay_entries([OverlayEntry(item_id=1, position=1, user_id=7)]),
            file_store.upsert_overlay_entries([OverlayEntry(item_id=1, position=2, pinned=True, user_id=7)]),
        )

        assert written == [1, 1]
        assert [e.item_id for e in await file_store.list_overlay_entries(7)] == [1]

    @pytest.mark.asyncio
    async def test_back_to_back_gestures_survive_reload(self, file_store):
        maria = UserIdentity(user_id=7, username="maria", role=1)
        a, b, c = [
            (await file_store.create_catalog_item(title=title, access_list=[7])).id
            for title in ("Mail", "Drive", "Wiki")
        ]
        session = HubSession(maria, file_store)
        await session.load()

        assert session.on_toggle_pinned(c) is True
        assert session.on_reorder(b, a) is True
        optimistic = [(i.id, i.position, i.pinned) for i in session.view]
        assert optimistic == [(c, 1, True), (b, 2, False), (a, 3, False)]

        await session.wait_for_pending()
        reloaded = HubSession(maria, file_store)
        await reloaded.load()
        assert [(i.id, i.position, i.pinned) for i in reloaded.view] == optimistic


class TestProfilesAndFailures:
    @pytest.mark.asyncio
    async def test_user_profile(self, store):
        async with store._db_session_factory() as session:
            session.add(User(username="maria", password_hash="x", role=2, img_url="https://img/m.png"))
            await session.commit()

        profile = await store.get_user_profile(1)
        assert profile == {"id": 1, "username": "maria", "img_url": "https://img/m.png", "role": 2}
        assert await store.get_user_profile(2) is None

    @pytest.mark.asyncio
    async def test_driver_errors_wrapped(self):
        store = _failing_store()
        with pytest.raises(RecordStoreError) as exc_info:
            await store.list_catalog_items()
        assert exc_info.value.operation == "list_catalog_items"
        assert isinstance(exc_info.value.cause, OperationalError)

        with pytest.raises(RecordStoreError):
            await store.list_overlay_entries(7)
