"""Record store — async SQLAlchemy access to the catalog, overlay and user tables.

Every public method opens its own session from the injected factory, so the
store can be shared across hub sessions and background persistence tasks.
Driver errors are wrapped in RecordStoreError; callers decide whether a
failure degrades, logs or surfaces.
"""

import json
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from ..engine.types import CatalogRecord, OverlayEntry
from ..errors import CatalogItemNotFound, RecordStoreError
from ..utils.logging import get_logger

logger = get_logger("store.record_store")

_EDITABLE_FIELDS = ("title", "description", "icon", "card_color", "url")

_UPSERT_INSERTS = {"sqlite": sqlite_insert, "postgresql": pg_insert}


def _to_record(item) -> CatalogRecord:
    access = json.loads(item.access_list_json) if item.access_list_json else []
    return CatalogRecord(
        id=item.id,
        title=item.title,
        description=item.description or "",
        icon=item.icon or "Bot",
        card_color=item.card_color or "bg-white",
        url=item.url or "",
        created_at=item.created_at,
        access_list=tuple(int(uid) for uid in access),
    )


class RecordStore:
    """Query/insert/update/delete/upsert over the hub's named collections."""

    def __init__(self, db_session_factory=None, default_card_color: str = "bg-white"):
        self._db_session_factory = db_session_factory
        self._default_card_color = default_card_color

    # --- Catalog ---

    async def list_catalog_items(self) -> list[CatalogRecord]:
        """All catalog items in creation order (ties broken by id)."""
        from ..models.catalog_item import CatalogItem

        try:
            async with self._db_session_factory() as session:
                rows = (await session.execute(
                    select(CatalogItem).order_by(CatalogItem.created_at.asc(), CatalogItem.id.asc())
                )).scalars().all()
                return [_to_record(row) for row in rows]
        except SQLAlchemyError as e:
            raise RecordStoreError("list_catalog_items", e) from e

    async def create_catalog_item(
        self,
        title: str,
        description: str = "",
        icon: str = "Bot",
        card_color: Optional[str] = None,
        url: str = "",
        access_list: Iterable[int] = (),
    ) -> CatalogRecord:
        """Insert a new catalog item stamped with the current UTC time."""
        from ..models.catalog_item import CatalogItem

        try:
            async with self._db_session_factory() as session:
                item = CatalogItem(
                    title=title,
                    description=description or "",
                    icon=icon or "Bot",
                    card_color=card_color or self._default_card_color,
                    url=url or "",
                    access_list_json=json.dumps(sorted(set(access_list))),
                    created_at=datetime.now(timezone.utc),
                )
                session.add(item)
                await session.commit()
                await session.refresh(item)
                record = _to_record(item)
        except SQLAlchemyError as e:
            raise RecordStoreError("create_catalog_item", e) from e

        logger.info("catalog_item_created", id=record.id, title=record.title)
        return record

    async def update_catalog_item(self, item_id: int, **changes) -> CatalogRecord:
        """Apply field changes to an existing item. Unknown fields are ignored."""
        from ..models.catalog_item import CatalogItem

        try:
            async with self._db_session_factory() as session:
                item = (await session.execute(
                    select(CatalogItem).where(CatalogItem.id == item_id)
                )).scalar_one_or_none()
                if item is None:
                    raise CatalogItemNotFound(item_id)

                for name in _EDITABLE_FIELDS:
                    value = changes.get(name)
                    if value is not None:
                        setattr(item, name, value)
                if changes.get("access_list") is not None:
                    item.access_list_json = json.dumps(sorted(set(changes["access_list"])))

                await session.commit()
                record = _to_record(item)
        except SQLAlchemyError as e:
            raise RecordStoreError("update_catalog_item", e) from e

        logger.info("catalog_item_updated", id=item_id, fields=sorted(k for k, v in changes.items() if v is not None))
        return record

    async def delete_catalog_item(self, item_id: int) -> None:
        """Delete a catalog item. Overlay entries pointing at it are left orphaned."""
        from ..models.catalog_item import CatalogItem

        try:
            async with self._db_session_factory() as session:
                item = (await session.execute(
                    select(CatalogItem).where(CatalogItem.id == item_id)
                )).scalar_one_or_none()
                if item is None:
                    raise CatalogItemNotFound(item_id)
                await session.delete(item)
                await session.commit()
        except SQLAlchemyError as e:
            raise RecordStoreError("delete_catalog_item", e) from e

        logger.info("catalog_item_deleted", id=item_id)

    # --- Layout overlay ---

    async def list_overlay_entries(self, user_id: int) -> list[OverlayEntry]:
        """Every overlay entry stored for one user, orphans included."""
        from ..models.layout_entry import LayoutEntry

        try:
            async with self._db_session_factory() as session:
                rows = (await session.execute(
                    select(LayoutEntry).where(LayoutEntry.user_id == user_id)
                )).scalars().all()
                return [
                    OverlayEntry(
                        item_id=row.item_id,
                        position=row.position,
                        pinned=bool(row.pinned),
                        user_id=row.user_id,
                    )
                    for row in rows
                ]
        except SQLAlchemyError as e:
            raise RecordStoreError("list_overlay_entries", e) from e

    async def upsert_overlay_entries(self, entries: Iterable[OverlayEntry]) -> int:
        """Insert or update overlay rows keyed on (user_id, item_id).

        A single INSERT ... ON CONFLICT DO UPDATE statement, so overlapping
        persists for the same key update the row instead of racing to insert
        it. Returns the number of entries written. Later duplicates of the
        same key within one batch win.
        """
        from ..models.layout_entry import LayoutEntry

        batch: dict[tuple[int, int], OverlayEntry] = {}
        for entry in entries:
            if entry.user_id is None:
                raise ValueError(f"overlay entry for item {entry.item_id} has no user_id")
            batch[(entry.user_id, entry.item_id)] = entry
        if not batch:
            return 0

        rows = [
            {
                "user_id": entry.user_id,
                "item_id": entry.item_id,
                "position": entry.position,
                "pinned": entry.pinned,
            }
            for entry in batch.values()
        ]

        try:
            async with self._db_session_factory() as session:
                dialect = session.get_bind().dialect.name
                insert = _UPSERT_INSERTS.get(dialect)
                if insert is None:
                    raise RecordStoreError(
                        "upsert_overlay_entries",
                        NotImplementedError(f"no upsert support for dialect {dialect!r}"),
                    )
                stmt = insert(LayoutEntry).values(rows)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["user_id", "item_id"],
                    set_={"position": stmt.excluded.position, "pinned": stmt.excluded.pinned},
                )
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise RecordStoreError("upsert_overlay_entries", e) from e

        return len(batch)

    # --- Users ---

    async def get_user_profile(self, user_id: int) -> Optional[dict]:
        """Return {id, username, img_url, role} for a user, or None if absent."""
        from ..models.user import User

        try:
            async with self._db_session_factory() as session:
                user = (await session.execute(
                    select(User).where(User.id == user_id)
                )).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RecordStoreError("get_user_profile", e) from e

        if user is None:
            return None
        return {
            "id": user.id,
            "username": user.username,
            "img_url": user.img_url or "",
            "role": user.role,
        }
