"""Hub sessions — the per-user working view and the gesture controllers.

A HubSession owns one user's merged view. Gestures apply a pure transition
to the view synchronously, then schedule persistence of the overlay delta
as a background task that the caller never awaits. A failed persist is
logged and the optimistic view stays as displayed until the next reload.
"""

import asyncio
from typing import Optional

from ..errors import PersistFailure, RecordStoreError
from ..utils.logging import get_logger
from .access import filter_visible
from .fetchers import fetch_catalog, fetch_overlay
from .icons import DEFAULT_FAVICON_SERVICE, resolve_icon
from .pinning import toggle_pinned
from .reconciler import reconcile
from .reorder import move_item, overlay_batch
from .types import MergedViewItem, OverlayEntry, UserIdentity

logger = get_logger("engine.session")


class HubSession:
    """Working view and layout controllers for one signed-in user."""

    def __init__(
        self,
        identity: UserIdentity,
        store,
        admin_threshold: int = 6,
        unknown_position: int = 9999,
    ):
        self.identity = identity
        self._store = store
        self._admin_threshold = admin_threshold
        self._unknown_position = unknown_position
        self._view: list[MergedViewItem] = []
        self._pending: set[asyncio.Task] = set()
        # Persists for one session land in gesture order
        self._write_lock = asyncio.Lock()
        self.edit_mode: bool = False
        self.search_term: str = ""
        self.catalog_error: Optional[str] = None

    @property
    def user_id(self) -> int:
        return self.identity.user_id

    @property
    def is_admin(self) -> bool:
        return self.identity.role >= self._admin_threshold

    @property
    def view(self) -> list[MergedViewItem]:
        """The full merged view, before access filtering."""
        return list(self._view)

    def visible_items(self) -> list[MergedViewItem]:
        """The merged view filtered for this user and the active search term."""
        return filter_visible(
            self._view,
            self.identity.user_id,
            self.identity.role,
            self.search_term,
            self._admin_threshold,
        )

    async def load(self) -> list[MergedViewItem]:
        """Fetch catalog and overlay concurrently and rebuild the view."""
        (items, failure), overlay = await asyncio.gather(
            fetch_catalog(self._store),
            fetch_overlay(self._store, self.identity.user_id),
        )
        self.catalog_error = str(failure) if failure else None
        self._view = reconcile(items, overlay)
        logger.info(
            "hub_view_loaded",
            user_id=self.identity.user_id,
            items=len(self._view),
            overlay_entries=len(overlay),
        )
        return self.view

    # --- Gestures ---

    def on_reorder(self, source_id: int, target_id: int) -> bool:
        """Move source into target's slot. Returns False for ignored gestures."""
        if self.edit_mode:
            logger.debug("reorder_ignored_edit_mode", user_id=self.user_id)
            return False

        moved = move_item(self._view, self.visible_items(), source_id, target_id)
        if moved is None:
            return False

        self._view = moved
        self._schedule_persist(overlay_batch(moved, self.user_id))
        logger.info("items_reordered", user_id=self.user_id, source=source_id, target=target_id)
        return True

    def on_toggle_pinned(self, item_id: int, current_pinned: Optional[bool] = None) -> bool:
        """Flip an item's pinned flag. Returns False unless the item is visible."""
        if not any(item.id == item_id for item in self.visible_items()):
            return False

        result = toggle_pinned(
            self._view,
            item_id,
            self.user_id,
            current_pinned=current_pinned,
            unknown_position=self._unknown_position,
        )
        if result is None:
            return False

        self._view, entry = result
        self._schedule_persist([entry])
        logger.info("item_pin_toggled", user_id=self.user_id, item_id=item_id, pinned=entry.pinned)
        return True

    def on_set_search_term(self, text: Optional[str]) -> None:
        self.search_term = text or ""

    def set_edit_mode(self, enabled: bool) -> bool:
        """Enter or leave edit mode. Only admins may enable it."""
        if enabled and not self.is_admin:
            return False
        self.edit_mode = enabled
        return True

    # --- Persistence ---

    async def persist(self, entries: list[OverlayEntry]) -> bool:
        """Upsert overlay entries. Failures are logged, never raised."""
        async with self._write_lock:
            try:
                await self._store.upsert_overlay_entries(entries)
            except (RecordStoreError, ValueError) as e:
                failure = PersistFailure(self.user_id, len(entries), e)
                logger.error("overlay_persist_failed", user_id=self.user_id, entries=len(entries), error=str(failure))
                return False
            except Exception as e:
                logger.error(
                    "overlay_persist_failed",
                    user_id=self.user_id,
                    entries=len(entries),
                    error=str(PersistFailure(self.user_id, len(entries), e)),
                    exc_info=True,
                )
                return False
        logger.debug("overlay_persisted", user_id=self.user_id, entries=len(entries))
        return True

    def _schedule_persist(self, entries: list[OverlayEntry]) -> None:
        task = asyncio.get_running_loop().create_task(self.persist(entries))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def wait_for_pending(self) -> None:
        """Wait until every scheduled persist has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def abandon_pending(self) -> None:
        """Drop references to in-flight persists; they run to completion unobserved."""
        self._pending.clear()

    def to_dict(self, favicon_service_url: Optional[str] = None) -> dict:
        service = favicon_service_url or DEFAULT_FAVICON_SERVICE
        return {
            "user_id": self.user_id,
            "edit_mode": self.edit_mode,
            "search_term": self.search_term,
            "catalog_error": self.catalog_error,
            "items": [
                {
                    "id": item.id,
                    "title": item.title,
                    "description": item.description,
                    "icon": resolve_icon(item.icon, item.url, service),
                    "card_color": item.card_color,
                    "url": item.url,
                    "position": item.position,
                    "pinned": item.pinned,
                    "access_list": list(item.access_list) if self.is_admin else [],
                }
                for item in self.visible_items()
            ],
        }


class HubSessionRegistry:
    """One HubSession per signed-in user."""

    def __init__(self, store, admin_threshold: int = 6, unknown_position: int = 9999):
        self._store = store
        self._admin_threshold = admin_threshold
        self._unknown_position = unknown_position
        self._sessions: dict[int, HubSession] = {}
        # Users whose cached view predates the latest catalog change
        self._stale: set[int] = set()

    async def open(self, identity: UserIdentity) -> HubSession:
        """Create a fresh session (edit mode off) and load its view.

        An existing session for the same user is replaced.
        """
        self._stale.discard(identity.user_id)
        previous = self._sessions.pop(identity.user_id, None)
        if previous is not None:
            previous.abandon_pending()

        session = HubSession(
            identity,
            self._store,
            admin_threshold=self._admin_threshold,
            unknown_position=self._unknown_position,
        )
        self._sessions[identity.user_id] = session
        await session.load()
        logger.info("hub_session_opened", user_id=identity.user_id, role=identity.role)
        return session

    async def get(self, identity: UserIdentity) -> HubSession:
        """Existing session for the user, or a newly opened one.

        A role change in the identity counts as a new session. A session made
        stale by a catalog change is reloaded, keeping its edit mode and
        search term.
        """
        session = self._sessions.get(identity.user_id)
        if session is None or session.identity != identity:
            return await self.open(identity)
        if identity.user_id in self._stale:
            self._stale.discard(identity.user_id)
            await session.wait_for_pending()
            await session.load()
        return session

    def invalidate_all(self) -> None:
        """Mark every open session for reload on its next use."""
        self._stale = set(self._sessions)
        logger.info("hub_sessions_invalidated", sessions=len(self._stale))

    def close(self, user_id: int) -> bool:
        self._stale.discard(user_id)
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        session.abandon_pending()
        logger.info("hub_session_closed", user_id=user_id)
        return True

    def __len__(self) -> int:
        return len(self._sessions)

    async def flush(self) -> None:
        """Wait for every open session's in-flight persists."""
        for session in list(self._sessions.values()):
            await session.wait_for_pending()

    async def shutdown(self) -> None:
        """Let in-flight persists finish, then forget every session."""
        await self.flush()
        self._sessions.clear()
        self._stale.clear()
