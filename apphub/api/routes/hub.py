"""Hub routes — the caller's personalized, filtered catalog view and its gestures.

Gestures answer with the updated visible view straight away; overlay
persistence happens in the background. Ignored gestures (unknown ids,
moves in edit mode, self-moves) return the unchanged view with
``"applied": false``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ...config import HubConfig
from ...dependencies import get_app_config, get_hub_session
from ...engine.session import HubSession

router = APIRouter(prefix="/hub", tags=["hub"])


class ReorderRequest(BaseModel):
    source_id: int
    target_id: Optional[int] = None


class PinRequest(BaseModel):
    pinned: Optional[bool] = None


class SearchRequest(BaseModel):
    term: str = ""


class EditModeRequest(BaseModel):
    enabled: bool


def _render(session: HubSession, config: HubConfig, applied: Optional[bool] = None) -> dict:
    data = session.to_dict(config.favicon_service_url)
    if applied is not None:
        data["applied"] = applied
    return data


@router.get("/view")
async def get_view(
    search: Optional[str] = None,
    session: HubSession = Depends(get_hub_session),
    config: HubConfig = Depends(get_app_config),
):
    """Visible items, pinned first. ``search`` replaces the active term when given."""
    if search is not None:
        session.on_set_search_term(search)
    return _render(session, config)


@router.post("/reorder")
async def reorder(
    body: ReorderRequest,
    session: HubSession = Depends(get_hub_session),
    config: HubConfig = Depends(get_app_config),
):
    """Move ``source_id`` into the slot held by ``target_id``."""
    if body.target_id is None:
        return _render(session, config, applied=False)
    applied = session.on_reorder(body.source_id, body.target_id)
    return _render(session, config, applied=applied)


@router.post("/items/{item_id}/pin")
async def toggle_pin(
    item_id: int,
    body: Optional[PinRequest] = None,
    session: HubSession = Depends(get_hub_session),
    config: HubConfig = Depends(get_app_config),
):
    """Flip an item's pinned flag for the caller."""
    current = body.pinned if body is not None else None
    applied = session.on_toggle_pinned(item_id, current)
    return _render(session, config, applied=applied)


@router.put("/search")
async def set_search(
    body: SearchRequest,
    session: HubSession = Depends(get_hub_session),
    config: HubConfig = Depends(get_app_config),
):
    session.on_set_search_term(body.term)
    return _render(session, config)


@router.put("/edit-mode")
async def set_edit_mode(
    body: EditModeRequest,
    session: HubSession = Depends(get_hub_session),
    config: HubConfig = Depends(get_app_config),
):
    """Enter or leave catalog edit mode (admins only)."""
    if not session.set_edit_mode(body.enabled):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Edit mode requires an admin role",
        )
    return _render(session, config)


@router.post("/reload")
async def reload_view(
    session: HubSession = Depends(get_hub_session),
    config: HubConfig = Depends(get_app_config),
):
    """Re-fetch catalog and overlay and rebuild the view from scratch."""
    await session.load()
    return _render(session, config)
