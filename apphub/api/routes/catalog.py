"""Catalog routes — admin editing of the shared app entries."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...auth.rbac import require_admin
from ...dependencies import get_identity, get_record_store, get_session_registry
from ...engine.types import CatalogRecord, UserIdentity

router = APIRouter(prefix="/catalog", tags=["catalog"])


# --- Request bodies ---

class CreateItemRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    icon: str = "Bot"
    card_color: Optional[str] = None
    url: str = ""
    access_list: list[int] = []


class UpdateItemRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = None
    card_color: Optional[str] = None
    url: Optional[str] = None
    access_list: Optional[list[int]] = None


# --- Helpers ---

def _item_dict(record: CatalogRecord) -> dict:
    return {
        "id": record.id,
        "title": record.title,
        "description": record.description,
        "icon": record.icon,
        "card_color": record.card_color,
        "url": record.url,
        "access_list": list(record.access_list),
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }


async def _publish_catalog_change(identity: UserIdentity) -> None:
    """Mark every open view stale and reload the acting admin's right away."""
    registry = get_session_registry()
    registry.invalidate_all()
    await registry.get(identity)


# --- Endpoints ---

@router.get("/")
async def list_items(current_user: dict = Depends(require_admin())):
    """Every catalog item in creation order, unfiltered."""
    items = await get_record_store().list_catalog_items()
    return [_item_dict(item) for item in items]


@router.post("/", status_code=201)
async def create_item(
    body: CreateItemRequest,
    current_user: dict = Depends(require_admin()),
    identity: UserIdentity = Depends(get_identity),
):
    record = await get_record_store().create_catalog_item(
        title=body.title,
        description=body.description,
        icon=body.icon,
        card_color=body.card_color,
        url=body.url,
        access_list=body.access_list,
    )
    await _publish_catalog_change(identity)
    return _item_dict(record)


@router.put("/{item_id}")
async def update_item(
    item_id: int,
    body: UpdateItemRequest,
    current_user: dict = Depends(require_admin()),
    identity: UserIdentity = Depends(get_identity),
):
    record = await get_record_store().update_catalog_item(item_id, **body.model_dump())
    await _publish_catalog_change(identity)
    return _item_dict(record)


@router.delete("/{item_id}")
async def delete_item(
    item_id: int,
    current_user: dict = Depends(require_admin()),
    identity: UserIdentity = Depends(get_identity),
):
    await get_record_store().delete_catalog_item(item_id)
    await _publish_catalog_change(identity)
    return {"deleted": item_id}
