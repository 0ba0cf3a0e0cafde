"""SQLAlchemy models package."""

from .base import Base
from .user import User
from .catalog_item import CatalogItem
from .layout_entry import LayoutEntry

__all__ = [
    "Base",
    "User",
    "CatalogItem",
    "LayoutEntry",
]
