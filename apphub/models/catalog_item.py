"""Catalog item model — shared, admin-owned app entries."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class CatalogItem(Base):
    __tablename__ = "catalog_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    icon: Mapped[str] = mapped_column(String(1024), default="Bot", nullable=False)
    card_color: Mapped[str] = mapped_column(String(100), default="bg-white", nullable=False)
    url: Mapped[str] = mapped_column(String(2048), default="", nullable=False)
    # JSON list of user IDs; empty means admins only
    access_list_json: Mapped[str] = mapped_column(Text, default="[]", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
