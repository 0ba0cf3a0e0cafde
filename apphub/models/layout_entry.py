"""Layout overlay model — per-user position and pinned flag for one catalog item."""

from sqlalchemy import Boolean, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class LayoutEntry(Base):
    __tablename__ = "layout_entries"
    __table_args__ = (UniqueConstraint("user_id", "item_id", name="uq_layout_user_item"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    # No foreign key: entries outlive deleted catalog items and are ignored
    item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
