"""Value types flowing through the layout engine."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CatalogRecord:
    """A shared catalog entry as read from the record store."""
    id: int
    title: str
    description: str = ""
    icon: str = "Bot"
    card_color: str = "bg-white"
    url: str = ""
    created_at: datetime | None = None
    access_list: tuple[int, ...] = ()


@dataclass(frozen=True)
class OverlayEntry:
    """Per-user display position and pinned flag for one catalog item."""
    item_id: int
    position: int
    pinned: bool = False
    user_id: int | None = None


@dataclass(frozen=True)
class MergedViewItem:
    """A catalog record joined with its resolved overlay state."""
    id: int
    title: str
    description: str
    icon: str
    card_color: str
    url: str
    created_at: datetime | None
    access_list: tuple[int, ...]
    position: int
    pinned: bool = False

    @classmethod
    def from_record(cls, record: CatalogRecord, position: int, pinned: bool = False) -> "MergedViewItem":
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            icon=record.icon,
            card_color=record.card_color,
            url=record.url,
            created_at=record.created_at,
            access_list=record.access_list,
            position=position,
            pinned=pinned,
        )

    def sort_key(self) -> tuple[bool, int]:
        return (not self.pinned, self.position)


@dataclass(frozen=True)
class UserIdentity:
    """The signed-in user driving a hub session."""
    user_id: int
    username: str = ""
    role: int = 0
