"""Pin toggle transition."""

from dataclasses import replace
from typing import Optional, Sequence

from .reconciler import sort_view
from .types import MergedViewItem, OverlayEntry


def toggle_pinned(
    view: Sequence[MergedViewItem],
    item_id: int,
    user_id: int,
    current_pinned: Optional[bool] = None,
    unknown_position: int = 9999,
) -> Optional[tuple[list[MergedViewItem], OverlayEntry]]:
    """Flip one item's pinned flag and re-sort.

    ``current_pinned`` is the flag the caller last displayed; when omitted
    the flag held by the view is used. Returns the new view and the single
    overlay entry to persist, or None if the item is not in the view.
    """
    positions = {item.id: item.position for item in view}
    if item_id not in positions:
        return None

    flags = {item.id: item.pinned for item in view}
    new_pinned = not (flags[item_id] if current_pinned is None else current_pinned)

    updated = [
        replace(item, pinned=new_pinned) if item.id == item_id else item
        for item in view
    ]
    position = positions.get(item_id)
    entry = OverlayEntry(
        item_id=item_id,
        position=position if position is not None else unknown_position,
        pinned=new_pinned,
        user_id=user_id,
    )
    return sort_view(updated), entry
