"""Reorder transition — relocate one item and renumber the working view."""

from dataclasses import replace
from typing import Iterable, Optional, Sequence

from .reconciler import sort_view
from .types import MergedViewItem, OverlayEntry


def move_item(
    view: Sequence[MergedViewItem],
    visible: Sequence[MergedViewItem],
    source_id: int,
    target_id: int,
) -> Optional[list[MergedViewItem]]:
    """Move source to the slot currently held by target.

    Both ids must be in the visible sequence. The move is applied to the
    full working view by index, so items hidden by the access filter or
    search keep their relative order around the edited span. Positions are
    renumbered 1..N in the new order with pinned flags preserved, then the
    pinned-first sort is re-applied. Returns None when nothing changes.
    """
    if source_id == target_id:
        return None
    visible_ids = {item.id for item in visible}
    if source_id not in visible_ids or target_id not in visible_ids:
        return None

    ids = [item.id for item in view]
    try:
        old_index = ids.index(source_id)
        new_index = ids.index(target_id)
    except ValueError:
        return None

    moved = list(view)
    moved.insert(new_index, moved.pop(old_index))
    return sort_view(renumber(moved))


def renumber(view: Iterable[MergedViewItem]) -> list[MergedViewItem]:
    """Assign contiguous positions 1..N in sequence order."""
    return [replace(item, position=index) for index, item in enumerate(view, start=1)]


def overlay_batch(view: Iterable[MergedViewItem], user_id: int) -> list[OverlayEntry]:
    """One overlay entry per item of the view, keyed to the user."""
    return [
        OverlayEntry(item_id=item.id, position=item.position, pinned=item.pinned, user_id=user_id)
        for item in view
    ]
