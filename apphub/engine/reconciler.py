"""Layout reconciler — merges the shared catalog with a user's overlay.

Untouched items get default positions from a fold over the catalog that
carries the running maximum position, so the result depends only on the
inputs. The final ordering is a stable sort on (not pinned, position).
"""

from functools import reduce
from typing import Iterable, Mapping

from .types import CatalogRecord, MergedViewItem, OverlayEntry


def max_position(overlay: Mapping[int, OverlayEntry]) -> int:
    """Highest position in the overlay, 0 when empty. Orphans count."""
    return max((entry.position for entry in overlay.values()), default=0)


def sort_view(view: Iterable[MergedViewItem]) -> list[MergedViewItem]:
    """Pinned first, then by position; ties keep their incoming order."""
    return sorted(view, key=MergedViewItem.sort_key)


def reconcile(
    items: Iterable[CatalogRecord],
    overlay: Mapping[int, OverlayEntry],
) -> list[MergedViewItem]:
    """Produce the sorted merged view for one user.

    Overlay entries for ids missing from the catalog are ignored.
    """

    def _step(acc, record):
        merged, running_max = acc
        entry = overlay.get(record.id)
        if entry is not None:
            merged.append(MergedViewItem.from_record(record, entry.position, entry.pinned))
            return merged, running_max
        running_max += 1
        merged.append(MergedViewItem.from_record(record, running_max, False))
        return merged, running_max

    merged, _ = reduce(_step, items, ([], max_position(overlay)))
    return sort_view(merged)
