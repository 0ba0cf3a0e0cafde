"""Access filter — which merged view items the current user may see."""

from typing import Iterable, Optional

from .types import MergedViewItem


def matches_search(item: MergedViewItem, search_term: Optional[str]) -> bool:
    """Case-insensitive substring match on title or description."""
    if not search_term:
        return True
    term = search_term.lower()
    return term in (item.title or "").lower() or term in (item.description or "").lower()


def can_view(item: MergedViewItem, user_id: Optional[int], role: int, admin_threshold: int) -> bool:
    """Admins see everything; everyone else only items listing them."""
    if role >= admin_threshold:
        return True
    if user_id is not None and user_id in item.access_list:
        return True
    return False


def filter_visible(
    view: Iterable[MergedViewItem],
    user_id: Optional[int],
    role: int,
    search_term: Optional[str] = None,
    admin_threshold: int = 6,
) -> list[MergedViewItem]:
    """Visible subset of an already sorted view, order preserved."""
    term = search_term.strip() if search_term else ""
    return [
        item for item in view
        if matches_search(item, term) and can_view(item, user_id, role, admin_threshold)
    ]
