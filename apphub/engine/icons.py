"""Icon resolution for catalog cards."""

from urllib.parse import urlparse

FAVICON_SENTINEL = "favicon"
DEFAULT_SYMBOL = "Bot"
KNOWN_SYMBOLS = frozenset({
    "Bot", "Mail", "Shield", "Cloud", "Layout", "FileText",
    "Calendar", "Database", "Globe", "Lock", "MessageCircle", "Monitor",
})

DEFAULT_FAVICON_SERVICE = "https://www.google.com/s2/favicons?domain={domain}&sz=64"


def resolve_icon(icon: str, url: str = "", favicon_service_url: str = DEFAULT_FAVICON_SERVICE) -> dict:
    """Describe how a card's icon should be rendered.

    Returns one of:
        {"kind": "favicon", "src": ...}  derived from the target URL
        {"kind": "image", "src": ...}    external image
        {"kind": "symbol", "name": ...}  named glyph, unknown names fall back to Bot
    """
    if icon == FAVICON_SENTINEL and url:
        domain = urlparse(url).netloc or url
        return {"kind": "favicon", "src": favicon_service_url.format(domain=domain)}
    if icon and icon.startswith("http"):
        return {"kind": "image", "src": icon}
    name = icon if icon in KNOWN_SYMBOLS else DEFAULT_SYMBOL
    return {"kind": "symbol", "name": name}
