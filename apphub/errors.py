"""Error taxonomy for the layout subsystem.

None of these is fatal to the application. Fetch failures degrade to empty
data, persist failures are logged only, and invalid gestures are ignored.
"""


class HubError(Exception):
    """Base class for App Hub errors."""


class RecordStoreError(HubError):
    """A record store operation failed (wraps the driver error)."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"record store {operation} failed{detail}")


class FetchFailure(HubError):
    """Catalog or overlay read failed."""

    def __init__(self, source: str, cause: Exception | None = None):
        self.source = source
        self.cause = cause
        super().__init__(f"{source} fetch failed: {cause}")


class PersistFailure(HubError):
    """Overlay upsert failed; the optimistic local view stays authoritative."""

    def __init__(self, user_id: int, entry_count: int, cause: Exception | None = None):
        self.user_id = user_id
        self.entry_count = entry_count
        self.cause = cause
        super().__init__(f"overlay persist of {entry_count} entries for user {user_id} failed: {cause}")


class CatalogItemNotFound(HubError):
    """Catalog edit targeted an item that does not exist."""

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"catalog item {item_id} not found")
