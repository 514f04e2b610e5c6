"""
Progress errors.

Every failure the tracker reports carries an HTTP status code and a short
error code, so the HTTP layer can render it without a lookup table.

    NotFound           catalog (or item) does not exist at all
    Exhausted          catalog exists but has no further items; expected
    ConflictAbandoned  a guarded write lost a race; re-read and decide
    StoreUnavailable   the database could not be reached; retry with backoff
    Unauthenticated    identity could not be resolved; never processed
"""


class ProgressError(Exception):
    """Base class for tracker errors."""

    status_code: int = 500
    error_code: str = "progress_error"

    def __init__(self, message: str, status_code: int = None, error_code: str = None):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code


class NotFound(ProgressError):
    status_code = 404
    error_code = "not_found"


class Exhausted(ProgressError):
    """No item exists after the user's current position in the catalog."""

    status_code = 200
    error_code = "exhausted"

    def __init__(self, catalog_name: str, completed: int):
        super().__init__(f"catalog {catalog_name!r} exhausted after {completed} items")
        self.catalog_name = catalog_name
        self.completed = completed


class ConflictAbandoned(ProgressError):
    """A conditional write found its guard value changed."""

    status_code = 409
    error_code = "conflict_abandoned"


class StoreUnavailable(ProgressError):
    status_code = 503
    error_code = "store_unavailable"


class Unauthenticated(ProgressError):
    status_code = 401
    error_code = "unauthenticated"
