"""
Domain errors raised by the service layer.

Each error carries the HTTP status and a stable machine-readable code so the
API layer can render it without knowing which service raised it.
"""


class TrekAdminError(Exception):
    status_code: int = 400
    code: str = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TrekAdminError):
    """Missing or malformed input. Nothing has been written."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFound(TrekAdminError):
    status_code = 404
    code = "NOT_FOUND"


class DuplicateEntity(TrekAdminError):
    status_code = 409
    code = "DUPLICATE_ENTITY"


class StateConflict(TrekAdminError):
    """The entity is in a state that does not allow the requested transition."""

    status_code = 409
    code = "STATE_CONFLICT"


class ProtectedBatchConflict(StateConflict):
    """An update would remove batches that already carry bookings."""

    code = "BATCHES_HAVE_BOOKINGS"

    def __init__(self, message: str, batch_ids: list[int]):
        super().__init__(message)
        self.batch_ids = batch_ids


class StorageFailure(TrekAdminError):
    """
    Any failure of the underlying store. `transient` is set when the
    operation may succeed on retry (e.g. the connection pool was exhausted).
    """

    code = "STORAGE_FAILURE"

    def __init__(self, message: str = "Storage operation failed", transient: bool = False):
        super().__init__(message)
        self.transient = transient

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return 503 if self.transient else 500
