"""Error taxonomy for the catalog data-access layer.

- ValidationError: malformed input (unknown field, empty patch, bad pagination)
- NotFoundError: no row for the requested id
- DuplicateError: uniqueness violation or exact-match resubmission
- DatabaseError: any storage failure, carrying the provider SQLSTATE code

NotFound/Duplicate are expected business outcomes. DatabaseError messages are
safe to show to callers: they never include the raw provider error text.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog errors."""

    code = "CATALOG_ERROR"

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(CatalogError):
    code = "VALIDATION_ERROR"


class NotFoundError(CatalogError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, id: object | None = None) -> None:
        suffix = f" with id {id}" if id is not None else ""
        super().__init__(f"{resource}{suffix} not found", {"resource": resource})
        self.resource = resource
        self.id = id


class DuplicateError(CatalogError):
    code = "DUPLICATE"

    def __init__(self, resource: str, field: str | None = None, detail: dict[str, Any] | None = None) -> None:
        suffix = f" with {field}" if field else ""
        super().__init__(f"{resource}{suffix} already exists", detail)
        self.resource = resource
        self.field = field


class DatabaseError(CatalogError):
    """Wrapped storage failure.

    `sqlstate` is the provider error code (e.g. "23503") or a synthetic code
    such as "TIMEOUT" / "POOL_TIMEOUT" / "UNKNOWN".
    """

    code = "DATABASE_ERROR"

    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message, {"sqlstate": sqlstate} if sqlstate else None)
        self.sqlstate = sqlstate or "UNKNOWN"


class QueryTimeoutError(DatabaseError):
    code = "QUERY_TIMEOUT"

    def __init__(self, message: str = "Query timed out") -> None:
        super().__init__(message, "TIMEOUT")


class PoolTimeoutError(DatabaseError):
    code = "POOL_TIMEOUT"

    def __init__(self, message: str = "Timed out waiting for a database connection") -> None:
        super().__init__(message, "POOL_TIMEOUT")
