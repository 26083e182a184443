from typing import Optional


class InventoryError(Exception):
    """Base class for errors raised by the inventory core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    """Exception raised when product input violates a field constraint."""

    def __init__(self, details: str, message: str = "Validation error"):
        super().__init__(message)
        self.details = details


class NotFoundError(InventoryError):
    """Exception raised when the requested product doesn't exist."""

    def __init__(self, message: str, resource_id: Optional[object] = None):
        super().__init__(message)
        self.resource_id = resource_id


class ConflictError(InventoryError):
    """Exception raised when a write would violate a uniqueness constraint."""
    pass


class StorageError(InventoryError):
    """Exception raised when the database fails unexpectedly."""
    pass


REQUEST_LOCATIONS = ("body", "query", "path", "header", "cookie")


def format_validation_errors(errors) -> str:
    """
    Flatten pydantic error dicts into "field: message" pairs.

    The leading location segment FastAPI adds to request errors is dropped.
    """
    parts = []
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in REQUEST_LOCATIONS:
            loc = loc[1:]
        field = ".".join(str(item) for item in loc) or "body"
        parts.append(f"{field}: {error.get('msg')}")
    return ", ".join(parts)
