class InventoryError(Exception):
    """Base class for errors raised by the inventory services."""
    pass


class ValidationError(InventoryError):
    """Raised when product data is missing a required field or is invalid."""

    def __init__(self, message: str = "Invalid product data", errors: list = None):
        super().__init__(message)
        self.errors = errors or []


class ConflictError(InventoryError):
    """Raised when another product already uses the requested name."""
    pass


class NotFoundError(InventoryError):
    """Raised when the requested product doesn't exist."""
    pass


class ImportFileError(InventoryError):
    """Raised when an import file cannot be read or parsed."""
    pass
