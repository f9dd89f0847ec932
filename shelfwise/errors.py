"""
Exception types raised by the domain model and use cases.

Every error carries a human readable message plus an optional ``details``
dict; the CLI prints the message, tests may inspect the details.
"""


class ShelfwiseError(Exception):
    """Base exception for all library errors"""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(ShelfwiseError, LookupError):
    """Raised when a book, shelf or bookcase lookup misses"""

    def __init__(self, entity: str, key, message: str | None = None):
        msg = message or f"{entity} not found: {key}"
        super().__init__(msg, {"entity": entity, "key": str(key)})


class DuplicateError(ShelfwiseError, ValueError):
    """Raised when a record with the same natural key already exists"""


class CapacityExceededError(ShelfwiseError):
    """Raised when a shelf has no room left"""


class InvalidStateError(ShelfwiseError):
    """Raised when an operation is not allowed in the current state"""


class ValidationError(ShelfwiseError, ValueError):
    """Raised when input values violate a domain rule"""

    def __init__(self, message: str, invalid_fields: dict | None = None):
        details = {"invalid_fields": invalid_fields} if invalid_fields else {}
        super().__init__(message, details)


class MetadataLookupError(ShelfwiseError):
    """Raised when the ISBN metadata provider cannot be reached or fails"""
