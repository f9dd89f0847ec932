"""
Shelfwise: a personal library catalog.

Tracks books, the shelves and bookcases that hold them, and whether each
book is available or checked out.
"""

from shelfwise.book import AvailabilityStatus, Book
from shelfwise.bookcase import Bookcase
from shelfwise.errors import (
    CapacityExceededError,
    DuplicateError,
    InvalidStateError,
    MetadataLookupError,
    NotFoundError,
    ShelfwiseError,
    ValidationError,
)
from shelfwise.identifiers import AuthorRef, BookcaseId, BookId, Isbn, ShelfId, Title
from shelfwise.library import Library
from shelfwise.shelf import Placement, Shelf, ShelfSummary

__version__ = "0.1.0"

__all__ = [
    "AuthorRef",
    "AvailabilityStatus",
    "Book",
    "BookId",
    "Bookcase",
    "BookcaseId",
    "CapacityExceededError",
    "DuplicateError",
    "InvalidStateError",
    "Isbn",
    "Library",
    "MetadataLookupError",
    "NotFoundError",
    "Placement",
    "Shelf",
    "ShelfId",
    "ShelfSummary",
    "ShelfwiseError",
    "Title",
    "ValidationError",
]
