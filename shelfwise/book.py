from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from shelfwise.errors import InvalidStateError
from shelfwise.identifiers import AuthorRef, BookId, Isbn, ShelfId, Title


class AvailabilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    CHECKED_OUT = "CHECKED_OUT"


class Book:
    """A single catalogued book and its circulation state."""

    def __init__(self, title: Title | str, isbn: Isbn | str, authors: Optional[List[AuthorRef]] = None,
                 publisher: str = "", description: str = "", id: Optional[BookId] = None,
                 shelf_id: Optional[ShelfId] = None,
                 availability_status: AvailabilityStatus = AvailabilityStatus.AVAILABLE,
                 published_date: Optional[str] = None, categories: Optional[List[str]] = None,
                 created_at: Optional[datetime] = None, updated_at: Optional[datetime] = None) -> None:
        self.id = id
        self.title = title if isinstance(title, Title) else Title(title)
        self.isbn = isbn if isinstance(isbn, Isbn) else Isbn(isbn)
        self.authors = list(authors or [])
        self.publisher = publisher or ""
        self.description = description or ""
        self.shelf_id = shelf_id
        self.availability_status = AvailabilityStatus(availability_status)
        self.published_date = published_date
        self.categories = list(categories or [])
        now = datetime.now()
        self.created_at = created_at or now
        self.updated_at = updated_at or self.created_at

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author_names} (ISBN: {self.isbn})"

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title={self.title.value!r}, shelf_id={self.shelf_id}, status={self.availability_status.value})"

    # ------------------------- Circulation ------------------------- #
    def checkout(self) -> None:
        if self.availability_status is not AvailabilityStatus.AVAILABLE:
            raise InvalidStateError("book already checked out", {"book_id": str(self.id)})
        self.availability_status = AvailabilityStatus.CHECKED_OUT
        self.touch()

    def check_in(self) -> None:
        # No guard: checking in an available book leaves it available.
        self.availability_status = AvailabilityStatus.AVAILABLE
        self.touch()

    @property
    def is_checked_out(self) -> bool:
        return self.availability_status is AvailabilityStatus.CHECKED_OUT

    # ------------------------- Placement ------------------------- #
    def assign_shelf(self, shelf_id: Optional[ShelfId]) -> None:
        self.shelf_id = shelf_id
        self.touch()

    @property
    def is_placed(self) -> bool:
        return self.shelf_id is not None

    # ------------------------- Helpers ------------------------- #
    @property
    def author_names(self) -> str:
        return ", ".join(a.full_name for a in self.authors) or "Unknown Author"

    def touch(self) -> None:
        self.updated_at = datetime.now()

    def to_dict(self) -> dict:
        return {
            "id": self.id.value if self.id else None,
            "title": self.title.value,
            "isbn": self.isbn.value,
            "authors": [a.full_name for a in self.authors],
            "publisher": self.publisher,
            "description": self.description,
            "published_date": self.published_date,
            "categories": self.categories,
            "shelf_id": self.shelf_id.value if self.shelf_id else None,
            "availability_status": self.availability_status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @staticmethod
    def from_row(data: Any) -> "Book":
        """Build a Book from a sqlite3.Row (or any mapping with the column names)."""
        data = dict(data)
        return Book(
            id=BookId(data["id"]) if data.get("id") else None,
            title=data["title"],
            isbn=data["isbn"],
            authors=[AuthorRef.parse(name) for name in _json_list(data.get("authors"))],
            publisher=data.get("publisher") or "",
            description=data.get("description") or "",
            published_date=data.get("published_date"),
            categories=_json_list(data.get("categories")),
            shelf_id=ShelfId(data["shelf_id"]) if data.get("shelf_id") else None,
            availability_status=AvailabilityStatus(data.get("availability_status") or "AVAILABLE"),
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )


def _json_list(value: Any) -> List[str]:
    # JSON columns come back from SQLite as strings
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return [value]
    return parsed if isinstance(parsed, list) else [parsed]


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))
