from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from shelfwise.errors import CapacityExceededError, ValidationError
from shelfwise.identifiers import BookcaseId, BookId, ShelfId


@dataclass(frozen=True)
class Placement:
    """The association of one book with one shelf."""

    book_id: BookId
    shelf_id: ShelfId

    def __post_init__(self) -> None:
        if self.book_id is None:
            raise ValidationError("Book ID cannot be null")
        if self.shelf_id is None:
            raise ValidationError("Shelf ID cannot be null")


@dataclass(frozen=True)
class ShelfSummary:
    shelf_id: ShelfId
    label: str
    position: int
    book_count: int
    book_capacity: int

    @property
    def is_full(self) -> bool:
        return self.book_count >= self.book_capacity


class Shelf:
    """A capacity-bounded row of books inside a bookcase.

    Books are tracked by id only; the Book rows carry the back-reference.
    """

    def __init__(self, bookcase_id: BookcaseId, position: int, label: str, book_capacity: int,
                 id: Optional[ShelfId] = None, book_ids: Optional[List[BookId]] = None) -> None:
        if bookcase_id is None:
            raise ValidationError("Bookcase ID cannot be null")
        if label is None or not label.strip():
            raise ValidationError("Shelf label cannot be null or blank", {"label": label})
        if position < 1:
            raise ValidationError("Shelf position must be greater than 0", {"position": position})
        if book_capacity < 1:
            raise ValidationError("Book capacity must be greater than 0", {"book_capacity": book_capacity})
        self.id = id
        self.bookcase_id = bookcase_id
        self.position = position
        self.label = label.strip()
        self.book_capacity = book_capacity
        self.book_ids: List[BookId] = list(book_ids or [])

    def __repr__(self) -> str:
        return (f"Shelf(id={self.id}, label={self.label!r}, position={self.position}, "
                f"book_capacity={self.book_capacity}, books={[b.value for b in self.book_ids]})")

    @property
    def book_count(self) -> int:
        return len(self.book_ids)

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.book_capacity - self.book_count)

    def is_full(self) -> bool:
        return len(self.book_ids) >= self.book_capacity

    def is_empty(self) -> bool:
        return len(self.book_ids) == 0

    def holds(self, book_id: BookId) -> bool:
        return book_id in self.book_ids

    def add_book(self, book_id: BookId) -> None:
        if self.holds(book_id):
            return
        if self.is_full():
            raise CapacityExceededError(
                "Shelf is full",
                {"shelf_id": str(self.id), "book_capacity": self.book_capacity},
            )
        self.book_ids.append(book_id)

    def remove_book(self, book_id: BookId) -> None:
        if book_id in self.book_ids:
            self.book_ids.remove(book_id)

    def summary(self) -> ShelfSummary:
        return ShelfSummary(
            shelf_id=self.id,
            label=self.label,
            position=self.position,
            book_count=self.book_count,
            book_capacity=self.book_capacity,
        )
