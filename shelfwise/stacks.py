"""
Stacks services: bookcases, shelves and book placement.

Bookcases own their shelves; shelves reference books by id only. The
services below keep the two sides consistent and run every multi-step
operation inside one database transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from shelfwise.book import Book
from shelfwise.bookcase import Bookcase
from shelfwise.database import Database
from shelfwise.errors import CapacityExceededError, DuplicateError, NotFoundError, ValidationError
from shelfwise.identifiers import BookcaseId, BookId, ShelfId
from shelfwise.repositories import BookcaseRepository, BookRepository, ShelfRepository
from shelfwise.shelf import Placement, Shelf, ShelfSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateBookcaseResult:
    bookcase_id: BookcaseId
    location: str
    shelf_count: int
    book_capacity_per_shelf: int

    @property
    def total_capacity(self) -> int:
        return self.shelf_count * self.book_capacity_per_shelf


class ShelfService:
    def __init__(self, db: Database, shelves: ShelfRepository, books: BookRepository,
                 bookcases: BookcaseRepository) -> None:
        self.db = db
        self.shelves = shelves
        self.books = books
        self.bookcases = bookcases

    # ---- commands
    def create_shelf(self, bookcase_id: BookcaseId, position: int, label: str, book_capacity: int) -> Shelf:
        """Add a shelf to an existing bookcase.

        Positions run 1..shelf_count; the next free position (shelf_count + 1)
        grows the bookcase by one shelf.
        """
        shelf = Shelf(bookcase_id=bookcase_id, position=position, label=label, book_capacity=book_capacity)
        with self.db.transaction():
            bookcase = self.bookcases.find_by_id(bookcase_id)
            if bookcase is None:
                raise NotFoundError("Bookcase", bookcase_id)
            if position > bookcase.shelf_count + 1:
                raise ValidationError(
                    f"Shelf position must be between 1 and {bookcase.shelf_count + 1}",
                    {"position": position},
                )
            if any(s.position == position for s in self.shelves.find_by_bookcase_id(bookcase_id)):
                raise DuplicateError(
                    f"Bookcase {bookcase_id} already has a shelf at position {position}",
                    {"bookcase_id": str(bookcase_id), "position": position},
                )
            if position == bookcase.shelf_count + 1:
                bookcase.shelf_count = position
                self.bookcases.save(bookcase)
            self.shelves.save(shelf)
        return shelf

    def place_book_on_shelf(self, book_id: BookId, shelf_id: ShelfId) -> Placement:
        with self.db.transaction():
            book = self.books.find_by_id(book_id)
            if book is None:
                raise NotFoundError("Book", book_id)
            shelf = self.shelves.find_by_id(shelf_id)
            if shelf is None:
                raise NotFoundError("Shelf", shelf_id)

            placement = Placement(book_id=book_id, shelf_id=shelf_id)
            if shelf.holds(book_id):
                return placement
            if shelf.is_full():
                logger.info(f"Rejected placement of book {book_id} on full shelf {shelf_id}")
                raise CapacityExceededError(
                    "Shelf is full",
                    {"shelf_id": str(shelf_id), "book_capacity": shelf.book_capacity},
                )

            shelf.add_book(book_id)
            book.assign_shelf(shelf_id)
            self.books.save(book)
            self.shelves.save(shelf)

        logger.info(f"Placed book {book_id} on shelf {shelf_id}")
        return placement

    def delete_shelves_in_bookcase(self, bookcase_id: BookcaseId) -> int:
        """Delete every shelf of the bookcase, and the books on them first."""
        with self.db.transaction():
            shelf_ids = [shelf.id for shelf in self.shelves.find_by_bookcase_id(bookcase_id)]
            removed_books = self.books.delete_by_shelf_ids(shelf_ids)
            removed_shelves = self.shelves.delete_by_bookcase_id(bookcase_id)
        logger.info(f"Deleted {removed_shelves} shelves and {removed_books} books from bookcase {bookcase_id}")
        return removed_shelves

    # ---- queries
    def find_shelf(self, shelf_id: ShelfId) -> Shelf:
        shelf = self.shelves.find_by_id(shelf_id)
        if shelf is None:
            raise NotFoundError("Shelf", shelf_id)
        return shelf

    def find_shelves_by_bookcase(self, bookcase_id: BookcaseId) -> List[Shelf]:
        return self.shelves.find_by_bookcase_id(bookcase_id)

    def shelf_summaries(self, bookcase_id: BookcaseId) -> List[ShelfSummary]:
        return [shelf.summary() for shelf in self.shelves.find_by_bookcase_id(bookcase_id)]

    def list_shelves(self) -> List[Shelf]:
        return self.shelves.list_all()

    def is_full(self, shelf_id: ShelfId) -> bool:
        return self.find_shelf(shelf_id).is_full()

    def is_empty(self, shelf_id: ShelfId) -> bool:
        return self.find_shelf(shelf_id).is_empty()

    def browse_shelf(self, shelf_id: ShelfId) -> List[Book]:
        self.find_shelf(shelf_id)
        return self.books.find_by_shelf_id(shelf_id)


class BookcaseService:
    def __init__(self, db: Database, bookcases: BookcaseRepository, shelf_service: ShelfService) -> None:
        self.db = db
        self.bookcases = bookcases
        self.shelf_service = shelf_service

    def create_bookcase(self, location: str, shelf_count: int, book_capacity_per_shelf: int, zone: str = "",
                        zone_index: str = "", owner_id: Optional[int] = None) -> CreateBookcaseResult:
        bookcase = Bookcase(
            location=location,
            zone=zone,
            zone_index=zone_index,
            shelf_count=shelf_count,
            book_capacity_per_shelf=book_capacity_per_shelf,
            owner_id=owner_id,
        )

        with self.db.transaction():
            if self.bookcases.find_by_location(bookcase.location) is not None:
                logger.error(f"Failed to save bookcase - location {bookcase.location!r} already exists")
                raise DuplicateError("Bookcase with the label already exist", {"location": bookcase.location})

            self.bookcases.save(bookcase)
            for shelf in bookcase.provision_shelves():
                self.shelf_service.create_shelf(
                    bookcase_id=shelf.bookcase_id,
                    position=shelf.position,
                    label=shelf.label,
                    book_capacity=shelf.book_capacity,
                )

        logger.info(f"Created new bookcase with Id: {bookcase.id}")
        return CreateBookcaseResult(
            bookcase_id=bookcase.id,
            location=bookcase.location,
            shelf_count=bookcase.shelf_count,
            book_capacity_per_shelf=bookcase.book_capacity_per_shelf,
        )

    def delete_bookcase(self, bookcase_id: BookcaseId) -> None:
        # books -> shelves -> bookcase; foreign keys reject any other order
        with self.db.transaction():
            if self.bookcases.find_by_id(bookcase_id) is None:
                raise NotFoundError("Bookcase", bookcase_id)
            self.shelf_service.delete_shelves_in_bookcase(bookcase_id)
            self.bookcases.delete_by_id(bookcase_id)
        logger.info(f"Deleted bookcase {bookcase_id}")

    def find_bookcase(self, bookcase_id: BookcaseId) -> Bookcase:
        bookcase = self.bookcases.find_by_id(bookcase_id)
        if bookcase is None:
            raise NotFoundError("Bookcase", bookcase_id)
        return bookcase

    def find_by_location(self, location: str) -> Optional[Bookcase]:
        return self.bookcases.find_by_location(location)

    def find_by_owner(self, owner_id: int) -> List[Bookcase]:
        return self.bookcases.find_by_owner_id(owner_id)

    def list_bookcases(self) -> List[Bookcase]:
        return self.bookcases.list_all()

    def list_locations(self) -> List[str]:
        return self.bookcases.list_locations()
