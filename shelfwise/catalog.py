from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from shelfwise.book import AvailabilityStatus, Book
from shelfwise.database import Database
from shelfwise.errors import DuplicateError, InvalidStateError, NotFoundError, ShelfwiseError, ValidationError
from shelfwise.identifiers import AuthorRef, BookId, Isbn, ShelfId, Title
from shelfwise.repositories import BookcaseRepository, BookRepository, ShelfRepository
from shelfwise.services.google_books_service import MetadataProvider
from shelfwise.stacks import ShelfService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookLocation:
    bookcase_location: str
    bookcase_zone: str
    shelf_label: str


@dataclass(frozen=True)
class BookDetails:
    """Everything the book card shows for one book."""
    book_id: BookId
    title: str
    authors: str
    isbn: str
    publisher: str
    status: AvailabilityStatus
    bookcase: Optional[str] = None
    zone: Optional[str] = None
    shelf: Optional[str] = None


@dataclass
class ImportResult:
    added: List[Book] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        return len(self.added)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


def read_isbns(path: str) -> List[str]:
    """Read ISBNs from a file: one per line, or a CSV with an ``isbn`` column."""
    with open(path, "r", encoding="utf-8") as f:
        lines = [line.strip() for line in f if line.strip()]
    if not lines:
        return []
    rows = list(csv.reader(lines))
    header = [cell.strip().lower() for cell in rows[0]]
    column = 0
    if "isbn" in header:
        column = header.index("isbn")
        rows = rows[1:]
    return [row[column].strip() for row in rows if len(row) > column and row[column].strip()]


class CatalogService:
    def __init__(self, db: Database, books: BookRepository, shelves: ShelfRepository,
                 bookcases: BookcaseRepository, shelf_service: ShelfService,
                 metadata_provider: Optional[MetadataProvider] = None) -> None:
        self.db = db
        self.books = books
        self.shelves = shelves
        self.bookcases = bookcases
        self.shelf_service = shelf_service
        self.metadata_provider = metadata_provider

    # ------------------------- Creation ------------------------- #
    def add_book(self, title: str, isbn: str, authors: Sequence[str] = (), publisher: str = "",
                 description: str = "", published_date: Optional[str] = None,
                 categories: Sequence[str] = (), shelf_id: Optional[ShelfId] = None) -> Book:
        """Create a book, optionally placing it on a shelf straight away."""
        book = Book(
            title=Title(title),
            isbn=Isbn(isbn),
            authors=[AuthorRef.parse(name) for name in authors if name and name.strip()],
            publisher=publisher,
            description=description,
            published_date=published_date,
            categories=list(categories),
        )
        with self.db.transaction():
            existing = self.books.find_by_title_ignore_case(book.title.value)
            if existing is not None:
                raise DuplicateError(f"Book Already Exists: {existing.title}", {"book_id": str(existing.id)})
            self.books.save(book)
            if shelf_id is not None:
                self.shelf_service.place_book_on_shelf(book.id, shelf_id)
                book.assign_shelf(shelf_id)
        logger.info(f"Added book {book.id}: {book.title}")
        return book

    def add_book_by_isbn(self, isbn: str, shelf_id: Optional[ShelfId] = None) -> Book:
        """Fetch metadata for the ISBN from the provider, then create the book."""
        if self.metadata_provider is None:
            raise ValidationError("No ISBN metadata provider is configured")
        normalized = Isbn(isbn)
        metadata = self.metadata_provider.lookup(normalized)
        if metadata is None:
            raise NotFoundError("Book", normalized, f"No book data found for ISBN: {normalized}")
        return self.add_book(
            title=metadata.title,
            isbn=normalized.value,
            authors=metadata.authors,
            publisher=metadata.publisher,
            description=metadata.description,
            published_date=metadata.published_date,
            categories=metadata.categories,
            shelf_id=shelf_id,
        )

    def import_isbns(self, isbns: Iterable[str]) -> ImportResult:
        """Add each ISBN in turn; a failing ISBN is recorded and the batch carries on."""
        result = ImportResult()
        for isbn in isbns:
            try:
                result.added.append(self.add_book_by_isbn(isbn))
            except ShelfwiseError as e:
                logger.warning(f"Import of ISBN {isbn} failed: {e.message}")
                result.failed.append((isbn, e.message))
        logger.info(f"Import finished: {result.added_count} added, {result.failed_count} failed")
        return result

    def import_isbn_file(self, path: str) -> ImportResult:
        return self.import_isbns(read_isbns(path))

    # ------------------------- Maintenance ------------------------- #
    def update_book(self, book_id: BookId, *, title: Optional[str] = None, publisher: Optional[str] = None,
                    description: Optional[str] = None) -> Book:
        with self.db.transaction():
            book = self.find_book(book_id)
            if title is not None and title.strip():
                clash = self.books.find_by_title_ignore_case(title)
                if clash is not None and clash.id != book.id:
                    raise DuplicateError(f"Book Already Exists: {clash.title}")
                book.title = Title(title)
            if publisher is not None:
                book.publisher = publisher.strip()
            if description is not None:
                book.description = description.strip()
            book.touch()
            self.books.save(book)
        return book

    def remove_book(self, book_id: BookId) -> None:
        if not self.books.delete_by_id(book_id):
            raise NotFoundError("Book", book_id)
        logger.info(f"Removed book {book_id}")

    # ------------------------- Queries ------------------------- #
    def find_book(self, book_id: BookId) -> Book:
        book = self.books.find_by_id(book_id)
        if book is None:
            raise NotFoundError("Book", book_id)
        return book

    def find_book_by_title(self, title: str) -> Book:
        book = self.books.find_by_title_ignore_case(title)
        if book is None:
            raise NotFoundError("Book", title, f"Book not found: {title}")
        return book

    def find_book_by_isbn(self, isbn: str) -> Book:
        normalized = Isbn(isbn)
        book = self.books.find_by_isbn(normalized.value)
        if book is None:
            raise NotFoundError("Book", normalized, f"Book not found with ISBN: {normalized}")
        return book

    def search_books(self, query: str) -> List[Book]:
        if not query or not query.strip():
            return []
        return self.books.search(query)

    def list_books(self) -> List[Book]:
        return self.books.list_all()

    def list_unplaced_books(self) -> List[Book]:
        """Books waiting to be shelved."""
        return self.books.list_unplaced()

    def get_book_location(self, book_id: BookId) -> BookLocation:
        book = self.find_book(book_id)
        if book.shelf_id is None:
            raise InvalidStateError("Book is not currently assigned to a shelf", {"book_id": str(book_id)})
        shelf = self.shelves.find_by_id(book.shelf_id)
        if shelf is None:
            raise NotFoundError("Shelf", book.shelf_id)
        bookcase = self.bookcases.find_by_id(shelf.bookcase_id)
        if bookcase is None:
            raise NotFoundError("Bookcase", shelf.bookcase_id)
        return BookLocation(bookcase_location=bookcase.location, bookcase_zone=bookcase.zone,
                            shelf_label=shelf.label)

    def get_book_details(self, book_id: BookId) -> BookDetails:
        book = self.find_book(book_id)
        location = self.get_book_location(book_id) if book.is_placed else None
        return BookDetails(
            book_id=book.id,
            title=book.title.value,
            authors=book.author_names,
            isbn=book.isbn.value,
            publisher=book.publisher,
            status=book.availability_status,
            bookcase=location.bookcase_location if location else None,
            zone=location.bookcase_zone if location else None,
            shelf=location.shelf_label if location else None,
        )


class CirculationService:
    def __init__(self, db: Database, books: BookRepository) -> None:
        self.db = db
        self.books = books

    def check_out_book(self, book_id: BookId) -> Book:
        with self.db.transaction():
            book = self.books.find_by_id(book_id)
            if book is None:
                raise NotFoundError("Book", book_id)
            book.checkout()
            self.books.save(book)
        logger.info(f"Checked out book {book_id}: {book.title}")
        return book

    def check_in_book(self, book_title: str) -> Book:
        with self.db.transaction():
            book = self.books.find_by_title_ignore_case(book_title)
            if book is None:
                raise NotFoundError("Book", book_title, f"Book not found: {book_title}")
            if not book.is_checked_out:
                logger.warning(f"Book {book.id} checked in while already available")
            book.check_in()
            self.books.save(book)
        logger.info(f"Checked in book {book.id}: {book.title}")
        return book
