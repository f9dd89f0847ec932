import logging
from typing import List, Optional, Sequence

from shelfwise.book import Book
from shelfwise.bookcase import Bookcase
from shelfwise.catalog import BookDetails, BookLocation, CatalogService, CirculationService, ImportResult
from shelfwise.database import Database
from shelfwise.identifiers import BookcaseId, BookId, ShelfId
from shelfwise.repositories import SqliteBookcaseRepository, SqliteBookRepository, SqliteShelfRepository
from shelfwise.services.google_books_service import GoogleBooksService, MetadataProvider
from shelfwise.shelf import Placement, Shelf, ShelfSummary
from shelfwise.stacks import BookcaseService, CreateBookcaseResult, ShelfService

logger = logging.getLogger(__name__)


class Library:
    """Manages the book collection, its shelves and bookcases, and persistence."""

    def __init__(self, db_file: Optional[str] = None, metadata_provider: Optional[MetadataProvider] = None) -> None:
        self.db = Database(db_file)
        self.db.initialize()

        self.book_repository = SqliteBookRepository(self.db)
        self.shelf_repository = SqliteShelfRepository(self.db)
        self.bookcase_repository = SqliteBookcaseRepository(self.db)

        # The Google Books client is only built when the caller did not inject a provider
        self._owns_provider = metadata_provider is None
        self.metadata_provider = metadata_provider or GoogleBooksService()

        self.shelves = ShelfService(self.db, self.shelf_repository, self.book_repository, self.bookcase_repository)
        self.bookcases = BookcaseService(self.db, self.bookcase_repository, self.shelves)
        self.catalog = CatalogService(
            self.db,
            self.book_repository,
            self.shelf_repository,
            self.bookcase_repository,
            self.shelves,
            self.metadata_provider,
        )
        self.circulation = CirculationService(self.db, self.book_repository)
        logger.debug(f"Library opened on {self.db.db_file}")

    # ------------------------- Bookcases ------------------------- #
    def create_bookcase(self, location: str, shelf_count: int, book_capacity_per_shelf: int, zone: str = "",
                        zone_index: str = "", owner_id: Optional[int] = None) -> CreateBookcaseResult:
        return self.bookcases.create_bookcase(location, shelf_count, book_capacity_per_shelf,
                                              zone=zone, zone_index=zone_index, owner_id=owner_id)

    def delete_bookcase(self, bookcase_id: BookcaseId) -> None:
        self.bookcases.delete_bookcase(bookcase_id)

    def find_bookcase(self, bookcase_id: BookcaseId) -> Bookcase:
        return self.bookcases.find_bookcase(bookcase_id)

    def list_bookcases(self) -> List[Bookcase]:
        return self.bookcases.list_bookcases()

    # ------------------------- Shelves ------------------------- #
    def find_shelf(self, shelf_id: ShelfId) -> Shelf:
        return self.shelves.find_shelf(shelf_id)

    def shelf_summaries(self, bookcase_id: BookcaseId) -> List[ShelfSummary]:
        self.bookcases.find_bookcase(bookcase_id)
        return self.shelves.shelf_summaries(bookcase_id)

    def browse_shelf(self, shelf_id: ShelfId) -> List[Book]:
        return self.shelves.browse_shelf(shelf_id)

    def place_book_on_shelf(self, book_id: BookId, shelf_id: ShelfId) -> Placement:
        return self.shelves.place_book_on_shelf(book_id, shelf_id)

    # ------------------------- Books ------------------------- #
    def add_book(self, title: str, isbn: str, authors: Sequence[str] = (), publisher: str = "",
                 description: str = "", published_date: Optional[str] = None, categories: Sequence[str] = (),
                 shelf_id: Optional[ShelfId] = None) -> Book:
        return self.catalog.add_book(title, isbn, authors=authors, publisher=publisher, description=description,
                                     published_date=published_date, categories=categories, shelf_id=shelf_id)

    def add_book_by_isbn(self, isbn: str, shelf_id: Optional[ShelfId] = None) -> Book:
        return self.catalog.add_book_by_isbn(isbn, shelf_id=shelf_id)

    def import_isbn_file(self, path: str) -> ImportResult:
        return self.catalog.import_isbn_file(path)

    def find_book(self, book_id: BookId) -> Book:
        return self.catalog.find_book(book_id)

    def find_book_by_title(self, title: str) -> Book:
        return self.catalog.find_book_by_title(title)

    def search_books(self, query: str) -> List[Book]:
        return self.catalog.search_books(query)

    def list_books(self) -> List[Book]:
        return self.catalog.list_books()

    def list_unplaced_books(self) -> List[Book]:
        return self.catalog.list_unplaced_books()

    def update_book(self, book_id: BookId, **changes) -> Book:
        return self.catalog.update_book(book_id, **changes)

    def remove_book(self, book_id: BookId) -> None:
        self.catalog.remove_book(book_id)

    def get_book_location(self, book_id: BookId) -> BookLocation:
        return self.catalog.get_book_location(book_id)

    def get_book_details(self, book_id: BookId) -> BookDetails:
        return self.catalog.get_book_details(book_id)

    # ------------------------- Circulation ------------------------- #
    def check_out_book(self, book_id: BookId) -> Book:
        return self.circulation.check_out_book(book_id)

    def check_in_book(self, title: str) -> Book:
        return self.circulation.check_in_book(title)

    def close(self) -> None:
        """Release the HTTP client, if this library created it."""
        if self._owns_provider and isinstance(self.metadata_provider, GoogleBooksService):
            self.metadata_provider.close()
