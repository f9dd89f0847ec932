"""
Repositories

One abstract repository per aggregate plus the SQLite implementations used by
the application. Use cases depend on the abstract classes, which keeps them
testable with mocks.
"""

import json
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from shelfwise.book import Book
from shelfwise.bookcase import Bookcase
from shelfwise.database import Database
from shelfwise.identifiers import BookcaseId, BookId, ShelfId
from shelfwise.shelf import Shelf


class BookRepository(ABC):
    @abstractmethod
    def find_by_id(self, book_id: BookId) -> Optional[Book]:
        pass

    @abstractmethod
    def save(self, book: Book) -> Book:
        """Insert (assigning an id) or update the book."""
        pass

    @abstractmethod
    def delete_by_id(self, book_id: BookId) -> bool:
        pass

    @abstractmethod
    def delete_by_shelf_ids(self, shelf_ids: Sequence[ShelfId]) -> int:
        pass

    @abstractmethod
    def find_by_shelf_id(self, shelf_id: ShelfId) -> List[Book]:
        pass

    @abstractmethod
    def find_by_title_ignore_case(self, title: str) -> Optional[Book]:
        pass

    @abstractmethod
    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        pass

    @abstractmethod
    def count_by_shelf_id(self, shelf_id: ShelfId) -> int:
        pass

    @abstractmethod
    def search(self, query: str) -> List[Book]:
        pass

    @abstractmethod
    def list_all(self) -> List[Book]:
        pass

    @abstractmethod
    def list_unplaced(self) -> List[Book]:
        pass


class ShelfRepository(ABC):
    @abstractmethod
    def find_by_id(self, shelf_id: ShelfId) -> Optional[Shelf]:
        pass

    @abstractmethod
    def save(self, shelf: Shelf) -> Shelf:
        pass

    @abstractmethod
    def delete_by_id(self, shelf_id: ShelfId) -> bool:
        pass

    @abstractmethod
    def find_by_bookcase_id(self, bookcase_id: BookcaseId) -> List[Shelf]:
        pass

    @abstractmethod
    def delete_by_bookcase_id(self, bookcase_id: BookcaseId) -> int:
        pass

    @abstractmethod
    def list_all(self) -> List[Shelf]:
        pass


class BookcaseRepository(ABC):
    @abstractmethod
    def find_by_id(self, bookcase_id: BookcaseId) -> Optional[Bookcase]:
        pass

    @abstractmethod
    def save(self, bookcase: Bookcase) -> Bookcase:
        pass

    @abstractmethod
    def delete_by_id(self, bookcase_id: BookcaseId) -> bool:
        pass

    @abstractmethod
    def find_by_location(self, location: str) -> Optional[Bookcase]:
        pass

    @abstractmethod
    def find_by_owner_id(self, owner_id: int) -> List[Bookcase]:
        pass

    @abstractmethod
    def list_all(self) -> List[Bookcase]:
        pass

    @abstractmethod
    def list_locations(self) -> List[str]:
        pass


# ------------------------- SQLite ------------------------- #

_BOOK_COLUMNS = """
    id, title, isbn, authors, publisher, description, published_date, categories,
    shelf_id, availability_status, created_at, updated_at
"""


class SqliteBookRepository(BookRepository):
    def __init__(self, db: Database) -> None:
        self.db = db

    def _query(self, where: str = "", params: tuple = (), order: str = "ORDER BY title COLLATE NOCASE") -> List[Book]:
        with self.db.connection() as conn:
            rows = conn.execute(f"SELECT {_BOOK_COLUMNS} FROM books {where} {order}", params).fetchall()
        return [Book.from_row(row) for row in rows]

    def find_by_id(self, book_id: BookId) -> Optional[Book]:
        books = self._query("WHERE id = ?", (book_id.value,))
        return books[0] if books else None

    def save(self, book: Book) -> Book:
        values = (
            book.title.value,
            book.isbn.value,
            json.dumps([a.full_name for a in book.authors]),
            book.publisher,
            book.description,
            book.published_date,
            json.dumps(book.categories) if book.categories else None,
            book.shelf_id.value if book.shelf_id else None,
            book.availability_status.value,
            book.created_at.isoformat(),
            book.updated_at.isoformat(),
        )
        with self.db.connection() as conn:
            if book.id is None:
                cursor = conn.execute("""
                    INSERT INTO books (
                        title, isbn, authors, publisher, description, published_date, categories,
                        shelf_id, availability_status, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, values)
                book.id = BookId(cursor.lastrowid)
            else:
                conn.execute("""
                    UPDATE books SET
                        title = ?, isbn = ?, authors = ?, publisher = ?, description = ?,
                        published_date = ?, categories = ?, shelf_id = ?, availability_status = ?,
                        created_at = ?, updated_at = ?
                    WHERE id = ?
                """, values + (book.id.value,))
        return book

    def delete_by_id(self, book_id: BookId) -> bool:
        with self.db.connection() as conn:
            cursor = conn.execute("DELETE FROM books WHERE id = ?", (book_id.value,))
            return cursor.rowcount > 0

    def delete_by_shelf_ids(self, shelf_ids: Sequence[ShelfId]) -> int:
        if not shelf_ids:
            return 0
        placeholders = ", ".join("?" for _ in shelf_ids)
        with self.db.connection() as conn:
            cursor = conn.execute(
                f"DELETE FROM books WHERE shelf_id IN ({placeholders})",
                tuple(s.value for s in shelf_ids),
            )
            return cursor.rowcount

    def find_by_shelf_id(self, shelf_id: ShelfId) -> List[Book]:
        return self._query("WHERE shelf_id = ?", (shelf_id.value,))

    def find_by_title_ignore_case(self, title: str) -> Optional[Book]:
        books = self._query("WHERE title = ? COLLATE NOCASE", ((title or "").strip(),), order="ORDER BY id")
        if books:
            return books[0]
        # NOCASE only folds ASCII
        folded = (title or "").strip().casefold()
        return next((b for b in self.list_all() if b.title.value.casefold() == folded), None)

    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        books = self._query("WHERE isbn = ?", (isbn,), order="ORDER BY id")
        return books[0] if books else None

    def count_by_shelf_id(self, shelf_id: ShelfId) -> int:
        with self.db.connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM books WHERE shelf_id = ?", (shelf_id.value,)).fetchone()[0]

    def search(self, query: str) -> List[Book]:
        # % and _ in the query are literal characters
        escaped = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        like = f"%{escaped}%"
        return self._query(
            "WHERE title LIKE ? ESCAPE '\\' OR authors LIKE ? ESCAPE '\\' OR isbn LIKE ? ESCAPE '\\'",
            (like, like, like),
        )

    def list_all(self) -> List[Book]:
        return self._query()

    def list_unplaced(self) -> List[Book]:
        return self._query("WHERE shelf_id IS NULL")


class SqliteShelfRepository(ShelfRepository):
    def __init__(self, db: Database) -> None:
        self.db = db

    def _load(self, where: str = "", params: tuple = ()) -> List[Shelf]:
        with self.db.connection() as conn:
            rows = conn.execute(
                f"SELECT id, bookcase_id, position, label, book_capacity FROM shelves {where} "
                "ORDER BY bookcase_id, position",
                params,
            ).fetchall()
            if not rows:
                return []
            placeholders = ", ".join("?" for _ in rows)
            book_rows = conn.execute(
                f"SELECT id, shelf_id FROM books WHERE shelf_id IN ({placeholders}) ORDER BY id",
                tuple(row["id"] for row in rows),
            ).fetchall()

        occupancy: Dict[int, List[BookId]] = {}
        for book_row in book_rows:
            occupancy.setdefault(book_row["shelf_id"], []).append(BookId(book_row["id"]))

        return [
            Shelf(
                id=ShelfId(row["id"]),
                bookcase_id=BookcaseId(row["bookcase_id"]),
                position=row["position"],
                label=row["label"],
                book_capacity=row["book_capacity"],
                book_ids=occupancy.get(row["id"], []),
            )
            for row in rows
        ]

    def find_by_id(self, shelf_id: ShelfId) -> Optional[Shelf]:
        shelves = self._load("WHERE id = ?", (shelf_id.value,))
        return shelves[0] if shelves else None

    def save(self, shelf: Shelf) -> Shelf:
        # Occupancy lives on books.shelf_id; only the shelf's own columns are written here.
        with self.db.connection() as conn:
            if shelf.id is None:
                cursor = conn.execute(
                    "INSERT INTO shelves (bookcase_id, position, label, book_capacity) VALUES (?, ?, ?, ?)",
                    (shelf.bookcase_id.value, shelf.position, shelf.label, shelf.book_capacity),
                )
                shelf.id = ShelfId(cursor.lastrowid)
            else:
                conn.execute(
                    "UPDATE shelves SET bookcase_id = ?, position = ?, label = ?, book_capacity = ? WHERE id = ?",
                    (shelf.bookcase_id.value, shelf.position, shelf.label, shelf.book_capacity, shelf.id.value),
                )
        return shelf

    def delete_by_id(self, shelf_id: ShelfId) -> bool:
        with self.db.connection() as conn:
            cursor = conn.execute("DELETE FROM shelves WHERE id = ?", (shelf_id.value,))
            return cursor.rowcount > 0

    def find_by_bookcase_id(self, bookcase_id: BookcaseId) -> List[Shelf]:
        return self._load("WHERE bookcase_id = ?", (bookcase_id.value,))

    def delete_by_bookcase_id(self, bookcase_id: BookcaseId) -> int:
        with self.db.connection() as conn:
            cursor = conn.execute("DELETE FROM shelves WHERE bookcase_id = ?", (bookcase_id.value,))
            return cursor.rowcount

    def list_all(self) -> List[Shelf]:
        return self._load()


class SqliteBookcaseRepository(BookcaseRepository):
    def __init__(self, db: Database) -> None:
        self.db = db

    def _query(self, where: str = "", params: tuple = ()) -> List[Bookcase]:
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT id, owner_id, location, zone, zone_index, shelf_count, book_capacity_per_shelf "
                f"FROM bookcases {where} ORDER BY location COLLATE NOCASE, id",
                params,
            ).fetchall()
        return [
            Bookcase(
                id=BookcaseId(row["id"]),
                owner_id=row["owner_id"],
                location=row["location"],
                zone=row["zone"],
                zone_index=row["zone_index"],
                shelf_count=row["shelf_count"],
                book_capacity_per_shelf=row["book_capacity_per_shelf"],
            )
            for row in rows
        ]

    def find_by_id(self, bookcase_id: BookcaseId) -> Optional[Bookcase]:
        bookcases = self._query("WHERE id = ?", (bookcase_id.value,))
        return bookcases[0] if bookcases else None

    def save(self, bookcase: Bookcase) -> Bookcase:
        values = (
            bookcase.owner_id,
            bookcase.location,
            bookcase.zone,
            bookcase.zone_index,
            bookcase.shelf_count,
            bookcase.book_capacity_per_shelf,
        )
        with self.db.connection() as conn:
            if bookcase.id is None:
                cursor = conn.execute("""
                    INSERT INTO bookcases (owner_id, location, zone, zone_index, shelf_count, book_capacity_per_shelf)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, values)
                bookcase.id = BookcaseId(cursor.lastrowid)
            else:
                conn.execute("""
                    UPDATE bookcases SET owner_id = ?, location = ?, zone = ?, zone_index = ?,
                        shelf_count = ?, book_capacity_per_shelf = ?
                    WHERE id = ?
                """, values + (bookcase.id.value,))
        return bookcase

    def delete_by_id(self, bookcase_id: BookcaseId) -> bool:
        with self.db.connection() as conn:
            cursor = conn.execute("DELETE FROM bookcases WHERE id = ?", (bookcase_id.value,))
            return cursor.rowcount > 0

    def find_by_location(self, location: str) -> Optional[Bookcase]:
        bookcases = self._query("WHERE location = ? COLLATE NOCASE", ((location or "").strip(),))
        return bookcases[0] if bookcases else None

    def find_by_owner_id(self, owner_id: int) -> List[Bookcase]:
        return self._query("WHERE owner_id = ?", (owner_id,))

    def list_all(self) -> List[Bookcase]:
        return self._query()

    def list_locations(self) -> List[str]:
        return [b.location for b in self._query()]
