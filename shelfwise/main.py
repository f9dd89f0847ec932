import atexit
import logging
import os
from functools import wraps
from typing import List, Optional

import typer

from shelfwise.config import settings
from shelfwise.errors import NotFoundError, ShelfwiseError
from shelfwise.identifiers import BookcaseId, BookId, ShelfId
from shelfwise.library import Library
from shelfwise.prompts import CliPrompts
from shelfwise.rendering import (
    print_book_card,
    print_book_list,
    print_bookcase_created,
    print_bookcase_list,
    print_shelf_summaries,
    render_not_found,
    set_output_mode,
)

logger = logging.getLogger(__name__)


class LibraryManager:
    """One Library per database file for the lifetime of the process."""
    _instance: Optional[Library] = None
    _db_file: Optional[str] = None

    @classmethod
    def configure(cls, db_file: Optional[str]) -> None:
        cls._db_file = db_file or settings.database_file

    @classmethod
    def get_instance(cls) -> Library:
        db_file = cls._db_file or settings.database_file
        if cls._instance is not None and cls._instance.db.db_file != db_file:
            cls._instance.close()
            cls._instance = None
        if cls._instance is None:
            cls._instance = Library(db_file=db_file)
        return cls._instance

    @classmethod
    def close(cls) -> None:
        if cls._instance is not None:
            cls._instance.close()
            cls._instance = None


atexit.register(LibraryManager.close)


def handle_errors(func):
    """Turn library errors into a printed message and exit code 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ShelfwiseError as e:
            logger.debug(f"{func.__name__} failed: {e.details}")
            print(f"Error: {e.message}")
            raise typer.Exit(code=1)
    return wrapper


def _confirm_deletion(prompts: CliPrompts, question: str, yes: bool) -> bool:
    if yes or not settings.confirm_deletions:
        return True
    return prompts.confirm(question)


def _select_shelf(lib: Library, prompts: CliPrompts) -> Optional[ShelfId]:
    bookcase = prompts.prompt_for_bookcase_selection(lib.list_bookcases())
    if bookcase is None:
        return None
    shelf = prompts.prompt_for_shelf_selection(lib.shelf_summaries(bookcase.id))
    return shelf.shelf_id if shelf else None


# --- Typer CLI application ---
app = typer.Typer(help=f"{settings.app_name}: catalog books, shelves and bookcases")
bookcase_app = typer.Typer(help="Create, inspect and delete bookcases")
shelf_app = typer.Typer(help="Browse shelves")
book_app = typer.Typer(help="Catalog, place and circulate books")
library_app = typer.Typer(help="Bulk operations on the whole catalog")
app.add_typer(bookcase_app, name="bookcase")
app.add_typer(shelf_app, name="shelf")
app.add_typer(book_app, name="book")
app.add_typer(library_app, name="library")


@app.callback()
def _global_options(
    db: Optional[str] = typer.Option(None, "--db", help="SQLite database file (default: LIBRARY_DB_FILE)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output format: plain | json | rich"),
):
    """Global options for every command."""
    logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    if output:
        set_output_mode(output)
    LibraryManager.configure(db)


# ------------------------- bookcase ------------------------- #

@bookcase_app.command("create")
@handle_errors
def cli_bookcase_create(
    location: Optional[str] = typer.Option(None, "--location", "-l", help="Where the bookcase stands"),
    shelves: Optional[int] = typer.Option(None, "--shelves", "-s", help="Number of shelves"),
    capacity: Optional[int] = typer.Option(None, "--capacity", "-c", help="Books per shelf"),
    zone: str = typer.Option("", "--zone", help="Zone label"),
    index: str = typer.Option("", "--index", help="Index within the zone"),
    owner: Optional[int] = typer.Option(None, "--owner", help="Owner id"),
):
    """Create a bookcase together with its shelves."""
    prompts = CliPrompts()
    location = location or prompts.prompt_for_bookcase_location()
    if shelves is None:
        shelves = prompts.prompt_for_positive_int("Number of shelves")
    if capacity is None:
        capacity = prompts.prompt_for_positive_int("Books per shelf")
    result = LibraryManager.get_instance().create_bookcase(
        location, shelves, capacity, zone=zone, zone_index=index, owner_id=owner
    )
    print_bookcase_created(result)


@bookcase_app.command("list")
def cli_bookcase_list():
    """List all bookcases."""
    print_bookcase_list(LibraryManager.get_instance().list_bookcases())


@bookcase_app.command("show")
@handle_errors
def cli_bookcase_show(bookcase_id: Optional[int] = typer.Argument(None, help="Bookcase id")):
    """Show a bookcase's shelves and how full they are."""
    lib = LibraryManager.get_instance()
    if bookcase_id is None:
        bookcase = CliPrompts().prompt_for_bookcase_selection(lib.list_bookcases())
        if bookcase is None:
            return
    else:
        bookcase = lib.find_bookcase(BookcaseId(bookcase_id))
    print_shelf_summaries(lib.shelf_summaries(bookcase.id), heading=f"{bookcase.location} (bookcase {bookcase.id})")


@bookcase_app.command("delete")
@handle_errors
def cli_bookcase_delete(
    bookcase_id: int = typer.Argument(..., help="Bookcase id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a bookcase, its shelves and every book on them."""
    lib = LibraryManager.get_instance()
    bookcase = lib.find_bookcase(BookcaseId(bookcase_id))
    if not _confirm_deletion(CliPrompts(), f"🗑️ Delete {bookcase.location} and all books on its shelves?", yes):
        print("Deletion cancelled.")
        return
    lib.delete_bookcase(bookcase.id)
    print(f"Bookcase {bookcase.id} has been deleted.")


# ------------------------- shelf ------------------------- #

@shelf_app.command("browse")
@handle_errors
def cli_shelf_browse(shelf_id: Optional[int] = typer.Argument(None, help="Shelf id")):
    """List the books on a shelf."""
    lib = LibraryManager.get_instance()
    if shelf_id is None:
        prompts = CliPrompts()
        bookcase = prompts.prompt_for_bookcase_selection(lib.list_bookcases())
        if bookcase is None:
            return
        summaries = lib.shelf_summaries(bookcase.id)
        position = prompts.prompt_for_positive_int("Shelf number")
        match = next((s for s in summaries if s.position == position), None)
        if match is None:
            raise NotFoundError("Shelf", position, f"{bookcase.location} has no shelf {position}")
        selected = match.shelf_id
    else:
        selected = ShelfId(shelf_id)
    shelf = lib.find_shelf(selected)
    print_book_list(lib.browse_shelf(selected), empty_message=f"{shelf.label} is empty.", title=f"📚 {shelf.label}")


# ------------------------- book ------------------------- #

@book_app.command("add")
@handle_errors
def cli_book_add(
    isbn: str = typer.Argument(..., help="ISBN-10 or ISBN-13"),
    shelf: Optional[int] = typer.Option(None, "--shelf", help="Place the book on this shelf"),
):
    """Add a book by ISBN using Google Books metadata."""
    lib = LibraryManager.get_instance()
    book = lib.add_book_by_isbn(isbn, shelf_id=ShelfId(shelf) if shelf is not None else None)
    print(f"Successfully added: {book.title} by {book.author_names}")


@book_app.command("new")
@handle_errors
def cli_book_new(
    isbn: str = typer.Option(..., "--isbn", help="ISBN-10 or ISBN-13"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Book title"),
    author: Optional[List[str]] = typer.Option(None, "--author", "-a", help="Author name (repeatable)"),
    publisher: str = typer.Option("", "--publisher", help="Publisher"),
    shelf: Optional[int] = typer.Option(None, "--shelf", help="Place the book on this shelf"),
):
    """Add a book by hand, without a metadata lookup."""
    title = title or CliPrompts().prompt_for_book_title()
    book = LibraryManager.get_instance().add_book(
        title, isbn, authors=author or [], publisher=publisher,
        shelf_id=ShelfId(shelf) if shelf is not None else None,
    )
    print(f"Successfully added: {book.title} by {book.author_names}")


@book_app.command("list")
def cli_book_list(unplaced: bool = typer.Option(False, "--unplaced", help="Only books not yet on a shelf")):
    """List all books."""
    lib = LibraryManager.get_instance()
    if unplaced:
        print_book_list(lib.list_unplaced_books(), empty_message="Every book is on a shelf.")
    else:
        print_book_list(lib.list_books())


@book_app.command("search")
def cli_book_search(query: str = typer.Argument(..., help="Title, author or ISBN fragment")):
    """Search books by title, author or ISBN."""
    books = LibraryManager.get_instance().search_books(query)
    print_book_list(books, empty_message=render_not_found(query), title=f"🔎 Results for '{query}'")


@book_app.command("show")
@handle_errors
def cli_book_show(book_id: int = typer.Argument(..., help="Book id")):
    """Show a book and where it is shelved."""
    lib = LibraryManager.get_instance()
    try:
        details = lib.get_book_details(BookId(book_id))
    except NotFoundError:
        print(render_not_found(str(book_id)))
        raise typer.Exit(code=1)
    print_book_card(details)


@book_app.command("place")
@handle_errors
def cli_book_place(
    book_id: int = typer.Argument(..., help="Book id"),
    shelf_id: Optional[int] = typer.Argument(None, help="Shelf id"),
):
    """Place a book on a shelf."""
    lib = LibraryManager.get_instance()
    if shelf_id is None:
        target = _select_shelf(lib, CliPrompts())
        if target is None:
            print("No shelf selected.")
            raise typer.Exit(code=1)
    else:
        target = ShelfId(shelf_id)
    placement = lib.place_book_on_shelf(BookId(book_id), target)
    location = lib.get_book_location(placement.book_id)
    print(f"Book {placement.book_id} placed on {location.shelf_label} in {location.bookcase_location}.")


@book_app.command("check-out")
@handle_errors
def cli_book_check_out(book_id: int = typer.Argument(..., help="Book id")):
    """Check a book out."""
    book = LibraryManager.get_instance().check_out_book(BookId(book_id))
    print(f"Checked out: {book.title}")


@book_app.command("check-in")
@handle_errors
def cli_book_check_in(title: Optional[str] = typer.Argument(None, help="Exact book title (any case)")):
    """Check a book back in by title."""
    title = title or CliPrompts().prompt_for_book_title()
    book = LibraryManager.get_instance().check_in_book(title)
    print(f"Checked in: {book.title}")


@book_app.command("remove")
@handle_errors
def cli_book_remove(
    book_id: int = typer.Argument(..., help="Book id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Remove a book from the catalog."""
    lib = LibraryManager.get_instance()
    book = lib.find_book(BookId(book_id))
    if not _confirm_deletion(CliPrompts(), f"🗑️ Remove '{book.title}'?", yes):
        print("Deletion cancelled.")
        return
    lib.remove_book(book.id)
    print(f"Book {book.id} has been removed.")


# ------------------------- library ------------------------- #

@library_app.command("import")
@handle_errors
def cli_library_import(
    path: str = typer.Argument(..., help="File with one ISBN per line, or a CSV with an isbn column"),
):
    """Add every ISBN in a file using Google Books metadata."""
    if not os.path.exists(path):
        print(f"File not found: {path}")
        raise typer.Exit(code=1)
    result = LibraryManager.get_instance().import_isbn_file(path)
    for book in result.added:
        print(f"✓ Added: {book.title} by {book.author_names}")
    for isbn, reason in result.failed:
        print(f"✗ {isbn}: {reason}")
    print(f"Import finished: {result.added_count} added, {result.failed_count} failed")


if __name__ == "__main__":
    app()
