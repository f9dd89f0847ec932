import json
from unittest.mock import MagicMock

from typer.testing import CliRunner

from shelfwise.book import Book
from shelfwise.config import settings
from shelfwise.errors import NotFoundError
from shelfwise.identifiers import BookId
from shelfwise.library import Library
from shelfwise.main import LibraryManager, app

runner = CliRunner()


def invoke(db_file, *args, **kwargs):
    return runner.invoke(app, ["--db", db_file, *args], **kwargs)


def test_list_no_books(db_file):
    result = invoke(db_file, "book", "list")
    assert result.exit_code == 0
    assert "No books in library." in result.stdout


def test_create_and_list_bookcases(db_file):
    result = invoke(db_file, "bookcase", "create", "--location", "Study", "--shelves", "2", "--capacity", "5")
    assert result.exit_code == 0
    assert "Created bookcase 1 at Study with 2 shelves (10 books)" in result.stdout

    result = invoke(db_file, "bookcase", "list")
    assert "1 - Study: 2 shelves x 5 books" in result.stdout


def test_create_bookcase_prompts_for_missing_values(db_file):
    result = invoke(db_file, "bookcase", "create", input="Hall\n3\n4\n")
    assert result.exit_code == 0
    assert "Created bookcase 1 at Hall with 3 shelves (12 books)" in result.stdout


def test_duplicate_bookcase_exits_with_error(db_file):
    invoke(db_file, "bookcase", "create", "-l", "Study", "-s", "1", "-c", "1")
    result = invoke(db_file, "bookcase", "create", "-l", "study", "-s", "1", "-c", "1")
    assert result.exit_code == 1
    assert "Error: Bookcase with the label already exist" in result.stdout


def test_place_and_circulate(db_file):
    invoke(db_file, "bookcase", "create", "-l", "Living Room", "-s", "3", "-c", "10")
    result = invoke(db_file, "book", "new", "--isbn", "9780441172719", "--title", "Dune", "--author", "Frank Herbert")
    assert result.exit_code == 0
    assert "Successfully added: Dune by Frank Herbert" in result.stdout

    result = invoke(db_file, "book", "place", "1", "1")
    assert result.exit_code == 0
    assert "Book 1 placed on Shelf 1 in Living Room." in result.stdout

    result = invoke(db_file, "book", "check-out", "1")
    assert result.exit_code == 0
    assert "Checked out: Dune" in result.stdout

    result = invoke(db_file, "book", "check-out", "1")
    assert result.exit_code == 1
    assert "Error: book already checked out" in result.stdout

    result = invoke(db_file, "book", "check-in", "dune")
    assert result.exit_code == 0
    assert "Checked in: Dune" in result.stdout


def test_place_on_full_shelf(lib, db_file):
    bookcase = lib.create_bookcase("Study", 1, 1)
    shelf_id = lib.shelf_summaries(bookcase.bookcase_id)[0].shelf_id
    lib.add_book("Dune", "9780441172719", shelf_id=shelf_id)
    other = lib.add_book("Neuromancer", "9780441569595")

    result = invoke(db_file, "book", "place", str(other.id), str(shelf_id))
    assert result.exit_code == 1
    assert "Error: Shelf is full" in result.stdout


def test_show_book(lib, db_file):
    bookcase = lib.create_bookcase("Study", 2, 5)
    shelf_id = lib.shelf_summaries(bookcase.bookcase_id)[1].shelf_id
    book = lib.add_book("Dune", "9780441172719", authors=["Frank Herbert"], shelf_id=shelf_id)

    result = invoke(db_file, "book", "show", str(book.id))
    assert result.exit_code == 0
    assert "Book Found" in result.stdout
    assert "Title: Dune" in result.stdout
    assert "Author: Frank Herbert" in result.stdout
    assert "Bookcase: Study" in result.stdout
    assert "Shelf: Shelf 2" in result.stdout


def test_show_book_not_found(db_file):
    result = invoke(db_file, "book", "show", "99")
    assert result.exit_code == 1
    assert "No book found for: 99" in result.stdout


def test_add_book_success(db_file, monkeypatch):
    mock_book = Book(title="Dune", isbn="9780441172719", id=BookId(1))
    add_mock = MagicMock(return_value=mock_book)
    monkeypatch.setattr(Library, "add_book_by_isbn", add_mock)

    result = invoke(db_file, "book", "add", "9780441172719")
    assert result.exit_code == 0
    assert "Successfully added: Dune by Unknown Author" in result.stdout
    add_mock.assert_called_once_with("9780441172719", shelf_id=None)


def test_add_book_not_found(db_file, monkeypatch):
    monkeypatch.setattr(
        Library, "add_book_by_isbn",
        MagicMock(side_effect=NotFoundError("Book", "9780441569595", "No book data found for ISBN: 9780441569595")),
    )

    result = invoke(db_file, "book", "add", "9780441569595")
    assert result.exit_code == 1
    assert "Error: No book data found for ISBN: 9780441569595" in result.stdout


def test_invalid_id_is_reported(db_file):
    result = invoke(db_file, "book", "check-out", "0")
    assert result.exit_code == 1
    assert "Error: BookId must be positive" in result.stdout


def test_search_and_unplaced_list(lib, db_file):
    lib.add_book("Dune", "9780441172719", authors=["Frank Herbert"])

    result = invoke(db_file, "book", "search", "herbert")
    assert "1 - Dune by Frank Herbert (9780441172719) [AVAILABLE, unplaced]" in result.stdout

    result = invoke(db_file, "book", "search", "Tolkien")
    assert "No book found for: Tolkien" in result.stdout

    result = invoke(db_file, "book", "list", "--unplaced")
    assert "Dune" in result.stdout


def test_browse_shelf_and_show_bookcase(lib, db_file):
    bookcase = lib.create_bookcase("Study", 2, 1)
    shelf_id = lib.shelf_summaries(bookcase.bookcase_id)[0].shelf_id
    lib.add_book("Dune", "9780441172719", shelf_id=shelf_id)

    result = invoke(db_file, "shelf", "browse", str(shelf_id))
    assert result.exit_code == 0
    assert "Dune" in result.stdout

    result = invoke(db_file, "bookcase", "show", str(bookcase.bookcase_id))
    assert result.exit_code == 0
    assert "Shelf 1: 1/1 FULL" in result.stdout
    assert "Shelf 2: 0/1" in result.stdout


def test_delete_bookcase_with_yes(lib, db_file):
    bookcase = lib.create_bookcase("Study", 1, 2)
    shelf_id = lib.shelf_summaries(bookcase.bookcase_id)[0].shelf_id
    lib.add_book("Dune", "9780441172719", shelf_id=shelf_id)

    result = invoke(db_file, "bookcase", "delete", str(bookcase.bookcase_id), "--yes")
    assert result.exit_code == 0
    assert f"Bookcase {bookcase.bookcase_id} has been deleted." in result.stdout
    assert lib.list_bookcases() == []
    assert lib.list_books() == []


def test_remove_book_cancelled(lib, db_file, monkeypatch):
    monkeypatch.setattr(settings, "confirm_deletions", True)
    book = lib.add_book("Dune", "9780441172719")

    result = invoke(db_file, "book", "remove", str(book.id), input="n\n")
    assert result.exit_code == 0
    assert "Deletion cancelled." in result.stdout
    assert len(lib.list_books()) == 1


def test_remove_book_confirmed(lib, db_file):
    book = lib.add_book("Dune", "9780441172719")

    result = invoke(db_file, "book", "remove", str(book.id), "-y")
    assert result.exit_code == 0
    assert f"Book {book.id} has been removed." in result.stdout
    assert lib.list_books() == []


def test_json_output(lib, db_file):
    lib.create_bookcase("Study", 2, 5, zone="East")

    result = invoke(db_file, "--output", "json", "bookcase", "list")
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload[0]["location"] == "Study"
    assert payload[0]["total_capacity"] == 10


def test_library_import(lib, db_file, tmp_path, monkeypatch):
    # reuse the fixture library so lookups hit the in-memory provider
    monkeypatch.setattr(LibraryManager, "_instance", lib)
    path = tmp_path / "isbns.csv"
    path.write_text("title,isbn\nDune,9780441172719\nNeuromancer,9780441569595\nBroken,12345\n", encoding="utf-8")

    result = invoke(db_file, "library", "import", str(path))
    assert result.exit_code == 0
    assert "✓ Added: Dune by Frank Herbert" in result.stdout
    assert "✗ 9780441569595: No book data found for ISBN: 9780441569595" in result.stdout
    assert "✗ 12345: Invalid ISBN: 12345" in result.stdout
    assert "Import finished: 1 added, 2 failed" in result.stdout
    assert [b.title.value for b in lib.list_books()] == ["Dune"]


def test_library_import_missing_file(db_file, tmp_path):
    result = invoke(db_file, "library", "import", str(tmp_path / "missing.txt"))
    assert result.exit_code == 1
    assert "File not found" in result.stdout


def test_manager_close_releases_http_client(db_file):
    invoke(db_file, "book", "list")
    instance = LibraryManager._instance
    assert instance is not None

    LibraryManager.close()

    assert LibraryManager._instance is None
    assert instance.metadata_provider._http._client.is_closed
    LibraryManager.close()
