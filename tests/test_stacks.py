import sqlite3
from unittest.mock import MagicMock

import pytest

from shelfwise.bookcase import Bookcase
from shelfwise.errors import CapacityExceededError, DuplicateError, NotFoundError, ValidationError
from shelfwise.identifiers import BookcaseId, BookId, ShelfId
from shelfwise.stacks import BookcaseService


def shelf_ids(lib, bookcase_id):
    return [s.shelf_id for s in lib.shelf_summaries(bookcase_id)]


def test_create_bookcase_provisions_shelves(lib):
    result = lib.create_bookcase("Living Room", shelf_count=3, book_capacity_per_shelf=10, zone="North", zone_index="A")

    assert result.shelf_count == 3
    assert result.total_capacity == 30
    shelves = lib.shelves.find_shelves_by_bookcase(result.bookcase_id)
    assert [s.label for s in shelves] == ["Shelf 1", "Shelf 2", "Shelf 3"]
    assert [s.position for s in shelves] == [1, 2, 3]
    assert all(s.book_capacity == 10 and s.is_empty() for s in shelves)

    bookcase = lib.find_bookcase(result.bookcase_id)
    assert (bookcase.location, bookcase.zone, bookcase.zone_index) == ("Living Room", "North", "A")


def test_duplicate_location_is_rejected_case_insensitively(lib):
    lib.create_bookcase("Living Room", 2, 5)

    with pytest.raises(DuplicateError, match="Bookcase with the label already exist"):
        lib.create_bookcase("  living room ", 4, 5)

    assert len(lib.list_bookcases()) == 1
    assert len(lib.shelves.list_shelves()) == 2


def test_invalid_counts_save_nothing(lib):
    with pytest.raises(ValidationError):
        lib.create_bookcase("Study", shelf_count=0, book_capacity_per_shelf=5)
    assert lib.list_bookcases() == []


def test_duplicate_location_saves_no_shelves():
    bookcases = MagicMock()
    bookcases.find_by_location.return_value = Bookcase(location="Study", shelf_count=1, book_capacity_per_shelf=1,
                                                       id=BookcaseId(1))
    shelf_service = MagicMock()
    service = BookcaseService(MagicMock(), bookcases, shelf_service)

    with pytest.raises(DuplicateError):
        service.create_bookcase("Study", 3, 5)

    bookcases.save.assert_not_called()
    assert shelf_service.create_shelf.call_count == 0


def test_create_bookcase_creates_one_shelf_per_position():
    def save(bookcase):
        bookcase.id = BookcaseId(7)
        return bookcase

    bookcases = MagicMock()
    bookcases.find_by_location.return_value = None
    bookcases.save.side_effect = save
    shelf_service = MagicMock()
    service = BookcaseService(MagicMock(), bookcases, shelf_service)

    result = service.create_bookcase("Hall", 3, 4)

    assert result.bookcase_id == BookcaseId(7)
    assert shelf_service.create_shelf.call_count == 3
    positions = [c.kwargs["position"] for c in shelf_service.create_shelf.call_args_list]
    assert positions == [1, 2, 3]
    assert {c.kwargs["book_capacity"] for c in shelf_service.create_shelf.call_args_list} == {4}


def test_delete_bookcase_cascades_books_then_shelves(lib):
    first = lib.create_bookcase("Study", 2, 5)
    other = lib.create_bookcase("Hall", 1, 5)
    study_shelves = shelf_ids(lib, first.bookcase_id)
    hall_shelf = shelf_ids(lib, other.bookcase_id)[0]

    dune = lib.add_book("Dune", "9780441172719", shelf_id=study_shelves[0])
    lib.add_book("Neuromancer", "9780441569595", shelf_id=study_shelves[1])
    kept = lib.add_book("Clean Code", "9780132350884", shelf_id=hall_shelf)
    loose = lib.add_book("Dune Messiah", "0441172717")

    lib.delete_bookcase(first.bookcase_id)

    with pytest.raises(NotFoundError):
        lib.find_bookcase(first.bookcase_id)
    assert lib.shelves.find_shelves_by_bookcase(first.bookcase_id) == []
    with pytest.raises(NotFoundError):
        lib.find_book(dune.id)
    remaining = {b.id for b in lib.list_books()}
    assert remaining == {kept.id, loose.id}
    # no book points at a shelf that no longer exists
    existing_shelves = {s.id for s in lib.shelves.list_shelves()}
    assert all(b.shelf_id is None or b.shelf_id in existing_shelves for b in lib.list_books())


def test_delete_missing_bookcase(lib):
    with pytest.raises(NotFoundError):
        lib.delete_bookcase(BookcaseId(42))


def test_place_book_on_shelf(lib):
    bookcase = lib.create_bookcase("Study", 1, 2)
    shelf_id = shelf_ids(lib, bookcase.bookcase_id)[0]
    book = lib.add_book("Dune", "9780441172719")

    placement = lib.place_book_on_shelf(book.id, shelf_id)

    assert (placement.book_id, placement.shelf_id) == (book.id, shelf_id)
    assert lib.find_book(book.id).shelf_id == shelf_id
    assert lib.find_shelf(shelf_id).book_ids == [book.id]


def test_place_on_full_shelf_is_rejected(lib):
    bookcase = lib.create_bookcase("Study", 1, 1)
    shelf_id = shelf_ids(lib, bookcase.bookcase_id)[0]
    first = lib.add_book("Dune", "9780441172719", shelf_id=shelf_id)
    second = lib.add_book("Neuromancer", "9780441569595")

    with pytest.raises(CapacityExceededError, match="Shelf is full"):
        lib.place_book_on_shelf(second.id, shelf_id)

    assert lib.find_book(second.id).shelf_id is None
    assert lib.find_shelf(shelf_id).book_ids == [first.id]


def test_place_same_book_twice_counts_once(lib):
    bookcase = lib.create_bookcase("Study", 1, 1)
    shelf_id = shelf_ids(lib, bookcase.bookcase_id)[0]
    book = lib.add_book("Dune", "9780441172719", shelf_id=shelf_id)

    lib.place_book_on_shelf(book.id, shelf_id)

    assert lib.find_shelf(shelf_id).book_count == 1


def test_moving_a_book_frees_its_old_slot(lib):
    bookcase = lib.create_bookcase("Study", 2, 1)
    top, bottom = shelf_ids(lib, bookcase.bookcase_id)
    book = lib.add_book("Dune", "9780441172719", shelf_id=top)

    lib.place_book_on_shelf(book.id, bottom)

    assert lib.shelves.is_empty(top)
    assert lib.shelves.is_full(bottom)


def test_place_missing_book_or_shelf(lib):
    bookcase = lib.create_bookcase("Study", 1, 1)
    shelf_id = shelf_ids(lib, bookcase.bookcase_id)[0]
    book = lib.add_book("Dune", "9780441172719")

    with pytest.raises(NotFoundError, match="Book not found"):
        lib.place_book_on_shelf(BookId(999), shelf_id)
    with pytest.raises(NotFoundError, match="Shelf not found"):
        lib.place_book_on_shelf(book.id, ShelfId(999))


def test_failed_placement_rolls_back(lib, monkeypatch):
    bookcase = lib.create_bookcase("Study", 1, 1)
    shelf_id = shelf_ids(lib, bookcase.bookcase_id)[0]
    book = lib.add_book("Dune", "9780441172719")
    monkeypatch.setattr(lib.shelf_repository, "save", MagicMock(side_effect=sqlite3.OperationalError("disk I/O error")))

    with pytest.raises(sqlite3.OperationalError):
        lib.place_book_on_shelf(book.id, shelf_id)

    assert lib.find_book(book.id).shelf_id is None


def test_shelf_queries_on_missing_shelf(lib):
    with pytest.raises(NotFoundError):
        lib.shelves.is_full(ShelfId(5))
    with pytest.raises(NotFoundError):
        lib.shelves.is_empty(ShelfId(5))
    with pytest.raises(NotFoundError):
        lib.browse_shelf(ShelfId(5))


def test_shelf_summaries_and_browse(lib):
    bookcase = lib.create_bookcase("Study", 2, 2)
    top, bottom = shelf_ids(lib, bookcase.bookcase_id)
    lib.add_book("Neuromancer", "9780441569595", shelf_id=top)
    lib.add_book("Dune", "9780441172719", shelf_id=top)

    summaries = lib.shelf_summaries(bookcase.bookcase_id)
    assert [(s.label, s.book_count, s.is_full) for s in summaries] == [("Shelf 1", 2, True), ("Shelf 2", 0, False)]
    assert lib.book_repository.count_by_shelf_id(top) == 2
    assert [b.title.value for b in lib.browse_shelf(top)] == ["Dune", "Neuromancer"]
    assert lib.browse_shelf(bottom) == []


def test_find_by_location_and_owner(lib):
    lib.create_bookcase("Study", 1, 1, owner_id=3)
    lib.create_bookcase("Hall", 1, 1, owner_id=4)

    assert lib.bookcases.find_by_location("STUDY").owner_id == 3
    assert lib.bookcases.find_by_location("Attic") is None
    assert [b.location for b in lib.bookcases.find_by_owner(4)] == ["Hall"]
    assert lib.bookcases.list_locations() == ["Hall", "Study"]


def test_create_shelf_in_missing_bookcase(lib):
    with pytest.raises(NotFoundError, match="Bookcase not found"):
        lib.shelves.create_shelf(BookcaseId(99), 1, "Shelf 1", 5)
    assert lib.shelves.list_shelves() == []


def test_create_shelf_at_taken_position(lib):
    bookcase = lib.create_bookcase("Study", 2, 5)

    with pytest.raises(DuplicateError, match="already has a shelf at position 2"):
        lib.shelves.create_shelf(bookcase.bookcase_id, 2, "Extra", 5)
    assert len(lib.shelf_summaries(bookcase.bookcase_id)) == 2


def test_create_shelf_at_next_position_grows_bookcase(lib):
    bookcase = lib.create_bookcase("Study", 2, 5)

    shelf = lib.shelves.create_shelf(bookcase.bookcase_id, 3, "Top", 8)

    assert lib.find_bookcase(bookcase.bookcase_id).shelf_count == 3
    summaries = lib.shelf_summaries(bookcase.bookcase_id)
    assert [(s.position, s.label) for s in summaries] == [(1, "Shelf 1"), (2, "Shelf 2"), (3, "Top")]
    assert lib.find_shelf(shelf.id).book_capacity == 8


def test_create_shelf_past_next_position_is_rejected(lib):
    bookcase = lib.create_bookcase("Study", 2, 5)

    with pytest.raises(ValidationError, match="between 1 and 3"):
        lib.shelves.create_shelf(bookcase.bookcase_id, 5, "Shelf 5", 5)
    assert lib.find_bookcase(bookcase.bookcase_id).shelf_count == 2
    assert len(lib.shelves.find_shelves_by_bookcase(bookcase.bookcase_id)) == 2
