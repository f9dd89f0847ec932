import logging

import pytest

from shelfwise.book import AvailabilityStatus
from shelfwise.errors import InvalidStateError, NotFoundError
from shelfwise.identifiers import BookId
from shelfwise.library import Library


def test_dune_round_trip(lib):
    bookcase = lib.create_bookcase("Living Room", 3, 10)
    shelf_id = lib.shelf_summaries(bookcase.bookcase_id)[0].shelf_id
    dune = lib.add_book("Dune", "9780441172719", authors=["Frank Herbert"])
    lib.place_book_on_shelf(dune.id, shelf_id)

    lib.check_out_book(dune.id)
    assert lib.find_book(dune.id).availability_status is AvailabilityStatus.CHECKED_OUT

    with pytest.raises(InvalidStateError, match="book already checked out"):
        lib.check_out_book(dune.id)

    returned = lib.check_in_book("dune")
    assert returned.id == dune.id
    assert lib.find_book(dune.id).availability_status is AvailabilityStatus.AVAILABLE
    # Circulation does not move the book
    assert lib.find_book(dune.id).shelf_id == shelf_id


def test_check_out_unknown_book(lib):
    with pytest.raises(NotFoundError):
        lib.check_out_book(BookId(12))


def test_check_in_unknown_title(lib):
    lib.add_book("Dune", "9780441172719")
    with pytest.raises(NotFoundError, match="Book not found: Dune Messiah"):
        lib.check_in_book("Dune Messiah")


def test_check_in_of_available_book_logs_warning(lib, caplog):
    book = lib.add_book("Dune", "9780441172719")

    with caplog.at_level(logging.WARNING, logger="shelfwise.catalog"):
        returned = lib.check_in_book("DUNE")

    assert returned.availability_status is AvailabilityStatus.AVAILABLE
    assert f"Book {book.id} checked in while already available" in caplog.text


def test_checkout_state_is_persisted_not_cached(lib, db_file, metadata_provider):
    book = lib.add_book("Dune", "9780441172719")
    lib.check_out_book(book.id)

    other = Library(db_file=db_file, metadata_provider=metadata_provider)
    with pytest.raises(InvalidStateError):
        other.check_out_book(book.id)
