"""
Live Google Books lookups.

Skipped unless SHELFWISE_LIVE_TESTS=1; set GOOGLE_BOOKS_API_KEY in .env for
a higher quota.
"""

import os

import pytest

from shelfwise.identifiers import Isbn
from shelfwise.library import Library
from shelfwise.services.google_books_service import GoogleBooksService

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(os.getenv("SHELFWISE_LIVE_TESTS") != "1", reason="live API tests are opt-in"),
]


@pytest.fixture
def service():
    service = GoogleBooksService()
    yield service
    service.close()


def test_lookup_known_isbn(service):
    metadata = service.lookup(Isbn("9780132350884"))
    assert metadata is not None
    assert "Clean Code" in metadata.title


def test_add_book_by_isbn_end_to_end(db_file):
    lib = Library(db_file=db_file)
    try:
        book = lib.add_book_by_isbn("9780441172719")
        assert "Dune" in book.title.value
        assert lib.list_books()[0].id == book.id
    finally:
        lib.close()
