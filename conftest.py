from typing import Dict, List, Optional

import pytest

from shelfwise.identifiers import Isbn
from shelfwise.library import Library
from shelfwise.rendering import OUTPUT_MODE_ENV
from shelfwise.services.google_books_service import BookMetadata, MetadataProvider

DUNE = BookMetadata(
    isbn="9780441172719",
    title="Dune",
    authors=["Frank Herbert"],
    publisher="Ace",
    published_date="1990",
    categories=["Fiction"],
)


class FakeMetadataProvider(MetadataProvider):
    """In-memory provider; records every ISBN it was asked for."""

    def __init__(self, records: Optional[Dict[str, BookMetadata]] = None) -> None:
        self.records = records or {}
        self.calls: List[str] = []

    def lookup(self, isbn: Isbn) -> Optional[BookMetadata]:
        self.calls.append(isbn.value)
        return self.records.get(isbn.value)


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    # CLI tests switch the mode through the environment; always start from plain
    monkeypatch.setenv(OUTPUT_MODE_ENV, "plain")


@pytest.fixture
def metadata_provider():
    return FakeMetadataProvider({DUNE.isbn: DUNE})


@pytest.fixture
def db_file(tmp_path, request):
    # One database file per test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture
def lib(db_file, metadata_provider):
    lib = Library(db_file=db_file, metadata_provider=metadata_provider)
    yield lib
    lib.close()
