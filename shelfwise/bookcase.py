from __future__ import annotations

from typing import List, Optional

from shelfwise.errors import ValidationError
from shelfwise.identifiers import BookcaseId
from shelfwise.shelf import Shelf


class Bookcase:
    """A physical storage unit holding a fixed number of shelves."""

    def __init__(self, location: str, shelf_count: int, book_capacity_per_shelf: int, zone: str = "",
                 zone_index: str = "", owner_id: Optional[int] = None, id: Optional[BookcaseId] = None) -> None:
        if location is None or not location.strip():
            raise ValidationError("Bookcase location cannot be blank")
        if shelf_count < 1:
            raise ValidationError("Shelf count must be greater than 0", {"shelf_count": shelf_count})
        if book_capacity_per_shelf < 1:
            raise ValidationError("Book capacity per shelf must be greater than 0",
                                  {"book_capacity_per_shelf": book_capacity_per_shelf})
        self.id = id
        self.owner_id = owner_id
        self.location = location.strip()
        self.zone = (zone or "").strip()
        self.zone_index = (zone_index or "").strip()
        self.shelf_count = shelf_count
        self.book_capacity_per_shelf = book_capacity_per_shelf

    def __repr__(self) -> str:
        return (f"Bookcase(id={self.id}, location={self.location!r}, zone={self.zone!r}, "
                f"index={self.zone_index!r}, shelf_count={self.shelf_count}, "
                f"book_capacity_per_shelf={self.book_capacity_per_shelf})")

    @property
    def total_capacity(self) -> int:
        return self.shelf_count * self.book_capacity_per_shelf

    def provision_shelves(self) -> List[Shelf]:
        """Shelves "Shelf 1".."Shelf N" at positions 1..N; requires a persisted bookcase."""
        if self.id is None:
            raise ValidationError("Bookcase must be saved before shelves can be provisioned")
        return [
            Shelf(bookcase_id=self.id, position=i, label=f"Shelf {i}", book_capacity=self.book_capacity_per_shelf)
            for i in range(1, self.shelf_count + 1)
        ]

    def to_dict(self) -> dict:
        return {
            "id": self.id.value if self.id else None,
            "owner_id": self.owner_id,
            "location": self.location,
            "zone": self.zone,
            "zone_index": self.zone_index,
            "shelf_count": self.shelf_count,
            "book_capacity_per_shelf": self.book_capacity_per_shelf,
            "total_capacity": self.total_capacity,
        }
