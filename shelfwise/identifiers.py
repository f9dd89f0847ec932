from __future__ import annotations

import re
from dataclasses import dataclass

from shelfwise.errors import ValidationError


@dataclass(frozen=True)
class _EntityId:
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(f"{type(self).__name__} must be an integer, got {self.value!r}")
        if self.value < 1:
            raise ValidationError(f"{type(self).__name__} must be positive, got {self.value}")

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class BookId(_EntityId):
    pass


@dataclass(frozen=True)
class ShelfId(_EntityId):
    pass


@dataclass(frozen=True)
class BookcaseId(_EntityId):
    pass


@dataclass(frozen=True)
class Isbn:
    """ISBN-10 or ISBN-13, stored without hyphens or spaces."""

    value: str

    def __post_init__(self) -> None:
        normalized = Isbn.normalize(self.value)
        if not normalized:
            raise ValidationError("ISBN cannot be empty")
        if not Isbn.is_valid(normalized):
            raise ValidationError(f"Invalid ISBN: {self.value}", {"isbn": self.value})
        object.__setattr__(self, "value", normalized)

    @staticmethod
    def normalize(raw: str | None) -> str:
        if raw is None:
            return ""
        return re.sub(r"[\s-]", "", raw).upper()

    @staticmethod
    def is_valid(isbn: str) -> bool:
        s = Isbn.normalize(isbn)
        if len(s) == 10:
            if not s[:-1].isdigit():
                return False
            total = sum(i * int(ch) for i, ch in enumerate(s[:-1], 1))
            check = s[-1]
            if check == "X":
                check_val = 10
            elif check.isdigit():
                check_val = int(check)
            else:
                return False
            return (total + 10 * check_val) % 11 == 0
        if len(s) == 13 and s.isdigit():
            total = sum((1 if i % 2 == 0 else 3) * int(ch) for i, ch in enumerate(s[:-1]))
            return (10 - (total % 10)) % 10 == int(s[-1])
        return False

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Title:
    value: str

    def __post_init__(self) -> None:
        if self.value is None or not str(self.value).strip():
            raise ValidationError("Title cannot be blank")
        object.__setattr__(self, "value", str(self.value).strip())

    def matches(self, other: str) -> bool:
        """Case-insensitive exact comparison."""
        return self.value.casefold() == (other or "").strip().casefold()

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AuthorRef:
    first_name: str
    last_name: str = ""

    @staticmethod
    def parse(full_name: str) -> "AuthorRef":
        name = " ".join((full_name or "").split())
        if not name:
            raise ValidationError("Author name cannot be blank")
        first, _, last = name.rpartition(" ")
        if not first:
            return AuthorRef(first_name=last)
        return AuthorRef(first_name=first, last_name=last)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return self.full_name
