import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from shelfwise.config import settings
from shelfwise.errors import MetadataLookupError
from shelfwise.identifiers import Isbn
from shelfwise.services.http_client import HttpClient

logger = logging.getLogger(__name__)


@dataclass
class BookMetadata:
    """Bibliographic data returned for an ISBN"""
    isbn: str
    title: str
    authors: List[str] = field(default_factory=list)
    publisher: str = ""
    description: str = ""
    published_date: Optional[str] = None
    categories: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isbn": self.isbn,
            "title": self.title,
            "authors": self.authors,
            "publisher": self.publisher,
            "description": self.description,
            "published_date": self.published_date,
            "categories": self.categories,
        }


class MetadataProvider(ABC):
    """Looks up bibliographic data for an ISBN."""

    @abstractmethod
    def lookup(self, isbn: Isbn) -> Optional[BookMetadata]:
        """
        Return metadata for the ISBN, or None when the provider has no match.

        Raises:
            MetadataLookupError: If the provider cannot be reached or answers with an error
        """
        pass


class GoogleBooksService(MetadataProvider):
    """ISBN lookups against the Google Books volumes API"""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[float] = None, retries: Optional[int] = None,
                 backoff: Optional[float] = None, http_client: Optional[HttpClient] = None):
        self.api_key = api_key or settings.google_books_api_key
        self.base_url = (base_url or settings.google_books_base_url).rstrip("/")
        self.timeout = settings.metadata_timeout if timeout is None else timeout
        self.retries = settings.metadata_retries if retries is None else retries
        self.backoff = settings.metadata_retry_backoff if backoff is None else backoff
        self._http = http_client or HttpClient(timeout=self.timeout)

    def lookup(self, isbn: Isbn) -> Optional[BookMetadata]:
        params: Dict[str, Any] = {"q": f"isbn:{isbn.value}", "maxResults": 1}
        if self.api_key:
            params["key"] = self.api_key

        url = f"{self.base_url}/volumes"
        try:
            response = self._http.get_with_retry(url, retries=self.retries, backoff=self.backoff, params=params)
        except httpx.RequestError as exc:
            raise MetadataLookupError(f"Google Books is unreachable: {exc}", {"isbn": isbn.value}) from exc

        if response.status_code != 200:
            logger.error(f"Google Books lookup failed: {response.status_code} - {response.text[:200]}")
            raise MetadataLookupError(
                f"Google Books returned HTTP {response.status_code}",
                {"isbn": isbn.value, "status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise MetadataLookupError("Google Books returned an invalid response", {"isbn": isbn.value}) from exc

        items = payload.get("items") or []
        if not payload.get("totalItems") or not items:
            logger.info(f"Book not found in Google Books: ISBN {isbn.value}")
            return None

        metadata = self._parse_volume_info(items[0], isbn.value)
        if metadata is None:
            return None
        logger.info(f"Book found via Google Books: {metadata.title} by {', '.join(metadata.authors)}")
        return metadata

    def _parse_volume_info(self, volume_data: Dict[str, Any], isbn: str) -> Optional[BookMetadata]:
        volume_info = volume_data.get("volumeInfo", {})
        title = (volume_info.get("title") or "").strip()
        if not title:
            logger.warning(f"Google Books volume for ISBN {isbn} has no title")
            return None

        return BookMetadata(
            isbn=isbn,
            title=title,
            authors=list(volume_info.get("authors") or []),
            publisher=volume_info.get("publisher") or "",
            description=volume_info.get("description") or "",
            published_date=volume_info.get("publishedDate"),
            categories=list(volume_info.get("categories") or []),
        )

    def close(self) -> None:
        self._http.close()
