import logging
import time
from typing import Optional

import httpx

from shelfwise.config import settings

logger = logging.getLogger(__name__)


class HttpClient:
    """Blocking HTTP client with connection limits, timeouts and retry."""

    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.BaseTransport] = None) -> None:
        timeout_s = settings.metadata_timeout if timeout is None else timeout
        limits = httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0
        )
        self._client = httpx.Client(
            limits=limits,
            timeout=httpx.Timeout(timeout_s, connect=min(5.0, timeout_s)),
            follow_redirects=True,
            transport=transport
        )

    def get(self, url: str, **kwargs) -> httpx.Response:
        return self._client.get(url, **kwargs)

    def get_with_retry(self, url: str, retries: int = 1, backoff: float = 0.5, **kwargs) -> httpx.Response:
        """GET with ``retries`` extra attempts on transport errors and 429/5xx responses.

        Returns the last response received, or re-raises the last transport
        error once the attempts are exhausted.
        """
        attempts = retries + 1
        attempt = 1
        while True:
            try:
                response = self.get(url, **kwargs)
            except httpx.RequestError as exc:
                if attempt == attempts:
                    logger.error(f"GET {url} failed after {attempts} attempt(s): {exc}")
                    raise
                logger.warning(f"GET {url} failed (attempt {attempt}/{attempts}): {exc}")
            else:
                if response.status_code != 429 and response.status_code < 500:
                    return response
                if attempt == attempts:
                    logger.error(f"GET {url} returned {response.status_code} after {attempts} attempt(s)")
                    return response
                logger.warning(f"GET {url} returned {response.status_code} (attempt {attempt}/{attempts})")
            time.sleep(backoff * (2 ** (attempt - 1)))
            attempt += 1

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
