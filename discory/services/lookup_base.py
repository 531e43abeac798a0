"""
Discory Backend — Release Lookup Provider Interface
====================================================

What:  Abstract base for the external music catalogues queried by the scan
       endpoints (Discogs, iTunes), plus the shared HTTP GET with retries.
How:   Concrete providers implement search_by_barcode() / search_by_title()
       and map their payloads into ReleaseCandidate. Every outbound call goes
       through `_get_json`, which uses an httpx.AsyncClient and retries
       transport errors and 5xx answers with tenacity.
Who:   Used by ScanService, which tries providers in order.

Contract:
    - A search returns None when the provider has no match.
    - Any failure to get an answer (after retries) raises
      ExternalServiceError carrying the provider name.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from discory.config import settings
from discory.exceptions import ExternalServiceError
from discory.schemas.scan import ReleaseCandidate

logger = logging.getLogger(__name__)


def is_transient(exc: BaseException) -> bool:
    """Network failures and 5xx answers are worth another attempt."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


class LookupProvider(ABC):
    """
    Base class for one external JSON API.

    Args:
        base_url: API root; requests pass paths relative to it
        transport: optional httpx transport (tests pass httpx.MockTransport)
    """

    name: str = "lookup"

    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET `path` and decode JSON, translating failures.

        Returns:
            Decoded body, or None when the provider answers 404.

        Raises:
            ExternalServiceError: retries exhausted, 4xx other than 404, or
                an undecodable body
        """
        try:
            return await self._get_json(path, params)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            logger.error("%s answered %d for %s", self.name, e.response.status_code, path)
            raise ExternalServiceError(
                provider=self.name,
                context={"status_code": e.response.status_code, "path": path},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error("%s request to %s failed: %s", self.name, path, e)
            raise ExternalServiceError(
                provider=self.name,
                context={"error_type": type(e).__name__, "path": path},
            )

    @retry(
        retry=retry_if_exception(is_transient),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=settings.retry_min_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get_json(self, path: str, params: Optional[Dict[str, Any]]) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=settings.http_timeout,
            transport=self._transport,
        ) as client:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response.json()

    @abstractmethod
    async def search_by_barcode(self, barcode: str) -> Optional[ReleaseCandidate]:
        ...

    @abstractmethod
    async def search_by_title(
        self, title: str, artist: Optional[str] = None
    ) -> Optional[ReleaseCandidate]:
        ...
