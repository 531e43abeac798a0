"""
Discory Backend — Deezer Search Proxy
======================================

What:  Server-side proxy for Deezer's public search, used by the client to
       fetch track previews without hitting CORS.
"""

import logging
from typing import Any, Optional

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from discory.config import settings
from discory.exceptions import ExternalServiceError, ValidationError
from discory.services.lookup_base import is_transient

logger = logging.getLogger(__name__)


class MusicService:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = settings.deezer_api_url
        self._transport = transport

    async def search(self, query: Optional[str]) -> Any:
        """
        Return Deezer's JSON for the first match of `query` unchanged.

        Raises:
            ValidationError: empty query
            ExternalServiceError: Deezer unreachable or answered non-2xx
        """
        if not query or not query.strip():
            raise ValidationError("Query parameter 'q' is required", field="q")
        try:
            return await self._search(query.strip())
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Deezer search failed: %s", e)
            raise ExternalServiceError("Failed to fetch from Deezer", provider="deezer")

    @retry(
        retry=retry_if_exception(is_transient),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=settings.retry_min_wait,
        ),
        reraise=True,
    )
    async def _search(self, query: str) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=settings.http_timeout, transport=self._transport
        ) as client:
            response = await client.get("/search", params={"q": query, "limit": 1})
            response.raise_for_status()
            return response.json()


# Module-level singleton
music_service = MusicService()
