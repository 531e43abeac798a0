"""
Discory Backend — iTunes Provider
==================================

What:  Album search and cover artwork from the iTunes Search API. Used as the
       fallback release source and to fill covers Discogs does not have.
How:   `search?term=...&media=music&entity=album&limit=1`. Artwork URLs come
       as 100x100 thumbnails; the size segment is rewritten to 600x600.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from discory.config import settings
from discory.schemas.scan import ReleaseCandidate
from discory.services.lookup_base import LookupProvider

logger = logging.getLogger(__name__)


def upscale_artwork(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return url.replace("100x100bb", "600x600bb")


class CoverArtService(LookupProvider):
    name = "itunes"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(settings.itunes_api_url, transport)

    async def _first_album(self, term: str) -> Optional[Dict[str, Any]]:
        data = await self.get_json(
            "/search", {"term": term, "media": "music", "entity": "album", "limit": 1}
        )
        results = (data or {}).get("results") or []
        return results[0] if results else None

    async def get_cover_art(self, artist: str, album: str) -> Optional[str]:
        album_info = await self._first_album(f"{artist} {album}")
        return upscale_artwork(album_info.get("artworkUrl100")) if album_info else None

    async def search_by_barcode(self, barcode: str) -> Optional[ReleaseCandidate]:
        album_info = await self._first_album(barcode)
        return self.to_candidate(album_info) if album_info else None

    async def search_by_title(
        self, title: str, artist: Optional[str] = None
    ) -> Optional[ReleaseCandidate]:
        term = f"{artist} {title}" if artist else title
        album_info = await self._first_album(term)
        return self.to_candidate(album_info) if album_info else None

    @staticmethod
    def to_candidate(result: Dict[str, Any]) -> ReleaseCandidate:
        year = None
        release_date = result.get("releaseDate")
        if release_date:
            try:
                year = datetime.fromisoformat(release_date.replace("Z", "+00:00")).year
            except ValueError:
                year = None
        if year is None:
            year = datetime.now(timezone.utc).year

        genre = result.get("primaryGenreName")
        return ReleaseCandidate(
            title=result.get("collectionName") or "",
            artist=result.get("artistName") or "Unknown artist",
            genres=[genre] if genre else [],
            year=year,
            cover_image=upscale_artwork(result.get("artworkUrl100")),
            source="itunes",
        )


# Module-level singleton
cover_art_service = CoverArtService()
