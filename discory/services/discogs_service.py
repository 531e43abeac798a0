"""
Discory Backend — Discogs Provider
===================================

What:  Barcode and free-text release lookup against the Discogs database API.
How:   `database/search` for the first matching release id, then
       `releases/{id}` for the full record. Disc count and vinyl colour are
       derived from the release's `formats` block.

Format block example (releases/{id}):
    "formats": [{"name": "Vinyl", "qty": "2",
                 "descriptions": ["LP", "Album", "Limited Edition"],
                 "text": "Red Translucent"}]
    → disc_count 2, vinyl_color "Red"
"""

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from discory.config import settings
from discory.schemas.scan import ReleaseCandidate
from discory.services.lookup_base import LookupProvider

logger = logging.getLogger(__name__)

COLORS = (
    "Red", "Blue", "Green", "Yellow", "Orange", "Purple", "Pink",
    "White", "Clear", "Gold", "Silver", "Grey", "Transparent",
    "Maroon", "Teal", "Turquoise", "Violet", "Magenta",
)
# Effects that are not colours but still mark a non-black pressing
EFFECTS = ("Splatter", "Marbled")

_MULTI_DISC = re.compile(r"(\d+)x(LP|CD|Vinyl)", re.IGNORECASE)


def _format_texts(fmt: Dict[str, Any]) -> List[str]:
    return [d for d in (fmt.get("descriptions") or []) if isinstance(d, str)] + [
        fmt.get("text") or ""
    ]


def extract_disc_count(formats: Optional[List[Dict[str, Any]]]) -> int:
    """Largest of every `qty` and every `NxLP|CD|Vinyl` marker, at least 1."""
    best = 1
    for fmt in formats or []:
        try:
            best = max(best, int(fmt.get("qty") or 1))
        except (TypeError, ValueError):
            pass
        match = _MULTI_DISC.search(" ".join(_format_texts(fmt)))
        if match:
            best = max(best, int(match.group(1)))
    return best


def extract_color(formats: Optional[List[Dict[str, Any]]]) -> Optional[str]:
    """First colour keyword found in format descriptions or free text."""
    for fmt in formats or []:
        for text in _format_texts(fmt):
            lowered = text.lower()
            for color in COLORS:
                if color.lower() in lowered:
                    return color
        combined = " ".join(_format_texts(fmt)).lower()
        for effect in EFFECTS:
            if effect.lower() in combined:
                return effect
    return None


def extract_format(formats: Optional[List[Dict[str, Any]]]) -> str:
    names = {str(fmt.get("name", "")).lower() for fmt in formats or []}
    if "cd" in names and "vinyl" not in names:
        return "cd"
    return "vinyl"


class DiscogsService(LookupProvider):
    name = "discogs"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(settings.discogs_api_url, transport)

    def _headers(self) -> Dict[str, str]:
        headers = {"User-Agent": settings.discogs_user_agent, "Accept": "application/json"}
        if settings.discogs_api_key:
            headers["Authorization"] = f"Discogs token={settings.discogs_api_key}"
        return headers

    async def search_by_barcode(self, barcode: str) -> Optional[ReleaseCandidate]:
        return await self._first_release({"barcode": barcode})

    async def search_by_title(
        self, title: str, artist: Optional[str] = None
    ) -> Optional[ReleaseCandidate]:
        query = f"{title} {artist}" if artist else title
        return await self._first_release({"q": query, "type": "release"})

    async def get_release(self, release_id: Any) -> Optional[ReleaseCandidate]:
        data = await self.get_json(f"/releases/{release_id}")
        if not data:
            return None
        return self.to_candidate(data)

    async def _first_release(self, params: Dict[str, Any]) -> Optional[ReleaseCandidate]:
        found = await self.get_json("/database/search", params)
        results = (found or {}).get("results") or []
        if not results:
            logger.info("Discogs: no match for %s", params)
            return None
        return await self.get_release(results[0]["id"])

    @staticmethod
    def to_candidate(data: Dict[str, Any]) -> ReleaseCandidate:
        artists = data.get("artists") or []
        images = data.get("images") or []
        formats = data.get("formats") or []
        year = data.get("year")
        return ReleaseCandidate(
            title=data.get("title") or "",
            artist=artists[0].get("name", "Unknown artist") if artists else "Unknown artist",
            genres=data.get("genres") or [],
            year=year or None,
            cover_image=images[0].get("uri") if images else None,
            discogs_id=str(data["id"]) if data.get("id") is not None else None,
            disc_count=extract_disc_count(formats),
            vinyl_color=extract_color(formats),
            format=extract_format(formats),
            source="discogs",
        )


# Module-level singleton
discogs_service = DiscogsService()
