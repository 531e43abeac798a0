"""
Discory Backend — Scan Service (Release Lookup Orchestrator)
=============================================================

What:  Turns a barcode or a title/artist pair into a prefilled catalogue
       entry by asking the lookup providers in order.

Lookup flow:
    ┌──────────┐  no match /  ┌──────────┐  no match  ┌──────────────────┐
    │ Discogs  │─────────────▶│  iTunes  │───────────▶│ 404 (or 500 when │
    │          │  failure     │          │            │ every one failed)│
    └────┬─────┘              └────┬─────┘            └──────────────────┘
         │ match                   │ match
         ▼                         ▼
    cover missing? ──▶ iTunes artwork lookup (best effort)
"""

import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from discory.exceptions import ExternalServiceError, NotFoundError, ValidationError
from discory.schemas.scan import ReleaseCandidate, ReleaseLookup
from discory.services.cover_art_service import CoverArtService, cover_art_service
from discory.services.discogs_service import discogs_service
from discory.services.lookup_base import LookupProvider

logger = logging.getLogger(__name__)


class ScanService:
    """Tries each release provider in order and fills a missing cover from iTunes."""

    def __init__(
        self,
        providers: Optional[Sequence[LookupProvider]] = None,
        artwork: Optional[CoverArtService] = None,
    ):
        self.providers = list(providers) if providers is not None else [
            discogs_service,
            cover_art_service,
        ]
        self.artwork = artwork or cover_art_service

    async def scan_barcode(self, barcode: Optional[str]) -> ReleaseLookup:
        barcode = (barcode or "").strip()
        if not barcode:
            raise ValidationError("Barcode is required", field="barcode")

        release = await self._first_match(lambda p: p.search_by_barcode(barcode), barcode)
        return await self._to_lookup(release, barcode=barcode)

    async def scan_search(self, title: Optional[str], artist: Optional[str] = None) -> ReleaseLookup:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        artist = (artist or "").strip() or None

        release = await self._first_match(lambda p: p.search_by_title(title, artist), title)
        if artist and release.artist == "Unknown artist":
            release.artist = artist
        return await self._to_lookup(release)

    async def _first_match(
        self,
        search: Callable[[LookupProvider], Awaitable[Optional[ReleaseCandidate]]],
        subject: str,
    ) -> ReleaseCandidate:
        failures: List[ExternalServiceError] = []
        for provider in self.providers:
            try:
                release = await search(provider)
            except ExternalServiceError as e:
                logger.warning("Lookup via %s failed for '%s': %s", provider.name, subject, e.message)
                failures.append(e)
                continue
            if release is not None:
                logger.info("Lookup for '%s' matched on %s", subject, provider.name)
                return release

        if failures and len(failures) == len(self.providers):
            raise ExternalServiceError(
                "Release lookup is unavailable right now. Please try again later.",
                context={"providers": [f.provider for f in failures]},
            )
        raise NotFoundError(resource="release", resource_id=subject)

    async def _to_lookup(
        self, release: ReleaseCandidate, barcode: Optional[str] = None
    ) -> ReleaseLookup:
        cover = release.cover_image
        if not cover and release.title:
            try:
                cover = await self.artwork.get_cover_art(release.artist, release.title)
            except ExternalServiceError as e:
                logger.info("Artwork lookup failed for '%s': %s", release.title, e.message)

        return ReleaseLookup(
            title=release.title,
            artist=release.artist,
            genre=release.genres[0] if release.genres else "Unclassified",
            release_year=release.year,
            cover_image=cover,
            barcode=barcode,
            discogs_id=release.discogs_id,
            genres=release.genres,
            disc_count=release.disc_count,
            vinyl_color=release.vinyl_color,
            format=release.format,
            source=release.source,
        )


# Module-level singleton
scan_service = ScanService()
