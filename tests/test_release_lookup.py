"""
Discory Backend — Release Lookup Tests
=======================================

What:  Discogs format parsing, provider HTTP handling and the scan fallback
       chain. Providers get an httpx.MockTransport, so no request leaves the
       process; retries do not sleep because conftest sets RETRY_*_WAIT=0.

What we test:
    ✅ Disc count from qty and "NxLP" markers, colour and format detection
    ✅ Discogs search → release mapping, with auth and User-Agent headers
    ✅ 5xx is retried, 404 means "no match", other 4xx fail the provider
    ✅ Discogs failure falls back to iTunes; iTunes artwork fills covers
    ✅ All providers failing → 500, no match anywhere → 404
    ✅ Deezer proxy: empty query 400, upstream failure 500
"""

from typing import List

import httpx
import pytest

from discory.config import settings
from discory.exceptions import ExternalServiceError, NotFoundError, ValidationError
from discory.services.cover_art_service import CoverArtService, upscale_artwork
from discory.services.discogs_service import (
    DiscogsService,
    extract_color,
    extract_disc_count,
    extract_format,
)
from discory.services.music_service import MusicService
from discory.services.scan_service import ScanService

RELEASE = {
    "id": 249504,
    "title": "Never Gonna Give You Up",
    "artists": [{"name": "Rick Astley"}],
    "genres": ["Electronic", "Pop"],
    "year": 1987,
    "images": [{"uri": "https://img.discogs.example/249504.jpg"}],
    "formats": [{"name": "Vinyl", "qty": "1", "descriptions": ["7\"", "Single"], "text": "Red"}],
}

ITUNES_ALBUM = {
    "collectionName": "Whenever You Need Somebody",
    "artistName": "Rick Astley",
    "primaryGenreName": "Pop",
    "releaseDate": "1987-11-12T08:00:00Z",
    "artworkUrl100": "https://is1.itunes.example/art/100x100bb.jpg",
}


def _transport(handler, seen: List[httpx.Request] = None) -> httpx.MockTransport:
    def _record(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    return httpx.MockTransport(_record)


def _discogs_ok(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/database/search":
        return httpx.Response(200, json={"results": [{"id": 249504}]})
    if request.url.path == "/releases/249504":
        return httpx.Response(200, json=RELEASE)
    return httpx.Response(404)


def _itunes_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"resultCount": 1, "results": [ITUNES_ALBUM]})


class TestFormatParsing:
    def test_disc_count_from_qty(self):
        assert extract_disc_count([{"name": "Vinyl", "qty": "2"}]) == 2

    def test_disc_count_from_marker(self):
        formats = [{"name": "Vinyl", "qty": "1", "descriptions": ["3xLP", "Album"]}]
        assert extract_disc_count(formats) == 3

    def test_disc_count_defaults_to_one(self):
        assert extract_disc_count(None) == 1
        assert extract_disc_count([{"name": "Vinyl", "qty": "n/a"}]) == 1

    def test_color_from_text(self):
        formats = [{"name": "Vinyl", "descriptions": ["LP"], "text": "Translucent Blue"}]
        assert extract_color(formats) == "Blue"

    def test_effect_when_no_color(self):
        formats = [{"name": "Vinyl", "descriptions": ["LP"], "text": "Black Splatter"}]
        assert extract_color(formats) == "Splatter"

    def test_no_color(self):
        assert extract_color([{"name": "Vinyl", "descriptions": ["LP", "Album"]}]) is None

    def test_format(self):
        assert extract_format([{"name": "CD"}]) == "cd"
        assert extract_format([{"name": "CD"}, {"name": "Vinyl"}]) == "vinyl"
        assert extract_format([]) == "vinyl"

    def test_upscale_artwork(self):
        assert upscale_artwork("https://x/100x100bb.jpg") == "https://x/600x600bb.jpg"
        assert upscale_artwork(None) is None


class TestDiscogs:
    @pytest.mark.asyncio
    async def test_barcode_lookup(self, monkeypatch):
        monkeypatch.setattr(settings, "discogs_api_key", "tok")
        seen: List[httpx.Request] = []
        discogs = DiscogsService(transport=_transport(_discogs_ok, seen))

        release = await discogs.search_by_barcode("5012394144777")

        assert release.title == "Never Gonna Give You Up"
        assert release.artist == "Rick Astley"
        assert release.discogs_id == "249504"
        assert release.vinyl_color == "Red"
        assert release.source == "discogs"
        assert seen[0].url.params["barcode"] == "5012394144777"
        assert seen[0].headers["Authorization"] == "Discogs token=tok"
        assert seen[0].headers["User-Agent"] == settings.discogs_user_agent

    @pytest.mark.asyncio
    async def test_no_results(self):
        discogs = DiscogsService(
            transport=_transport(lambda r: httpx.Response(200, json={"results": []}))
        )
        assert await discogs.search_by_barcode("000") is None

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self):
        calls = {"n": 0}

        def flaky(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/database/search":
                calls["n"] += 1
                if calls["n"] == 1:
                    return httpx.Response(502)
            return _discogs_ok(request)

        discogs = DiscogsService(transport=_transport(flaky))
        release = await discogs.search_by_title("Never Gonna Give You Up")

        assert release is not None
        assert calls["n"] == 2

    @pytest.mark.asyncio
    async def test_client_error_fails_the_provider(self):
        discogs = DiscogsService(transport=_transport(lambda r: httpx.Response(401)))
        with pytest.raises(ExternalServiceError) as exc_info:
            await discogs.search_by_barcode("123")
        assert exc_info.value.provider == "discogs"


class TestScanService:
    @pytest.mark.asyncio
    async def test_discogs_match(self):
        scan = ScanService(
            providers=[DiscogsService(transport=_transport(_discogs_ok))],
            artwork=CoverArtService(transport=_transport(_itunes_ok)),
        )

        lookup = await scan.scan_barcode(" 5012394144777 ")

        assert lookup.barcode == "5012394144777"
        assert lookup.genre == "Electronic"
        assert lookup.release_year == 1987
        assert lookup.cover_image == "https://img.discogs.example/249504.jpg"
        assert lookup.model_dump(by_alias=True)["discogsId"] == "249504"

    @pytest.mark.asyncio
    async def test_falls_back_to_itunes(self):
        itunes = CoverArtService(transport=_transport(_itunes_ok))
        scan = ScanService(
            providers=[
                DiscogsService(transport=_transport(lambda r: httpx.Response(503))),
                itunes,
            ],
            artwork=itunes,
        )

        lookup = await scan.scan_barcode("5012394144777")

        assert lookup.source == "itunes"
        assert lookup.title == "Whenever You Need Somebody"
        assert lookup.release_year == 1987
        assert lookup.cover_image == "https://is1.itunes.example/art/600x600bb.jpg"

    @pytest.mark.asyncio
    async def test_missing_cover_is_filled(self):
        release = dict(RELEASE, images=[], genres=[])

        def discogs(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/database/search":
                return httpx.Response(200, json={"results": [{"id": 249504}]})
            return httpx.Response(200, json=release)

        scan = ScanService(
            providers=[DiscogsService(transport=_transport(discogs))],
            artwork=CoverArtService(transport=_transport(_itunes_ok)),
        )
        lookup = await scan.scan_search("Never Gonna Give You Up", "Rick Astley")

        assert lookup.cover_image == "https://is1.itunes.example/art/600x600bb.jpg"
        assert lookup.genre == "Unclassified"

    @pytest.mark.asyncio
    async def test_nothing_found(self):
        empty = _transport(lambda r: httpx.Response(200, json={"results": []}))
        scan = ScanService(
            providers=[DiscogsService(transport=empty), CoverArtService(transport=empty)],
            artwork=CoverArtService(transport=empty),
        )
        with pytest.raises(NotFoundError):
            await scan.scan_barcode("000")

    @pytest.mark.asyncio
    async def test_every_provider_down(self):
        down = _transport(lambda r: httpx.Response(500))
        scan = ScanService(
            providers=[DiscogsService(transport=down), CoverArtService(transport=down)],
            artwork=CoverArtService(transport=down),
        )
        with pytest.raises(ExternalServiceError) as exc_info:
            await scan.scan_barcode("000")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_empty_input(self):
        scan = ScanService(providers=[])
        with pytest.raises(ValidationError):
            await scan.scan_barcode("  ")
        with pytest.raises(ValidationError):
            await scan.scan_search(None)


class TestMusicService:
    @pytest.mark.asyncio
    async def test_passes_json_through(self):
        seen: List[httpx.Request] = []
        music = MusicService(
            transport=_transport(lambda r: httpx.Response(200, json={"data": [{"id": 1}]}), seen)
        )

        assert await music.search("daft punk") == {"data": [{"id": 1}]}
        assert seen[0].url.params["q"] == "daft punk"
        assert seen[0].url.params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_empty_query(self):
        with pytest.raises(ValidationError):
            await MusicService().search("  ")

    @pytest.mark.asyncio
    async def test_upstream_failure(self):
        music = MusicService(transport=_transport(lambda r: httpx.Response(403)))
        with pytest.raises(ExternalServiceError):
            await music.search("daft punk")
