"""
Discory Backend — Music Preview Route
======================================

What:  GET /api/music/search?q=: Deezer search proxy for track previews.
"""

from typing import Any, Optional

from fastapi import APIRouter, Query

from discory.schemas.common import ErrorResponse
from discory.services.music_service import music_service

router = APIRouter(prefix="/api/music", tags=["Music"])


@router.get(
    "/search",
    responses={
        400: {"description": "Missing query", "model": ErrorResponse},
        500: {"description": "Deezer unavailable", "model": ErrorResponse},
    },
    summary="Search Deezer (first match)",
)
async def search(q: Optional[str] = Query(default=None)) -> Any:
    return await music_service.search(q)
