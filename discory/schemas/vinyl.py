"""
Discory Backend — Catalogue Item Schemas
=========================================

Response shapes, from smallest to largest:
    VinylResponse  — the row plus owner/gifter/sharer usernames
    VinylDetail    — adds owner card and engagement (likes, comments, has_liked)
    FeedItem       — what the follow feed returns; same engagement fields plus
                     the owner's username and picture at the top level
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from discory.schemas.common import ApiModel, CamelRequest


class VinylCreate(CamelRequest):
    """
    Body of POST /api/vinyls/add.

    Every field is optional at the schema level; the service checks the
    business rules (title/artist required, rating 0-5, format vinyl|cd) so
    that the error message names the rule instead of a pydantic location.
    """

    title: Optional[str] = None
    artist: Optional[str] = None
    genre: Optional[str] = None
    release_year: Optional[int] = None
    barcode: Optional[str] = None
    discogs_id: Optional[str] = None
    cover_image: Optional[str] = None
    notes: Optional[str] = None
    rating: Optional[int] = None
    vinyl_color: Optional[str] = None
    disc_count: Optional[int] = None
    gifted_by_user_id: Optional[uuid.UUID] = None
    shared_with_user_id: Optional[uuid.UUID] = None
    format: Optional[str] = None


class VinylUpdate(VinylCreate):
    """Body of PUT /api/vinyls/{id}; only the keys sent are applied."""


class VinylResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    artist: str
    genre: Optional[str] = None
    release_year: Optional[int] = None
    barcode: Optional[str] = None
    discogs_id: Optional[str] = None
    cover_image: Optional[str] = None
    notes: Optional[str] = None
    rating: Optional[int] = None
    vinyl_color: Optional[str] = None
    disc_count: int = 1
    format: str = "vinyl"
    gifted_by_user_id: Optional[uuid.UUID] = None
    shared_with_user_id: Optional[uuid.UUID] = None
    date_added: datetime
    updated_at: datetime

    owner_username: Optional[str] = None
    gifted_by_username: Optional[str] = None
    shared_with_username: Optional[str] = None


class VinylDetail(VinylResponse):
    owner_id: uuid.UUID
    owner_profile_picture: Optional[str] = None
    likes_count: int = 0
    comments_count: int = 0
    has_liked: bool = False


class FeedItem(VinylResponse):
    username: str
    profile_picture: Optional[str] = None
    likes_count: int = 0
    comments_count: int = 0
    has_liked: bool = False


class NamedCount(BaseModel):
    name: str
    count: int


class CollectionStats(ApiModel):
    total: int
    genres: List[NamedCount]
    top_artists: List[NamedCount] = Field(alias="topArtists")
    total_artists: int = Field(alias="totalArtists")
