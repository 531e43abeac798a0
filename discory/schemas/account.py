"""
Discory Backend — Auth & Account Schemas
=========================================
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from discory.schemas.common import ApiModel, CamelRequest
from discory.schemas.vinyl import VinylResponse


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    # Optional so that a missing field reaches the service and yields
    # "Email, username and password are required" instead of a schema error.
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(CamelRequest):
    username: Optional[str] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    is_public: Optional[bool] = None


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class AuthUser(ApiModel):
    """The account as returned next to a freshly issued token."""

    id: uuid.UUID
    email: str
    username: str
    is_public: bool = Field(alias="isPublic")
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture")
    bio: Optional[str] = None


class AuthResponse(BaseModel):
    user: AuthUser
    token: str


class AccountSummary(BaseModel):
    """Compact account card used by follower lists, search and requests."""

    id: uuid.UUID
    username: str
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    is_public: Optional[bool] = None

    model_config = {"from_attributes": True}


class FollowingSummary(AccountSummary):
    vinyl_count: int = 0


class FollowRequestSummary(AccountSummary):
    requested_at: datetime


class AccountProfile(BaseModel):
    """Public profile fields. `email` is only filled for the owner."""

    id: uuid.UUID
    username: str
    email: Optional[str] = None
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    is_public: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileStats(BaseModel):
    total: int
    genre_count: int
    artist_count: int


class ProfileResponse(ApiModel):
    user: AccountProfile
    vinyls: List[VinylResponse] = Field(default_factory=list)
    stats: Optional[ProfileStats] = None
    can_view: bool = Field(alias="canView")


class GenreCount(BaseModel):
    genre: Optional[str]
    count: int


class ArtistCount(BaseModel):
    artist: str
    count: int


class AccountStatsResponse(ApiModel):
    total: int
    by_genre: List[GenreCount] = Field(alias="byGenre")
    top_artists: List[ArtistCount] = Field(alias="topArtists")


class FollowCounts(BaseModel):
    followers: int
    following: int


class TokenPayload(BaseModel):
    """Decoded bearer token claims."""

    account_id: uuid.UUID
    email: str
    claims: Dict[str, object] = Field(default_factory=dict)
