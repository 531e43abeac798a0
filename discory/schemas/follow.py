"""
Discory Backend — Follow Graph Schemas
=======================================
"""

from typing import Optional

from pydantic import BaseModel, Field

from discory.schemas.common import ApiModel


class FollowResult(BaseModel):
    """Outcome of POST /api/followers/follow/{id}: `accepted` or `pending`."""

    message: str
    status: str


class FollowState(ApiModel):
    """
    Relationship between the caller and another account.

    status is `accepted`, `pending` or `none` for the caller's outgoing edge;
    is_followed_by reports an accepted edge in the other direction.
    """

    is_following: bool = Field(alias="isFollowing")
    status: str
    is_followed_by: bool = Field(default=False, alias="isFollowedBy")


class FollowAck(BaseModel):
    message: str
    status: Optional[str] = None
