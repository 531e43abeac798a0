"""
Discory Backend — Likes & Comments Schemas
===========================================
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from discory.schemas.common import CamelRequest


class LikeToggleResponse(BaseModel):
    liked: bool


class CommentCreate(CamelRequest):
    content: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None


class CommentResponse(BaseModel):
    id: uuid.UUID
    vinyl_id: uuid.UUID
    user_id: uuid.UUID
    parent_id: Optional[uuid.UUID] = None
    content: str
    created_at: datetime
    username: Optional[str] = None
    profile_picture: Optional[str] = None
    likes_count: int = 0
    has_liked: bool = False
