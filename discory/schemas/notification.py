"""
Discory Backend — Notification Schemas
=======================================

PushPayload is the one shape sent over both delivery channels: the Web Push
message body and the `notification` realtime event.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PushPayload(BaseModel):
    title: str
    body: str
    url: str


class NotificationResponse(BaseModel):
    id: uuid.UUID
    recipient_id: uuid.UUID
    sender_id: uuid.UUID
    type: str
    reference_id: uuid.UUID
    is_read: bool
    created_at: datetime
    sender_username: Optional[str] = None
    sender_profile_picture: Optional[str] = None


class UnreadCount(BaseModel):
    count: int


class PushKeys(BaseModel):
    p256dh: Optional[str] = None
    auth: Optional[str] = None


class PushSubscriptionCreate(BaseModel):
    """Browser PushSubscription.toJSON() as posted by the service worker."""

    endpoint: Optional[str] = None
    keys: PushKeys = Field(default_factory=PushKeys)
