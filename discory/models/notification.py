"""
Discory Backend — Notification & Push Subscription Models
==========================================================

What:  The persisted side of the notification fan-out.

Notification.reference_id is polymorphic; its meaning depends on `type`:
    FOLLOW_REQUEST, NEW_FOLLOWER, FOLLOW_ACCEPTED → sender account id
    VINYL_LIKE, VINYL_COMMENT                     → catalogue item id
    COMMENT_LIKE                                  → comment id

PushSubscription rows are written by the browser subscribe flow and deleted
by the emitter when the push provider answers 404/410 for the endpoint.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from discory.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationType(str, enum.Enum):
    FOLLOW_REQUEST = "FOLLOW_REQUEST"
    NEW_FOLLOWER = "NEW_FOLLOWER"
    FOLLOW_ACCEPTED = "FOLLOW_ACCEPTED"
    VINYL_LIKE = "VINYL_LIKE"
    VINYL_COMMENT = "VINYL_COMMENT"
    COMMENT_LIKE = "COMMENT_LIKE"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    reference_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_notifications_recipient", recipient_id, created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, type='{self.type}', "
            f"recipient={self.recipient_id}, read={self.is_read})>"
        )


class PushSubscription(Base):
    """Browser Push API subscription, one per (account, endpoint)."""

    __tablename__ = "push_subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    endpoint: Mapped[str] = mapped_column(Text, nullable=False)
    p256dh: Mapped[str] = mapped_column(Text, nullable=False)
    auth: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"),
    )

    def as_webpush_info(self) -> dict:
        """Shape expected by pywebpush's `subscription_info` argument."""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
