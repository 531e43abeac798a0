"""
Discory Backend — Follow Edge Model
====================================

What:  Directed follower → following relation with a pending/accepted status.

State machine:
    (none) ──request, target public──▶ accepted
    (none) ──request, target private─▶ pending ──accept──▶ accepted
    pending | accepted ──reject / unfollow──▶ (row deleted)

Invariants enforced by the schema: one row per ordered pair, no self-edge.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from discory.database import Base


class FollowStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class FollowEdge(Base):
    __tablename__ = "follows"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    follower_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    following_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=FollowStatus.ACCEPTED.value,
        server_default=FollowStatus.ACCEPTED.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        CheckConstraint("follower_id <> following_id", name="ck_follows_no_self"),
    )

    def __repr__(self) -> str:
        return (
            f"<FollowEdge({self.follower_id} -> {self.following_id}, status='{self.status}')>"
        )
