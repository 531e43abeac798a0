"""
Discory Backend — Catalogue Item Model
=======================================

What:  ORM model for the `vinyls` table (records and CDs alike).
How:   Owned by one account; may also reference the account that gifted it
       and an account it is shared with. Deleting a row cascades to its
       likes, comments and comment likes through foreign keys.

Query Patterns:
    - Collection page: WHERE user_id = :id OR shared_with_user_id = :id
      ORDER BY date_added DESC, id DESC
    - Feed: JOIN follows ON following_id = user_id WHERE follower_id = :me
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from discory.database import Base

FORMATS = ("vinyl", "cd")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Vinyl(Base):
    """A catalogued physical release owned by one account."""

    __tablename__ = "vinyls"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    artist: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # Comma-separated when a release carries several genres
    genre: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)
    release_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    barcode: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    discogs_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cover_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    vinyl_color: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    disc_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    format: Mapped[str] = mapped_column(
        String(20), nullable=False, default="vinyl", server_default="vinyl"
    )

    gifted_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    shared_with_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    date_added: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_vinyls_rating_range"),
        Index("idx_vinyls_date_added", date_added.desc(), id.desc()),
    )

    def __repr__(self) -> str:
        return f"<Vinyl(id={self.id}, title='{self.title}', artist='{self.artist}')>"
