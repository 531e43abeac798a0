"""
Discory Backend — Feed Service
===============================

What:  The "recent" feed: items owned by accounts the caller follows
       (accepted edges only), newest first, with engagement counts.
How:   Offset pagination with a separate COUNT so the page carries `total`
       and `has_more = offset + len(data) < total`. Ordered by
       (date_added DESC, id DESC), matching idx_vinyls_date_added.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from discory.models.account import Account
from discory.models.vinyl import Vinyl
from discory.schemas.common import Page
from discory.schemas.vinyl import FeedItem
from discory.services.follow_service import follow_service
from discory.services.vinyl_service import clamp_page, engagement_columns, vinyl_fields

logger = logging.getLogger(__name__)


class FeedService:
    async def recent_feed(
        self,
        db: AsyncSession,
        actor_id: uuid.UUID,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Page[FeedItem]:
        limit, offset = clamp_page(limit, offset)
        from_followed = Vinyl.user_id.in_(follow_service.followed_ids(actor_id))

        total = await db.scalar(select(func.count(Vinyl.id)).where(from_followed)) or 0

        likes_count, comments_count, has_liked = engagement_columns(actor_id)
        query = (
            select(
                Vinyl,
                Account.username,
                Account.profile_picture,
                likes_count,
                comments_count,
                has_liked,
            )
            .join(Account, Account.id == Vinyl.user_id)
            .where(from_followed)
            .order_by(Vinyl.date_added.desc(), Vinyl.id.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await db.execute(query)).all()
        data = [
            FeedItem(
                **vinyl_fields(vinyl),
                owner_username=username,
                username=username,
                profile_picture=picture,
                likes_count=likes or 0,
                comments_count=comments or 0,
                has_liked=bool(liked),
            )
            for vinyl, username, picture, likes, comments, liked in rows
        ]
        logger.debug("Feed for %s: %d/%d items at offset %d", actor_id, len(data), total, offset)
        return Page[FeedItem](data=data, has_more=offset + len(data) < total, total=total)


# Module-level singleton
feed_service = FeedService()
