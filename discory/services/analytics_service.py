"""
Discory Backend — Analytics Service
====================================

What:  Aggregates over catalogue items: one collection's breakdown, the
       caller's personal summary, and the overlap between two collections.
How:   GROUP BY / COUNT DISTINCT queries on `vinyls`. Every read of someone
       else's collection passes the follow-graph visibility check first.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Set

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from discory.exceptions import ValidationError
from discory.models.vinyl import Vinyl
from discory.schemas.analytics import Bucket, CollectionAnalytics, CompareResult, PersonalStats
from discory.services.follow_service import follow_service

logger = logging.getLogger(__name__)

TOP_ARTISTS_LIMIT = 15
RECENT_WINDOW = timedelta(days=7)


def _round_rating(value) -> Optional[float]:
    # AVG() comes back as Decimal on PostgreSQL and float on SQLite
    return round(float(value), 2) if value is not None else None


class AnalyticsService:
    async def collection_analytics(
        self, db: AsyncSession, requester_id: uuid.UUID, account_id: uuid.UUID
    ) -> CollectionAnalytics:
        await follow_service.ensure_can_view(db, requester_id, account_id)
        owned = Vinyl.user_id == account_id
        count = func.count(Vinyl.id).label("count")

        total = await db.scalar(select(func.count(Vinyl.id)).where(owned)) or 0

        genres = (
            await db.execute(
                select(Vinyl.genre, count).where(owned).group_by(Vinyl.genre).order_by(count.desc())
            )
        ).all()
        artists = (
            await db.execute(
                select(Vinyl.artist, count)
                .where(owned)
                .group_by(Vinyl.artist)
                .order_by(count.desc(), Vinyl.artist)
                .limit(TOP_ARTISTS_LIMIT)
            )
        ).all()
        years = (
            await db.execute(
                select(Vinyl.release_year, count)
                .where(owned, Vinyl.release_year.is_not(None))
                .group_by(Vinyl.release_year)
                .order_by(Vinyl.release_year.desc())
            )
        ).all()
        average = await db.scalar(
            select(func.avg(Vinyl.rating)).where(owned, Vinyl.rating.is_not(None))
        )
        recent = await db.scalar(
            select(func.count(Vinyl.id)).where(
                owned, Vinyl.date_added >= datetime.now(timezone.utc) - RECENT_WINDOW
            )
        )

        return CollectionAnalytics(
            total=total,
            by_genre=[Bucket(label=g or "Unknown", count=n) for g, n in genres],
            top_artists=[Bucket(label=a, count=n) for a, n in artists],
            by_year=[Bucket(label=str(y), count=n) for y, n in years],
            average_rating=_round_rating(average),
            added_last_7_days=recent or 0,
        )

    async def personal_stats(self, db: AsyncSession, account_id: uuid.UUID) -> PersonalStats:
        row = (
            await db.execute(
                select(
                    func.count(Vinyl.id),
                    func.count(func.distinct(Vinyl.genre)),
                    func.count(func.distinct(Vinyl.artist)),
                    func.count(func.distinct(Vinyl.release_year)),
                    func.avg(Vinyl.rating),
                    func.min(Vinyl.date_added),
                    func.max(Vinyl.date_added),
                ).where(Vinyl.user_id == account_id)
            )
        ).one()
        total, genres, artists, years, average, first_added, last_added = row
        return PersonalStats(
            total=total or 0,
            distinct_genres=genres or 0,
            distinct_artists=artists or 0,
            distinct_years=years or 0,
            average_rating=_round_rating(average),
            first_added=first_added,
            last_added=last_added,
        )

    async def compare(
        self,
        db: AsyncSession,
        requester_id: uuid.UUID,
        user_a: Optional[uuid.UUID],
        user_b: Optional[uuid.UUID],
    ) -> CompareResult:
        if user_a is None or user_b is None:
            raise ValidationError("userId1 and userId2 are required")
        for account_id in (user_a, user_b):
            await follow_service.ensure_can_view(db, requester_id, account_id)

        total_a = await self._count(db, user_a)
        total_b = await self._count(db, user_b)
        common_genres = await self._distinct(db, Vinyl.genre, user_a) & await self._distinct(
            db, Vinyl.genre, user_b
        )
        common_artists = await self._distinct(db, Vinyl.artist, user_a) & await self._distinct(
            db, Vinyl.artist, user_b
        )
        return CompareResult(
            user_a=user_a,
            user_b=user_b,
            total_a=total_a,
            total_b=total_b,
            common_genres=len(common_genres),
            common_artists=len(common_artists),
        )

    async def _count(self, db: AsyncSession, account_id: uuid.UUID) -> int:
        return await db.scalar(
            select(func.count(Vinyl.id)).where(Vinyl.user_id == account_id)
        ) or 0

    async def _distinct(self, db: AsyncSession, column, account_id: uuid.UUID) -> Set[str]:
        result = await db.execute(
            select(column).where(Vinyl.user_id == account_id, column.is_not(None)).distinct()
        )
        return set(result.scalars().all())


# Module-level singleton
analytics_service = AnalyticsService()
