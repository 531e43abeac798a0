"""
Discory Backend — Interaction Service
======================================

What:  Like toggles on items and comments, and the comment thread of an item.
How:   A like is the presence of a row. Toggling reads the row, then deletes
       or inserts it; the unique constraint on (user, target) catches two
       concurrent inserts and surfaces the loser as ConflictError (409).
Who:   Called by /api/interactions routes. Emits VINYL_LIKE, VINYL_COMMENT
       and COMMENT_LIKE through the notification service.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from discory.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from discory.models.account import Account
from discory.models.interaction import Comment, CommentLike, Like
from discory.models.notification import NotificationType
from discory.models.vinyl import Vinyl
from discory.schemas.interaction import CommentResponse, LikeToggleResponse
from discory.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class InteractionService:
    """
    Business logic for likes and comments.

    Responsibilities:
        - toggle_like() / toggle_comment_like(): presence-row toggles
        - list_comments(), add_comment(), delete_comment(): the item thread

    The item owner is notified after the row is written; self-actions are
    filtered by the emitter. Unliking sends nothing.
    """

    # ══════════════════════════════════════════════════════════════════════
    # Item likes
    # ══════════════════════════════════════════════════════════════════════

    async def toggle_like(
        self, db: AsyncSession, actor_id: uuid.UUID, vinyl_id: uuid.UUID
    ) -> LikeToggleResponse:
        vinyl = await db.get(Vinyl, vinyl_id)
        if vinyl is None:
            raise NotFoundError(resource="vinyl", resource_id=str(vinyl_id))

        existing = await db.scalar(
            select(Like.id).where(Like.user_id == actor_id, Like.vinyl_id == vinyl_id)
        )
        if existing is not None:
            await db.execute(delete(Like).where(Like.id == existing))
            return LikeToggleResponse(liked=False)

        db.add(Like(user_id=actor_id, vinyl_id=vinyl_id))
        try:
            await db.flush()
        except IntegrityError as e:
            raise ConflictError("Like state changed concurrently, please retry") from e

        await notification_service.emit(
            db,
            recipient_id=vinyl.user_id,
            sender_id=actor_id,
            ntype=NotificationType.VINYL_LIKE,
            reference_id=vinyl.id,
            vinyl_id=vinyl.id,
            vinyl_title=vinyl.title,
        )
        return LikeToggleResponse(liked=True)

    # ══════════════════════════════════════════════════════════════════════
    # Comments
    # ══════════════════════════════════════════════════════════════════════

    async def list_comments(
        self, db: AsyncSession, actor_id: uuid.UUID, vinyl_id: uuid.UUID
    ) -> List[CommentResponse]:
        """All comments of an item, oldest first, with the actor's like state."""
        likes_count = (
            select(func.count(CommentLike.id))
            .where(CommentLike.comment_id == Comment.id)
            .correlate(Comment)
            .scalar_subquery()
        )
        has_liked = (
            exists()
            .where(CommentLike.comment_id == Comment.id, CommentLike.user_id == actor_id)
            .correlate(Comment)
        )
        query = (
            select(Comment, Account.username, Account.profile_picture, likes_count, has_liked)
            .join(Account, Account.id == Comment.user_id)
            .where(Comment.vinyl_id == vinyl_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        rows = (await db.execute(query)).all()
        return [
            self._to_response(comment, username, picture, count or 0, bool(liked))
            for comment, username, picture, count, liked in rows
        ]

    async def add_comment(
        self,
        db: AsyncSession,
        actor_id: uuid.UUID,
        vinyl_id: uuid.UUID,
        content: Optional[str],
        parent_id: Optional[uuid.UUID] = None,
    ) -> CommentResponse:
        """
        Raises:
            ValidationError: empty content, or a parent from another item
            NotFoundError: item (or parent comment) does not exist
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment content is required", field="content")

        vinyl = await db.get(Vinyl, vinyl_id)
        if vinyl is None:
            raise NotFoundError(resource="vinyl", resource_id=str(vinyl_id))

        if parent_id is not None:
            parent = await db.get(Comment, parent_id)
            if parent is None:
                raise NotFoundError(resource="comment", resource_id=str(parent_id))
            if parent.vinyl_id != vinyl_id:
                raise ValidationError("Parent comment belongs to another record", field="parent_id")

        comment = Comment(user_id=actor_id, vinyl_id=vinyl_id, parent_id=parent_id, content=content)
        db.add(comment)
        await db.flush()

        author = await db.get(Account, actor_id)
        response = self._to_response(
            comment,
            author.username if author else None,
            author.profile_picture if author else None,
            0,
            False,
        )

        await notification_service.emit(
            db,
            recipient_id=vinyl.user_id,
            sender_id=actor_id,
            ntype=NotificationType.VINYL_COMMENT,
            reference_id=vinyl.id,
            vinyl_id=vinyl.id,
            vinyl_title=vinyl.title,
        )
        return response

    async def delete_comment(
        self, db: AsyncSession, actor_id: uuid.UUID, comment_id: uuid.UUID
    ) -> None:
        comment = await db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError(resource="comment", resource_id=str(comment_id))
        # Only the author may delete; the item owner may not
        if comment.user_id != actor_id:
            raise ForbiddenError("You can only delete your own comments")
        await db.delete(comment)
        await db.flush()

    # ══════════════════════════════════════════════════════════════════════
    # Comment likes
    # ══════════════════════════════════════════════════════════════════════

    async def toggle_comment_like(
        self, db: AsyncSession, actor_id: uuid.UUID, comment_id: uuid.UUID
    ) -> LikeToggleResponse:
        comment = await db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError(resource="comment", resource_id=str(comment_id))

        existing = await db.scalar(
            select(CommentLike.id).where(
                CommentLike.user_id == actor_id, CommentLike.comment_id == comment_id
            )
        )
        if existing is not None:
            await db.execute(delete(CommentLike).where(CommentLike.id == existing))
            return LikeToggleResponse(liked=False)

        db.add(CommentLike(user_id=actor_id, comment_id=comment_id))
        try:
            await db.flush()
        except IntegrityError as e:
            raise ConflictError("Like state changed concurrently, please retry") from e

        await notification_service.emit(
            db,
            recipient_id=comment.user_id,
            sender_id=actor_id,
            ntype=NotificationType.COMMENT_LIKE,
            reference_id=comment.id,
            vinyl_id=comment.vinyl_id,
        )
        return LikeToggleResponse(liked=True)

    @staticmethod
    def _to_response(
        comment: Comment,
        username: Optional[str],
        profile_picture: Optional[str],
        likes_count: int,
        has_liked: bool,
    ) -> CommentResponse:
        return CommentResponse(
            id=comment.id,
            vinyl_id=comment.vinyl_id,
            user_id=comment.user_id,
            parent_id=comment.parent_id,
            content=comment.content,
            created_at=comment.created_at,
            username=username,
            profile_picture=profile_picture,
            likes_count=likes_count,
            has_liked=has_liked,
        )


# Module-level singleton
interaction_service = InteractionService()
