"""
Discory Backend — Notification Service (Emitter + Inbox)
=========================================================

What:  Persists notifications and fans them out to the recipient's devices;
       serves the inbox (list, unread count, mark read) and push
       subscriptions.
Who:   emit() is called by the follow-graph and interaction services after
       their own writes. The read-side methods back /api/notifications.

Emission flow:
    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐
    │ recipient == │───▶│ INSERT row + │───▶│ Web Push to  │───▶│ Socket.IO    │
    │ sender? stop │    │ COMMIT       │    │ each device  │    │ user_<id>    │
    └──────────────┘    └──────────────┘    └──────────────┘    └──────────────┘

    The row is committed before any delivery attempt, so a failing push or
    socket never takes the stored notification (or the triggering write,
    which shares the transaction) down with it. Delivery failures are logged
    and swallowed; a 404/410 from the push provider deletes that
    subscription.
"""

import json
import logging
import uuid
from typing import List, Optional
from urllib.parse import quote

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from discory import realtime
from discory.exceptions import ValidationError
from discory.models.account import Account
from discory.models.notification import Notification, NotificationType, PushSubscription
from discory.schemas.notification import (
    NotificationResponse,
    PushPayload,
    PushSubscriptionCreate,
    UnreadCount,
)
from discory.services.push_service import PushSubscriptionGoneError, push_service

logger = logging.getLogger(__name__)

INBOX_LIMIT = 50


def render_payload(
    ntype: NotificationType,
    sender_name: str,
    vinyl_id: Optional[uuid.UUID] = None,
    vinyl_title: Optional[str] = None,
) -> PushPayload:
    """Title, body and deep link shown on the recipient's device."""
    profile_url = f"/profile/view?username={quote(sender_name)}"
    vinyl_url = f"/vinyl/{vinyl_id}" if vinyl_id else "/"

    if ntype == NotificationType.FOLLOW_REQUEST:
        return PushPayload(
            title="New follow request",
            body=f"{sender_name} wants to follow you.",
            url="/friends",
        )
    if ntype == NotificationType.NEW_FOLLOWER:
        return PushPayload(
            title="New follower",
            body=f"{sender_name} started following you.",
            url=profile_url,
        )
    if ntype == NotificationType.FOLLOW_ACCEPTED:
        return PushPayload(
            title="Follow request accepted",
            body=f"{sender_name} accepted your follow request.",
            url=profile_url,
        )
    if ntype == NotificationType.VINYL_LIKE:
        record = f'"{vinyl_title}"' if vinyl_title else "your record"
        return PushPayload(
            title="New like",
            body=f"{sender_name} liked {record}.",
            url=vinyl_url,
        )
    if ntype == NotificationType.VINYL_COMMENT:
        return PushPayload(
            title="New comment",
            body=f"{sender_name} commented on your record.",
            url=vinyl_url,
        )
    if ntype == NotificationType.COMMENT_LIKE:
        return PushPayload(
            title="New like",
            body=f"{sender_name} liked your comment.",
            url=vinyl_url,
        )
    raise ValueError(f"No push payload for notification type {ntype!r}")


class NotificationService:
    """
    Notification storage, delivery and the inbox.

    Responsibilities:
        - emit(): persist, then push to every device and the realtime room
        - list_notifications(), unread_count(), mark_read(), mark_all_read()
        - subscribe(): upsert a browser push subscription

    Error Handling Strategy:
        emit() never raises for delivery problems. A 404/410 from the push
        provider removes the dead subscription; any other failure is logged
        at WARNING and the next device is tried.
    """

    # ══════════════════════════════════════════════════════════════════════
    # Emitter
    # ══════════════════════════════════════════════════════════════════════

    async def emit(
        self,
        db: AsyncSession,
        *,
        recipient_id: uuid.UUID,
        sender_id: uuid.UUID,
        ntype: NotificationType,
        reference_id: uuid.UUID,
        vinyl_id: Optional[uuid.UUID] = None,
        vinyl_title: Optional[str] = None,
    ) -> Optional[Notification]:
        """
        Store a notification and deliver it over push and realtime.

        Args:
            recipient_id / sender_id: nothing happens when they are equal
            ntype: one of NotificationType
            reference_id: sender id for follow types, item id for VINYL_*,
                comment id for COMMENT_LIKE
            vinyl_id / vinyl_title: used only to build the deep link and body

        Returns:
            The committed Notification, or None for a self-action.
        """
        if recipient_id == sender_id:
            return None

        notification = Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=ntype.value,
            reference_id=reference_id,
            is_read=False,
        )
        db.add(notification)
        await db.commit()
        logger.info(
            "Notification %s stored: %s → %s", ntype.value, sender_id, recipient_id
        )

        sender_name = await db.scalar(select(Account.username).where(Account.id == sender_id))
        payload = render_payload(ntype, sender_name or "Someone", vinyl_id, vinyl_title)

        await self._deliver_push(db, recipient_id, payload)
        await realtime.emit_notification(recipient_id, payload.model_dump())
        return notification

    async def _deliver_push(
        self, db: AsyncSession, recipient_id: uuid.UUID, payload: PushPayload
    ) -> None:
        try:
            result = await db.execute(
                select(PushSubscription).where(PushSubscription.user_id == recipient_id)
            )
            subscriptions = result.scalars().all()
        except Exception as e:
            logger.error("Could not load push subscriptions for %s: %s", recipient_id, e)
            await db.rollback()
            return

        data = json.dumps(payload.model_dump())
        gone: List[uuid.UUID] = []
        for subscription in subscriptions:
            try:
                await push_service.send(subscription.as_webpush_info(), data)
            except PushSubscriptionGoneError as e:
                logger.info(
                    "Push subscription %s gone (%d), removing", subscription.id, e.status_code
                )
                gone.append(subscription.id)
            except Exception as e:
                logger.warning("Push to subscription %s failed: %s", subscription.id, e)

        if gone:
            await db.execute(delete(PushSubscription).where(PushSubscription.id.in_(gone)))
            await db.commit()

    # ══════════════════════════════════════════════════════════════════════
    # Inbox
    # ══════════════════════════════════════════════════════════════════════

    async def list_notifications(
        self, db: AsyncSession, account_id: uuid.UUID
    ) -> List[NotificationResponse]:
        query = (
            select(Notification, Account.username, Account.profile_picture)
            .join(Account, Account.id == Notification.sender_id)
            .where(Notification.recipient_id == account_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(INBOX_LIMIT)
        )
        rows = (await db.execute(query)).all()
        return [
            NotificationResponse(
                id=n.id,
                recipient_id=n.recipient_id,
                sender_id=n.sender_id,
                type=n.type,
                reference_id=n.reference_id,
                is_read=n.is_read,
                created_at=n.created_at,
                sender_username=username,
                sender_profile_picture=picture,
            )
            for n, username, picture in rows
        ]

    async def unread_count(self, db: AsyncSession, account_id: uuid.UUID) -> UnreadCount:
        count = await db.scalar(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == account_id,
                Notification.is_read.is_(False),
            )
        )
        return UnreadCount(count=count or 0)

    async def mark_read(
        self, db: AsyncSession, account_id: uuid.UUID, notification_id: uuid.UUID
    ) -> None:
        # Scoped by recipient; someone else's id updates nothing
        await db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.recipient_id == account_id)
            .values(is_read=True)
        )

    async def mark_all_read(self, db: AsyncSession, account_id: uuid.UUID) -> None:
        await db.execute(
            update(Notification)
            .where(Notification.recipient_id == account_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )

    async def subscribe(
        self, db: AsyncSession, account_id: uuid.UUID, body: PushSubscriptionCreate
    ) -> PushSubscription:
        """Upsert a browser push subscription keyed by (account, endpoint)."""
        if not body.endpoint or not body.keys.p256dh or not body.keys.auth:
            raise ValidationError("Subscription endpoint and keys are required")

        result = await db.execute(
            select(PushSubscription).where(
                PushSubscription.user_id == account_id,
                PushSubscription.endpoint == body.endpoint,
            )
        )
        subscription = result.scalar_one_or_none()
        if subscription is None:
            subscription = PushSubscription(
                user_id=account_id,
                endpoint=body.endpoint,
                p256dh=body.keys.p256dh,
                auth=body.keys.auth,
            )
            db.add(subscription)
        else:
            subscription.p256dh = body.keys.p256dh
            subscription.auth = body.keys.auth
        await db.flush()
        logger.info("Push subscription saved for %s", account_id)
        return subscription


# Module-level singleton
notification_service = NotificationService()
