"""
Discory Backend — Notification Service Tests
=============================================

What we test:
    ✅ emit() stores the row before delivery and skips self-notifications
    ✅ A 404/410 from the push provider deletes that subscription only
    ✅ Other push failures and realtime failures are swallowed
    ✅ Inbox listing, unread count, mark read (own rows only), mark all
    ✅ Subscribe upserts on (account, endpoint)
    ✅ Rendered titles, bodies and deep links per notification type
"""

import uuid

import pytest
from sqlalchemy import func, select

from discory.exceptions import ValidationError
from discory.models.notification import Notification, NotificationType, PushSubscription
from discory.schemas.notification import PushKeys, PushSubscriptionCreate
from discory.services.notification_service import notification_service, render_payload
from discory.services.push_service import PushSubscriptionGoneError


async def _subscribe(db, account, endpoint):
    return await notification_service.subscribe(
        db,
        account.id,
        PushSubscriptionCreate(endpoint=endpoint, keys=PushKeys(p256dh="p256", auth="auth")),
    )


class TestEmit:
    @pytest.mark.asyncio
    async def test_self_action_is_skipped(self, db, make_account, fanout):
        alice = await make_account("alice")

        result = await notification_service.emit(
            db,
            recipient_id=alice.id,
            sender_id=alice.id,
            ntype=NotificationType.VINYL_LIKE,
            reference_id=uuid.uuid4(),
        )

        assert result is None
        assert await db.scalar(select(func.count(Notification.id))) == 0
        fanout.realtime.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gone_subscription_is_removed(self, db, make_account, fanout):
        alice = await make_account("alice")
        bob = await make_account("bob")
        await _subscribe(db, bob, "https://push.example/gone")
        await _subscribe(db, bob, "https://push.example/alive")

        async def send(info, data):
            if info["endpoint"].endswith("gone"):
                raise PushSubscriptionGoneError(info["endpoint"], 410)

        fanout.push.side_effect = send

        stored = await notification_service.emit(
            db,
            recipient_id=bob.id,
            sender_id=alice.id,
            ntype=NotificationType.NEW_FOLLOWER,
            reference_id=alice.id,
        )

        assert stored is not None
        assert fanout.push.await_count == 2
        endpoints = (
            await db.execute(select(PushSubscription.endpoint))
        ).scalars().all()
        assert endpoints == ["https://push.example/alive"]
        fanout.realtime.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_push_and_realtime_failures_are_swallowed(self, db, make_account, fanout):
        alice = await make_account("alice")
        bob = await make_account("bob")
        await _subscribe(db, bob, "https://push.example/flaky")
        fanout.push.side_effect = RuntimeError("provider down")

        stored = await notification_service.emit(
            db,
            recipient_id=bob.id,
            sender_id=alice.id,
            ntype=NotificationType.FOLLOW_REQUEST,
            reference_id=alice.id,
        )

        assert stored.type == NotificationType.FOLLOW_REQUEST.value
        # Subscription survives a non-gone failure
        assert await db.scalar(select(func.count(PushSubscription.id))) == 1
        assert await db.scalar(select(func.count(Notification.id))) == 1


class TestInbox:
    @pytest.mark.asyncio
    async def test_list_count_and_mark(self, db, make_account):
        alice = await make_account("alice")
        bob = await make_account("bob")
        for ntype in (NotificationType.NEW_FOLLOWER, NotificationType.VINYL_LIKE):
            await notification_service.emit(
                db, recipient_id=bob.id, sender_id=alice.id, ntype=ntype, reference_id=alice.id
            )

        inbox = await notification_service.list_notifications(db, bob.id)
        assert [n.type for n in inbox] == ["VINYL_LIKE", "NEW_FOLLOWER"]
        assert inbox[0].sender_username == "alice"
        assert (await notification_service.unread_count(db, bob.id)).count == 2

        # alice cannot mark bob's notification
        await notification_service.mark_read(db, alice.id, inbox[0].id)
        assert (await notification_service.unread_count(db, bob.id)).count == 2

        await notification_service.mark_read(db, bob.id, inbox[0].id)
        assert (await notification_service.unread_count(db, bob.id)).count == 1

        await notification_service.mark_all_read(db, bob.id)
        assert (await notification_service.unread_count(db, bob.id)).count == 0

    @pytest.mark.asyncio
    async def test_subscribe_upserts(self, db, make_account):
        bob = await make_account("bob")
        await _subscribe(db, bob, "https://push.example/1")
        await notification_service.subscribe(
            db,
            bob.id,
            PushSubscriptionCreate(
                endpoint="https://push.example/1", keys=PushKeys(p256dh="new", auth="new")
            ),
        )

        rows = (await db.execute(select(PushSubscription))).scalars().all()
        assert len(rows) == 1
        assert rows[0].p256dh == "new"

    @pytest.mark.asyncio
    async def test_subscribe_requires_keys(self, db, make_account):
        bob = await make_account("bob")
        with pytest.raises(ValidationError, match="Subscription endpoint and keys are required"):
            await notification_service.subscribe(
                db,
                bob.id,
                PushSubscriptionCreate(endpoint="", keys=PushKeys(p256dh="p", auth="a")),
            )


class TestRenderPayload:
    def test_follow_request_links_to_friends(self):
        payload = render_payload(NotificationType.FOLLOW_REQUEST, "alice")
        assert payload.url == "/friends"
        assert "alice" in payload.body

    def test_profile_links_are_quoted(self):
        payload = render_payload(NotificationType.NEW_FOLLOWER, "dj shadow")
        assert payload.url == "/profile/view?username=dj%20shadow"

    def test_item_link(self):
        vinyl_id = uuid.uuid4()
        payload = render_payload(NotificationType.VINYL_COMMENT, "alice", vinyl_id)
        assert payload.url == f"/vinyl/{vinyl_id}"
        assert payload.title == "New comment"

    def test_comment_like(self):
        vinyl_id = uuid.uuid4()
        payload = render_payload(NotificationType.COMMENT_LIKE, "alice", vinyl_id)
        assert (payload.title, payload.body) == ("New like", "alice liked your comment.")
        assert payload.url == f"/vinyl/{vinyl_id}"

    def test_every_type_has_its_own_payload(self):
        rendered = {
            ntype: render_payload(ntype, "alice", uuid.uuid4(), "Kind of Blue").body
            for ntype in NotificationType
        }
        assert len(set(rendered.values())) == len(NotificationType)

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValueError):
            render_payload("GIFT_RECEIVED", "alice")
