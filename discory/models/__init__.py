"""
Discory Backend — ORM Models
=============================

Importing this package registers every table with `Base.metadata`, which is
what Alembic autogenerate and the test suite's `create_all` rely on.
"""

from discory.models.account import Account
from discory.models.follow import FollowEdge, FollowStatus
from discory.models.interaction import Comment, CommentLike, Like
from discory.models.notification import Notification, NotificationType, PushSubscription
from discory.models.vinyl import Vinyl

__all__ = [
    "Account",
    "Comment",
    "CommentLike",
    "FollowEdge",
    "FollowStatus",
    "Like",
    "Notification",
    "NotificationType",
    "PushSubscription",
    "Vinyl",
]
