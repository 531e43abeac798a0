"""
Discory Backend — Web Push Delivery
====================================

What:  Sends one Web Push message to one browser subscription.
How:   pywebpush (VAPID-signed, aes128gcm) run in a worker thread, since
       `webpush()` is a blocking `requests` call.
Who:   Called only by the notification emitter.

Failure contract:
    404 / 410 from the push provider → PushSubscriptionGoneError, the caller
    deletes the stored subscription. Anything else propagates as-is and is
    logged by the caller. No retries.
"""

import asyncio
import logging

from pywebpush import WebPushException, webpush

from discory.config import settings

logger = logging.getLogger(__name__)


class PushSubscriptionGoneError(Exception):
    """The push provider no longer knows this endpoint."""

    def __init__(self, endpoint: str, status_code: int):
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(f"Push endpoint gone ({status_code})")


class PushService:
    GONE_STATUS_CODES = frozenset({404, 410})

    @property
    def enabled(self) -> bool:
        return settings.push_enabled

    async def send(self, subscription_info: dict, data: str) -> None:
        """
        Deliver `data` (a JSON string) to one subscription.

        Does nothing when VAPID keys are not configured.
        """
        if not self.enabled:
            logger.debug("Web push disabled, skipping delivery")
            return

        try:
            await asyncio.to_thread(
                webpush,
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=settings.vapid_private_key,
                # webpush() adds aud/exp to this dict, so build it per call
                vapid_claims={"sub": settings.vapid_claims_sub},
                timeout=settings.http_timeout,
            )
        except WebPushException as e:
            status_code = getattr(e.response, "status_code", None)
            if status_code in self.GONE_STATUS_CODES:
                raise PushSubscriptionGoneError(subscription_info["endpoint"], status_code) from e
            raise


# Module-level singleton
push_service = PushService()
