"""
Discory Backend — Realtime Channel (Socket.IO)
===============================================

What:  Per-account rooms for live notification delivery.
How:   python-socketio AsyncServer in ASGI mode, mounted in front of the
       FastAPI app by `discory.main`. Each account has a room `user_<id>`.

Handshake:
    client ── connect(auth={"token": <jwt>}) ──▶ token verified,
                                                 sid joins user_<id>
    client ── emit("join_user", <id>) ─────────▶ accepted only for the
                                                 authenticated id
    server ── emit("notification", {title, body, url}) ──▶ room user_<id>
"""

import logging
import uuid
from typing import Any, Optional

import socketio

from discory.config import settings
from discory.exceptions import AuthenticationError
from discory.services.auth_service import auth_service

logger = logging.getLogger(__name__)

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=settings.cors_origins_list,
    logger=False,
    engineio_logger=False,
)


def room_for(account_id: Any) -> str:
    return f"user_{account_id}"


@sio.event
async def connect(sid: str, environ: dict, auth: Optional[dict] = None) -> None:
    token = auth.get("token") if isinstance(auth, dict) else None
    if not token:
        raise socketio.exceptions.ConnectionRefusedError("Authentication required")

    try:
        payload = auth_service.decode_token(token)
    except AuthenticationError as e:
        raise socketio.exceptions.ConnectionRefusedError(e.message)

    await sio.save_session(sid, {"account_id": str(payload.account_id)})
    await sio.enter_room(sid, room_for(payload.account_id))
    logger.debug("Socket %s joined %s", sid, room_for(payload.account_id))


@sio.event
async def join_user(sid: str, account_id: Any) -> bool:
    session = await sio.get_session(sid)
    if session.get("account_id") != str(account_id):
        logger.warning("Socket %s refused join for room %s", sid, room_for(account_id))
        return False
    await sio.enter_room(sid, room_for(account_id))
    return True


@sio.event
async def disconnect(sid: str, *args: Any) -> None:
    logger.debug("Socket %s disconnected", sid)


async def emit_notification(account_id: uuid.UUID, payload: dict) -> None:
    """Fire-and-forget delivery to every socket of `account_id`."""
    try:
        await sio.emit("notification", payload, room=room_for(account_id))
    except Exception as e:
        logger.warning("Realtime emit to %s failed: %s", room_for(account_id), e)
