"""Global Socket.IO server for browser clients.

Every realtime feature shares this server instance. A broadcast channel is a
Socket.IO room named ``channel_<name>``; clients join it by emitting
``subscribe`` with ``{"channel": "<name>"}`` once connected.

Client convention:
- URL base: ws://<host>:8000
- Socket.IO path: settings.SOCKETIO_PATH (``/ws/broadcast/`` by default)
- Auth: optional ``query.token`` or ``auth.token`` (JWT access token)

Anonymous sockets may subscribe to public channels. A token, when sent, must be
valid; the user id is kept in the socket session.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qs

import socketio
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError

logger = logging.getLogger(__name__)


def _build_client_manager() -> socketio.AsyncManager | None:
    url = getattr(settings, "SOCKETIO_MESSAGE_QUEUE", "")
    if not url:
        return None
    return socketio.AsyncRedisManager(url)


sio = socketio.AsyncServer(
    async_mode="asgi",
    client_manager=_build_client_manager(),
    cors_allowed_origins=getattr(settings, "SOCKETIO_CORS_ALLOWED_ORIGINS", "*"),
    logger=False,
    engineio_logger=False,
)


def _normalize_room_suffix(value: str) -> str:
    return "_".join(value.strip().lower().split())


def room_for_channel(channel: str) -> str:
    return f"channel_{_normalize_room_suffix(channel)}"


def is_public_channel(channel: str) -> bool:
    public = getattr(settings, "BROADCAST_PUBLIC_CHANNELS", [])
    return channel in public


@database_sync_to_async
def _get_user_id_from_access_token(token: str) -> int:
    jwt_auth = JWTAuthentication()
    validated = jwt_auth.get_validated_token(token)
    user = jwt_auth.get_user(validated)
    return int(user.id)


def _extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract JWT token from Socket.IO environ/auth.

    Handles python-socketio environ shapes across ASGI/WSGI servers.
    """

    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    # Allow `auth: { token }` as fallback.
    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    return None


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    token = _extract_token(environ, auth)
    if not token:
        await sio.save_session(sid, {"user_id": None})
        return

    try:
        user_id = await _get_user_id_from_access_token(token)
    except TokenError as exc:
        # Clients refresh their token when they see this exact string.
        if "expired" in str(exc).lower():
            msg = "jwt_expired"
            raise ConnectionRefusedError(msg) from exc
        msg = "unauthorized"
        raise ConnectionRefusedError(msg) from exc
    except AuthenticationFailed as exc:  # invalid token, user not found / inactive
        expired = "expired" in str(exc.detail).lower()
        msg = "jwt_expired" if expired else "unauthorized"
        raise ConnectionRefusedError(msg) from exc
    except Exception as exc:
        logger.exception("Socket.IO connect error")
        msg = "server_error"
        raise ConnectionRefusedError(msg) from exc

    await sio.save_session(sid, {"user_id": user_id})


@sio.event
async def disconnect(sid: str, *args: Any):
    # Rooms/session are cleaned up automatically.
    _ = sid


def _channel_from(data: Any) -> str | None:
    if isinstance(data, str):
        channel = data
    elif isinstance(data, dict):
        channel = data.get("channel")
    else:
        return None
    if not isinstance(channel, str) or not channel.strip():
        return None
    return channel.strip()


@sio.event
async def subscribe(sid: str, data: Any) -> dict[str, Any]:
    """Join the room of a public broadcast channel.

    The return value is delivered to the client as the emit acknowledgement.
    """

    channel = _channel_from(data)
    if channel is None:
        return {"ok": False, "error": "channel_required"}
    if not is_public_channel(channel):
        logger.info("Socket %s refused subscription to %s", sid, channel)
        return {"ok": False, "channel": channel, "error": "unknown_channel"}

    await sio.enter_room(sid, room_for_channel(channel))
    return {"ok": True, "channel": channel}


@sio.event
async def unsubscribe(sid: str, data: Any) -> dict[str, Any]:
    channel = _channel_from(data)
    if channel is None:
        return {"ok": False, "error": "channel_required"}
    await sio.leave_room(sid, room_for_channel(channel))
    return {"ok": True, "channel": channel}


def emit_event_to_room(room: str, event: str, payload: dict[str, Any]) -> None:
    """Emit an event to a room from sync Django code.

    If nobody is in the room this is effectively a no-op.
    """

    async_to_sync(sio.emit)(event, payload, room=room)


def emit_event_to_channel(channel: str, event: str, payload: dict[str, Any]) -> None:
    emit_event_to_room(room_for_channel(channel), event, payload)
