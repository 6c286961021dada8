from __future__ import annotations

from typing import Any

import redis
from django.conf import settings
from django.db import connection
from django.http import JsonResponse


def check_db() -> dict[str, Any]:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    else:
        return {"ok": True}


def _broadcast_redis_url() -> str | None:
    driver = getattr(settings, "BROADCAST_DRIVER", "")
    if driver == "queue":
        return getattr(settings, "CELERY_BROKER_URL", None)
    if driver == "socketio":
        # In-process Socket.IO needs no Redis.
        return getattr(settings, "SOCKETIO_MESSAGE_QUEUE", "") or None
    return None


def check_broadcast() -> dict[str, Any]:
    driver = getattr(settings, "BROADCAST_DRIVER", "")
    url = _broadcast_redis_url()
    if not url:
        return {"ok": True, "driver": driver}
    try:
        client = redis.Redis.from_url(
            url,
            socket_timeout=0.5,
            socket_connect_timeout=0.5,
        )
        client.ping()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "driver": driver, "error": str(exc)}
    else:
        return {"ok": True, "driver": driver}


def health(request):
    components = {"db": check_db(), "broadcast": check_broadcast()}

    all_ok = all(v.get("ok", False) for v in components.values())
    some_ok = any(v.get("ok", False) for v in components.values())

    status = "ok" if all_ok else ("degraded" if some_ok else "down")
    http_status = 200 if all_ok else 503

    return JsonResponse(
        {"status": status, "components": components},
        status=http_status,
    )
