"""Broadcast transports.

A broadcaster delivers ``(channel, event, payload)`` to whoever listens on the
channel. Delivery is best-effort: the only failure a broadcaster reports is
``PublishError``, raised when its transport (Redis, the Celery broker) cannot
be reached. Subscriber-side delivery problems are never reported.

The driver is picked by ``settings.BROADCAST_DRIVER``:

- ``socketio``: emit right away through the Socket.IO server
- ``queue``: hand the event to a Celery worker which emits it
- ``log``: write the event to the log
- ``null``: drop the event
"""

from __future__ import annotations

import logging
from typing import Any
from typing import Protocol

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from kombu.exceptions import OperationalError as BrokerOperationalError
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class PublishError(Exception):
    """The broadcast transport could not be reached."""


class Broadcaster(Protocol):
    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None: ...


class SocketIOBroadcaster:
    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        from postboard.realtime.socketio import emit_event_to_channel  # noqa: PLC0415

        try:
            emit_event_to_channel(channel, event, payload)
        except (RedisError, ConnectionError, OSError) as exc:
            msg = f"Socket.IO transport unavailable: {exc}"
            raise PublishError(msg) from exc


class QueuedBroadcaster:
    """Defer the emit to a Celery worker.

    Only the enqueue happens in the caller's process, so a broker outage is the
    one failure reported here.
    """

    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        from postboard.realtime.tasks import broadcast_event  # noqa: PLC0415

        try:
            broadcast_event.delay(channel, event, payload)
        except (BrokerOperationalError, OSError) as exc:
            msg = f"Broadcast queue unavailable: {exc}"
            raise PublishError(msg) from exc


class LogBroadcaster:
    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        logger.info("Broadcasting [%s] on channel %s: %s", event, channel, payload)


class NullBroadcaster:
    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        return


BROADCASTERS: dict[str, type] = {
    "socketio": SocketIOBroadcaster,
    "queue": QueuedBroadcaster,
    "log": LogBroadcaster,
    "null": NullBroadcaster,
}


def get_broadcaster(driver: str | None = None) -> Broadcaster:
    name = driver or getattr(settings, "BROADCAST_DRIVER", "socketio")
    try:
        broadcaster_class = BROADCASTERS[name]
    except KeyError:
        msg = (
            f"Unknown BROADCAST_DRIVER {name!r}; "
            f"expected one of {', '.join(sorted(BROADCASTERS))}."
        )
        raise ImproperlyConfigured(msg) from None
    return broadcaster_class()
