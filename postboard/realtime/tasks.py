import logging

from celery import shared_task

from postboard.realtime.broadcasting import PublishError
from postboard.realtime.broadcasting import SocketIOBroadcaster

logger = logging.getLogger(__name__)


@shared_task(name="realtime.broadcast_event", ignore_result=True)
def broadcast_event(channel: str, event: str, payload: dict) -> None:
    """Emit a queued broadcast through the Socket.IO server.

    Runs once; a transport failure is logged and the event is dropped.
    """
    try:
        SocketIOBroadcaster().publish(channel, event, payload)
    except PublishError:
        logger.exception("Dropped [%s] broadcast on channel %s", event, channel)
