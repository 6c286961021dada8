from unittest import mock

import pytest
from django.core.exceptions import ImproperlyConfigured
from django.test import override_settings
from kombu.exceptions import OperationalError
from redis.exceptions import ConnectionError as RedisConnectionError

from postboard.realtime.broadcasting import LogBroadcaster
from postboard.realtime.broadcasting import NullBroadcaster
from postboard.realtime.broadcasting import PublishError
from postboard.realtime.broadcasting import QueuedBroadcaster
from postboard.realtime.broadcasting import SocketIOBroadcaster
from postboard.realtime.broadcasting import get_broadcaster

PAYLOAD = {"message": "hi"}


@pytest.mark.parametrize(
    ("driver", "expected"),
    [
        ("socketio", SocketIOBroadcaster),
        ("queue", QueuedBroadcaster),
        ("log", LogBroadcaster),
        ("null", NullBroadcaster),
    ],
)
def test_get_broadcaster_by_name(driver, expected):
    assert isinstance(get_broadcaster(driver), expected)


@override_settings(BROADCAST_DRIVER="log")
def test_get_broadcaster_reads_settings():
    assert isinstance(get_broadcaster(), LogBroadcaster)


@override_settings(BROADCAST_DRIVER="pusher")
def test_unknown_driver_is_a_configuration_error():
    with pytest.raises(ImproperlyConfigured, match="pusher"):
        get_broadcaster()


class TestSocketIOBroadcaster:
    def test_emits_to_channel(self):
        with mock.patch(
            "postboard.realtime.socketio.emit_event_to_channel"
        ) as emit:
            SocketIOBroadcaster().publish("posts", "create", PAYLOAD)
        emit.assert_called_once_with("posts", "create", PAYLOAD)

    @pytest.mark.parametrize(
        "error",
        [RedisConnectionError("refused"), ConnectionRefusedError("refused"), OSError()],
    )
    def test_transport_failures_become_publish_error(self, error):
        with (
            mock.patch(
                "postboard.realtime.socketio.emit_event_to_channel",
                side_effect=error,
            ),
            pytest.raises(PublishError),
        ):
            SocketIOBroadcaster().publish("posts", "create", PAYLOAD)


class TestQueuedBroadcaster:
    def test_enqueues_task(self):
        with mock.patch("postboard.realtime.tasks.broadcast_event.delay") as delay:
            QueuedBroadcaster().publish("posts", "create", PAYLOAD)
        delay.assert_called_once_with("posts", "create", PAYLOAD)

    def test_broker_failure_becomes_publish_error(self):
        with (
            mock.patch(
                "postboard.realtime.tasks.broadcast_event.delay",
                side_effect=OperationalError("broker down"),
            ),
            pytest.raises(PublishError, match="broker down"),
        ):
            QueuedBroadcaster().publish("posts", "create", PAYLOAD)

    def test_eager_task_emits_through_socketio(self):
        with mock.patch(
            "postboard.realtime.socketio.emit_event_to_channel"
        ) as emit:
            QueuedBroadcaster().publish("posts", "create", PAYLOAD)
        emit.assert_called_once_with("posts", "create", PAYLOAD)


def test_log_broadcaster_logs_event(caplog):
    with caplog.at_level("INFO", logger="postboard.realtime.broadcasting"):
        LogBroadcaster().publish("posts", "create", PAYLOAD)
    assert "Broadcasting [create] on channel posts" in caplog.text


def test_null_broadcaster_does_nothing():
    assert NullBroadcaster().publish("posts", "create", PAYLOAD) is None
