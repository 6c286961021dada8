from unittest import mock

from postboard.realtime.tasks import broadcast_event


def test_broadcast_event_emits_once():
    with mock.patch("postboard.realtime.socketio.emit_event_to_channel") as emit:
        broadcast_event.delay("posts", "create", {"message": "m"})
    emit.assert_called_once_with("posts", "create", {"message": "m"})


def test_broadcast_event_drops_on_transport_failure(caplog):
    with mock.patch(
        "postboard.realtime.socketio.emit_event_to_channel",
        side_effect=ConnectionRefusedError("redis down"),
    ) as emit:
        broadcast_event.delay("posts", "create", {"message": "m"})

    emit.assert_called_once()
    assert "Dropped [create] broadcast on channel posts" in caplog.text
