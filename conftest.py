from __future__ import annotations

from typing import Any

import pytest
from rest_framework.test import APIClient

from postboard.realtime.broadcasting import PublishError
from postboard.users.models import User
from postboard.users.tests.factories import create_user


class RecordingBroadcaster:
    """Broadcaster double that keeps every published event."""

    def __init__(self):
        self.published: list[tuple[str, str, dict[str, Any]]] = []

    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        self.published.append((channel, event, payload))


class UnreachableBroadcaster(RecordingBroadcaster):
    """Records the attempt, then fails like a transport that is down."""

    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        super().publish(channel, event, payload)
        msg = "broker unreachable"
        raise PublishError(msg)


@pytest.fixture
def user(db) -> User:
    return create_user("author", name="Ada Author")


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def unreachable_broadcaster() -> UnreachableBroadcaster:
    return UnreachableBroadcaster()
