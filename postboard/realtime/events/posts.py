from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

from django.utils import timezone

from postboard.realtime.broadcasting import Broadcaster
from postboard.realtime.broadcasting import get_broadcaster

if TYPE_CHECKING:  # import for type checking only
    from postboard.posts.models import Post

# Subscribers listen on this channel/event pair; renaming either is a
# breaking change for every client.
POSTS_CHANNEL = "posts"
POST_CREATED_EVENT = "create"

CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_created_at(post: Post) -> str:
    created_at = post.created_at
    if timezone.is_aware(created_at):
        created_at = timezone.localtime(created_at)
    return created_at.strftime(CREATED_AT_FORMAT)


def build_post_created_message(post: Post) -> str:
    return (
        f"[{format_created_at(post)}] "
        f"New Post Received with title '{post.title}'."
    )


def build_post_created_payload(post: Post) -> dict[str, Any]:
    return {"message": build_post_created_message(post)}


class PostNotifier:
    """Announce newly created posts on the ``posts`` channel.

    Fire-and-forget: one publish per call, no retry. Only an unreachable
    transport is reported, as ``PublishError``.
    """

    def __init__(self, broadcaster: Broadcaster | None = None):
        self.broadcaster = broadcaster or get_broadcaster()

    def publish(self, post: Post) -> None:
        self.broadcaster.publish(
            POSTS_CHANNEL,
            POST_CREATED_EVENT,
            build_post_created_payload(post),
        )
