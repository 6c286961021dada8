"""Post submission pipeline: validate, persist, announce."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from django.db import DatabaseError
from django.db import transaction

from postboard.posts.api.serializers import PostSubmissionSerializer
from postboard.posts.exceptions import AuthorizationError
from postboard.posts.exceptions import PublishError
from postboard.posts.exceptions import StorageError
from postboard.posts.exceptions import ValidationError
from postboard.posts.models import Post
from postboard.realtime.events.posts import PostNotifier

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Mapping

    from django.db.models import QuerySet

logger = logging.getLogger(__name__)

# DRF reports missing/None/blank separately; callers only care that the field
# was required.
_REQUIRED_CODES = {"required", "null", "blank"}


def _collect_errors(
    serializer_errors: Mapping[str, Any],
) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    errors: dict[str, list[str]] = {}
    codes: dict[str, list[str]] = {}
    for field, details in serializer_errors.items():
        for detail in details:
            code = getattr(detail, "code", "invalid")
            errors.setdefault(field, []).append(str(detail))
            codes.setdefault(field, []).append(
                "required" if code in _REQUIRED_CODES else code,
            )
    return errors, codes


class PostSubmissionHandler:
    """Gatekeeper and orchestrator for post creation.

    ``current_user`` is always passed in explicitly; the handler never reads
    request or session state.
    """

    def __init__(self, notifier: PostNotifier | None = None):
        self._notifier = notifier

    @property
    def notifier(self) -> PostNotifier:
        if self._notifier is None:
            self._notifier = PostNotifier()
        return self._notifier

    def submit(self, data: Mapping[str, Any], current_user: Any | None) -> Post:
        """Create a post for ``current_user`` and announce it.

        Raises:
            AuthorizationError: no authenticated user; nothing is written.
            ValidationError: title/body constraints violated; nothing is written.
            StorageError: the post could not be saved; nothing is published.

        The broadcast is sent once the enclosing transaction commits; its
        failure is logged and does not fail the submission.
        """
        if current_user is None or not getattr(current_user, "is_authenticated", False):
            raise AuthorizationError

        serializer = PostSubmissionSerializer(data=data)
        if not serializer.is_valid():
            errors, codes = _collect_errors(serializer.errors)
            raise ValidationError(errors, codes)

        try:
            with transaction.atomic():
                post = Post.objects.create(
                    author=current_user,
                    title=serializer.validated_data["title"],
                    body=serializer.validated_data["body"],
                )
        except DatabaseError as exc:
            msg = "Could not save the post."
            raise StorageError(msg) from exc

        logger.info("Post %s created by user %s", post.pk, current_user.pk)

        # Only committed posts are announced.
        transaction.on_commit(lambda: self._announce(post), robust=True)
        return post

    def _announce(self, post: Post) -> None:
        try:
            self.notifier.publish(post)
        except PublishError:
            logger.exception("Post %s saved but its broadcast failed", post.pk)

    def list(self) -> QuerySet[Post]:
        """All posts, newest first."""
        return Post.objects.select_related("author").order_by("-created_at", "-id")
