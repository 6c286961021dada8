from __future__ import annotations

from typing import Any

from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from postboard.posts.models import TITLE_MAX_LENGTH
from postboard.posts.models import Post

REQUIRED_MESSAGE = _("This field is required.")


class StrictCharField(serializers.CharField):
    """CharField that refuses numbers instead of coercing them to text."""

    def to_internal_value(self, data: Any) -> str:
        if not isinstance(data, str):
            self.fail("invalid")
        return super().to_internal_value(data)


def _required_messages() -> dict[str, Any]:
    # Missing, null and blank values are all reported as "required".
    return {
        "required": REQUIRED_MESSAGE,
        "null": REQUIRED_MESSAGE,
        "blank": REQUIRED_MESSAGE,
    }


class PostSubmissionSerializer(serializers.Serializer):
    """Field constraints of a post submission."""

    title = StrictCharField(
        max_length=TITLE_MAX_LENGTH,
        error_messages=_required_messages(),
    )
    body = StrictCharField(error_messages=_required_messages())


class PostSerializer(serializers.ModelSerializer):
    """Read serializer for posts."""

    author_name = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = (
            "id",
            "author",
            "author_name",
            "title",
            "body",
            "created_at",
        )
        read_only_fields = fields

    def get_author_name(self, obj: Post) -> str:
        return obj.author.display_name
