"""Custom OpenAPI schema hooks for drf-spectacular.

Groups every operation under one feature tag so the Swagger UI navigation
stays partitioned by feature rather than by URL segment.
"""

from __future__ import annotations

from typing import Any

# Method names that contain operations in the OpenAPI path item
_HTTP_METHODS = {"get", "post", "put", "patch", "delete", "options", "head"}


PATTERN_TAGS = [
    ("/api/v1/posts", "Posts"),
    ("/api/v1/auth/jwt", "Authentication"),
]

ALL_TAGS = [t for _, t in PATTERN_TAGS]


def assign_group_tag(path: str) -> str | None:
    """Return the first matching tag name for a given path."""
    for prefix, tag in PATTERN_TAGS:
        if path.startswith(prefix):
            return tag
    return None


def group_tags(result: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
    """Post-processing hook forcing exactly one tag per operation."""
    paths = result.get("paths", {})
    for path, path_item in paths.items():
        tag = assign_group_tag(path)
        if not tag:
            continue
        for method, op_obj in path_item.items():
            if method.lower() not in _HTTP_METHODS:
                continue
            if not isinstance(op_obj, dict):
                continue
            op_obj["tags"] = [tag]

    # Declare every group tag so the UI lists them in a stable order.
    declared = {t.get("name") for t in result.get("tags", []) if isinstance(t, dict)}
    result["tags"] = [
        *result.get("tags", []),
        *({"name": t} for t in ALL_TAGS if t not in declared),
    ]
    return result
