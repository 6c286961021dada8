from postboard.realtime.broadcasting import PublishError


class PostError(Exception):
    """Base class for post submission failures."""


class AuthorizationError(PostError):
    def __init__(self, message: str = "Authentication is required to submit a post."):
        super().__init__(message)


class ValidationError(PostError):
    """One or more submitted fields are invalid.

    ``errors`` maps each field to its messages; ``codes`` carries the matching
    machine-readable codes (``required``, ``max_length``, ``invalid``).
    """

    def __init__(
        self,
        errors: dict[str, list[str]],
        codes: dict[str, list[str]] | None = None,
    ):
        self.errors = errors
        self.codes = codes or {}
        super().__init__(errors)


class StorageError(PostError):
    pass


__all__ = [
    "AuthorizationError",
    "PostError",
    "PublishError",
    "StorageError",
    "ValidationError",
]
