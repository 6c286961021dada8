from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import PermissionDenied
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from postboard.posts import exceptions
from postboard.posts.services import PostSubmissionHandler

from .serializers import PostSerializer
from .serializers import PostSubmissionSerializer


class PostStorageUnavailable(APIException):
    default_detail = "The post could not be saved. Please try again later."
    default_code = "storage_error"


@extend_schema_view(
    list=extend_schema(tags=["Posts"]),
    create=extend_schema(
        tags=["Posts"],
        request=PostSubmissionSerializer,
        responses={
            201: PostSerializer,
            400: OpenApiResponse(description="Field errors keyed by field name."),
            403: OpenApiResponse(description="No authenticated user."),
        },
    ),
)
class PostViewSet(mixins.ListModelMixin, GenericViewSet):
    """Posts feed.

    - list: every post, newest first (public)
    - create: submit a post as request.user and announce it on ``posts``
    """

    # Authorization for create is enforced by the submission handler so that
    # the same rule applies to every caller, not only this view.
    permission_classes = [AllowAny]
    serializer_class = PostSerializer
    # Feed is returned whole.
    pagination_class = None

    def get_handler(self) -> PostSubmissionHandler:
        return PostSubmissionHandler()

    def get_queryset(self):
        return self.get_handler().list()

    def create(self, request, *args, **kwargs):
        user = request.user if request.user.is_authenticated else None
        try:
            post = self.get_handler().submit(request.data, user)
        except exceptions.AuthorizationError as exc:
            raise PermissionDenied(str(exc)) from exc
        except exceptions.ValidationError as exc:
            raise ValidationError(exc.errors) from exc
        except exceptions.StorageError as exc:
            raise PostStorageUnavailable from exc

        out = PostSerializer(post, context={"request": request}).data
        return Response(
            {"detail": "Post created successfully.", "post": out},
            status=status.HTTP_201_CREATED,
        )
