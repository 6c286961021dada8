import datetime as dt
from unittest import mock

import pytest
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError

from postboard.posts.exceptions import AuthorizationError
from postboard.posts.exceptions import StorageError
from postboard.posts.exceptions import ValidationError
from postboard.posts.models import Post
from postboard.posts.services import PostSubmissionHandler
from postboard.realtime.events.posts import PostNotifier
from postboard.users.tests.factories import create_user

T = dt.datetime(2024, 5, 17, 9, 30, 15, tzinfo=dt.timezone.utc)


def _handler(broadcaster) -> PostSubmissionHandler:
    return PostSubmissionHandler(notifier=PostNotifier(broadcaster=broadcaster))


@pytest.mark.django_db
class TestSubmit:
    def test_persists_post_and_publishes_once(
        self, user, broadcaster, django_capture_on_commit_callbacks
    ):
        with (
            mock.patch("django.utils.timezone.now", return_value=T),
            django_capture_on_commit_callbacks(execute=True),
        ):
            post = _handler(broadcaster).submit(
                {"title": "Hello", "body": "World"}, user
            )

        stored = Post.objects.get()
        assert stored.pk == post.pk
        assert stored.author_id == user.id
        assert stored.title == "Hello"
        assert stored.body == "World"
        assert stored.created_at == T
        assert broadcaster.published == [
            (
                "posts",
                "create",
                {"message": "[2024-05-17 09:30:15] New Post Received with title 'Hello'."},
            ),
        ]

    def test_publish_waits_for_commit(
        self, user, broadcaster, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks() as callbacks:
            _handler(broadcaster).submit({"title": "Hello", "body": "World"}, user)
            assert broadcaster.published == []

        assert len(callbacks) == 1
        assert broadcaster.published == []
        callbacks[0]()
        assert len(broadcaster.published) == 1

    def test_title_and_body_are_trimmed(self, user, broadcaster):
        post = _handler(broadcaster).submit(
            {"title": "  Spaced  ", "body": "\nText\n"}, user
        )
        assert post.title == "Spaced"
        assert post.body == "Text"

    def test_title_at_max_length_is_accepted(self, user, broadcaster):
        post = _handler(broadcaster).submit({"title": "t" * 255, "body": "b"}, user)
        assert len(post.title) == 255

    @pytest.mark.parametrize("current_user", [None, AnonymousUser()])
    def test_unauthenticated_is_rejected_without_side_effects(
        self, current_user, broadcaster
    ):
        with pytest.raises(AuthorizationError):
            _handler(broadcaster).submit({"title": "Hello", "body": "World"}, current_user)
        assert not Post.objects.exists()
        assert broadcaster.published == []

    def test_authorization_is_checked_before_validation(self, broadcaster):
        with pytest.raises(AuthorizationError):
            _handler(broadcaster).submit({"title": ""}, None)

    def test_empty_title_is_flagged_required(self, user, broadcaster):
        with pytest.raises(ValidationError) as excinfo:
            _handler(broadcaster).submit({"title": "", "body": "x"}, user)

        assert excinfo.value.codes == {"title": ["required"]}
        assert "title" in excinfo.value.errors
        assert not Post.objects.exists()
        assert broadcaster.published == []

    @pytest.mark.parametrize(
        ("data", "field", "code"),
        [
            ({"body": "x"}, "title", "required"),
            ({"title": None, "body": "x"}, "title", "required"),
            ({"title": "   ", "body": "x"}, "title", "required"),
            ({"title": "t" * 256, "body": "x"}, "title", "max_length"),
            ({"title": 42, "body": "x"}, "title", "invalid"),
            ({"title": "ok"}, "body", "required"),
            ({"title": "ok", "body": ""}, "body", "required"),
            ({"title": "ok", "body": ["x"]}, "body", "invalid"),
        ],
    )
    def test_invalid_fields(self, user, broadcaster, data, field, code):
        with pytest.raises(ValidationError) as excinfo:
            _handler(broadcaster).submit(data, user)

        assert excinfo.value.codes[field] == [code]
        assert not Post.objects.exists()
        assert broadcaster.published == []

    def test_both_fields_reported_together(self, user, broadcaster):
        with pytest.raises(ValidationError) as excinfo:
            _handler(broadcaster).submit({}, user)
        assert set(excinfo.value.errors) == {"title", "body"}

    def test_publish_failure_keeps_the_post(
        self, user, unreachable_broadcaster, caplog, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            post = _handler(unreachable_broadcaster).submit(
                {"title": "Hello", "body": "World"}, user
            )

        assert Post.objects.filter(pk=post.pk).exists()
        assert len(unreachable_broadcaster.published) == 1
        assert f"Post {post.pk} saved but its broadcast failed" in caplog.text
        # Listing again still shows it.
        assert list(_handler(unreachable_broadcaster).list()) == [post]

    def test_storage_failure_skips_publish(self, user, broadcaster):
        with (
            mock.patch.object(
                Post.objects, "create", side_effect=DatabaseError("disk full")
            ),
            pytest.raises(StorageError),
        ):
            _handler(broadcaster).submit({"title": "Hello", "body": "World"}, user)
        assert broadcaster.published == []

    def test_title_with_quotes_is_sent_verbatim(
        self, user, broadcaster, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            _handler(broadcaster).submit(
                {"title": "It's \"quoted\"", "body": "b"}, user
            )
        (_, _, payload), = broadcaster.published
        assert "with title 'It's \"quoted\"'." in payload["message"]


@pytest.mark.django_db
class TestList:
    def test_newest_first(self, user, broadcaster):
        handler = _handler(broadcaster)
        times = [T, T + dt.timedelta(minutes=5), T - dt.timedelta(days=1)]
        for i, when in enumerate(times):
            with mock.patch("django.utils.timezone.now", return_value=when):
                handler.submit({"title": f"p{i}", "body": "b"}, user)

        posts = list(handler.list())
        assert [p.title for p in posts] == ["p1", "p0", "p2"]
        stamps = [p.created_at for p in posts]
        assert all(a >= b for a, b in zip(stamps, stamps[1:], strict=False))

    def test_same_timestamp_breaks_ties_by_id(self, broadcaster):
        author = create_user("tie")
        handler = _handler(broadcaster)
        with mock.patch("django.utils.timezone.now", return_value=T):
            first = handler.submit({"title": "a", "body": "b"}, author)
            second = handler.submit({"title": "c", "body": "d"}, author)
        assert list(handler.list()) == [second, first]

    def test_empty(self, broadcaster):
        assert list(_handler(broadcaster).list()) == []

    def test_list_has_no_side_effects(self, user, broadcaster):
        handler = _handler(broadcaster)
        handler.submit({"title": "a", "body": "b"}, user)
        broadcaster.published.clear()
        list(handler.list())
        assert broadcaster.published == []
        assert Post.objects.count() == 1


class TestSubmitInAutocommit:
    def test_publishes_as_soon_as_the_post_is_saved(self, broadcaster, transactional_db):
        author = create_user("autocommit")
        _handler(broadcaster).submit({"title": "Now", "body": "b"}, author)
        assert len(broadcaster.published) == 1
