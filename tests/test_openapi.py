from http import HTTPStatus

import pytest
from django.urls import reverse

from config.spectacular_hooks import assign_group_tag


def test_api_v1_docs_accessible_by_admin(admin_client):
    url = reverse("api-docs-v1")
    response = admin_client.get(url)
    assert response.status_code == HTTPStatus.OK


@pytest.mark.django_db
def test_api_v1_docs_not_accessible_by_anonymous_users(client):
    url = reverse("api-docs-v1")
    response = client.get(url)
    assert response.status_code == HTTPStatus.FORBIDDEN


def test_api_v1_schema_groups_posts(admin_client):
    response = admin_client.get(reverse("api-schema-v1"), {"format": "json"})
    assert response.status_code == HTTPStatus.OK
    schema = response.json()
    for operation in schema["paths"]["/api/v1/posts/"].values():
        assert operation["tags"] == ["Posts"]


@pytest.mark.parametrize(
    ("path", "tag"),
    [
        ("/api/v1/posts/", "Posts"),
        ("/api/v1/auth/jwt/create/", "Authentication"),
        ("/api/v1/schema/", None),
    ],
)
def test_assign_group_tag(path, tag):
    assert assign_group_tag(path) == tag
