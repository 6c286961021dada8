from __future__ import annotations

from django.contrib.auth import get_user_model

User = get_user_model()

TEST_PASSWORD = "TestPass123!"  # noqa: S105


def create_user(username: str, *, name: str = "", is_staff: bool = False) -> User:
    user = User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password=TEST_PASSWORD,
    )
    changed = []
    if name:
        user.name = name
        changed.append("name")
    if is_staff:
        user.is_staff = True
        changed.append("is_staff")
    if changed:
        user.save(update_fields=changed)
    return user
