"""
Shared pytest fixtures.

Every test runs with the locmem mail backend and the local object
storage rooted in a per-test temporary directory, so nothing leaves the
process.  ``create_user`` builds accounts of any role and
``client_for`` returns an ``APIClient`` carrying that account's JWT.
"""

from __future__ import annotations

import itertools

import pytest
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def _isolated_side_effects(settings, tmp_path):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
    settings.OBJECT_STORAGE_BACKEND = "local"
    settings.MEDIA_ROOT = str(tmp_path / "media")


@pytest.fixture()
def create_user(db):
    """
    Build a saved user; unspecified names and e-mail are derived from a
    running counter, e.g. ``create_user(role="shaykh")``.
    """
    from accounts.models import User, UserRole

    sequence = itertools.count(1)

    def _build(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        role: str = UserRole.USER,
        **fields,
    ) -> User:
        username = username or f"member{next(sequence)}"
        fields.setdefault("first_name", username.capitalize())
        fields.setdefault("last_name", "Tester")
        return User.objects.create_user(
            username=username,
            password=password,
            email=email or f"{username}@example.com",
            role=role,
            **fields,
        )

    return _build


@pytest.fixture()
def client_for():
    """Return ``make(user) -> APIClient`` authenticated with a bearer token."""
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(user) -> APIClient:
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
        return client

    return _make
