"""Shared helpers for tests (access rule seeding, user creation, fake Redis)."""

from __future__ import annotations

from typing import Dict, Tuple
from unittest import mock

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from access_control.models import Role
from authentication.managers import hash_password
from authentication.services import TokenService
from scripts.management.commands.seed_writersphere import (
    create_seed_elements,
    create_seed_roles,
    create_seed_rules,
)

User = get_user_model()


class FakeRedis:
    """Minimal Redis stub supporting the commands used by the token and save services."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def set(self, key: str, value: str, nx: bool = False, ex: int | None = None):
        """Mimic SET with NX: returns None when the key already exists."""
        if nx and key in self._store:
            return None
        self._store[key] = value
        return True

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)

    def delete(self, key: str) -> int:
        return 1 if self._store.pop(key, None) is not None else 0


def seed_writersphere_basics() -> Tuple[dict, dict]:
    """Create roles, business elements, and access rules for tests.

    Delegates to the same helpers used by the ``seed_writersphere`` management
    command to keep the access rule setup in a single place.
    """

    roles = create_seed_roles()
    elements = create_seed_elements()
    create_seed_rules(roles, elements)
    return roles, elements


def create_user(email: str, password: str, role: Role, **extra):
    """Create a user with a bcrypt-hashed password for tests."""

    return User.objects.create(
        email=email,
        password_hash=hash_password(password),
        role=role,
        **extra,
    )


def auth_client(user) -> APIClient:
    """Return an APIClient authenticated with a fresh access token."""
    token, _ = TokenService.generate_tokens(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


class FakeRedisMixin:
    """Patch every Redis entry point with one in-memory fake for the test class."""

    @classmethod
    def setUpClass(cls):
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
            mock.patch("articles.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()
        super().setUpClass()

    @classmethod
    def tearDownClass(cls):
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()
