"""Shared test fixtures for the food auth core tests."""

from typing import Any, Dict, List, Optional

import pytest
from unittest.mock import AsyncMock, MagicMock

from common.auth.base import ProviderPrincipal
from common.config.base_settings import AuthSettings
from food_auth.auth.facade import AuthFacade
from food_auth.auth.services.user_directory import UserDirectory
from food_auth.auth.state import AuthStateStore


class FakeUserDirectory(UserDirectory):
    """In-memory UserDirectory that records every write."""

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.created: List[str] = []
        self.touched: List[str] = []
        self.updates: List[tuple] = []
        self.fail_exists = False
        self.fail_create = False

    async def exists(self, uid: str) -> bool:
        if self.fail_exists:
            raise RuntimeError("directory unavailable")
        return uid in self.users

    async def create(self, uid, name=None, email=None, photo_url=None, username=None, phone_number=None):
        if self.fail_create:
            raise RuntimeError("directory unavailable")
        self.created.append(uid)
        self.users.setdefault(uid, {
            "uid": uid,
            "name": name,
            "email": email,
            "photoURL": photo_url,
            "username": username,
            "phoneNumber": phone_number,
        })

    async def touch_last_login(self, uid: str) -> None:
        self.touched.append(uid)

    async def update(self, uid: str, fields: Dict[str, Any]) -> None:
        self.updates.append((uid, dict(fields)))
        self.users.setdefault(uid, {}).update(fields)

    async def find_email_by_username(self, username: str) -> Optional[str]:
        for user in self.users.values():
            if (user.get("username") or "").lower() == username.lower():
                return user.get("email")
        return None

    async def find_email_by_phone_number(self, phone_number: str) -> Optional[str]:
        for user in self.users.values():
            if user.get("phoneNumber") == phone_number:
                return user.get("email")
        return None

    async def is_username_available(self, username: str) -> bool:
        return not any(
            (user.get("username") or "").lower() == username.lower()
            for user in self.users.values()
        )

    async def get(self, uid: str) -> Optional[Dict[str, Any]]:
        return self.users.get(uid)

    async def delete(self, uid: str) -> None:
        self.users.pop(uid, None)


@pytest.fixture
def settings():
    return AuthSettings(
        _env_file=None,
        FIREBASE_API_KEY="test-api-key",
        FIREBASE_STORAGE_BUCKET="food-test.appspot.com",
        IDENTITY_TOOLKIT_URL="https://identitytoolkit.test/v1/accounts",
        FIREBASE_STORAGE_URL="https://storage.test/v0/b",
    )


@pytest.fixture
def principal():
    return ProviderPrincipal(
        uid="uid-ana-123",
        email="ana@example.com",
        display_name="Ana Lopez",
    )


@pytest.fixture
def phone_principal():
    return ProviderPrincipal(
        uid="uid-phone-456",
        phone_number="+15551234567",
        is_new_user=True,
    )


@pytest.fixture
def directory():
    return FakeUserDirectory()


@pytest.fixture
def identity_provider(principal):
    provider = MagicMock()
    provider.sign_in_with_email_password = AsyncMock(return_value=principal)
    provider.sign_in_with_google = AsyncMock(return_value=principal)
    provider.create_account = AsyncMock(return_value=principal)
    provider.update_profile = AsyncMock(
        side_effect=lambda display_name=None, photo_url=None: principal.model_copy(
            update={
                key: value
                for key, value in (("display_name", display_name), ("photo_url", photo_url))
                if value is not None
            }
        )
    )
    provider.sign_out = AsyncMock()
    provider.current_principal = MagicMock(return_value=None)
    return provider


@pytest.fixture
def otp_provider(phone_principal):
    provider = MagicMock()
    provider.request_code = AsyncMock(return_value="verification-id-1")
    provider.confirm_code = AsyncMock(return_value=phone_principal)
    return provider


@pytest.fixture
def no_sleep():
    """Cool-down sleep that returns at once, so a countdown finishes in one loop turn."""
    return AsyncMock()


@pytest.fixture
def store():
    return AuthStateStore()


@pytest.fixture
def facade(identity_provider, otp_provider, directory, store, no_sleep):
    return AuthFacade(
        identity_provider=identity_provider,
        otp_provider=otp_provider,
        directory=directory,
        store=store,
        cooldown_seconds=60,
        code_length=6,
        sleep=no_sleep,
    )


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously
    collection.find = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db
