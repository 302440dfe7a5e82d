"""Unit tests for AuthFacade orchestration and published state."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from common.auth.base import ProviderError
from common.utils.exceptions import (
    AccountNotFoundException,
    EmailAlreadyInUseException,
    IdentifierInvalidException,
    InvalidCredentialException,
    MissingPhoneNumberException,
    NetworkException,
    UnknownAuthException,
    WeakPasswordException,
)
from food_auth.auth.services.phone_auth import AwaitingVerification, Failed, Idle, Verified
from food_auth.models import PendingRegistration


PHONE = "+15551234567"


async def drain():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def existing_user(directory):
    directory.users["uid-ana-123"] = {
        "uid": "uid-ana-123",
        "email": "ana@example.com",
        "username": "ana.lopez",
        "phoneNumber": PHONE,
    }
    return directory.users["uid-ana-123"]


@pytest.fixture
def registration():
    return PendingRegistration(
        email="ana@example.com",
        password="Secret123",
        first_name="Ana",
        last_name="Lopez",
        username="ana.lopez",
    )


# ─────────────────────────────────────────────────────────────────
# Identifier + password sign-in
# ─────────────────────────────────────────────────────────────────


class TestIdentifierSignIn:
    @pytest.mark.asyncio
    async def test_email_sign_in(self, facade, identity_provider):
        session = await facade.sign_in_with_identifier_password("ana@example.com", "Secret123")

        identity_provider.sign_in_with_email_password.assert_awaited_once_with(
            "ana@example.com", "Secret123"
        )
        assert facade.session == session
        assert facade.is_authenticated is True
        assert facade.is_loading is False
        assert facade.last_error is None

    @pytest.mark.asyncio
    async def test_username_resolves_to_email(self, facade, identity_provider, existing_user):
        await facade.sign_in_with_identifier_password("Ana.Lopez", "Secret123")

        identity_provider.sign_in_with_email_password.assert_awaited_once_with(
            "ana@example.com", "Secret123"
        )

    @pytest.mark.asyncio
    async def test_phone_resolves_to_email(self, facade, identity_provider, existing_user):
        await facade.sign_in_with_identifier_password("+1 (555) 123-4567", "Secret123")

        identity_provider.sign_in_with_email_password.assert_awaited_once_with(
            "ana@example.com", "Secret123"
        )

    @pytest.mark.asyncio
    async def test_unknown_username(self, facade, identity_provider):
        result = await facade.sign_in_with_identifier_password("nobody.here", "Secret123")

        assert result is None
        assert isinstance(facade.last_error, AccountNotFoundException)
        identity_provider.sign_in_with_email_password.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_identifier_skips_provider(self, facade, identity_provider):
        await facade.sign_in_with_identifier_password("a b", "Secret123")

        assert isinstance(facade.last_error, IdentifierInvalidException)
        identity_provider.sign_in_with_email_password.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_password(self, facade, identity_provider):
        identity_provider.sign_in_with_email_password.side_effect = ProviderError("INVALID_PASSWORD")

        await facade.sign_in_with_identifier_password("ana@example.com", "nope")

        assert isinstance(facade.last_error, InvalidCredentialException)
        assert facade.session is None
        assert facade.is_loading is False

    @pytest.mark.asyncio
    async def test_unexpected_failure_becomes_unknown(self, facade, identity_provider):
        identity_provider.sign_in_with_email_password.side_effect = RuntimeError("boom")

        await facade.sign_in_with_identifier_password("ana@example.com", "Secret123")

        assert isinstance(facade.last_error, UnknownAuthException)
        assert facade.last_error.message == "boom"

    @pytest.mark.asyncio
    async def test_loading_flag_wraps_the_operation(self, facade):
        seen = []
        facade.subscribe("is_loading", seen.append)

        await facade.sign_in_with_identifier_password("ana@example.com", "Secret123")

        assert seen == [True, False]

    @pytest.mark.asyncio
    async def test_new_operation_clears_previous_error(self, facade, identity_provider):
        identity_provider.sign_in_with_email_password.side_effect = [
            ProviderError("INVALID_PASSWORD"),
            identity_provider.sign_in_with_email_password.return_value,
        ]

        await facade.sign_in_with_identifier_password("ana@example.com", "nope")
        await facade.sign_in_with_identifier_password("ana@example.com", "Secret123")

        assert facade.last_error is None
        assert facade.is_authenticated

    @pytest.mark.asyncio
    async def test_reentrant_call_is_a_no_op(self, facade, identity_provider, principal):
        gate = asyncio.Event()

        async def slow_sign_in(_email, _password):
            await gate.wait()
            return principal

        identity_provider.sign_in_with_email_password = AsyncMock(side_effect=slow_sign_in)

        first = asyncio.create_task(
            facade.sign_in_with_identifier_password("ana@example.com", "Secret123")
        )
        await asyncio.sleep(0)

        assert facade.is_loading is True
        assert await facade.sign_in_with_google() is None
        assert await facade.sign_in_with_identifier_password("ana@example.com", "x") is None

        gate.set()
        assert (await first) is not None
        assert identity_provider.sign_in_with_email_password.await_count == 1
        identity_provider.sign_in_with_google.assert_not_called()
        assert facade.last_error is None


# ─────────────────────────────────────────────────────────────────
# Google
# ─────────────────────────────────────────────────────────────────


class TestGoogleSignIn:
    @pytest.mark.asyncio
    async def test_success(self, facade, directory):
        session = await facade.sign_in_with_google()

        assert session.provider_uid == "uid-ana-123"
        assert directory.created == ["uid-ana-123"]

    @pytest.mark.asyncio
    async def test_cancelled(self, facade, identity_provider):
        identity_provider.sign_in_with_google.side_effect = ProviderError("CANCELLED")

        await facade.sign_in_with_google()

        assert isinstance(facade.last_error, UnknownAuthException)
        assert facade.last_error.code == "CANCELLED"
        assert facade.session is None


# ─────────────────────────────────────────────────────────────────
# Sign-up
# ─────────────────────────────────────────────────────────────────


class TestSignUp:
    @pytest.mark.asyncio
    async def test_success(self, facade, identity_provider, directory, registration):
        session = await facade.sign_up(registration)

        identity_provider.create_account.assert_awaited_once_with("ana@example.com", "Secret123")
        identity_provider.update_profile.assert_awaited_once_with(display_name="Ana Lopez")
        assert session.display_name == "Ana Lopez"
        assert session.username == "ana.lopez"
        assert directory.created == ["uid-ana-123"]
        assert directory.users["uid-ana-123"]["username"] == "ana.lopez"
        assert facade.last_error is None

    @pytest.mark.asyncio
    async def test_weak_password_never_reaches_provider(self, facade, identity_provider):
        await facade.sign_up_with_email("ana@example.com", "secret123", "Ana", "Lopez", "ana.lopez")

        assert isinstance(facade.last_error, WeakPasswordException)
        identity_provider.create_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_email(self, facade, identity_provider):
        await facade.sign_up_with_email("ana.example.com", "Secret123", "Ana", "Lopez", "ana.lopez")

        assert isinstance(facade.last_error, IdentifierInvalidException)
        assert facade.last_error.code == "INVALID_EMAIL"
        identity_provider.create_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_username_taken(self, facade, identity_provider, existing_user, registration):
        await facade.sign_up(registration)

        assert isinstance(facade.last_error, IdentifierInvalidException)
        assert facade.last_error.code == "USERNAME_TAKEN"
        identity_provider.create_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_email_in_use(self, facade, identity_provider, registration):
        identity_provider.create_account.side_effect = ProviderError("EMAIL_EXISTS")

        await facade.sign_up(registration)

        assert isinstance(facade.last_error, EmailAlreadyInUseException)
        assert facade.session is None

    @pytest.mark.asyncio
    async def test_profile_update_failure_is_not_fatal(self, facade, identity_provider, registration):
        identity_provider.update_profile.side_effect = ProviderError("NETWORK_ERROR")

        session = await facade.sign_up(registration)

        assert session.display_name == "Ana Lopez"
        assert facade.last_error is None

    @pytest.mark.asyncio
    async def test_phone_number_is_normalized(self, facade, directory, registration):
        registration = registration.model_copy(update={"phone_number": "+1 555 123 4567"})

        session = await facade.sign_up(registration)

        assert session.phone_number == PHONE
        assert directory.users["uid-ana-123"]["phoneNumber"] == PHONE

    @pytest.mark.asyncio
    async def test_username_availability(self, facade, directory, existing_user):
        assert await facade.is_username_available("ANA.LOPEZ") is False
        assert await facade.is_username_available("new.cook") is True
        assert await facade.is_username_available("ab") is False

        directory.is_username_available = AsyncMock(side_effect=RuntimeError("down"))
        assert await facade.is_username_available("new.cook") is None


# ─────────────────────────────────────────────────────────────────
# Phone
# ─────────────────────────────────────────────────────────────────


class TestPhoneSignIn:
    @pytest.mark.asyncio
    async def test_send_code_publishes_phone_state(self, facade, otp_provider):
        seen = []
        facade.subscribe("phone_auth_state", seen.append)

        assert await facade.send_verification_code(PHONE) is True

        assert facade.phone_auth_state == AwaitingVerification(PHONE)
        assert seen[-1] == AwaitingVerification(PHONE)
        assert facade.state.resend_seconds_remaining == 60
        await facade.aclose()

    @pytest.mark.asyncio
    async def test_cooldown_is_published(self, facade):
        ticks = []
        facade.subscribe("resend_seconds_remaining", ticks.append)

        await facade.send_verification_code(PHONE)
        await drain()

        assert ticks[0] == 60
        assert ticks[-1] == 0
        assert facade.can_resend_code is True

    @pytest.mark.asyncio
    async def test_missing_phone(self, facade, otp_provider):
        assert await facade.send_verification_code("") is False

        assert isinstance(facade.last_error, MissingPhoneNumberException)
        assert isinstance(facade.phone_auth_state, Failed)
        otp_provider.request_code.assert_not_called()

    @pytest.mark.asyncio
    async def test_verify_creates_placeholder_session(self, facade, directory):
        await facade.send_verification_code(PHONE)

        session = await facade.verify_code("123456")

        assert session.display_name == "User 4567"
        assert session.username == "user.uidphone"
        assert facade.phone_auth_state == Verified()
        assert facade.is_authenticated
        assert directory.created == ["uid-phone-456"]

    @pytest.mark.asyncio
    async def test_wrong_code(self, facade, otp_provider):
        otp_provider.confirm_code.side_effect = ProviderError("INVALID_CODE")
        await facade.send_verification_code(PHONE)

        assert await facade.verify_code("000000") is None

        assert isinstance(facade.last_error, InvalidCredentialException)
        assert isinstance(facade.phone_auth_state, Failed)
        assert facade.session is None
        await facade.aclose()

    @pytest.mark.asyncio
    async def test_code_field_auto_submits(self, facade, otp_provider):
        await facade.send_verification_code(PHONE)

        assert await facade.input_verification_code("12 34 5") is None
        otp_provider.confirm_code.assert_not_called()

        session = await facade.input_verification_code("12 34 56")

        assert session is not None
        otp_provider.confirm_code.assert_awaited_once_with("verification-id-1", "123456")

    @pytest.mark.asyncio
    async def test_code_typed_while_loading_is_submitted_later(
        self, facade, identity_provider, otp_provider, principal
    ):
        await facade.send_verification_code(PHONE)
        gate = asyncio.Event()

        async def slow_sign_in(_email, _password):
            await gate.wait()
            return principal

        identity_provider.sign_in_with_email_password = AsyncMock(side_effect=slow_sign_in)
        busy = asyncio.create_task(
            facade.sign_in_with_identifier_password("ana@example.com", "Secret123")
        )
        await asyncio.sleep(0)

        assert await facade.input_verification_code("123456") is None
        otp_provider.confirm_code.assert_not_called()

        gate.set()
        await busy

        assert await facade.input_verification_code("123456") is not None
        otp_provider.confirm_code.assert_awaited_once_with("verification-id-1", "123456")

    @pytest.mark.asyncio
    async def test_reset(self, facade):
        await facade.send_verification_code(PHONE)

        facade.reset_phone_auth()

        assert facade.phone_auth_state == Idle()


# ─────────────────────────────────────────────────────────────────
# Sign-out, profile, refresh
# ─────────────────────────────────────────────────────────────────


class TestSignOut:
    @pytest.mark.asyncio
    async def test_clears_session_and_phone_state(self, facade, identity_provider):
        await facade.send_verification_code(PHONE)
        await facade.verify_code("123456")

        assert await facade.sign_out() is True

        identity_provider.sign_out.assert_awaited_once()
        assert facade.session is None
        assert facade.is_authenticated is False
        assert facade.phone_auth_state == Idle()

    @pytest.mark.asyncio
    async def test_provider_failure_keeps_session(self, facade, identity_provider):
        await facade.sign_in_with_google()
        identity_provider.sign_out.side_effect = ProviderError("NETWORK_ERROR")

        assert await facade.sign_out() is False

        assert isinstance(facade.last_error, NetworkException)
        assert facade.is_authenticated


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_no_session_is_a_no_op(self, facade, directory, identity_provider):
        assert await facade.update_profile(name="Ana") is None

        assert directory.updates == []
        identity_provider.update_profile.assert_not_called()
        assert facade.is_loading is False

    @pytest.mark.asyncio
    async def test_partial_updates_merge(self, facade, directory, identity_provider):
        await facade.sign_in_with_google()

        await facade.update_profile(name="Ana María")
        session = await facade.update_profile(photo_url="https://img.test/ana.jpg")

        assert session.display_name == "Ana María"
        assert session.photo_url == "https://img.test/ana.jpg"
        assert session.username == "ana.lopez"
        assert facade.session == session
        assert directory.updates == [
            ("uid-ana-123", {"name": "Ana María"}),
            ("uid-ana-123", {"photo_url": "https://img.test/ana.jpg"}),
        ]

    @pytest.mark.asyncio
    async def test_provider_failure_still_merges(self, facade, identity_provider):
        await facade.sign_in_with_google()
        identity_provider.update_profile.side_effect = ProviderError("NETWORK_ERROR")

        session = await facade.update_profile(name="Ana María")

        assert session.display_name == "Ana María"
        assert facade.last_error is None

    @pytest.mark.asyncio
    async def test_phone_number_update(self, facade, directory):
        await facade.sign_in_with_google()

        session = await facade.update_profile(phone_number="+1 555 123 4567")

        assert session.phone_number == PHONE
        assert directory.updates == [("uid-ana-123", {"phone_number": PHONE})]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_restores_current_principal(self, facade, identity_provider, principal):
        identity_provider.current_principal.return_value = principal

        await facade.start()

        identity_provider.add_listener.assert_called_once_with(facade._on_principal_changed)
        assert facade.session.provider_uid == "uid-ana-123"
        await facade.aclose()
        identity_provider.remove_listener.assert_called_once_with(facade._on_principal_changed)

    @pytest.mark.asyncio
    async def test_provider_notifications_are_reconciled(self, facade, principal):
        await facade.start()

        facade._on_principal_changed(principal)
        await drain()
        assert facade.session.provider_uid == "uid-ana-123"

        facade._on_principal_changed(None)
        await drain()
        assert facade.session is None
        await facade.aclose()

    @pytest.mark.asyncio
    async def test_profile_change_for_same_uid_replaces_session(self, facade, identity_provider, principal):
        identity_provider.current_principal.return_value = principal
        await facade.start()
        before = facade.session

        facade._on_principal_changed(
            principal.model_copy(update={"display_name": "Ana Maria", "photo_url": "https://cdn.test/ana.jpg"})
        )
        await drain()

        assert facade.session.display_name == "Ana Maria"
        assert facade.session.photo_url == "https://cdn.test/ana.jpg"
        assert facade.session.id == before.id
        assert facade.session.username == before.username
        await facade.aclose()

    @pytest.mark.asyncio
    async def test_unchanged_principal_is_not_reconciled_again(
        self, facade, identity_provider, directory, principal
    ):
        identity_provider.current_principal.return_value = principal
        await facade.start()

        facade._on_principal_changed(principal)
        await drain()

        assert directory.created == ["uid-ana-123"]
        assert directory.touched == []
        await facade.aclose()

    @pytest.mark.asyncio
    async def test_refresh(self, facade, identity_provider, principal):
        identity_provider.current_principal.return_value = principal

        session = await facade.refresh()

        assert session.provider_uid == "uid-ana-123"

    @pytest.mark.asyncio
    async def test_evaluate_password_uses_session_hints(self, facade):
        await facade.sign_in_with_identifier_password("ana@example.com", "Secret123")

        result = facade.evaluate_password("Ana12345!x")

        assert "Avoid using your email in the password" in result.feedback
