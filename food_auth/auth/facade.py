"""
AuthFacade: the entry point the UI talks to.

Every public operation:

- is rejected as a no-op while another operation is still loading,
- sets ``is_loading`` and clears ``last_error`` when it starts,
- publishes a normalized AuthException through ``last_error`` instead of
  raising, and clears ``is_loading`` when it ends.

State is published through an AuthStateStore; observers subscribe to the
fields they care about.

Example:
    facade = create_auth_facade(settings, database, http_client)
    await facade.start()

    facade.subscribe("session", render_profile)
    await facade.sign_in_with_identifier_password("ana.lopez", "Secret123")
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set, TypeVar

from common.auth.base import IdentityProvider, OtpProvider, ProviderError, ProviderPrincipal
from common.utils.exceptions import (
    AccountNotFoundException,
    AuthException,
    IdentifierInvalidException,
    InvalidCredentialException,
    UnknownAuthException,
    WeakPasswordException,
)
from common.utils.password import (
    PasswordStrengthResult,
    evaluate_password_strength,
    meets_minimum_password_policy,
)
from common.utils.validators import (
    LoginType,
    classify_identifier,
    is_valid_email,
    is_valid_phone,
    is_valid_username,
    normalize_phone_number,
)
from food_auth.auth.errors import map_provider_error
from food_auth.auth.services.phone_auth import (
    DEFAULT_CODE_LENGTH,
    DEFAULT_COOLDOWN_SECONDS,
    PhoneAuthState,
    PhoneAuthStateMachine,
    Sleep,
    VerificationCodeInput,
)
from food_auth.auth.services.session_reconciler import SessionReconciler
from food_auth.auth.services.user_directory import UserDirectory
from food_auth.auth.state import AuthState, AuthStateStore, Unsubscribe
from food_auth.models import PendingRegistration, Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AuthFacade:
    """
    Orchestrates sign-in, sign-up, phone verification, sign-out and
    profile updates, and owns the published auth state.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        otp_provider: OtpProvider,
        directory: UserDirectory,
        store: Optional[AuthStateStore] = None,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        code_length: int = DEFAULT_CODE_LENGTH,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize AuthFacade.

        Args:
            identity_provider: Email/password, Google and profile operations
            otp_provider: SMS code delivery and confirmation
            directory: Remote user-profile store
            store: Published state (a fresh one by default)
            cooldown_seconds: Resend cool-down for SMS codes
            code_length: Digits in an SMS code
            sleep: Awaitable used by the resend cool-down between ticks
        """
        self._identity = identity_provider
        self._directory = directory
        self._store = store or AuthStateStore()
        self._reconciler = SessionReconciler(directory, self._store)
        self._phone = PhoneAuthStateMachine(
            otp_provider,
            cooldown_seconds=cooldown_seconds,
            code_length=code_length,
            on_state_change=self._publish_phone_state,
            on_cooldown_tick=self._publish_cooldown,
            sleep=sleep,
        )
        self._code_input = VerificationCodeInput(code_length)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._notifications: Set[asyncio.Task] = set()

    # ─────────────────────────────────────────────────────────────────
    # Published state
    # ─────────────────────────────────────────────────────────────────

    @property
    def state(self) -> AuthState:
        return self._store.snapshot

    @property
    def session(self) -> Optional[Session]:
        return self._store.snapshot.session

    @property
    def is_authenticated(self) -> bool:
        return self._store.snapshot.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._store.snapshot.is_loading

    @property
    def last_error(self) -> Optional[AuthException]:
        return self._store.snapshot.last_error

    @property
    def phone_auth_state(self) -> PhoneAuthState:
        return self._store.snapshot.phone_auth_state

    @property
    def identity_provider(self) -> IdentityProvider:
        return self._identity

    @property
    def can_resend_code(self) -> bool:
        return self._phone.can_send

    def subscribe(self, field_name: str, callback: Callable[[Any], None]) -> Unsubscribe:
        return self._store.subscribe(field_name, callback)

    def subscribe_all(self, callback: Callable[[AuthState], None]) -> Unsubscribe:
        return self._store.subscribe_all(callback)

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Listen for provider sign-in changes and restore any live principal."""
        self._loop = asyncio.get_running_loop()
        self._identity.add_listener(self._on_principal_changed)

        principal = self._identity.current_principal()
        if principal is not None:
            await self._reconciler.reconcile(principal)

    async def aclose(self) -> None:
        """Stop listening, cancel the cool-down and drain background work."""
        self._identity.remove_listener(self._on_principal_changed)
        self._phone.close()

        if self._notifications:
            await asyncio.gather(*self._notifications, return_exceptions=True)
        await self._reconciler.aclose()

    # ─────────────────────────────────────────────────────────────────
    # Sign-in
    # ─────────────────────────────────────────────────────────────────

    async def sign_in_with_identifier_password(
        self,
        identifier: str,
        password: str,
    ) -> Optional[Session]:
        """
        Sign in with an email, username or phone number plus password.

        Usernames and phone numbers are resolved to the account email through
        the user directory first.
        """
        async def action() -> Optional[Session]:
            value = identifier.strip()
            login_type = classify_identifier(value)

            if login_type is LoginType.UNKNOWN:
                raise IdentifierInvalidException(
                    "Enter a valid email, username or phone number"
                )
            if not password:
                raise InvalidCredentialException("Enter your password", code="MISSING_PASSWORD")

            email = await self._resolve_email(value, login_type)
            principal = await self._identity.sign_in_with_email_password(email, password)

            logger.info(f"Signed in with {login_type.value}: {principal.uid}")
            return await self._reconciler.reconcile(principal)

        return await self._run("sign_in_with_identifier_password", action)

    async def sign_in_with_google(self) -> Optional[Session]:
        async def action() -> Optional[Session]:
            principal = await self._identity.sign_in_with_google()
            logger.info(f"Signed in with Google: {principal.uid}")
            return await self._reconciler.reconcile(principal)

        return await self._run("sign_in_with_google", action)

    # ─────────────────────────────────────────────────────────────────
    # Sign-up
    # ─────────────────────────────────────────────────────────────────

    async def sign_up_with_email(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        username: str,
        phone_number: Optional[str] = None,
    ) -> Optional[Session]:
        """
        Create an email/password account.

        Local checks (email format, password policy, username format and
        availability) run before the provider is contacted.
        """
        async def action() -> Optional[Session]:
            account_email = email.strip()
            chosen_username = username.strip()

            if not is_valid_email(account_email):
                raise IdentifierInvalidException("The email is not valid", code="INVALID_EMAIL")
            if not meets_minimum_password_policy(password):
                raise WeakPasswordException()
            if not is_valid_username(chosen_username):
                raise IdentifierInvalidException(
                    "Usernames have 3 to 30 letters, numbers, dots or hyphens",
                    code="INVALID_USERNAME",
                )
            if phone_number and not is_valid_phone(phone_number):
                raise IdentifierInvalidException(
                    "The phone number is not valid",
                    code="INVALID_PHONE_NUMBER",
                )
            if not await self._directory.is_username_available(chosen_username):
                raise IdentifierInvalidException(
                    "This username is already taken",
                    code="USERNAME_TAKEN",
                )

            principal = await self._identity.create_account(account_email, password)

            full_name = f"{first_name} {last_name}"
            try:
                principal = await self._identity.update_profile(display_name=full_name)
            except ProviderError as e:
                logger.warning(f"Profile update after sign-up failed: {e.code}")
                principal = principal.model_copy(update={"display_name": full_name})

            phone = normalize_phone_number(phone_number) if phone_number else None
            if phone:
                principal = principal.model_copy(update={"phone_number": phone})

            try:
                await self._directory.create(
                    principal.uid,
                    name=full_name,
                    email=account_email,
                    photo_url=principal.photo_url,
                    username=chosen_username,
                    phone_number=phone,
                )
            except Exception as e:
                logger.warning(f"Failed to create user document for {principal.uid}: {e}")

            logger.info(f"Account created: {principal.uid}")
            return await self._reconciler.reconcile(principal, username=chosen_username)

        return await self._run("sign_up_with_email", action)

    async def sign_up(self, registration: PendingRegistration) -> Optional[Session]:
        return await self.sign_up_with_email(
            email=registration.email,
            password=registration.password,
            first_name=registration.first_name,
            last_name=registration.last_name,
            username=registration.username,
            phone_number=registration.phone_number,
        )

    async def is_username_available(self, username: str) -> Optional[bool]:
        """
        Check a username while the user types.

        Returns:
            None when the directory could not be reached
        """
        if not is_valid_username(username.strip()):
            return False
        try:
            return await self._directory.is_username_available(username.strip())
        except Exception as e:
            logger.warning(f"Username availability check failed: {e}")
            return None

    def evaluate_password(
        self,
        password: str,
        email: Optional[str] = None,
        username: Optional[str] = None,
    ) -> PasswordStrengthResult:
        """Score a password, using the signed-in user's details as hints."""
        session = self.session
        if session is not None:
            email = email or session.email
            username = username or session.username
        return evaluate_password_strength(password, email=email, username=username)

    # ─────────────────────────────────────────────────────────────────
    # Phone
    # ─────────────────────────────────────────────────────────────────

    async def send_verification_code(self, phone_number: str) -> bool:
        async def action() -> bool:
            self._code_input.clear()
            return await self._phone.send_code(phone_number)

        return bool(await self._run("send_verification_code", action))

    async def verify_code(self, code: str) -> Optional[Session]:
        async def action() -> Optional[Session]:
            principal = await self._phone.submit_code(code)
            if principal is None:
                return None
            return await self._reconciler.reconcile_phone(principal)

        return await self._run("verify_code", action)

    async def input_verification_code(self, text: str) -> Optional[Session]:
        """
        Feed the code field; submits automatically once all digits are in.
        """
        if self.is_loading:
            logger.debug("input_verification_code ignored: operation in flight")
            return None
        code = self._code_input.update(text)
        if code is None:
            return None
        return await self.verify_code(code)

    def reset_phone_auth(self) -> None:
        """Leave the phone flow (ignored while a request is in flight)."""
        if self.is_loading:
            logger.debug("reset_phone_auth ignored: operation in flight")
            return
        self._code_input.clear()
        self._phone.reset()

    # ─────────────────────────────────────────────────────────────────
    # Session
    # ─────────────────────────────────────────────────────────────────

    async def sign_out(self) -> bool:
        async def action() -> bool:
            await self._identity.sign_out()
            self._code_input.clear()
            self._phone.reset()
            await self._reconciler.reconcile(None)
            logger.info("Signed out")
            return True

        return bool(await self._run("sign_out", action))

    async def update_profile(
        self,
        name: Optional[str] = None,
        photo_url: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> Optional[Session]:
        """
        Partially update the signed-in user's profile.

        Fields left as None keep their current value. Does nothing when
        nobody is signed in.
        """
        if self.session is None:
            return None

        async def action() -> Optional[Session]:
            session = self._store.snapshot.session
            if session is None:
                return None

            phone = None
            if phone_number:
                if not is_valid_phone(phone_number):
                    raise IdentifierInvalidException(
                        "The phone number is not valid",
                        code="INVALID_PHONE_NUMBER",
                    )
                phone = normalize_phone_number(phone_number)

            fields = {
                key: value
                for key, value in (("name", name), ("photo_url", photo_url), ("phone_number", phone))
                if value is not None
            }
            if not fields:
                return session

            await self._directory.update(session.provider_uid, fields)

            if name is not None or photo_url is not None:
                try:
                    await self._identity.update_profile(display_name=name, photo_url=photo_url)
                except ProviderError as e:
                    logger.warning(f"Provider profile update failed: {e.code}")

            updated = self._store.snapshot.session.merged(
                display_name=name,
                photo_url=photo_url,
                phone_number=phone,
            )
            self._store.update(session=updated)
            logger.info(f"Profile updated: {updated.provider_uid} {sorted(fields)}")
            return updated

        return await self._run("update_profile", action)

    async def refresh(self) -> Optional[Session]:
        """Re-reconcile the provider's current principal."""
        async def action() -> Optional[Session]:
            return await self._reconciler.reconcile(self._identity.current_principal())

        return await self._run("refresh", action)

    # ─────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────

    async def _run(
        self,
        operation: str,
        action: Callable[[], Awaitable[T]],
    ) -> Optional[T]:
        """
        Run an operation under the loading guard.

        Returns:
            The action's result, or None when rejected or failed
        """
        if self._store.snapshot.is_loading:
            logger.debug(f"{operation} rejected: another operation is in flight")
            return None

        self._store.update(is_loading=True, last_error=None)

        error: Optional[AuthException] = None
        result: Optional[T] = None
        try:
            result = await action()
        except AuthException as e:
            error = e
        except ProviderError as e:
            error = map_provider_error(e)
        except Exception as e:
            logger.exception(f"Unexpected error in {operation}")
            error = UnknownAuthException(str(e) or type(e).__name__)
        finally:
            if error is not None:
                logger.info(f"{operation} failed: {error.code}")
                self._store.update(is_loading=False, last_error=error)
            else:
                self._store.update(is_loading=False)

        return result

    async def _resolve_email(self, identifier: str, login_type: LoginType) -> str:
        if login_type is LoginType.EMAIL:
            return identifier

        if login_type is LoginType.USERNAME:
            email = await self._directory.find_email_by_username(identifier)
        else:
            email = await self._directory.find_email_by_phone_number(
                normalize_phone_number(identifier)
            )

        if not email:
            raise AccountNotFoundException(f"No account exists for this {login_type.value}")
        return email

    def _publish_phone_state(self, state: PhoneAuthState) -> None:
        self._store.update(phone_auth_state=state)

    def _publish_cooldown(self, remaining: int) -> None:
        self._store.update(resend_seconds_remaining=remaining)

    def _on_principal_changed(self, principal: Optional[ProviderPrincipal]) -> None:
        """Provider callback; may arrive on any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._schedule_reconcile(principal)
        else:
            loop.call_soon_threadsafe(self._schedule_reconcile, principal)

    def _schedule_reconcile(self, principal: Optional[ProviderPrincipal]) -> None:
        snapshot = self._store.snapshot

        # Operations reconcile their own results
        if snapshot.is_loading:
            return

        current = snapshot.session
        if principal is None and current is None:
            return
        if (
            principal is not None
            and current is not None
            and Session.from_principal(principal, username=current.username) == current
        ):
            return

        task = self._loop.create_task(self._reconcile_notification(principal))
        self._notifications.add(task)
        task.add_done_callback(self._notifications.discard)

    async def _reconcile_notification(self, principal: Optional[ProviderPrincipal]) -> None:
        try:
            await self._reconciler.reconcile(principal)
        except Exception:
            logger.exception("Failed to reconcile provider notification")
