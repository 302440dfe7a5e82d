"""
Phone sign-in with SMS one-time passcodes.

State Machine Overview:

    Idle ──send_code──> SendingCode ──provider ok──> AwaitingVerification(phone)
                             └──provider error──> Failed(message)

    AwaitingVerification ──submit_code──> (stays while in flight)
        ├──provider ok──> Verified
        └──provider error──> Failed(message)

    Failed ──send_code──> SendingCode
    Failed ──submit_code──> AwaitingVerification (only when the id was kept)
    Failed / Verified ──reset──> Idle

The verification id is exposed only while AwaitingVerification. After a
transient verify failure (wrong code, network, rate limit) it is kept so the
user can retype the code; any other failure clears it and a new code must be
requested.

A resend cool-down runs next to AwaitingVerification. It starts on every
successful send, counts down once per second and allows a resend at zero.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from common.auth.base import OtpProvider, ProviderError, ProviderPrincipal
from common.utils.exceptions import (
    AuthErrorKind,
    AuthException,
    IdentifierInvalidException,
    InvalidCredentialException,
    MissingPhoneNumberException,
    UnknownAuthException,
)
from common.utils.validators import is_valid_phone, mask_phone_number, normalize_phone_number
from food_auth.auth.errors import map_provider_error

logger = logging.getLogger(__name__)


DEFAULT_CODE_LENGTH = 6
DEFAULT_COOLDOWN_SECONDS = 60


# ─────────────────────────────────────────────────────────────────
# States
# ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Idle:
    """No phone flow in progress."""


@dataclass(frozen=True)
class SendingCode:
    """Code request in flight."""


@dataclass(frozen=True)
class AwaitingVerification:
    """Code sent; waiting for the user to type it."""
    phone_number: str


@dataclass(frozen=True)
class Verified:
    """Code accepted by the provider."""


@dataclass(frozen=True)
class Failed:
    """Last phone operation failed."""
    message: str
    kind: AuthErrorKind = AuthErrorKind.UNKNOWN


PhoneAuthState = Union[Idle, SendingCode, AwaitingVerification, Verified, Failed]

Sleep = Callable[[float], Awaitable[None]]


# ─────────────────────────────────────────────────────────────────
# Resend cool-down
# ─────────────────────────────────────────────────────────────────

class ResendCooldown:
    """
    Countdown gating the "resend code" action.

    The countdown is the auth core's only background task. It must be
    cancelled when the phone flow is left or the owner is torn down.
    """

    def __init__(
        self,
        seconds: int = DEFAULT_COOLDOWN_SECONDS,
        on_tick: Optional[Callable[[int], None]] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._duration = seconds
        self._on_tick = on_tick
        self._sleep = sleep
        self._remaining = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def can_resend(self) -> bool:
        return self._remaining == 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """(Re)start the countdown from the full duration."""
        self.cancel()
        self._set_remaining(self._duration)
        if self._duration > 0:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        """Stop the countdown and allow resend."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._set_remaining(0)

    async def wait(self) -> None:
        """Wait for a running countdown to finish."""
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        while self._remaining > 0:
            await self._sleep(1)
            self._set_remaining(self._remaining - 1)
        logger.debug("Resend cool-down finished")

    def _set_remaining(self, value: int) -> None:
        if value == self._remaining:
            return
        self._remaining = value
        if self._on_tick is not None:
            self._on_tick(value)


# ─────────────────────────────────────────────────────────────────
# Code entry
# ─────────────────────────────────────────────────────────────────

class VerificationCodeInput:
    """
    Digit buffer behind the verification code field.

    Non-digits are dropped and anything past the code length is cut off.
    ``update`` returns the code exactly once when the buffer fills up, which
    is the signal to submit it.
    """

    def __init__(self, length: int = DEFAULT_CODE_LENGTH):
        self._length = length
        self._digits = ""
        self._dispatched: Optional[str] = None

    @property
    def digits(self) -> str:
        return self._digits

    @property
    def is_complete(self) -> bool:
        return len(self._digits) == self._length

    def update(self, text: str) -> Optional[str]:
        """
        Replace the buffer with the digits of ``text``.

        Returns:
            The complete code when it should be submitted, else None
        """
        self._digits = "".join(ch for ch in text if "0" <= ch <= "9")[: self._length]

        if not self.is_complete:
            self._dispatched = None
            return None
        if self._digits == self._dispatched:
            return None

        self._dispatched = self._digits
        return self._digits

    def append(self, text: str) -> Optional[str]:
        """Keystroke-style entry."""
        return self.update(self._digits + text)

    def clear(self) -> None:
        self._digits = ""
        self._dispatched = None


# ─────────────────────────────────────────────────────────────────
# State machine
# ─────────────────────────────────────────────────────────────────

class PhoneAuthStateMachine:
    """
    Drives the send / verify / resend lifecycle against an OtpProvider.

    Failures are folded into a Failed state and then raised as
    AuthException for the caller to publish.
    """

    RETAIN_ID_ON = frozenset({
        AuthErrorKind.INVALID_CREDENTIAL,
        AuthErrorKind.NETWORK_ERROR,
        AuthErrorKind.RATE_LIMITED,
    })

    def __init__(
        self,
        otp_provider: OtpProvider,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        code_length: int = DEFAULT_CODE_LENGTH,
        on_state_change: Optional[Callable[[PhoneAuthState], None]] = None,
        on_cooldown_tick: Optional[Callable[[int], None]] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize the state machine.

        Args:
            otp_provider: Sends and confirms SMS codes
            cooldown_seconds: Resend cool-down length
            code_length: Digits in a verification code
            on_state_change: Called with every new state
            on_cooldown_tick: Called with the remaining cool-down seconds
            sleep: Awaitable used by the cool-down between ticks
        """
        self._otp = otp_provider
        self._code_length = code_length
        self._on_state_change = on_state_change
        self._state: PhoneAuthState = Idle()
        self._verification_id: Optional[str] = None
        self._phone_number: Optional[str] = None
        self._in_flight = False
        self.cooldown = ResendCooldown(cooldown_seconds, on_tick=on_cooldown_tick, sleep=sleep)

    @property
    def state(self) -> PhoneAuthState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._in_flight

    @property
    def verification_id(self) -> Optional[str]:
        if isinstance(self._state, AwaitingVerification):
            return self._verification_id
        return None

    @property
    def can_send(self) -> bool:
        if self._in_flight:
            return False
        if isinstance(self._state, Idle):
            return True
        # A failed verify that kept its id is still cooling down
        if isinstance(self._state, (AwaitingVerification, Failed)):
            return self.cooldown.can_resend
        return False

    async def send_code(self, phone_number: str) -> bool:
        """
        Request an SMS code.

        Returns:
            True when the code was sent, False when the call was ignored
            (request in flight, resend still cooling down, or wrong state)

        Raises:
            AuthException: After moving to Failed
        """
        if not self.can_send:
            logger.debug(f"send_code ignored in state {type(self._state).__name__}")
            return False

        if not phone_number or not phone_number.strip():
            raise self._fail(MissingPhoneNumberException())
        if not is_valid_phone(phone_number):
            raise self._fail(
                IdentifierInvalidException(
                    "The phone number is not valid",
                    code="INVALID_PHONE_NUMBER",
                )
            )

        normalized = normalize_phone_number(phone_number)
        self._verification_id = None
        self.cooldown.cancel()
        self._transition(SendingCode())

        self._in_flight = True
        try:
            verification_id = await self._otp.request_code(normalized)
        except ProviderError as e:
            raise self._fail(map_provider_error(e))
        except Exception as e:
            logger.exception("Unexpected error requesting verification code")
            raise self._fail(UnknownAuthException(str(e))) from e
        finally:
            self._in_flight = False

        self._verification_id = verification_id
        self._phone_number = normalized
        self._transition(AwaitingVerification(normalized))
        self.cooldown.start()

        logger.info(f"Verification code sent to {mask_phone_number(normalized)}")
        return True

    async def submit_code(self, code: str) -> Optional[ProviderPrincipal]:
        """
        Confirm an SMS code.

        Returns:
            The provider principal, or None when the call was ignored

        Raises:
            AuthException: After moving to Failed
        """
        if self._in_flight:
            logger.debug("submit_code ignored: request in flight")
            return None

        if (
            isinstance(self._state, Failed)
            and self._verification_id
            and self._phone_number
        ):
            self._transition(AwaitingVerification(self._phone_number))

        if not isinstance(self._state, AwaitingVerification):
            logger.debug(f"submit_code ignored in state {type(self._state).__name__}")
            return None

        digits = "".join(ch for ch in code if "0" <= ch <= "9")
        if len(digits) != self._code_length:
            raise self._fail(
                InvalidCredentialException(
                    f"Enter the {self._code_length}-digit code",
                    code="INVALID_CODE_FORMAT",
                )
            )

        self._in_flight = True
        try:
            principal = await self._otp.confirm_code(self._verification_id, digits)
        except ProviderError as e:
            raise self._fail_verification(map_provider_error(e))
        except Exception as e:
            logger.exception("Unexpected error confirming verification code")
            raise self._fail_verification(UnknownAuthException(str(e))) from e
        finally:
            self._in_flight = False

        self._verification_id = None
        self.cooldown.cancel()
        self._transition(Verified())

        logger.info(f"Phone number verified: {mask_phone_number(self._phone_number)}")
        return principal

    def reset(self) -> None:
        """Leave the phone flow."""
        self._verification_id = None
        self._phone_number = None
        self.cooldown.cancel()
        self._transition(Idle())

    def close(self) -> None:
        """Cancel the cool-down on teardown."""
        self.cooldown.cancel()

    def _fail_verification(self, error: AuthException) -> AuthException:
        if error.kind not in self.RETAIN_ID_ON:
            self._verification_id = None
            self.cooldown.cancel()
        return self._fail(error)

    def _fail(self, error: AuthException) -> AuthException:
        logger.warning(f"Phone auth failed: {error.code}")
        self._transition(Failed(error.message, error.kind))
        return error

    def _transition(self, state: PhoneAuthState) -> None:
        if state == self._state:
            return
        logger.debug(f"Phone auth: {type(self._state).__name__} -> {type(state).__name__}")
        self._state = state
        if self._on_state_change is not None:
            self._on_state_change(state)
