"""
Firebase authentication provider over the Identity Toolkit REST API.

Implements both IdentityProvider and OtpProvider with plain HTTPS calls, so
no native SDK is required. The signed-in principal and its tokens are kept
in memory; listeners are told whenever the principal changes.

Example:
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
        auth = FirebaseIdentityProvider(settings, client)

        principal = await auth.sign_in_with_email_password("user@example.com", "Secret123")
        print(principal.uid)

        session_info = await auth.request_code("+15551234567")
        principal = await auth.confirm_code(session_info, "123456")
"""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from common.auth.base import (
    GoogleCredentialSource,
    IdentityProvider,
    OtpProvider,
    PrincipalListener,
    ProviderError,
    ProviderPrincipal,
)
from common.config.base_settings import AuthSettings

logger = logging.getLogger(__name__)


def _parse_millis(value: Any) -> Optional[datetime]:
    """Firebase reports timestamps as millisecond strings."""
    if value in (None, ""):
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError):
        logger.warning(f"Unparseable Firebase timestamp: {value!r}")
        return None


def _error_code(message: str) -> str:
    """``WEAK_PASSWORD : Password should be...`` -> ``WEAK_PASSWORD``"""
    return message.split(" : ", 1)[0].strip() or "UNKNOWN"


class FirebaseIdentityProvider(IdentityProvider, OtpProvider):
    """
    Firebase Authentication client.

    Handles, through the Identity Toolkit REST API:
    - Email/password sign-in and sign-up
    - Google sign-in (signInWithIdp)
    - Phone sign-in with SMS codes
    - Profile updates
    """

    GOOGLE_PROVIDER_ID = "google.com"

    def __init__(
        self,
        settings: AuthSettings,
        http_client: httpx.AsyncClient,
        google_credentials: Optional[GoogleCredentialSource] = None,
        recaptcha_token: Optional[Callable[[], Awaitable[Optional[str]]]] = None,
    ):
        """
        Initialize Firebase auth provider.

        Args:
            settings: Resolved settings (API key, endpoints)
            http_client: Shared async HTTP client
            google_credentials: Source of Google tokens for sign_in_with_google
            recaptcha_token: Coroutine factory returning an app verification
                token for sendVerificationCode, when the project requires one
        """
        if not settings.FIREBASE_API_KEY:
            raise ValueError(
                "Firebase API key is required for authentication. "
                "Set FIREBASE_API_KEY environment variable."
            )

        self._api_key = settings.FIREBASE_API_KEY
        self._base_url = settings.IDENTITY_TOOLKIT_URL.rstrip("/")
        self._request_uri = settings.GOOGLE_REQUEST_URI
        self._client = http_client
        self._google_credentials = google_credentials
        self._recaptcha_token = recaptcha_token

        self._principal: Optional[ProviderPrincipal] = None
        self._id_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._listeners: List[PrincipalListener] = []

    # ─────────────────────────────────────────────────────────────────
    # IdentityProvider
    # ─────────────────────────────────────────────────────────────────

    async def sign_in_with_google(self) -> ProviderPrincipal:
        """Exchange Google tokens for a Firebase principal."""
        if self._google_credentials is None:
            raise ProviderError(
                "OPERATION_NOT_ALLOWED",
                "Google sign-in is not configured",
            )

        id_token, access_token = await self._google_credentials.get_google_tokens()
        if not id_token:
            raise ProviderError("INVALID_IDP_RESPONSE", "Invalid Google ID token")

        post_body = {"id_token": id_token, "providerId": self.GOOGLE_PROVIDER_ID}
        if access_token:
            post_body["access_token"] = access_token

        data = await self._post(
            "signInWithIdp",
            {
                "postBody": urlencode(post_body),
                "requestUri": self._request_uri,
                "returnIdpCredential": True,
                "returnSecureToken": True,
            },
        )
        return await self._establish(data)

    async def sign_in_with_email_password(
        self,
        email: str,
        password: str,
    ) -> ProviderPrincipal:
        data = await self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return await self._establish(data)

    async def create_account(
        self,
        email: str,
        password: str,
    ) -> ProviderPrincipal:
        data = await self._post(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        data.setdefault("isNewUser", True)
        return await self._establish(data)

    async def update_profile(
        self,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> ProviderPrincipal:
        if self._principal is None or not self._id_token:
            raise ProviderError("USER_NOT_FOUND", "No signed-in user")

        payload: Dict[str, Any] = {"idToken": self._id_token, "returnSecureToken": True}
        if display_name is not None:
            payload["displayName"] = display_name
        if photo_url is not None:
            payload["photoUrl"] = photo_url

        data = await self._post("update", payload)

        # update may rotate tokens
        self._id_token = data.get("idToken") or self._id_token
        self._refresh_token = data.get("refreshToken") or self._refresh_token

        self._principal = self._principal.model_copy(
            update={
                "display_name": data.get("displayName", self._principal.display_name),
                "photo_url": data.get("photoUrl", self._principal.photo_url),
            }
        )
        self._notify(self._principal)
        return self._principal

    async def sign_out(self) -> None:
        had_principal = self._principal is not None
        self._principal = None
        self._id_token = None
        self._refresh_token = None
        if had_principal:
            self._notify(None)

    def current_principal(self) -> Optional[ProviderPrincipal]:
        return self._principal

    def current_id_token(self) -> Optional[str]:
        """ID token of the signed-in principal, for Firebase Storage calls."""
        return self._id_token

    def add_listener(self, listener: PrincipalListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: PrincipalListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ─────────────────────────────────────────────────────────────────
    # OtpProvider
    # ─────────────────────────────────────────────────────────────────

    async def request_code(self, phone_number: str) -> str:
        if not phone_number:
            raise ProviderError("MISSING_PHONE_NUMBER", "Phone number is required")

        payload: Dict[str, Any] = {"phoneNumber": phone_number}
        if self._recaptcha_token is not None:
            token = await self._recaptcha_token()
            if token:
                payload["recaptchaToken"] = token

        data = await self._post("sendVerificationCode", payload)

        session_info = data.get("sessionInfo")
        if not session_info:
            raise ProviderError("UNKNOWN", "Verification response had no session info")
        return session_info

    async def confirm_code(
        self,
        verification_id: str,
        code: str,
    ) -> ProviderPrincipal:
        data = await self._post(
            "signInWithPhoneNumber",
            {"sessionInfo": verification_id, "code": code},
        )
        return await self._establish(data)

    # ─────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Call an Identity Toolkit endpoint.

        Raises:
            ProviderError: ``NETWORK_ERROR`` on transport failure, otherwise
                the code Firebase reported
        """
        url = f"{self._base_url}:{endpoint}"

        try:
            response = await self._client.post(
                url,
                params={"key": self._api_key},
                json=payload,
            )
        except httpx.TransportError as e:
            logger.warning(f"Firebase {endpoint} transport error: {e}")
            raise ProviderError("NETWORK_ERROR", str(e)) from e

        if response.status_code != 200:
            try:
                error_message = response.json().get("error", {}).get("message", "")
            except ValueError:
                error_message = ""
            error_message = error_message or f"HTTP {response.status_code}"
            code = _error_code(error_message)
            logger.info(f"Firebase {endpoint} rejected: {code}")
            raise ProviderError(code, error_message)

        return response.json()

    async def _lookup(self, id_token: str) -> Dict[str, Any]:
        """Fetch the account record; empty dict when unavailable."""
        try:
            data = await self._post("lookup", {"idToken": id_token})
        except ProviderError as e:
            logger.warning(f"Firebase account lookup failed: {e.code}")
            return {}
        users = data.get("users") or []
        return users[0] if users else {}

    async def _establish(self, data: Dict[str, Any]) -> ProviderPrincipal:
        """Store tokens, build the principal and notify listeners."""
        uid = data.get("localId")
        id_token = data.get("idToken")
        if not uid or not id_token:
            raise ProviderError("UNKNOWN", "Firebase response had no user")

        account = await self._lookup(id_token)

        principal = ProviderPrincipal(
            uid=uid,
            email=account.get("email") or data.get("email"),
            display_name=account.get("displayName") or data.get("displayName"),
            phone_number=account.get("phoneNumber") or data.get("phoneNumber"),
            photo_url=account.get("photoUrl") or data.get("photoUrl"),
            created_at=_parse_millis(account.get("createdAt")),
            last_sign_in_at=_parse_millis(account.get("lastLoginAt")),
            is_new_user=data.get("isNewUser"),
        )

        self._principal = principal
        self._id_token = id_token
        self._refresh_token = data.get("refreshToken")

        logger.info(f"Firebase principal established: {uid}")
        self._notify(principal)
        return principal

    def _notify(self, principal: Optional[ProviderPrincipal]) -> None:
        for listener in list(self._listeners):
            try:
                listener(principal)
            except Exception:
                logger.exception("Principal listener failed")
