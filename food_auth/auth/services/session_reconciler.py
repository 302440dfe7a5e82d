"""
Session reconciliation.

Merges a freshly authenticated provider principal into the local session
and the remote user directory. The local session is committed as soon as
the principal is known; directory writes are side effects whose failures
are logged and never undo a sign-in.
"""

import asyncio
import logging
import re
from typing import Optional, Set, TYPE_CHECKING

from common.auth.base import ProviderPrincipal
from food_auth.auth.services.user_directory import UserDirectory
from food_auth.models import Session

if TYPE_CHECKING:
    from food_auth.auth.state import AuthStateStore

logger = logging.getLogger(__name__)


PLACEHOLDER_DISPLAY_NAME = "User"


def placeholder_display_name(principal: ProviderPrincipal) -> str:
    """Display name such as "User 4567", from the phone number's last digits."""
    digits = "".join(ch for ch in (principal.phone_number or "") if ch.isdigit())
    if len(digits) >= 4:
        return f"{PLACEHOLDER_DISPLAY_NAME} {digits[-4:]}"
    return PLACEHOLDER_DISPLAY_NAME


def placeholder_username(principal: ProviderPrincipal) -> str:
    suffix = re.sub(r"[^a-z0-9]", "", principal.uid.lower())[:8]
    return f"user.{suffix}" if suffix else "user"


class SessionReconciler:
    """
    Turns provider principals into the authoritative Session.

    Calls are serialized, so reconciling the same principal twice yields the
    same Session and creates the directory record once.
    """

    def __init__(self, directory: UserDirectory, store: "AuthStateStore"):
        """
        Initialize SessionReconciler.

        Args:
            directory: Remote user-profile store
            store: Published auth state; the reconciler commits sessions here
        """
        self._directory = directory
        self._store = store
        self._lock = asyncio.Lock()
        self._background: Set[asyncio.Task] = set()

    async def reconcile(
        self,
        principal: Optional[ProviderPrincipal],
        username: Optional[str] = None,
    ) -> Optional[Session]:
        """
        Reconcile a provider principal (or its absence).

        Args:
            principal: Signed-in principal, or None after sign-out
            username: Username chosen at sign-up; derived from the display
                name otherwise

        Returns:
            The committed Session, or None when signed out
        """
        async with self._lock:
            if principal is None:
                if self._store.snapshot.session is not None:
                    logger.info("Session cleared")
                self._store.update(session=None)
                return None

            exists = await self._exists(principal.uid)

            session = Session.from_principal(
                principal,
                username=username or self._known_username(principal.uid),
            )
            self._store.update(session=session)

            if exists is False:
                await self._create(session)
            elif exists is True:
                self._touch_last_login(principal.uid)

            return session

    async def reconcile_phone(self, principal: ProviderPrincipal) -> Session:
        """
        Reconcile a principal that just verified a phone number.

        First-time accounts get a placeholder display name and username and a
        directory record; returning accounts only refresh the session.
        """
        async with self._lock:
            if principal.is_first_sign_in:
                session = Session.from_principal(
                    principal,
                    username=placeholder_username(principal),
                    display_name=principal.display_name or placeholder_display_name(principal),
                )
                self._store.update(session=session)
                logger.info(f"First phone sign-in: {principal.uid}")
                await self._create(session)
            else:
                session = Session.from_principal(
                    principal,
                    username=self._known_username(principal.uid),
                )
                self._store.update(session=session)
                self._touch_last_login(principal.uid)

            return session

    async def aclose(self) -> None:
        """Wait for outstanding background directory writes."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    def _known_username(self, uid: str) -> Optional[str]:
        current = self._store.snapshot.session
        if current is not None and current.provider_uid == uid:
            return current.username
        return None

    async def _exists(self, uid: str) -> Optional[bool]:
        try:
            return await self._directory.exists(uid)
        except Exception as e:
            logger.warning(f"User directory lookup failed for {uid}: {e}")
            return None

    async def _create(self, session: Session) -> None:
        try:
            await self._directory.create(
                session.provider_uid,
                name=session.display_name,
                email=session.email,
                photo_url=session.photo_url,
                username=session.username,
                phone_number=session.phone_number,
            )
        except Exception as e:
            logger.warning(f"Failed to create user document for {session.provider_uid}: {e}")

    def _touch_last_login(self, uid: str) -> None:
        task = asyncio.get_running_loop().create_task(self._touch(uid))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _touch(self, uid: str) -> None:
        try:
            await self._directory.touch_last_login(uid)
        except Exception as e:
            logger.warning(f"Failed to update last login for {uid}: {e}")
