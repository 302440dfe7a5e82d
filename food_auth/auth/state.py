"""
Observable auth state.

AuthStateStore holds one immutable AuthState snapshot. Every update swaps
in a new snapshot in a single step and then tells subscribers about it,
so an observer never sees a half-applied change. Observers may follow a
single field (only called when that field's value changes) or the whole
state.

Example:
    store = AuthStateStore()
    unsubscribe = store.subscribe("is_loading", lambda loading: spinner.show(loading))
    store.update(is_loading=True)
    unsubscribe()
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from common.utils.exceptions import AuthException
from food_auth.auth.services.phone_auth import Idle, PhoneAuthState
from food_auth.models import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthState:
    """Published state surface consumed by the UI."""

    session: Optional[Session] = None
    is_loading: bool = False
    last_error: Optional[AuthException] = None
    phone_auth_state: PhoneAuthState = field(default_factory=Idle)
    resend_seconds_remaining: int = 0

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None


OBSERVABLE_FIELDS = (
    "session",
    "is_authenticated",
    "is_loading",
    "last_error",
    "phone_auth_state",
    "resend_seconds_remaining",
)

Unsubscribe = Callable[[], None]


class AuthStateStore:
    """
    Single owner of the published AuthState.

    Must only be mutated from the asyncio loop that owns the auth core.
    """

    def __init__(self, initial: Optional[AuthState] = None):
        self._state = initial or AuthState()
        self._field_subscribers: Dict[str, List[Callable[[Any], None]]] = defaultdict(list)
        self._subscribers: List[Callable[[AuthState], None]] = []

    @property
    def snapshot(self) -> AuthState:
        return self._state

    def update(self, **changes: Any) -> AuthState:
        """
        Apply changes atomically and notify observers of changed fields.

        Args:
            **changes: AuthState fields to replace

        Returns:
            The new snapshot (the old one when nothing changed)

        Raises:
            ValueError: If a derived or unknown field is given
        """
        if "is_authenticated" in changes:
            raise ValueError("is_authenticated is derived from session")

        previous = self._state
        current = replace(previous, **changes)
        if current == previous:
            return previous

        self._state = current

        changed = [
            name for name in OBSERVABLE_FIELDS
            if getattr(previous, name) != getattr(current, name)
        ]
        logger.debug(f"Auth state changed: {changed}")

        for name in changed:
            value = getattr(current, name)
            for callback in list(self._field_subscribers[name]):
                self._deliver(callback, value)

        for callback in list(self._subscribers):
            self._deliver(callback, current)

        return current

    def subscribe(self, field_name: str, callback: Callable[[Any], None]) -> Unsubscribe:
        """
        Observe one field.

        Args:
            field_name: One of OBSERVABLE_FIELDS
            callback: Called with the new value whenever it changes

        Returns:
            Function that removes the subscription
        """
        if field_name not in OBSERVABLE_FIELDS:
            raise ValueError(f"Unknown auth state field: {field_name}")

        self._field_subscribers[field_name].append(callback)

        def unsubscribe() -> None:
            if callback in self._field_subscribers[field_name]:
                self._field_subscribers[field_name].remove(callback)

        return unsubscribe

    def subscribe_all(self, callback: Callable[[AuthState], None]) -> Unsubscribe:
        """Observe every snapshot."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @staticmethod
    def _deliver(callback: Callable[[Any], None], value: Any) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception("Auth state subscriber failed")
