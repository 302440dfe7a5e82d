"""Unit tests for the observable auth state store."""

import uuid

import pytest

from common.utils.exceptions import InvalidCredentialException
from food_auth.auth.services.phone_auth import Idle, SendingCode
from food_auth.auth.state import AuthState, AuthStateStore
from food_auth.models import Session


@pytest.fixture
def session():
    return Session(id=uuid.uuid4(), provider_uid="uid-1", email="ana@example.com")


class TestAuthState:
    def test_defaults(self):
        state = AuthState()

        assert state.session is None
        assert state.is_authenticated is False
        assert state.is_loading is False
        assert state.phone_auth_state == Idle()
        assert state.resend_seconds_remaining == 0

    def test_authenticated_follows_session(self, session):
        assert AuthState(session=session).is_authenticated is True


class TestAuthStateStore:
    def test_field_subscriber_sees_changes_only(self):
        store = AuthStateStore()
        seen = []
        store.subscribe("is_loading", seen.append)

        store.update(is_loading=True)
        store.update(is_loading=True)
        store.update(resend_seconds_remaining=10)
        store.update(is_loading=False)

        assert seen == [True, False]

    def test_session_change_notifies_is_authenticated(self, session):
        store = AuthStateStore()
        seen = []
        store.subscribe("is_authenticated", seen.append)

        store.update(session=session)
        store.update(session=None)

        assert seen == [True, False]

    def test_whole_state_subscriber_sees_atomic_snapshot(self):
        store = AuthStateStore(AuthState(is_loading=True))
        snapshots = []
        store.subscribe_all(snapshots.append)
        error = InvalidCredentialException()

        store.update(is_loading=False, last_error=error)

        assert len(snapshots) == 1
        assert snapshots[0].is_loading is False
        assert snapshots[0].last_error == error

    def test_is_authenticated_cannot_be_set(self):
        with pytest.raises(ValueError):
            AuthStateStore().update(is_authenticated=True)

    def test_unknown_field_subscription_is_rejected(self):
        with pytest.raises(ValueError):
            AuthStateStore().subscribe("token", print)

    def test_unsubscribe(self):
        store = AuthStateStore()
        seen = []
        unsubscribe = store.subscribe("phone_auth_state", seen.append)

        store.update(phone_auth_state=SendingCode())
        unsubscribe()
        store.update(phone_auth_state=Idle())

        assert seen == [SendingCode()]

    def test_failing_subscriber_does_not_block_others(self):
        store = AuthStateStore()
        seen = []

        def broken(_value):
            raise RuntimeError("render failed")

        store.subscribe("is_loading", broken)
        store.subscribe("is_loading", seen.append)

        store.update(is_loading=True)

        assert seen == [True]
        assert store.snapshot.is_loading is True
