"""
Auth Core

Sign-in, sign-up, phone verification and session reconciliation behind a
single facade with observable state.
"""

from food_auth.auth.errors import map_provider_error
from food_auth.auth.facade import AuthFacade
from food_auth.auth.state import AuthState, AuthStateStore

__all__ = [
    "AuthFacade",
    "AuthState",
    "AuthStateStore",
    "map_provider_error",
]
