"""
Auth core services: phone state machine, user directory, session reconciler.
"""

from food_auth.auth.services.phone_auth import (
    PhoneAuthStateMachine,
    PhoneAuthState,
    Idle,
    SendingCode,
    AwaitingVerification,
    Verified,
    Failed,
    ResendCooldown,
    VerificationCodeInput,
)
from food_auth.auth.services.user_directory import UserDirectory, MongoUserDirectory
from food_auth.auth.services.session_reconciler import SessionReconciler

__all__ = [
    "PhoneAuthStateMachine",
    "PhoneAuthState",
    "Idle",
    "SendingCode",
    "AwaitingVerification",
    "Verified",
    "Failed",
    "ResendCooldown",
    "VerificationCodeInput",
    "UserDirectory",
    "MongoUserDirectory",
    "SessionReconciler",
]
