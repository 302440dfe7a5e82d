"""
Composition root for the food auth core.

Builds the auth facade and the onboarding flow from resolved settings and
shared resources. Nothing here is cached at module level; the caller owns
the HTTP client and the database connection.

Example:
    settings = load_settings()
    configure_logging(settings.LOG_LEVEL)

    mongo = await connect_database(settings)

    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
        facade = create_auth_facade(settings, mongo.database, client)
        await facade.start()
        onboarding = create_onboarding_flow(settings, facade, mongo.database, client)
"""

import logging
from typing import Callable, Optional

import httpx
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth.base import GoogleCredentialSource
from common.auth.firebase_auth import FirebaseIdentityProvider
from common.config.base_settings import AuthSettings
from common.database.mongodb import MongoDB
from common.storage.firebase_storage import FirebaseStorageAssetStore
from food_auth.auth.facade import AuthFacade
from food_auth.auth.services.user_directory import MongoUserDirectory
from food_auth.auth.state import AuthStateStore
from food_auth.onboarding.services.onboarding_flow import OnboardingFlow
from food_auth.onboarding.services.onboarding_store import MongoOnboardingStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


async def connect_database(settings: AuthSettings) -> MongoDB:
    """Open MongoDB and make sure the user lookup indexes exist."""
    mongo = MongoDB.from_settings(settings)
    await mongo.connect()
    await mongo.ensure_user_indexes(settings.USERS_COLLECTION)
    return mongo


def create_auth_facade(
    settings: AuthSettings,
    database: AsyncIOMotorDatabase,
    http_client: httpx.AsyncClient,
    google_credentials: Optional[GoogleCredentialSource] = None,
) -> AuthFacade:
    """
    Wire the auth facade to Firebase and MongoDB.

    Args:
        settings: Resolved settings
        database: Connected Motor database
        http_client: Shared async HTTP client
        google_credentials: Source of Google tokens; Google sign-in is
            unavailable without one

    Returns:
        An AuthFacade; call ``start()`` on it from the event loop
    """
    provider = FirebaseIdentityProvider(
        settings,
        http_client,
        google_credentials=google_credentials,
    )
    directory = MongoUserDirectory(
        database,
        collection_name=settings.USERS_COLLECTION,
        app_version=settings.APP_VERSION,
    )

    logger.info(f"Auth facade created ({settings.ENVIRONMENT})")

    return AuthFacade(
        identity_provider=provider,
        otp_provider=provider,
        directory=directory,
        store=AuthStateStore(),
        cooldown_seconds=settings.OTP_RESEND_COOLDOWN_SECONDS,
        code_length=settings.OTP_CODE_LENGTH,
    )


def create_onboarding_flow(
    settings: AuthSettings,
    facade: AuthFacade,
    database: AsyncIOMotorDatabase,
    http_client: httpx.AsyncClient,
    id_token: Optional[Callable[[], Optional[str]]] = None,
) -> OnboardingFlow:
    """
    Wire the onboarding flow.

    Args:
        settings: Resolved settings
        facade: The auth facade the flow reads the session from
        database: Connected Motor database
        http_client: Shared async HTTP client
        id_token: Returns the user's ID token for uploads; taken from the
            facade's Firebase provider when omitted
    """
    asset_store = None
    if settings.UPLOADS_ENABLED:
        if id_token is None:
            provider = facade.identity_provider
            if not isinstance(provider, FirebaseIdentityProvider):
                raise ValueError("An id_token callable is required for uploads")
            id_token = provider.current_id_token
        asset_store = FirebaseStorageAssetStore(settings, http_client, id_token)

    return OnboardingFlow(
        facade=facade,
        onboarding_store=MongoOnboardingStore(database, collection_name=settings.USERS_COLLECTION),
        asset_store=asset_store,
    )
