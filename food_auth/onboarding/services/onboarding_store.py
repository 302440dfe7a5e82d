"""
Onboarding progress storage.

Onboarding state lives on the user's document in the users collection
(``onboardingCompleted`` and ``interests``).
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class OnboardingStore(ABC):
    """Abstract onboarding progress store."""

    @abstractmethod
    async def has_completed_onboarding(self, uid: str) -> bool:
        pass

    @abstractmethod
    async def mark_onboarding_completed(self, uid: str) -> None:
        pass

    @abstractmethod
    async def update_interests(self, uid: str, interests: List[str]) -> None:
        pass


class MongoOnboardingStore(OnboardingStore):
    """OnboardingStore on the MongoDB users collection."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "users"):
        self._users_collection = db[collection_name]

    async def has_completed_onboarding(self, uid: str) -> bool:
        doc = await self._users_collection.find_one(
            {"_id": uid},
            {"onboardingCompleted": 1},
        )
        return bool((doc or {}).get("onboardingCompleted", False))

    async def mark_onboarding_completed(self, uid: str) -> None:
        now = datetime.now(timezone.utc)
        await self._users_collection.update_one(
            {"_id": uid},
            {"$set": {
                "onboardingCompleted": True,
                "onboardingCompletedAt": now,
                "lastUpdated": now,
            }},
        )
        logger.info(f"Onboarding completed: {uid}")

    async def update_interests(self, uid: str, interests: List[str]) -> None:
        await self._users_collection.update_one(
            {"_id": uid},
            {"$set": {
                "interests": list(interests),
                "lastUpdated": datetime.now(timezone.utc),
            }},
        )
        logger.info(f"Interests updated for {uid}: {len(interests)} selected")
