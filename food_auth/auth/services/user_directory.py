"""
User directory: the remote profile store behind the auth core.

The auth core only needs a handful of operations (existence check, create,
last-login touch, partial update and username / phone lookups). They are
defined by UserDirectory; MongoUserDirectory implements them on the
``users`` collection, one document per provider uid.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class UserDirectory(ABC):
    """Abstract remote user-profile store."""

    @abstractmethod
    async def exists(self, uid: str) -> bool:
        pass

    @abstractmethod
    async def create(
        self,
        uid: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        photo_url: Optional[str] = None,
        username: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> None:
        """Create the user's record. Creating an existing uid changes nothing."""
        pass

    @abstractmethod
    async def touch_last_login(self, uid: str) -> None:
        pass

    @abstractmethod
    async def update(self, uid: str, fields: Dict[str, Any]) -> None:
        """
        Partially update a record.

        Args:
            uid: Provider user id
            fields: Any of name, photo_url, phone_number, username
        """
        pass

    @abstractmethod
    async def find_email_by_username(self, username: str) -> Optional[str]:
        pass

    @abstractmethod
    async def find_email_by_phone_number(self, phone_number: str) -> Optional[str]:
        pass

    @abstractmethod
    async def is_username_available(self, username: str) -> bool:
        pass

    @abstractmethod
    async def get(self, uid: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def delete(self, uid: str) -> None:
        pass


class MongoUserDirectory(UserDirectory):
    """
    UserDirectory on MongoDB.

    Documents are keyed by the provider uid. ``usernameLower`` backs
    case-insensitive username lookups.
    """

    # Directory field name for each updatable profile field
    FIELD_MAPPING = {
        "name": "name",
        "photo_url": "photoURL",
        "phone_number": "phoneNumber",
        "username": "username",
    }

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        collection_name: str = "users",
        app_version: str = "1.0",
    ):
        """
        Initialize MongoUserDirectory.

        Args:
            db: MongoDB database connection
            collection_name: Users collection
            app_version: Stored on new records
        """
        self._db = db
        self._users_collection = db[collection_name]
        self._app_version = app_version

    async def exists(self, uid: str) -> bool:
        doc = await self._users_collection.find_one({"_id": uid}, {"_id": 1})
        return doc is not None

    async def create(
        self,
        uid: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        photo_url: Optional[str] = None,
        username: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> None:
        now = datetime.now(timezone.utc)

        user_doc = {
            "uid": uid,
            "email": email or "",
            "name": name or "",
            "username": username,
            "usernameLower": username.lower() if username else None,
            "phoneNumber": phone_number,
            "photoURL": photo_url or "",
            "isPremium": False,
            "interests": [],
            "onboardingCompleted": False,
            "version": self._app_version,
            "createdAt": now,
            "lastLogin": now,
        }

        # $setOnInsert keeps a racing second create from overwriting the first
        result = await self._users_collection.update_one(
            {"_id": uid},
            {"$setOnInsert": user_doc},
            upsert=True,
        )

        if result.upserted_id is not None:
            logger.info(f"User document created: {uid}")
        else:
            logger.debug(f"User document already existed: {uid}")

    async def touch_last_login(self, uid: str) -> None:
        await self._users_collection.update_one(
            {"_id": uid},
            {"$set": {"lastLogin": datetime.now(timezone.utc)}},
        )

    async def update(self, uid: str, fields: Dict[str, Any]) -> None:
        update_data: Dict[str, Any] = {}

        for key, value in fields.items():
            if value is None:
                continue
            if key not in self.FIELD_MAPPING:
                raise ValueError(f"Unsupported user field: {key}")
            update_data[self.FIELD_MAPPING[key]] = value

        if "username" in update_data:
            update_data["usernameLower"] = update_data["username"].lower()

        if not update_data:
            return

        update_data["lastUpdated"] = datetime.now(timezone.utc)

        await self._users_collection.update_one({"_id": uid}, {"$set": update_data})
        logger.info(f"User document updated: {uid}")

    async def find_email_by_username(self, username: str) -> Optional[str]:
        doc = await self._users_collection.find_one(
            {"usernameLower": username.lower()},
            {"email": 1},
        )
        return (doc or {}).get("email") or None

    async def find_email_by_phone_number(self, phone_number: str) -> Optional[str]:
        doc = await self._users_collection.find_one(
            {"phoneNumber": phone_number},
            {"email": 1},
        )
        return (doc or {}).get("email") or None

    async def is_username_available(self, username: str) -> bool:
        count = await self._users_collection.count_documents(
            {"usernameLower": username.lower()},
            limit=1,
        )
        return count == 0

    async def get(self, uid: str) -> Optional[Dict[str, Any]]:
        return await self._users_collection.find_one({"_id": uid})

    async def delete(self, uid: str) -> None:
        result = await self._users_collection.delete_one({"_id": uid})
        if result.deleted_count:
            logger.info(f"User document deleted: {uid}")
