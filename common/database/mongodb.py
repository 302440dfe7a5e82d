"""
Async MongoDB connection for the user directory.

One Motor client per MongoDB instance. The composition root opens it once at
startup, hands ``database`` to the Mongo-backed stores and closes it on
shutdown. Lookup indexes for the users collection are created on demand.

Example:
    from common.database import MongoDB

    async with MongoDB.from_settings(settings) as mongo:
        await mongo.ensure_user_indexes(settings.USERS_COLLECTION)
        directory = MongoUserDirectory(mongo.database)
"""

import logging
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING

from common.config.base_settings import AuthSettings

logger = logging.getLogger(__name__)


# (field, index name) pairs backing username and phone-number sign-in
USER_LOOKUP_INDEXES = [
    ("usernameLower", "username_lower_lookup"),
    ("phoneNumber", "phone_number_lookup"),
]


class MongoDB:
    """Owns the Motor client and the selected database."""

    def __init__(self, uri: str, database_name: str):
        self._uri = uri
        self._database_name = database_name
        self._client: Optional[AsyncIOMotorClient] = None

    @classmethod
    def from_settings(cls, settings: AuthSettings) -> "MongoDB":
        return cls(settings.MONGODB_URI, settings.MONGODB_DATABASE)

    async def __aenter__(self) -> "MongoDB":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        """
        Open the client and check that the server answers a ping.

        Raises:
            Exception: Whatever Motor raised; the manager stays disconnected
        """
        # Credentials live before the "@"
        host = self._uri.rsplit("@", 1)[-1]
        logger.info(f"Connecting to MongoDB at {host} (database {self._database_name})")

        client = AsyncIOMotorClient(self._uri)
        try:
            await client.admin.command("ping")
        except Exception as e:
            logger.error(f"MongoDB ping failed: {e}")
            client.close()
            raise

        self._client = client
        logger.info("MongoDB connected")

    async def disconnect(self) -> None:
        if self._client is None:
            return
        self._client.close()
        self._client = None
        logger.info("MongoDB disconnected")

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """
        The selected database.

        Raises:
            RuntimeError: If ``connect`` has not succeeded
        """
        if self._client is None:
            raise RuntimeError("MongoDB is not connected")
        return self._client[self._database_name]

    def get_collection(self, name: str) -> AsyncIOMotorCollection:
        return self.database[name]

    async def ensure_user_indexes(self, collection_name: str = "users") -> List[str]:
        """
        Create the lookup indexes used by username and phone sign-in.

        Returns:
            Names of the indexes, as reported by MongoDB
        """
        users = self.get_collection(collection_name)
        names = []
        for field, index_name in USER_LOOKUP_INDEXES:
            names.append(await users.create_index([(field, ASCENDING)], name=index_name))
        logger.debug(f"User lookup indexes ready on {collection_name}: {names}")
        return names
