"""
Database module - Async MongoDB connection and user lookup indexes.

Usage:
    from common.database import MongoDB

    mongo = MongoDB.from_settings(settings)
    await mongo.connect()
    users = mongo.get_collection("users")
"""

from common.database.mongodb import MongoDB, USER_LOOKUP_INDEXES

__all__ = ["MongoDB", "USER_LOOKUP_INDEXES"]
