"""MongoDB database configuration and connection management."""

from __future__ import annotations

import os
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database


# Global MongoDB client instance
_client: Optional[MongoClient] = None
_database: Optional[Database] = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client instance."""
    global _client
    if _client is None:
        mongo_uri = os.getenv("MONGODB_URI", "mongodb://localhost:27017/")
        timeout_ms = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))
        _client = MongoClient(mongo_uri, serverSelectionTimeoutMS=timeout_ms)
    return _client


def get_database() -> Database:
    """Get the MongoDB database instance."""
    global _database
    if _database is None:
        client = get_mongo_client()
        db_name = os.getenv("MONGODB_DATABASE", "quizzer")
        _database = client[db_name]
    return _database


def close_mongo_connection() -> bool:
    """Close the MongoDB connection. Returns False when nothing was open."""
    global _client, _database
    if _client is None:
        return False
    _client.close()
    _client = None
    _database = None
    return True
