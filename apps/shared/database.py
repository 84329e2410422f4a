"""
Database configuration and connection management

This module provides the basic MongoDB setup for document storage.
NO queries are defined here - this is just infrastructure.
"""

import logging

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from apps.shared.config import Settings

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> MongoClient:
    """
    Create the MongoDB client for the process.

    MongoClient connects lazily and keeps its own connection pool, so one
    instance is created at startup and reused for every request.
    """
    logger.info(f"Connecting to MongoDB database '{settings.mongo_database}'")
    return MongoClient(settings.mongo_uri)


def get_collection(client: MongoClient, settings: Settings) -> Collection:
    """Return the collection blog posts live in."""
    return client[settings.mongo_database][settings.mongo_collection]


def check_db_connection(client: MongoClient) -> bool:
    """
    Test database connectivity
    Returns True if connection successful, False otherwise
    """
    try:
        client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False
