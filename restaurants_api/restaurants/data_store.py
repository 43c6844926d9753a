from __future__ import annotations

import logging

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from ..config import DEFAULT_STORE_CONFIG, StoreConfig
from .errors import StoreUnavailable

logger = logging.getLogger(__name__)


def connect(config: StoreConfig = DEFAULT_STORE_CONFIG) -> MongoClient:
    """Open a client and ping the server. Raises ``StoreUnavailable`` on failure."""
    client: MongoClient = MongoClient(
        config.uri,
        serverSelectionTimeoutMS=config.timeout_ms,
        tz_aware=True,
    )
    try:
        client.admin.command("ping")
    except PyMongoError as exc:
        client.close()
        logger.error("Could not connect to MongoDB at %s", config.uri, exc_info=True)
        raise StoreUnavailable("Error al conectar con MongoDB", detail=str(exc)) from exc
    logger.info("Connected to MongoDB database %r", config.database)
    return client


def get_collection(
    client: MongoClient,
    config: StoreConfig = DEFAULT_STORE_CONFIG,
) -> Collection:
    """Return the restaurants collection, creating its secondary indexes."""
    collection = client[config.database][config.collection]
    collection.create_index([("created_at", ASCENDING)])
    collection.create_index([("borough", ASCENDING), ("cuisine", ASCENDING)])
    return collection
