from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


@dataclass(frozen=True)
class StoreConfig:
    uri: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    database: str = os.getenv("MONGO_DB", "restaurants_db")
    collection: str = os.getenv("MONGO_COLLECTION", "restaurants")
    timeout_ms: int = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))


@dataclass(frozen=True)
class ServerConfig:
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


DEFAULT_STORE_CONFIG = StoreConfig()
DEFAULT_SERVER_CONFIG = ServerConfig()


def setup_logging(config: ServerConfig = DEFAULT_SERVER_CONFIG) -> None:
    """Configure root logging from the server config."""
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # pymongo logs every heartbeat at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)
