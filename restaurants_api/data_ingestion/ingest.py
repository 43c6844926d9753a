from __future__ import annotations

import argparse
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List

import pandas as pd
from bson import ObjectId
from pymongo.collection import Collection

from ..config import DEFAULT_STORE_CONFIG, setup_logging
from ..restaurants.data_store import connect, get_collection
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)


CANONICAL_COLUMNS: List[str] = [
    "name",
    "borough",
    "cuisine",
    "address",
    "grades",
    "restaurant_id",
]


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _parse_date(value: Any) -> datetime | None:
    """Accept ``{"$date": <ms>}``, ``{"$date": "<iso>"}`` or a plain ISO string."""
    if isinstance(value, dict):
        value = value.get("$date")
    if isinstance(value, dict):
        # Canonical extended JSON: {"$date": {"$numberLong": "..."}}
        value = value.get("$numberLong")
    if _missing(value):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) or (isinstance(value, str) and value.lstrip("-").isdigit()):
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _normalize_address(address: Any) -> dict[str, Any] | None:
    if not isinstance(address, dict):
        return None
    out: dict[str, Any] = {}
    for key in ("building", "street", "zipcode"):
        if not _missing(address.get(key)):
            out[key] = str(address[key])
    coord = address.get("coord")
    if isinstance(coord, list) and len(coord) == 2:
        try:
            out["coord"] = [float(coord[0]), float(coord[1])]
        except (TypeError, ValueError):
            pass
    return out


def _normalize_grades(grades: Any) -> list[dict[str, Any]]:
    if not isinstance(grades, list):
        return []
    out: list[dict[str, Any]] = []
    for g in grades:
        if not isinstance(g, dict):
            continue
        score = g.get("score")
        grade: dict[str, Any] = {
            "_id": ObjectId(),
            "date": _parse_date(g.get("date")),
            "score": None if _missing(score) else float(score),
        }
        if not _missing(g.get("grade")):
            grade["grade"] = str(g["grade"])
        out.append(grade)
    return out


def load_documents(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> list[dict[str, Any]]:
    """Read and normalize the source file into insert-ready documents."""
    # dtype=False keeps restaurant_id / zipcode as strings
    df = pd.read_json(config.source_path, lines=config.lines, dtype=False, convert_dates=False)

    for col in CANONICAL_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df = df[CANONICAL_COLUMNS]

    names = df["name"].fillna("").astype(str).str.strip()
    df = df[names != ""]

    has_id = df["restaurant_id"].notna()
    df = df[~has_id | ~df["restaurant_id"].duplicated(keep="first")]

    now = datetime.now(timezone.utc)
    docs: list[dict[str, Any]] = []
    for row in df.to_dict("records"):
        doc: dict[str, Any] = {"name": str(row["name"]).strip()}
        for key in ("borough", "cuisine", "restaurant_id"):
            if not _missing(row[key]):
                doc[key] = str(row[key])
        address = _normalize_address(row["address"])
        if address:
            doc["address"] = address
        doc["grades"] = _normalize_grades(row["grades"])
        doc["comments"] = []
        doc["created_at"] = now
        docs.append(doc)
    return docs


def run_ingestion(
    config: IngestionConfig = DEFAULT_INGESTION_CONFIG,
    collection: Collection | None = None,
) -> int:
    """
    Import the dataset into MongoDB.

    Steps:
    - Load and normalize the source file.
    - Optionally empty the target collection.
    - Insert documents in batches of ``config.batch_size``.

    Returns the number of documents inserted.
    """
    client = None
    if collection is None:
        client = connect(DEFAULT_STORE_CONFIG)
        collection = get_collection(client, DEFAULT_STORE_CONFIG)

    try:
        docs = load_documents(config)
        logger.info("Loaded %d restaurants from %s", len(docs), config.source_path)

        if config.drop_existing:
            deleted = collection.delete_many({}).deleted_count
            logger.info("Removed %d existing restaurants", deleted)

        inserted = 0
        for start in range(0, len(docs), config.batch_size):
            batch = docs[start:start + config.batch_size]
            inserted += len(collection.insert_many(batch).inserted_ids)
        return inserted
    finally:
        if client is not None:
            client.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import the restaurants dataset into MongoDB")
    parser.add_argument("source", type=Path, nargs="?", default=DEFAULT_INGESTION_CONFIG.source_path)
    parser.add_argument("--drop", action="store_true", help="empty the collection first")
    parser.add_argument("--json-array", action="store_true", help="source is a JSON array, not JSON lines")
    args = parser.parse_args()

    setup_logging()
    count = run_ingestion(
        IngestionConfig(source_path=args.source, lines=not args.json_array, drop_existing=args.drop)
    )
    print(f"Ingestion complete. Inserted {count} restaurants.")
