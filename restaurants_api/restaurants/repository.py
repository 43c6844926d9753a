from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from .errors import RESTAURANT_NOT_FOUND, NotFound, ValidationFailed
from .geo import sort_by_proximity

logger = logging.getLogger(__name__)

DEFAULT_SORT = "-created_at"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

_SORT_FIELD_RE = re.compile(r"^[A-Za-z_][\w.]*$")


def to_object_id(value: str | ObjectId) -> ObjectId | None:
    """Parse a 24-hex identifier. Returns ``None`` for malformed input."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def parse_sort(sort: str | None) -> list[tuple[str, int]]:
    """
    Turn a sort string such as ``"-created_at name"`` into a pymongo sort spec.

    Fields are separated by spaces or commas; a leading ``-`` means descending.
    ``_id`` is appended as a tiebreaker so pages never overlap.
    """
    spec: list[tuple[str, int]] = []
    for token in re.split(r"[\s,]+", (sort or DEFAULT_SORT).strip()):
        if not token:
            continue
        direction = ASCENDING
        if token[0] in "-+":
            direction = DESCENDING if token[0] == "-" else ASCENDING
            token = token[1:]
        if not _SORT_FIELD_RE.match(token):
            raise ValidationFailed(f"Campo de ordenación no válido: {token!r}")
        spec.append((token, direction))

    if not spec:
        return parse_sort(DEFAULT_SORT)
    if all(field != "_id" for field, _ in spec):
        spec.append(("_id", spec[-1][1]))
    return spec


def _exact_ci(value: str) -> dict[str, str]:
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}


def _contains_ci(value: str) -> dict[str, str]:
    return {"$regex": re.escape(value), "$options": "i"}


def _with_element_ids(items: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    return [{"_id": ObjectId(), **item} for item in items or []]


class RestaurantRepository:
    """Typed access to the ``restaurants`` collection."""

    def __init__(self, collection: Collection) -> None:
        self.collection = collection

    # ── Reads ────────────────────────────────────────────────────────────

    def list_paged(
        self,
        filters: dict[str, Any] | None = None,
        sort: str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> dict[str, Any]:
        if page < 1:
            raise ValidationFailed("El número de página debe ser mayor o igual a 1")
        if not 1 <= limit <= MAX_LIMIT:
            raise ValidationFailed(f"El límite debe estar entre 1 y {MAX_LIMIT}")

        query = {k: _exact_ci(v) for k, v in (filters or {}).items() if v}
        skip = (page - 1) * limit

        cursor = self.collection.find(query).sort(parse_sort(sort)).skip(skip).limit(limit)
        data = list(cursor)
        total = self.collection.count_documents(query)

        return {
            "total": total,
            "page": page,
            "pages": math.ceil(total / limit),
            "limit": limit,
            "data": data,
        }

    def find_one(self, restaurant_id: str | ObjectId) -> dict[str, Any]:
        oid = to_object_id(restaurant_id)
        doc = self.collection.find_one({"_id": oid}) if oid is not None else None
        if doc is None:
            raise NotFound(RESTAURANT_NOT_FOUND)
        return doc

    def search(
        self,
        name: str | None = None,
        cuisine: str | None = None,
        borough: str | None = None,
        origin: tuple[float, float] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Conjunctive search over the non-empty filters.

        ``name`` matches as a case-insensitive substring, ``cuisine`` and
        ``borough`` as case-insensitive exact values. With an ``origin``
        given as ``(lng, lat)`` results come back nearest-first.
        """
        query: dict[str, Any] = {}
        if name:
            query["name"] = _contains_ci(name)
        if cuisine:
            query["cuisine"] = _exact_ci(cuisine)
        if borough:
            query["borough"] = _exact_ci(borough)

        docs = list(self.collection.find(query))
        if origin is None:
            return docs
        lng, lat = origin
        return sort_by_proximity(docs, lng, lat)

    # ── Writes ───────────────────────────────────────────────────────────

    def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        doc = {k: v for k, v in fields.items() if v is not None}
        doc["grades"] = _with_element_ids(doc.get("grades"))
        doc["comments"] = _with_element_ids(doc.get("comments"))
        doc["created_at"] = datetime.now(timezone.utc)

        result = self.collection.insert_one(doc)
        logger.info("Created restaurant %s", result.inserted_id)
        return self.find_one(result.inserted_id)

    def update(self, restaurant_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        oid = to_object_id(restaurant_id)
        if oid is None:
            raise NotFound(RESTAURANT_NOT_FOUND)

        changes = dict(fields)
        for key in ("grades", "comments"):
            if key in changes:
                changes[key] = _with_element_ids(changes[key])

        if not changes:
            return self.find_one(oid)

        updated = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFound(RESTAURANT_NOT_FOUND)
        return updated

    def delete(self, restaurant_id: str) -> dict[str, Any]:
        oid = to_object_id(restaurant_id)
        deleted = (
            self.collection.find_one_and_delete({"_id": oid}) if oid is not None else None
        )
        if deleted is None:
            raise NotFound(RESTAURANT_NOT_FOUND)
        logger.info("Deleted restaurant %s", oid)
        return deleted
