"""
Mutations on the comment and grade lists embedded in a restaurant document.

Every operation loads the parent first so a missing restaurant and a missing
element produce distinct ``NotFound`` messages. The write itself is a single
targeted update on the parent (``$push``, positional ``$set`` filtered on the
element id, or ``$pull``), so concurrent mutations of different elements in
the same restaurant never overwrite each other.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from bson import ObjectId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import RESTAURANT_NOT_FOUND, NotFound, ValidationFailed
from .models import CommentIn, GradeIn
from .repository import RestaurantRepository, to_object_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbeddedKind:
    field: str
    payload_model: type[BaseModel]
    not_found_message: str
    invalid_message: str


COMMENTS = EmbeddedKind(
    field="comments",
    payload_model=CommentIn,
    not_found_message="Comentario no encontrado",
    invalid_message="Datos incompletos para el comentario",
)

GRADES = EmbeddedKind(
    field="grades",
    payload_model=GradeIn,
    not_found_message="Calificación no encontrada",
    invalid_message="Datos incompletos para la calificación",
)


class EmbeddedCollection:
    """Append / update / remove one kind of embedded element."""

    def __init__(self, repository: RestaurantRepository, kind: EmbeddedKind) -> None:
        self.repository = repository
        self.kind = kind

    @property
    def _collection(self):
        return self.repository.collection

    def _validate(self, payload: BaseModel | dict[str, Any]) -> dict[str, Any]:
        if isinstance(payload, self.kind.payload_model):
            return payload.model_dump(exclude_none=True)
        if isinstance(payload, BaseModel):
            payload = payload.model_dump()
        try:
            return self.kind.payload_model.model_validate(payload).model_dump(exclude_none=True)
        except PydanticValidationError as exc:
            raise ValidationFailed(self.kind.invalid_message) from exc

    def _locate(self, parent: dict[str, Any], element_id: str) -> dict[str, Any]:
        oid = to_object_id(element_id)
        for element in parent.get(self.kind.field) or []:
            if oid is not None and element.get("_id") == oid:
                return element
        raise NotFound(self.kind.not_found_message)

    def list_by_parent(self, parent_id: str) -> list[dict[str, Any]]:
        parent = self.repository.find_one(parent_id)
        return parent.get(self.kind.field) or []

    def append(self, parent_id: str, payload: BaseModel | dict[str, Any]) -> dict[str, Any]:
        fields = self._validate(payload)
        parent = self.repository.find_one(parent_id)

        element = {"_id": ObjectId(), **fields}
        result = self._collection.update_one(
            {"_id": parent["_id"]},
            {"$push": {self.kind.field: element}},
        )
        if result.matched_count == 0:
            raise NotFound(RESTAURANT_NOT_FOUND)
        logger.info(
            "Appended %s %s to restaurant %s", self.kind.field, element["_id"], parent["_id"]
        )
        return element

    def update(
        self,
        parent_id: str,
        element_id: str,
        payload: BaseModel | dict[str, Any],
    ) -> dict[str, Any]:
        fields = self._validate(payload)
        parent = self.repository.find_one(parent_id)
        element = self._locate(parent, element_id)

        prefix = f"{self.kind.field}.$"
        result = self._collection.update_one(
            {"_id": parent["_id"], f"{self.kind.field}._id": element["_id"]},
            {"$set": {f"{prefix}.{key}": value for key, value in fields.items()}},
        )
        if result.matched_count == 0:
            raise NotFound(self.kind.not_found_message)

        return {**element, **fields}

    def remove(self, parent_id: str, element_id: str) -> dict[str, Any]:
        parent = self.repository.find_one(parent_id)
        element = self._locate(parent, element_id)

        result = self._collection.update_one(
            {"_id": parent["_id"], f"{self.kind.field}._id": element["_id"]},
            {"$pull": {self.kind.field: {"_id": element["_id"]}}},
        )
        if result.matched_count == 0:
            raise NotFound(self.kind.not_found_message)
        logger.info(
            "Removed %s %s from restaurant %s", self.kind.field, element["_id"], parent["_id"]
        )
        return element
