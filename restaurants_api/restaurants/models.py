from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, Field


def _object_id_to_str(value: Any) -> Any:
    return str(value) if isinstance(value, ObjectId) else value


DocumentId = Annotated[str, BeforeValidator(_object_id_to_str)]


# ── Request bodies ───────────────────────────────────────────────────────


class CommentIn(BaseModel):
    comment: str = Field(..., min_length=1)
    date: datetime


class GradeIn(BaseModel):
    score: float
    date: datetime
    grade: str | None = Field(default=None, description='Letter grade, e.g. "A"')


class AddressIn(BaseModel):
    building: str | None = None
    street: str | None = None
    zipcode: str | None = None
    coord: list[float] | None = Field(
        default=None, description="[longitude, latitude]"
    )


class RestaurantIn(BaseModel):
    name: str | None = None
    borough: str | None = None
    cuisine: str | None = None
    address: AddressIn | None = None
    grades: list[GradeIn] | None = None
    comments: list[CommentIn] | None = None
    restaurant_id: str | None = None


# ── Responses ────────────────────────────────────────────────────────────


class CommentOut(BaseModel):
    id: DocumentId | None = Field(default=None, alias="_id")
    date: datetime | None = None
    comment: str | None = None


class GradeOut(BaseModel):
    id: DocumentId | None = Field(default=None, alias="_id")
    date: datetime | None = None
    score: float | None = None
    grade: str | None = None


class AddressOut(BaseModel):
    building: str | None = None
    street: str | None = None
    zipcode: str | None = None
    coord: list[float] | None = None


class RestaurantOut(BaseModel):
    id: DocumentId = Field(..., alias="_id")
    name: str | None = None
    borough: str | None = None
    cuisine: str | None = None
    address: AddressOut | None = None
    grades: list[GradeOut] = Field(default_factory=list)
    comments: list[CommentOut] = Field(default_factory=list)
    restaurant_id: str | None = None
    created_at: datetime | None = None


class RestaurantPage(BaseModel):
    total: int
    page: int
    pages: int
    limit: int
    data: list[RestaurantOut]
