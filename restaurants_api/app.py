from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from .config import DEFAULT_SERVER_CONFIG, DEFAULT_STORE_CONFIG, setup_logging
from .restaurants.data_store import connect, get_collection
from .restaurants.embedded import COMMENTS, GRADES, EmbeddedCollection
from .restaurants.errors import RestaurantAPIError, ValidationFailed
from .restaurants.models import (
    CommentIn,
    CommentOut,
    GradeIn,
    GradeOut,
    RestaurantIn,
    RestaurantOut,
    RestaurantPage,
)
from .restaurants.repository import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    DEFAULT_SORT,
    MAX_LIMIT,
    RestaurantRepository,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the MongoDB client once at startup and close it at shutdown."""
    setup_logging()
    client = connect(DEFAULT_STORE_CONFIG)
    app.state.repository = RestaurantRepository(get_collection(client, DEFAULT_STORE_CONFIG))
    try:
        yield
    finally:
        client.close()
        logger.info("MongoDB connection closed")


app = FastAPI(title="API de Restaurantes", version="1.0.0", lifespan=lifespan)


# ── Dependencies ─────────────────────────────────────────────────────────


def get_repository(request: Request) -> RestaurantRepository:
    return request.app.state.repository


def get_comments(repo: RestaurantRepository = Depends(get_repository)) -> EmbeddedCollection:
    return EmbeddedCollection(repo, COMMENTS)


def get_grades(repo: RestaurantRepository = Depends(get_repository)) -> EmbeddedCollection:
    return EmbeddedCollection(repo, GRADES)


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(RestaurantAPIError)
async def restaurant_error_handler(request: Request, exc: RestaurantAPIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("%s %s -> 400: invalid input", request.method, request.url.path)
    return JSONResponse(
        status_code=400,
        content={
            "message": "Datos incompletos o no válidos",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.error("%s %s: MongoDB error", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"message": "Error en la base de datos", "error": str(exc)},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s: unexpected error", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"message": "Error interno del servidor", "error": str(exc)},
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Restaurants ──────────────────────────────────────────────────────────


@app.get("/restaurants", response_model=RestaurantPage)
def list_restaurants(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    page: int = Query(DEFAULT_PAGE, ge=1),
    sort: str = Query(DEFAULT_SORT, description='e.g. "-created_at" or "borough name"'),
    borough: str | None = None,
    cuisine: str | None = None,
    repo: RestaurantRepository = Depends(get_repository),
) -> dict:
    return repo.list_paged(
        filters={"borough": borough, "cuisine": cuisine},
        sort=sort,
        page=page,
        limit=limit,
    )


@app.post("/restaurants", response_model=RestaurantOut, status_code=201)
def create_restaurant(
    body: RestaurantIn,
    repo: RestaurantRepository = Depends(get_repository),
) -> dict:
    return repo.create(body.model_dump(exclude_unset=True))


# Declared before /restaurants/{restaurant_id} so "search" is not taken as an id.
@app.get("/restaurants/search", response_model=list[RestaurantOut])
def search_restaurants(
    name: str | None = None,
    cuisine: str | None = None,
    borough: str | None = None,
    lng: float | None = Query(None, ge=-180.0, le=180.0),
    lat: float | None = Query(None, ge=-90.0, le=90.0),
    repo: RestaurantRepository = Depends(get_repository),
) -> list[dict]:
    if (lng is None) != (lat is None):
        raise ValidationFailed("Se requieren lng y lat juntos")
    origin = (lng, lat) if lng is not None and lat is not None else None
    return repo.search(name=name, cuisine=cuisine, borough=borough, origin=origin)


@app.get("/restaurants/{restaurant_id}", response_model=RestaurantOut)
def get_restaurant(
    restaurant_id: str,
    repo: RestaurantRepository = Depends(get_repository),
) -> dict:
    return repo.find_one(restaurant_id)


@app.put("/restaurants/{restaurant_id}", response_model=RestaurantOut)
def update_restaurant(
    restaurant_id: str,
    body: RestaurantIn,
    repo: RestaurantRepository = Depends(get_repository),
) -> dict:
    return repo.update(restaurant_id, body.model_dump(exclude_unset=True))


@app.delete("/restaurants/{restaurant_id}", response_model=RestaurantOut)
def delete_restaurant(
    restaurant_id: str,
    repo: RestaurantRepository = Depends(get_repository),
) -> dict:
    return repo.delete(restaurant_id)


# ── Comments ─────────────────────────────────────────────────────────────


@app.get("/restaurants/{restaurant_id}/comments", response_model=list[CommentOut])
def list_comments(
    restaurant_id: str,
    comments: EmbeddedCollection = Depends(get_comments),
) -> list[dict]:
    return comments.list_by_parent(restaurant_id)


@app.post("/restaurants/{restaurant_id}/comments", response_model=CommentOut, status_code=201)
def add_comment(
    restaurant_id: str,
    body: CommentIn,
    comments: EmbeddedCollection = Depends(get_comments),
) -> dict:
    return comments.append(restaurant_id, body)


@app.put("/restaurants/{restaurant_id}/comments/{comment_id}", response_model=CommentOut)
def update_comment(
    restaurant_id: str,
    comment_id: str,
    body: CommentIn,
    comments: EmbeddedCollection = Depends(get_comments),
) -> dict:
    return comments.update(restaurant_id, comment_id, body)


@app.delete("/restaurants/{restaurant_id}/comments/{comment_id}", response_model=CommentOut)
def delete_comment(
    restaurant_id: str,
    comment_id: str,
    comments: EmbeddedCollection = Depends(get_comments),
) -> dict:
    return comments.remove(restaurant_id, comment_id)


# ── Grades ───────────────────────────────────────────────────────────────


@app.get("/restaurants/{restaurant_id}/grades", response_model=list[GradeOut])
def list_grades(
    restaurant_id: str,
    grades: EmbeddedCollection = Depends(get_grades),
) -> list[dict]:
    return grades.list_by_parent(restaurant_id)


@app.post("/restaurants/{restaurant_id}/grades", response_model=GradeOut, status_code=201)
def add_grade(
    restaurant_id: str,
    body: GradeIn,
    grades: EmbeddedCollection = Depends(get_grades),
) -> dict:
    return grades.append(restaurant_id, body)


@app.put("/restaurants/{restaurant_id}/grades/{grade_id}", response_model=GradeOut)
def update_grade(
    restaurant_id: str,
    grade_id: str,
    body: GradeIn,
    grades: EmbeddedCollection = Depends(get_grades),
) -> dict:
    return grades.update(restaurant_id, grade_id, body)


@app.delete("/restaurants/{restaurant_id}/grades/{grade_id}", response_model=GradeOut)
def delete_grade(
    restaurant_id: str,
    grade_id: str,
    grades: EmbeddedCollection = Depends(get_grades),
) -> dict:
    return grades.remove(restaurant_id, grade_id)


def main() -> None:
    uvicorn.run(
        "restaurants_api.app:app",
        host=DEFAULT_SERVER_CONFIG.host,
        port=DEFAULT_SERVER_CONFIG.port,
        log_level=DEFAULT_SERVER_CONFIG.log_level.lower(),
    )


if __name__ == "__main__":
    main()
