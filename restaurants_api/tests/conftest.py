from __future__ import annotations

import mongomock
import pytest

from restaurants_api.app import app, get_repository
from restaurants_api.restaurants.repository import RestaurantRepository


@pytest.fixture
def collection():
    return mongomock.MongoClient()["restaurants_test"]["restaurants"]


@pytest.fixture
def repository(collection):
    return RestaurantRepository(collection)


@pytest.fixture(autouse=True)
def _override_repository(repository):
    """Route every request in this test to a fresh in-memory collection."""
    app.dependency_overrides[get_repository] = lambda: repository
    yield
    app.dependency_overrides.clear()
