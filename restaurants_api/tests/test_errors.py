from __future__ import annotations

from unittest.mock import MagicMock, patch

import mongomock
import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from restaurants_api.app import app
from restaurants_api.config import StoreConfig
from restaurants_api.restaurants.data_store import connect
from restaurants_api.restaurants.errors import StoreUnavailable
from restaurants_api.restaurants.repository import RestaurantRepository

client = TestClient(app)


def _boom(*args, **kwargs):
    raise ServerSelectionTimeoutError("no servers available")


def test_store_failure_on_list_maps_to_500(repository, monkeypatch):
    monkeypatch.setattr(repository, "list_paged", _boom)
    resp = client.get("/restaurants")
    assert resp.status_code == 500
    body = resp.json()
    assert body["message"] == "Error en la base de datos"
    assert "no servers available" in body["error"]


def test_store_failure_on_comment_append_maps_to_500(repository, monkeypatch):
    rid = client.post("/restaurants", json={"name": "A"}).json()["_id"]
    monkeypatch.setattr(repository.collection, "update_one", _boom)
    resp = client.post(f"/restaurants/{rid}/comments", json={"comment": "x", "date": "2024-01-01"})
    assert resp.status_code == 500
    assert "message" in resp.json()
    # nothing was committed
    monkeypatch.undo()
    assert client.get(f"/restaurants/{rid}/comments").json() == []


def test_validation_errors_carry_message():
    resp = client.post("/restaurants/abc/grades", json={"score": "high", "date": "2024-01-01"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"]
    assert body["errors"]


@patch("restaurants_api.restaurants.data_store.MongoClient")
def test_connect_failure_is_fatal(mock_client_cls):
    mock_client_cls.return_value.admin.command.side_effect = ServerSelectionTimeoutError("down")
    with pytest.raises(StoreUnavailable) as exc_info:
        connect(StoreConfig(uri="mongodb://nowhere:27017", timeout_ms=10))
    assert exc_info.value.detail == "down"
    mock_client_cls.return_value.close.assert_called_once()


@patch("restaurants_api.restaurants.data_store.MongoClient")
def test_connect_pings_server(mock_client_cls):
    mock_client_cls.return_value = MagicMock()
    result = connect(StoreConfig(uri="mongodb://db:27017", timeout_ms=10))
    assert result is mock_client_cls.return_value
    result.admin.command.assert_called_once_with("ping")


@patch("restaurants_api.app.connect")
def test_lifespan_opens_and_closes_store(mock_connect):
    mongo = mongomock.MongoClient()
    mongo.close = MagicMock()
    mock_connect.return_value = mongo
    with TestClient(app):
        assert isinstance(app.state.repository, RestaurantRepository)
    mongo.close.assert_called_once()
