from __future__ import annotations

from fastapi.testclient import TestClient

from restaurants_api.app import app

client = TestClient(app)

# Roughly 1 km and 10 km from (-73.9, 40.7)
NEAR = [-73.91, 40.705]
FAR = [-73.8, 40.75]


def _create(**fields) -> dict:
    return client.post("/restaurants", json=fields).json()


def test_search_orders_nearest_first():
    far = _create(name="Far", cuisine="Italian", address={"coord": FAR})
    near = _create(name="Near", cuisine="Italian", address={"coord": NEAR})
    resp = client.get("/restaurants/search", params={"lng": -73.9, "lat": 40.7})
    assert resp.status_code == 200
    assert [r["_id"] for r in resp.json()] == [near["_id"], far["_id"]]


def test_search_without_coordinates_sorts_last():
    nowhere = _create(name="Nowhere")
    near = _create(name="Near", address={"coord": NEAR})
    body = client.get("/restaurants/search", params={"lng": -73.9, "lat": 40.7}).json()
    assert [r["_id"] for r in body] == [near["_id"], nowhere["_id"]]


def test_search_filters_are_conjunctive():
    _create(name="Pizza Roma", cuisine="Italian", borough="Brooklyn")
    _create(name="Pizza Napoli", cuisine="Italian", borough="Queens")
    _create(name="Sushi Go", cuisine="Japanese", borough="Brooklyn")
    body = client.get(
        "/restaurants/search", params={"name": "pizza", "borough": "brooklyn"}
    ).json()
    assert [r["name"] for r in body] == ["Pizza Roma"]


def test_search_cuisine_is_exact_match():
    _create(name="A", cuisine="Italian")
    _create(name="B", cuisine="Italian/Pizza")
    body = client.get("/restaurants/search", params={"cuisine": "italian"}).json()
    assert [r["name"] for r in body] == ["A"]


def test_search_name_is_literal_not_regex():
    _create(name="A.B")
    _create(name="AxB")
    body = client.get("/restaurants/search", params={"name": "a.b"}).json()
    assert [r["name"] for r in body] == ["A.B"]


def test_search_empty_filters_return_everything():
    _create(name="A")
    _create(name="B")
    body = client.get("/restaurants/search", params={"name": ""}).json()
    assert len(body) == 2


def test_search_filters_combined_with_origin():
    _create(name="Far", cuisine="Italian", address={"coord": FAR})
    _create(name="Near", cuisine="Japanese", address={"coord": NEAR})
    body = client.get(
        "/restaurants/search", params={"cuisine": "Italian", "lng": -73.9, "lat": 40.7}
    ).json()
    assert [r["name"] for r in body] == ["Far"]


def test_search_requires_both_coordinates():
    resp = client.get("/restaurants/search", params={"lng": -73.9})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Se requieren lng y lat juntos"}


def test_search_rejects_out_of_range_coordinates():
    resp = client.get("/restaurants/search", params={"lng": -73.9, "lat": 123})
    assert resp.status_code == 400
