import pytest
from fastapi.testclient import TestClient

from app import create_app
from conftest import record_at

CATALOG = [
    record_at("a7", "Тверская улица 7", north_m=50),
    record_at("a5", "Тверская улица 5", north_m=300),
]
LISTING = {"id": "l1", "address": "ул. Тверская, 5", "coordinates": {"lat": 55.75, "lng": 37.6}}


@pytest.fixture
def client(matcher):
    return TestClient(create_app(matcher, lambda: list(CATALOG)))


def test_match_uses_catalog_when_no_candidates_given(client):
    resp = client.post("/match", json={"listing": LISTING})
    assert resp.status_code == 200
    body = resp.json()
    assert body["address"]["id"] == "a7"
    assert body["method"] == "smart_near_geo"
    assert set(body) >= {"confidence", "score", "distance", "textSimilarity", "processingTime"}


def test_match_with_explicit_candidates(client):
    candidates = [{"id": "x1", "address": "Садовая 99", "coordinates": {"lat": 55.7502, "lng": 37.6}}]
    body = client.post("/match", json={"listing": LISTING, "candidates": candidates}).json()
    assert body["address"]["id"] == "x1"
    assert body["method"] == "exact_geo_smart"


def test_empty_address_is_rejected(client):
    resp = client.post("/match", json={"listing": {"id": "l1", "address": "  "}})
    assert resp.status_code == 400


def test_feedback_and_stats(client):
    resp = client.post("/feedback", json={
        "listing_address": "ул. Ленина, 10", "candidate_address": "Ленина улица 10", "is_correct": True,
    })
    assert resp.status_code == 200
    assert resp.json()["trainingExamples"] == 1
    assert client.post("/feedback", json={
        "listing_address": "", "candidate_address": "x", "is_correct": False,
    }).status_code == 400
    assert client.get("/stats").json()["trainingExamples"] == 1


def test_correct_endpoint(client):
    client.post("/match", json={"listing": LISTING})
    resp = client.post("/correct", json={"listing": LISTING, "correct_address_id": "a5"})
    assert resp.status_code == 200
    assert resp.json()["examplesAdded"] == 2
    assert client.post("/correct", json={"listing": LISTING, "correct_address_id": "zz"}).status_code == 404


def test_model_export(client):
    doc = client.get("/model").json()
    assert doc["version"] == "1.0.0"
    assert doc["trainingExampleCount"] == 0
    assert set(doc["weights"]) == {"geospatial", "textual", "semantic", "structural", "fuzzy"}


def test_match_accepts_lon_for_longitude(client):
    listing = {"id": "l2", "address": "ул. Тверская, 5", "coordinates": {"lat": 55.75, "lon": 37.6}}
    body = client.post("/match", json={"listing": listing}).json()
    assert body["address"]["id"] == "a7"
    assert body["method"] == "smart_near_geo"


def test_coordinates_without_longitude_are_rejected(client):
    listing = {"id": "l3", "address": "ул. Тверская, 5", "coordinates": {"lat": 55.75}}
    assert client.post("/match", json={"listing": listing}).status_code == 422
