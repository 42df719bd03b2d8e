import pytest

from conftest import CENTER, record_at
from listing_match.candidates import candidates_in_radius, candidates_with_distance
from listing_match.models import AddressRecord, Coordinates, Listing
from listing_match.utils import distance_m, haversine_m, offset_coordinates


def test_haversine_known_distance():
    # one degree of latitude on the mean-radius sphere
    assert haversine_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(111194.93, rel=1e-6)
    assert haversine_m(55.75, 37.6, 55.75, 37.6) == 0.0


def test_distance_with_missing_coordinates():
    assert distance_m(CENTER, None) is None
    assert distance_m(Coordinates(55.7500, 37.6000), Coordinates(55.7501, 37.6001)) == pytest.approx(12.7, abs=0.2)


def test_offset_coordinates_roughly_preserves_metres():
    assert distance_m(CENTER, offset_coordinates(CENTER, north_m=100, east_m=0)) == pytest.approx(100, rel=0.01)
    assert distance_m(CENTER, offset_coordinates(CENTER, north_m=0, east_m=100)) == pytest.approx(100, rel=0.01)


def test_radius_filter_keeps_catalog_order_and_skips_missing_coordinates():
    catalog = [
        record_at("far", "x", north_m=300),
        record_at("near2", "x", north_m=-40),
        AddressRecord(id="nocoords", address="x"),
        record_at("near1", "x", east_m=10),
    ]
    assert [r.id for r in candidates_in_radius(CENTER, 75, catalog)] == ["near2", "near1"]
    assert all(d <= 75 for _, d in candidates_with_distance(CENTER, 75, catalog))
    assert candidates_in_radius(None, 1000, catalog) == []


def test_coordinates_parsing():
    assert Coordinates.parse({"lat": "55.75", "lon": "37.6"}) == Coordinates(55.75, 37.6)
    assert Coordinates.parse({"lat": 55.75}) is None
    assert Coordinates.parse({"lat": 55.75, "lng": None, "lon": 37.6}) == Coordinates(55.75, 37.6)
    assert Coordinates.parse({"lat": "n/a", "lng": 37.6}) is None
    listing = Listing.from_dict({"id": 7, "address": "ул. Ленина 1", "lat": 55.75, "lng": 37.6})
    assert listing.id == "7"
    assert listing.coordinates == Coordinates(55.75, 37.6)
