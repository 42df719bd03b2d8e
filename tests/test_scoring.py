import pytest

from listing_match.model import AdaptiveModel
from listing_match.models import FeatureVector
from listing_match.preprocess import preprocess_address
from listing_match.scoring import (
    Scorer,
    extract_features,
    feature_score,
    geospatial_score,
    obvious_score,
    semantic_similarity,
    text_similarity,
)


def test_geospatial_score_decays_linearly():
    assert geospatial_score(0, 200) == 1.0
    assert geospatial_score(50, 200) == pytest.approx(0.75)
    assert geospatial_score(300, 200) == 0.0
    assert geospatial_score(None, 200) == 0.0


def test_text_similarity_bounds():
    assert text_similarity("улица ленина 10", "улица ленина 10") == pytest.approx(1.0)
    assert text_similarity("", "ленина") == 0.0
    assert 0.0 < text_similarity("улица ленина 10", "ленина улица 10") < 1.0


def test_semantic_similarity_only_counts_shared_components():
    a = preprocess_address("ул. Ленина, 10")
    b = preprocess_address("Ленина улица 10")
    assert semantic_similarity(a.components, b.components) == pytest.approx(1.0)
    assert semantic_similarity(preprocess_address("").components, b.components) == 0.0


def test_features_and_feature_score():
    f = extract_features(preprocess_address("ул. Ленина, 10"), preprocess_address("Ленина улица 10"))
    assert 0.0 <= f.text <= 1.0
    assert f.semantic == pytest.approx(1.0)
    assert f.structural == pytest.approx(1.0)
    weights = {"textual": 0.5, "semantic": 0.5, "structural": 0.0, "fuzzy": 0.0}
    assert feature_score(FeatureVector(1.0, 0.5, 1.0, 1.0), weights) == pytest.approx(0.75)


def test_composite_score_prefers_matching_text_and_stays_in_range():
    scorer = Scorer()
    model = AdaptiveModel()
    listing = preprocess_address("ул. Тверская, 5")
    good = scorer.score(listing, preprocess_address("Тверская улица 5"), 50.0, model)
    bad = scorer.score(listing, preprocess_address("Садовая улица 99"), 50.0, model)
    assert good.score > bad.score
    for s in (good, bad):
        assert 0.0 <= s.score <= 1.0
        assert s.geospatial == pytest.approx(0.75)


def test_fuzzy_geo_score_mix():
    scorer = Scorer()
    out = scorer.fuzzy_geo_score(preprocess_address("тверская"), preprocess_address("тверская"), 250.0, 500.0)
    assert out["fuzzy"] == 1.0
    assert out["score"] == pytest.approx(0.7 + 0.3 * 0.5)


def test_obvious_score():
    assert obvious_score("улица ленина 10к1", "ленина улица 10к1") == 1.0
    assert obvious_score("улица ленина 10к1", "улица ленина 10к1") == 1.0
    assert obvious_score("", "улица ленина 10") == 0.0
    # different house numbers never overlap, even one edit apart
    assert obvious_score("улица ленина 5", "улица ленина 7") == pytest.approx(2 / 3)


def test_obvious_score_bonuses():
    # half the tokens overlap; street "ленина" and house "10" add both bonuses
    score = obvious_score("ленина улица 10", "ленина проспект 10 стр")
    assert score == pytest.approx(min(2 / 4 + 0.3 + 0.2, 1.0))


def test_compact_structure_numbers_are_told_apart():
    a = preprocess_address("Ленинский проспект, 5с1")
    b = preprocess_address("Ленинский проспект, 7с1")
    assert semantic_similarity(a.components, b.components) < 1.0


def test_obvious_score_withholds_bonuses_for_different_streets():
    # "малая" and "большая" differ, the rest of the tokens overlap
    score = obvious_score("малая бронная улица 3", "большая бронная улица 3")
    assert score == pytest.approx(3 / 4)
    assert score < 0.9
