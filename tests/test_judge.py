import pytest

from listing_match.judge import apply_proximity_rule, classify_confidence
from listing_match.model import DEFAULT_THRESHOLDS
from listing_match.models import METHOD_NEAR, AddressRecord, MatchResult, no_match_result


@pytest.mark.parametrize("score,tier", [
    (1.0, "perfect"),
    (0.90, "perfect"),
    (0.80, "high"),
    (0.60, "medium"),
    (0.50, "low"),
    (0.30, "very_low"),
    (0.29, "none"),
    (0.0, "none"),
])
def test_classify_confidence(score, tier):
    assert classify_confidence(score, DEFAULT_THRESHOLDS) == tier


def _near_result(distance):
    return MatchResult(
        matched_address=AddressRecord(id="a1", address="улица ленина 10"),
        confidence="low",
        method=METHOD_NEAR,
        distance_m=distance,
        score=0.5,
    )


def test_proximity_override_within_radius():
    out = apply_proximity_rule(_near_result(15.0))
    assert out.score == 0.90
    assert out.confidence == "perfect"
    assert out.method == "smart_near_geo_proximity"
    assert out.details["proximity_override"] == {"stage_score": 0.5, "stage_confidence": "low"}


def test_proximity_override_boundary_and_outside():
    assert apply_proximity_rule(_near_result(20.0)).method == "smart_near_geo_proximity"
    out = apply_proximity_rule(_near_result(20.5))
    assert out.method == METHOD_NEAR
    assert out.score == 0.5


def test_proximity_leaves_no_match_alone():
    r = no_match_result()
    assert apply_proximity_rule(r) is r
