from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from .model import AdaptiveModel
from .models import AddressComponents, FeatureVector, PreprocessedAddress
from .preprocess import extract_street
from .similarity import (
    fuzzy_word_match,
    jaccard,
    lcs_ratio,
    ngram_similarity,
    normalized_levenshtein,
    tokens_are_similar,
)

# fixed internal mix of the text measures
TEXT_MIX = {"levenshtein": 0.25, "jaccard": 0.25, "bigram": 0.20, "trigram": 0.15, "lcs": 0.15}
COMPONENT_WEIGHTS = {"street": 2.0, "house_number": 1.5, "building": 1.0, "direction": 0.5}
OBVIOUS_STREET_BONUS = 0.3
OBVIOUS_HOUSE_BONUS = 0.2

_SIMPLE_HOUSE = re.compile(r"\d+[а-яё]*к?\d*")
_DIGIT = re.compile(r"\d")


def text_similarity(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    return (
        normalized_levenshtein(a, b) * TEXT_MIX["levenshtein"]
        + jaccard(a.split(), b.split()) * TEXT_MIX["jaccard"]
        + ngram_similarity(a, b, 2) * TEXT_MIX["bigram"]
        + ngram_similarity(a, b, 3) * TEXT_MIX["trigram"]
        + lcs_ratio(a, b) * TEXT_MIX["lcs"]
    )


def semantic_similarity(c1: AddressComponents, c2: AddressComponents) -> float:
    """Weighted agreement of the components present on both sides."""
    total = 0.0
    compared = 0.0

    if c1.street and c2.street:
        total += text_similarity(c1.street, c2.street) * COMPONENT_WEIGHTS["street"]
        compared += COMPONENT_WEIGHTS["street"]

    if c1.house_number and c2.house_number:
        sim = 1.0 if c1.house_number == c2.house_number else text_similarity(c1.house_number, c2.house_number)
        total += sim * COMPONENT_WEIGHTS["house_number"]
        compared += COMPONENT_WEIGHTS["house_number"]

    if c1.building and c2.building:
        sim = 1.0 if c1.building == c2.building else text_similarity(c1.building, c2.building)
        total += sim * COMPONENT_WEIGHTS["building"]
        compared += COMPONENT_WEIGHTS["building"]

    if c1.direction and c2.direction:
        total += (1.0 if c1.direction == c2.direction else 0.0) * COMPONENT_WEIGHTS["direction"]
        compared += COMPONENT_WEIGHTS["direction"]

    return total / compared if compared else 0.0


def structural_similarity(tokens1: Sequence[str], tokens2: Sequence[str]) -> float:
    if not tokens1 or not tokens2:
        return 0.0
    return jaccard(tokens1, tokens2)


def geospatial_score(distance: Optional[float], radius: float) -> float:
    if distance is None or radius <= 0:
        return 0.0
    return max(0.0, 1.0 - distance / radius)


def extract_features(listing: PreprocessedAddress, candidate: PreprocessedAddress) -> FeatureVector:
    lo = min(len(listing.original), len(candidate.original))
    hi = max(len(listing.original), len(candidate.original))
    return FeatureVector(
        text=text_similarity(listing.normalized, candidate.normalized),
        semantic=semantic_similarity(listing.components, candidate.components),
        structural=structural_similarity(listing.tokens, candidate.tokens),
        fuzzy=fuzzy_word_match(listing.normalized, candidate.normalized),
        length_ratio=lo / hi if hi else 0.0,
    )


def feature_score(features: FeatureVector, weights: Dict[str, float]) -> float:
    """Composite of the learnable sub-scores only (no distance)."""
    return (
        features.text * weights["textual"]
        + features.semantic * weights["semantic"]
        + features.structural * weights["structural"]
        + features.fuzzy * weights["fuzzy"]
    )


@dataclass(frozen=True)
class ScoreBreakdown:
    score: float
    geospatial: float
    features: FeatureVector


class Scorer:
    def score(self,
              listing: PreprocessedAddress,
              candidate: PreprocessedAddress,
              distance: Optional[float],
              model: AdaptiveModel) -> ScoreBreakdown:
        features = extract_features(listing, candidate)
        geo = geospatial_score(distance, model.radii["extended"])
        w = model.weights
        composite = geo * w["geospatial"] + feature_score(features, w)
        return ScoreBreakdown(score=min(max(composite, 0.0), 1.0), geospatial=geo, features=features)

    def fuzzy_geo_score(self,
                        listing: PreprocessedAddress,
                        candidate: PreprocessedAddress,
                        distance: Optional[float],
                        radius: float) -> Dict[str, float]:
        fuzzy = fuzzy_word_match(listing.normalized, candidate.normalized)
        geo = geospatial_score(distance, radius)
        return {"score": fuzzy * 0.7 + geo * 0.3, "fuzzy": fuzzy, "geospatial": geo}


def _simple_house(text: str) -> str:
    m = _SIMPLE_HOUSE.search(text)
    return m.group(0) if m else ""


def _obvious_tokens_match(t1: str, t2: str) -> bool:
    # house numbers one edit apart ("5" / "7") are different buildings
    if _DIGIT.search(t1) or _DIGIT.search(t2):
        return t1 == t2
    return tokens_are_similar(t1, t2)


def _conflict(x: str, y: str) -> bool:
    return bool(x and y and x != y)


def obvious_score(a: str, b: str) -> float:
    """Token overlap of two aggressively normalized strings plus street/house bonuses, capped at 1.

    Bonuses are withheld when both sides name a street, or a house, and the two differ.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    tokens1 = a.split()
    tokens2 = b.split()
    if not tokens1 or not tokens2:
        return 0.0

    matching = sum(1 for t1 in tokens1 if any(_obvious_tokens_match(t1, t2) for t2 in tokens2))
    base = matching / max(len(tokens1), len(tokens2))

    street1, street2 = extract_street(tokens1) or "", extract_street(tokens2) or ""
    house1, house2 = _simple_house(a), _simple_house(b)
    if _conflict(street1, street2) or _conflict(house1, house2):
        return base

    bonus = 0.0
    if street1 and street1 == street2:
        bonus += OBVIOUS_STREET_BONUS
    if house1 and house1 == house2:
        bonus += OBVIOUS_HOUSE_BONUS
    return min(base + bonus, 1.0)
