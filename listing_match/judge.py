from __future__ import annotations
import logging
from dataclasses import replace
from typing import Dict

from .models import PROXIMITY_SUFFIX, MatchResult

logger = logging.getLogger(__name__)

PROXIMITY_RADIUS_M = 20.0
PROXIMITY_SCORE = 0.90


def classify_confidence(score: float, thresholds: Dict[str, float]) -> str:
    if score >= thresholds["perfect"]:
        return "perfect"
    if score >= thresholds["excellent"]:
        return "high"
    if score >= thresholds["good"]:
        return "medium"
    if score >= thresholds["acceptable"]:
        return "low"
    if score >= thresholds["minimal"]:
        return "very_low"
    return "none"


def apply_proximity_rule(result: MatchResult,
                         radius_m: float = PROXIMITY_RADIUS_M,
                         score: float = PROXIMITY_SCORE) -> MatchResult:
    """A matched candidate within `radius_m` is taken as certain regardless of the text."""
    if result.matched_address is None or result.distance_m is None:
        return result
    if result.distance_m > radius_m:
        return result
    logger.debug("Proximity rule applied to %s: %.1fm", result.matched_address.id, result.distance_m)
    details = dict(result.details)
    details["proximity_override"] = {"stage_score": result.score, "stage_confidence": result.confidence}
    return replace(
        result,
        score=score,
        confidence="perfect",
        method=result.method + PROXIMITY_SUFFIX,
        details=details,
    )
