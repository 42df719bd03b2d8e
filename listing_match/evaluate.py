from __future__ import annotations
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from .model import AdaptiveModel
from .preprocess import AddressPreprocessor
from .scoring import extract_features, feature_score

ScoredLabel = Tuple[float, bool]


def confusion(scored: Iterable[ScoredLabel], threshold: float) -> Dict[str, Any]:
    """Metrics for "score >= threshold" read as a predicted match."""
    tp = fp = tn = fn = 0
    for score, label in scored:
        pred = score >= threshold
        if pred and label: tp += 1
        elif pred and not label: fp += 1
        elif not pred and not label: tn += 1
        else: fn += 1

    prec = tp / (tp+fp) if (tp+fp) else 0.0
    rec  = tp / (tp+fn) if (tp+fn) else 0.0
    f1   = (2*prec*rec/(prec+rec)) if (prec+rec) else 0.0
    return {"tp": tp, "fp": fp, "tn": tn, "fn": fn, "precision": prec, "recall": rec, "f1": f1}


def best_f1_threshold(scored: Sequence[ScoredLabel], default: float = 0.5) -> Tuple[float, Dict[str, Any]]:
    """Try every observed score (highest first) as the decision threshold; keep the best F1.
    Ties keep the higher threshold."""
    ordered = sorted(scored, key=lambda x: x[0], reverse=True)
    best_threshold = default
    best = {"f1": 0.0}
    seen = set()
    for score, _label in ordered:
        if score in seen:
            continue
        seen.add(score)
        metrics = confusion(ordered, score)
        if metrics["f1"] > best["f1"]:
            best = metrics
            best_threshold = score
    return best_threshold, best


def score_pairs(preprocessor: AddressPreprocessor,
                model: AdaptiveModel,
                pairs: Iterable[Tuple[str, str, bool]]) -> List[ScoredLabel]:
    out: List[ScoredLabel] = []
    for listing_text, candidate_text, label in pairs:
        features = extract_features(preprocessor.preprocess(listing_text), preprocessor.preprocess(candidate_text))
        out.append((feature_score(features, model.weights), bool(label)))
    return out


def evaluate_current(preprocessor: AddressPreprocessor,
                     model: AdaptiveModel,
                     pairs: Iterable[Tuple[str, str, bool]]) -> Dict[str, Any]:
    """Metrics of the model's `good` threshold over labelled address pairs."""
    scored = score_pairs(preprocessor, model, pairs)
    metrics = confusion(scored, model.thresholds["good"])
    metrics["threshold"] = model.thresholds["good"]
    metrics["n"] = len(scored)
    return metrics
