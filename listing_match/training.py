from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass
from datetime import date
from typing import Any, Deque, Dict, Iterator, List, Optional, Sequence

from .evaluate import best_f1_threshold
from .model import TUNABLE_WEIGHT_KEYS, AdaptiveModel
from .models import TrainingExample
from .scoring import feature_score

logger = logging.getLogger(__name__)

# tunable weight -> FeatureVector attribute
_FEATURE_OF = {"textual": "text", "semantic": "semantic", "structural": "structural", "fuzzy": "fuzzy"}


class TrainingBuffer:
    """Fixed-capacity queue of labelled examples; appending to a full buffer drops the oldest."""

    def __init__(self, capacity: int = 1000):
        self.capacity = capacity
        self._items: Deque[TrainingExample] = deque(maxlen=capacity)

    def append(self, example: TrainingExample) -> None:
        self._items.append(example)

    def snapshot(self) -> List[TrainingExample]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[TrainingExample]:
        return iter(list(self._items))


@dataclass(frozen=True)
class RetrainOutcome:
    model: AdaptiveModel
    best_threshold: float
    metrics: Dict[str, Any]
    importance: Dict[str, float]


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _mean_features(examples: Sequence[TrainingExample]) -> Dict[str, float]:
    n = len(examples)
    return {
        key: sum(getattr(e.features, attr) for e in examples) / n
        for key, attr in _FEATURE_OF.items()
    }


class Trainer:
    def __init__(self,
                 min_positive: int = 10,
                 min_negative: int = 10,
                 learning_rate: float = 0.1):
        self.min_positive = min_positive
        self.min_negative = min_negative
        self.learning_rate = learning_rate

    def retrain(self,
                model: AdaptiveModel,
                examples: Sequence[TrainingExample],
                today: Optional[date] = None) -> Optional[RetrainOutcome]:
        positives = [e for e in examples if e.is_correct]
        negatives = [e for e in examples if not e.is_correct]
        if len(positives) < self.min_positive or len(negatives) < self.min_negative:
            logger.info("Not enough examples for retraining (%d positive, %d negative)",
                        len(positives), len(negatives))
            return None

        weights, importance = self.optimize_weights(model.weights, positives, negatives)
        thresholds, best_threshold, metrics = self.optimize_thresholds(model.thresholds, weights, examples)

        updated = model.with_updates(
            weights=weights,
            thresholds=thresholds,
            version=model.bumped_version(),
            last_update=(today or date.today()).isoformat(),
        ).validate()
        logger.info("Model retrained to v%s on %d examples (threshold %.3f, f1 %.3f)",
                    updated.version, len(examples), best_threshold, metrics.get("f1", 0.0))
        return RetrainOutcome(model=updated, best_threshold=best_threshold, metrics=metrics, importance=importance)

    def optimize_weights(self,
                         weights: Dict[str, float],
                         positives: Sequence[TrainingExample],
                         negatives: Sequence[TrainingExample]):
        avg_pos = _mean_features(positives)
        avg_neg = _mean_features(negatives)
        importance = {k: abs(avg_pos[k] - avg_neg[k]) for k in TUNABLE_WEIGHT_KEYS}
        total_importance = sum(importance.values())

        out = dict(weights)
        if total_importance > 0:
            for k in TUNABLE_WEIGHT_KEYS:
                out[k] += self.learning_rate * (importance[k] / total_importance - out[k])
        else:
            logger.debug("Features do not separate the labels; weights kept")

        total = sum(out.values())
        return {k: v / total for k, v in out.items()}, importance

    def optimize_thresholds(self,
                            thresholds: Dict[str, float],
                            weights: Dict[str, float],
                            examples: Sequence[TrainingExample]):
        scored = [(feature_score(e.features, weights), e.is_correct) for e in examples]
        best, metrics = best_f1_threshold(scored)

        out = dict(thresholds)
        lo, hi = out["minimal"], out["perfect"]
        good = _clamp(best, lo, hi)
        out["good"] = good
        out["acceptable"] = _clamp(max(0.3, best - 0.1), lo, good)
        out["excellent"] = _clamp(min(0.9, best + 0.15), good, hi)
        return out, best, metrics
