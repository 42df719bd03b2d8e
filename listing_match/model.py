from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping

RADIUS_KEYS = ("precise", "exact", "near", "extended", "far")
THRESHOLD_KEYS = ("minimal", "acceptable", "good", "excellent", "perfect")
WEIGHT_KEYS = ("geospatial", "textual", "semantic", "structural", "fuzzy")
# weights the retraining job may move; geospatial only takes part in renormalization
TUNABLE_WEIGHT_KEYS = ("textual", "semantic", "structural", "fuzzy")

DEFAULT_RADII: Dict[str, float] = {"precise": 20.0, "exact": 25.0, "near": 75.0, "extended": 200.0, "far": 500.0}
DEFAULT_THRESHOLDS: Dict[str, float] = {
    "minimal": 0.30, "acceptable": 0.45, "good": 0.60, "excellent": 0.75, "perfect": 0.90,
}
DEFAULT_WEIGHTS: Dict[str, float] = {
    "geospatial": 0.20, "textual": 0.35, "semantic": 0.25, "structural": 0.15, "fuzzy": 0.05,
}

WEIGHT_SUM_TOLERANCE = 1e-6

# export-document key -> dataclass field
_DOC_FIELDS = {
    "version": "version",
    "trainedOn": "trained_on",
    "trained_on": "trained_on",
    "accuracy": "accuracy",
    "lastUpdate": "last_update",
    "last_update": "last_update",
    "radii": "radii",
    "thresholds": "thresholds",
    "weights": "weights",
}


@dataclass(frozen=True)
class AdaptiveModel:
    """Versioned radii/thresholds/weights. Instances are snapshots: updates build a new one."""
    version: str = "1.0.0"
    trained_on: str = "Moscow dataset"
    accuracy: float = 0.87
    last_update: str = "2025-07-12"
    radii: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_RADII))
    thresholds: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_THRESHOLDS))
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    def validate(self) -> "AdaptiveModel":
        _require_keys("radii", self.radii, RADIUS_KEYS)
        _require_keys("thresholds", self.thresholds, THRESHOLD_KEYS)
        _require_keys("weights", self.weights, WEIGHT_KEYS)

        prev = 0.0
        for k in RADIUS_KEYS:
            r = self.radii[k]
            if r <= 0 or r < prev:
                raise ValueError(f"radii must be positive and non-decreasing, got {k}={r}")
            prev = r

        prev = 0.0
        for k in THRESHOLD_KEYS:
            t = self.thresholds[k]
            if not 0.0 <= t <= 1.0 or t < prev:
                raise ValueError(f"thresholds must lie in [0, 1] and be non-decreasing, got {k}={t}")
            prev = t

        if any(w < 0 for w in self.weights.values()):
            raise ValueError("weights must be non-negative")
        total = sum(self.weights[k] for k in WEIGHT_KEYS)
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"weights must sum to 1.0, got {total}")
        return self

    @classmethod
    def from_dict(cls, document: Mapping[str, Any]) -> "AdaptiveModel":
        return cls().merged(document)

    def merged(self, document: Mapping[str, Any]) -> "AdaptiveModel":
        """Shallow merge: each top-level field present in `document` replaces ours wholesale."""
        updates: Dict[str, Any] = {}
        for key, value in document.items():
            name = _DOC_FIELDS.get(key)
            if name is None or value is None:
                continue
            if name in ("radii", "thresholds", "weights"):
                value = {str(k): float(v) for k, v in dict(value).items()}
            elif name == "accuracy":
                value = float(value)
            else:
                value = str(value)
            updates[name] = value
        return replace(self, **updates).validate()

    def with_updates(self, **changes: Any) -> "AdaptiveModel":
        return replace(self, **changes)

    def bumped_version(self) -> str:
        parts = self.version.split(".")
        while len(parts) < 3:
            parts.append("0")
        try:
            patch = int(parts[2]) + 1
        except ValueError:
            patch = 1
        return f"{parts[0]}.{parts[1]}.{patch}"

    def to_export_dict(self, training_example_count: int) -> Dict[str, Any]:
        return {
            "version": self.version,
            "trainedOn": self.trained_on,
            "lastUpdate": self.last_update,
            "trainingExampleCount": int(training_example_count),
            "radii": dict(self.radii),
            "thresholds": dict(self.thresholds),
            "weights": dict(self.weights),
        }


def _require_keys(name: str, values: Mapping[str, float], keys) -> None:
    missing = [k for k in keys if k not in values]
    if missing:
        raise ValueError(f"{name} is missing {', '.join(missing)}")
