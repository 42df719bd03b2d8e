from datetime import date

import pytest

from listing_match.model import THRESHOLD_KEYS, AdaptiveModel
from listing_match.models import FeatureVector, TrainingExample
from listing_match.training import Trainer, TrainingBuffer


def _example(value, is_correct):
    return TrainingExample(
        listing_text="l",
        candidate_text="c",
        is_correct=is_correct,
        features=FeatureVector(value, value, value, value),
        timestamp=0.0,
    )


def _separable(n_pos=15, n_neg=15):
    return [_example(0.9, True) for _ in range(n_pos)] + [_example(0.1, False) for _ in range(n_neg)]


def test_buffer_drops_oldest_when_full():
    buf = TrainingBuffer(capacity=3)
    for i in range(5):
        buf.append(_example(i / 10, True))
    assert len(buf) == 3
    assert [e.features.text for e in buf] == [0.2, 0.3, 0.4]


def test_retrain_needs_both_labels():
    trainer = Trainer()
    assert trainer.retrain(AdaptiveModel(), _separable(n_pos=30, n_neg=9)) is None
    assert trainer.retrain(AdaptiveModel(), _separable(n_pos=9, n_neg=30)) is None


def test_retrain_updates_weights_and_thresholds():
    outcome = Trainer().retrain(AdaptiveModel(), _separable(), today=date(2026, 1, 2))
    assert outcome is not None
    model = outcome.model

    assert model.version == "1.0.1"
    assert model.last_update == "2026-01-02"
    assert sum(model.weights.values()) == pytest.approx(1.0, abs=1e-9)

    # equal importance pulls every tunable weight towards 0.25 before renormalization
    raw = {"geospatial": 0.2, "textual": 0.34, "semantic": 0.25, "structural": 0.16, "fuzzy": 0.07}
    total = sum(raw.values())
    for k, v in raw.items():
        assert model.weights[k] == pytest.approx(v / total)

    t = model.thresholds
    assert [t[k] for k in THRESHOLD_KEYS] == sorted(t[k] for k in THRESHOLD_KEYS)
    assert t["good"] == pytest.approx(outcome.best_threshold)
    assert t["acceptable"] == pytest.approx(outcome.best_threshold - 0.1)
    assert t["minimal"] == 0.30
    assert t["perfect"] == 0.90
    assert outcome.metrics["f1"] == 1.0


def test_threshold_repair_keeps_order():
    # every example scores the same, so the best threshold is that score
    examples = [_example(1.0, True)] * 10 + [_example(1.0, False)] * 10
    trainer = Trainer()
    thresholds, best, _ = trainer.optimize_thresholds(
        AdaptiveModel().thresholds,
        {"textual": 0.4, "semantic": 0.3, "structural": 0.2, "fuzzy": 0.1},
        examples,
    )
    assert best == pytest.approx(1.0)
    assert thresholds["good"] == pytest.approx(0.9)
    assert thresholds["excellent"] == pytest.approx(0.9)
    assert [thresholds[k] for k in THRESHOLD_KEYS] == sorted(thresholds.values())


def test_weights_kept_when_features_do_not_separate():
    examples = [_example(0.5, True)] * 10 + [_example(0.5, False)] * 10
    trainer = Trainer()
    weights, importance = trainer.optimize_weights(
        AdaptiveModel().weights,
        [e for e in examples if e.is_correct],
        [e for e in examples if not e.is_correct],
    )
    assert sum(importance.values()) == 0.0
    assert weights == pytest.approx(AdaptiveModel().weights)
