from listing_match.evaluate import best_f1_threshold, confusion, evaluate_current
from listing_match.model import AdaptiveModel
from listing_match.preprocess import AddressPreprocessor


def test_confusion_counts():
    scored = [(0.9, True), (0.7, False), (0.4, True), (0.1, False)]
    m = confusion(scored, 0.5)
    assert (m["tp"], m["fp"], m["tn"], m["fn"]) == (1, 1, 1, 1)
    assert m["precision"] == 0.5
    assert m["recall"] == 0.5
    assert m["f1"] == 0.5


def test_confusion_without_predictions_has_zero_f1():
    m = confusion([(0.1, True)], 0.5)
    assert m["precision"] == 0.0
    assert m["f1"] == 0.0


def test_best_f1_threshold():
    scored = [(0.9, True), (0.8, True), (0.6, False), (0.3, False)]
    threshold, metrics = best_f1_threshold(scored)
    assert threshold == 0.8
    assert metrics["f1"] == 1.0


def test_best_f1_threshold_defaults_without_positives():
    threshold, metrics = best_f1_threshold([(0.4, False)])
    assert threshold == 0.5
    assert metrics["f1"] == 0.0
    assert best_f1_threshold([]) == (0.5, {"f1": 0.0})


def test_evaluate_current_uses_good_threshold():
    pairs = [
        ("ул. Ленина, 10", "Ленина улица 10", True),
        ("ул. Ленина, 10", "Садовая улица 99", False),
    ]
    m = evaluate_current(AddressPreprocessor(), AdaptiveModel(), pairs)
    assert m["threshold"] == 0.60
    assert m["n"] == 2
    assert m["tp"] == 1
    assert m["tn"] == 1
