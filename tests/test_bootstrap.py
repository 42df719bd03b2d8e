import json

import pytest

from listing_match.bootstrap import fetch_pretrained_model, start_bootstrap
from listing_match.config import Config
from listing_match.model import AdaptiveModel
from listing_match.pipeline import SmartAddressMatcher

PRETRAINED = {
    "version": "1.4.0",
    "trainedOn": "Moscow dataset",
    "lastUpdate": "2026-03-01",
    "trainingExampleCount": 800,
    "thresholds": {"minimal": 0.25, "acceptable": 0.4, "good": 0.55, "excellent": 0.7, "perfect": 0.9},
}


def _write(tmp_path, document):
    path = tmp_path / "pretrained-model.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


def test_fetch_from_local_path(tmp_path):
    assert fetch_pretrained_model(_write(tmp_path, PRETRAINED))["version"] == "1.4.0"


def test_fetch_rejects_non_object(tmp_path):
    with pytest.raises(ValueError):
        fetch_pretrained_model(_write(tmp_path, [1, 2, 3]))


def test_pretrained_model_is_merged(tmp_path):
    matcher = SmartAddressMatcher(Config(pretrained_model=_write(tmp_path, PRETRAINED)),
                                  bootstrap_in_background=False)
    assert matcher.bootstrap_done.is_set()
    assert matcher.model.version == "1.4.0"
    assert matcher.model.thresholds["good"] == 0.55
    assert matcher.model.weights == AdaptiveModel().weights


@pytest.mark.parametrize("content", [
    "{not json",
    json.dumps({"weights": {"geospatial": 1.0, "textual": 1.0, "semantic": 0, "structural": 0, "fuzzy": 0}}),
])
def test_bad_document_keeps_defaults(tmp_path, caplog, content):
    path = tmp_path / "pretrained-model.json"
    path.write_text(content, encoding="utf-8")
    matcher = SmartAddressMatcher(Config(pretrained_model=str(path)), bootstrap_in_background=False)
    assert matcher.model == AdaptiveModel()
    assert "Using default model configuration" in caplog.text


def test_missing_source_keeps_defaults(tmp_path):
    matcher = SmartAddressMatcher(Config(pretrained_model=str(tmp_path / "absent.json")),
                                  bootstrap_in_background=False)
    assert matcher.model == AdaptiveModel()


def test_background_bootstrap_signals_completion(tmp_path):
    applied = []
    done = start_bootstrap(_write(tmp_path, PRETRAINED), applied.append)
    assert done.wait(5)
    assert applied[0]["version"] == "1.4.0"


def test_no_source_is_a_no_op():
    applied = []
    done = start_bootstrap(None, applied.append)
    assert done.is_set()
    assert applied == []


def test_pretrained_document_ignored_after_retrain(matcher):
    retrained = matcher.model.with_updates(version="1.0.1")
    matcher.model = retrained
    matcher._apply_pretrained(PRETRAINED)
    assert matcher.model is retrained
