import json

from listing_match.config import load_config, load_config_from_env


def _write_config(tmp_path, **extra):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    raw = {"db_path": "data/test.xlsx", "training": {"retrain_every": 10}}
    raw.update(extra)
    path = data_dir / "config.default.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    return path


def test_load_config_resolves_paths_and_defaults(tmp_path):
    cfg = load_config(_write_config(tmp_path, pretrained_model="data/pretrained-model.json"))
    assert cfg.db_path == str(tmp_path.resolve() / "data" / "test.xlsx")
    assert cfg.pretrained_model == str(tmp_path.resolve() / "data" / "pretrained-model.json")
    assert cfg.training.retrain_every == 10
    assert cfg.training.max_examples == 1000
    assert cfg.cache_size == 1000
    assert cfg.default_model().version == "1.0.0"


def test_urls_and_model_section(tmp_path):
    cfg = load_config(_write_config(tmp_path, pretrained_model="https://example.org/model.json",
                                    model={"version": "3.0.0"}))
    assert cfg.pretrained_model == "https://example.org/model.json"
    assert cfg.default_model().version == "3.0.0"


def test_environment_overrides(tmp_path, monkeypatch):
    path = _write_config(tmp_path)
    monkeypatch.setenv("LISTING_MATCH_CONFIG", str(path))
    monkeypatch.setenv("PRETRAINED_MODEL_URL", "http://models.local/model.json")
    cfg = load_config_from_env("does-not-exist.json")
    assert cfg.db_path.endswith("test.xlsx")
    assert cfg.pretrained_model == "http://models.local/model.json"
