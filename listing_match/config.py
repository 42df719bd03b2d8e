from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .model import AdaptiveModel


@dataclass
class TrainingConfig:
    max_examples: int = 1000
    retrain_every: int = 50
    min_positive: int = 10
    min_negative: int = 10
    learning_rate: float = 0.1


@dataclass
class Config:
    db_path: str = "data/listing_match.xlsx"
    cache_size: int = 1000
    obvious_radius: float = 200.0
    obvious_threshold: float = 0.90
    proximity_radius: float = 20.0
    proximity_score: float = 0.90
    training: TrainingConfig = field(default_factory=TrainingConfig)
    pretrained_model: Optional[str] = None
    bootstrap_timeout: float = 10.0
    alias_path: Optional[str] = None
    model: Dict[str, Any] = field(default_factory=dict)

    def default_model(self) -> AdaptiveModel:
        return AdaptiveModel.from_dict(self.model) if self.model else AdaptiveModel()


def _resolve(base: Path, value: Optional[str]) -> Optional[str]:
    if not value or value.startswith(("http://", "https://")):
        return value
    p = Path(value)
    return str(p if p.is_absolute() else base / p)


def load_config(path: str | Path) -> Config:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    # relative paths in the file are relative to the project root (parent of data/)
    base = p.resolve().parent.parent
    training = dict(raw.get("training", {}))
    return Config(
        db_path=_resolve(base, raw["db_path"]),
        cache_size=int(raw.get("cache_size", 1000)),
        obvious_radius=float(raw.get("obvious_radius", 200.0)),
        obvious_threshold=float(raw.get("obvious_threshold", 0.90)),
        proximity_radius=float(raw.get("proximity_radius", 20.0)),
        proximity_score=float(raw.get("proximity_score", 0.90)),
        training=TrainingConfig(
            max_examples=int(training.get("max_examples", 1000)),
            retrain_every=int(training.get("retrain_every", 50)),
            min_positive=int(training.get("min_positive", 10)),
            min_negative=int(training.get("min_negative", 10)),
            learning_rate=float(training.get("learning_rate", 0.1)),
        ),
        pretrained_model=_resolve(base, raw.get("pretrained_model")),
        bootstrap_timeout=float(raw.get("bootstrap_timeout", 10.0)),
        alias_path=_resolve(base, raw.get("alias_path")),
        model=dict(raw.get("model", {})),
    )


def load_config_from_env(default_path: str | Path) -> Config:
    """`LISTING_MATCH_CONFIG` picks the file; `PRETRAINED_MODEL_URL` overrides its pretrained model."""
    cfg = load_config(os.getenv("LISTING_MATCH_CONFIG") or default_path)
    url = os.getenv("PRETRAINED_MODEL_URL")
    if url:
        cfg.pretrained_model = url
    return cfg


def setup_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
