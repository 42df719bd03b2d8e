from __future__ import annotations
import json
from pathlib import Path

from listing_match.config import load_config_from_env, setup_logging
from listing_match.db import connect, list_training_labels
from listing_match.evaluate import evaluate_current
from listing_match.pipeline import SmartAddressMatcher
from listing_match.store import MemoryStore

def main():
    setup_logging()
    root = Path(__file__).resolve().parent
    data_dir = root / "data"
    cfg = load_config_from_env(data_dir / "config.default.json")

    conn = connect(cfg.db_path)
    pairs = list_training_labels(conn)
    if not pairs:
        print("No training labels found. Run: python cli_seed.py")
        return

    matcher = SmartAddressMatcher(cfg, store=MemoryStore(), bootstrap_in_background=False)

    cur = evaluate_current(matcher.preprocessor, matcher.model, pairs)
    print("Current model metrics:", json.dumps(cur, ensure_ascii=False, indent=2))

    for listing_text, candidate_text, label in pairs:
        matcher.add_training_example(listing_text, candidate_text, label)
    outcome = matcher.retrain()
    if outcome is None:
        print("Not enough labelled examples to retrain")
        return

    best = evaluate_current(matcher.preprocessor, matcher.model, pairs)
    print("Retrained model metrics:", json.dumps(best, ensure_ascii=False, indent=2))
    print("Feature importance:", json.dumps(outcome.importance, ensure_ascii=False, indent=2))

    out_path = data_dir / "pretrained-model.best.json"
    out_path.write_text(json.dumps(matcher.export_model(), ensure_ascii=False, indent=2), encoding="utf-8")
    print("Wrote:", str(out_path))

if __name__ == "__main__":
    main()
