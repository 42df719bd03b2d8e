from __future__ import annotations
import json
from pathlib import Path

from listing_match.config import load_config_from_env, setup_logging
from listing_match.db import connect, list_addresses, list_listings, write_match_results
from listing_match.pipeline import SmartAddressMatcher
from listing_match.store import WorkbookStore

import dotenv
dotenv.load_dotenv()

def main():
    setup_logging()
    root = Path(__file__).resolve().parent
    data_dir = root / "data"
    cfg = load_config_from_env(data_dir / "config.default.json")

    conn = connect(cfg.db_path)
    matcher = SmartAddressMatcher(cfg, store=WorkbookStore(conn))
    matcher.bootstrap_done.wait(cfg.bootstrap_timeout)

    report = matcher.match_batch(list_listings(conn), list_addresses(conn))
    written = write_match_results(conn, report.results)

    print("Batch finished:", json.dumps(report.summary(), ensure_ascii=False, indent=2))
    print("Stats:", json.dumps(matcher.get_stats(), ensure_ascii=False, indent=2))
    print(f"Wrote {written} rows to match_results in {cfg.db_path}")

if __name__ == "__main__":
    main()
