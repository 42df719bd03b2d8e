from __future__ import annotations
from pathlib import Path

from listing_match.config import load_config
from listing_match.db import (
    connect,
    init_db,
    clear_table,
    upsert_address,
    upsert_listing,
    insert_training_labels,
)
from listing_match.simulate import generate_catalog, generate_listings, generate_training_pairs

"""
Seed the Excel workbook with synthetic data:
1) load data/config.default.json for the workbook path;
2) clear the addresses, listings, match_results and training_labels sheets;
3) write a Moscow-style catalog, one noisy listing per catalog record and labelled pairs;
4) print what was written and point at cli_run.
"""

def main():
    root = Path(__file__).resolve().parent
    data_dir = root / "data"
    cfg = load_config(data_dir / "config.default.json")

    conn = connect(cfg.db_path)
    init_db(conn)

    for t in ["addresses", "listings", "match_results", "training_labels"]:
        clear_table(conn, t)

    catalog = generate_catalog(n_streets=8, houses_per_street=6, seed=7)
    for rec in catalog:
        upsert_address(conn, rec, save=False)

    listings, _truth = generate_listings(catalog, per_record=1, jitter_m=15.0, seed=7)
    for listing in listings:
        upsert_listing(conn, listing, save=False)
    conn.save()

    labels = generate_training_pairs(catalog, n_pairs=120, seed=7)
    insert_training_labels(conn, labels)

    print(f"Workbook: {cfg.db_path}")
    print(f"Inserted addresses: {len(catalog)}")
    print(f"Inserted listings: {len(listings)}")
    print(f"Inserted training labels: {len(labels)}")
    print("Next: python cli_run.py")

if __name__ == "__main__":
    main()
