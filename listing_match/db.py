from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .models import AddressRecord, Listing, MatchResult

TABLE_SCHEMAS: Dict[str, List[str]] = {
    "addresses": ["id", "address", "lat", "lng", "created_at"],
    "listings": ["id", "address", "lat", "lng", "created_at"],
    "match_results": [
        "listing_id", "address_id", "confidence", "method", "score", "distance_m",
        "text_similarity", "semantic_similarity", "structural_similarity", "fuzzy_score",
        "processing_time_ms", "matched_at",
    ],
    "training_labels": ["id", "listing_address", "candidate_address", "label"],
    "kv": ["key", "value", "updated_at"],
}

def _now_str() -> str:
    return datetime.utcnow().isoformat(timespec="seconds")

def _empty_table(name: str) -> pd.DataFrame:
    return pd.DataFrame(columns=TABLE_SCHEMAS[name])

def _ensure_columns(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    result = df.copy()
    for col in columns:
        if col not in result.columns:
            result[col] = None
    return result[columns]

def _clean_value(val: Any) -> Any:
    if val is None:
        return None
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        pass
    return val

def _row_to_dict(row: pd.Series) -> Dict[str, Any]:
    return {k: _clean_value(v) for k, v in row.to_dict().items()}

def _next_pk(df: pd.DataFrame, column: str = "id") -> int:
    if df.empty or column not in df.columns:
        return 1
    max_val = pd.to_numeric(df[column], errors="coerce").max()
    if pd.isna(max_val):
        return 1
    return int(max_val) + 1

class ExcelConnection:
    """In-memory table cache backed by one Excel workbook; `save` writes every sheet."""
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.tables: Dict[str, pd.DataFrame] = {
            name: _empty_table(name) for name in TABLE_SCHEMAS
        }
        if self.path.exists():
            xls = pd.read_excel(self.path, sheet_name=None, dtype={"id": str, "listing_id": str, "address_id": str})
            for name, cols in TABLE_SCHEMAS.items():
                if name in xls:
                    self.tables[name] = _ensure_columns(xls[name], cols)

    def save(self) -> None:
        with pd.ExcelWriter(self.path, engine="openpyxl") as writer:
            for name, df in self.tables.items():
                df.to_excel(writer, sheet_name=name, index=False)

def connect(db_path: str | Path) -> ExcelConnection:
    return ExcelConnection(db_path)

def init_db(conn: ExcelConnection) -> None:
    conn.save()

def clear_table(conn: ExcelConnection, table: str) -> None:
    if table not in TABLE_SCHEMAS:
        raise ValueError(f"Unknown table: {table}")
    conn.tables[table] = _empty_table(table)
    conn.save()

def _upsert_row(df: pd.DataFrame, row: Dict[str, Any], key_field: str) -> pd.DataFrame:
    mask = df[key_field] == row[key_field]
    if mask.any():
        idx = df.index[mask][0]
        for col in df.columns:
            df.at[idx, col] = row.get(col)
        return df
    if df.empty:
        return pd.DataFrame([row], columns=df.columns)
    return pd.concat([df, pd.DataFrame([row], columns=df.columns)], ignore_index=True)

def _upsert_located(conn: ExcelConnection, table: str, rec_id: str, address: str,
                    lat: Optional[float], lng: Optional[float], save: bool = True) -> None:
    df = conn.tables[table]
    row = {"id": rec_id, "address": address, "lat": lat, "lng": lng, "created_at": _now_str()}
    mask = df["id"] == rec_id
    if mask.any():
        row["created_at"] = _clean_value(df.loc[mask, "created_at"].iloc[0])
    conn.tables[table] = _upsert_row(df, row, "id")
    if save:
        conn.save()

def upsert_address(conn: ExcelConnection, rec: AddressRecord, save: bool = True) -> None:
    c = rec.coordinates
    _upsert_located(conn, "addresses", rec.id, rec.address,
                    c.lat if c else None, c.lng if c else None, save=save)

def upsert_listing(conn: ExcelConnection, listing: Listing, save: bool = True) -> None:
    c = listing.coordinates
    _upsert_located(conn, "listings", listing.id, listing.address,
                    c.lat if c else None, c.lng if c else None, save=save)

def list_addresses(conn: ExcelConnection) -> List[AddressRecord]:
    df = conn.tables["addresses"]
    return [AddressRecord.from_dict(_row_to_dict(row)) for _, row in df.iterrows()]

def list_listings(conn: ExcelConnection) -> List[Listing]:
    df = conn.tables["listings"]
    return [Listing.from_dict(_row_to_dict(row)) for _, row in df.iterrows()]

def write_match_results(conn: ExcelConnection, results: Iterable[Tuple[str, MatchResult]]) -> int:
    rows = []
    now = _now_str()
    for listing_id, r in results:
        rows.append({
            "listing_id": listing_id,
            "address_id": r.matched_address.id if r.matched_address else None,
            "confidence": r.confidence,
            "method": r.method,
            "score": round(r.score, 4),
            "distance_m": round(r.distance_m, 1) if r.distance_m is not None else None,
            "text_similarity": round(r.text_similarity, 4),
            "semantic_similarity": round(r.semantic_similarity, 4),
            "structural_similarity": round(r.structural_similarity, 4),
            "fuzzy_score": round(r.fuzzy_score, 4),
            "processing_time_ms": round(r.processing_time_ms, 2),
            "matched_at": now,
        })
    conn.tables["match_results"] = pd.DataFrame(rows, columns=TABLE_SCHEMAS["match_results"])
    conn.save()
    return len(rows)

def insert_training_labels(conn: ExcelConnection, labels: List[Tuple[str, str, int]]) -> None:
    if not labels:
        return
    df = conn.tables["training_labels"]
    next_id = _next_pk(df)
    rows = []
    for listing_address, candidate_address, label in labels:
        rows.append({"id": next_id, "listing_address": listing_address,
                     "candidate_address": candidate_address, "label": int(label)})
        next_id += 1
    new = pd.DataFrame(rows, columns=TABLE_SCHEMAS["training_labels"])
    conn.tables["training_labels"] = new if df.empty else pd.concat([df, new], ignore_index=True)
    conn.save()

def list_training_labels(conn: ExcelConnection) -> List[Tuple[str, str, bool]]:
    df = conn.tables["training_labels"]
    out = []
    for _, row in df.iterrows():
        d = _row_to_dict(row)
        if d.get("listing_address") is None or d.get("candidate_address") is None:
            continue
        out.append((str(d["listing_address"]), str(d["candidate_address"]), bool(int(d.get("label") or 0))))
    return out

def get_kv(conn: ExcelConnection, key: str) -> Optional[str]:
    df = conn.tables["kv"]
    match = df[df["key"] == key]
    if match.empty:
        return None
    value = _clean_value(match.iloc[0]["value"])
    return None if value is None else str(value)

def set_kv(conn: ExcelConnection, key: str, value: str) -> None:
    row = {"key": key, "value": value, "updated_at": _now_str()}
    conn.tables["kv"] = _upsert_row(conn.tables["kv"], row, "key")
    conn.save()
