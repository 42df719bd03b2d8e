from __future__ import annotations
import os
from pathlib import Path
from typing import Callable, List, Optional
import dotenv
dotenv.load_dotenv()

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, model_validator

from listing_match.config import load_config_from_env, setup_logging
from listing_match.db import connect, list_addresses
from listing_match.models import AddressRecord
from listing_match.pipeline import SmartAddressMatcher
from listing_match.store import WorkbookStore

ROOT = Path(__file__).resolve().parent
DATA_DIR = ROOT / "data"

CatalogLoader = Callable[[], List[AddressRecord]]


class CoordinatesIn(BaseModel):
    lat: float
    lng: Optional[float] = None
    lon: Optional[float] = None

    @model_validator(mode="after")
    def _require_longitude(self):
        if self.lng is None and self.lon is None:
            raise ValueError("coordinates need lng or lon")
        return self


class AddressIn(BaseModel):
    id: str
    address: str
    coordinates: Optional[CoordinatesIn] = None


class MatchRequest(BaseModel):
    listing: AddressIn
    candidates: Optional[List[AddressIn]] = None


class FeedbackRequest(BaseModel):
    listing_address: str
    candidate_address: str
    is_correct: bool


class CorrectRequest(BaseModel):
    listing: AddressIn
    correct_address_id: str
    candidates: Optional[List[AddressIn]] = None


def create_app(matcher: SmartAddressMatcher, catalog: CatalogLoader) -> FastAPI:
    app = FastAPI(title="Listing Address Matching Service")

    def _candidates(items: Optional[List[AddressIn]]) -> List[AddressRecord]:
        if items is None:
            return catalog()
        return [AddressRecord.from_dict(c.model_dump(exclude_none=True)) for c in items]

    @app.post("/match")
    def match(payload: MatchRequest):
        if not payload.listing.address.strip():
            raise HTTPException(status_code=400, detail="listing.address must not be empty")
        result = matcher.match_address_smart(payload.listing.model_dump(exclude_none=True), _candidates(payload.candidates))
        return result.to_dict()

    @app.post("/feedback")
    def feedback(payload: FeedbackRequest):
        listing_address = payload.listing_address.strip()
        candidate_address = payload.candidate_address.strip()
        if not listing_address or not candidate_address:
            raise HTTPException(status_code=400, detail="listing_address and candidate_address must not be empty")
        matcher.add_training_example(listing_address, candidate_address, payload.is_correct)
        return {"trainingExamples": len(matcher.training), "modelVersion": matcher.model.version}

    @app.post("/correct")
    def correct(payload: CorrectRequest):
        try:
            added = matcher.correct_address(
                payload.listing.model_dump(exclude_none=True), _candidates(payload.candidates), payload.correct_address_id
            )
        except KeyError:
            raise HTTPException(status_code=404, detail=f"unknown address id {payload.correct_address_id}")
        return {"examplesAdded": added, "modelVersion": matcher.model.version}

    @app.get("/stats")
    def stats():
        return matcher.get_stats()

    @app.get("/model")
    def model():
        return matcher.export_model()

    return app


def build_default_app() -> FastAPI:
    cfg = load_config_from_env(DATA_DIR / "config.default.json")
    conn = connect(cfg.db_path)
    matcher = SmartAddressMatcher(cfg, store=WorkbookStore(conn))
    return create_app(matcher, lambda: list_addresses(conn))


app = build_default_app()


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    host = os.getenv("APP_HOST", "0.0.0.0")
    port = int(os.getenv("APP_PORT", "8008"))
    uvicorn.run(app, host=host, port=port)
