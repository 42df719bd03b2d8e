from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

CONFIDENCE_LEVELS: Tuple[str, ...] = ("none", "very_low", "low", "medium", "high", "perfect")

METHOD_OBVIOUS = "obvious_match"
METHOD_EXACT_GEO = "exact_geo_smart"
METHOD_NEAR = "smart_near_geo"
METHOD_EXTENDED = "ml_extended_geo"
METHOD_FUZZY = "fuzzy_global"
METHOD_NO_MATCH = "no_match"
PROXIMITY_SUFFIX = "_proximity"


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if out != out:  # NaN from empty spreadsheet cells
        return None
    return out


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    @classmethod
    def parse(cls, obj: Any) -> Optional["Coordinates"]:
        if obj is None:
            return None
        if isinstance(obj, Coordinates):
            return obj
        lat = _to_float(obj.get("lat"))
        lng = obj.get("lng")
        lng = _to_float(lng if lng is not None else obj.get("lon"))
        if lat is None or lng is None:
            return None
        return cls(lat=lat, lng=lng)

    def as_key(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


def _coords_from_row(row: Dict[str, Any]) -> Optional[Coordinates]:
    if row.get("coordinates") is not None:
        return Coordinates.parse(row["coordinates"])
    return Coordinates.parse({"lat": row.get("lat"), "lng": row.get("lng"), "lon": row.get("lon")})


@dataclass(frozen=True)
class AddressRecord:
    """Canonical catalog entry; the engine only reads it."""
    id: str
    address: str
    coordinates: Optional[Coordinates] = None

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "AddressRecord":
        return cls(
            id=str(row["id"]),
            address=str(row.get("address") or ""),
            coordinates=_coords_from_row(row),
        )

    def to_dict(self) -> Dict[str, Any]:
        coords = None
        if self.coordinates is not None:
            coords = {"lat": self.coordinates.lat, "lng": self.coordinates.lng}
        return {"id": self.id, "address": self.address, "coordinates": coords}


@dataclass(frozen=True)
class Listing:
    id: str
    address: str
    coordinates: Optional[Coordinates] = None

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Listing":
        return cls(
            id=str(row["id"]),
            address=str(row.get("address") or ""),
            coordinates=_coords_from_row(row),
        )


@dataclass(frozen=True)
class AddressComponents:
    street: Optional[str] = None
    house_number: Optional[str] = None
    building: Optional[str] = None
    direction: Optional[str] = None


@dataclass(frozen=True)
class PreprocessedAddress:
    original: str
    normalized: str
    components: AddressComponents
    tokens: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FeatureVector:
    text: float
    semantic: float
    structural: float
    fuzzy: float
    length_ratio: float = 0.0


@dataclass(frozen=True)
class TrainingExample:
    listing_text: str
    candidate_text: str
    is_correct: bool
    features: FeatureVector
    timestamp: float


@dataclass(frozen=True)
class MatchResult:
    matched_address: Optional[AddressRecord]
    confidence: str
    method: str
    distance_m: Optional[float] = None
    score: float = 0.0
    text_similarity: float = 0.0
    semantic_similarity: float = 0.0
    structural_similarity: float = 0.0
    fuzzy_score: float = 0.0
    processing_time_ms: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_match(self) -> bool:
        return self.matched_address is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.matched_address.to_dict() if self.matched_address else None,
            "confidence": self.confidence,
            "method": self.method,
            "distance": self.distance_m,
            "score": self.score,
            "textSimilarity": self.text_similarity,
            "semanticSimilarity": self.semantic_similarity,
            "structuralSimilarity": self.structural_similarity,
            "fuzzyScore": self.fuzzy_score,
            "processingTime": self.processing_time_ms,
            "details": dict(self.details),
        }


def no_match_result(processing_time_ms: float = 0.0) -> MatchResult:
    return MatchResult(
        matched_address=None,
        confidence="none",
        method=METHOD_NO_MATCH,
        processing_time_ms=processing_time_ms,
    )
