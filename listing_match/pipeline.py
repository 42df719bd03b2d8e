from __future__ import annotations
import json
import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, Union

from .base_data import STREET_TYPES, load_alias_map, merge_alias_maps
from .bootstrap import start_bootstrap
from .cache import MatchStatistics, ResultCache
from .candidates import candidates_with_distance
from .config import Config
from .judge import apply_proximity_rule, classify_confidence
from .model import AdaptiveModel
from .models import (
    CONFIDENCE_LEVELS,
    METHOD_EXACT_GEO,
    METHOD_EXTENDED,
    METHOD_FUZZY,
    METHOD_NEAR,
    METHOD_OBVIOUS,
    AddressRecord,
    Listing,
    MatchResult,
    PreprocessedAddress,
    TrainingExample,
    no_match_result,
)
from .preprocess import AddressPreprocessor
from .scoring import Scorer, extract_features, obvious_score
from .store import MODEL_KEY, TRAINING_COUNT_KEY, KeyValueStore, MemoryStore
from .training import RetrainOutcome, Trainer, TrainingBuffer

logger = logging.getLogger(__name__)

ListingLike = Union[Listing, Dict[str, Any]]
RecordLike = Union[AddressRecord, Dict[str, Any]]
Stage = Callable[[Listing, PreprocessedAddress, Sequence[AddressRecord], AdaptiveModel], Optional[MatchResult]]


def _as_listing(obj: ListingLike) -> Listing:
    return obj if isinstance(obj, Listing) else Listing.from_dict(obj)


def _as_records(objs: Iterable[RecordLike]) -> List[AddressRecord]:
    return [o if isinstance(o, AddressRecord) else AddressRecord.from_dict(o) for o in objs]


@dataclass
class BatchReport:
    processed: int = 0
    matched: int = 0
    no_match: int = 0
    by_confidence: Dict[str, int] = field(default_factory=lambda: {c: 0 for c in CONFIDENCE_LEVELS})
    by_method: Dict[str, int] = field(default_factory=dict)
    total_processing_time_ms: float = 0.0
    results: List[Tuple[str, MatchResult]] = field(default_factory=list)

    @property
    def avg_processing_time_ms(self) -> float:
        return self.total_processing_time_ms / self.processed if self.processed else 0.0

    def add(self, listing_id: str, result: MatchResult) -> None:
        self.processed += 1
        self.total_processing_time_ms += result.processing_time_ms
        self.results.append((listing_id, result))
        if not result.is_match:
            self.no_match += 1
            return
        self.matched += 1
        self.by_confidence[result.confidence] = self.by_confidence.get(result.confidence, 0) + 1
        self.by_method[result.method] = self.by_method.get(result.method, 0) + 1

    def summary(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "matched": self.matched,
            "noMatch": self.no_match,
            "byConfidence": dict(self.by_confidence),
            "byMethod": dict(self.by_method),
            "avgProcessingTime": round(self.avg_processing_time_ms, 3),
        }


class SmartAddressMatcher:
    """Tiered listing-to-catalog address matcher: obvious -> exact geo -> near -> extended -> fuzzy.

    One instance owns the adaptive model, the result cache and the statistics.
    Each match reads a single model snapshot; retraining swaps in a new one.
    """

    def __init__(self,
                 cfg: Optional[Config] = None,
                 store: Optional[KeyValueStore] = None,
                 bootstrap_in_background: bool = True):
        self.cfg = cfg or Config()
        street_types = STREET_TYPES
        if self.cfg.alias_path:
            street_types = merge_alias_maps(STREET_TYPES, load_alias_map(self.cfg.alias_path))
        self.preprocessor = AddressPreprocessor(street_types)
        self.scorer = Scorer()
        t = self.cfg.training
        self.trainer = Trainer(t.min_positive, t.min_negative, t.learning_rate)
        self.training = TrainingBuffer(t.max_examples)
        self.cache = ResultCache(self.cfg.cache_size)
        self.stats = MatchStatistics()
        self.store = store or MemoryStore()

        self._model_lock = threading.Lock()
        self._training_lock = threading.RLock()
        self.model = self.cfg.default_model()
        self._initial_model = self.model
        self.examples_seen = self._restore_training_count()

        self.bootstrap_done = start_bootstrap(
            self.cfg.pretrained_model,
            self._apply_pretrained,
            timeout=self.cfg.bootstrap_timeout,
            background=bootstrap_in_background,
        )

    # ---- model lifecycle -------------------------------------------------

    def _apply_pretrained(self, document: Dict[str, Any]) -> None:
        with self._model_lock:
            if self.model is not self._initial_model:
                logger.info("Model already retrained; pretrained document ignored")
                return
            self.model = self.model.merged(document)
            self._initial_model = self.model
        logger.info("Loaded pretrained model v%s (accuracy: %s)", self.model.version, self.model.accuracy)

    def _restore_training_count(self) -> int:
        raw = self.store.get(TRAINING_COUNT_KEY)
        if not raw:
            return 0
        try:
            count = int(float(raw))
        except ValueError:
            logger.warning("Ignoring unreadable training count %r", raw)
            return 0
        if count > 0:
            logger.info("Restored training example count: %d", count)
        return max(count, 0)

    def export_model(self) -> Dict[str, Any]:
        return self.model.to_export_dict(len(self.training))

    def _save_model_for_export(self) -> None:
        doc = json.dumps(self.export_model(), ensure_ascii=False, indent=2)
        logger.info("Export model to pretrained-model.json:\n%s", doc)
        self.store.set(MODEL_KEY, doc)
        self.store.set(TRAINING_COUNT_KEY, str(self.examples_seen))

    # ---- matching ----------------------------------------------------------

    @staticmethod
    def cache_key(listing: Listing, candidates: Sequence[AddressRecord]) -> Hashable:
        coords = listing.coordinates.as_key() if listing.coordinates else None
        return (listing.id, len(candidates), coords)

    def match_address_smart(self, listing: ListingLike, candidates: Iterable[RecordLike]) -> MatchResult:
        started = time.perf_counter()
        listing = _as_listing(listing)
        catalog = _as_records(candidates)

        key = self.cache_key(listing, catalog)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        model = self.model
        query = self.preprocessor.preprocess(listing.address)
        logger.debug("Matching %s: %r -> %r", listing.id, listing.address, query.normalized)

        stages: Tuple[Stage, ...] = (
            self._obvious_match,
            self._exact_geo_match,
            self._near_match,
            self._extended_match,
            self._fuzzy_global_match,
        )
        result: Optional[MatchResult] = None
        for stage in stages:
            result = stage(listing, query, catalog, model)
            if result is not None:
                break

        elapsed = (time.perf_counter() - started) * 1000.0
        if result is None:
            result = no_match_result(elapsed)
        else:
            result = apply_proximity_rule(result, self.cfg.proximity_radius, self.cfg.proximity_score)
            result = replace(result, processing_time_ms=elapsed)
            logger.debug("Listing %s -> %s via %s (%.3f, %s)", listing.id,
                         result.matched_address.id, result.method, result.score, result.confidence)

        self.stats.record(result)
        self.cache.put(key, result)
        return result

    def _accept(self,
                method: str,
                record: AddressRecord,
                distance: float,
                score: float,
                model: AdaptiveModel,
                radius: float,
                considered: int,
                **scores: float) -> MatchResult:
        return MatchResult(
            matched_address=record,
            confidence=classify_confidence(score, model.thresholds),
            method=method,
            distance_m=distance,
            score=score,
            details={"stage_radius": radius, "candidates_considered": considered},
            **scores,
        )

    def _obvious_match(self, listing, query, catalog, model) -> Optional[MatchResult]:
        radius = self.cfg.obvious_radius
        nearby = candidates_with_distance(listing.coordinates, radius, catalog)
        if not nearby:
            return None
        compact = self.preprocessor.aggressive(query.original)
        best: Optional[Tuple[AddressRecord, float]] = None
        best_score = 0.0
        for rec, d in nearby:
            s = obvious_score(compact, self.preprocessor.aggressive(rec.address))
            if s >= self.cfg.obvious_threshold and s > best_score:
                best, best_score = (rec, d), s
        if best is None:
            return None
        return self._accept(METHOD_OBVIOUS, best[0], best[1], best_score, model, radius, len(nearby),
                            text_similarity=best_score)

    def _exact_geo_match(self, listing, query, catalog, model) -> Optional[MatchResult]:
        radius = model.radii["exact"]
        nearby = candidates_with_distance(listing.coordinates, radius, catalog)
        if len(nearby) != 1:
            return None
        rec, d = nearby[0]
        return self._accept(METHOD_EXACT_GEO, rec, d, 1.0, model, radius, 1)

    def _near_match(self, listing, query, catalog, model) -> Optional[MatchResult]:
        radius = model.radii["near"]
        nearby = candidates_with_distance(listing.coordinates, radius, catalog)
        best = None
        for rec, d in nearby:
            breakdown = self.scorer.score(query, self.preprocessor.preprocess(rec.address), d, model)
            if best is None or breakdown.score > best[2].score:
                best = (rec, d, breakdown)
        if best is None or best[2].score < model.thresholds["acceptable"]:
            return None
        return self._scored_result(METHOD_NEAR, best, model, radius, len(nearby))

    def _extended_match(self, listing, query, catalog, model) -> Optional[MatchResult]:
        radius = model.radii["extended"]
        nearby = candidates_with_distance(listing.coordinates, radius, catalog)
        ranked = sorted(
            ((rec, d, self.scorer.score(query, self.preprocessor.preprocess(rec.address), d, model))
             for rec, d in nearby),
            key=lambda item: item[2].score,
            reverse=True,
        )
        if not ranked or ranked[0][2].score < model.thresholds["minimal"]:
            return None
        return self._scored_result(METHOD_EXTENDED, ranked[0], model, radius, len(nearby))

    def _scored_result(self, method, best, model, radius, considered) -> MatchResult:
        rec, d, breakdown = best
        f = breakdown.features
        return self._accept(method, rec, d, breakdown.score, model, radius, considered,
                            text_similarity=f.text,
                            semantic_similarity=f.semantic,
                            structural_similarity=f.structural,
                            fuzzy_score=f.fuzzy)

    def _fuzzy_global_match(self, listing, query, catalog, model) -> Optional[MatchResult]:
        radius = model.radii["far"]
        nearby = candidates_with_distance(listing.coordinates, radius, catalog)
        best = None
        for rec, d in nearby:
            s = self.scorer.fuzzy_geo_score(query, self.preprocessor.preprocess(rec.address), d, radius)
            if best is None or s["score"] > best[2]["score"]:
                best = (rec, d, s)
        if best is None or best[2]["score"] < model.thresholds["minimal"]:
            return None
        rec, d, s = best
        return self._accept(METHOD_FUZZY, rec, d, s["score"], model, radius, len(nearby),
                            fuzzy_score=s["fuzzy"])

    def match_batch(self, listings: Iterable[ListingLike], candidates: Iterable[RecordLike]) -> BatchReport:
        catalog = _as_records(candidates)
        report = BatchReport()
        for item in listings:
            listing = _as_listing(item)
            report.add(listing.id, self.match_address_smart(listing, catalog))
        logger.info("Batch finished: %d processed, %d matched", report.processed, report.matched)
        return report

    # ---- learning ------------------------------------------------------------

    def add_training_example(self, listing_address: str, candidate_address: str, is_correct: bool) -> TrainingExample:
        features = extract_features(
            self.preprocessor.preprocess(listing_address),
            self.preprocessor.preprocess(candidate_address),
        )
        example = TrainingExample(
            listing_text=listing_address,
            candidate_text=candidate_address,
            is_correct=bool(is_correct),
            features=features,
            timestamp=time.time(),
        )
        with self._training_lock:
            self.training.append(example)
            self.examples_seen += 1
            logger.info("Added training example: %s (total: %d)",
                        "positive" if example.is_correct else "negative", len(self.training))
            self.store.set(TRAINING_COUNT_KEY, str(self.examples_seen))
            if self.examples_seen % self.cfg.training.retrain_every == 0:
                self.retrain()
        return example

    def retrain(self) -> Optional[RetrainOutcome]:
        with self._training_lock:
            logger.info("Retraining model with %d examples", len(self.training))
            outcome = self.trainer.retrain(self.model, self.training.snapshot())
            if outcome is None:
                return None
            with self._model_lock:
                self.model = outcome.model
            self.cache.clear()
            self._save_model_for_export()
            return outcome

    def _cached_match_for(self, listing_id: str) -> Optional[MatchResult]:
        found = None
        for key, result in self.cache.items():
            if key[0] == listing_id:
                found = result
        return found

    def correct_address(self,
                        listing: ListingLike,
                        candidates: Iterable[RecordLike],
                        correct_address_id: str) -> int:
        """Record a user correction. Returns the number of training examples added."""
        listing = _as_listing(listing)
        by_id = {rec.id: rec for rec in _as_records(candidates)}
        correct = by_id.get(str(correct_address_id))
        if correct is None:
            raise KeyError(f"Unknown address id: {correct_address_id}")

        added = 0
        previous = self._cached_match_for(listing.id)
        if previous is not None and previous.matched_address is not None \
                and previous.matched_address.id != correct.id:
            self.add_training_example(listing.address, previous.matched_address.address, False)
            added += 1
        self.add_training_example(listing.address, correct.address, True)
        added += 1
        self.cache.discard_where(lambda key: key[0] == listing.id)
        logger.info("Address corrected for listing %s -> %s", listing.id, correct.id)
        return added

    def get_stats(self) -> Dict[str, Any]:
        out = self.stats.summary()
        out.update({
            "cacheSize": len(self.cache),
            "cacheHits": self.cache.hits,
            "cacheMisses": self.cache.misses,
            "modelVersion": self.model.version,
            "trainingExamples": len(self.training),
            "examplesSeen": self.examples_seen,
        })
        return out
