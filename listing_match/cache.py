from __future__ import annotations
import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Iterator, Optional, Tuple

from .models import MatchResult

logger = logging.getLogger(__name__)


class ResultCache:
    """Thread-safe bounded memo of match results; the oldest insertion is evicted first."""

    def __init__(self, capacity: int = 1000):
        if capacity <= 0:
            raise ValueError("cache capacity must be positive")
        self.capacity = capacity
        self._entries: "OrderedDict[Hashable, MatchResult]" = OrderedDict()
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[MatchResult]:
        with self._lock:
            result = self._entries.get(key)
            if result is None:
                self.misses += 1
            else:
                self.hits += 1
            return result

    def put(self, key: Hashable, result: MatchResult) -> None:
        with self._lock:
            if key in self._entries:
                self._entries[key] = result
                return
            while len(self._entries) >= self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache full, evicted %s", evicted)
            self._entries[key] = result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def discard_where(self, predicate: Callable[[Hashable], bool]) -> int:
        with self._lock:
            doomed = [k for k in self._entries if predicate(k)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def items(self) -> Iterator[Tuple[Hashable, MatchResult]]:
        with self._lock:
            snapshot = list(self._entries.items())
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries


class MatchStatistics:
    """Running counters for observability; never consulted when scoring."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.total_matches = 0
        self.successful_matches = 0
        self.methods: Dict[str, Dict[str, float]] = {}

    def record(self, result: MatchResult) -> None:
        with self._lock:
            self.total_matches += 1
            if result.is_match:
                self.successful_matches += 1
            bucket = self.methods.setdefault(result.method, {"count": 0, "total_score": 0.0})
            bucket["count"] += 1
            bucket["total_score"] += result.score

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            total = self.total_matches
            effectiveness = {
                method: {
                    "count": int(data["count"]),
                    "averageScore": data["total_score"] / data["count"] if data["count"] else 0.0,
                    "successRate": (data["count"] / total) * 100 if total else 0.0,
                }
                for method, data in self.methods.items()
            }
            return {
                "totalMatches": total,
                "successfulMatches": self.successful_matches,
                "overallSuccessRate": (self.successful_matches / total) * 100 if total else 0.0,
                "methodEffectiveness": effectiveness,
            }
