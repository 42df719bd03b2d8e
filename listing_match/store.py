from __future__ import annotations
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .db import ExcelConnection, get_kv, set_kv

MODEL_KEY = "ml_trained_model"
TRAINING_COUNT_KEY = "ml_training_count"


class KeyValueStore(ABC):
    """Persistence sink for the exported model."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self.data[key] = value


class WorkbookStore(KeyValueStore):
    """Keeps the values in the `kv` sheet of the Excel workbook."""

    def __init__(self, conn: ExcelConnection):
        self.conn = conn
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return get_kv(self.conn, key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            set_kv(self.conn, key, value)
