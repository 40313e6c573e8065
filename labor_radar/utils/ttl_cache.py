# labor_radar/utils/ttl_cache.py
from __future__ import annotations

import threading
import time
from typing import Any, Dict, Optional, Tuple


class TTLCache:
    """Tiny in-process TTL cache shared by the providers. ttl <= 0 disables it."""

    def __init__(self, ttl_sec: int):
        self.ttl = ttl_sec
        self._data: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        if self.ttl <= 0:
            return None
        with self._lock:
            row = self._data.get(key)
            if not row:
                return None
            ts, val = row
            if (time.time() - ts) > self.ttl:
                self._data.pop(key, None)
                return None
            return val

    def set(self, key: str, val: Any) -> None:
        if self.ttl <= 0:
            return
        with self._lock:
            self._data[key] = (time.time(), val)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
