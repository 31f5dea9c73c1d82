from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from hashlib import sha256
from pathlib import Path
from typing import Any, Callable

"""
On-disk JSON cache for upstream layers.

Artskart and the hazard WFS are slow and occasionally down. Responses are stored under
`.cache/agdermap/<namespace>/` keyed by a SHA-256 of the request, with a TTL checked on
read. When a refresh fails, `get_or_set(..., stale_if_error=True)` serves the last good
copy instead of failing the map.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Envelope written to disk around each cached payload."""

    created_at_unix: int
    ttl_seconds: int
    value: Any

    def is_fresh(self, now: int, ttl_seconds: int | None = None) -> bool:
        age = now - self.created_at_unix
        return age <= (self.ttl_seconds if ttl_seconds is None else ttl_seconds)

    @classmethod
    def from_json(cls, text: str) -> "CacheEntry":
        raw = json.loads(text)
        return cls(int(raw["created_at_unix"]), int(raw["ttl_seconds"]), raw["value"])


@dataclass(frozen=True)
class CachedValue:
    """A value returned by `get_or_set` plus where it came from."""

    value: Any
    mode: str  # "cache" | "live" | "stale"
    as_of_unix: int | None


def _now() -> int:
    return int(time.time())


class FileCache:
    """JSON files keyed by (namespace, key); disabled caches read nothing and write nothing."""

    def __init__(self, base_dir: Path, enabled: bool = True, default_ttl_seconds: int = 86400):
        self._root = Path(base_dir)
        self._enabled = enabled
        self._ttl = default_ttl_seconds

    def _path_for(self, namespace: str, key: str) -> Path:
        name = sha256(f"{namespace}:{key}".encode("utf-8")).hexdigest()
        return self._root / namespace / f"{name}.json"

    def _read_entry(self, namespace: str, key: str) -> CacheEntry | None:
        path = self._path_for(namespace, key)
        if not self._enabled or not path.is_file():
            return None
        try:
            return CacheEntry.from_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Ignoring unreadable cache entry %s", path)
            return None

    def get(self, namespace: str, key: str, ttl_seconds: int | None = None) -> Any | None:
        """Return the cached value if it exists and has not expired."""
        entry = self._read_entry(namespace, key)
        if entry is not None and entry.is_fresh(_now(), ttl_seconds):
            return entry.value
        return None

    def get_stale(self, namespace: str, key: str) -> Any | None:
        entry = self._read_entry(namespace, key)
        return None if entry is None else entry.value

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        if not self._enabled:
            return
        entry = CacheEntry(_now(), int(self._ttl if ttl_seconds is None else ttl_seconds), value)
        path = self._path_for(namespace, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so readers never see a half-written file.
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(asdict(entry), ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    def get_or_set(
        self,
        namespace: str,
        key: str,
        builder: Callable[[], Any],
        ttl_seconds: int | None = None,
        *,
        stale_if_error: bool = False,
        stale_predicate: Callable[[Exception], bool] | None = None,
    ) -> CachedValue:
        """Return a fresh cached value, or compute/store it via `builder`.

        If `stale_if_error` is set and `builder()` raises an exception accepted by
        `stale_predicate` (any exception when None), an expired entry is returned
        instead. Without a stale entry the exception propagates.
        """
        entry = self._read_entry(namespace, key)
        if entry is not None and entry.is_fresh(_now(), ttl_seconds):
            return CachedValue(entry.value, "cache", entry.created_at_unix)

        try:
            value = builder()
        except Exception as exc:
            recoverable = stale_predicate is None or stale_predicate(exc)
            if not (stale_if_error and recoverable and entry is not None):
                raise
            logger.warning("Serving stale %s entry after refresh failed: %s", namespace, exc)
            return CachedValue(entry.value, "stale", entry.created_at_unix)

        self.set(namespace, key, value, ttl_seconds=ttl_seconds)
        return CachedValue(value, "live", _now())
