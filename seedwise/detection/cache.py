"""Detection result cache backed by JSON files."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, Protocol, TypeVar

from seedwise.config import CacheConfig
from seedwise.core.models import DetectionAnalysisContext
from seedwise.patterns import PATTERN_LIBRARY_VERSION

logger = logging.getLogger(__name__)

CACHE_SUFFIX = ".cache.json"


class Cacheable(Protocol):
    confidence: float

    def to_dict(self) -> dict[str, Any]: ...


T = TypeVar("T", bound=Cacheable)


def schema_hash(context: DetectionAnalysisContext) -> str:
    """
    Fingerprint of the schema facts that drive detection.

    Every fact an analyzer can read is included: tables with their columns,
    constraints, relationships, functions, triggers and caller hints. The
    pattern library version is mixed in so editing rule data invalidates old
    entries. Lists are sorted, so introspection order does not matter.
    """
    fingerprint = {
        "tables": sorted([table.name, sorted(table.columns)] for table in context.tables),
        "constraints": sorted(
            [c.table, c.name, c.type, sorted(c.columns)] for c in context.constraints
        ),
        "relationships": sorted(
            f"{r.from_table}.{r.from_column}->{r.to_table}.{r.to_column}"
            for r in context.relationships
        ),
        "functions": sorted(f.qualified_name for f in context.functions),
        "triggers": sorted(f"{t.table}.{t.name}:{t.function}" for t in context.triggers),
        "framework_hint": context.framework_hint,
        "hints": sorted(context.business_logic_hints),
        "pattern_library": PATTERN_LIBRARY_VERSION,
    }
    payload = json.dumps(fingerprint, sort_keys=True)
    return hashlib.sha256(payload.encode()).hexdigest()


class DetectionCache:
    """Cache for detection results, one JSON file per (schema, config) key."""

    def __init__(
        self,
        cache_dir: Path | str = ".seedwise-cache",
        ttl_seconds: int = 86_400,
        min_confidence_to_cache: float = 0.6,
        max_entries: int = 100,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize cache."""
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self.min_confidence_to_cache = min_confidence_to_cache
        self.max_entries = max_entries
        self.enabled = enabled
        self.clock = clock
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_config(cls, config: CacheConfig) -> DetectionCache:
        return cls(
            cache_dir=config.cache_dir,
            ttl_seconds=config.ttl_seconds,
            min_confidence_to_cache=config.min_confidence_to_cache,
            max_entries=config.max_entries,
            enabled=config.enabled,
        )

    def _key(self, context: DetectionAnalysisContext, config_used: Optional[dict[str, Any]]) -> str:
        payload = json.dumps(
            {"schema": schema_hash(context), "config": config_used or {}},
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(payload.encode()).hexdigest()[:32]

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}{CACHE_SUFFIX}"

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def _read(self, key: str, expected_hash: str) -> Optional[dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None

        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug(f"Discarding unreadable cache entry {path.name}: {e}")
            path.unlink(missing_ok=True)
            return None

        if entry.get("schemaHash") != expected_hash:
            logger.debug(f"Cache entry {path.name} has a stale schema hash")
            path.unlink(missing_ok=True)
            return None

        age = self.clock() - entry.get("timestamp", 0)
        if age > entry.get("ttl", self.ttl_seconds):
            logger.debug(f"Cache entry {path.name} expired ({age:.0f}s old)")
            path.unlink(missing_ok=True)
            return None

        return entry

    def get(
        self,
        context: DetectionAnalysisContext,
        config_used: Optional[dict[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """Get a cached result dict, or None if missing, expired or stale.

        Args:
            context: Context the result was computed from
            config_used: Configuration that shaped the result

        Returns:
            Result dict as stored, or None
        """
        if not self.enabled:
            return None
        entry = self._read(self._key(context, config_used), schema_hash(context))
        return entry["result"] if entry else None

    def store(
        self,
        context: DetectionAnalysisContext,
        result: dict[str, Any],
        confidence: float,
        config_used: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Store a result dict. Low-confidence results are not cached.

        Returns:
            True if the entry was written
        """
        if not self.enabled or confidence < self.min_confidence_to_cache:
            return False

        key = self._key(context, config_used)
        entry = {
            "schemaHash": schema_hash(context),
            "timestamp": self.clock(),
            "ttl": self.ttl_seconds,
            "result": result,
            "configUsed": config_used or {},
        }
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(entry, indent=2, sort_keys=True, default=str), encoding="utf-8")
        tmp.replace(path)
        self._prune()
        return True

    def _prune(self) -> None:
        entries = sorted(self.cache_dir.glob(f"*{CACHE_SUFFIX}"), key=lambda p: p.stat().st_mtime)
        for path in entries[: max(len(entries) - self.max_entries, 0)]:
            path.unlink(missing_ok=True)

    def invalidate(
        self,
        context: DetectionAnalysisContext,
        config_used: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Remove the entry for this context. Returns True if one existed."""
        path = self._path(self._key(context, config_used))
        if path.exists():
            path.unlink()
            return True
        return False

    def clear(self) -> int:
        """Clear cache. Returns the number of entries removed."""
        if not self.cache_dir.exists():
            return 0
        removed = 0
        for path in self.cache_dir.glob(f"*{CACHE_SUFFIX}"):
            path.unlink(missing_ok=True)
            removed += 1
        return removed

    def get_or_compute(
        self,
        context: DetectionAnalysisContext,
        compute: Callable[[], T],
        load: Callable[[dict[str, Any]], T],
        config_used: Optional[dict[str, Any]] = None,
    ) -> T:
        """
        Return the cached result or compute, store and return a fresh one.

        The check and the insert happen under a per-key lock, so concurrent
        callers for the same schema compute once.

        Args:
            context: Context to key the entry on
            compute: Produces a fresh result
            load: Rebuilds a result from its stored dict
            config_used: Configuration that shaped the result
        """
        if not self.enabled:
            return compute()

        key = self._key(context, config_used)
        with self._lock_for(key):
            cached = self.get(context, config_used)
            if cached is not None:
                logger.debug(f"Cache hit for schema {schema_hash(context)[:12]}")
                return load(cached)

            result = compute()
            self.store(context, result.to_dict(), result.confidence, config_used)
            return result
