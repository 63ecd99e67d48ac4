"""
Graph Cache - Memoized graph builds keyed by input content.
===========================================================

Graph builds are pure, so equal inputs can share one result. Keys are the
SHA256 of the canonical JSON of the course and relation records, prefixed
with a version so a change to the build rules invalidates old entries.
"""

import threading
from collections import OrderedDict
from typing import Optional, Sequence

from planit_graph.graph.builder import BuildResult, GraphBuilder
from planit_graph.shared.logging import get_logger
from planit_graph.shared.schemas import CourseRecord, RelationRecord
from planit_graph.shared.utils import compute_input_hash

logger = get_logger(__name__)

CACHE_KEY_VERSION = "v1"


def make_cache_key(
    courses: Sequence[CourseRecord],
    relations: Sequence[RelationRecord],
) -> str:
    """Versioned content key for a pair of record lists."""
    return f"graph:{CACHE_KEY_VERSION}:{compute_input_hash(courses, relations)}"


class GraphCache:
    """
    Bounded LRU cache of BuildResults.

    Example:
        >>> cache = GraphCache(max_entries=4)
        >>> result = cache.get_or_build(courses, relations)
        >>> cache.hits, cache.misses
        (0, 1)
    """

    def __init__(self, max_entries: int = 16, builder: Optional[GraphBuilder] = None):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.builder = builder or GraphBuilder()
        self._entries: "OrderedDict[str, BuildResult]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[BuildResult]:
        with self._lock:
            result = self._entries.get(key)
            if result is not None:
                self._entries.move_to_end(key)
            return result

    def get_or_build(
        self,
        courses: Sequence[CourseRecord],
        relations: Sequence[RelationRecord],
    ) -> BuildResult:
        """
        Return the cached build for these inputs, building it on a miss.

        Args:
            courses: Course records
            relations: Relation records

        Returns:
            BuildResult (the same object for equal inputs while cached)
        """
        key = make_cache_key(courses, relations)
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
            else:
                self.misses += 1
        if cached is not None:
            logger.debug(f"Graph cache hit: {key[:24]}")
            return cached

        result = self.builder.build(courses, relations)
        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted graph cache entry {evicted[:24]}")
        return result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
