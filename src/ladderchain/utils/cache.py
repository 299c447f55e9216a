"""
In-memory LRU cache for extraction results.

Extraction is a pure function of (graph, options), so a caller that keeps
the same graph object around can skip recomputation by memoizing on the
graph's identity.
"""

import logging
import threading
from collections import OrderedDict
from typing import Callable, List, Optional, Tuple

from ladderchain.core.config import ExtractOptions
from ladderchain.core.models import InterviewGraph, StimulusGroup

logger = logging.getLogger(__name__)

CacheKey = Tuple[int, ExtractOptions]


class ExtractionCache:
    """
    Thread-safe LRU cache of extraction results keyed by graph object identity.

    Each entry keeps a reference to its graph so the object id cannot be
    reused by a different graph while the entry is alive. Cached results
    are returned as copies; callers may mutate them freely.
    """

    def __init__(self, max_size: int = 128):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of results kept (LRU eviction when exceeded)
        """
        self.max_size = max_size
        self.cache: "OrderedDict[CacheKey, Tuple[InterviewGraph, List[StimulusGroup]]]" = OrderedDict()
        self.lock = threading.Lock()
        self.hits = 0
        self.misses = 0

        logger.info(f"Initialized ExtractionCache with max_size={max_size}")

    def get(self, graph: InterviewGraph, options: ExtractOptions) -> Optional[List[StimulusGroup]]:
        """
        Get the cached result for this graph object and options.

        Returns:
            Copy of the cached groups, or None if not cached
        """
        key = (id(graph), options)
        with self.lock:
            entry = self.cache.get(key)
            if entry is None or entry[0] is not graph:
                self.misses += 1
                return None

            self.cache.move_to_end(key)
            self.hits += 1
            logger.debug(f"Cache HIT for graph {key[0]} (hits={self.hits}, misses={self.misses})")
            return [group.model_copy(deep=True) for group in entry[1]]

    def set(self, graph: InterviewGraph, options: ExtractOptions, groups: List[StimulusGroup]) -> None:
        """Store an extraction result, evicting the least recently used entry when full."""
        key = (id(graph), options)
        with self.lock:
            self.cache[key] = (graph, [group.model_copy(deep=True) for group in groups])
            self.cache.move_to_end(key)

            if len(self.cache) > self.max_size:
                oldest_key, _ = self.cache.popitem(last=False)
                logger.debug(f"Cache evicted graph {oldest_key[0]}")

    def get_or_compute(
        self,
        graph: InterviewGraph,
        options: ExtractOptions,
        compute: Callable[[InterviewGraph, ExtractOptions], List[StimulusGroup]],
    ) -> List[StimulusGroup]:
        """Return the cached result, or compute and store it."""
        groups = self.get(graph, options)
        if groups is None:
            groups = compute(graph, options)
            self.set(graph, options, groups)
        return groups

    def clear(self) -> None:
        """Clear all cached entries."""
        with self.lock:
            self.cache.clear()
            self.hits = 0
            self.misses = 0
            logger.info("Cache cleared")

    def stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with size, max_size, hits, misses, hit_rate
        """
        with self.lock:
            total = self.hits + self.misses
            return {
                "size": len(self.cache),
                "max_size": self.max_size,
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": self.hits / total if total > 0 else 0.0,
            }
