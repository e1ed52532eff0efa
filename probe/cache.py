"""
Disk-backed cache of probed file facts.

Hashing every shipped binary on every build is the slowest part of an
integrity run. ProbeCache keeps FileFacts across runs in a diskcache store,
keyed by path, size and modification time, so a file is only re-hashed when
it has actually been rebuilt.

Example:
    >>> from probe.cache import ProbeCache
    >>> from probe.file_probe import FileProbe
    >>> cache = ProbeCache("/tmp/integrity-cache")
    >>> probe = FileProbe(cache=cache)
    >>> facts = probe.probe(Path("Output/Release/Tools.dll"))
    >>> cache.get_stats()
    {'hits': 0, 'misses': 1, 'hit_rate': 0.0, 'size': 1}
"""

import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from diskcache import Cache

from probe.file_probe import FileFacts

logger = logging.getLogger('InstallerIntegrity.probe.cache')


class ProbeCache:
    """
    Cross-run cache of FileFacts.

    Args:
        cache_dir: Directory for the cache store (created if missing)
        size_limit: Maximum cache size in bytes (default: 50MB)
    """

    DEFAULT_SIZE_LIMIT = 50 * 1024 * 1024

    def __init__(self, cache_dir: str, size_limit: int = DEFAULT_SIZE_LIMIT) -> None:
        os.makedirs(cache_dir, exist_ok=True)
        self._cache = Cache(str(cache_dir), size_limit=size_limit)
        self._hits = 0
        self._misses = 0
        # Probes run on worker threads
        self._stats_lock = threading.Lock()
        logger.debug(f"ProbeCache initialized at {cache_dir} (limit: {size_limit} bytes)")

    def _make_key(self, path: Path, stat: os.stat_result) -> str:
        return f"facts:{os.path.abspath(path)}:{stat.st_size}:{stat.st_mtime_ns}"

    def get(self, path: Path, stat: os.stat_result) -> Optional[FileFacts]:
        """Cached facts for this exact file state, or None on a miss."""
        result = self._cache.get(self._make_key(path, stat))
        if result is not None:
            with self._stats_lock:
                self._hits += 1
            logger.debug(f"Cache hit for {path}")
            return FileFacts(**result)
        with self._stats_lock:
            self._misses += 1
        return None

    def put(self, path: Path, stat: os.stat_result, facts: FileFacts) -> None:
        self._cache.set(
            self._make_key(path, stat),
            {'md5': facts.md5, 'version': facts.version, 'modified': facts.modified},
        )

    def clear(self) -> None:
        self._cache.clear()
        with self._stats_lock:
            self._hits = 0
            self._misses = 0

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            hits, misses = self._hits, self._misses
        total = hits + misses
        return {
            'hits': hits,
            'misses': misses,
            'hit_rate': (hits / total * 100) if total else 0.0,
            'size': len(self._cache),
        }

    def close(self) -> None:
        self._cache.close()
        logger.debug(f"ProbeCache closed (hits={self._hits}, misses={self._misses})")
