"""Caching of materialized taxon registries.

Parsing a large checklist into a TaxonRegistry is the slowest step of
starting a search engine, so the loader stores the finished registry in a
``diskcache`` cache. Entries are validated against a fingerprint of the
source file's metadata (size and mtime): edit the file and the cached copy
is ignored.
"""

import hashlib
import logging
import os
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from diskcache import Cache

from taxonsearch.config import config

logger = logging.getLogger(__name__)

# One Cache handle per process, reopened if the configured directory changes
_cache_instance: Optional[Cache] = None
_cache_path: Optional[Path] = None
META_SUFFIX = "::meta"
META_VERSION = 1
REGISTRY_KEY_PREFIX = "taxon_registry"


def _close_cache() -> None:
    """Close the active diskcache instance."""
    global _cache_instance, _cache_path
    if _cache_instance is not None:
        _cache_instance.close()
        _cache_instance = None
        _cache_path = None


def get_cache() -> Cache:
    """Return a diskcache instance rooted at the configured cache dir."""
    global _cache_instance, _cache_path
    cache_dir = Path(config.cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)
    if _cache_instance is None or _cache_path != cache_dir:
        if _cache_instance is not None:
            _cache_instance.close()
        _cache_instance = Cache(directory=str(cache_dir))
        _cache_path = cache_dir
    return _cache_instance


def set_cache_namespace(namespace: str) -> Path:
    """Point the cache at a namespace directory under the base dir."""
    target_dir = Path(config.cache_base_dir) / namespace
    config.cache_dir = str(target_dir)
    _close_cache()
    target_dir.mkdir(parents=True, exist_ok=True)
    return target_dir


def compute_file_metadata_hash(file_paths: List[str]) -> str:
    """Fingerprint files by path, size and modification time.

    Files that can't be stat'ed are skipped with a warning.
    """
    if not file_paths:
        return ""

    hash_obj = hashlib.sha256()
    for file_path in sorted(file_paths):
        try:
            stat_info = os.stat(file_path)
        except (FileNotFoundError, PermissionError) as exc:
            logger.warning(f"Could not stat file for fingerprint: {file_path}, {exc}")
            continue
        hash_obj.update(file_path.encode("utf-8"))
        hash_obj.update(str(stat_info.st_size).encode("utf-8"))
        hash_obj.update(str(int(stat_info.st_mtime_ns)).encode("utf-8"))
    return hash_obj.hexdigest()


def registry_cache_key(path: str) -> str:
    """Return the cache key for a registry loaded from ``path``."""
    return f"{REGISTRY_KEY_PREFIX}::{Path(path).resolve()}"


def save_cache(key: str, obj: Any, checksum: str,
               metadata: Optional[Dict[str, Any]] = None) -> None:
    """Store an object with its validation metadata.

    A failed write is logged and leaves no partial entry behind.
    """
    cache = get_cache()
    meta_key = f"{key}{META_SUFFIX}"

    meta = {
        "checksum": checksum,
        "timestamp": datetime.now().isoformat(),
        "version": META_VERSION,
    }
    if metadata:
        meta.update(metadata)

    try:
        cache.set(key, obj)
        cache.set(meta_key, meta)
        logger.debug(f"Saved object to cache: {key}")
    except Exception as exc:
        logger.error(f"Failed to save to cache: {key}, {exc}")
        cache.delete(key)
        cache.delete(meta_key)


def load_cache(key: str, expected_checksum: str,
               max_age: Optional[int] = None) -> Optional[Any]:
    """Load an object if its checksum matches and it hasn't expired.

    Args:
        key: Cache key for the object
        expected_checksum: Checksum the entry must have been saved with
        max_age: Maximum age in seconds; defaults to ``config.cache_max_age``

    Returns:
        The cached object, or None on any kind of miss
    """
    cache = get_cache()
    meta = cache.get(f"{key}{META_SUFFIX}", default=None)
    if meta is None:
        logger.debug(f"Cache miss (metadata not found): {key}")
        return None

    if meta.get("checksum") != expected_checksum:
        logger.debug(f"Cache miss (checksum mismatch): {key}")
        return None

    if max_age is None:
        max_age = config.cache_max_age

    if max_age is not None:
        timestamp = datetime.fromisoformat(meta.get("timestamp", "2000-01-01T00:00:00"))
        age = (datetime.now() - timestamp).total_seconds()
        if age > max_age:
            logger.debug(f"Cache miss (expired after {age:.1f}s): {key}")
            return None

    obj = cache.get(key, default=None)
    if obj is None:
        logger.debug(f"Cache miss (value not found): {key}")
        return None

    logger.debug(f"Cache hit: {key}")
    return obj


def clear_cache(pattern: Optional[str] = None) -> int:
    """Remove cache entries, optionally only those whose key contains ``pattern``.

    Returns:
        Number of entries removed
    """
    cache = get_cache()
    if pattern is None:
        count = len(cache)
        cache.clear()
        logger.info(f"Cleared {count} cache entries")
        return count

    keys_to_delete = [key for key in cache if pattern in str(key)]
    for key in keys_to_delete:
        cache.delete(key)
    logger.info(f"Cleared {len(keys_to_delete)} cache entries matching '{pattern}'")
    return len(keys_to_delete)


def get_cache_stats() -> Dict[str, Any]:
    """Summarize the cache directory and its entries."""
    cache_dir = Path(config.cache_dir)
    stats: Dict[str, Any] = {
        "namespace": str(cache_dir),
        "total_size_bytes": 0,
        "db_file_count": 0,
        "entry_count": 0,
        "meta_count": 0,
        "prefix_counts": {},
    }

    cache = get_cache()
    for root, _, files in os.walk(cache_dir):
        for file_name in files:
            stats["db_file_count"] += 1
            try:
                stats["total_size_bytes"] += (Path(root) / file_name).stat().st_size
            except OSError:
                continue

    prefix_counts: Dict[str, int] = defaultdict(int)
    for key in cache:
        key_str = str(key)
        if key_str.endswith(META_SUFFIX):
            stats["meta_count"] += 1
            continue
        stats["entry_count"] += 1
        prefix_counts[key_str.split("::", 1)[0]] += 1

    stats["prefix_counts"] = dict(prefix_counts)
    return stats
