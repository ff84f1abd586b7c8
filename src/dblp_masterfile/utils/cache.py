"""
On-disk cache for dblp responses.

Entries live under ``<cache_dir>/<namespace>/`` and are named by a SHA-256
digest of (namespace, params). Text payloads such as person XML pages are
stored verbatim as ``.txt``; everything else is stored as ``.json``.
Freshness comes from the file's modification time, checked against the
namespace's TTL when the entry is read, so changing a TTL applies to
entries already on disk.
"""

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any

from dblp_masterfile.constants import CACHE_TTL, CACHE_TTLS

logger = logging.getLogger(__name__)

_TEXT_SUFFIX = ".txt"
_JSON_SUFFIX = ".json"


def cache_key(namespace: str, params: dict[str, Any]) -> str:
    """Return a deterministic hex digest for the given namespace and params."""
    raw = json.dumps({"ns": namespace, **params}, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode()).hexdigest()


def namespace_ttl(namespace: str) -> int:
    """TTL in seconds for a namespace; CACHE_TTL for unlisted ones."""
    return CACHE_TTLS.get(namespace, CACHE_TTL)


def entry_paths(namespace: str, params: dict[str, Any], cache_dir: Path) -> list[Path]:
    """Possible files of one entry: the text form, then the JSON form."""
    stem = cache_dir / namespace / cache_key(namespace, params)
    return [stem.with_suffix(_TEXT_SUFFIX), stem.with_suffix(_JSON_SUFFIX)]


def cache_get(
    namespace: str,
    params: dict[str, Any],
    cache_dir: Path,
    ttl: int | None = None,
) -> Any | None:
    """Return the cached payload if present and younger than the TTL, else None.

    Stale and undecodable entries are removed.
    """
    max_age = namespace_ttl(namespace) if ttl is None else ttl
    for path in entry_paths(namespace, params, cache_dir):
        if not path.exists():
            continue
        age = time.time() - path.stat().st_mtime
        if age > max_age:
            logger.debug("Cache expired for %s (age=%.0fs)", namespace, age)
            path.unlink(missing_ok=True)
            return None

        text = path.read_text(encoding="utf-8")
        if path.suffix == _TEXT_SUFFIX:
            logger.debug("Cache hit for %s", namespace)
            return text
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Dropping unreadable cache entry %s", path.name)
            path.unlink(missing_ok=True)
            return None
        logger.debug("Cache hit for %s", namespace)
        return data
    return None


def cache_set(
    namespace: str,
    params: dict[str, Any],
    data: Any,
    cache_dir: Path,
) -> Path:
    """Store a payload, replacing any earlier entry for the same key."""
    text_path, json_path = entry_paths(namespace, params, cache_dir)
    text_path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(data, str):
        path, stale = text_path, json_path
        path.write_text(data, encoding="utf-8")
    else:
        path, stale = json_path, text_path
        path.write_text(json.dumps(data, default=str), encoding="utf-8")
    stale.unlink(missing_ok=True)
    return path
