# microlint/catalog/docs_cache.py
"""
On-disk cache for n8n node documentation.

Entries are JSON files keyed by an md5 of (node_type, topic, version). An
entry older than `max_age_seconds` is evicted on read and by cleanup(); when
the cache grows past `max_size_bytes`, cleanup() drops least-recently-accessed
entries until it is back under 80% of the limit.

The fetcher is injectable: it takes (node_type, topic, version) and returns a
documentation dict or None. The default one serves the built-in table below.
"""

from __future__ import annotations

import hashlib
import json
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from microlint.utils.io import ensure_dir, read_json, write_json
from microlint.utils.logger import get_logger

log = get_logger("docs_cache")

DEFAULT_CACHE_DIR = os.environ.get("MICROLINT_DOCS_CACHE", ".n8n-docs-cache")
DEFAULT_MAX_AGE = 7 * 24 * 60 * 60
DEFAULT_MAX_SIZE = 100 * 1024 * 1024

POPULAR_NODES = (
    "nodes-base.slack",
    "nodes-base.httpRequest",
    "nodes-base.webhook",
    "nodes-base.googleSheets",
    "nodes-base.code",
    "nodes-base.if",
    "nodes-base.postgres",
    "nodes-base.gmail",
)

BUILTIN_DOCS: Dict[str, Dict[str, Any]] = {
    "nodes-base.slack": {
        "description": "Send messages to Slack channels",
        "parameters": {
            "channel": "Channel to send message to",
            "text": "Message text to send",
            "username": "Username to send message as",
        },
        "examples": [
            {"description": "Send simple message", "configuration": {"channel": "#general", "text": "Hello, team!"}},
        ],
        "credentials": ["slackApi"],
    },
    "nodes-base.httpRequest": {
        "description": "Make HTTP requests to external APIs",
        "parameters": {
            "method": "HTTP method (GET, POST, PUT, DELETE)",
            "url": "URL to make request to",
            "authentication": "Authentication method",
        },
        "examples": [
            {"description": "GET request", "configuration": {"method": "GET", "url": "https://api.example.com/data"}},
        ],
        "credentials": ["httpBasicAuth", "httpHeaderAuth"],
    },
}

Fetcher = Callable[[str, str, str], Optional[Dict[str, Any]]]

_METADATA_FILE = "cache-metadata.json"
_STATS_FILE = "cache-stats.json"


def builtin_fetcher(node_type: str, topic: str = "", version: str = "latest") -> Dict[str, Any]:
    key = node_type.replace("n8n-", "")
    return BUILTIN_DOCS.get(key) or {
        "description": f"Documentation for {node_type}",
        "parameters": {},
        "examples": [],
    }


def format_bytes(n: int) -> str:
    if n <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    size = float(n)
    while size >= 1024 and i < len(units) - 1:
        size /= 1024
        i += 1
    return f"{round(size, 2):g} {units[i]}"


def _empty_stats() -> Dict[str, int]:
    return {"total_requests": 0, "cache_hits": 0, "cache_misses": 0}


class DocsCache:
    def __init__(
        self,
        cache_dir: Union[str, Path] = DEFAULT_CACHE_DIR,
        max_age_seconds: float = DEFAULT_MAX_AGE,
        max_size_bytes: int = DEFAULT_MAX_SIZE,
        fetcher: Optional[Fetcher] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.cache_dir = ensure_dir(cache_dir)
        self.max_age = max_age_seconds
        self.max_size = max_size_bytes
        self.fetcher: Fetcher = fetcher or builtin_fetcher
        self.clock = clock
        self.metadata: Dict[str, Dict[str, Any]] = self._load(_METADATA_FILE, {})
        self.stats_data: Dict[str, int] = {**_empty_stats(), **self._load(_STATS_FILE, {})}

    # ---------- persistence ----------

    def _load(self, name: str, default: Any) -> Any:
        p = self.cache_dir / name
        if not p.exists():
            return default
        try:
            return read_json(p)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("ignoring unreadable %s: %s", p, e)
            return default

    def _save(self) -> None:
        write_json(self.cache_dir / _METADATA_FILE, self.metadata)
        write_json(self.cache_dir / _STATS_FILE, self.stats_data)

    def _entry_path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    # ---------- public API ----------

    @staticmethod
    def cache_key(node_type: str, topic: str = "", version: str = "latest") -> str:
        raw = json.dumps({"nodeType": node_type, "topic": topic, "version": version}, sort_keys=True)
        return hashlib.md5(raw.encode("utf-8")).hexdigest()

    def get(
        self,
        node_type: str,
        topic: str = "",
        version: str = "latest",
        force_refresh: bool = False,
    ) -> Dict[str, Any]:
        """
        Return {"source": "cache"|"api"|"error", "data": ..., "cached_at": ...}.
        """
        self.stats_data["total_requests"] += 1
        key = self.cache_key(node_type, topic, version)

        cached = None if force_refresh else self._read_entry(key)
        if cached is not None:
            self.stats_data["cache_hits"] += 1
            meta = self.metadata.setdefault(key, {"node_type": node_type, "cached_at": cached["cached_at"],
                                                  "size": cached.get("size", 0), "access_count": 0})
            meta["last_access"] = self.clock()
            meta["access_count"] = meta.get("access_count", 0) + 1
            self._save()
            log.debug("cache hit for %s", node_type)
            return {"source": "cache", "data": cached["data"], "cached_at": cached["cached_at"]}

        self.stats_data["cache_misses"] += 1
        log.debug("cache miss for %s", node_type)
        data = self.fetcher(node_type, topic, version)
        if data is None:
            self._save()
            return {"source": "error", "data": None, "error": f"Failed to fetch documentation for {node_type}"}

        now = self.clock()
        entry = {"key": key, "node_type": node_type, "data": data, "cached_at": now}
        entry["size"] = len(json.dumps(data))
        write_json(self._entry_path(key), entry)
        self.metadata[key] = {
            "node_type": node_type,
            "cached_at": now,
            "last_access": now,
            "access_count": 1,
            "size": entry["size"],
        }
        self._save()
        return {"source": "api", "data": data, "cached_at": now}

    def _read_entry(self, key: str) -> Optional[Dict[str, Any]]:
        p = self._entry_path(key)
        if not p.exists():
            return None
        try:
            entry = read_json(p)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("dropping corrupt cache entry %s: %s", p, e)
            self.remove(key)
            return None
        if self.clock() - float(entry.get("cached_at", 0)) > self.max_age:
            log.info("cache expired for %s", entry.get("node_type", key))
            self.remove(key)
            return None
        return entry

    def remove(self, key: str) -> None:
        self._entry_path(key).unlink(missing_ok=True)
        self.metadata.pop(key, None)
        self._save()

    def size_bytes(self) -> int:
        return sum(
            p.stat().st_size for p in self.cache_dir.glob("*.json")
            if p.name not in (_METADATA_FILE, _STATS_FILE)
        )

    def cleanup(self) -> List[str]:
        """Evict expired entries, then LRU entries while over size. Returns evicted node types."""
        evicted: List[str] = []
        now = self.clock()
        for key, meta in list(self.metadata.items()):
            if now - float(meta.get("cached_at", 0)) > self.max_age:
                evicted.append(meta.get("node_type", key))
                self.remove(key)

        current = self.size_bytes()
        if current > self.max_size:
            target = self.max_size * 0.8
            by_access = sorted(self.metadata.items(), key=lambda kv: kv[1].get("last_access", 0))
            for key, meta in by_access:
                if current <= target:
                    break
                size = self._entry_path(key).stat().st_size if self._entry_path(key).exists() else 0
                evicted.append(meta.get("node_type", key))
                self.remove(key)
                current -= size
        return evicted

    def prefetch(self, node_types=POPULAR_NODES) -> Dict[str, str]:
        """Warm the cache; returns node_type -> source."""
        return {nt: self.get(nt)["source"] for nt in node_types}

    def clear(self) -> None:
        for p in self.cache_dir.glob("*.json"):
            p.unlink()
        self.metadata = {}
        self.stats_data = _empty_stats()
        self._save()

    def stats(self) -> Dict[str, Any]:
        total = self.stats_data["total_requests"]
        hits = self.stats_data["cache_hits"]
        size = self.size_bytes()
        return {
            **self.stats_data,
            "hit_rate": round(hits / total * 100, 1) if total else 0.0,
            "entry_count": len(self.metadata),
            "size_bytes": size,
            "size": format_bytes(size),
        }
