# microlint/catalog/embedding.py
"""
Embedding utilities for workflow discovery.

Backends, in order of preference:
   - OpenAI embeddings if OPENAI_API_KEY is set (model from MICROLINT_EMBED_MODEL,
     default text-embedding-3-small)
   - sentence-transformers local model if installed (extra: microlint[local])

Vectors are cached per text in a pickle file (MICROLINT_EMB_CACHE) so that
re-indexing an unchanged catalog costs no API calls. The catalog index itself
is a JSON file {workflow_id: {"vector": [...], "goal": ..., "category": ...}}.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import math
import os
import pickle

from microlint.utils.io import read_json, write_json
from microlint.utils.logger import get_logger

log = get_logger("embedding")

DEFAULT_MODEL = os.environ.get("MICROLINT_EMBED_MODEL", "text-embedding-3-small")
CACHE_PATH = os.path.expanduser(os.environ.get("MICROLINT_EMB_CACHE", "~/.microlint_emb_cache.pkl"))
LOCAL_MODEL = "all-MiniLM-L6-v2"


class EmbeddingCache:
    """text -> vector, persisted with pickle (best effort)."""

    def __init__(self, path: Optional[Union[str, Path]] = CACHE_PATH):
        self.path = Path(path) if path else None
        self.data: Dict[str, List[float]] = {}
        if self.path and self.path.is_file():
            try:
                with self.path.open("rb") as f:
                    self.data.update(pickle.load(f))
            except (OSError, pickle.UnpicklingError, EOFError) as e:
                log.warning("ignoring unreadable embedding cache %s: %s", self.path, e)

    def get(self, text: str) -> Optional[List[float]]:
        return self.data.get(text)

    def put(self, text: str, vector: List[float]) -> None:
        self.data[text] = vector
        if not self.path:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("wb") as f:
                pickle.dump(self.data, f)
        except OSError as e:
            log.warning("could not persist embedding cache: %s", e)


def cosine(a: List[float], b: List[float]) -> float:
    """Cosine similarity for embeddings."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0.0 or nb == 0.0:
        return 0.0
    return dot / (na * nb)


def embedding_text(workflow: Dict[str, Any]) -> str:
    """Goal, category, tags, input property names and success output keys, space-joined."""
    meta = workflow.get("workflow_meta") or {}
    props = ((workflow.get("inputs") or {}).get("schema") or {}).get("properties") or {}
    success = (workflow.get("outputs") or {}).get("success") or {}
    parts = [
        meta.get("goal") or "",
        meta.get("category") or "",
        " ".join(meta.get("tags") or []),
        " ".join(props.keys()) if isinstance(props, dict) else "",
        " ".join(success.keys()) if isinstance(success, dict) else "",
    ]
    return " ".join(p for p in parts if p)


class Embedder:
    """
    Return embeddings using the available backend.
    `client` may be any object exposing `embeddings.create(model=..., input=...)`.
    """

    def __init__(self, client: Any = None, model: str = DEFAULT_MODEL,
                 cache: Optional[EmbeddingCache] = None, allow_local: bool = True):
        self.client = client if client is not None else _openai_client()
        self.model = model
        self.cache = cache if cache is not None else EmbeddingCache()
        self.allow_local = allow_local
        self._st_model = None
        self._st_failed = False

    @property
    def available(self) -> bool:
        return self.client is not None or (self.allow_local and self._local_model() is not None)

    def embed(self, text: str) -> Optional[List[float]]:
        text = (text or "").strip()
        if not text:
            return None

        hit = self.cache.get(text)
        if hit is not None:
            return hit

        emb: Optional[List[float]] = None
        if self.client is not None:
            try:
                resp = self.client.embeddings.create(model=self.model, input=text)
                emb = list(resp.data[0].embedding)
            except Exception as e:  # network / auth / quota: fall back to local model
                log.warning("OpenAI embedding failed (%s); trying local model", e)

        if emb is None and self.allow_local:
            model = self._local_model()
            if model is not None:
                try:
                    emb = model.encode([text])[0].tolist()
                except Exception as e:
                    log.warning("local embedding failed: %s", e)

        if emb is not None:
            self.cache.put(text, emb)
        return emb

    def _local_model(self):
        if self._st_model is None and not self._st_failed:
            try:
                from sentence_transformers import SentenceTransformer  # lazy import
            except ImportError:
                return None
            try:
                self._st_model = SentenceTransformer(LOCAL_MODEL)
            except Exception as e:  # download / disk / torch errors: not retried
                log.warning("could not load local model %s: %s", LOCAL_MODEL, e)
                self._st_failed = True
        return self._st_model


def _openai_client() -> Any:
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        return None
    from openai import OpenAI  # lazy import

    kwargs: Dict[str, Any] = {"api_key": api_key}
    base_url = os.environ.get("OPENAI_BASE_URL")
    if base_url:
        kwargs["base_url"] = base_url
    return OpenAI(**kwargs)


# ---------- Catalog index ----------

def build_embedding_index(
    workflows: List[Dict[str, Any]],
    embedder: Embedder,
) -> Tuple[Dict[str, Dict[str, Any]], List[str]]:
    """Embed each workflow; returns (index, skipped_ids)."""
    index: Dict[str, Dict[str, Any]] = {}
    skipped: List[str] = []
    for wf in workflows:
        meta = wf.get("workflow_meta") or {}
        wid = meta.get("id")
        if not wid:
            continue
        vec = embedder.embed(embedding_text(wf))
        if vec is None:
            skipped.append(wid)
            continue
        index[wid] = {"vector": vec, "goal": meta.get("goal"), "category": meta.get("category")}
    return index, skipped


def save_index(index: Dict[str, Dict[str, Any]], path: Union[str, Path]) -> Path:
    return write_json(path, index, indent=None)


def load_index(path: Union[str, Path]) -> Dict[str, Dict[str, Any]]:
    return read_json(path)


def search(
    query: str,
    index: Dict[str, Dict[str, Any]],
    embedder: Embedder,
    threshold: float = 0.8,
    top_k: int = 10,
) -> List[Dict[str, Any]]:
    """Workflows whose cosine similarity to the query is >= threshold, best first."""
    q = embedder.embed(query)
    if q is None:
        raise RuntimeError("No embedding backend available. Set OPENAI_API_KEY or `pip install microlint[local]`")
    scored = []
    for wid, entry in index.items():
        sim = cosine(q, entry.get("vector") or [])
        if sim >= threshold:
            scored.append({"id": wid, "similarity": round(sim, 4), "goal": entry.get("goal")})
    scored.sort(key=lambda x: (-x["similarity"], x["id"]))
    return scored[:top_k]
