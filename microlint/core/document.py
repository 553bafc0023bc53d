# microlint/core/document.py
# Tolerant accessors over a raw workflow document. Rules run even when the
# schema check failed, so nothing here assumes a field exists or has the right type.

from typing import Any, Dict, List, Optional

_MISSING = object()


def dig(doc: Any, dotted: str, default: Any = None) -> Any:
    """dig(doc, 'example.explanation') -> value or default if any hop is missing."""
    cur = doc
    for key in dotted.split("."):
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur


def has_path(doc: Any, dotted: str) -> bool:
    return dig(doc, dotted, _MISSING) is not _MISSING


def meta(doc: Any) -> Dict[str, Any]:
    m = dig(doc, "workflow_meta")
    return m if isinstance(m, dict) else {}


def workflow_id(doc: Any) -> Optional[str]:
    wid = meta(doc).get("id")
    return wid if isinstance(wid, str) else None


def nodes(doc: Any) -> List[Any]:
    ns = dig(doc, "implementation.n8n_nodes")
    return ns if isinstance(ns, list) else []


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []
