# microlint/utils/io.py
# File helpers shared by the pipeline, the catalog and the caches.
# Writes go through a sibling temp file so readers never see a half-written file.
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, List, TextIO, Union

import yaml

PathLike = Union[str, Path]


# ---------- paths ----------

def to_path(p: PathLike) -> Path:
    return p if isinstance(p, Path) else Path(p)


def ensure_dir(p: PathLike) -> Path:
    d = to_path(p)
    d.mkdir(parents=True, exist_ok=True)
    return d


def ensure_parent(path: PathLike) -> Path:
    p = to_path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


def find_files(root: PathLike, pattern: str = "**/*.json") -> List[Path]:
    """Files under `root` matching a (possibly recursive) glob, sorted. A missing root yields []."""
    return sorted(p for p in to_path(root).glob(pattern) if p.is_file())


# ---------- reading ----------

def read_text(path: PathLike) -> str:
    return to_path(path).read_text(encoding="utf-8")


def read_json(path: PathLike) -> Any:
    with to_path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def read_yaml(path: PathLike) -> Any:
    with to_path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


_LOADERS = {
    ".json": read_json,
    ".yaml": read_yaml,
    ".yml": read_yaml,
}


def load_any(path: PathLike) -> Any:
    """Dispatch on extension: .json, .yaml and .yml are supported."""
    p = to_path(path)
    loader = _LOADERS.get(p.suffix.lower())
    if loader is None:
        raise ValueError(f"Unsupported extension {p.suffix!r} for {p} (expected .json, .yaml or .yml)")
    return loader(p)


# ---------- writing ----------

def _atomic_write(path: PathLike, dump: Callable[[TextIO], None]) -> Path:
    p = ensure_parent(path)
    tmp = p.with_name(p.name + ".tmp")
    with tmp.open("w", encoding="utf-8", newline="") as f:
        dump(f)
    tmp.replace(p)
    return p


def write_text(path: PathLike, text: str) -> Path:
    return _atomic_write(path, lambda f: f.write(text))


def write_json(path: PathLike, data: Any, indent: Union[int, None] = 2) -> Path:
    return _atomic_write(path, lambda f: json.dump(data, f, ensure_ascii=False, indent=indent))
