# microlint/catalog/catalog.py
"""
Workflow catalog generation.

Reads every workflow definition under the catalog root and renders:
  - docs/workflow-catalog.md : human-oriented catalog (categories, details,
    reuse compatibility matrix, tag index, chaining issues)
  - docs/workflow-index.json : machine-readable index by category and tag
"""

from __future__ import annotations

import json
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from microlint.catalog.chaining import build_chain_graph, chain_issues
from microlint.utils.io import find_files, read_json, write_json, write_text
from microlint.utils.logger import get_logger

log = get_logger("catalog")


def load_workflows(root: Union[str, Path], pattern: str = "**/*.json") -> List[Dict[str, Any]]:
    """
    Load workflow documents that carry a workflow_meta block.
    Each returned dict is the document plus a "_file" key.
    """
    out: List[Dict[str, Any]] = []
    for fp in find_files(root, pattern):
        try:
            wf = read_json(fp)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("skipping %s: %s", fp, e)
            continue
        if not isinstance(wf, dict) or not isinstance(wf.get("workflow_meta"), dict):
            log.warning("skipping %s: no workflow_meta block", fp)
            continue
        if not isinstance(wf["workflow_meta"].get("id"), str):
            log.warning("skipping %s: workflow_meta.id is not a string", fp)
            continue
        out.append({**wf, "_file": fp.as_posix()})
    return out


def _meta(wf: Dict[str, Any]) -> Dict[str, Any]:
    return wf.get("workflow_meta") or {}


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _joined(value: Any, empty: str = "") -> str:
    return ", ".join(str(v) for v in _list(value)) or empty


def group_by_category(workflows: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    groups: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for wf in workflows:
        groups[str(_meta(wf).get("category") or "uncategorized")].append(wf)
    return {
        cat: sorted(items, key=lambda w: str(_meta(w).get("id", "")))
        for cat, items in sorted(groups.items())
    }


def tag_index(workflows: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    idx: Dict[str, List[str]] = defaultdict(list)
    for wf in workflows:
        wid = _meta(wf).get("id")
        if wid is None:
            continue
        for tag in _list(_meta(wf).get("tags")):
            idx[str(tag)].append(str(wid))
    return {tag: sorted(ids) for tag, ids in sorted(idx.items())}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def build_catalog_markdown(workflows: List[Dict[str, Any]], generated_at: Optional[str] = None) -> str:
    generated_at = generated_at or _now_iso()
    groups = group_by_category(workflows)
    lines: List[str] = [
        "# N8N Microflows Catalog",
        "",
        f"*Auto-generated on {generated_at}*",
        "",
        "## Overview",
        "",
        f"Total workflows: **{len(workflows)}**",
        "",
        "### Categories Summary",
        "",
    ]
    for cat, items in groups.items():
        lines.append(f"- **{cat.capitalize()}**: {len(items)} workflow(s)")
    lines += ["", "---", ""]

    for cat, items in groups.items():
        lines += [f"## {cat.capitalize()} Workflows", ""]
        for wf in items:
            m = _meta(wf)
            lines += [
                f"### `{m.get('id')}`",
                "",
                f"**Goal**: {m.get('goal', '')}",
                "",
                "**Details**:",
                f"- Complexity: {m.get('complexity')}",
                f"- Execution Time: {m.get('execution_time', 'n/a')}",
                f"- Reuse Potential: {m.get('reuse_potential')}",
                f"- Tenant Aware: {m.get('tenant_aware')}",
            ]
            if m.get("dependencies"):
                lines.append(f"- Dependencies: {_joined(m['dependencies'])}")
            if m.get("tags"):
                lines.append(f"- Tags: {', '.join(f'`{t}`' for t in _list(m['tags']))}")
            lines.append("")
        lines.append("")

    lines += [
        "## Reuse Compatibility Matrix",
        "",
        "| Workflow ID | Compatible With | Input From | Output To |",
        "|-------------|----------------|------------|----------|",
    ]
    for wf in sorted(workflows, key=lambda w: str(_meta(w).get("id", ""))):
        reuse = wf.get("reuse_info") or {}
        lines.append(
            f"| `{_meta(wf).get('id')}` "
            f"| {_joined(reuse.get('compatible_with'), 'None')} "
            f"| {_joined(reuse.get('input_from'), 'Manual')} "
            f"| {_joined(reuse.get('output_to'), 'Terminal')} |"
        )

    lines += ["", "## Search by Tags", ""]
    for tag, ids in tag_index(workflows).items():
        lines += [f"**{tag}**: {', '.join(f'`{i}`' for i in ids)}", ""]

    issues = chain_issues(build_chain_graph(workflows))
    if issues:
        lines += ["## Chaining Issues", ""]
        lines += [f"- {it}" for it in issues]
        lines.append("")

    lines += [
        "---",
        "",
        "*This catalog is automatically updated when workflows are added or modified.*",
        "",
    ]
    return "\n".join(lines)


def build_index(workflows: List[Dict[str, Any]], generated_at: Optional[str] = None) -> Dict[str, Any]:
    return {
        "generated_at": generated_at or _now_iso(),
        "total_workflows": len(workflows),
        "categories": {
            cat: [
                {
                    "id": _meta(w).get("id"),
                    "goal": _meta(w).get("goal"),
                    "complexity": _meta(w).get("complexity"),
                    "reuse_potential": _meta(w).get("reuse_potential"),
                    "tags": _meta(w).get("tags") or [],
                }
                for w in items
            ]
            for cat, items in group_by_category(workflows).items()
        },
        "tag_index": tag_index(workflows),
    }


def write_catalog(
    root: Union[str, Path] = "microflows",
    out_dir: Union[str, Path] = "docs",
    generated_at: Optional[str] = None,
) -> Tuple[Path, Path, int]:
    """Write the markdown catalog and JSON index; returns (md_path, json_path, count)."""
    workflows = load_workflows(root)
    stamp = generated_at or _now_iso()
    out = Path(out_dir)
    md_path = write_text(out / "workflow-catalog.md", build_catalog_markdown(workflows, stamp))
    json_path = write_json(out / "workflow-index.json", build_index(workflows, stamp))
    log.info("catalog written with %d workflows to %s", len(workflows), out)
    return md_path, json_path, len(workflows)
