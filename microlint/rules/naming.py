# microlint/rules/naming.py
# Identifier and file-layout conventions: function__tool__output ids living at <category>/<id>.json

from __future__ import annotations
import re
from pathlib import Path
from typing import List, Optional

from microlint.core.document import meta, nodes, workflow_id
from microlint.core.models import (
    Finding, error, warning,
    BUSINESS_RULE, NAMING, CATEGORY_MISMATCH, TOOL_MISMATCH, NAMING_QUALITY,
)
from microlint.rules.config import RuleConfig

_ID_PATH = "/workflow_meta/id"


def check_naming(doc, config: RuleConfig, source: Optional[str] = None) -> List[Finding]:
    wid = workflow_id(doc)
    if wid is None:
        # missing/non-string id is a schema violation; nothing to check here
        return []

    findings: List[Finding] = []

    if not re.match(config.id_pattern, wid):
        findings.append(error(
            NAMING,
            f'ID "{wid}" doesn\'t follow [function]__[tool]__[output] pattern ({config.id_pattern})',
            path=_ID_PATH,
            code="INVALID_FORMAT",
        ))

    segments = wid.split("__")
    prefix = segments[0]
    if prefix not in config.approved_prefixes:
        findings.append(error(
            BUSINESS_RULE,
            f'Function prefix "{prefix}" not in approved list: {", ".join(config.approved_prefixes)}',
            path=_ID_PATH,
            code="INVALID_PREFIX",
            allowed=list(config.approved_prefixes),
        ))

    category = meta(doc).get("category")
    if isinstance(category, str) and category not in config.categories:
        findings.append(error(
            NAMING,
            f'Invalid category "{category}". Must be one of: {", ".join(config.categories)}',
            path="/workflow_meta/category",
            code="INVALID_CATEGORY",
            allowed=list(config.categories),
        ))

    if source:
        findings.extend(_check_location(doc, wid, source))

    if len(segments) >= 3:
        findings.extend(_check_tool_name(doc, segments[1], config))
        findings.extend(_check_output_name(segments[2], config))

    return findings


def _check_location(doc, wid: str, source: str) -> List[Finding]:
    """File must be named <id>.json and live in a directory named after its category."""
    out: List[Finding] = []
    p = Path(source)

    expected = f"{wid}.json"
    if p.name != expected:
        out.append(error(
            NAMING,
            f'File name should be "{expected}", found "{p.name}"',
            path=_ID_PATH,
            code="FILE_NAME_MISMATCH",
        ))

    category = meta(doc).get("category")
    dir_category = p.parent.name
    if isinstance(category, str) and category != dir_category:
        out.append(warning(
            CATEGORY_MISMATCH,
            f'Workflow category "{category}" doesn\'t match directory "{dir_category}"',
            path="/workflow_meta/category",
        ))
    return out


def _check_tool_name(doc, tool: str, config: RuleConfig) -> List[Finding]:
    node_types = [str(n.get("type", "")).lower() for n in nodes(doc) if isinstance(n, dict)]
    if not node_types:
        return []
    keywords = config.tool_mappings.get(tool, ())
    if any(k in t for k in keywords for t in node_types):
        return []
    return [warning(
        TOOL_MISMATCH,
        f'Tool name "{tool}" doesn\'t align with node types: {", ".join(node_types)}',
        path=_ID_PATH,
    )]


def _check_output_name(output: str, config: RuleConfig) -> List[Finding]:
    out: List[Finding] = []
    if len(output) < config.min_output_name_length:
        out.append(warning(
            NAMING_QUALITY,
            f'Output name "{output}" should be more descriptive',
            path=_ID_PATH,
            code="OUTPUT_TOO_SHORT",
        ))
    if output in config.generic_output_names:
        out.append(warning(
            NAMING_QUALITY,
            f'Output name "{output}" is too generic, be more specific',
            path=_ID_PATH,
            code="GENERIC_OUTPUT_NAME",
        ))
    return out


def suggest_ids(description: str, tool: str) -> List[str]:
    """
    Propose candidate ids for a new workflow from a free-text description.
    Only verbs whose intent is visible in the description are proposed.
    """
    text = description.lower()
    slug = re.sub(r"\s+", "_", re.sub(r"[^a-z0-9\s]", "", text).strip())[:20].strip("_")
    # ids only allow [a-z_] in the output segment
    slug = re.sub(r"[^a-z_]", "", slug) or "item"
    cues = (
        ("generate", ("create", "generate")),
        ("validate", ("validate", "check")),
        ("get", ("get", "fetch")),
    )
    return [f"{verb}__{tool}__{slug}" for verb, words in cues if any(w in text for w in words)]
