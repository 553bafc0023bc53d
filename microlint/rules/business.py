# microlint/rules/business.py

from typing import List

from microlint.core.document import as_list, meta, nodes
from microlint.core.models import Finding, warning, COMPLEXITY_MISMATCH, REUSE_CONCERN
from microlint.rules.config import RuleConfig


def _band_label(lo, hi) -> str:
    if lo is None:
        return f"<={hi}"
    if hi is None:
        return f">{lo - 1}"
    return f"{lo}-{hi}"


def check_complexity(doc, config: RuleConfig) -> List[Finding]:
    """Node count should sit inside the band declared by workflow_meta.complexity (warning only)."""
    complexity = meta(doc).get("complexity")
    band = config.complexity_bands.get(complexity) if isinstance(complexity, str) else None
    if band is None:
        return []

    lo, hi = band
    count = len(nodes(doc))
    if (lo is not None and count < lo) or (hi is not None and count > hi):
        return [warning(
            COMPLEXITY_MISMATCH,
            f"{complexity.capitalize()} workflows should have {_band_label(lo, hi)} nodes, found {count}",
            path="/implementation/n8n_nodes",
        )]
    return []


def check_reuse(doc, config: RuleConfig) -> List[Finding]:
    m = meta(doc)
    deps = as_list(m.get("dependencies"))
    if m.get("reuse_potential") == "high" and len(deps) > config.max_dependencies_high_reuse:
        return [warning(
            REUSE_CONCERN,
            f"High reuse potential workflows should minimize dependencies "
            f"(found {len(deps)}: {', '.join(map(str, deps))})",
            path="/workflow_meta/dependencies",
        )]
    return []


def check_business_rules(doc, config: RuleConfig) -> List[Finding]:
    return check_complexity(doc, config) + check_reuse(doc, config)
