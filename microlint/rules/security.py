# microlint/rules/security.py
"""
Security heuristics over a workflow document.

Credential detection is a blunt text scan: the whole document is serialized
and tested against each pattern. Any key named password, api_key, apiKey,
secret or token that holds a quoted literal is flagged, whatever the value;
a longer key such as "api_key_name" is not. Each matching pattern yields one
finding, no matter how many times it matches.
"""

from __future__ import annotations
import json
import re
from functools import lru_cache
from typing import List, Pattern, Tuple

from microlint.core.document import nodes
from microlint.core.models import Finding, error, SECURITY_VIOLATION
from microlint.rules.config import RuleConfig


@lru_cache(maxsize=16)
def _compile(patterns: Tuple[str, ...]) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def check_credentials(doc, config: RuleConfig) -> List[Finding]:
    text = json.dumps(doc, ensure_ascii=False)
    findings: List[Finding] = []
    for pattern in _compile(tuple(config.credential_patterns)):
        m = pattern.search(text)
        if m:
            findings.append(error(
                SECURITY_VIOLATION,
                f"Potential hardcoded credentials detected (near {m.group(0)!r}); "
                f"use an n8n credential reference instead",
                code="HARDCODED_CREDENTIAL",
            ))
    return findings


def check_error_handling(doc, config: RuleConfig) -> List[Finding]:
    """Every node must declare a non-empty error_handling.strategy."""
    findings: List[Finding] = []
    for i, node in enumerate(nodes(doc)):
        eh = node.get("error_handling") if isinstance(node, dict) else None
        strategy = eh.get("strategy") if isinstance(eh, dict) else None
        if not strategy:
            name = node.get("name") if isinstance(node, dict) else None
            label = f"Node {i}" + (f" ({name})" if name else "")
            findings.append(error(
                config.error_handling_type,
                f"{label} missing error handling strategy (expected one of retry, continue, fail)",
                path=f"/implementation/n8n_nodes/{i}/error_handling",
                node_index=i,
                code="MISSING_ERROR_HANDLING",
            ))
    return findings


def check_security(doc, config: RuleConfig) -> List[Finding]:
    return check_credentials(doc, config) + check_error_handling(doc, config)
