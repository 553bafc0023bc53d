# microlint/rules/performance.py

from typing import List

from microlint.core.document import nodes
from microlint.core.models import Finding, warning, PERFORMANCE_CONCERN
from microlint.rules.config import RuleConfig


def check_performance(doc, config: RuleConfig) -> List[Finding]:
    findings: List[Finding] = []
    ns = nodes(doc)

    if len(ns) > config.max_nodes:
        findings.append(warning(
            PERFORMANCE_CONCERN,
            f"High node count ({len(ns)}) may impact performance",
            path="/implementation/n8n_nodes",
        ))

    for i, node in enumerate(ns):
        timeout = node.get("timeout") if isinstance(node, dict) else None
        # bool is an int subclass; a stray true/false is a schema issue, not a timeout
        if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) \
                and timeout > config.max_node_timeout_ms:
            findings.append(warning(
                PERFORMANCE_CONCERN,
                f"Node {i} timeout {timeout}ms exceeds {config.max_node_timeout_ms}ms "
                f"and may impact user experience",
                path=f"/implementation/n8n_nodes/{i}/timeout",
                node_index=i,
            ))

    return findings
