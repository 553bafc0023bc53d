# microlint/rules/checker.py

from typing import Any, Callable, Dict, Iterable, List, Optional

from microlint.core.models import Finding
from microlint.rules.config import DEFAULT_RULES, RuleConfig
from microlint.rules.naming import check_naming
from microlint.rules.business import check_business_rules
from microlint.rules.security import check_security
from microlint.rules.tenant import check_tenant_isolation
from microlint.rules.documentation import check_documentation
from microlint.rules.performance import check_performance

RuleFn = Callable[[Any, RuleConfig, Optional[str]], List[Finding]]

# Run order is part of the output contract (CLI lines, test assertions).
RULE_GROUPS: Dict[str, RuleFn] = {
    "naming": check_naming,
    "business": lambda doc, cfg, _src: check_business_rules(doc, cfg),
    "security": lambda doc, cfg, _src: check_security(doc, cfg),
    "tenant": lambda doc, cfg, _src: check_tenant_isolation(doc, cfg),
    "documentation": lambda doc, cfg, _src: check_documentation(doc, cfg),
    "performance": lambda doc, cfg, _src: check_performance(doc, cfg),
}


def rule_check(
    document: Any,
    config: RuleConfig = DEFAULT_RULES,
    source: Optional[str] = None,
    select: Optional[Iterable[str]] = None,
) -> List[Finding]:
    """
    Run every rule group (or the selected ones) over a parsed document.

    Groups never short-circuit each other: a single call surfaces all issues.
    `source` is the file path the document came from, used by the naming
    group to check the <category>/<id>.json layout.
    """
    wanted = list(RULE_GROUPS) if select is None else list(select)
    unknown = [g for g in wanted if g not in RULE_GROUPS]
    if unknown:
        raise ValueError(f"Unknown rule group(s): {', '.join(unknown)}. "
                         f"Choose from: {', '.join(RULE_GROUPS)}")

    findings: List[Finding] = []
    for name, fn in RULE_GROUPS.items():
        if name in wanted:
            findings.extend(fn(document, config, source))
    return findings
