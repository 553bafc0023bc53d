# microlint/rules/documentation.py
# Documentation completeness. Everything here is advisory: warnings only.

from typing import List

from microlint.core.document import as_list, dig, has_path
from microlint.core.models import Finding, warning, DOCUMENTATION
from microlint.rules.config import RuleConfig


def _pointer(dotted: str) -> str:
    return "/" + dotted.replace(".", "/")


def check_documentation(doc, config: RuleConfig) -> List[Finding]:
    findings: List[Finding] = []

    for field in config.required_doc_fields:
        if not has_path(doc, field):
            findings.append(warning(
                DOCUMENTATION,
                f"Missing documentation field {field}",
                path=_pointer(field),
                code="MISSING_FIELD",
            ))

    goal = dig(doc, "workflow_meta.goal")
    if isinstance(goal, str) and len(goal) < config.min_goal_length:
        findings.append(warning(
            DOCUMENTATION,
            f"Goal description is too short (< {config.min_goal_length} characters)",
            path="/workflow_meta/goal",
            code="SHORT_GOAL",
        ))

    explanation = dig(doc, "example.explanation")
    if not isinstance(explanation, str) or len(explanation) < config.min_explanation_length:
        findings.append(warning(
            DOCUMENTATION,
            f"Explanation should be more detailed (>={config.min_explanation_length} characters)",
            path="/example/explanation",
            code="SHORT_EXPLANATION",
        ))

    scenarios = as_list(dig(doc, "example.test_scenarios"))
    if len(scenarios) < config.min_test_scenarios:
        findings.append(warning(
            DOCUMENTATION,
            f"Should include at least {config.min_test_scenarios} test scenarios, found {len(scenarios)}",
            path="/example/test_scenarios",
            code="FEW_TEST_SCENARIOS",
        ))

    if not as_list(dig(doc, "reuse_info.chaining_examples")):
        findings.append(warning(
            DOCUMENTATION,
            "Missing workflow chaining examples",
            path="/reuse_info/chaining_examples",
            code="NO_CHAINING_EXAMPLES",
        ))

    return findings
