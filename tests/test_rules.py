import pytest

from microlint.core.models import (
    BUSINESS_RULE, NAMING, COMPLEXITY_MISMATCH, SECURITY_VIOLATION, RELIABILITY,
    TENANT_ISOLATION, DOCUMENTATION, CATEGORY_MISMATCH, TOOL_MISMATCH, NAMING_QUALITY,
    PERFORMANCE_CONCERN, ERROR, WARNING,
)
from microlint.rules.business import check_complexity, check_reuse
from microlint.rules.checker import RULE_GROUPS, rule_check
from microlint.rules.config import DEFAULT_RULES, rule_config_from_dict
from microlint.rules.documentation import check_documentation
from microlint.rules.naming import check_naming, suggest_ids
from microlint.rules.performance import check_performance
from microlint.rules.security import check_credentials, check_error_handling
from microlint.rules.tenant import check_tenant_isolation


def _types(findings):
    return [f.type for f in findings]


def _node(name="Step", **extra):
    node = {"name": name, "type": "n8n-nodes-base.noOp", "error_handling": {"strategy": "continue"}}
    node.update(extra)
    return node


# ---- naming ----

def test_naming_accepts_valid_id(workflow):
    assert check_naming(workflow, DEFAULT_RULES) == []


@pytest.mark.parametrize("prefix", ["fetch", "notify", "send"])
def test_naming_rejects_unapproved_prefix(workflow, prefix):
    workflow["workflow_meta"]["id"] = f"{prefix}__slack__team_notification"
    findings = check_naming(workflow, DEFAULT_RULES)
    assert _types(findings) == [BUSINESS_RULE]
    assert findings[0].code == "INVALID_PREFIX"
    assert findings[0].severity == ERROR
    assert "post" in findings[0].allowed


@pytest.mark.parametrize("wid", ["notify_team", "Post__slack__x", "post__slack", "post__sl4ck__team"])
def test_naming_pattern_violation_is_an_error(workflow, wid):
    workflow["workflow_meta"]["id"] = wid
    findings = check_naming(workflow, DEFAULT_RULES)
    assert any(f.type in (NAMING, BUSINESS_RULE) and f.severity == ERROR for f in findings)
    assert any(f.code == "INVALID_FORMAT" for f in findings)


def test_naming_without_double_underscore_reports_format_and_prefix(workflow):
    workflow["workflow_meta"]["id"] = "notify_team"
    findings = check_naming(workflow, DEFAULT_RULES)
    assert [f.code for f in findings] == ["INVALID_FORMAT", "INVALID_PREFIX"]


def test_naming_skips_missing_id(workflow):
    del workflow["workflow_meta"]["id"]
    assert check_naming(workflow, DEFAULT_RULES) == []


def test_naming_file_layout(workflow):
    good = "microflows/communication/post__slack__team_notification.json"
    assert check_naming(workflow, DEFAULT_RULES, source=good) == []

    findings = check_naming(workflow, DEFAULT_RULES, source="microflows/data/notify.json")
    assert _types(findings) == [NAMING, CATEGORY_MISMATCH]
    assert findings[0].code == "FILE_NAME_MISMATCH"
    assert findings[0].severity == ERROR
    assert findings[1].severity == WARNING


def test_naming_rejects_unknown_category(workflow):
    workflow["workflow_meta"]["category"] = "marketing"
    (finding,) = check_naming(workflow, DEFAULT_RULES)
    assert finding.type == NAMING
    assert finding.code == "INVALID_CATEGORY"
    assert finding.path == "/workflow_meta/category"
    assert "communication" in finding.allowed


def test_category_table_comes_from_config(workflow):
    cfg = rule_config_from_dict({"categories": ["content"]})
    assert [f.code for f in rule_check(workflow, cfg)] == ["INVALID_CATEGORY"]

    cfg = rule_config_from_dict({"categories": ["content", "communication"]})
    assert rule_check(workflow, cfg) == []


def test_naming_tool_and_output_quality(workflow):
    workflow["workflow_meta"]["id"] = "post__gpt__data"
    findings = check_naming(workflow, DEFAULT_RULES)
    assert TOOL_MISMATCH in _types(findings)
    assert [f.code for f in findings if f.type == NAMING_QUALITY] == ["GENERIC_OUTPUT_NAME"]
    assert all(f.severity == WARNING for f in findings)


def test_naming_short_output_name(workflow):
    workflow["workflow_meta"]["id"] = "post__slack__ok"
    codes = [f.code for f in check_naming(workflow, DEFAULT_RULES)]
    assert codes == ["OUTPUT_TOO_SHORT"]


def test_suggest_ids():
    assert suggest_ids("Fetch open tickets", "jira") == ["get__jira__fetch_open_tickets"]
    assert suggest_ids("Create or check post", "gpt") == [
        "generate__gpt__create_or_check_post",
        "validate__gpt__create_or_check_post",
    ]
    assert suggest_ids("nothing actionable", "http") == []


# ---- complexity / reuse ----

@pytest.mark.parametrize("complexity,count,expected", [
    ("simple", 1, 0), ("simple", 3, 0), ("simple", 4, 1),
    ("medium", 2, 1), ("medium", 3, 0), ("medium", 5, 0), ("medium", 8, 0), ("medium", 9, 1),
    ("complex", 8, 1), ("complex", 9, 0), ("complex", 20, 0),
])
def test_complexity_bands(workflow, complexity, count, expected):
    workflow["workflow_meta"]["complexity"] = complexity
    workflow["implementation"]["n8n_nodes"] = [_node(f"n{i}") for i in range(count)]
    findings = check_complexity(workflow, DEFAULT_RULES)
    assert len(findings) == expected
    assert all(f.type == COMPLEXITY_MISMATCH and f.severity == WARNING for f in findings)


def test_complexity_message_mentions_band(workflow):
    workflow["implementation"]["n8n_nodes"] = [_node(f"n{i}") for i in range(4)]
    (finding,) = check_complexity(workflow, DEFAULT_RULES)
    assert finding.message == "Simple workflows should have <=3 nodes, found 4"


def test_unknown_complexity_is_left_to_schema(workflow):
    workflow["workflow_meta"]["complexity"] = "huge"
    assert check_complexity(workflow, DEFAULT_RULES) == []


def test_reuse_concern(workflow):
    workflow["workflow_meta"]["dependencies"] = ["a", "b"]
    assert check_reuse(workflow, DEFAULT_RULES) == []
    workflow["workflow_meta"]["dependencies"] = ["a", "b", "c"]
    assert len(check_reuse(workflow, DEFAULT_RULES)) == 1
    workflow["workflow_meta"]["reuse_potential"] = "medium"
    assert check_reuse(workflow, DEFAULT_RULES) == []


# ---- security ----

def test_hardcoded_password_is_one_error(workflow):
    workflow["implementation"]["n8n_nodes"][2]["parameters"]["password"] = "abc12345"
    findings = check_credentials(workflow, DEFAULT_RULES)
    assert _types(findings) == [SECURITY_VIOLATION]
    assert findings[0].severity == ERROR


def test_password_policy_is_not_a_leak(workflow):
    workflow["implementation"]["n8n_nodes"][2]["parameters"]["password_policy"] = "enforced"
    assert check_credentials(workflow, DEFAULT_RULES) == []


def test_one_finding_per_pattern_not_per_match(workflow):
    params = workflow["implementation"]["n8n_nodes"][2]["parameters"]
    params["password"] = "x1"
    params["nested"] = {"password": "x2", "api_key": "k", "apiKey": "k2"}
    findings = check_credentials(workflow, DEFAULT_RULES)
    assert len(findings) == 2


@pytest.mark.parametrize("text", [
    "password='hunter2'", "api-key: 'abc'", "client_secret = 'x'",
])
def test_credentials_inside_string_values(workflow, text):
    workflow["example"]["explanation"] = text
    assert len(check_credentials(workflow, DEFAULT_RULES)) == 1


def test_credential_keys_match_regardless_of_value(workflow):
    # only exact credential key names match; a literal value of any shape is flagged
    workflow["implementation"]["n8n_nodes"][0]["parameters"]["api_key_name"] = "my_config"
    assert check_credentials(workflow, DEFAULT_RULES) == []
    workflow["implementation"]["n8n_nodes"][0]["parameters"]["token"] = "={{$json.t}}"
    assert len(check_credentials(workflow, DEFAULT_RULES)) == 1


def test_missing_error_handling_per_node(workflow):
    nodes = workflow["implementation"]["n8n_nodes"]
    del nodes[0]["error_handling"]
    nodes[2]["error_handling"] = {"strategy": ""}
    findings = check_error_handling(workflow, DEFAULT_RULES)
    assert [f.node_index for f in findings] == [0, 2]
    assert all(f.type == SECURITY_VIOLATION and f.severity == ERROR for f in findings)
    assert findings[0].path == "/implementation/n8n_nodes/0/error_handling"


def test_error_handling_can_be_reported_as_reliability(workflow):
    cfg = rule_config_from_dict({"error_handling_type": RELIABILITY})
    del workflow["implementation"]["n8n_nodes"][1]["error_handling"]
    (finding,) = check_error_handling(workflow, cfg)
    assert finding.type == RELIABILITY
    assert finding.severity == ERROR


# ---- tenant isolation ----

def test_tenant_rule_skipped_when_not_tenant_aware(workflow):
    workflow["workflow_meta"]["tenant_aware"] = "no"
    workflow["supabase_config"] = {"tables": [{"name": "t"}]}
    assert check_tenant_isolation(workflow, DEFAULT_RULES) == []


def test_tenant_aware_without_isolation_block(workflow):
    workflow["workflow_meta"]["tenant_aware"] = "yes"
    findings = check_tenant_isolation(workflow, DEFAULT_RULES)
    assert _types(findings) == [TENANT_ISOLATION]


def test_tenant_isolation_required_must_be_truthy(workflow):
    workflow["workflow_meta"]["tenant_aware"] = "yes"
    workflow["inputs"]["tenant_isolation"] = {"required": False}
    assert len(check_tenant_isolation(workflow, DEFAULT_RULES)) == 1
    workflow["inputs"]["tenant_isolation"] = {"required": True}
    assert check_tenant_isolation(workflow, DEFAULT_RULES) == []


def test_tenant_tables_and_rls(workflow):
    workflow["workflow_meta"]["tenant_aware"] = "yes"
    workflow["inputs"]["tenant_isolation"] = {"required": True}
    workflow["supabase_config"] = {"tables": [{"name": "a", "tenant_field": "tenant_id"}, {"name": "b"}]}
    findings = check_tenant_isolation(workflow, DEFAULT_RULES)
    assert [f.code for f in findings] == ["MISSING_RLS_POLICIES", "MISSING_TENANT_FIELD"]
    assert "Table b" in findings[1].message


# ---- documentation / performance ----

def test_documentation_never_errors(workflow):
    workflow["example"] = {"explanation": "short"}
    del workflow["reuse_info"]
    findings = check_documentation(workflow, DEFAULT_RULES)
    assert findings
    assert all(f.type == DOCUMENTATION and f.severity == WARNING for f in findings)
    missing = [f.message for f in findings if f.code == "MISSING_FIELD"]
    assert missing == [
        "Missing documentation field example.input",
        "Missing documentation field example.output",
        "Missing documentation field reuse_info",
    ]


def test_explanation_length_boundary(workflow):
    workflow["example"]["explanation"] = "x" * 50
    assert not [f for f in check_documentation(workflow, DEFAULT_RULES) if f.code == "SHORT_EXPLANATION"]
    workflow["example"]["explanation"] = "x" * 49
    assert [f for f in check_documentation(workflow, DEFAULT_RULES) if f.code == "SHORT_EXPLANATION"]


def test_performance_warnings(workflow):
    workflow["implementation"]["n8n_nodes"][2]["timeout"] = 45000
    (finding,) = check_performance(workflow, DEFAULT_RULES)
    assert finding.type == PERFORMANCE_CONCERN and finding.node_index == 2

    workflow["implementation"]["n8n_nodes"] = [_node(f"n{i}") for i in range(16)]
    assert _types(check_performance(workflow, DEFAULT_RULES)) == [PERFORMANCE_CONCERN]


# ---- composition ----

def test_rule_check_runs_every_group_without_short_circuit(workflow):
    workflow["workflow_meta"]["id"] = "notify__slack__team_notification"
    workflow["workflow_meta"]["tenant_aware"] = "yes"
    workflow["implementation"]["n8n_nodes"][2]["parameters"]["password"] = "abc12345"
    del workflow["implementation"]["n8n_nodes"][0]["error_handling"]
    workflow["example"]["test_scenarios"] = []

    types = _types(rule_check(workflow))
    assert types == [BUSINESS_RULE, SECURITY_VIOLATION, SECURITY_VIOLATION, TENANT_ISOLATION, DOCUMENTATION]


def test_rule_check_select(workflow):
    workflow["workflow_meta"]["id"] = "notify__slack__team_notification"
    workflow["example"]["test_scenarios"] = []
    assert _types(rule_check(workflow, select=["documentation"])) == [DOCUMENTATION]
    assert _types(rule_check(workflow, select=["naming"])) == [BUSINESS_RULE]
    with pytest.raises(ValueError, match="Unknown rule group"):
        rule_check(workflow, select=["spelling"])


def test_rule_check_tolerates_skeleton_documents():
    findings = rule_check({"workflow_meta": "oops", "implementation": {"n8n_nodes": "nope"}})
    assert all(f.type == DOCUMENTATION for f in findings)
    assert list(RULE_GROUPS) == ["naming", "business", "security", "tenant", "documentation", "performance"]
