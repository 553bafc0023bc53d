# microlint/rules/tenant.py

from typing import List

from microlint.core.document import as_list, dig, meta
from microlint.core.models import Finding, error, TENANT_ISOLATION
from microlint.rules.config import RuleConfig


def check_tenant_isolation(doc, config: RuleConfig) -> List[Finding]:
    """
    Tenant-aware workflows must declare isolation config, and every declared
    table must name its tenant column. Skipped entirely when tenant_aware != "yes".
    """
    if meta(doc).get("tenant_aware") != "yes":
        return []

    findings: List[Finding] = []

    if not dig(doc, "inputs.tenant_isolation.required"):
        findings.append(error(
            TENANT_ISOLATION,
            "Tenant-aware workflow missing tenant isolation configuration "
            "(inputs.tenant_isolation.required must be true)",
            path="/inputs/tenant_isolation",
            code="MISSING_TENANT_ISOLATION",
        ))

    supabase = dig(doc, "supabase_config")
    if isinstance(supabase, dict):
        if not as_list(supabase.get("rls_policies")):
            findings.append(error(
                TENANT_ISOLATION,
                "Tenant-aware workflow missing RLS policies",
                path="/supabase_config/rls_policies",
                code="MISSING_RLS_POLICIES",
            ))
        for i, table in enumerate(as_list(supabase.get("tables"))):
            if isinstance(table, dict) and table.get("tenant_field"):
                continue
            name = table.get("name") if isinstance(table, dict) else None
            findings.append(error(
                TENANT_ISOLATION,
                f"Table {name or i} missing tenant_field",
                path=f"/supabase_config/tables/{i}/tenant_field",
                code="MISSING_TENANT_FIELD",
            ))

    return findings
