# microlint/structural/checker.py

from typing import Dict, Any, List, Optional, Sequence

from jsonschema import Draft7Validator

from .schema import WORKFLOW_SCHEMA
from microlint.core.models import Finding, SCHEMA_VALIDATION, error

_NODES_PATH = ("implementation", "n8n_nodes")


def json_pointer(parts: Sequence[Any]) -> str:
    """['implementation', 'n8n_nodes', 0, 'type'] -> '/implementation/n8n_nodes/0/type'"""
    if not parts:
        return "/"
    return "/" + "/".join(str(p) for p in parts)


def _node_index(parts: Sequence[Any]) -> Optional[int]:
    if len(parts) > 2 and tuple(parts[:2]) == _NODES_PATH and isinstance(parts[2], int):
        return parts[2]
    return None


def schema_check(document: Any, schema: Optional[Dict[str, Any]] = None) -> List[Finding]:
    """
    Validate a parsed workflow document against a JSON Schema.

    Every violation becomes a SCHEMA_VALIDATION error carrying the JSON pointer
    of the offending field and, for enum violations, the allowed values.
    Errors are sorted by instance path so the output is deterministic.
    """
    validator = Draft7Validator(schema if schema is not None else WORKFLOW_SCHEMA)
    errors = sorted(
        validator.iter_errors(document),
        key=lambda e: (tuple(str(p) for p in e.absolute_path), str(e.validator), e.message),
    )

    findings: List[Finding] = []
    for e in errors:
        parts = list(e.absolute_path)
        allowed = None
        if e.validator == "enum":
            allowed = list(e.validator_value)
        findings.append(error(
            SCHEMA_VALIDATION,
            e.message,
            path=json_pointer(parts),
            node_index=_node_index(parts),
            code=str(e.validator),
            allowed=allowed,
        ))
    return findings
