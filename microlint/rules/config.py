# microlint/rules/config.py
"""
Rule tables for the Rule Checker.

The defaults mirror the conventions of the microflows catalog. They are kept in
an immutable RuleConfig that callers pass explicitly to rule_check, so every
rule stays a pure function of (document, config). A YAML/JSON file may
override individual tables.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from microlint.core.models import SECURITY_VIOLATION, RELIABILITY
from microlint.utils.io import PathLike, load_any

APPROVED_PREFIXES = (
    "get", "post", "store", "validate", "transform", "enrich",
    "summarize", "classify", "route", "build", "create",
    "generate", "retry", "utils",
)

# function__tool__output
ID_PATTERN = r"^[a-z]+__[a-z]+__[a-z_]+$"

CATEGORIES = ("content", "validation", "communication", "data", "seo", "social", "utilities")

# complexity -> (min nodes, max nodes); None = unbounded. "complex" means strictly more than 8.
COMPLEXITY_BANDS: Dict[str, Tuple[Optional[int], Optional[int]]] = {
    "simple": (None, 3),
    "medium": (3, 8),
    "complex": (9, None),
}

# keyword + optional closing quote + assignment + opening quote of a literal
CREDENTIAL_PATTERNS = (
    r"password['\"]?\s*[:=]\s*['\"]",
    r"api[_-]?key['\"]?\s*[:=]\s*['\"]",
    r"secret['\"]?\s*[:=]\s*['\"]",
    r"token['\"]?\s*[:=]\s*['\"]",
)

# workflow id tool segment -> substrings expected in node types
TOOL_MAPPINGS: Dict[str, Tuple[str, ...]] = {
    "gpt": ("openai", "chatgpt", "gpt-4", "gpt-3.5"),
    "supabase": ("supabase", "postgres", "database"),
    "slack": ("slack",),
    "email": ("email", "smtp", "gmail"),
    "http": ("http", "api", "rest"),
    "webhook": ("webhook",),
    "code": ("code", "javascript", "python"),
    "schema": ("ajv", "jsonschema", "validation"),
}

GENERIC_OUTPUT_NAMES = ("data", "result", "output", "response")

REQUIRED_DOC_FIELDS = (
    "workflow_meta.goal",
    "inputs.schema",
    "outputs.success",
    "outputs.error",
    "implementation.n8n_nodes",
    "example.input",
    "example.output",
    "reuse_info",
)


@dataclass(frozen=True)
class RuleConfig:
    approved_prefixes: Tuple[str, ...] = APPROVED_PREFIXES
    id_pattern: str = ID_PATTERN
    categories: Tuple[str, ...] = CATEGORIES
    complexity_bands: Mapping[str, Tuple[Optional[int], Optional[int]]] = field(
        default_factory=lambda: MappingProxyType(dict(COMPLEXITY_BANDS))
    )
    max_dependencies_high_reuse: int = 2
    credential_patterns: Tuple[str, ...] = CREDENTIAL_PATTERNS
    error_handling_type: str = SECURITY_VIOLATION
    tool_mappings: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType(dict(TOOL_MAPPINGS))
    )
    generic_output_names: Tuple[str, ...] = GENERIC_OUTPUT_NAMES
    min_output_name_length: int = 3
    min_explanation_length: int = 50
    min_test_scenarios: int = 3
    min_goal_length: int = 20
    required_doc_fields: Tuple[str, ...] = REQUIRED_DOC_FIELDS
    max_nodes: int = 15
    max_node_timeout_ms: int = 30000


DEFAULT_RULES = RuleConfig()

_ERROR_HANDLING_TYPES = (SECURITY_VIOLATION, RELIABILITY)


def _coerce(name: str, value: Any) -> Any:
    # mapping tables are read-only views
    if name == "complexity_bands":
        return MappingProxyType({k: (v[0], v[1]) for k, v in dict(value).items()})
    if name == "tool_mappings":
        return MappingProxyType({k: tuple(v) for k, v in dict(value).items()})
    if isinstance(value, list):
        return tuple(value)
    return value


def rule_config_from_dict(data: Mapping[str, Any], base: RuleConfig = DEFAULT_RULES) -> RuleConfig:
    """Override selected tables of `base`; unknown keys are rejected."""
    known = {f.name for f in fields(RuleConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown rule settings: {', '.join(unknown)}")
    overrides = {k: _coerce(k, v) for k, v in data.items()}
    eh_type = overrides.get("error_handling_type", base.error_handling_type)
    if eh_type not in _ERROR_HANDLING_TYPES:
        raise ValueError(
            f"error_handling_type must be one of {', '.join(_ERROR_HANDLING_TYPES)}, got {eh_type!r}"
        )
    return replace(base, **overrides)


def load_rule_config(path: PathLike) -> RuleConfig:
    """Load rule overrides from a .yaml/.yml/.json file."""
    data = load_any(path) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Rule config {path} must contain a mapping")
    return rule_config_from_dict(data)
