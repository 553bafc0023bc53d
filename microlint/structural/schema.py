#microlint/structural/schema.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from microlint.rules.config import CATEGORIES as _CATEGORIES, ID_PATTERN

CATEGORIES = list(_CATEGORIES)
COMPLEXITY_LEVELS = ["simple", "medium", "complex"]
ERROR_STRATEGIES = ["retry", "continue", "fail"]

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

WORKFLOW_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["workflow_meta", "inputs", "outputs", "implementation", "example", "reuse_info"],
    "properties": {
        "workflow_meta": {
            "type": "object",
            "required": ["id", "category", "goal", "complexity", "tenant_aware", "reuse_potential"],
            "properties": {
                # function__tool__output
                "id": {"type": "string", "pattern": ID_PATTERN},
                "category": {"type": "string", "enum": CATEGORIES},
                "goal": {"type": "string", "minLength": 1},
                "complexity": {"type": "string", "enum": COMPLEXITY_LEVELS},
                "execution_time": {"type": "string"},
                "tenant_aware": {"type": "string", "enum": ["yes", "no"]},
                "reuse_potential": {"type": "string", "enum": ["high", "medium", "low"]},
                "dependencies": _STRING_LIST,
                "tags": _STRING_LIST,
            },
            "additionalProperties": True,
        },

        "inputs": {
            "type": "object",
            "properties": {
                # JSON schema of the workflow's own input payload
                "schema": {"type": "object"},
                "tenant_isolation": {
                    "type": "object",
                    "properties": {
                        "required": {"type": "boolean"},
                        "field": {"type": "string"},
                    },
                },
            },
        },

        "outputs": {
            "type": "object",
            "properties": {
                "success": {"type": "object"},
                "error": {"type": "object"},
            },
        },

        "implementation": {
            "type": "object",
            "required": ["n8n_nodes"],
            "properties": {
                "n8n_nodes": {
                    "type": "array",
                    "minItems": 1,
                    "items": {
                        "type": "object",
                        "required": ["name", "type"],
                        "properties": {
                            "name": {"type": "string", "minLength": 1},
                            # e.g. n8n-nodes-base.slack
                            "type": {"type": "string", "minLength": 1},
                            "parameters": {"type": "object"},
                            # either a named credential set or a {type: name} mapping
                            "credentials": {"type": ["string", "object"]},
                            "error_handling": {
                                "type": "object",
                                "properties": {
                                    "strategy": {"type": "string", "enum": ERROR_STRATEGIES},
                                    "retry_count": {"type": "integer", "minimum": 0},
                                    "fallback": {"type": "string"},
                                },
                            },
                            "timeout": {"type": "number", "minimum": 0},
                        },
                        "additionalProperties": True,
                    },
                },
                "performance": {"type": "object"},
            },
        },

        "example": {
            "type": "object",
            "required": ["explanation"],
            "properties": {
                "input": {},
                "output": {},
                "explanation": {"type": "string"},
                "test_scenarios": {"type": "array"},
            },
        },

        "reuse_info": {
            "type": "object",
            "properties": {
                "compatible_with": _STRING_LIST,
                "input_from": _STRING_LIST,
                "output_to": _STRING_LIST,
                "chaining_examples": {"type": "array"},
            },
        },

        # Optional persistence descriptors (tenant-aware workflows)
        "supabase_config": {
            "type": "object",
            "properties": {
                "tables": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["name"],
                        "properties": {
                            "name": {"type": "string"},
                            "tenant_field": {"type": "string"},
                        },
                    },
                },
                "rls_policies": {"type": "array"},
            },
        },
    },
    "additionalProperties": True,
}


class SchemaLoadError(RuntimeError):
    """Raised when a schema file cannot be read or is not a valid JSON Schema."""


def load_schema(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load and sanity-check a JSON Schema file.
    Intended to be called once per process; the result is passed to schema_check.
    """
    p = Path(path)
    try:
        schema = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SchemaLoadError(f"Cannot load schema {p}: {e}") from e
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        raise SchemaLoadError(f"Invalid JSON Schema in {p}: {e.message}") from e
    return schema
