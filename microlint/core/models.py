# microlint/core/models.py
"""
Result types shared by the checkers, the aggregator and the reporters.

A Finding is one reported issue; a ValidationResult is the outcome of one
validation call; a BatchReport groups the results of a directory run.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ERROR = "error"
WARNING = "warning"

# Finding types
PARSE_ERROR = "PARSE_ERROR"
SCHEMA_VALIDATION = "SCHEMA_VALIDATION"
BUSINESS_RULE = "BUSINESS_RULE"
NAMING = "NAMING"
SECURITY_VIOLATION = "SECURITY_VIOLATION"
RELIABILITY = "RELIABILITY"
TENANT_ISOLATION = "TENANT_ISOLATION"
COMPLEXITY_MISMATCH = "COMPLEXITY_MISMATCH"
REUSE_CONCERN = "REUSE_CONCERN"
DOCUMENTATION = "DOCUMENTATION"
CATEGORY_MISMATCH = "CATEGORY_MISMATCH"
TOOL_MISMATCH = "TOOL_MISMATCH"
NAMING_QUALITY = "NAMING_QUALITY"
PERFORMANCE_CONCERN = "PERFORMANCE_CONCERN"


@dataclass(frozen=True)
class Finding:
    """A single rule violation."""
    type: str
    message: str
    severity: str = ERROR
    path: Optional[str] = None
    node_index: Optional[int] = None
    code: Optional[str] = None
    allowed: Optional[List[Any]] = None

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    def location(self) -> str:
        """Short human-readable locator, empty if the finding is document-wide."""
        parts = []
        if self.node_index is not None:
            parts.append(f"node {self.node_index}")
        if self.path:
            parts.append(f"at {self.path}")
        return ", ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": self.type,
            "message": self.message,
            "severity": self.severity,
        }
        if self.path is not None:
            out["path"] = self.path
        if self.node_index is not None:
            out["nodeIndex"] = self.node_index
        if self.code is not None:
            out["code"] = self.code
        if self.allowed is not None:
            out["allowed"] = list(self.allowed)
        return out


def error(type_: str, message: str, **kw: Any) -> Finding:
    return Finding(type=type_, message=message, severity=ERROR, **kw)


def warning(type_: str, message: str, **kw: Any) -> Finding:
    return Finding(type=type_, message=message, severity=WARNING, **kw)


@dataclass
class ValidationResult:
    """Outcome of one validation run; valid iff no error-severity findings."""
    valid: bool
    errors: List[Finding] = field(default_factory=list)
    warnings: List[Finding] = field(default_factory=list)
    file: Optional[str] = None

    @property
    def findings(self) -> List[Finding]:
        return list(self.errors) + list(self.warnings)

    def of_type(self, type_: str) -> List[Finding]:
        return [f for f in self.findings if f.type == type_]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.file is not None:
            out["file"] = self.file
        out["valid"] = self.valid
        out["errors"] = [f.to_dict() for f in self.errors]
        out["warnings"] = [f.to_dict() for f in self.warnings]
        return out


@dataclass
class BatchReport:
    """Per-file results of a directory run plus summary counts."""
    results: List[ValidationResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.valid)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def warnings(self) -> int:
        return sum(len(r.warnings) for r in self.results)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "warnings": self.warnings,
            "details": [r.to_dict() for r in self.results],
        }
