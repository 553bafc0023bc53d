# microlint/pipeline/aggregate.py

from typing import List, Optional, Sequence, Set, Tuple

from microlint.core.models import Finding, ValidationResult


def _dedupe(findings: Sequence[Finding]) -> List[Finding]:
    """Keep the first finding per (type, path); path-less findings are always kept."""
    seen: Set[Tuple[str, str]] = set()
    out: List[Finding] = []
    for f in findings:
        if f.path is not None:
            key = (f.type, f.path)
            if key in seen:
                continue
            seen.add(key)
        out.append(f)
    return out


def aggregate(
    schema_findings: Sequence[Finding],
    rule_findings: Sequence[Finding],
    file: Optional[str] = None,
    dedupe: bool = False,
) -> ValidationResult:
    """
    Merge checker output into one ValidationResult.

    Schema findings come first, then rule findings, each in the order produced.
    Overlapping reports from both checkers are kept unless `dedupe` is set.
    """
    merged = list(schema_findings) + list(rule_findings)
    if dedupe:
        merged = _dedupe(merged)

    errors = [f for f in merged if f.is_error]
    warnings = [f for f in merged if not f.is_error]
    return ValidationResult(valid=not errors, errors=errors, warnings=warnings, file=file)
