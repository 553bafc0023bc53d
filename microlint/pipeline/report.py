# microlint/pipeline/report.py
# Human-readable, JSON and CSV renderings of validation results.

from __future__ import annotations

from pathlib import Path
from typing import List, Union

import pandas as pd

from microlint.core.models import BatchReport, Finding, ValidationResult
from microlint.utils.io import ensure_parent, write_json


def format_finding(f: Finding, indent: str = "   ") -> str:
    tag = "ERROR" if f.is_error else "WARN "
    line = f"{indent}{tag} {f.type}: {f.message}"
    loc = f.location()
    if loc:
        line += f" [{loc}]"
    if f.allowed:
        line += f" (allowed: {', '.join(map(str, f.allowed))})"
    return line


def format_result(result: ValidationResult, label: str | None = None) -> List[str]:
    """
    One PASSED/FAILED line followed by indented error then warning lines.
    Every error and warning is printed; nothing is collapsed.
    """
    name = label or result.file or "<document>"
    n_err, n_warn = len(result.errors), len(result.warnings)
    if result.valid:
        head = f"[PASS] {name}: PASSED"
        if n_warn:
            head += f" ({n_warn} warnings)"
    else:
        head = f"[FAIL] {name}: FAILED ({n_err} errors, {n_warn} warnings)"
    lines = [head]
    lines += [format_finding(f) for f in result.errors]
    lines += [format_finding(f) for f in result.warnings]
    return lines


def format_summary(batch: BatchReport, title: str = "Validation Summary") -> List[str]:
    return [
        f"{title}:",
        f"   Total: {batch.total}",
        f"   Passed: {batch.passed}",
        f"   Failed: {batch.failed}",
        f"   Warnings: {batch.warnings}",
    ]


def render_batch(batch: BatchReport, title: str = "Validation Summary") -> str:
    lines: List[str] = []
    for r in batch.results:
        lines += format_result(r)
    lines.append("")
    lines += format_summary(batch, title)
    return "\n".join(lines)


def write_json_report(batch: BatchReport, path: Union[str, Path]) -> Path:
    return write_json(path, batch.to_dict())


def summary_frame(batch: BatchReport) -> pd.DataFrame:
    """One row per file: validity, counts, and the distinct finding types."""
    rows = []
    for r in batch.results:
        rows.append({
            "file": r.file,
            "valid": r.valid,
            "errors": len(r.errors),
            "warnings": len(r.warnings),
            "error_types": ";".join(sorted({f.type for f in r.errors})),
            "warning_types": ";".join(sorted({f.type for f in r.warnings})),
        })
    return pd.DataFrame(rows, columns=["file", "valid", "errors", "warnings", "error_types", "warning_types"])


def write_csv_summary(batch: BatchReport, path: Union[str, Path]) -> Path:
    p = ensure_parent(path)
    summary_frame(batch).to_csv(p, index=False)
    return p
