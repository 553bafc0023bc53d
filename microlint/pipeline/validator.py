# microlint/pipeline/validator.py

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from microlint.core.models import BatchReport, ValidationResult, PARSE_ERROR, error
from microlint.rules.checker import rule_check
from microlint.rules.config import DEFAULT_RULES, RuleConfig
from microlint.structural.checker import schema_check
from microlint.pipeline.aggregate import aggregate
from microlint.utils.io import find_files, read_text
from microlint.utils.logger import get_logger

log = get_logger("pipeline")

# ---------- Public API ----------


def validate_document(
    document: Any,
    schema: Optional[Dict[str, Any]] = None,
    config: Optional[RuleConfig] = None,
    source: Optional[str] = None,
    dedupe: bool = False,
    select: Optional[Iterable[str]] = None,
) -> ValidationResult:
    """
    Run the full pipeline over an already-parsed document.

    The schema check and the rule check are independent: rules run even when
    the schema check fails. `select` limits the rule groups (the schema check
    only runs when no selection is given).
    """
    if not isinstance(document, dict):
        return _parse_failure(f"Workflow document must be a JSON object, got {type(document).__name__}", source)

    schema_findings = schema_check(document, schema) if select is None else []
    rule_findings = rule_check(document, config or DEFAULT_RULES, source=source, select=select)
    return aggregate(schema_findings, rule_findings, file=source, dedupe=dedupe)


def validate_text(text: str, source: Optional[str] = None, **kwargs: Any) -> ValidationResult:
    """Parse JSON text then validate; malformed JSON yields a single PARSE_ERROR."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        return _parse_failure(f"Invalid JSON: {e}", source)
    except RecursionError:
        return _parse_failure("Invalid JSON: nesting too deep to parse", source)
    return validate_document(document, source=source, **kwargs)


def validate_file(path: Union[str, Path], **kwargs: Any) -> ValidationResult:
    """Read and validate one workflow file; unreadable files yield a single PARSE_ERROR."""
    source = Path(path).as_posix()
    try:
        text = read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        return _parse_failure(f"Cannot read file: {e}", source)
    result = validate_text(text, source=source, **kwargs)
    log.debug("validated %s: valid=%s errors=%d warnings=%d",
              source, result.valid, len(result.errors), len(result.warnings))
    return result


def validate_files(paths: Iterable[Union[str, Path]], workers: int = 1, **kwargs: Any) -> BatchReport:
    """
    Validate many files. Each file is independent, so `workers > 1` fans out
    over a bounded thread pool; results are always ordered by path.
    """
    files = sorted(Path(p) for p in paths)
    if workers <= 1 or len(files) <= 1:
        results = [validate_file(p, **kwargs) for p in files]
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda p: validate_file(p, **kwargs), files))
    return BatchReport(results=results)


def validate_all(
    root: Union[str, Path] = "microflows",
    pattern: str = "**/*.json",
    workers: int = 1,
    **kwargs: Any,
) -> BatchReport:
    """Validate every workflow file under `root` matching `pattern`."""
    files = find_files(root, pattern)
    log.info("validating %d workflow(s) under %s", len(files), root)
    return validate_files(files, workers=workers, **kwargs)


# ---------- Helpers ----------


def _parse_failure(message: str, source: Optional[str]) -> ValidationResult:
    return ValidationResult(valid=False, errors=[error(PARSE_ERROR, message)], warnings=[], file=source)


