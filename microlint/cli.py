#!/usr/bin/env python3
# microlint/cli.py

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer

from microlint.catalog.catalog import load_workflows, write_catalog
from microlint.catalog.docs_cache import DEFAULT_CACHE_DIR, DocsCache
from microlint.catalog.embedding import Embedder, build_embedding_index, load_index, save_index, search as emb_search
from microlint.core.models import BatchReport
from microlint.pipeline.report import render_batch, write_csv_summary, write_json_report
from microlint.pipeline.validator import validate_files
from microlint.rules.config import DEFAULT_RULES, RuleConfig, load_rule_config
from microlint.rules.naming import suggest_ids
from microlint.structural.schema import SchemaLoadError, load_schema
from microlint.utils.io import find_files
from microlint.utils.logger import init_logger

app = typer.Typer(help="microlint - validate and catalog N8N microflow definitions")
docs_app = typer.Typer(help="Node documentation cache")
app.add_typer(docs_app, name="docs")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also log to a rotating file"),
):
    # LOG_LEVEL applies unless a flag asks for something else
    if verbose or log_file is not None:
        init_logger(level=logging.DEBUG if verbose else None, log_file=log_file)


# ---------- shared option handling ----------

def _collect(paths: Optional[List[Path]], root: Path, pattern: str) -> List[Path]:
    """Explicit paths win; directories among them are expanded with `pattern`."""
    if not paths:
        return find_files(root, pattern)
    files: List[Path] = []
    for p in paths:
        files.extend(find_files(p, pattern) if p.is_dir() else [p])
    return files


def _load_schema(schema: Optional[Path]):
    if schema is None:
        return None
    try:
        return load_schema(schema)
    except SchemaLoadError as e:
        raise typer.BadParameter(str(e), param_hint="--schema")


def _load_rules(rules: Optional[Path]) -> RuleConfig:
    if rules is None:
        return DEFAULT_RULES
    try:
        return load_rule_config(rules)
    except (OSError, ValueError) as e:
        raise typer.BadParameter(str(e), param_hint="--rules")


def _finish(batch: BatchReport, title: str, report: Optional[Path], csv: Optional[Path]) -> None:
    if not batch.total:
        typer.echo("No workflow files found.")
    typer.echo(render_batch(batch, title))
    if report is not None:
        write_json_report(batch, report)
        typer.echo(f"[ok] wrote report to {report}")
    if csv is not None:
        write_csv_summary(batch, csv)
        typer.echo(f"[ok] wrote {csv}")
    raise typer.Exit(code=0 if batch.ok else 1)


# ---------- validation ----------

@app.command()
def validate(
    paths: Optional[List[Path]] = typer.Argument(None, help="Workflow files or directories (default: --root)"),
    root: Path = typer.Option(Path("microflows"), "--root", help="Catalog root searched when no paths are given"),
    pattern: str = typer.Option("**/*.json", "--pattern", help="Glob for workflow files under a directory"),
    schema: Optional[Path] = typer.Option(None, "--schema", help="Alternate JSON Schema file"),
    rules: Optional[Path] = typer.Option(None, "--rules", help="YAML/JSON file overriding rule tables"),
    workers: int = typer.Option(1, "--workers", "-w", min=1, help="Validate files in parallel"),
    dedupe: bool = typer.Option(False, "--dedupe", help="Drop repeated findings with the same (type, path)"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report to this path"),
    csv: Optional[Path] = typer.Option(None, "--csv", help="Write a per-file CSV summary to this path"),
):
    """
    Run schema, business, security, tenant-isolation, documentation and
    performance checks. Exits 1 if any workflow has errors.
    """
    schema_doc = _load_schema(schema)
    cfg = _load_rules(rules)
    batch = validate_files(_collect(paths, root, pattern), workers=workers,
                           schema=schema_doc, config=cfg, dedupe=dedupe)
    _finish(batch, "Validation Summary", report, csv)


@app.command("check-naming")
def check_naming_cmd(
    paths: Optional[List[Path]] = typer.Argument(None, help="Workflow files or directories (default: --root)"),
    root: Path = typer.Option(Path("microflows"), "--root"),
    pattern: str = typer.Option("**/*.json", "--pattern"),
    rules: Optional[Path] = typer.Option(None, "--rules"),
):
    """Check id format, approved prefix and <category>/<id>.json file layout only."""
    batch = validate_files(_collect(paths, root, pattern), config=_load_rules(rules), select=["naming"])
    _finish(batch, "Naming Validation Summary", None, None)


@app.command("check-docs")
def check_docs_cmd(
    paths: Optional[List[Path]] = typer.Argument(None, help="Workflow files or directories (default: --root)"),
    root: Path = typer.Option(Path("microflows"), "--root"),
    pattern: str = typer.Option("**/*.json", "--pattern"),
    rules: Optional[Path] = typer.Option(None, "--rules"),
):
    """Report documentation completeness (warnings only)."""
    batch = validate_files(_collect(paths, root, pattern), config=_load_rules(rules), select=["documentation"])
    _finish(batch, "Documentation Summary", None, None)


@app.command()
def suggest(
    description: str = typer.Argument(..., help="What the workflow does"),
    tool: str = typer.Option(..., "--tool", "-t", help="Tool segment, e.g. slack, gpt, http"),
):
    """Suggest workflow ids following the function__tool__output convention."""
    ids = suggest_ids(description, tool)
    if not ids:
        typer.echo("No suggestion: describe the action with a verb such as create, check or fetch.")
        raise typer.Exit(code=1)
    for wid in ids:
        typer.echo(wid)


# ---------- catalog / discovery ----------

@app.command()
def catalog(
    root: Path = typer.Option(Path("microflows"), "--root", help="Catalog root"),
    out: Path = typer.Option(Path("docs"), "--out", help="Output directory"),
):
    """Generate docs/workflow-catalog.md and docs/workflow-index.json."""
    md_path, json_path, n = write_catalog(root, out)
    typer.echo(f"[ok] generated workflow catalog with {n} workflows")
    typer.echo(f"[ok] wrote {md_path}")
    typer.echo(f"[ok] wrote {json_path}")


@app.command()
def embed(
    root: Path = typer.Option(Path("microflows"), "--root", help="Catalog root"),
    index: Path = typer.Option(Path("docs/workflow-embeddings.json"), "--index", help="Embedding index path"),
):
    """Embed every workflow (goal, category, tags, I/O names) into a local index."""
    embedder = Embedder()
    if not embedder.available:
        typer.echo("No embedding backend available: set OPENAI_API_KEY or install microlint[local]", err=True)
        raise typer.Exit(code=1)
    idx, skipped = build_embedding_index(load_workflows(root), embedder)
    save_index(idx, index)
    typer.echo(f"[ok] embedded {len(idx)} workflow(s) -> {index}")
    for wid in skipped:
        typer.echo(f"[skip] {wid}: no embedding returned")


@app.command()
def search(
    query: str = typer.Argument(..., help="Natural-language description"),
    index: Path = typer.Option(Path("docs/workflow-embeddings.json"), "--index", exists=True, readable=True),
    threshold: float = typer.Option(0.8, "--threshold", min=0.0, max=1.0),
    top_k: int = typer.Option(10, "--top-k", min=1),
):
    """Find catalog workflows similar to a description."""
    try:
        hits = emb_search(query, load_index(index), Embedder(), threshold=threshold, top_k=top_k)
    except RuntimeError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    if not hits:
        typer.echo("No similar workflows found.")
    for h in hits:
        typer.echo(f"- {h['id']} (similarity: {h['similarity']:.3f})")
        if h.get("goal"):
            typer.echo(f"    {h['goal']}")


# ---------- docs cache ----------


@docs_app.command("get")
def docs_get(
    node_type: str = typer.Argument(..., help="e.g. nodes-base.slack"),
    force_refresh: bool = typer.Option(False, "--force-refresh"),
    cache_dir: Path = typer.Option(Path(DEFAULT_CACHE_DIR), "--cache-dir", help="Cache directory"),
):
    res = DocsCache(cache_dir).get(node_type, force_refresh=force_refresh)
    typer.echo(f"Source: {res['source']}")
    if res.get("data") is None:
        typer.echo(res.get("error", "no documentation"), err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(res["data"], ensure_ascii=False, indent=2))


@docs_app.command("stats")
def docs_stats(cache_dir: Path = typer.Option(Path(DEFAULT_CACHE_DIR), "--cache-dir", help="Cache directory")):
    st = DocsCache(cache_dir).stats()
    typer.echo(f"Total Requests: {st['total_requests']}")
    typer.echo(f"Cache Hits: {st['cache_hits']}")
    typer.echo(f"Cache Misses: {st['cache_misses']}")
    typer.echo(f"Hit Rate: {st['hit_rate']}%")
    typer.echo(f"Cache Size: {st['size']}")
    typer.echo(f"Entries: {st['entry_count']}")


@docs_app.command("prefetch")
def docs_prefetch(cache_dir: Path = typer.Option(Path(DEFAULT_CACHE_DIR), "--cache-dir", help="Cache directory")):
    for node_type, source in DocsCache(cache_dir).prefetch().items():
        typer.echo(f"{node_type}: {source}")


@docs_app.command("cleanup")
def docs_cleanup(cache_dir: Path = typer.Option(Path(DEFAULT_CACHE_DIR), "--cache-dir", help="Cache directory")):
    evicted = DocsCache(cache_dir).cleanup()
    typer.echo(f"[ok] evicted {len(evicted)} entr{'y' if len(evicted) == 1 else 'ies'}")


@docs_app.command("clear")
def docs_clear(cache_dir: Path = typer.Option(Path(DEFAULT_CACHE_DIR), "--cache-dir", help="Cache directory")):
    DocsCache(cache_dir).clear()
    typer.echo("[ok] cache cleared")


if __name__ == "__main__":
    app()
