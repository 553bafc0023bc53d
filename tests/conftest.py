import copy
import json
from pathlib import Path

import pytest

BENCH_DIR = Path(__file__).resolve().parent.parent / "bench" / "validation"
BASE_CASE = BENCH_DIR / "V01_valid_slack_notification" / "workflow.json"


@pytest.fixture(scope="session")
def _base_workflow():
    with BASE_CASE.open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def workflow(_base_workflow):
    """A fresh deep copy of a fully valid workflow; mutate freely."""
    return copy.deepcopy(_base_workflow)


@pytest.fixture
def write_workflow(tmp_path):
    """Write a workflow at <tmp>/microflows/<category>/<name>.json and return its path."""
    def _write(doc, category=None, name=None):
        meta = doc.get("workflow_meta", {}) if isinstance(doc, dict) else {}
        category = category or meta.get("category", "misc")
        name = name or f"{meta.get('id', 'workflow')}.json"
        p = tmp_path / "microflows" / category / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(doc, indent=2), encoding="utf-8")
        return p
    return _write
