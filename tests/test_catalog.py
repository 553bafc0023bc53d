import copy
import json

from microlint.catalog.catalog import (
    build_catalog_markdown, build_index, group_by_category, load_workflows, tag_index, write_catalog,
)
from microlint.catalog.chaining import (
    build_chain_graph, chain_cycles, chain_issues, downstream, unknown_references,
)

STAMP = "2026-01-01T00:00:00+00:00"


def _wf(wid, category="data", input_from=(), output_to=(), tags=()):
    return {
        "workflow_meta": {
            "id": wid, "category": category, "goal": f"goal of {wid}",
            "complexity": "simple", "reuse_potential": "high", "tenant_aware": "no",
            "tags": list(tags),
        },
        "reuse_info": {"input_from": list(input_from), "output_to": list(output_to)},
    }


# ---- chaining graph ----

def test_chain_graph_edges_follow_data_flow():
    G = build_chain_graph([
        _wf("get__http__rows", output_to=["transform__code__rows"]),
        _wf("transform__code__rows"),
        _wf("store__supabase__rows", input_from=["transform__code__rows"]),
    ])
    assert set(G.edges) == {
        ("get__http__rows", "transform__code__rows"),
        ("transform__code__rows", "store__supabase__rows"),
    }
    assert downstream(G, "get__http__rows") == ["store__supabase__rows", "transform__code__rows"]
    assert downstream(G, "nope") == []
    assert unknown_references(G) == []
    assert chain_issues(G) == []


def test_unknown_references_and_cycles():
    G = build_chain_graph([
        _wf("route__http__b", output_to=["route__http__a"]),
        _wf("route__http__a", output_to=["route__http__b", "post__slack__ghost"]),
    ])
    assert unknown_references(G) == ["post__slack__ghost"]
    assert chain_cycles(G) == [["route__http__a", "route__http__b"]]
    assert chain_issues(G) == [
        "[CHAIN] Unknown workflow 'post__slack__ghost' referenced by: route__http__a",
        "[CHAIN] Chaining cycle: route__http__a -> route__http__b -> route__http__a",
    ]


# ---- catalog ----

def test_group_and_tags():
    wfs = [
        _wf("get__http__b", "data", tags=["http"]),
        _wf("get__http__a", "data", tags=["http", "fetch"]),
        _wf("post__slack__c", "communication", tags=["slack"]),
    ]
    groups = group_by_category(wfs)
    assert list(groups) == ["communication", "data"]
    assert [w["workflow_meta"]["id"] for w in groups["data"]] == ["get__http__a", "get__http__b"]
    assert tag_index(wfs) == {"fetch": ["get__http__a"], "http": ["get__http__a", "get__http__b"],
                              "slack": ["post__slack__c"]}


def test_markdown_sections():
    wfs = [
        _wf("get__http__rows", output_to=["store__supabase__rows"], tags=["http"]),
        _wf("store__supabase__rows", input_from=["get__http__rows"]),
    ]
    md = build_catalog_markdown(wfs, generated_at=STAMP)
    assert md.startswith("# N8N Microflows Catalog")
    assert f"*Auto-generated on {STAMP}*" in md
    assert "Total workflows: **2**" in md
    assert "- **Data**: 2 workflow(s)" in md
    assert "### `get__http__rows`" in md
    assert "| `get__http__rows` | None | Manual | store__supabase__rows |" in md
    assert "| `store__supabase__rows` | None | get__http__rows | Terminal |" in md
    assert "**http**: `get__http__rows`" in md
    assert "## Chaining Issues" not in md


def test_markdown_lists_chaining_issues():
    md = build_catalog_markdown([_wf("get__http__rows", output_to=["gone__x__y"])], generated_at=STAMP)
    assert "## Chaining Issues" in md
    assert "- [CHAIN] Unknown workflow 'gone__x__y'" in md


def test_load_and_write_catalog(tmp_path, workflow, write_workflow):
    write_workflow(workflow)
    other = copy.deepcopy(workflow)
    other["workflow_meta"].update(id="get__http__rows", category="data", tags=["http"])
    write_workflow(other)
    (tmp_path / "microflows" / "data" / "broken.json").write_text("{", encoding="utf-8")
    (tmp_path / "microflows" / "data" / "notes.json").write_text('{"hello": 1}', encoding="utf-8")

    root = tmp_path / "microflows"
    wfs = load_workflows(root)
    assert [w["workflow_meta"]["id"] for w in wfs] == ["post__slack__team_notification", "get__http__rows"]
    assert all(w["_file"].endswith(".json") for w in wfs)

    md_path, json_path, n = write_catalog(root, tmp_path / "docs", generated_at=STAMP)
    assert n == 2
    assert md_path.name == "workflow-catalog.md"
    index = json.loads(json_path.read_text(encoding="utf-8"))
    assert index == build_index(wfs, STAMP)
    assert index["total_workflows"] == 2
    assert sorted(index["categories"]) == ["communication", "data"]
    assert index["categories"]["data"][0]["id"] == "get__http__rows"
    # the base workflow chains from a digest that is not in the catalog
    assert "summarize__gpt__daily_digest" in md_path.read_text(encoding="utf-8")


def test_renderers_tolerate_missing_and_odd_ids():
    nameless = {"workflow_meta": {"tags": ["x", 7]}, "reuse_info": {"input_from": ["get__http__rows", {"bad": 1}]}}
    numbered = {"workflow_meta": {"id": 42, "tags": ["x"], "dependencies": ["a", 3]}}
    wfs = [_wf("get__http__rows", tags=["x"]), nameless, numbered]

    assert tag_index(wfs) == {"x": ["42", "get__http__rows"]}
    md = build_catalog_markdown(wfs, STAMP)
    assert "**x**: `42`, `get__http__rows`" in md
    assert "- Dependencies: a, 3" in md
    assert sorted(build_chain_graph(wfs)) == ["get__http__rows"]


def test_load_skips_non_string_ids(tmp_path, workflow, write_workflow):
    write_workflow(workflow)
    odd = copy.deepcopy(workflow)
    odd["workflow_meta"]["id"] = 17
    write_workflow(odd, name="seventeen.json")

    wfs = load_workflows(tmp_path / "microflows")
    assert [w["workflow_meta"]["id"] for w in wfs] == ["post__slack__team_notification"]
