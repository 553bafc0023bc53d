# catalog/chaining.py
from typing import Dict, Any, Iterable, List

import networkx as nx


def build_chain_graph(workflows: Iterable[Dict[str, Any]]) -> nx.DiGraph:
    """
    Build the reuse/chaining graph of the catalog.

    Edges follow data flow: for workflow W,
      reuse_info.input_from = [A]  ->  edge A -> W
      reuse_info.output_to  = [B]  ->  edge W -> B
    Referenced ids that are not in the catalog still become nodes, flagged known=False.
    """
    G = nx.DiGraph()
    wfs = list(workflows)

    for wf in wfs:
        wid = (wf.get("workflow_meta") or {}).get("id")
        if isinstance(wid, str) and wid:
            G.add_node(wid, known=True, category=(wf.get("workflow_meta") or {}).get("category"))

    for wf in wfs:
        wid = (wf.get("workflow_meta") or {}).get("id")
        if not (isinstance(wid, str) and wid):
            continue
        reuse = wf.get("reuse_info") or {}
        for src in _refs(reuse.get("input_from")):
            if src not in G:
                G.add_node(src, known=False)
            G.add_edge(src, wid)
        for dst in _refs(reuse.get("output_to")):
            if dst not in G:
                G.add_node(dst, known=False)
            G.add_edge(wid, dst)
    return G


def _refs(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [r for r in value if isinstance(r, str) and r]


def unknown_references(G: nx.DiGraph) -> List[str]:
    return sorted(n for n, known in G.nodes(data="known") if not known)


def chain_cycles(G: nx.DiGraph) -> List[List[str]]:
    """Cycles among chained workflows, each rotated to start at its smallest id."""
    out = []
    for cyc in nx.simple_cycles(G):
        i = cyc.index(min(cyc))
        out.append(cyc[i:] + cyc[:i])
    return sorted(out)


def chain_issues(G: nx.DiGraph) -> List[str]:
    issues: List[str] = []
    for ref in unknown_references(G):
        users = sorted(set(G.predecessors(ref)) | set(G.successors(ref)))
        issues.append(f"[CHAIN] Unknown workflow '{ref}' referenced by: {', '.join(users)}")
    for cyc in chain_cycles(G):
        issues.append(f"[CHAIN] Chaining cycle: {' -> '.join(cyc + [cyc[0]])}")
    return issues


def downstream(G: nx.DiGraph, wid: str) -> List[str]:
    """All workflows reachable from `wid` by chaining its output onward."""
    if wid not in G:
        return []
    return sorted(nx.descendants(G, wid))
