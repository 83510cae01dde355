"""
Org-chart adapter — pure functions only.

Converts users into parent-keyed tree nodes for the diagram widget, and
validates drag-and-drop reparenting against the current tree so that no
edit can introduce a reporting cycle.
"""
from __future__ import annotations

from typing import TypedDict

import networkx as nx

from .roles import chart_label, full_name


class ReparentResult(TypedDict):
    accepted: bool
    reason:   str | None
    nodes:    list[dict]


def to_org_nodes(users: list[dict]) -> list[dict]:
    """
    Active users as tree-model node data.

    The "parent" key is left out entirely for roots; the diagram's tree
    model treats a missing key, not a null one, as "no parent".
    """
    nodes = []
    for u in users:
        if not u.get("isActive"):
            continue
        node = {
            "key":   u["id"],
            "name":  full_name(u),
            "title": chart_label(u.get("role")),
            "email": u.get("email") or "No email",
            "role":  u.get("role"),
        }
        if u.get("reportsTo"):
            node["parent"] = u["reportsTo"]
        nodes.append(node)
    return nodes


def build_tree_graph(nodes: list[dict]) -> nx.DiGraph:
    """parent → child edges; dangling parents are not added as nodes."""
    G = nx.DiGraph()
    for n in nodes:
        G.add_node(n["key"])
    for n in nodes:
        parent = n.get("parent")
        if parent and G.has_node(parent):
            G.add_edge(parent, n["key"])
    return G


def _rejection_reason(G: nx.DiGraph, node_key: str, new_parent_key: str) -> str | None:
    if not G.has_node(node_key):
        return "unknown_node"
    if not G.has_node(new_parent_key):
        return "unknown_parent"
    if node_key == new_parent_key:
        return "self"
    if new_parent_key in nx.descendants(G, node_key):
        return "cycle"
    return None


def may_work_for(nodes: list[dict], node_key: str, new_parent_key: str) -> bool:
    """True when node_key may be moved under new_parent_key."""
    return _rejection_reason(build_tree_graph(nodes), node_key, new_parent_key) is None


def reparent(nodes: list[dict], node_key: str, new_parent_key: str) -> ReparentResult:
    """
    Move node_key under new_parent_key if that keeps the tree acyclic.

    Returns a copy of the node list with the new parent applied; the input
    list and its dicts are left untouched. Persisting the change is up to
    the caller.
    """
    reason = _rejection_reason(build_tree_graph(nodes), node_key, new_parent_key)
    if reason is not None:
        return {"accepted": False, "reason": reason, "nodes": nodes}

    updated = [
        {**n, "parent": new_parent_key} if n["key"] == node_key else n
        for n in nodes
    ]
    return {"accepted": True, "reason": None, "nodes": updated}


def find_reporting_cycles(users: list[dict]) -> list[dict]:
    """
    Report reporting-line cycles already present in the data.

    A cycle is a strongly connected component of size > 1 in the reportsTo
    graph, or a user reporting to itself. Largest first.
    """
    by_id = {u["id"]: u for u in users}
    G = nx.DiGraph()
    G.add_nodes_from(by_id)
    for u in users:
        parent = u.get("reportsTo")
        if parent and parent in by_id:
            G.add_edge(parent, u["id"])

    groups = [set(scc) for scc in nx.strongly_connected_components(G) if len(scc) > 1]
    groups += [{uid} for uid in nx.nodes_with_selfloops(G)]

    results = []
    for members in sorted(groups, key=lambda g: (-len(g), min(g))):
        ordered = sorted(members)
        results.append({
            "size":    len(ordered),
            "members": ordered,
            "names":   [full_name(by_id[m]) for m in ordered],
        })
    return results


def org_stats(users: list[dict]) -> dict:
    """Headcount and per-role breakdown of active users."""
    roles: dict[str, int] = {}
    active = [u for u in users if u.get("isActive")]
    for u in active:
        roles[u.get("role")] = roles.get(u.get("role"), 0) + 1
    return {"total": len(active), "roles": roles}
