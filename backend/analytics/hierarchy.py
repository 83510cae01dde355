"""
Reporting hierarchy — pure functions only.

Turns a flat, already-filtered list of users into the ordered, indented rows
of the user table. Each row is:

    {"user": <user dict>, "level": int, "isExpanded": bool, "hasChildren": bool}

A user is a root when its reportsTo is empty or points outside the list.
Children of a user are only emitted when the user is expanded.
"""
from __future__ import annotations

import math
from collections import defaultdict
from typing import Iterable, TypedDict

import networkx as nx

from .roles import Role, full_name, role_label, sort_key, sort_users


class HierarchyRow(TypedDict):
    user:        dict
    level:       int
    isExpanded:  bool
    hasChildren: bool


ROLE_TYPE_GROUPS: dict[str, set[str]] = {
    "agents":       {Role.AGENT.value},
    "team_leaders": {Role.TEAM_LEADER.value},
    "cc_managers":  {Role.CONTACT_CENTER_MANAGER.value, Role.CONTACT_CENTER_OPS_MANAGER.value},
}


# ── Lookups ────────────────────────────────────────────────────────────────

def direct_reports(users: list[dict], user_id: str) -> list[dict]:
    return sort_users([u for u in users if u.get("reportsTo") == user_id])


def manager_of(users: list[dict], user: dict) -> dict | None:
    parent_id = user.get("reportsTo")
    if not parent_id:
        return None
    return next((u for u in users if u["id"] == parent_id), None)


def _children_map(users: list[dict]) -> dict[str, list[dict]]:
    """parent id → sorted direct reports, limited to parents present in users."""
    ids = {u["id"] for u in users}
    children: dict[str, list[dict]] = defaultdict(list)
    for u in users:
        parent = u.get("reportsTo")
        if parent and parent in ids:
            children[parent].append(u)
    for kids in children.values():
        kids.sort(key=sort_key)
    return children


def _is_root(user: dict, ids: set[str]) -> bool:
    parent = user.get("reportsTo")
    return not parent or parent not in ids


def _cycle_entry_points(users: list[dict], roots: list[dict],
                        children: dict[str, list[dict]]) -> list[dict]:
    """
    Users no root can reach are trapped in (or hang below) a reporting cycle.
    Pick one entry point per cycle, the member with the lowest sort_key.
    """
    covered: set[str] = set()

    def mark(start: dict) -> None:
        stack = [start]
        while stack:
            u = stack.pop()
            if u["id"] in covered:
                continue
            covered.add(u["id"])
            stack.extend(children.get(u["id"], []))

    for r in roots:
        mark(r)

    by_id = {u["id"]: u for u in users if u["id"] not in covered}
    if not by_id:
        return []

    G = nx.DiGraph()
    G.add_nodes_from(by_id)
    for uid, u in by_id.items():
        if u.get("reportsTo") in by_id:
            G.add_edge(u["reportsTo"], uid)

    looped = set(nx.nodes_with_selfloops(G))
    candidates = [
        min((by_id[m] for m in comp), key=lambda u: (sort_key(u), u["id"]))
        for comp in nx.strongly_connected_components(G)
        if len(comp) > 1 or comp & looped
    ]

    entries = []
    for u in sort_users(candidates):
        if u["id"] not in covered:
            entries.append(u)
            mark(u)
    return entries


# ── Builder ────────────────────────────────────────────────────────────────

def build_hierarchy(
    users: list[dict],
    expanded_ids: Iterable[str],
    universe: list[dict] | None = None,
) -> list[HierarchyRow]:
    """
    Flatten the reporting forest into display rows, depth-first.

    users        — the filtered users to display
    expanded_ids — ids whose direct reports should be shown
    universe     — list used for the hasChildren check (defaults to users);
                   pass the unfiltered list to flag managers whose reports
                   were filtered out
    """
    expanded = set(expanded_ids)
    ids = {u["id"] for u in users}
    children = _children_map(users)
    parents_with_reports = {
        u.get("reportsTo") for u in (users if universe is None else universe)
        if u.get("reportsTo")
    }

    roots = sort_users([u for u in users if _is_root(u, ids)])
    roots += _cycle_entry_points(users, roots, children)

    result: list[HierarchyRow] = []
    emitted: set[str] = set()

    for root in roots:
        stack = [(root, 0)]
        while stack:
            user, level = stack.pop()
            uid = user["id"]
            if uid in emitted:
                continue
            emitted.add(uid)
            is_expanded = uid in expanded
            result.append({
                "user":        user,
                "level":       level,
                "isExpanded":  is_expanded,
                "hasChildren": uid in parents_with_reports,
            })
            if is_expanded:
                # reversed so the lowest sort_key pops first
                stack.extend(
                    (child, level + 1) for child in reversed(children.get(uid, []))
                    if child["id"] not in emitted
                )

    return result


# ── Upstream filters and paging ────────────────────────────────────────────

def filter_users(
    users: list[dict],
    search: str = "",
    status: str = "all",
    role: str = "all",
    role_type: str = "all",
) -> list[dict]:
    """Apply the user-table filters. Unknown status/role_type values match nothing."""
    needle = search.strip().lower()

    def matches_search(u: dict) -> bool:
        if not needle:
            return True
        return (
            needle in f"{u.get('firstName') or ''} {u.get('lastName') or ''}".lower()
            or needle in (u.get("email") or "").lower()
            or needle in (u.get("username") or "").lower()
        )

    def matches_status(u: dict) -> bool:
        if status == "all":
            return True
        if status == "active":
            return bool(u.get("isActive"))
        if status == "inactive":
            return not u.get("isActive")
        return False

    def matches_role_type(u: dict) -> bool:
        if role_type == "all":
            return True
        return u.get("role") in ROLE_TYPE_GROUPS.get(role_type, set())

    return [
        u for u in users
        if matches_search(u)
        and matches_status(u)
        and (role == "all" or u.get("role") == role)
        and matches_role_type(u)
    ]


def paginate(rows: list, page: int = 1, per_page: int = 10) -> dict:
    total = len(rows)
    per_page = max(per_page, 1)
    pages = max(math.ceil(total / per_page), 1)
    page = min(max(page, 1), pages)
    start = (page - 1) * per_page
    end = min(start + per_page, total)
    return {
        "items":    rows[start:end],
        "total":    total,
        "page":     page,
        "per_page": per_page,
        "pages":    pages,
        "has_next": page < pages,
        "has_prev": page > 1,
        "start":    start + 1 if total else 0,
        "end":      end,
    }


def describe_row(row: HierarchyRow, users: list[dict]) -> dict:
    """Row plus the display fields the table renders next to each user."""
    manager = manager_of(users, row["user"])
    return {
        **row,
        "roleLabel":   role_label(row["user"].get("role")),
        "fullName":    full_name(row["user"]),
        "managerName": full_name(manager) if manager else None,
    }
