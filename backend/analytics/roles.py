"""
Role ranking and labels — pure functions only.

Roles are a closed set. Sibling users at the same tree level are ordered by
role priority first, then by case-insensitive full name.
"""
from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN                      = "admin"
    HR                         = "hr"
    CONTACT_CENTER_OPS_MANAGER = "contact_center_ops_manager"
    CONTACT_CENTER_MANAGER     = "contact_center_manager"
    TEAM_LEADER                = "team_leader"
    AGENT                      = "agent"


ROLE_PRIORITY: dict[Role, int] = {
    Role.ADMIN:                      1,
    Role.HR:                         2,
    Role.CONTACT_CENTER_OPS_MANAGER: 3,
    Role.CONTACT_CENTER_MANAGER:     4,
    Role.TEAM_LEADER:                5,
    Role.AGENT:                      6,
}

UNKNOWN_PRIORITY = 999

# Labels shown in the user table
ROLE_LABELS: dict[Role, str] = {
    Role.ADMIN:                      "System Admin",
    Role.HR:                         "HR Manager",
    Role.CONTACT_CENTER_OPS_MANAGER: "CC Ops Manager",
    Role.CONTACT_CENTER_MANAGER:     "CC Manager",
    Role.TEAM_LEADER:                "Team Leader",
    Role.AGENT:                      "Agent",
}

# Labels shown on org-chart nodes
CHART_LABELS: dict[Role, str] = {
    **ROLE_LABELS,
    Role.ADMIN: "Admin",
}

_BY_VALUE = {r.value: r for r in Role}


def parse_role(value: str) -> Role:
    """Strict conversion used at the API boundary."""
    try:
        return _BY_VALUE[value]
    except KeyError:
        raise ValueError(
            f"Unknown role '{value}'. Expected one of: {', '.join(_BY_VALUE)}"
        ) from None


def _lookup(role) -> Role | None:
    if isinstance(role, Role):
        return role
    return _BY_VALUE.get(role)


def role_priority(role) -> int:
    r = _lookup(role)
    return ROLE_PRIORITY[r] if r is not None else UNKNOWN_PRIORITY


def role_label(role) -> str:
    r = _lookup(role)
    return ROLE_LABELS[r] if r is not None else "Unknown Role"


def chart_label(role) -> str:
    r = _lookup(role)
    if r is None:
        return str(role)
    return CHART_LABELS[r]


def full_name(user: dict) -> str:
    return f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()


def sort_key(user: dict) -> tuple[int, str]:
    return (role_priority(user.get("role")), full_name(user).casefold())


def sort_users(users: list[dict]) -> list[dict]:
    return sorted(users, key=sort_key)
