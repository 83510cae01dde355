"""
User store queries — DB I/O only.

Rows come back as camelCase dicts, the shape the pure hierarchy functions
and the REST clients work with.
"""
from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone

from analytics.org_chart import reparent, to_org_nodes
from analytics.roles import Role
from db import row_to_dict, write_transaction

logger = logging.getLogger(__name__)

_USER_FIELDS = (
    "id, username, email, first_name AS firstName, last_name AS lastName, role, "
    "department_id AS departmentId, reports_to AS reportsTo, is_active AS isActive, "
    "created_at AS createdAt, updated_at AS updatedAt"
)

# camelCase field → column
_COLUMNS = {
    "username":     "username",
    "email":        "email",
    "firstName":    "first_name",
    "lastName":     "last_name",
    "role":         "role",
    "departmentId": "department_id",
    "reportsTo":    "reports_to",
    "isActive":     "is_active",
}


class UserNotFound(LookupError):
    pass


class DuplicateUser(ValueError):
    pass


class HierarchyConflict(ValueError):
    """A reportsTo change that would break the reporting tree."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_user(row) -> dict:
    user = row_to_dict(row)
    user["isActive"] = bool(user["isActive"])
    return user


# ── Reads ──────────────────────────────────────────────────────────────────

def fetch_users(conn: sqlite3.Connection) -> list[dict]:
    rows = conn.execute(f"SELECT {_USER_FIELDS} FROM users ORDER BY created_at, username").fetchall()
    return [_to_user(r) for r in rows]


def fetch_user(conn: sqlite3.Connection, user_id: str) -> dict:
    row = conn.execute(f"SELECT {_USER_FIELDS} FROM users WHERE id = ?", (user_id,)).fetchone()
    if row is None:
        raise UserNotFound(f"User not found: {user_id}")
    return _to_user(row)


def fetch_users_by_role(conn: sqlite3.Connection, role: str) -> list[dict]:
    rows = conn.execute(
        f"SELECT {_USER_FIELDS} FROM users WHERE role = ? ORDER BY first_name, last_name",
        (role,),
    ).fetchall()
    return [_to_user(r) for r in rows]


# ── Validation ─────────────────────────────────────────────────────────────

def _check_unique(conn: sqlite3.Connection, username: str | None, email: str | None,
                  exclude_id: str | None = None) -> None:
    if username is not None:
        row = conn.execute(
            "SELECT id FROM users WHERE username = ? AND id IS NOT ?", (username, exclude_id)
        ).fetchone()
        if row:
            raise DuplicateUser(f"Username already taken: {username}")
    if email:
        row = conn.execute(
            "SELECT id FROM users WHERE email = ? AND id IS NOT ?", (email, exclude_id)
        ).fetchone()
        if row:
            raise DuplicateUser(f"Email already in use: {email}")


def check_reports_to(conn: sqlite3.Connection, user_id: str, manager_id: str | None) -> None:
    """
    Raise HierarchyConflict if user_id may not report to manager_id.

    Uses the full user set, inactive users included, so a cycle can not be
    hidden behind a deactivated manager.
    """
    if manager_id is None:
        return
    users = fetch_users(conn)
    nodes = to_org_nodes([{**u, "isActive": True} for u in users])
    result = reparent(nodes, user_id, manager_id)
    if not result["accepted"]:
        logger.warning(
            "Rejected reportsTo change for %s -> %s (%s)", user_id, manager_id, result["reason"]
        )
        messages = {
            "unknown_node":   f"User not found: {user_id}",
            "unknown_parent": f"Manager not found: {manager_id}",
            "self":           "A user cannot report to themselves",
            "cycle":          "Manager reports (directly or indirectly) to this user",
        }
        raise HierarchyConflict(result["reason"], messages[result["reason"]])


# ── Writes ─────────────────────────────────────────────────────────────────

def create_user(conn: sqlite3.Connection, data: dict) -> dict:
    user_id = data.get("id") or uuid.uuid4().hex
    manager_id = data.get("reportsTo")
    with write_transaction(conn):
        _check_unique(conn, data["username"], data.get("email"))
        if manager_id and not conn.execute("SELECT 1 FROM users WHERE id = ?", (manager_id,)).fetchone():
            raise HierarchyConflict("unknown_parent", f"Manager not found: {manager_id}")

        now = _now()
        conn.execute(
            "INSERT INTO users (id, username, email, first_name, last_name, role, department_id, "
            "reports_to, is_active, created_at, updated_at) VALUES (?,?,?,?,?,?,?,?,?,?,?)",
            (
                user_id,
                data["username"],
                data.get("email"),
                data.get("firstName"),
                data.get("lastName"),
                data.get("role") or Role.AGENT.value,
                data.get("departmentId"),
                manager_id,
                int(data.get("isActive", True)),
                now,
                now,
            ),
        )
    logger.info("Created user %s (%s)", user_id, data["username"])
    return fetch_user(conn, user_id)


def update_user(conn: sqlite3.Connection, user_id: str, changes: dict) -> dict:
    """
    Apply a partial update. Only keys present in changes are written.

    The uniqueness and cycle checks run inside the same write transaction
    as the UPDATE, so two concurrent reportsTo changes can not both pass
    against the old state.
    """
    sets, params = [], []
    for field, value in changes.items():
        column = _COLUMNS.get(field)
        if column is None:
            continue
        sets.append(f"{column} = ?")
        params.append(int(value) if field == "isActive" else value)

    with write_transaction(conn):
        fetch_user(conn, user_id)
        _check_unique(conn, changes.get("username"), changes.get("email"), exclude_id=user_id)
        if "reportsTo" in changes:
            check_reports_to(conn, user_id, changes["reportsTo"])
        if sets:
            sets.append("updated_at = ?")
            params.extend([_now(), user_id])
            conn.execute(f"UPDATE users SET {', '.join(sets)} WHERE id = ?", params)

    if sets:
        logger.info("Updated user %s: %s", user_id, ", ".join(sorted(k for k in changes if k in _COLUMNS)))
    return fetch_user(conn, user_id)


def set_reports_to(conn: sqlite3.Connection, user_id: str, manager_id: str | None) -> dict:
    return update_user(conn, user_id, {"reportsTo": manager_id})


def delete_user(conn: sqlite3.Connection, user_id: str) -> int:
    """Delete a user and detach their direct reports. Returns the number detached."""
    with write_transaction(conn):
        fetch_user(conn, user_id)
        detached = conn.execute(
            "UPDATE users SET reports_to = NULL, updated_at = ? WHERE reports_to = ?",
            (_now(), user_id),
        ).rowcount
        conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
    logger.info("Deleted user %s; detached %d direct report(s)", user_id, detached)
    return detached
