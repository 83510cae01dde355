"""
Pulse sample-organization seed.

Creates the users table and loads a small contact-center organization:
one head of operations over two divisions (RAF and UIF), each with a
contact-center manager, team leaders and agents.

Usage:
    python3 seed.py                 # seed data/pulse.db
    python3 seed.py --db other.db   # seed a specific file
    python3 seed.py --reset         # drop existing users first
"""
from __future__ import annotations

import argparse
import sqlite3
import sys
from pathlib import Path

from analytics.roles import Role
from db import db_path, init_db
from queries.users import create_user

# (key, first, last, role, manager key)
SAMPLE_ORG: list[tuple[str, str, str, Role, str | None]] = [
    ("admin",     "System",   "Admin",    Role.ADMIN,                      None),
    ("hr",        "Hannah",   "Reed",     Role.HR,                         "admin"),
    ("ops",       "Olivia",   "Pillay",   Role.CONTACT_CENTER_OPS_MANAGER, "admin"),
    ("raf_mgr",   "Rajesh",   "Naidoo",   Role.CONTACT_CENTER_MANAGER,     "ops"),
    ("uif_mgr",   "Uma",      "Fourie",   Role.CONTACT_CENTER_MANAGER,     "ops"),
    ("raf_tl1",   "Thabo",    "Mokoena",  Role.TEAM_LEADER,                "raf_mgr"),
    ("raf_tl2",   "Lerato",   "Dlamini",  Role.TEAM_LEADER,                "raf_mgr"),
    ("uif_tl1",   "Pieter",   "Botha",    Role.TEAM_LEADER,                "uif_mgr"),
    ("raf_a1",    "Ayanda",   "Zulu",     Role.AGENT,                      "raf_tl1"),
    ("raf_a2",    "Bongani",  "Khumalo",  Role.AGENT,                      "raf_tl1"),
    ("raf_a3",    "Chantel",  "Jacobs",   Role.AGENT,                      "raf_tl2"),
    ("uif_a1",    "Dineo",    "Molefe",   Role.AGENT,                      "uif_tl1"),
    ("uif_a2",    "Eben",     "van Wyk",  Role.AGENT,                      "uif_tl1"),
]


def seed(path: Path, reset: bool = False, verbose: bool = True) -> int:
    """Load SAMPLE_ORG into the DB at path. Returns the number of users created."""
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    init_db(conn)

    if reset:
        conn.execute("DELETE FROM users")
        conn.commit()

    ids: dict[str, str] = {}
    for key, first, last, role, manager in SAMPLE_ORG:
        user = create_user(conn, {
            "username":  key,
            "email":     f"{key}@pulse.example",
            "firstName": first,
            "lastName":  last,
            "role":      role.value,
            "reportsTo": ids.get(manager) if manager else None,
        })
        ids[key] = user["id"]
        if verbose:
            print(f"  {role.value:<28} {first} {last}", flush=True)

    conn.close()
    return len(ids)


# ── CLI ───────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Pulse user store with a sample org.")
    parser.add_argument("--db", help="Path to the SQLite file (default: data/pulse.db)")
    parser.add_argument("--reset", action="store_true", help="Delete existing users first")
    args = parser.parse_args()

    target = Path(args.db) if args.db else db_path()
    print(f"Seeding {target} ...", flush=True)
    try:
        n = seed(target, reset=args.reset)
    except Exception as ex:
        print(f"  ERROR: {ex}")
        sys.exit(1)
    print(f"Done. {n} users created.")
