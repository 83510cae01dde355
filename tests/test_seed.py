"""
Seed CLI — loads the sample org into a fresh DB file.
"""
import sqlite3

from analytics.hierarchy import build_hierarchy
from analytics.org_chart import find_reporting_cycles
from queries.users import fetch_users
from seed import SAMPLE_ORG, seed


def test_seed_builds_single_tree(tmp_path):
    path = tmp_path / "seeded.db"
    assert seed(path, verbose=False) == len(SAMPLE_ORG)

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    users = fetch_users(conn)
    conn.close()

    rows = build_hierarchy(users, {u["id"] for u in users})
    assert [r["level"] for r in rows if r["level"] == 0] == [0]
    assert rows[0]["user"]["username"] == "admin"
    assert max(r["level"] for r in rows) == 4
    assert find_reporting_cycles(users) == []


def test_reset_replaces_users(tmp_path):
    path = tmp_path / "seeded.db"
    seed(path, verbose=False)
    seed(path, reset=True, verbose=False)

    conn = sqlite3.connect(path)
    count = conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
    conn.close()
    assert count == len(SAMPLE_ORG)
