"""
User store queries against a throwaway SQLite file.

Tests cover:
  - reportsTo changes are cycle-checked inside the write transaction
  - concurrent opposite reparents can not close a loop
  - rollback leaves the row untouched
"""
import threading

import pytest

import db
import queries.users as store
from analytics.org_chart import find_reporting_cycles


@pytest.fixture
def pair(conn):
    a = store.create_user(conn, {"username": "ann", "role": "team_leader"})
    b = store.create_user(conn, {"username": "ben", "role": "team_leader"})
    return a["id"], b["id"]


# ── Sequential ─────────────────────────────────────────────────────────────────

class TestReportsTo:
    def test_set_and_clear(self, conn, pair):
        a, b = pair
        assert store.set_reports_to(conn, a, b)["reportsTo"] == b
        assert store.set_reports_to(conn, a, None)["reportsTo"] is None

    def test_reverse_move_rejected(self, conn, pair):
        a, b = pair
        store.set_reports_to(conn, a, b)
        with pytest.raises(store.HierarchyConflict) as exc:
            store.set_reports_to(conn, b, a)
        assert exc.value.reason == "cycle"
        assert store.fetch_user(conn, b)["reportsTo"] is None

    def test_rejected_update_writes_nothing(self, conn, pair):
        a, _ = pair
        with pytest.raises(store.HierarchyConflict):
            store.update_user(conn, a, {"lastName": "Changed", "reportsTo": a})
        assert store.fetch_user(conn, a)["lastName"] is None
        assert not conn.in_transaction

    def test_unknown_user(self, conn):
        with pytest.raises(store.UserNotFound):
            store.set_reports_to(conn, "ghost", None)


# ── Concurrency ────────────────────────────────────────────────────────────────

class TestConcurrentReparent:
    def test_opposite_moves_do_not_close_a_loop(self, data_dir, pair, monkeypatch):
        a, b = pair
        # Both writers pause right after validating. Without a held write
        # lock they would both pass against the old state and both commit.
        gate = threading.Barrier(2, timeout=1.0)
        validate = store.check_reports_to

        def check_then_wait(conn, user_id, manager_id):
            validate(conn, user_id, manager_id)
            try:
                gate.wait()
            except threading.BrokenBarrierError:
                pass

        monkeypatch.setattr(store, "check_reports_to", check_then_wait)

        outcomes = {}

        def move(user_id, manager_id):
            conn = db.get_db()
            try:
                store.set_reports_to(conn, user_id, manager_id)
                outcomes[user_id] = "ok"
            except store.HierarchyConflict as ex:
                outcomes[user_id] = ex.reason
            finally:
                conn.close()

        threads = [
            threading.Thread(target=move, args=(a, b)),
            threading.Thread(target=move, args=(b, a)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert sorted(outcomes.values()) == ["cycle", "ok"]

        conn = db.get_db()
        try:
            assert find_reporting_cycles(store.fetch_users(conn)) == []
        finally:
            conn.close()
