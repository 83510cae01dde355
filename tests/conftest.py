"""
Shared fixtures and helpers for the Pulse hierarchy tests.

Pure analytics tests build user dicts by hand with make_user().
API tests get a TestClient backed by a throwaway SQLite file.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))


def make_user(uid, role="agent", reports_to=None, first=None, last="", active=True, **extra):
    """Minimal user dict; first name defaults to the id so ordering is readable."""
    return {
        "id":        uid,
        "username":  extra.pop("username", uid.lower()),
        "email":     extra.pop("email", f"{uid.lower()}@example.com"),
        "firstName": uid if first is None else first,
        "lastName":  last,
        "role":      role,
        "reportsTo": reports_to,
        "isActive":  active,
        **extra,
    }


def ids(rows) -> list[str]:
    return [r["user"]["id"] for r in rows]


def levels(rows) -> list[tuple[str, int]]:
    return [(r["user"]["id"], r["level"]) for r in rows]


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    import db
    monkeypatch.setattr(db, "DATA_DIR", tmp_path)
    return tmp_path


@pytest.fixture
def conn(data_dir):
    import db
    c = db.get_db()
    yield c
    c.close()


@pytest.fixture
def client(data_dir):
    from fastapi.testclient import TestClient
    from main import app
    with TestClient(app) as c:
        yield c
