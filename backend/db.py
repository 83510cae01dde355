"""
Database helpers shared across queries and routers.
No hierarchy logic lives here — only I/O primitives.
"""
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path

DATA_DIR = Path(os.environ.get("PULSE_DATA_DIR", Path(__file__).parent.parent / "data"))
DB_NAME  = os.environ.get("PULSE_DB_NAME", "pulse.db")
# seconds a writer waits for another connection's write lock
BUSY_TIMEOUT = float(os.environ.get("PULSE_DB_TIMEOUT", "10"))

DDL = """
CREATE TABLE IF NOT EXISTS users (
    id            TEXT PRIMARY KEY,
    username      TEXT NOT NULL UNIQUE,
    email         TEXT UNIQUE,
    first_name    TEXT,
    last_name     TEXT,
    role          TEXT NOT NULL DEFAULT 'agent',
    department_id TEXT,
    reports_to    TEXT,
    is_active     INTEGER NOT NULL DEFAULT 1,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_users_reports_to ON users(reports_to);
CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);
"""


def row_to_dict(row) -> dict:
    return dict(row)


def db_path() -> Path:
    return DATA_DIR / DB_NAME


def init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(DDL)
    conn.commit()


def get_db() -> sqlite3.Connection:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path(), timeout=BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    init_db(conn)
    return conn


@contextmanager
def write_transaction(conn: sqlite3.Connection):
    """
    Hold the database write lock from the first read to the commit, so a
    check-then-write sequence sees no interleaved writer.
    Rolls back if the block raises.
    """
    if conn.in_transaction:
        conn.commit()
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    conn.commit()
