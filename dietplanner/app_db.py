# -*- coding: utf-8 -*-
"""App database — SQLite helpers."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


def connect(db_path: Path, *, timeout: float = 5.0) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), timeout=timeout, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def init_app_db(db_path: Path) -> None:
    conn = connect(db_path)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                role TEXT NOT NULL CHECK (role IN ('user', 'dietitian')),
                first_name TEXT,
                last_name TEXT,
                created_at TEXT NOT NULL,
                last_active_at TEXT
            );
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_users_created ON users(created_at);")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_users_last_active ON users(last_active_at);")
        conn.commit()
    finally:
        conn.close()


@contextmanager
def db_conn(db_path: Path, *, timeout: float = 5.0) -> Iterator[sqlite3.Connection]:
    conn = connect(db_path, timeout=timeout)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()
