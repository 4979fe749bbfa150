# -*- coding: utf-8 -*-
"""Users — SQLite store handle.

The handle is constructed and opened by the hosting process and passed to
whoever needs it. Every call is one short-lived connection and one query
round-trip, bounded by a deadline.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from ..app_db import db_conn, init_app_db
from .errors import StoreUnavailable
from .windows import TimeWindow, format_ts, utc_now

logger = logging.getLogger(__name__)

_PUBLIC_COLUMNS = "id, email, role, first_name, last_name, created_at, last_active_at"

# SQLite VM instructions between deadline checks.
_PROGRESS_STEPS = 1000


class EmailAlreadyRegistered(Exception):
    pass


class UserStore:
    def __init__(self, db_path: Path, *, timeout: float = 5.0, progress_steps: int = _PROGRESS_STEPS) -> None:
        self.db_path = Path(db_path)
        self.timeout = float(timeout)
        self._progress_steps = progress_steps
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        try:
            init_app_db(self.db_path)
        except (sqlite3.Error, OSError) as exc:
            logger.error("Failed to open user store at %s: %s", self.db_path, exc)
            raise StoreUnavailable(f"User store unavailable: {exc}") from exc
        self._open = True
        logger.info("User store opened at %s", self.db_path)

    def close(self) -> None:
        if self._open:
            logger.info("User store closed at %s", self.db_path)
        self._open = False

    @contextmanager
    def _session(self, operation: str, timeout: Optional[float]) -> Iterator[sqlite3.Connection]:
        if not self._open:
            raise StoreUnavailable(f"User store is closed ({operation})")
        budget = self.timeout if timeout is None else float(timeout)
        deadline = time.monotonic() + budget

        def _expired() -> int:
            return 1 if time.monotonic() >= deadline else 0

        try:
            with db_conn(self.db_path, timeout=max(budget, 0.0)) as conn:
                conn.set_progress_handler(_expired, self._progress_steps)
                yield conn
        except (sqlite3.Error, OSError) as exc:
            if time.monotonic() >= deadline:
                message = f"User store timed out after {budget:g}s during {operation}"
            else:
                message = f"User store unavailable during {operation}: {exc}"
            logger.error(message)
            raise StoreUnavailable(message) from exc

    # ---- reads ----

    def list_users(self, *, timeout: Optional[float] = None) -> List[Dict[str, Any]]:
        with self._session("list_users", timeout) as conn:
            rows = conn.execute(
                f"SELECT {_PUBLIC_COLUMNS} FROM users ORDER BY created_at ASC, id ASC"
            ).fetchall()
        return [dict(r) for r in rows]

    def count_users(self, *, timeout: Optional[float] = None) -> int:
        with self._session("count_users", timeout) as conn:
            row = conn.execute("SELECT COUNT(*) FROM users").fetchone()
        return int(row[0])

    def count_created_between(self, window: TimeWindow, *, timeout: Optional[float] = None) -> int:
        with self._session("count_created_between", timeout) as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM users WHERE created_at >= ? AND created_at <= ?",
                window.as_params(),
            ).fetchone()
        return int(row[0])

    def count_active_between(self, window: TimeWindow, *, timeout: Optional[float] = None) -> int:
        with self._session("count_active_between", timeout) as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) FROM users
                WHERE last_active_at IS NOT NULL AND last_active_at >= ? AND last_active_at <= ?
                """,
                window.as_params(),
            ).fetchone()
        return int(row[0])

    def created_counts_by_month(self, window: TimeWindow, *, timeout: Optional[float] = None) -> Dict[str, int]:
        """Creation counts inside ``window`` keyed by ``YYYY-MM``; empty months are absent."""
        with self._session("created_counts_by_month", timeout) as conn:
            rows = conn.execute(
                """
                SELECT substr(created_at, 1, 7) AS period, COUNT(*) AS n
                FROM users
                WHERE created_at >= ? AND created_at <= ?
                GROUP BY period
                """,
                window.as_params(),
            ).fetchall()
        return {str(r["period"]): int(r["n"]) for r in rows}

    # ---- auth-side helpers ----

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        with self._session("get_user_by_email", None) as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email.lower().strip(),)).fetchone()
        return dict(row) if row else None

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._session("get_user_by_id", None) as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row) if row else None

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        role: str = "user",
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        user_id = str(uuid4())
        created = format_ts(created_at or utc_now())
        email_norm = email.lower().strip()
        with self._session("create_user", None) as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO users (id, email, password_hash, role, first_name, last_name, created_at, last_active_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, NULL)
                    """,
                    (user_id, email_norm, password_hash, role, first_name, last_name, created),
                )
            except sqlite3.IntegrityError as exc:
                raise EmailAlreadyRegistered(email_norm) from exc
        return {
            "id": user_id,
            "email": email_norm,
            "password_hash": password_hash,
            "role": role,
            "first_name": first_name,
            "last_name": last_name,
            "created_at": created,
            "last_active_at": None,
        }

    def touch_last_active(self, user_id: str, *, at: Optional[datetime] = None) -> None:
        """Record a qualifying activity; never moves ``last_active_at`` backwards."""
        stamp = format_ts(at or utc_now())
        with self._session("touch_last_active", None) as conn:
            conn.execute(
                """
                UPDATE users
                SET last_active_at = CASE
                    WHEN last_active_at IS NULL OR last_active_at < ? THEN ?
                    ELSE last_active_at
                END
                WHERE id = ?
                """,
                (stamp, stamp, user_id),
            )
