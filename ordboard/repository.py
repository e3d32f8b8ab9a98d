from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def iso_now() -> str:
    return utcnow().isoformat()


def _row_to_dict(row: sqlite3.Row | None) -> dict[str, Any] | None:
    if row is None:
        return None
    return {key: row[key] for key in row.keys()}


class Repository:
    def __init__(self, database_path: str):
        self.database_path = database_path
        self._lock = threading.Lock()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    def list_tracked_order_ids(self, network: str) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT order_id FROM tracked_orders
                WHERE network = ?
                ORDER BY position ASC, id ASC
                """,
                (network,),
            ).fetchall()
            return [row["order_id"] for row in rows]

    def add_tracked_order(self, network: str, order_id: str) -> bool:
        """Put ``order_id`` at the head of the list. Returns False if already tracked."""
        with self._lock, self._connect() as conn:
            head = conn.execute(
                "SELECT MIN(position) AS head FROM tracked_orders WHERE network = ?",
                (network,),
            ).fetchone()
            position = (head["head"] - 1) if head and head["head"] is not None else 0
            try:
                conn.execute(
                    """
                    INSERT INTO tracked_orders (network, order_id, position, added_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (network, order_id, position, iso_now()),
                )
                conn.commit()
            except sqlite3.IntegrityError:
                return False
        return True

    def remove_tracked_order(self, network: str, order_id: str) -> bool:
        with self._lock, self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM tracked_orders WHERE network = ? AND order_id = ?",
                (network, order_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def replace_tracked_orders(self, network: str, order_ids: list[str]) -> None:
        now = iso_now()
        unique_ids = list(dict.fromkeys(order_ids))
        with self._lock, self._connect() as conn:
            conn.execute("DELETE FROM tracked_orders WHERE network = ?", (network,))
            conn.executemany(
                """
                INSERT INTO tracked_orders (network, order_id, position, added_at)
                VALUES (?, ?, ?, ?)
                """,
                [(network, order_id, position, now) for position, order_id in enumerate(unique_ids)],
            )
            conn.commit()

    def get_snapshot(self, order_id: str) -> dict[str, Any] | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM order_snapshots WHERE order_id = ? LIMIT 1",
                (order_id,),
            ).fetchone()
            return _row_to_dict(row)

    def save_snapshot(self, order_id: str, network: str, status: str) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO order_snapshots (order_id, network, status, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(order_id) DO UPDATE SET
                  network=excluded.network,
                  status=excluded.status,
                  updated_at=excluded.updated_at
                """,
                (order_id, network, status, iso_now()),
            )
            conn.commit()

    def log_event(self, event_type: str, payload: dict[str, Any]) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO events_log(event_type, payload_json, created_at)
                VALUES (?, ?, ?)
                """,
                (event_type, json.dumps(payload, ensure_ascii=False), iso_now()),
            )
            conn.commit()

    def list_events(self, event_type: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
        with self._connect() as conn:
            if event_type:
                rows = conn.execute(
                    "SELECT * FROM events_log WHERE event_type = ? ORDER BY id DESC LIMIT ?",
                    (event_type, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM events_log ORDER BY id DESC LIMIT ?",
                    (limit,),
                ).fetchall()
        result = []
        for row in rows:
            item = _row_to_dict(row)
            assert item is not None
            item["payload"] = json.loads(item.pop("payload_json") or "{}")
            result.append(item)
        return result
