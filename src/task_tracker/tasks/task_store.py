# src/task_tracker/tasks/task_store.py

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from ..errors import LockTimeout, NotFound
from . import compactor
from .codec import MAX_ID, decode_id, decode_task, encode_id, encode_task, format_timestamp
from .codec import now as current_time
from .task_models import ARCHIVE, COLLECTIONS, TASKS, Task, TaskPosition, TaskStatus

logger = logging.getLogger(__name__)


def task_key(task_id: int) -> bytes:
    """Key for a user-facing id. Ids outside 1..MAX_ID can never exist, so they are NotFound."""
    if not 1 <= task_id <= MAX_ID:
        raise NotFound(f"Task {task_id} does not exist")
    return encode_id(task_id)


class Bucket:
    """
    One named collection inside a transaction.

    Keys and values are raw bytes; entries are returned in ascending key
    order, which for 8-byte big-endian keys is ascending id order.
    """

    def __init__(self, cur: sqlite3.Cursor, name: str) -> None:
        self._cur = cur
        self.name = name

    def get(self, key: bytes) -> bytes | None:
        self._cur.execute(
            "SELECT value FROM records WHERE bucket = ? AND key = ?",
            (self.name, key),
        )
        row = self._cur.fetchone()
        return bytes(row[0]) if row else None

    def put(self, key: bytes, value: bytes) -> None:
        self._cur.execute(
            """
            INSERT INTO records(bucket, key, value)
            VALUES (?, ?, ?)
            ON CONFLICT(bucket, key) DO UPDATE SET value = excluded.value
            """,
            (self.name, key, value),
        )

    def delete(self, key: bytes) -> bool:
        self._cur.execute(
            "DELETE FROM records WHERE bucket = ? AND key = ?",
            (self.name, key),
        )
        return self._cur.rowcount == 1

    def items(self) -> list[tuple[bytes, bytes]]:
        self._cur.execute(
            "SELECT key, value FROM records WHERE bucket = ? ORDER BY key ASC",
            (self.name,),
        )
        return [(bytes(k), bytes(v)) for k, v in self._cur.fetchall()]

    def count(self) -> int:
        self._cur.execute("SELECT COUNT(*) FROM records WHERE bucket = ?", (self.name,))
        (n,) = self._cur.fetchone()
        return int(n)

    def sequence(self) -> int:
        self._cur.execute("SELECT sequence FROM buckets WHERE name = ?", (self.name,))
        (n,) = self._cur.fetchone()
        return int(n)

    def next_sequence(self) -> int:
        self._cur.execute(
            "UPDATE buckets SET sequence = sequence + 1 WHERE name = ?",
            (self.name,),
        )
        return self.sequence()

    def set_sequence(self, value: int) -> None:
        self._cur.execute(
            "UPDATE buckets SET sequence = ? WHERE name = ?",
            (int(value), self.name),
        )

    def clear(self) -> None:
        """Remove every entry and reset the sequence."""
        self._cur.execute("DELETE FROM records WHERE bucket = ?", (self.name,))
        self.set_sequence(0)


class Transaction:
    def __init__(self, cur: sqlite3.Cursor) -> None:
        self._cur = cur

    def bucket(self, name: str) -> Bucket | None:
        self._cur.execute("SELECT 1 FROM buckets WHERE name = ?", (name,))
        if self._cur.fetchone() is None:
            return None
        return Bucket(self._cur, name)

    def create_bucket_if_not_exists(self, name: str) -> Bucket:
        self._cur.execute(
            "INSERT OR IGNORE INTO buckets(name, sequence) VALUES (?, 0)",
            (name,),
        )
        return Bucket(self._cur, name)

    def delete_bucket(self, name: str) -> bool:
        self._cur.execute("DELETE FROM records WHERE bucket = ?", (name,))
        self._cur.execute("DELETE FROM buckets WHERE name = ?", (name,))
        return self._cur.rowcount == 1

    def require_bucket(self, name: str) -> Bucket:
        b = self.bucket(name)
        if b is None:
            raise NotFound(f"Could not find the `{name}` bucket")
        return b


class TaskStore:
    """
    SQLite-backed store of named task collections.

    Layout:
    - buckets(name, sequence): one row per collection with its auto-increment counter
    - records(bucket, key, value): 8-byte big-endian id -> JSON task payload

    Locking:
    - one connection per store, opened in exclusive locking mode
    - the file lock is taken on open and held until close(); a second
      opener gives up after `lock_timeout` seconds with LockTimeout
    """

    def __init__(self, db_path: str | Path, *, lock_timeout: float = 1.0) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = None
        self._open(lock_timeout)
        self.ensure_collections()
        logger.info(
            "TaskStore ready db=%s tasks=%s archive=%s",
            self._db_path,
            self.count(TASKS),
            self.count(ARCHIVE),
        )

    # ---- low-level helpers ----

    def _open(self, lock_timeout: float) -> None:
        conn = sqlite3.connect(str(self._db_path), timeout=lock_timeout, isolation_level=None)
        try:
            conn.execute("PRAGMA locking_mode=EXCLUSIVE")
            # The first write transaction takes the file lock for the connection's lifetime.
            conn.execute("BEGIN EXCLUSIVE")
        except sqlite3.DatabaseError as e:
            conn.close()
            if "locked" in str(e) or "busy" in str(e):
                logger.warning("Store %s is locked by another process", self._db_path)
                raise LockTimeout(
                    f"Timed out after {lock_timeout:g}s waiting for {self._db_path}"
                ) from e
            raise

        try:
            self._ensure_schema(conn)
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            conn.close()
            raise
        self._conn = conn

    @staticmethod
    def _ensure_schema(conn: sqlite3.Connection) -> None:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS buckets (
                name TEXT PRIMARY KEY,
                sequence INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS records (
                bucket TEXT NOT NULL,
                key BLOB NOT NULL,
                value BLOB NOT NULL,
                PRIMARY KEY (bucket, key)
            )
            """
        )
    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.debug("TaskStore closed db=%s", self._db_path)

    def __enter__(self) -> TaskStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @contextmanager
    def transaction(self, *, write: bool = True) -> Iterator[Transaction]:
        """Run a block as one transaction: commit on success, roll back on any error."""
        if self._conn is None:
            raise RuntimeError("TaskStore is closed")
        cur = self._conn.cursor()
        cur.execute("BEGIN IMMEDIATE" if write else "BEGIN")
        try:
            yield Transaction(cur)
        except Exception:
            cur.execute("ROLLBACK")
            raise
        cur.execute("COMMIT")

    # ---- public API ----

    def ensure_collections(self) -> None:
        """Create any missing collection from COLLECTIONS; existing ones are left as they are."""
        with self.transaction() as tx:
            for name in COLLECTIONS:
                tx.create_bucket_if_not_exists(name)

    def insert(
        self,
        collection: str,
        description: str,
        tag: str = "",
        *,
        now: datetime | None = None,
    ) -> int:
        created = format_timestamp(now or current_time())
        task = Task(
            description=description,
            status=TaskStatus.INCOMPLETE,
            created_at=created,
            completed_at="",
            tag=tag,
        )
        with self.transaction() as tx:
            b = tx.create_bucket_if_not_exists(collection)
            task_id = b.next_sequence()
            b.put(encode_id(task_id), encode_task(task))
        logger.debug("Task added collection=%s id=%s tag=%s", collection, task_id, tag)
        return task_id

    def get(self, collection: str, task_id: int) -> Task:
        with self.transaction(write=False) as tx:
            raw = tx.require_bucket(collection).get(task_key(task_id))
            if raw is None:
                raise NotFound(f"Task {task_id} does not exist")
            return decode_task(raw)

    def put(self, collection: str, task_id: int, task: Task) -> None:
        with self.transaction() as tx:
            tx.require_bucket(collection).put(encode_id(task_id), encode_task(task))
        logger.debug("Task written collection=%s id=%s status=%s", collection, task_id, task.status)

    def count(self, collection: str) -> int:
        with self.transaction(write=False) as tx:
            b = tx.bucket(collection)
            return 0 if b is None else b.count()

    def scan(self, collection: str) -> list[TaskPosition]:
        with self.transaction(write=False) as tx:
            b = tx.bucket(collection)
            if b is None:
                return []
            return [TaskPosition(id=decode_id(k), task=decode_task(v)) for k, v in b.items()]

    def delete(self, collection: str, task_id: int) -> None:
        with self.transaction() as tx:
            b = tx.require_bucket(collection)
            if not b.delete(task_key(task_id)):
                raise NotFound(f"Task {task_id} does not exist")
            remaining = compactor.compact(b)
        logger.debug("Task deleted collection=%s id=%s remaining=%s", collection, task_id, remaining)

    def delete_many(self, collection: str, ids: Iterable[int]) -> int:
        """Remove every entry whose id is in `ids`; returns how many remain."""
        doomed = set(ids)
        with self.transaction() as tx:
            b = tx.require_bucket(collection)
            kept = [v for k, v in b.items() if decode_id(k) not in doomed]
            remaining = compactor.rewrite(b, kept)
        logger.debug(
            "Tasks deleted collection=%s ids=%s remaining=%s",
            collection,
            sorted(doomed),
            remaining,
        )
        return remaining

    def compact(self, collection: str) -> int:
        with self.transaction() as tx:
            return compactor.compact(tx.require_bucket(collection))

    def drop(self, collection: str) -> bool:
        with self.transaction() as tx:
            dropped = tx.delete_bucket(collection)
        logger.info("Collection dropped name=%s existed=%s", collection, dropped)
        return dropped
