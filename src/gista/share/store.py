"""SQLite backed queue shared by the share process and the main application."""

import json
import os
import sqlite3
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from gista.config import SHARE_QUEUE_KEY, SHARED_FILES_DIRECTORY
from gista.share.models import SharedEntry
from gista.utils.logging import get_logger

logger = get_logger(__name__)

DB_FILENAME = "shared.db"


class StorageError(RuntimeError):
    """Raised when the shared store cannot be read or written."""


class SharedQueueStore:
    """Durable key/value area plus a file directory, safe across processes.

    The queue lives under one key as a JSON list of maps. Every read-modify-write
    runs inside ``BEGIN IMMEDIATE``, which takes SQLite's write lock up front, so
    an append racing a drain in another process either lands in that drain or
    stays for the next one.
    """

    def __init__(
        self,
        root: Path,
        queue_key: str = SHARE_QUEUE_KEY,
        timeout: float = 5.0,
    ) -> None:
        self.root = Path(root)
        self.db_path = self.root / DB_FILENAME
        self.files_dir = self.root / SHARED_FILES_DIRECTORY
        self._queue_key = queue_key
        self._timeout = timeout
        self._ensure_initialised()

    def _ensure_initialised(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with self._transaction() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS shared_values (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
        except OSError as e:
            raise StorageError(f"Cannot create shared store at {self.root}: {e}") from e

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path, timeout=self._timeout, isolation_level=None)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open shared store: {e}") from e
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            raise StorageError(f"Shared store transaction failed: {e}") from e
        finally:
            conn.close()

    def _read_queue(self, conn: sqlite3.Connection) -> list[dict[str, Any]]:
        """Read the queue inside a write transaction.

        A value that is not a JSON list is logged and removed, so one bad write
        cannot block every later append and drain.
        """
        row = conn.execute(
            "SELECT value FROM shared_values WHERE key = ?", (self._queue_key,)
        ).fetchone()
        if row is None:
            return []
        try:
            queue = json.loads(row[0])
        except json.JSONDecodeError as e:
            queue = None
            reason = str(e)
        else:
            reason = "expected a list"
        if isinstance(queue, list):
            return queue

        logger.error(
            "Discarding corrupted shared queue",
            key=self._queue_key,
            reason=reason,
            value=str(row[0])[:200],
        )
        conn.execute("DELETE FROM shared_values WHERE key = ?", (self._queue_key,))
        return []

    def append(self, entry: SharedEntry) -> None:
        """Append an entry to the end of the queue."""
        with self._transaction() as conn:
            queue = self._read_queue(conn)
            queue.append(entry.to_dict())
            conn.execute(
                "INSERT OR REPLACE INTO shared_values(key, value) VALUES(?, ?)",
                (self._queue_key, json.dumps(queue)),
            )
        logger.info("Queued shared entry", kind=entry.kind.value, queue_length=len(queue))

    def drain_all(self) -> list[SharedEntry]:
        """Return every queued entry in order and empty the queue in one step.

        Maps with an unknown type are dropped with a warning.
        """
        with self._transaction() as conn:
            raw = self._read_queue(conn)
            conn.execute("DELETE FROM shared_values WHERE key = ?", (self._queue_key,))

        entries = self._to_entries(raw)
        if raw:
            logger.info("Drained shared queue", count=len(entries))
        return entries

    def peek(self) -> list[SharedEntry]:
        """Return the queued entries without removing them."""
        with self._transaction() as conn:
            raw = self._read_queue(conn)
        return self._to_entries(raw)

    @staticmethod
    def _to_entries(raw: list[Any]) -> list[SharedEntry]:
        entries: list[SharedEntry] = []
        for item in raw:
            try:
                entries.append(SharedEntry.from_dict(item))
            except (ValueError, AttributeError) as e:
                logger.warning("Dropping unreadable shared entry", item=repr(item), error=str(e))
        return entries

    def file_path(self, name: str) -> Path:
        """Stable location of a shared file; only the base name of ``name`` is used."""
        safe_name = Path(name).name
        if not safe_name or safe_name in (".", ".."):
            raise StorageError(f"Invalid shared file name: {name!r}")
        return self.files_dir / safe_name

    def _claim_path(self, name: str) -> Path:
        """Reserve an unused file name, adding " (n)" before the suffix on a clash."""
        base = self.file_path(name)
        candidate = base
        n = 0
        while True:
            try:
                fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                n += 1
                candidate = base.with_name(f"{base.stem} ({n}){base.suffix}")
                continue
            os.close(fd)
            return candidate

    def write_file(self, data: bytes, name: str) -> Path:
        """Write a binary payload into the shared directory under a fresh name.

        An existing file is never overwritten, so two shares of ``report.pdf``
        produce ``report.pdf`` and ``report (1).pdf``.

        Returns:
            The path the other process can read the file from.
        """
        try:
            self.files_dir.mkdir(parents=True, exist_ok=True)
            path = self._claim_path(name)
            fd, tmp_name = tempfile.mkstemp(dir=self.files_dir, prefix=".incoming-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                path.unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write shared file {name}: {e}") from e
        logger.info("Wrote shared file", filename=path.name, size=len(data))
        return path

    def read_file(self, path: Path | str) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read shared file {path}: {e}") from e
