"""Document store with interchangeable backends.

Algorithms, workflows and execution reports are schemaless JSON documents
grouped in named collections.  Every backend implements the same small
:class:`DocumentStore` surface so repositories never care where documents
live.

Architecture::

    ┌──────────────────────────────────────────────────────────────┐
    │  repositories.py  (AlgorithmRepository, WorkflowRepository…) │
    └──────────────────────────────┬───────────────────────────────┘
                                   │ insert / get / find / replace / delete
                                   ▼
    ┌──────────────────────────────────────────────────────────────┐
    │  DocumentStore (ABC)                                         │
    │   ├── MemoryDocumentStore   dict per collection, deep copies │
    │   └── SqliteDocumentStore   documents(collection, id, body)  │
    └──────────────────────────────────────────────────────────────┘

Documents are returned with their key under ``id``; the key is never
stored inside the body.

Usage::

    store = open_store("sqlite:///labrules.db")
    doc = store.insert("algorithms", {"name": "CBC"})
    docs, total = store.find("algorithms", limit=20)

Tags:
    storage, documents, sqlite, in-memory, labrules-core
"""

from __future__ import annotations

import copy
import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from labrules.core.errors import ConfigError, ConflictError, StorageError
from labrules.core.logging import get_logger
from labrules.core.timestamps import generate_id, is_valid_id, to_iso8601, utc_now

logger = get_logger(__name__)

Predicate = Callable[[dict[str, Any]], bool]


def _matches(doc: dict[str, Any], filters: dict[str, Any] | None, where: Predicate | None) -> bool:
    if filters:
        for key, expected in filters.items():
            if doc.get(key) != expected:
                return False
    return where is None or bool(where(doc))


def _sorted(docs: list[dict[str, Any]], sort: str | None) -> list[dict[str, Any]]:
    """Sort by a field name; a leading ``-`` reverses.  ``None`` keeps insertion order."""
    if not sort:
        return docs
    reverse = sort.startswith("-")
    key = sort.lstrip("-")
    present = [d for d in docs if d.get(key) is not None]
    missing = [d for d in docs if d.get(key) is None]
    return sorted(present, key=lambda d: d[key], reverse=reverse) + missing


def _page(docs: list[dict[str, Any]], offset: int, limit: int | None) -> list[dict[str, Any]]:
    offset = max(offset, 0)
    if limit is None:
        return docs[offset:]
    return docs[offset : offset + max(limit, 0)]


def _strip_id(doc: dict[str, Any]) -> tuple[str | None, dict[str, Any]]:
    body = dict(doc)
    # Mongo-shaped documents name their id "_id"
    mongo_id = body.pop("_id", None)
    raw = body.pop("id", None) or mongo_id
    body.pop("__v", None)
    return (str(raw) if raw else None), body


class DocumentStore(ABC):
    """Abstract document store."""

    name: str = "abstract"

    @abstractmethod
    def insert(self, collection: str, doc: dict[str, Any]) -> dict[str, Any]:
        """Insert *doc*, assigning an id unless it carries a valid one."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def find(
        self,
        collection: str,
        *,
        filters: dict[str, Any] | None = None,
        where: Predicate | None = None,
        offset: int = 0,
        limit: int | None = None,
        sort: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """Return ``(page, total)`` of matching documents."""

    @abstractmethod
    def replace(self, collection: str, doc_id: str, doc: dict[str, Any]) -> dict[str, Any] | None:
        """Overwrite the document body; ``None`` when the id is unknown."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool: ...

    @abstractmethod
    def count(self, collection: str) -> int: ...

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        return None

    def _new_id(self, requested: str | None) -> str:
        return requested if is_valid_id(requested) else generate_id()


# =============================================================================
# In-memory backend
# =============================================================================


class MemoryDocumentStore(DocumentStore):
    """Dict-backed store for tests and ephemeral servers."""

    name = "memory"

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.RLock()

    def _coll(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    @staticmethod
    def _out(doc_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return {"id": doc_id, **copy.deepcopy(body)}

    def insert(self, collection: str, doc: dict[str, Any]) -> dict[str, Any]:
        requested, body = _strip_id(doc)
        with self._lock:
            coll = self._coll(collection)
            doc_id = self._new_id(requested)
            if doc_id in coll:
                raise ConflictError(
                    f"Document '{doc_id}' already exists in '{collection}'",
                    context={"collection": collection, "id": doc_id},
                )
            coll[doc_id] = copy.deepcopy(body)
            return self._out(doc_id, body)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            body = self._coll(collection).get(doc_id)
            return self._out(doc_id, body) if body is not None else None

    def find(
        self,
        collection: str,
        *,
        filters: dict[str, Any] | None = None,
        where: Predicate | None = None,
        offset: int = 0,
        limit: int | None = None,
        sort: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        with self._lock:
            docs = [self._out(k, v) for k, v in self._coll(collection).items()]
        matched = _sorted([d for d in docs if _matches(d, filters, where)], sort)
        return _page(matched, offset, limit), len(matched)

    def replace(self, collection: str, doc_id: str, doc: dict[str, Any]) -> dict[str, Any] | None:
        _, body = _strip_id(doc)
        with self._lock:
            coll = self._coll(collection)
            if doc_id not in coll:
                return None
            coll[doc_id] = copy.deepcopy(body)
            return self._out(doc_id, body)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._coll(collection).pop(doc_id, None) is not None

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._coll(collection))


# =============================================================================
# SQLite backend
# =============================================================================

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    collection  TEXT NOT NULL,
    id          TEXT NOT NULL,
    body        TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    PRIMARY KEY (collection, id)
)
"""


class SqliteDocumentStore(DocumentStore):
    """JSON documents in a single SQLite table.

    Filtering and sorting happen in Python after loading a collection, which
    is fine for the few hundred documents a lab configures.
    """

    name = "sqlite"

    def __init__(self, path: str = ":memory:") -> None:
        self.path = path
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open SQLite store at '{path}': {exc}", cause=exc) from exc
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        with self._lock:
            self._conn.execute(_SCHEMA)
            self._conn.commit()
        logger.debug("sqlite_store_opened", path=path)

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as exc:
            raise StorageError(f"SQLite error: {exc}", cause=exc) from exc

    @staticmethod
    def _out(row: sqlite3.Row) -> dict[str, Any]:
        return {"id": row["id"], **json.loads(row["body"])}

    def insert(self, collection: str, doc: dict[str, Any]) -> dict[str, Any]:
        requested, body = _strip_id(doc)
        now = to_iso8601(utc_now())
        with self._lock:
            doc_id = self._new_id(requested)
            try:
                self._execute(
                    "INSERT INTO documents (collection, id, body, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (collection, doc_id, json.dumps(body, default=str), now, now),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError(
                    f"Document '{doc_id}' already exists in '{collection}'",
                    context={"collection": collection, "id": doc_id},
                    cause=exc,
                ) from exc
            self._conn.commit()
        return {"id": doc_id, **json.loads(json.dumps(body, default=str))}

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._execute(
                "SELECT id, body FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
        return self._out(row) if row else None

    def find(
        self,
        collection: str,
        *,
        filters: dict[str, Any] | None = None,
        where: Predicate | None = None,
        offset: int = 0,
        limit: int | None = None,
        sort: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        with self._lock:
            rows = self._execute(
                "SELECT id, body FROM documents WHERE collection = ? ORDER BY rowid",
                (collection,),
            ).fetchall()
        docs = [self._out(r) for r in rows]
        matched = _sorted([d for d in docs if _matches(d, filters, where)], sort)
        return _page(matched, offset, limit), len(matched)

    def replace(self, collection: str, doc_id: str, doc: dict[str, Any]) -> dict[str, Any] | None:
        _, body = _strip_id(doc)
        with self._lock:
            cursor = self._execute(
                "UPDATE documents SET body = ?, updated_at = ? WHERE collection = ? AND id = ?",
                (json.dumps(body, default=str), to_iso8601(utc_now()), collection, doc_id),
            )
            self._conn.commit()
            if cursor.rowcount == 0:
                return None
        return self.get(collection, doc_id)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            cursor = self._execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            self._conn.commit()
            return cursor.rowcount > 0

    def count(self, collection: str) -> int:
        with self._lock:
            row = self._execute(
                "SELECT COUNT(*) AS n FROM documents WHERE collection = ?",
                (collection,),
            ).fetchone()
        return int(row["n"])

    def ping(self) -> bool:
        try:
            with self._lock:
                self._execute("SELECT 1").fetchone()
        except StorageError:
            return False
        return True

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __repr__(self) -> str:
        return f"SqliteDocumentStore({self.path!r})"


# =============================================================================
# Factory
# =============================================================================


def open_store(url: str) -> DocumentStore:
    """Open a store from a URL.

    ``memory://``              in-process dict store
    ``sqlite://``              SQLite in memory
    ``sqlite:///path/to.db``   SQLite file
    """
    url = (url or "").strip()
    if url.startswith("memory://"):
        return MemoryDocumentStore()
    if url.startswith("sqlite://"):
        path = url[len("sqlite://") :]
        if path.startswith("/"):
            path = path[1:]
        return SqliteDocumentStore(path or ":memory:")
    raise ConfigError(
        f"Unsupported store URL '{url}' (expected memory:// or sqlite:///path)",
        context={"store_url": url},
    )


__all__ = [
    "DocumentStore",
    "MemoryDocumentStore",
    "SqliteDocumentStore",
    "open_store",
]
