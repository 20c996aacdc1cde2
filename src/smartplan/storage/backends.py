# src/smartplan/storage/backends.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from ..core.ports import Document, KeyValueStore
from ..errors import StoreError

logger = logging.getLogger(__name__)


class BlobCollectionBackend:
    """
    Whole collection stored as one JSON array under a single key.

    This is the device-local layout: every write reads the array, changes it
    and writes the full array back. There is no locking between writers.
    """

    def __init__(self, kv: KeyValueStore, key: str) -> None:
        if not key or not key.strip():
            raise ValueError("key is required")
        self._kv = kv
        self._key = key

    # ---- low-level helpers ----

    def _load(self) -> list[Document]:
        raw = self._kv.get_item(self._key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StoreError(f"Collection {self._key!r} is not valid JSON") from e
        if not isinstance(data, list):
            raise StoreError(f"Collection {self._key!r} is not a JSON array")
        return [d for d in data if isinstance(d, dict)]

    def _save(self, docs: list[Document]) -> None:
        self._kv.set_item(self._key, json.dumps(docs, ensure_ascii=False))

    # ---- DocumentBackend ----

    def insert(self, doc: Document) -> None:
        docs = self._load()
        docs.append(dict(doc))
        self._save(docs)

    def get(self, doc_id: str) -> Document | None:
        for d in self._load():
            if d.get("id") == doc_id:
                return d
        return None

    def replace(self, doc_id: str, doc: Document) -> bool:
        docs = self._load()
        for i, d in enumerate(docs):
            if d.get("id") == doc_id:
                docs[i] = dict(doc)
                self._save(docs)
                return True
        return False

    def delete(self, doc_id: str) -> bool:
        return self.delete_many([doc_id]) > 0

    def delete_many(self, doc_ids: Iterable[str]) -> int:
        ids = set(doc_ids)
        if not ids:
            return 0
        docs = self._load()
        keep = [d for d in docs if d.get("id") not in ids]
        removed = len(docs) - len(keep)
        if removed:
            self._save(keep)
        return removed

    def list_by_owner(self, user_id: str) -> list[Document]:
        return [d for d in self._load() if d.get("userId") == user_id]


class SqliteDocumentBackend:
    """
    One row per record, the remote document-collection layout.

    Several collections share one table; rows are keyed by (collection, id)
    and indexed by owner.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path, collection: str) -> None:
        if not collection or not collection.strip():
            raise ValueError("collection is required")
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._collection = collection.strip()
        self._ensure_schema()
        logger.info("SqliteDocumentBackend ready db=%s collection=%s", self._db_path, self._collection)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        try:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS documents (
                        collection TEXT NOT NULL,
                        id TEXT NOT NULL,
                        user_id TEXT NOT NULL,
                        body TEXT NOT NULL,
                        PRIMARY KEY (collection, id)
                    )
                    """
                )
                cur.execute(
                    "CREATE INDEX IF NOT EXISTS idx_documents_owner ON documents(collection, user_id)"
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open document store at {self._db_path}: {e}") from e

    @staticmethod
    def _encode(doc: Document) -> str:
        return json.dumps(doc, ensure_ascii=False)

    @staticmethod
    def _decode(raw: str) -> Document:
        try:
            val: Any = json.loads(raw)
        except ValueError as e:
            raise StoreError("Stored document is not valid JSON") from e
        if not isinstance(val, dict):
            raise StoreError("Stored document is not a JSON object")
        return val

    @staticmethod
    def _require_keys(doc: Document) -> tuple[str, str]:
        doc_id = doc.get("id")
        user_id = doc.get("userId")
        if not isinstance(doc_id, str) or not doc_id:
            raise ValueError("document id is required")
        if not isinstance(user_id, str) or not user_id:
            raise ValueError("document userId is required")
        return doc_id, user_id

    # ---- DocumentBackend ----

    def insert(self, doc: Document) -> None:
        doc_id, user_id = self._require_keys(doc)
        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    "INSERT INTO documents(collection, id, user_id, body) VALUES (?, ?, ?, ?)",
                    (self._collection, doc_id, user_id, self._encode(doc)),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to insert {self._collection}/{doc_id}: {e}") from e

    def get(self, doc_id: str) -> Document | None:
        try:
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT body FROM documents WHERE collection = ? AND id = ?",
                    (self._collection, doc_id),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read {self._collection}/{doc_id}: {e}") from e
        return self._decode(row["body"]) if row else None

    def replace(self, doc_id: str, doc: Document) -> bool:
        _, user_id = self._require_keys(doc)
        try:
            conn = self._get_conn()
            try:
                cur = conn.execute(
                    "UPDATE documents SET user_id = ?, body = ? WHERE collection = ? AND id = ?",
                    (user_id, self._encode(doc), self._collection, doc_id),
                )
                conn.commit()
                return cur.rowcount == 1
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to update {self._collection}/{doc_id}: {e}") from e

    def delete(self, doc_id: str) -> bool:
        return self.delete_many([doc_id]) > 0

    def delete_many(self, doc_ids: Iterable[str]) -> int:
        ids = list(dict.fromkeys(doc_ids))
        if not ids:
            return 0
        placeholders = ",".join("?" for _ in ids)
        try:
            conn = self._get_conn()
            try:
                cur = conn.execute(
                    f"DELETE FROM documents WHERE collection = ? AND id IN ({placeholders})",
                    (self._collection, *ids),
                )
                conn.commit()
                return int(cur.rowcount)
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to delete from {self._collection}: {e}") from e

    def list_by_owner(self, user_id: str) -> list[Document]:
        try:
            conn = self._get_conn()
            try:
                rows = conn.execute(
                    "SELECT body FROM documents WHERE collection = ? AND user_id = ?",
                    (self._collection, user_id),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list {self._collection} for user={user_id}: {e}") from e
        return [self._decode(r["body"]) for r in rows]
