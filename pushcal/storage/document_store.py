"""SQLite-backed document store for subscriptions and calendar items."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import sqlite3
import uuid
from pathlib import Path
from typing import Any, Optional, Union

import aiosqlite

from pushcal.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

SUBSCRIPTIONS = "subscriptions"
CALENDAR_ITEMS = "calendar_items"

_FIELD_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class StoreError(UpstreamFailure):
    """A document store operation failed."""

    default_error_id = "store-failure"


def _where_clause(query: dict[str, Any]) -> tuple[str, list[Any]]:
    """Translate a field-equality query into SQL.

    ``id`` matches the document id column; other keys match top-level JSON
    fields of the document body. Values compare strictly: ``1`` does not
    match ``"1"``.
    """
    clauses = ["collection = ?"]
    params: list[Any] = []
    for field, value in query.items():
        if not _FIELD_NAME.fullmatch(field):
            raise ValueError(f"Unsupported query field: {field!r}")
        if isinstance(value, (dict, list, tuple)):
            raise ValueError(f"Query value for {field!r} must be a scalar")
        if field == "id":
            clauses.append("id IS ?")
            params.append(value)
        else:
            clauses.append("json_extract(body, ?) IS ?")
            params.extend((f"$.{field}", value))
    return " AND ".join(clauses), params


def _row_to_document(row: tuple[str, str]) -> dict[str, Any]:
    doc_id, body = row
    document = json.loads(body)
    document["id"] = doc_id
    return document


class DocumentStore:
    """Owns the SQLite database file and hands out named collections."""

    def __init__(self, database_path: Union[Path, str]):
        """Initialize document store.

        Args:
            database_path: Path to SQLite database file
        """
        self.database_path = Path(database_path)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialized = False
        self._initialization_lock: Optional[asyncio.Lock] = None

        logger.info("Document store initialized (lazy): %s", self.database_path)

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        if self._initialization_lock is None:
            self._initialization_lock = asyncio.Lock()

        async with self._initialization_lock:
            if self._initialized:
                return
            try:
                async with aiosqlite.connect(str(self.database_path)) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS documents (
                            collection TEXT NOT NULL,
                            id TEXT NOT NULL,
                            body TEXT NOT NULL,
                            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                            PRIMARY KEY (collection, id)
                        )
                        """
                    )
                    await db.commit()
            except sqlite3.Error as exc:
                logger.exception("Failed to initialize document store %s", self.database_path)
                raise StoreError(f"Unable to initialize document store: {exc}") from exc
            self._initialized = True
            logger.debug("Document store schema ready: %s", self.database_path)

    def collection(self, name: str) -> Collection:
        """Return a handle on the named collection."""
        return Collection(self, name)

    @property
    def subscriptions(self) -> Collection:
        return self.collection(SUBSCRIPTIONS)

    @property
    def calendar_items(self) -> Collection:
        return self.collection(CALENDAR_ITEMS)

    async def execute(self, sql: str, params: list[Any]) -> int:
        """Run a write statement and return the affected row count."""
        await self._ensure_initialized()
        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                cursor = await db.execute(sql, params)
                await db.commit()
                return cursor.rowcount
        except sqlite3.Error as exc:
            logger.exception("Document store write failed")
            raise StoreError(f"Document store write failed: {exc}") from exc

    async def fetch_all(self, sql: str, params: list[Any]) -> list[tuple[Any, ...]]:
        """Run a query and return all rows."""
        await self._ensure_initialized()
        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                async with db.execute(sql, params) as cursor:
                    return list(await cursor.fetchall())
        except sqlite3.Error as exc:
            logger.exception("Document store read failed")
            raise StoreError(f"Document store read failed: {exc}") from exc


class Collection:
    """A named set of JSON documents inside a ``DocumentStore``."""

    def __init__(self, store: DocumentStore, name: str) -> None:
        self.store = store
        self.name = name

    async def insert(self, document: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        body = {k: v for k, v in document.items() if k != "id"}
        await self.store.execute(
            "INSERT INTO documents (collection, id, body) VALUES (?, ?, ?)",
            [self.name, doc_id, json.dumps(body)],
        )
        logger.debug("Inserted document %s into %s", doc_id, self.name)
        return doc_id

    async def find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        where, params = _where_clause(query)
        rows = await self.store.fetch_all(
            f"SELECT id, body FROM documents WHERE {where} ORDER BY rowid",  # nosec B608 - field names validated, values bound
            [self.name, *params],
        )
        return [_row_to_document(row) for row in rows]

    async def find_one(self, query: dict[str, Any]) -> Optional[dict[str, Any]]:
        where, params = _where_clause(query)
        rows = await self.store.fetch_all(
            f"SELECT id, body FROM documents WHERE {where} ORDER BY rowid LIMIT 1",  # nosec B608
            [self.name, *params],
        )
        return _row_to_document(rows[0]) if rows else None

    async def update(self, query: dict[str, Any], document: dict[str, Any]) -> int:
        where, params = _where_clause(query)
        body = {k: v for k, v in document.items() if k != "id"}
        count = await self.store.execute(
            f"UPDATE documents SET body = ? WHERE {where}",  # nosec B608
            [json.dumps(body), self.name, *params],
        )
        logger.debug("Replaced %d document(s) in %s", count, self.name)
        return count

    async def remove(self, query: dict[str, Any]) -> int:
        where, params = _where_clause(query)
        count = await self.store.execute(
            f"DELETE FROM documents WHERE {where}",  # nosec B608
            [self.name, *params],
        )
        logger.debug("Removed %d document(s) from %s", count, self.name)
        return count
