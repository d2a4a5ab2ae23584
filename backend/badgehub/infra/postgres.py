"""AsyncPG-backed document store.

Documents are JSONB rows keyed by path. Updates lock the row with
``SELECT ... FOR UPDATE`` inside a transaction, apply the field operations and
write the result back, which gives the same per-document atomicity as the
in-memory store.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Sequence

import asyncpg

from badgehub.infra.documents import (
	DocumentNotFound,
	DocumentSnapshot,
	DocumentStore,
	Filter,
	apply_changes,
	new_document_id,
	split_path,
)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
	path TEXT PRIMARY KEY,
	collection TEXT NOT NULL,
	doc_id TEXT NOT NULL,
	data JSONB NOT NULL,
	updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS documents_collection_idx ON documents (collection);
"""

_UPSERT_SQL = """
INSERT INTO documents (path, collection, doc_id, data)
VALUES ($1, $2, $3, $4::jsonb)
ON CONFLICT (path) DO UPDATE
SET data = EXCLUDED.data,
	updated_at = NOW()
"""


def _decode(raw: Any) -> dict[str, Any]:
	if isinstance(raw, str):
		return json.loads(raw)
	return dict(raw)


class PostgresDocumentStore(DocumentStore):
	"""Stores every collection in a single ``documents`` table."""

	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	@classmethod
	async def connect(
		cls,
		dsn: str,
		*,
		min_size: int = 1,
		max_size: int = 10,
		ensure_schema: bool = True,
	) -> "PostgresDocumentStore":
		# Force 127.0.0.1 instead of localhost to avoid IPv6 issues on Windows
		pool = await asyncpg.create_pool(
			dsn=dsn.replace("localhost", "127.0.0.1"),
			min_size=min_size,
			max_size=max_size,
		)
		store = cls(pool)
		if ensure_schema:
			await store.ensure_schema()
		return store

	async def ensure_schema(self) -> None:
		async with self._pool.acquire() as conn:
			await conn.execute(SCHEMA_SQL)

	async def close(self) -> None:
		await self._pool.close()

	async def get(self, path: str) -> Optional[dict[str, Any]]:
		split_path(path)
		raw = await self._pool.fetchval("SELECT data FROM documents WHERE path = $1", path.strip("/"))
		return _decode(raw) if raw is not None else None

	async def set(self, path: str, data: Mapping[str, Any]) -> None:
		collection, doc_id = split_path(path)
		await self._pool.execute(_UPSERT_SQL, path.strip("/"), collection, doc_id, json.dumps(dict(data)))

	async def update(self, path: str, changes: Mapping[str, Any]) -> None:
		split_path(path)
		key = path.strip("/")
		async with self._pool.acquire() as conn:
			async with conn.transaction():
				raw = await conn.fetchval("SELECT data FROM documents WHERE path = $1 FOR UPDATE", key)
				if raw is None:
					raise DocumentNotFound(key)
				updated = apply_changes(_decode(raw), changes)
				await conn.execute(
					"UPDATE documents SET data = $2::jsonb, updated_at = NOW() WHERE path = $1",
					key,
					json.dumps(updated),
				)

	async def delete(self, path: str) -> None:
		split_path(path)
		await self._pool.execute("DELETE FROM documents WHERE path = $1", path.strip("/"))

	async def add(self, collection: str, data: Mapping[str, Any]) -> str:
		doc_id = new_document_id()
		await self.set(f"{collection.strip('/')}/{doc_id}", data)
		return doc_id

	async def query(
		self,
		collection: str,
		*,
		where: Sequence[Filter] = (),
		order_by: Optional[str] = None,
		descending: bool = False,
		limit: Optional[int] = None,
	) -> list[DocumentSnapshot]:
		clauses = ["collection = $1"]
		params: list[Any] = [collection.strip("/")]
		for condition in where:
			params.append(condition.field)
			field_idx = len(params)
			if condition.op == "==":
				params.append(json.dumps(condition.value))
				clauses.append(f"data -> ${field_idx} = ${len(params)}::jsonb")
			else:
				params.append(json.dumps([condition.value]))
				clauses.append(f"data -> ${field_idx} @> ${len(params)}::jsonb")
		sql = f"SELECT path, data FROM documents WHERE {' AND '.join(clauses)}"
		if order_by:
			params.append(order_by)
			direction = "DESC" if descending else "ASC"
			sql += f" ORDER BY data -> ${len(params)} {direction} NULLS LAST"
		if limit is not None:
			params.append(int(limit))
			sql += f" LIMIT ${len(params)}"
		rows = await self._pool.fetch(sql, *params)
		return [DocumentSnapshot(path=row["path"], data=_decode(row["data"])) for row in rows]
