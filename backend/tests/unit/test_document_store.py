import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from badgehub.infra.documents import (
	DELETE_FIELD,
	ArrayRemove,
	ArrayUnion,
	DocumentNotFound,
	Filter,
	Increment,
	InMemoryDocumentStore,
	apply_changes,
	split_path,
)
from badgehub.infra.postgres import PostgresDocumentStore


def test_apply_changes_field_operations():
	data = {"tags": ["a", "b"], "count": 1, "gone": True, "name": "x"}
	result = apply_changes(
		data,
		{
			"tags": ArrayUnion("b", "c"),
			"count": Increment(2),
			"gone": DELETE_FIELD,
			"name": "y",
			"fresh": ArrayRemove("z"),
		},
	)
	assert result == {"tags": ["a", "b", "c"], "count": 3, "name": "y", "fresh": []}
	assert data["tags"] == ["a", "b"]


def test_split_path():
	assert split_path("users/alice") == ("users", "alice")
	assert split_path("/users/alice/collections/faves/") == ("users/alice/collections", "faves")
	with pytest.raises(ValueError):
		split_path("users")
	with pytest.raises(ValueError):
		split_path("users/alice/collections")


@pytest.mark.asyncio
async def test_update_missing_document_raises():
	store = InMemoryDocumentStore()
	with pytest.raises(DocumentNotFound):
		await store.update("users/nobody", {"badgesIssued": ArrayUnion("x")})


@pytest.mark.asyncio
async def test_concurrent_unions_do_not_lose_members():
	store = InMemoryDocumentStore({"users/bob": {"badgesPending": []}})
	await asyncio.gather(*(store.update("users/bob", {"badgesPending": ArrayUnion(f"b{i}")}) for i in range(20)))
	pending = (await store.get("users/bob"))["badgesPending"]
	assert sorted(pending) == sorted(f"b{i}" for i in range(20))


@pytest.mark.asyncio
async def test_query_filters_order_and_subcollections():
	store = InMemoryDocumentStore(
		{
			"badgePages/p1": {"issuer": "alice", "dateCreated": 3},
			"badgePages/p2": {"issuer": "bob", "dateCreated": 1},
			"badgePages/p3": {"issuer": "alice", "dateCreated": 2},
			"users/alice/collections/faves": {"badges": ["b1"], "dateCreated": 1},
		}
	)
	pages = await store.query("badgePages", where=[Filter("issuer", "==", "alice")], order_by="dateCreated")
	assert [page.id for page in pages] == ["p3", "p1"]

	latest = await store.query("badgePages", order_by="dateCreated", descending=True, limit=1)
	assert [page.id for page in latest] == ["p1"]

	nested = await store.query("users/alice/collections", where=[Filter("badges", "array_contains", "b1")])
	assert [snapshot.id for snapshot in nested] == ["faves"]
	assert await store.query("users") == []


def test_filter_rejects_unknown_operator():
	with pytest.raises(ValueError):
		Filter("issuer", "<", "x")


@pytest.mark.asyncio
async def test_returned_documents_are_copies():
	store = InMemoryDocumentStore()
	await store.set("users/alice", {"badgesIssued": []})
	snapshot = await store.get("users/alice")
	snapshot["badgesIssued"].append("leak")
	assert (await store.get("users/alice"))["badgesIssued"] == []


def _mock_pool():
	pool = MagicMock()
	conn = AsyncMock()
	pool.acquire.return_value.__aenter__.return_value = conn
	conn.transaction = MagicMock()
	conn.transaction.return_value.__aenter__ = AsyncMock(return_value=None)
	conn.transaction.return_value.__aexit__ = AsyncMock(return_value=False)
	pool.fetch = AsyncMock(return_value=[])
	pool.fetchval = AsyncMock(return_value=None)
	pool.execute = AsyncMock()
	return pool, conn


@pytest.mark.asyncio
async def test_postgres_update_locks_row_and_applies_changes():
	pool, conn = _mock_pool()
	conn.fetchval.return_value = '{"badgesPending": ["a"]}'
	store = PostgresDocumentStore(pool)

	await store.update("users/bob", {"badgesPending": ArrayUnion("b")})

	select_sql = conn.fetchval.call_args.args[0]
	assert "FOR UPDATE" in select_sql
	update_args = conn.execute.call_args.args
	assert update_args[1] == "users/bob"
	assert update_args[2] == '{"badgesPending": ["a", "b"]}'


@pytest.mark.asyncio
async def test_postgres_update_missing_row():
	pool, conn = _mock_pool()
	conn.fetchval.return_value = None
	store = PostgresDocumentStore(pool)
	with pytest.raises(DocumentNotFound):
		await store.update("users/bob", {"badgesPending": ArrayUnion("b")})
	conn.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_postgres_query_builds_parameterised_sql():
	pool, _ = _mock_pool()
	pool.fetch.return_value = [{"path": "badgePages/p1", "data": '{"issuer": "alice"}'}]
	store = PostgresDocumentStore(pool)

	results = await store.query(
		"badgePages",
		where=[Filter("issuer", "==", "alice"), Filter("tags", "array_contains", "x")],
		order_by="dateCreated",
		descending=True,
		limit=5,
	)

	sql, *params = pool.fetch.call_args.args
	assert "data -> $2 = $3::jsonb" in sql
	assert "data -> $4 @> $5::jsonb" in sql
	assert "ORDER BY data -> $6 DESC" in sql
	assert "LIMIT $7" in sql
	assert params == ["badgePages", "issuer", '"alice"', "tags", '["x"]', "dateCreated", 5]
	assert results[0].id == "p1"
	assert results[0].data == {"issuer": "alice"}
