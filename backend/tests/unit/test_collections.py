import pytest

from badgehub.domain.badges.models import blank_user
from badgehub.domain.collections import service
from badgehub.domain.errors import Conflict, InvalidInput, NotFound
from badgehub.infra.documents import InMemoryDocumentStore

DEFAULT_IMAGE = "https://example.com/default.png"


@pytest.fixture
def store():
	return InMemoryDocumentStore(
		{
			"users/bob": blank_user(badgesReceived=["b1", "b2", "b3"], badgesIssued=["b9"]),
			"badges/b1": {"issuer": "alice", "recipients": ["bob", "carol"]},
			"badges/b2": {"issuer": "dave", "recipients": ["bob"]},
			"badges/b3": {"issuer": "alice", "recipients": ["bob", "erin"]},
			"badges/b9": {"issuer": "bob", "recipients": ["carol"]},
		}
	)


def _collection(**overrides):
	collection = {"name": "Favourites", "receivedCollection": True, "badges": ["b1", "b2"]}
	collection.update(overrides)
	return collection


@pytest.mark.asyncio
async def test_create_collection_snapshots_parties(store):
	created = await service.create_collection(store, "bob", _collection(), DEFAULT_IMAGE)

	assert created["issuers"] == ["alice", "dave"]
	assert created["recipients"] == ["bob", "carol"]
	assert created["imageUrl"] == DEFAULT_IMAGE
	assert await service.get_collection(store, "bob", "Favourites") == created
	assert (await store.get("users/bob"))["receivedCollections"] == ["Favourites"]


@pytest.mark.asyncio
async def test_issued_collection_requires_issued_badges(store):
	with pytest.raises(InvalidInput):
		await service.create_collection(store, "bob", _collection(receivedCollection=False), DEFAULT_IMAGE)
	created = await service.create_collection(
		store, "bob", _collection(name="Mine", receivedCollection=False, badges=["b9"]), DEFAULT_IMAGE
	)
	assert created["issuers"] == ["bob"]
	assert (await store.get("users/bob"))["issuedCollections"] == ["Mine"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
	"overrides",
	[
		{"name": ""},
		{"name": "n" * 81},
		{"name": "a/b"},
		{"receivedCollection": "yes"},
		{"backgroundColor": "#12345"},
		{"imageUrl": "not a url"},
		{"badges": ["b1", 2]},
		{"badges": ["b7"]},
	],
)
async def test_create_collection_validation(store, overrides):
	with pytest.raises(InvalidInput):
		await service.create_collection(store, "bob", _collection(**overrides), DEFAULT_IMAGE)


@pytest.mark.asyncio
async def test_collection_names_are_unique(store):
	await service.create_collection(store, "bob", _collection(), DEFAULT_IMAGE)
	with pytest.raises(Conflict):
		await service.create_collection(store, "bob", _collection(badges=["b3"]), DEFAULT_IMAGE)


@pytest.mark.asyncio
async def test_add_and_remove_badges(store):
	await service.create_collection(store, "bob", _collection(badges=["b1"]), DEFAULT_IMAGE)

	assert await service.add_to_collection(store, "bob", "Favourites", ["b2", "b3"]) == 2
	collection = await service.get_collection(store, "bob", "Favourites")
	assert collection["badges"] == ["b1", "b2", "b3"]
	assert collection["issuers"] == ["alice", "dave"]
	assert collection["recipients"] == ["bob", "carol", "erin"]

	assert await service.remove_from_collection(store, "bob", "Favourites", ["b1", "b2"]) == 2
	collection = await service.get_collection(store, "bob", "Favourites")
	assert collection["badges"] == ["b3"]
	assert collection["issuers"] == ["alice"]
	assert collection["recipients"] == ["bob", "erin"]


@pytest.mark.asyncio
async def test_add_to_collection_checks_ownership_and_existence(store):
	await service.create_collection(store, "bob", _collection(), DEFAULT_IMAGE)
	with pytest.raises(InvalidInput):
		await service.add_to_collection(store, "bob", "Favourites", ["b9"])
	with pytest.raises(NotFound):
		await service.add_to_collection(store, "bob", "Missing", ["b1"])
	assert await service.add_to_collection(store, "bob", "Favourites", []) == 0


@pytest.mark.asyncio
async def test_list_and_delete_collections(store):
	await service.create_collection(store, "bob", _collection(), DEFAULT_IMAGE)
	await service.create_collection(store, "bob", _collection(name="Other", badges=["b3"]), DEFAULT_IMAGE)
	assert [c["name"] for c in await service.list_collections(store, "bob")] == ["Favourites", "Other"]

	await service.delete_collection(store, "bob", "Favourites")
	assert [c["name"] for c in await service.list_collections(store, "bob")] == ["Other"]
	assert (await store.get("users/bob"))["receivedCollections"] == ["Other"]
	with pytest.raises(NotFound):
		await service.get_collection(store, "bob", "Favourites")
