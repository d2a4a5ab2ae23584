import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from badgehub.domain.badges.container import BadgeServices
from badgehub.domain.badges.models import IssuanceConfig
from badgehub.domain.badges.reconcile import ReconciliationLog
from badgehub.infra.content_store import InMemoryContentStore
from badgehub.infra.documents import InMemoryDocumentStore
from badgehub.main import app
from badgehub.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from badgehub.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Most API tests authenticate via the X-User-Id header, which is only accepted in dev mode."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture
def chain():
	client = AsyncMock()
	client.submit_transaction.return_value = {"TxnHashHex": "abc"}
	client.submit_post.return_value = {"TransactionHex": "01deadbeef"}
	client.send_funds.return_value = {"TransactionHex": "0a0b", "SpendAmountNanos": 5_000_000}
	return client


@pytest.fixture
def signer():
	client = AsyncMock()
	client.sign.return_value = "01deadbeefsigned"
	return client


@pytest.fixture
def services(fake_redis, chain, signer):
	return BadgeServices(
		documents=InMemoryDocumentStore(),
		content=InMemoryContentStore(),
		chain=chain,
		signer=signer,
		reconciliation=ReconciliationLog(fake_redis),
		config=IssuanceConfig(),
	)


@pytest_asyncio.fixture
async def api_client(services):
	app.state.services = services
	transport = ASGITransport(app=app)
	try:
		async with AsyncClient(transport=transport, base_url="http://testserver") as client:
			yield client
	finally:
		app.state.services = None
