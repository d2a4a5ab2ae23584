import time

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from badgehub.infra.chain import ChainError
from badgehub.infra.identity import identity_from_public_key
from badgehub.settings import settings


def _headers(user_id):
	return {"X-User-Id": user_id}


def _badge(**overrides):
	payload = {
		"title": "Intro",
		"issuer": "alice",
		"recipients": ["bob", "carol"],
		"validDates": False,
	}
	payload.update(overrides)
	return payload


@pytest.mark.asyncio
async def test_create_and_fetch_badge(api_client, services):
	response = await api_client.post("/badge", json=_badge(), headers=_headers("alice"))
	assert response.status_code == 200
	badge = response.json()
	assert badge["validDateEnd"] == 8640000000000000
	assert badge["recipientsChains"] == ["$CLOUT", "$CLOUT"]

	fetched = await api_client.get(f"/badge/{badge['id']}")
	assert fetched.status_code == 200
	assert fetched.json()["id"] == badge["id"]

	listed = await api_client.post("/badges", json={"badgeIds": [badge["id"], badge["id"], "missing"]})
	assert [item["id"] for item in listed.json()["badges"]] == [badge["id"]]

	bob = await api_client.get("/users/bob")
	assert bob.json()["badgesPending"] == [badge["id"]]


@pytest.mark.asyncio
async def test_rejected_badge_returns_400_with_reason(api_client):
	response = await api_client.post(
		"/badge", json=_badge(backgroundColor="notacolor"), headers=_headers("alice")
	)
	assert response.status_code == 400
	body = response.json()
	assert body["reason"] == "invalid_color"
	assert "badge_id" not in body
	assert body["request_id"]


@pytest.mark.asyncio
async def test_attestation_failure_returns_502_with_badge_id(api_client, signer):
	signer.sign.side_effect = ChainError("signer down")
	response = await api_client.post("/badge", json=_badge(), headers=_headers("alice"))
	assert response.status_code == 502
	body = response.json()
	assert body["reason"] == "attestation_failed"
	assert body["badge_id"] in body["error"]


@pytest.mark.asyncio
async def test_unknown_badge_is_404(api_client):
	response = await api_client.get("/badge/QmMissing")
	assert response.status_code == 404
	assert response.json()["reason"] == "not_found"


@pytest.mark.asyncio
async def test_create_badge_requires_credentials_outside_dev(api_client):
	settings.environment = "production"
	response = await api_client.post("/badge", json=_badge(), headers=_headers("alice"))
	assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_badge_with_signed_identity_token(api_client, services):
	settings.environment = "production"
	private_key = ec.generate_private_key(ec.SECP256K1())
	identity = identity_from_public_key(private_key.public_key())
	token = jwt.encode({"exp": int(time.time()) + 60}, private_key, algorithm="ES256K")

	payload = _badge(issuer=identity, jwt=token, publickey=identity)
	response = await api_client.post("/badge", json=payload)
	assert response.status_code == 200
	assert response.json()["issuer"] == identity

	payload["jwt"] = jwt.encode({"exp": int(time.time()) + 60}, ec.generate_private_key(ec.SECP256K1()), algorithm="ES256K")
	response = await api_client.post("/badge", json=payload)
	assert response.status_code == 401
	assert response.json()["detail"] == "invalid_token"


@pytest.mark.asyncio
async def test_fee_transaction_quote(api_client, chain):
	response = await api_client.get("/feeTxn/BC1YLsender/30")
	assert response.status_code == 200
	assert response.json() == {"TransactionHex": "0a0b", "amountNanos": 5_000_000}

	response = await api_client.get("/feeTxn/BC1YLsender/none")
	assert response.status_code == 400


@pytest.mark.asyncio
async def test_accept_flow(api_client):
	created = (await api_client.post("/badge", json=_badge(), headers=_headers("alice"))).json()

	response = await api_client.post("/acceptBadge", json={"badgeId": created["id"]}, headers=_headers("bob"))
	assert response.status_code == 200
	bob = (await api_client.get("/users/bob")).json()
	assert bob["badgesAccepted"] == [created["id"]]
	assert bob["badgesPending"] == []
	assert "dateAccepted" in (await api_client.get(f"/badge/{created['id']}")).json()

	again = await api_client.post("/acceptBadge", json={"badgeId": created["id"]}, headers=_headers("bob"))
	assert again.status_code == 400
	assert again.json()["reason"] == "not_pending"


@pytest.mark.asyncio
async def test_pages_and_collections_routes(api_client):
	created = (await api_client.post("/badge", json=_badge(), headers=_headers("alice"))).json()

	page = await api_client.post(
		"/badgePages", json={"title": "Mentor", "issuer": "alice"}, headers=_headers("alice")
	)
	assert page.status_code == 200
	page_id = page.json()["id"]
	listing = await api_client.get("/userBadgePages/alice")
	assert [item["id"] for item in listing.json()["badgePages"]] == [page_id]
	deleted = await api_client.post(f"/badgePages/{page_id}", json={}, headers=_headers("bob"))
	assert deleted.status_code == 403

	collection = await api_client.post(
		"/createCollection",
		json={"name": "Mine", "receivedCollection": False, "badges": [created["id"]]},
		headers=_headers("alice"),
	)
	assert collection.status_code == 200
	assert collection.json()["recipients"] == ["bob", "carol"]
	fetched = await api_client.get("/collections/alice/Mine")
	assert fetched.json()["badges"] == [created["id"]]
	duplicate = await api_client.post(
		"/createCollection",
		json={"name": "Mine", "receivedCollection": False, "badges": []},
		headers=_headers("alice"),
	)
	assert duplicate.status_code == 409

	removed = await api_client.post(
		"/removeFromCollection", json={"name": "Mine", "badges": [created["id"]]}, headers=_headers("alice")
	)
	assert removed.status_code == 200
	assert (await api_client.get("/collections/alice")).json()["collections"][0]["badges"] == []


@pytest.mark.asyncio
async def test_profile_lookup_failure_is_502(api_client, chain):
	chain.get_single_profile.side_effect = ChainError("node down")
	response = await api_client.get("/username/BC1YLalice")
	assert response.status_code == 502
	assert response.json()["reason"] == "upstream_error"


@pytest.mark.asyncio
async def test_health_live(api_client):
	response = await api_client.get("/health/live")
	assert response.status_code == 200
	assert response.json() == {"status": "ok"}
	assert response.headers["X-Request-Id"]


@pytest.mark.asyncio
async def test_badge_listing_ignores_ids_spanning_several_segments(api_client, services):
	await services.documents.set("badges/a/collections/faves", {"name": "faves", "badges": ["x"]})

	response = await api_client.post("/badges", json={"badgeIds": ["a/collections/faves"]})

	assert response.status_code == 200
	assert response.json() == {"badges": []}
