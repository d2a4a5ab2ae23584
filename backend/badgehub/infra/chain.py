"""HTTP clients for the social-chain node and the remote transaction signer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import httpx


class ChainError(Exception):
	"""Raised when a node or signer call fails or returns an error body."""


class ChainClient(Protocol):
	async def submit_transaction(self, transaction_hex: str) -> dict[str, Any]:
		...

	async def send_funds(
		self,
		sender_public_key: str,
		recipient: str,
		amount_nanos: int,
		min_fee_rate_nanos_per_kb: int,
	) -> dict[str, Any]:
		...

	async def submit_post(
		self,
		updater_public_key: str,
		body: str,
		min_fee_rate_nanos_per_kb: int,
	) -> dict[str, Any]:
		...

	async def get_single_profile(self, *, username: str | None = None, public_key: str | None = None) -> dict[str, Any]:
		...

	async def get_hodlers(self, username: str, num_to_fetch: int) -> dict[str, Any]:
		...

	async def close(self) -> None:
		...


class TransactionSigner(Protocol):
	async def sign(self, transaction_hex: str) -> str:
		...

	async def close(self) -> None:
		...


async def _post_json(http: httpx.AsyncClient, url: str, payload: Mapping[str, Any]) -> dict[str, Any]:
	try:
		response = await http.post(url, json=dict(payload))
	except httpx.HTTPError as exc:
		raise ChainError(f"request to {url} failed: {exc}") from exc
	try:
		body = response.json()
	except ValueError:
		body = {}
	if not isinstance(body, dict):
		body = {"result": body}
	if response.is_error:
		raise ChainError(str(body.get("error") or f"{url} returned HTTP {response.status_code}"))
	if body.get("error"):
		raise ChainError(str(body["error"]))
	return body


@dataclass
class HttpChainClient(ChainClient):
	"""Talks to a node's public `/api/v0` JSON endpoints."""

	http: httpx.AsyncClient
	base_url: str

	def _url(self, endpoint: str) -> str:
		return f"{self.base_url.rstrip('/')}/{endpoint}"

	async def submit_transaction(self, transaction_hex: str) -> dict[str, Any]:
		return await _post_json(self.http, self._url("submit-transaction"), {"TransactionHex": transaction_hex})

	async def send_funds(
		self,
		sender_public_key: str,
		recipient: str,
		amount_nanos: int,
		min_fee_rate_nanos_per_kb: int,
	) -> dict[str, Any]:
		return await _post_json(
			self.http,
			self._url("send-bitclout"),
			{
				"SenderPublicKeyBase58Check": sender_public_key,
				"RecipientPublicKeyOrUsername": recipient,
				"AmountNanos": amount_nanos,
				"MinFeeRateNanosPerKB": min_fee_rate_nanos_per_kb,
			},
		)

	async def submit_post(
		self,
		updater_public_key: str,
		body: str,
		min_fee_rate_nanos_per_kb: int,
	) -> dict[str, Any]:
		return await _post_json(
			self.http,
			self._url("submit-post"),
			{
				"UpdaterPublicKeyBase58Check": updater_public_key,
				"PostHashHexToModify": "",
				"ParentStakeID": "",
				"Title": "",
				"BodyObj": {"Body": body, "ImageURLs": []},
				"RecloutedPostHashHex": "",
				"PostExtraData": {},
				"Sub": "",
				"IsHidden": False,
				"MinFeeRateNanosPerKB": min_fee_rate_nanos_per_kb,
			},
		)

	async def get_single_profile(self, *, username: str | None = None, public_key: str | None = None) -> dict[str, Any]:
		payload: dict[str, Any] = {}
		if username is not None:
			payload["Username"] = username
		if public_key is not None:
			payload["PublicKeyBase58Check"] = public_key
		return await _post_json(self.http, self._url("get-single-profile"), payload)

	async def get_hodlers(self, username: str, num_to_fetch: int) -> dict[str, Any]:
		return await _post_json(
			self.http,
			self._url("get-hodlers-for-public-key"),
			{"Username": username, "NumToFetch": num_to_fetch},
		)

	async def close(self) -> None:
		await self.http.aclose()


@dataclass
class HttpTransactionSigner(TransactionSigner):
	"""Remote signer holding the attestation account's key."""

	http: httpx.AsyncClient
	url: str

	async def sign(self, transaction_hex: str) -> str:
		body = await _post_json(self.http, self.url, {"transactionHex": transaction_hex})
		signed = body.get("signedHex")
		if not signed:
			raise ChainError("signer returned no signedHex")
		return str(signed)

	async def close(self) -> None:
		await self.http.aclose()
