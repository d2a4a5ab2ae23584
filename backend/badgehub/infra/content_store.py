"""Content-addressed store clients.

The store is consumed, not implemented: `add` hands bytes to an IPFS node
and returns the identifier it assigns. Identical bytes always yield the same
identifier.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Optional, Protocol

import httpx

from badgehub.infra.identity import b58encode

# multihash header for a 32-byte sha2-256 digest
_SHA256_MULTIHASH_PREFIX = b"\x12\x20"


class ContentStoreError(Exception):
	"""Raised when the content store rejects or fails an upload."""


class ContentStore(Protocol):
	async def add(self, data: bytes) -> str:
		...

	async def close(self) -> None:
		...


@dataclass
class IpfsContentStore(ContentStore):
	"""Uploads through the IPFS HTTP API (`/api/v0/add`)."""

	http: httpx.AsyncClient
	api_url: str
	project_id: Optional[str] = None
	project_secret: Optional[str] = None

	async def add(self, data: bytes) -> str:
		auth = None
		if self.project_id and self.project_secret:
			auth = httpx.BasicAuth(self.project_id, self.project_secret)
		try:
			response = await self.http.post(
				f"{self.api_url.rstrip('/')}/api/v0/add",
				files={"file": ("badge.json", data, "application/json")},
				params={"pin": "true"},
				auth=auth,
			)
			response.raise_for_status()
			body = response.json()
		except (httpx.HTTPError, ValueError) as exc:
			raise ContentStoreError(f"ipfs add failed: {exc}") from exc
		cid = body.get("Hash") if isinstance(body, dict) else None
		if not cid:
			raise ContentStoreError("ipfs add returned no hash")
		return str(cid)

	async def close(self) -> None:
		await self.http.aclose()


@dataclass
class InMemoryContentStore(ContentStore):
	"""Derives CIDv0-style identifiers from the SHA-256 of the bytes."""

	blobs: dict[str, bytes] = field(default_factory=dict)

	async def add(self, data: bytes) -> str:
		digest = hashlib.sha256(data).digest()
		cid = b58encode(_SHA256_MULTIHASH_PREFIX + digest)
		self.blobs[cid] = bytes(data)
		return cid

	async def close(self) -> None:
		return None
