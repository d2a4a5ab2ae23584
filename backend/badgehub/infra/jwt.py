"""Identity token verification.

Callers sign a short-lived JWT with the private key behind their identity.
The token is trusted only when its signature verifies against the public key
decoded from the identity string presented alongside it.
"""

from __future__ import annotations

from typing import Any, Dict

import jwt
from jwt import InvalidTokenError

from badgehub.infra.identity import InvalidIdentity, public_key_from_identity

# Identity wallets label secp256k1 signatures as ES256; ES256K is the precise name.
ALGORITHMS = ["ES256", "ES256K"]


def decode_identity_token(public_key: str, token: str) -> Dict[str, Any]:
	"""Verify ``token`` against ``public_key`` and return its claims.

	Raises jwt.InvalidTokenError subclasses on failure.
	"""
	try:
		key = public_key_from_identity(public_key)
	except InvalidIdentity as exc:
		raise InvalidTokenError(f"invalid_public_key:{exc}") from exc
	return jwt.decode(
		token,
		key,
		algorithms=ALGORITHMS,
		leeway=5,
		options={"verify_aud": False},
	)


def verify_identity_token(public_key: str, token: str) -> bool:
	try:
		decode_identity_token(public_key, token)
	except InvalidTokenError:
		return False
	return True
