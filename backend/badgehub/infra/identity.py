"""Identity key helpers.

Identities are base58check-encoded public keys: a 3-byte network prefix
followed by a 33-byte compressed secp256k1 point, then a 4-byte checksum
(double SHA-256).
"""

from __future__ import annotations

import hashlib

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

B58_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
B58_MAP = {c: i for i, c in enumerate(B58_ALPHABET)}

PREFIX_LENGTH = 3
COMPRESSED_KEY_LENGTH = 33
CHECKSUM_LENGTH = 4


class InvalidIdentity(ValueError):
	"""Raised when an identity string cannot be decoded into a public key."""


def b58decode(value: str) -> bytes:
	try:
		raw = value.encode("ascii")
	except UnicodeEncodeError as exc:
		raise InvalidIdentity("invalid base58 character") from exc
	num = 0
	for c in raw:
		if c not in B58_MAP:
			raise InvalidIdentity("invalid base58 character")
		num = num * 58 + B58_MAP[c]
	n_pad = 0
	for c in raw:
		if c == B58_ALPHABET[0]:
			n_pad += 1
		else:
			break
	full = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
	return b"\x00" * n_pad + full


def b58encode(data: bytes) -> str:
	n_pad = 0
	for c in data:
		if c == 0:
			n_pad += 1
		else:
			break
	num = int.from_bytes(data, "big")
	out = bytearray()
	while num > 0:
		num, rem = divmod(num, 58)
		out.append(B58_ALPHABET[rem])
	out.extend(B58_ALPHABET[0] for _ in range(n_pad))
	out.reverse()
	return out.decode("ascii")


def _checksum(payload: bytes) -> bytes:
	return hashlib.sha256(hashlib.sha256(payload).digest()).digest()[:CHECKSUM_LENGTH]


def b58check_decode(value: str) -> bytes:
	decoded = b58decode(value)
	if len(decoded) <= CHECKSUM_LENGTH:
		raise InvalidIdentity("base58check payload too short")
	payload, checksum = decoded[:-CHECKSUM_LENGTH], decoded[-CHECKSUM_LENGTH:]
	if _checksum(payload) != checksum:
		raise InvalidIdentity("base58check checksum mismatch")
	return payload


def b58check_encode(payload: bytes) -> str:
	return b58encode(payload + _checksum(payload))


def public_key_from_identity(identity: str) -> ec.EllipticCurvePublicKey:
	"""Decode an identity string into a secp256k1 public key."""
	payload = b58check_decode((identity or "").strip())
	if len(payload) != PREFIX_LENGTH + COMPRESSED_KEY_LENGTH:
		raise InvalidIdentity("unexpected public key length")
	try:
		return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), payload[PREFIX_LENGTH:])
	except ValueError as exc:
		raise InvalidIdentity("not a valid secp256k1 point") from exc


def identity_from_public_key(public_key: ec.EllipticCurvePublicKey, prefix: bytes = b"\xcd\x14\x00") -> str:
	"""Encode a public key as an identity string (mainnet prefix by default)."""
	point = public_key.public_bytes(
		encoding=serialization.Encoding.X962,
		format=serialization.PublicFormat.CompressedPoint,
	)
	return b58check_encode(prefix + point)
