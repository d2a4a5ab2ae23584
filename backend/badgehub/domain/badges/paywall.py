"""Premium-tier payment proof verification and fee quotes.

Issuing to more than the free tier of recipients requires the caller to hand
over a signed payment transaction. Before broadcasting it we re-derive, from
fixed offsets in the hex blob, the first output's recipient key and amount:

    [len:1 byte][inputs: len * 33 bytes][outputs count:1 byte][recipient:33 bytes][amount: uvarint]

Offsets are in hex characters, so a 33-byte key spans 66 of them. Only the
single length byte for inputs is read; transactions whose inputs are encoded
differently are not understood and fail the recipient or amount checks.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from badgehub.domain.badges.models import IssuanceConfig
from badgehub.domain.badges.results import StageOk, StageResult, rejected
from badgehub.infra.chain import ChainClient, ChainError
from badgehub.obs import metrics

logger = logging.getLogger(__name__)

KEY_HEX_LENGTH = 66


class FeeQuoteError(Exception):
    """Raised when a fee transaction cannot be quoted."""


def encode_uvarint(value: int) -> bytes:
    """Little-endian base-128 varint, high bit set on every byte but the last."""
    if value < 0:
        raise ValueError("uvarint cannot encode negative values")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def is_premium(recipient_count: int, config: IssuanceConfig) -> bool:
    return recipient_count > config.free_tier_recipients


def required_payment(recipient_count: int, config: IssuanceConfig) -> int:
    paid_recipients = max(0, recipient_count - config.free_tier_recipients)
    return paid_recipients * config.nanos_per_recipient


def amount_offset(input_count: int) -> int:
    """Hex index where the first output's amount starts."""
    outputs_len_idx = 2 + KEY_HEX_LENGTH * input_count
    recipient_idx = outputs_len_idx + 2
    return recipient_idx + KEY_HEX_LENGTH


def _reject(reason: str, message: str):
    metrics.inc_payment_proof_reject(reason)
    return rejected(reason, message)


def verify_payment_proof(
    signed_transaction_hex: Any,
    amount_nanos: Any,
    recipient_count: int,
    config: IssuanceConfig,
) -> StageResult[int]:
    """Check a signed payment transaction locally. Returns the verified amount."""
    if not isinstance(signed_transaction_hex, str) or not signed_transaction_hex:
        return _reject(
            "payment_required",
            f"Please specify signedTransactionHex and amountNanos. You have over "
            f"{config.free_tier_recipients} recipients",
        )
    if isinstance(amount_nanos, bool) or not isinstance(amount_nanos, int) or amount_nanos <= 0:
        return _reject(
            "payment_required",
            f"Please specify signedTransactionHex and amountNanos. You have over "
            f"{config.free_tier_recipients} recipients",
        )

    paid_recipients = recipient_count - config.free_tier_recipients
    min_price = required_payment(recipient_count, config)
    if amount_nanos < min_price:
        return _reject(
            "amount_too_low",
            f"amountNanos is not enough. Must be at least {min_price} for {paid_recipients} recipients",
        )

    tx_hex = signed_transaction_hex.strip().lower()
    if len(tx_hex) <= 2:
        return _reject("hex_too_short", "Invalid signed transaction hex. Not long enough to be valid")

    try:
        input_count = int(tx_hex[:2], 16)
    except ValueError:
        return _reject("length_unparseable", "Invalid transaction hex: input length is not a number")

    amount_idx = amount_offset(input_count)
    recipient_idx = amount_idx - KEY_HEX_LENGTH
    amount_hex = encode_uvarint(amount_nanos).hex()
    if amount_idx + len(amount_hex) > len(tx_hex):
        return _reject("hex_too_short", "Invalid signed transaction hex. Not long enough to be valid")

    if tx_hex[recipient_idx:amount_idx] != config.platform_public_key_hex:
        return _reject(
            "recipient_mismatch",
            f"Invalid recipient: recipient of transaction must be the @{config.platform_username} account",
        )

    if not tx_hex.startswith(amount_hex, amount_idx):
        return _reject("amount_mismatch", "Invalid signed transaction hex: amountNanos does not match")

    return StageOk(amount_nanos)


async def settle_payment(chain: ChainClient, signed_transaction_hex: str, config: IssuanceConfig) -> StageResult[None]:
    """Broadcast a locally verified payment. Nothing has been written yet."""
    try:
        await chain.submit_transaction(signed_transaction_hex)
    except Exception as exc:
        logger.warning("payment_settlement_failed", extra={"error": str(exc)})
        return rejected("payment_failed", f"Error sending payment to @{config.platform_username}")
    return StageOk(None)


def parse_recipient_count(value: Any) -> Optional[int]:
    try:
        count = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return count


async def quote_fee_transaction(
    chain: ChainClient,
    sender_public_key: str,
    recipient_count: Any,
    config: IssuanceConfig,
) -> dict[str, Any]:
    """Ask the node for an unsigned fee transaction covering ``recipient_count``."""
    count = parse_recipient_count(recipient_count)
    if not sender_public_key or count is None or count <= 0:
        raise FeeQuoteError(
            "Params are invalid. numRecipients must be a valid positive number and senderKey must be defined"
        )
    amount = required_payment(count, config)
    failure = (
        f"Could not create a payment transaction for {amount} nanos from {sender_public_key} "
        f"to @{config.platform_username}. This often fails when the account balance is too low."
    )
    try:
        response = await chain.send_funds(
            sender_public_key,
            config.platform_username,
            amount,
            config.min_fee_rate_nanos_per_kb,
        )
    except ChainError as exc:
        raise FeeQuoteError(failure) from exc
    if not response.get("TransactionHex") or not response.get("SpendAmountNanos"):
        raise FeeQuoteError(failure)
    return {
        "TransactionHex": response["TransactionHex"],
        "amountNanos": response["SpendAmountNanos"],
    }
