import pytest
from unittest.mock import AsyncMock

from badgehub.domain.badges.models import IssuanceConfig
from badgehub.domain.badges.paywall import (
	FeeQuoteError,
	amount_offset,
	encode_uvarint,
	quote_fee_transaction,
	required_payment,
	settle_payment,
	verify_payment_proof,
)
from badgehub.domain.badges.results import StageFailure, StageOk
from badgehub.infra.chain import ChainError

CONFIG = IssuanceConfig()
PLATFORM_KEY = CONFIG.platform_public_key_hex


def build_payment_hex(amount_nanos, recipient_key=PLATFORM_KEY, inputs=1):
	"""Lay out a transaction the way the verifier reads it."""
	return (
		f"{inputs:02x}"
		+ "11" * 33 * inputs
		+ "01"
		+ recipient_key
		+ encode_uvarint(amount_nanos).hex()
		+ "00" * 8
	)


def _reason(result):
	assert isinstance(result, StageFailure)
	return result.reason


def test_encode_uvarint():
	assert encode_uvarint(0) == b"\x00"
	assert encode_uvarint(127) == b"\x7f"
	assert encode_uvarint(128) == b"\x80\x01"
	assert encode_uvarint(300) == b"\xac\x02"
	assert encode_uvarint(5_000_000).hex() == "c096b102"


def test_required_payment_and_offsets():
	assert required_payment(25, CONFIG) == 0
	assert required_payment(30, CONFIG) == 25_000_000
	assert amount_offset(1) == 2 + 66 + 2 + 66


def test_valid_proof_passes():
	result = verify_payment_proof(build_payment_hex(25_000_000), 25_000_000, 30, CONFIG)
	assert isinstance(result, StageOk)
	assert result.value == 25_000_000


def test_uppercase_hex_is_accepted():
	signed = build_payment_hex(25_000_000).upper()
	assert isinstance(verify_payment_proof(signed, 25_000_000, 30, CONFIG), StageOk)


def test_overpayment_is_accepted_when_hex_matches():
	assert isinstance(verify_payment_proof(build_payment_hex(40_000_000), 40_000_000, 30, CONFIG), StageOk)


@pytest.mark.parametrize(
	"signed, amount, reason",
	[
		(None, 25_000_000, "payment_required"),
		("", 25_000_000, "payment_required"),
		("abcd", None, "payment_required"),
		("abcd", True, "payment_required"),
		("abcd", 24_999_999, "amount_too_low"),
		("01", 25_000_000, "hex_too_short"),
		("zz" + "00" * 80, 25_000_000, "length_unparseable"),
		("01" + "11" * 33, 25_000_000, "hex_too_short"),
	],
)
def test_malformed_proofs(signed, amount, reason):
	assert _reason(verify_payment_proof(signed, amount, 30, CONFIG)) == reason


def test_wrong_recipient_is_rejected():
	signed = build_payment_hex(25_000_000, recipient_key="03" + "22" * 32)
	assert _reason(verify_payment_proof(signed, 25_000_000, 30, CONFIG)) == "recipient_mismatch"


def test_amount_not_in_transaction_is_rejected():
	signed = build_payment_hex(25_000_000)
	assert _reason(verify_payment_proof(signed, 30_000_000, 30, CONFIG)) == "amount_mismatch"


def test_multi_input_transactions_use_the_declared_input_count():
	signed = build_payment_hex(25_000_000, inputs=2)
	assert isinstance(verify_payment_proof(signed, 25_000_000, 30, CONFIG), StageOk)


@pytest.mark.asyncio
async def test_settlement_failure_is_a_rejection():
	chain = AsyncMock()
	chain.submit_transaction.side_effect = ChainError("insufficient balance")
	result = await settle_payment(chain, "abcd", CONFIG)
	assert _reason(result) == "payment_failed"


@pytest.mark.asyncio
async def test_fee_quote(chain):
	quote = await quote_fee_transaction(chain, "BC1YLsender", "30", CONFIG)
	assert quote == {"TransactionHex": "0a0b", "amountNanos": 5_000_000}
	chain.send_funds.assert_awaited_once_with("BC1YLsender", "BitBadges", 25_000_000, 1000)


@pytest.mark.asyncio
@pytest.mark.parametrize("sender, count", [("", "30"), ("BC1YLsender", "abc"), ("BC1YLsender", "0")])
async def test_fee_quote_rejects_bad_params(chain, sender, count):
	with pytest.raises(FeeQuoteError):
		await quote_fee_transaction(chain, sender, count, CONFIG)
	chain.send_funds.assert_not_awaited()


@pytest.mark.asyncio
async def test_fee_quote_node_failure(chain):
	chain.send_funds.side_effect = ChainError("balance too low")
	with pytest.raises(FeeQuoteError):
		await quote_fee_transaction(chain, "BC1YLsender", "30", CONFIG)
