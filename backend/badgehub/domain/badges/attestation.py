"""Posts a proof-of-issuance to the social chain.

The post body is the badge's content identifier. The node builds an
unsigned transaction, the remote signer signs it with the attestation
account's key, and the node broadcasts the signed transaction.
"""

from __future__ import annotations

from badgehub.domain.badges.models import IssuanceConfig, PublishedBadge
from badgehub.domain.badges.results import FailureKind, StageFailure, StageOk, StageResult
from badgehub.infra.chain import ChainClient, TransactionSigner


def _attestation_failure(badge: PublishedBadge, step: str, error: str) -> StageFailure:
    return StageFailure(
        kind=FailureKind.ATTESTATION_FAILED,
        reason="attestation_failed",
        message=(
            "IMPORTANT: Could not post the badge hash to the attestation account. The badge content and "
            f"all database records are final and correct; only the public proof post is missing for badge {badge.id}."
        ),
        badge_id=badge.id,
        context={
            "issuer": badge.draft.issuer,
            "recipients": list(badge.draft.recipients),
            "step": step,
            "error": error,
        },
    )


async def attest_issuance(
    chain: ChainClient,
    signer: TransactionSigner,
    badge: PublishedBadge,
    config: IssuanceConfig,
) -> StageResult[str]:
    """Return the signed transaction hex that was broadcast."""
    step = "submit_post"
    try:
        post = await chain.submit_post(
            config.attestation_public_key,
            badge.id,
            config.min_fee_rate_nanos_per_kb,
        )
        transaction_hex = post.get("TransactionHex")
        if not transaction_hex:
            return _attestation_failure(badge, step, "node returned no TransactionHex")
        step = "sign"
        signed_hex = await signer.sign(transaction_hex)
        step = "broadcast"
        await chain.submit_transaction(signed_hex)
    except Exception as exc:
        return _attestation_failure(badge, step, str(exc))
    return StageOk(signed_hex)
