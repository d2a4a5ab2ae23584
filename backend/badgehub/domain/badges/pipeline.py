"""The badge issuance pipeline.

Stages run strictly in order and each returns a tagged result. The first
failure ends the run in the terminal state its kind maps to; state written
by earlier stages is never rolled back, so failures after publishing are
handed to the reconciliation log.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from badgehub.domain.badges import attestation, fanout, paywall, publisher, records, validators
from badgehub.domain.badges.container import BadgeServices
from badgehub.domain.badges.results import PipelineState, StageFailure
from badgehub.obs import metrics

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class IssuanceOutcome:
    state: PipelineState
    trail: list[PipelineState] = field(default_factory=list)
    badge: Optional[dict[str, Any]] = None
    failure: Optional[StageFailure] = None

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.DONE


class IssuancePipeline:
    def __init__(self, services: BadgeServices, *, clock: Callable[[], int] = now_ms) -> None:
        self._services = services
        self._clock = clock

    async def create_badge(self, payload: Mapping[str, Any], caller_id: Optional[str]) -> IssuanceOutcome:
        started = time.perf_counter()
        outcome = await self._run(payload, caller_id)
        metrics.observe_issuance(outcome.state.value, time.perf_counter() - started)
        return outcome

    async def _run(self, payload: Mapping[str, Any], caller_id: Optional[str]) -> IssuanceOutcome:
        services = self._services
        config = services.config
        outcome = IssuanceOutcome(state=PipelineState.VALIDATING, trail=[PipelineState.VALIDATING])

        result = validators.validate_badge_input(payload, caller_id, self._clock(), config)
        if isinstance(result, StageFailure):
            return await self._fail(outcome, result)
        draft = result.value

        paid = False
        if paywall.is_premium(len(draft.recipients), config):
            self._advance(outcome, PipelineState.VERIFYING_PAYMENT)
            signed_hex = payload.get("signedTransactionHex")
            proof = paywall.verify_payment_proof(
                signed_hex,
                payload.get("amountNanos"),
                len(draft.recipients),
                config,
            )
            if isinstance(proof, StageFailure):
                return await self._fail(outcome, proof)
            settled = await paywall.settle_payment(services.chain, signed_hex, config)
            if isinstance(settled, StageFailure):
                return await self._fail(outcome, settled)
            paid = True
            logger.info(
                "payment_settled",
                extra={"issuer": draft.issuer, "amount_nanos": proof.value, "recipient_count": len(draft.recipients)},
            )

        self._advance(outcome, PipelineState.PUBLISHING_CONTENT)
        published = await publisher.publish_badge(services.content, draft, paid=paid)
        if isinstance(published, StageFailure):
            return await self._fail(outcome, published)
        badge = published.value

        self._advance(outcome, PipelineState.FANNING_OUT)
        fanned = await fanout.fan_out(services.documents, badge)
        if isinstance(fanned, StageFailure):
            return await self._fail(outcome, fanned)

        self._advance(outcome, PipelineState.STORING_RECORD)
        stored = await records.store_badge_record(services.documents, badge)
        if isinstance(stored, StageFailure):
            return await self._fail(outcome, stored)
        outcome.badge = stored.value

        self._advance(outcome, PipelineState.ATTESTING)
        attested = await attestation.attest_issuance(services.chain, services.signer, badge, config)
        if isinstance(attested, StageFailure):
            return await self._fail(outcome, attested)

        self._advance(outcome, PipelineState.DONE)
        logger.info(
            "badge_issued",
            extra={"badge_id": badge.id, "issuer": draft.issuer, "recipient_count": len(draft.recipients), "paid": paid},
        )
        return outcome

    @staticmethod
    def _advance(outcome: IssuanceOutcome, state: PipelineState) -> None:
        outcome.state = state
        outcome.trail.append(state)

    async def _fail(self, outcome: IssuanceOutcome, failure: StageFailure) -> IssuanceOutcome:
        failed_stage = outcome.state
        self._advance(outcome, failure.terminal_state)
        outcome.failure = failure
        if failure.kind.needs_reconciliation:
            await self._services.reconciliation.record(failure, stage=failed_stage.value)
        else:
            logger.info(
                "badge_issuance_stopped",
                extra={"stage": failed_stage.value, "reason": failure.reason, "kind": failure.kind.value},
            )
        return outcome
