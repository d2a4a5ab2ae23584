"""Publishes finalized badge content to the content-addressed store."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from badgehub.domain.badges.models import BadgeDraft, PublishedBadge
from badgehub.domain.badges.results import FailureKind, StageFailure, StageOk, StageResult
from badgehub.infra.content_store import ContentStore

logger = logging.getLogger(__name__)

PAID_PUBLISH_MESSAGE = (
    "IMPORTANT: Your payment has gone through but we were unable to publish the badge content. "
    "Contact support for a refund."
)


def canonical_json(fields: Mapping[str, Any]) -> bytes:
    return json.dumps(fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


async def publish_badge(store: ContentStore, draft: BadgeDraft, *, paid: bool) -> StageResult[PublishedBadge]:
    payload = canonical_json(draft.to_document())
    try:
        badge_id = await store.add(payload)
    except Exception as exc:
        if paid:
            return StageFailure(
                kind=FailureKind.PAID_PUBLISH_FAILED,
                reason="paid_publish_failed",
                message=PAID_PUBLISH_MESSAGE,
                context={"issuer": draft.issuer, "recipients": list(draft.recipients), "error": str(exc)},
            )
        logger.warning("content_publish_failed", extra={"issuer": draft.issuer, "error": str(exc)})
        return StageFailure(
            kind=FailureKind.PUBLISH_FAILED,
            reason="publish_failed",
            message="Error publishing badge content; nothing was saved, please retry",
        )
    return StageOk(PublishedBadge(id=badge_id, draft=draft, paid=paid))
