"""Badge record persistence and lookups."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from badgehub.domain.badges.models import PublishedBadge, badge_path
from badgehub.domain.badges.results import FailureKind, StageFailure, StageOk, StageResult
from badgehub.domain.badges.validators import is_path_segment, is_valid_string_array
from badgehub.infra.documents import DocumentStore

PARTIAL_STORE_MESSAGE = (
    "IMPORTANT: Failed to save the badge record. Issuer and recipient records have been updated but "
    "the badge has not been finalized yet. Please contact support to reverse this."
)


async def store_badge_record(store: DocumentStore, badge: PublishedBadge) -> StageResult[dict[str, Any]]:
    document = badge.to_document()
    try:
        await store.set(badge_path(badge.id), document)
    except Exception as exc:
        return StageFailure(
            kind=FailureKind.PARTIAL_STORE,
            reason="record_store_failed",
            message=PARTIAL_STORE_MESSAGE,
            badge_id=badge.id,
            context={
                "issuer": badge.draft.issuer,
                "recipients": list(badge.draft.recipients),
                "error": str(exc),
            },
        )
    return StageOk(document)


async def get_badge(store: DocumentStore, badge_id: str) -> Optional[dict[str, Any]]:
    if not is_path_segment(badge_id):
        return None
    return await store.get(badge_path(badge_id.strip()))


async def get_badges(store: DocumentStore, badge_ids: Any) -> list[dict[str, Any]]:
    """Fetch several badges; unknown ids are skipped, bad input yields nothing."""
    if not is_valid_string_array(badge_ids):
        return []
    unique = [badge_id for badge_id in dict.fromkeys(badge_ids) if is_path_segment(badge_id)]
    documents = await asyncio.gather(*(store.get(badge_path(badge_id)) for badge_id in unique))
    return [document for document in documents if document is not None]
