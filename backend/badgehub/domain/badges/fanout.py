"""Recipient fan-out: record a new badge on every affected user document."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Optional

from badgehub.domain.badges.models import PublishedBadge, blank_user, user_path
from badgehub.domain.badges.results import FailureKind, StageFailure, StageOk, StageResult
from badgehub.infra.documents import ArrayUnion, DocumentStore

logger = logging.getLogger(__name__)

PARTIAL_FANOUT_MESSAGE = (
    "IMPORTANT: Error while updating recipient/issuer data in the database. Some user records may "
    "have been changed but the badge has not been finalized yet. Please contact support to reverse this."
)


async def _record_receipt(
    store: DocumentStore,
    recipient: str,
    badge_id: str,
    existing: Optional[dict[str, Any]],
    issued: bool = False,
) -> None:
    # An issuer who is also a recipient gets a single write covering both sides.
    path = user_path(recipient)
    if existing is None:
        fields: dict[str, Any] = {"badgesReceived": [badge_id], "badgesPending": [badge_id]}
        if issued:
            fields["badgesIssued"] = [badge_id]
        await store.set(path, blank_user(**fields))
        return
    changes: dict[str, Any] = {
        "badgesReceived": ArrayUnion(badge_id),
        "badgesPending": ArrayUnion(badge_id),
    }
    if issued:
        changes["badgesIssued"] = ArrayUnion(badge_id)
    await store.update(path, changes)


async def _record_issuance(store: DocumentStore, issuer: str, badge_id: str, existing: Optional[dict[str, Any]]) -> None:
    path = user_path(issuer)
    if existing is None:
        await store.set(path, blank_user(badgesIssued=[badge_id]))
        return
    await store.update(path, {"badgesIssued": ArrayUnion(badge_id)})


def _failure(badge: PublishedBadge, failed: list[str], reason: str) -> StageFailure:
    return StageFailure(
        kind=FailureKind.PARTIAL_FANOUT,
        reason=reason,
        message=PARTIAL_FANOUT_MESSAGE,
        badge_id=badge.id,
        context={
            "issuer": badge.draft.issuer,
            "recipients": list(badge.draft.recipients),
            "failed": failed,
        },
    )


async def fan_out(store: DocumentStore, badge: PublishedBadge) -> StageResult[None]:
    """Read all affected user records concurrently, then write all updates concurrently.

    The issuer is read alongside the recipients so no read happens once writes
    have started. Writes are joined with ``return_exceptions`` so every write has
    settled before a failure is reported; the failure names the documents that
    did not get updated.
    """
    issuer = badge.draft.issuer
    users = list(dict.fromkeys([*badge.draft.recipients, issuer]))
    reads = await asyncio.gather(
        *(store.get(user_path(user)) for user in users),
        return_exceptions=True,
    )
    failed_reads = []
    for user, result in zip(users, reads):
        if isinstance(result, BaseException):
            logger.error("fanout_read_failed", extra={"badge_id": badge.id, "user": user}, exc_info=result)
            failed_reads.append(user_path(user))
    if failed_reads:
        return _failure(badge, failed_reads, "fanout_read_failed")

    existing = dict(zip(users, reads))
    recipients = set(badge.draft.recipients)
    targets: list[str] = []
    writes: list[Awaitable[None]] = []
    for user in users:
        targets.append(user_path(user))
        if user in recipients:
            writes.append(_record_receipt(store, user, badge.id, existing[user], issued=user == issuer))
        else:
            writes.append(_record_issuance(store, user, badge.id, existing[user]))

    results = await asyncio.gather(*writes, return_exceptions=True)
    failed = []
    for target, result in zip(targets, results):
        if isinstance(result, BaseException):
            logger.error("fanout_write_failed", extra={"badge_id": badge.id, "document": target}, exc_info=result)
            failed.append(target)
    if failed:
        return _failure(badge, failed, "fanout_write_failed")
    return StageOk(None)
