"""User records and recipient responses to issued badges."""

from __future__ import annotations

import logging
import time
from typing import Any

from badgehub.domain.badges.models import USER_SET_FIELDS, badge_path, blank_user, user_path
from badgehub.domain.badges.validators import is_non_empty_string, is_path_segment
from badgehub.domain.errors import InvalidInput, NotPending, UpstreamError
from badgehub.infra.chain import ChainClient, ChainError
from badgehub.infra.documents import DELETE_FIELD, ArrayRemove, ArrayUnion, DocumentNotFound, DocumentStore
from badgehub.obs import metrics

logger = logging.getLogger(__name__)


def _normalise(data: dict[str, Any]) -> dict[str, list[str]]:
    details = blank_user()
    for name in USER_SET_FIELDS:
        value = data.get(name)
        if isinstance(value, list):
            details[name] = list(value)
    return details


async def ensure_user(store: DocumentStore, user_id: str) -> dict[str, list[str]]:
    """Return the user's sets, creating the blank record on first reference."""
    path = user_path(user_id)
    data = await store.get(path)
    if data is None:
        details = blank_user()
        await store.set(path, details)
        return details
    return _normalise(data)


async def get_user_info(store: DocumentStore, user_id: str) -> dict[str, list[str]]:
    if not is_path_segment(user_id):
        raise InvalidInput("Please enter a valid user id")
    return await ensure_user(store, user_id.strip())


def _require_badge_id(badge_id: Any) -> str:
    if not is_path_segment(badge_id):
        raise InvalidInput("Please enter a valid string for the badgeId")
    return badge_id.strip()


async def accept_badge(store: DocumentStore, user_id: str, badge_id: Any) -> None:
    """Move a pending badge to accepted in one atomic update."""
    badge_id = _require_badge_id(badge_id)
    details = await ensure_user(store, user_id)
    if badge_id not in details["badgesPending"]:
        raise NotPending(f"{badge_id} not in pending array")
    await store.update(
        user_path(user_id),
        {
            "badgesPending": ArrayRemove(badge_id),
            "badgesAccepted": ArrayUnion(badge_id),
        },
    )
    try:
        await store.update(badge_path(badge_id), {"dateAccepted": int(time.time() * 1000)})
    except DocumentNotFound:
        logger.warning("accepted_badge_record_missing", extra={"badge_id": badge_id})
    metrics.inc_badge_response("accept")
    logger.info("badge_accepted", extra={"badge_id": badge_id})


async def decline_badge(store: DocumentStore, user_id: str, badge_id: Any) -> None:
    badge_id = _require_badge_id(badge_id)
    details = await ensure_user(store, user_id)
    if badge_id not in details["badgesPending"]:
        raise NotPending(f"{badge_id} not in pending array")
    await store.update(user_path(user_id), {"badgesPending": ArrayRemove(badge_id)})
    metrics.inc_badge_response("decline")


async def hide_accepted_badge(store: DocumentStore, user_id: str, badge_id: Any) -> None:
    badge_id = _require_badge_id(badge_id)
    details = await ensure_user(store, user_id)
    if badge_id not in details["badgesAccepted"]:
        raise NotPending(f"{badge_id} not in accepted array", reason="not_accepted")
    await store.update(user_path(user_id), {"badgesAccepted": ArrayRemove(badge_id)})
    try:
        await store.update(badge_path(badge_id), {"dateAccepted": DELETE_FIELD})
    except DocumentNotFound:
        logger.warning("hidden_badge_record_missing", extra={"badge_id": badge_id})


async def hide_issued_badge(store: DocumentStore, user_id: str, badge_id: Any) -> None:
    """Move a badge from badgesIssued to badgesRemovedFromIssued."""
    badge_id = _require_badge_id(badge_id)
    details = await ensure_user(store, user_id)
    if badge_id not in details["badgesIssued"]:
        raise NotPending(f"{badge_id} not in issued array", reason="not_issued")
    await store.update(
        user_path(user_id),
        {
            "badgesIssued": ArrayRemove(badge_id),
            "badgesRemovedFromIssued": ArrayUnion(badge_id),
        },
    )


async def get_username(chain: ChainClient, public_key: str) -> dict[str, Any]:
    try:
        return await chain.get_single_profile(public_key=public_key)
    except ChainError as exc:
        raise UpstreamError(f"Could not get username for public key: {public_key}") from exc


async def get_public_key(chain: ChainClient, username: str) -> dict[str, Any]:
    try:
        return await chain.get_single_profile(username=username)
    except ChainError as exc:
        raise UpstreamError(f"Could not obtain public key for user: {username}") from exc


async def get_hodlers(chain: ChainClient, username: Any, num_to_fetch: Any) -> dict[str, Any]:
    if not is_non_empty_string(username):
        raise InvalidInput("Username must be a non-empty string")
    try:
        count = int(num_to_fetch)
    except (TypeError, ValueError):
        raise InvalidInput("NumToFetch must be a number") from None
    try:
        return await chain.get_hodlers(username, count)
    except ChainError as exc:
        raise UpstreamError("Could not fetch hodlers") from exc
