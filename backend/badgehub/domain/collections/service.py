"""Named collections of a user's issued or received badges.

Collections live at ``users/{uid}/collections/{name}`` and carry a snapshot of
the issuers and recipients of the badges they reference.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Iterable, Mapping

from badgehub.domain.badges.models import DEFAULT_BACKGROUND_COLOR, MAX_TITLE_LENGTH, badge_path, user_path
from badgehub.domain.badges.validators import (
    dedupe,
    is_boolean,
    is_color,
    is_length_at_most,
    is_non_empty_string,
    is_string,
    is_url,
    is_valid_string_array,
)
from badgehub.domain.errors import Conflict, InvalidInput, NotFound
from badgehub.domain.users.service import ensure_user
from badgehub.infra.documents import ArrayRemove, ArrayUnion, DocumentStore


def collection_path(user_id: str, name: str) -> str:
    return f"{user_path(user_id)}/collections/{name}"


def _require_name(name: Any) -> str:
    if not is_non_empty_string(name):
        raise InvalidInput("Please enter a valid string for collection name")
    name = name.strip()
    if "/" in name:
        raise InvalidInput("Collection name may not contain '/'")
    return name


def _require_badges(badges: Any) -> list[str]:
    if not is_valid_string_array(badges):
        raise InvalidInput("Badge array is not a valid string array.")
    return dedupe([badge.strip() for badge in badges if badge.strip()])


def _require_owned(badges: Iterable[str], owned: list[str], label: str) -> None:
    for badge_id in badges:
        if badge_id not in owned:
            raise InvalidInput(f"{badge_id} does not exist in your {label} badges.", reason="badge_not_owned")


async def _snapshot_parties(store: DocumentStore, badges: list[str]) -> tuple[list[str], list[str]]:
    """Return the distinct issuers and recipients of the referenced badges."""
    documents = await asyncio.gather(*(store.get(badge_path(badge_id)) for badge_id in badges))
    issuers: list[str] = []
    recipients: list[str] = []
    for document in documents:
        if not document:
            continue
        issuers.append(document.get("issuer"))
        recipients.extend(document.get("recipients") or [])
    return dedupe([i for i in issuers if i]), dedupe(recipients)


async def create_collection(
    store: DocumentStore,
    user_id: str,
    raw: Mapping[str, Any],
    default_image_url: str,
) -> dict[str, Any]:
    name = _require_name(raw.get("name"))
    if not is_length_at_most(name, MAX_TITLE_LENGTH):
        raise InvalidInput(f"Collection name must be at most {MAX_TITLE_LENGTH} characters", reason="title_too_long")
    description = raw.get("description", "")
    if not is_string(description):
        raise InvalidInput("Please enter a valid string for description")
    image_url = raw.get("imageUrl") or default_image_url
    if not is_non_empty_string(image_url) or not is_url(image_url):
        raise InvalidInput("Please enter a valid URL for the image URL")
    background_color = raw.get("backgroundColor") or DEFAULT_BACKGROUND_COLOR
    if not is_non_empty_string(background_color) or not is_color(background_color):
        raise InvalidInput("Please enter a valid hex color for background color", reason="invalid_color")
    received = raw.get("receivedCollection")
    if not is_boolean(received):
        raise InvalidInput("Please enter a boolean for receivedCollection")
    badges = _require_badges(raw.get("badges", []))

    details = await ensure_user(store, user_id)
    if received:
        _require_owned(badges, details["badgesReceived"], "received")
    else:
        _require_owned(badges, details["badgesIssued"], "issued")
    if name in details["issuedCollections"] or name in details["receivedCollections"]:
        raise Conflict("Collection with same name already exists.")

    issuers, recipients = await _snapshot_parties(store, badges)
    collection = {
        "name": name,
        "receivedCollection": received,
        "description": description,
        "imageUrl": image_url,
        "backgroundColor": background_color,
        "badges": badges,
        "isVisible": True,
        "dateCreated": int(time.time() * 1000),
        "issuers": issuers,
        "recipients": recipients,
    }
    listing = "receivedCollections" if received else "issuedCollections"
    await store.set(collection_path(user_id, name), collection)
    await store.update(user_path(user_id), {listing: ArrayUnion(name)})
    return collection


async def delete_collection(store: DocumentStore, user_id: str, name: Any) -> None:
    name = _require_name(name)
    await ensure_user(store, user_id)
    await store.delete(collection_path(user_id, name))
    await store.update(
        user_path(user_id),
        {
            "receivedCollections": ArrayRemove(name),
            "issuedCollections": ArrayRemove(name),
        },
    )


async def get_collection(store: DocumentStore, user_id: str, name: str) -> dict[str, Any]:
    collection = await store.get(collection_path(user_id, _require_name(name)))
    if collection is None:
        raise NotFound(f"Error getting collection: {name}")
    return collection


async def list_collections(store: DocumentStore, user_id: str) -> list[dict[str, Any]]:
    snapshots = await store.query(f"{user_path(user_id)}/collections", order_by="dateCreated")
    return [snapshot.data for snapshot in snapshots]


async def add_to_collection(store: DocumentStore, user_id: str, name: Any, badges: Any) -> int:
    """Add owned badges to a collection; returns how many were requested."""
    badges = _require_badges(badges)
    if not badges:
        return 0
    name = _require_name(name)
    details = await ensure_user(store, user_id)
    if name in details["issuedCollections"]:
        _require_owned(badges, details["badgesIssued"], "issued")
    elif name in details["receivedCollections"]:
        _require_owned(badges, details["badgesReceived"], "received")
    else:
        raise NotFound(f"Collection {name} does not exist")

    issuers, recipients = await _snapshot_parties(store, badges)
    await store.update(
        collection_path(user_id, name),
        {
            "issuers": ArrayUnion(*issuers),
            "recipients": ArrayUnion(*recipients),
            "badges": ArrayUnion(*badges),
        },
    )
    return len(badges)


async def remove_from_collection(store: DocumentStore, user_id: str, name: Any, badges: Any) -> int:
    """Drop badges from a collection and recompute its issuer/recipient snapshot."""
    badges = _require_badges(badges)
    if not badges:
        return 0
    name = _require_name(name)
    path = collection_path(user_id, name)
    collection = await store.get(path)
    if collection is None:
        raise NotFound(f"Collection with {name} does not exist")
    remaining = [badge for badge in collection.get("badges") or [] if badge not in badges]
    issuers, recipients = await _snapshot_parties(store, remaining)
    await store.update(path, {"issuers": issuers, "recipients": recipients, "badges": remaining})
    return len(badges)
