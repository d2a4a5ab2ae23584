"""Badge pages: issuer-authored listings of badges they offer."""

from __future__ import annotations

import time
from typing import Any, Mapping

from badgehub.domain.badges.models import DEFAULT_BACKGROUND_COLOR, MAX_TITLE_LENGTH, user_path
from badgehub.domain.badges.validators import (
    is_color,
    is_length_at_most,
    is_non_empty_string,
    is_string,
    is_url,
)
from badgehub.domain.errors import Forbidden, InvalidInput, NotFound
from badgehub.infra.documents import ArrayRemove, ArrayUnion, DocumentStore, Filter

PAGES_COLLECTION = "badgePages"
_STRING_FIELDS = ("description", "externalUrl", "imageUrl", "backgroundColor", "preReqs", "validity")


def _page_path(page_id: str) -> str:
    return f"{PAGES_COLLECTION}/{page_id}"


def build_page(raw: Mapping[str, Any], caller_id: str, default_image_url: str) -> dict[str, Any]:
    page: dict[str, Any] = {
        "title": raw.get("title"),
        "issuer": raw.get("issuer"),
        "preReqs": raw.get("preReqs", ""),
        "validity": raw.get("validity", ""),
        "description": raw.get("description", ""),
        "externalUrl": raw.get("externalUrl", ""),
        "imageUrl": raw.get("imageUrl") or default_image_url,
        "backgroundColor": raw.get("backgroundColor") or DEFAULT_BACKGROUND_COLOR,
        "category": "",
        "dateCreated": int(time.time() * 1000),
    }
    if not is_non_empty_string(page["title"]) or not is_non_empty_string(page["issuer"]):
        raise InvalidInput("Input is not formatted correctly. Title and issuer must be non-empty strings.")
    if not all(is_string(page[name]) for name in _STRING_FIELDS):
        raise InvalidInput("Input is not formatted correctly. All fields must be strings.")
    for name in ("title", "issuer", *_STRING_FIELDS):
        page[name] = page[name].strip()

    if not is_length_at_most(page["title"], MAX_TITLE_LENGTH):
        raise InvalidInput(f"Title must be at most {MAX_TITLE_LENGTH} characters", reason="title_too_long")
    if page["issuer"] != caller_id:
        raise Forbidden("You can not issue in someone else's name. Change issuer to your public key")
    if page["externalUrl"] and not is_url(page["externalUrl"]):
        raise InvalidInput("externalUrl is not a valid URL")
    if not is_url(page["imageUrl"] or default_image_url):
        raise InvalidInput("imageUrl is not a valid URL")
    if not is_color(page["backgroundColor"]):
        raise InvalidInput("backgroundColor must be a hex color such as #1a2b3c", reason="invalid_color")
    return page


async def create_page(store: DocumentStore, caller_id: str, raw: Mapping[str, Any], default_image_url: str) -> dict[str, Any]:
    page = build_page(raw, caller_id, default_image_url)
    page_id = await store.add(PAGES_COLLECTION, page)
    page["id"] = page_id
    await store.update(_page_path(page_id), {"id": page_id})
    await store.update(user_path(caller_id), {"badgesListed": ArrayUnion(page_id)})
    return page


async def get_page(store: DocumentStore, page_id: str) -> dict[str, Any]:
    page = await store.get(_page_path(page_id))
    if page is None:
        raise NotFound(f"Could not get badge page: {page_id}")
    return page


async def list_pages(store: DocumentStore, issuer: str) -> list[dict[str, Any]]:
    snapshots = await store.query(
        PAGES_COLLECTION,
        where=[Filter("issuer", "==", issuer)],
        order_by="dateCreated",
    )
    return [{**snapshot.data, "id": snapshot.id} for snapshot in snapshots]


async def delete_page(store: DocumentStore, caller_id: str, page_id: str) -> None:
    page = await store.get(_page_path(page_id))
    if page is None:
        raise NotFound(f"Could not find badge page: {page_id}")
    if page.get("issuer") != caller_id:
        raise Forbidden("You can only delete your own badge pages")
    await store.delete(_page_path(page_id))
    await store.update(user_path(caller_id), {"badgesListed": ArrayRemove(page_id)})
