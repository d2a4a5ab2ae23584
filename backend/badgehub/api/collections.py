"""REST API surface for badge collections."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from badgehub.domain.badges.container import BadgeServices
from badgehub.domain.badges.schemas import GeneralMessage
from badgehub.domain.collections import service
from badgehub.infra.auth import AuthenticatedUser, get_current_user, get_services

router = APIRouter()


@router.post("/createCollection")
async def create_collection(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> Dict[str, Any]:
	return await service.create_collection(services.documents, auth_user.id, payload, services.config.default_image_url)


@router.post("/deleteCollection", response_model=GeneralMessage)
async def delete_collection(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> GeneralMessage:
	await service.delete_collection(services.documents, auth_user.id, payload.get("name"))
	return GeneralMessage(general="Successfully deleted collection.")


@router.get("/collections/{user_id}/{name}")
async def get_collection(user_id: str, name: str, services: BadgeServices = Depends(get_services)) -> Dict[str, Any]:
	return await service.get_collection(services.documents, user_id, name)


@router.get("/collections/{user_id}")
async def list_collections(user_id: str, services: BadgeServices = Depends(get_services)) -> Dict[str, Any]:
	return {"collections": await service.list_collections(services.documents, user_id)}


@router.post("/addToCollection", response_model=GeneralMessage)
async def add_to_collection(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> GeneralMessage:
	name = payload.get("name")
	added = await service.add_to_collection(services.documents, auth_user.id, name, payload.get("badges"))
	if not added:
		return GeneralMessage(general="No badges specified in badges array.")
	return GeneralMessage(general=f"Successfully updated collection: {name}")


@router.post("/removeFromCollection", response_model=GeneralMessage)
async def remove_from_collection(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> GeneralMessage:
	name = payload.get("name")
	removed = await service.remove_from_collection(services.documents, auth_user.id, name, payload.get("badges"))
	if not removed:
		return GeneralMessage(general="No badges specified in badges array.")
	return GeneralMessage(general=f"Successfully updated collection: {name}")
