"""REST API surface for user records, badge responses and profile lookups."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from badgehub.domain.badges.container import BadgeServices
from badgehub.domain.badges.schemas import GeneralMessage
from badgehub.domain.users import service
from badgehub.infra.auth import AuthenticatedUser, get_current_user, get_services

router = APIRouter()


@router.get("/users/{user_id}")
async def get_user_info(user_id: str, services: BadgeServices = Depends(get_services)) -> Dict[str, Any]:
	return await service.get_user_info(services.documents, user_id)


@router.post("/acceptBadge", response_model=GeneralMessage)
async def accept_badge(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> GeneralMessage:
	await service.accept_badge(services.documents, auth_user.id, payload.get("badgeId"))
	return GeneralMessage(general="Successfully accepted badge")


@router.post("/declineBadge", response_model=GeneralMessage)
async def decline_badge(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> GeneralMessage:
	await service.decline_badge(services.documents, auth_user.id, payload.get("badgeId"))
	return GeneralMessage(general="Successfully declined badge")


@router.post("/hideAcceptedBadge", response_model=GeneralMessage)
async def hide_accepted_badge(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> GeneralMessage:
	await service.hide_accepted_badge(services.documents, auth_user.id, payload.get("badgeId"))
	return GeneralMessage(general="Successfully removed badge")


@router.post("/hideIssuedBadge", response_model=GeneralMessage)
async def hide_issued_badge(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> GeneralMessage:
	await service.hide_issued_badge(services.documents, auth_user.id, payload.get("badgeId"))
	return GeneralMessage(general="Successfully removed badge")


@router.get("/username/{public_key}")
async def get_username(public_key: str, services: BadgeServices = Depends(get_services)) -> Dict[str, Any]:
	return await service.get_username(services.chain, public_key)


@router.get("/publicKey/{user_name}")
async def get_public_key(user_name: str, services: BadgeServices = Depends(get_services)) -> Dict[str, Any]:
	return await service.get_public_key(services.chain, user_name)


@router.post("/hodlers")
async def get_hodlers(
	payload: Dict[str, Any] = Body(default={}),
	services: BadgeServices = Depends(get_services),
) -> Dict[str, Any]:
	return await service.get_hodlers(services.chain, payload.get("Username"), payload.get("NumToFetch"))
