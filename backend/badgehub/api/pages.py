"""REST API surface for badge pages."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from badgehub.domain.badges.container import BadgeServices
from badgehub.domain.badges.schemas import GeneralMessage
from badgehub.domain.pages import service
from badgehub.infra.auth import AuthenticatedUser, get_current_user, get_services

router = APIRouter()


@router.get("/badgePages/{page_id}")
async def get_badge_page(page_id: str, services: BadgeServices = Depends(get_services)) -> Dict[str, Any]:
	return await service.get_page(services.documents, page_id)


@router.get("/userBadgePages/{user_id}")
async def list_badge_pages(user_id: str, services: BadgeServices = Depends(get_services)) -> Dict[str, Any]:
	return {"badgePages": await service.list_pages(services.documents, user_id)}


@router.post("/badgePages")
async def create_badge_page(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> Dict[str, Any]:
	return await service.create_page(services.documents, auth_user.id, payload, services.config.default_image_url)


@router.post("/badgePages/{page_id}", response_model=GeneralMessage)
async def delete_badge_page(
	page_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
) -> GeneralMessage:
	await service.delete_page(services.documents, auth_user.id, page_id)
	return GeneralMessage(general="Successfully deleted badge page")
