"""Authentication helpers for FastAPI endpoints.

Mutating endpoints carry the caller's identity in the JSON body: ``publickey``
is the base58check identity and ``jwt`` a token signed by the matching private
key. Development environments also accept an ``X-User-Id`` header.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from badgehub.domain.badges.container import BadgeServices
from badgehub.domain.users.service import ensure_user
from badgehub.infra import jwt as jwt_helper
from badgehub.obs import logging as obs_logging
from badgehub.settings import settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	details: dict[str, list[str]] = field(default_factory=dict)


def get_services(request: Request) -> BadgeServices:
	services: Optional[BadgeServices] = getattr(request.app.state, "services", None)
	if services is None:
		raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="services_unavailable")
	return services


async def _json_body(request: Request) -> dict[str, Any]:
	try:
		body = await request.json()
	except ValueError:
		return {}
	return body if isinstance(body, dict) else {}


async def get_current_user(
	request: Request,
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	services: BadgeServices = Depends(get_services),
) -> AuthenticatedUser:
	"""Resolve the caller and make sure their user record exists."""
	user_id: Optional[str] = None
	if settings.is_dev() and x_user_id:
		user_id = x_user_id.strip()
	else:
		body = await _json_body(request)
		token = body.get("jwt")
		public_key = body.get("publickey")
		if not isinstance(token, str) or not isinstance(public_key, str) or not token or not public_key:
			raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing_credentials")
		if not jwt_helper.verify_identity_token(public_key, token):
			logger.info("identity_token_rejected", extra={"user_id": public_key})
			raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
		user_id = public_key
	if not user_id:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing_credentials")

	obs_logging.bind_context(user_id=user_id)
	details = await ensure_user(services.documents, user_id)
	return AuthenticatedUser(id=user_id, details=details)
