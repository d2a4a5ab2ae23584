"""REST API surface for badge issuance and lookups."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from badgehub.api.request_id import get_request_id
from badgehub.domain.badges import paywall, records
from badgehub.domain.badges.container import BadgeServices
from badgehub.domain.badges.pipeline import IssuancePipeline
from badgehub.domain.badges.results import FailureKind, StageFailure
from badgehub.domain.badges.schemas import BadgeDocument, BadgeList, FeeQuote, IssuanceError
from badgehub.infra.auth import AuthenticatedUser, get_current_user, get_services

router = APIRouter()

_FAILURE_STATUS = {
	FailureKind.REJECTED: status.HTTP_400_BAD_REQUEST,
	FailureKind.PUBLISH_FAILED: status.HTTP_502_BAD_GATEWAY,
	FailureKind.PAID_PUBLISH_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
	FailureKind.PARTIAL_FANOUT: status.HTTP_500_INTERNAL_SERVER_ERROR,
	FailureKind.PARTIAL_STORE: status.HTTP_500_INTERNAL_SERVER_ERROR,
	FailureKind.ATTESTATION_FAILED: status.HTTP_502_BAD_GATEWAY,
}


def failure_response(failure: StageFailure) -> JSONResponse:
	body = {**failure.to_response(), "request_id": get_request_id()}
	return JSONResponse(status_code=_FAILURE_STATUS[failure.kind], content=body)


@router.post(
	"/badge",
	response_model=BadgeDocument,
	responses={400: {"model": IssuanceError}, 500: {"model": IssuanceError}, 502: {"model": IssuanceError}},
)
async def create_badge(
	payload: Dict[str, Any] = Body(default={}),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	services: BadgeServices = Depends(get_services),
):
	outcome = await IssuancePipeline(services).create_badge(payload, auth_user.id)
	if outcome.failure is not None:
		return failure_response(outcome.failure)
	return outcome.badge


@router.get("/badge/{badge_id}", response_model=BadgeDocument)
async def get_badge(badge_id: str, services: BadgeServices = Depends(get_services)):
	badge = await records.get_badge(services.documents, badge_id)
	if badge is None:
		raise HTTPException(status.HTTP_404_NOT_FOUND, detail={"error": f"Could not get badge: {badge_id}", "reason": "not_found"})
	return badge


@router.post("/badges", response_model=BadgeList)
async def get_badges(
	payload: Dict[str, Any] = Body(default={}),
	services: BadgeServices = Depends(get_services),
) -> BadgeList:
	badges = await records.get_badges(services.documents, payload.get("badgeIds"))
	return BadgeList(badges=badges)


@router.get("/feeTxn/{sender_key}/{num_recipients}", response_model=FeeQuote)
async def get_fee_transaction(
	sender_key: str,
	num_recipients: str,
	services: BadgeServices = Depends(get_services),
) -> FeeQuote:
	try:
		quote = await paywall.quote_fee_transaction(services.chain, sender_key, num_recipients, services.config)
	except paywall.FeeQuoteError as exc:
		raise HTTPException(status.HTTP_400_BAD_REQUEST, detail={"error": str(exc), "reason": "fee_quote_failed"}) from None
	return FeeQuote(**quote)
