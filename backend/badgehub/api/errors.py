"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from badgehub.api.request_id import get_request_id
from badgehub.domain.errors import BadgeHubError, Conflict, Forbidden, NotFound, UpstreamError

_STATUS_BY_ERROR = (
	(NotFound, status.HTTP_404_NOT_FOUND),
	(Forbidden, status.HTTP_403_FORBIDDEN),
	(Conflict, status.HTTP_409_CONFLICT),
	(UpstreamError, status.HTTP_502_BAD_GATEWAY),
)


def map_domain_error(exc: BadgeHubError) -> HTTPException:
	"""Translate a domain error into an HTTPException with ``{error, reason}`` detail."""
	code = status.HTTP_400_BAD_REQUEST
	for error_type, mapped in _STATUS_BY_ERROR:
		if isinstance(exc, error_type):
			code = mapped
			break
	return HTTPException(status_code=code, detail={"error": exc.message, "reason": exc.reason})


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		rid = get_request_id()
		if isinstance(exc.detail, dict):
			payload = {**exc.detail, "request_id": rid}
		else:
			payload = {"detail": exc.detail, "request_id": rid}
		return JSONResponse(status_code=exc.status_code, content=payload)

	@app.exception_handler(BadgeHubError)
	async def domain_exc_handler(request: Request, exc: BadgeHubError):  # type: ignore[override]
		mapped = map_domain_error(exc)
		return JSONResponse(status_code=mapped.status_code, content={**mapped.detail, "request_id": get_request_id()})

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		rid = get_request_id()
		payload = {"detail": "validation_error", "errors": exc.errors(), "request_id": rid}
		return JSONResponse(status_code=422, content=payload)
