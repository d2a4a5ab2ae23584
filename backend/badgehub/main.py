"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from badgehub.api import badges, collections, ops, pages, users
from badgehub.api.errors import install_error_handlers
from badgehub.domain.badges.container import build_services
from badgehub.infra.redis import redis_client
from badgehub.obs import init as obs_init
from badgehub.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	# Tests install their own services before the app starts.
	owns_services = getattr(app.state, "services", None) is None
	if owns_services:
		app.state.services = await build_services(settings, redis_client)
	logger.info("badgehub_started", extra={"environment": settings.environment, "commit": settings.git_commit})
	try:
		yield
	finally:
		if owns_services:
			await app.state.services.close()
			app.state.services = None


app = FastAPI(title="BadgeHub", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(getattr(settings, "cors_allow_origins", []))
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else ["https://bitbadges.web.app"]

# Starlette disallows wildcard '*' with allow_credentials=True. Replace '*' with explicit origins.
if "*" in allow_origins:
	if settings.is_dev():
		allow_origins = [
			"http://localhost:3000",
			"http://127.0.0.1:3000",
		]
	else:
		allow_origins = ["https://bitbadges.web.app"]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
obs_init(app)

app.include_router(badges.router, tags=["badges"])
app.include_router(users.router, tags=["users"])
app.include_router(pages.router, tags=["badge-pages"])
app.include_router(collections.router, tags=["collections"])
app.include_router(ops.router, tags=["ops"])
