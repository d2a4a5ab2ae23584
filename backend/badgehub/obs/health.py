"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Optional, Tuple

from badgehub.domain.badges.container import BadgeServices
from badgehub.infra.redis import redis_client

LOGGER = logging.getLogger(__name__)


async def _redis_status(timeout: float = 0.2) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(redis_client.ping(), timeout=timeout)
	except Exception as exc:  # pragma: no cover - depends on runtime
		LOGGER.warning("Redis readiness check failed", exc_info=True)
		return {"ok": False, "error": str(exc)}
	return {"ok": True, "latency_ms": round((perf_counter() - start) * 1000, 2)}


async def _documents_status(services: Optional[BadgeServices], timeout: float = 0.3) -> Dict[str, Any]:
	if services is None:
		return {"ok": False, "error": "services_unavailable"}
	start = perf_counter()
	try:
		await asyncio.wait_for(services.documents.get("health/probe"), timeout=timeout)
	except Exception as exc:  # pragma: no cover - depends on runtime
		LOGGER.warning("Document store readiness check failed", exc_info=True)
		return {"ok": False, "error": str(exc)}
	return {"ok": True, "latency_ms": round((perf_counter() - start) * 1000, 2)}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness(services: Optional[BadgeServices]) -> Tuple[int, Dict[str, Any]]:
	redis_state = await _redis_status()
	documents_state = await _documents_status(services)
	ok = redis_state.get("ok") and documents_state.get("ok")
	return (
		200 if ok else 503,
		{
			"status": "ok" if ok else "degraded",
			"checks": {"redis": redis_state, "documents": documents_state},
		},
	)
