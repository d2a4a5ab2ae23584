"""Dead-letter log for issuance failures that need manual reconciliation."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from badgehub.domain.badges.results import Severity, StageFailure
from badgehub.infra.redis import RedisProxy
from badgehub.obs import metrics

logger = logging.getLogger(__name__)

RECONCILE_STREAM = "x:badges.reconcile"
_STREAM_MAXLEN = 100_000

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.CRITICAL: logging.CRITICAL,
}


class ReconciliationLog:
    """Logs each entry with full context and appends it to a Redis stream."""

    def __init__(self, redis: Optional[Redis | RedisProxy], *, stream: str = RECONCILE_STREAM) -> None:
        self._redis = redis
        self._stream = stream

    async def record(self, failure: StageFailure, *, stage: Optional[str] = None) -> None:
        context = dict(failure.context)
        entry: dict[str, Any] = {
            "kind": failure.kind.value,
            "state": failure.terminal_state.value,
            "reason": failure.reason,
            "severity": failure.severity.value,
            "stage": stage or "",
            "badge_id": failure.badge_id or "",
            "issuer": str(context.pop("issuer", "")),
            "recipients": json.dumps(list(context.pop("recipients", []))),
            "context": json.dumps(context, default=str),
            "recorded_at": datetime.now(timezone.utc).isoformat(),
        }
        metrics.inc_reconciliation(failure.kind.value)
        logger.log(
            _LOG_LEVELS[failure.severity],
            "issuance_needs_reconciliation",
            extra={**entry, "recipients": json.loads(entry["recipients"])},
        )
        if self._redis is None:
            return
        try:
            await self._redis.xadd(self._stream, entry, maxlen=_STREAM_MAXLEN, approximate=True)
        except (RedisError, OSError):
            logger.error("reconcile_stream_write_failed", extra={"badge_id": entry["badge_id"]}, exc_info=True)

    async def entries(self, count: int = 100) -> list[dict[str, Any]]:
        if self._redis is None:
            return []
        rows = await self._redis.xrange(self._stream, count=count)
        return [dict(fields) for _, fields in rows]
