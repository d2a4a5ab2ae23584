"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


REQUEST_COUNTER = Counter(
	"badgehub_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"badgehub_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)

ISSUANCE_OUTCOMES = Counter(
	"badgehub_issuance_total",
	"Badge issuance pipeline runs by terminal state",
	["state"],
)

ISSUANCE_DURATION = Histogram(
	"badgehub_issuance_duration_seconds",
	"Wall time of a badge issuance pipeline run",
	buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

PAYMENT_PROOF_REJECTS = Counter(
	"badgehub_payment_proof_rejects_total",
	"Payment proofs rejected by local verification",
	["reason"],
)

RECONCILIATION_EVENTS = Counter(
	"badgehub_reconciliation_events_total",
	"Issuance failures that need manual reconciliation",
	["kind"],
)

BADGE_RESPONSES = Counter(
	"badgehub_badge_responses_total",
	"Recipient responses to pending badges",
	["action"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def observe_issuance(state: str, elapsed_seconds: float) -> None:
	ISSUANCE_OUTCOMES.labels(state=state).inc()
	ISSUANCE_DURATION.observe(elapsed_seconds)


def inc_payment_proof_reject(reason: str) -> None:
	PAYMENT_PROOF_REJECTS.labels(reason=reason).inc()


def inc_reconciliation(kind: str) -> None:
	RECONCILIATION_EVENTS.labels(kind=kind).inc()


def inc_badge_response(action: str) -> None:
	BADGE_RESPONSES.labels(action=action).inc()
