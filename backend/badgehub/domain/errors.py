"""Domain-level exceptions for users, pages and collections."""

from __future__ import annotations


class BadgeHubError(Exception):
    """Base class for request-level domain errors."""

    reason: str = "unknown"

    def __init__(self, message: str | None = None, *, reason: str | None = None) -> None:
        super().__init__(message or reason or self.reason)
        self.message = message or reason or self.reason
        if reason:
            self.reason = reason


class InvalidInput(BadgeHubError):
    reason = "invalid_input"


class NotPending(InvalidInput):
    reason = "not_pending"


class NotFound(BadgeHubError):
    reason = "not_found"


class Forbidden(BadgeHubError):
    reason = "forbidden"


class Conflict(BadgeHubError):
    reason = "conflict"


class UpstreamError(BadgeHubError):
    """An external collaborator (node, store) failed."""

    reason = "upstream_error"
