"""Tagged stage results and the issuance failure taxonomy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Mapping, Optional, TypeVar, Union

T = TypeVar("T")


class PipelineState(str, Enum):
    VALIDATING = "validating"
    VERIFYING_PAYMENT = "verifying_payment"
    PUBLISHING_CONTENT = "publishing_content"
    FANNING_OUT = "fanning_out"
    STORING_RECORD = "storing_record"
    ATTESTING = "attesting"
    DONE = "DONE"
    REJECTED = "REJECTED"
    PUBLISH_FAILED = "PUBLISH_FAILED"
    PARTIAL_FANOUT_FAILURE = "PARTIAL_FANOUT_FAILURE"
    PARTIAL_STORE_FAILURE = "PARTIAL_STORE_FAILURE"
    ATTESTATION_FAILED = "ATTESTATION_FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {
        PipelineState.DONE,
        PipelineState.REJECTED,
        PipelineState.PUBLISH_FAILED,
        PipelineState.PARTIAL_FANOUT_FAILURE,
        PipelineState.PARTIAL_STORE_FAILURE,
        PipelineState.ATTESTATION_FAILED,
    }
)


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class FailureKind(str, Enum):
    REJECTED = "rejected"
    PUBLISH_FAILED = "publish_failed"
    PAID_PUBLISH_FAILED = "paid_publish_failed"
    PARTIAL_FANOUT = "partial_fanout"
    PARTIAL_STORE = "partial_store"
    ATTESTATION_FAILED = "attestation_failed"

    @property
    def terminal_state(self) -> PipelineState:
        return _KIND_STATES[self]

    @property
    def severity(self) -> Severity:
        return _KIND_SEVERITY[self]

    @property
    def needs_reconciliation(self) -> bool:
        return self not in (FailureKind.REJECTED, FailureKind.PUBLISH_FAILED)


_KIND_STATES = {
    FailureKind.REJECTED: PipelineState.REJECTED,
    FailureKind.PUBLISH_FAILED: PipelineState.PUBLISH_FAILED,
    FailureKind.PAID_PUBLISH_FAILED: PipelineState.PUBLISH_FAILED,
    FailureKind.PARTIAL_FANOUT: PipelineState.PARTIAL_FANOUT_FAILURE,
    FailureKind.PARTIAL_STORE: PipelineState.PARTIAL_STORE_FAILURE,
    FailureKind.ATTESTATION_FAILED: PipelineState.ATTESTATION_FAILED,
}

_KIND_SEVERITY = {
    FailureKind.REJECTED: Severity.INFO,
    FailureKind.PUBLISH_FAILED: Severity.ERROR,
    FailureKind.PAID_PUBLISH_FAILED: Severity.CRITICAL,
    FailureKind.PARTIAL_FANOUT: Severity.CRITICAL,
    FailureKind.PARTIAL_STORE: Severity.CRITICAL,
    FailureKind.ATTESTATION_FAILED: Severity.WARNING,
}


@dataclass(frozen=True)
class StageOk(Generic[T]):
    value: T


@dataclass(frozen=True)
class StageFailure:
    kind: FailureKind
    reason: str
    message: str
    badge_id: Optional[str] = None
    context: Mapping[str, Any] = field(default_factory=dict)

    @property
    def terminal_state(self) -> PipelineState:
        return self.kind.terminal_state

    @property
    def severity(self) -> Severity:
        return self.kind.severity

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "reason": self.reason}
        if self.badge_id:
            body["badge_id"] = self.badge_id
        return body


StageResult = Union[StageOk[T], StageFailure]


def rejected(reason: str, message: str) -> StageFailure:
    return StageFailure(kind=FailureKind.REJECTED, reason=reason, message=message)
