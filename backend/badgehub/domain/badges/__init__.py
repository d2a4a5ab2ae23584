"""Badge issuance domain exports."""

from .models import BadgeDraft, IssuanceConfig, PublishedBadge  # noqa: F401
from .pipeline import IssuanceOutcome, IssuancePipeline  # noqa: F401
from .results import FailureKind, PipelineState, StageFailure, StageOk  # noqa: F401
