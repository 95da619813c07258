"""
Search pipeline.

- orchestrator: phase state machine for one search job
- dispatch: queued (arq) or inline (asyncio) execution
- progress: read-only snapshots for polling
- validation: submission preconditions
- regions / enrichment: classification and patch merging helpers
"""

from backend.pipeline.dispatch import (
    Dispatcher,
    InlineDispatch,
    QueuedDispatch,
    RetryPolicy,
    create_dispatcher,
)
from backend.pipeline.orchestrator import Orchestrator, build_orchestrator
from backend.pipeline.progress import ProgressReporter, build_snapshot, format_duration
from backend.pipeline.regions import classify_region
from backend.pipeline.validation import SubmissionError, validate_submission

__all__ = [
    "Dispatcher",
    "InlineDispatch",
    "QueuedDispatch",
    "RetryPolicy",
    "create_dispatcher",
    "Orchestrator",
    "build_orchestrator",
    "ProgressReporter",
    "build_snapshot",
    "format_duration",
    "classify_region",
    "SubmissionError",
    "validate_submission",
]
