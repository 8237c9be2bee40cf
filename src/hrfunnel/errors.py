"""Error taxonomy for the screening funnel.

Every error is scoped to the current interaction; none is fatal to the process.
"""

from __future__ import annotations


class FunnelError(Exception):
    """Base class for all funnel errors."""


class JobNotFoundError(FunnelError):
    """Raised when a slug does not resolve to a published job."""

    def __init__(self, slug: str):
        super().__init__(f"Job not found: {slug!r}")
        self.slug = slug


class ScreeningValidationError(FunnelError, ValueError):
    """Raised for candidate input that can be corrected in place."""

    def __init__(self, title: str, detail: str):
        super().__init__(f"{title}: {detail}")
        self.title = title
        self.detail = detail


class JobDraftError(FunnelError, ValueError):
    """Raised when a job draft fails authoring validation."""

    def __init__(self, title: str, detail: str):
        super().__init__(f"{title}: {detail}")
        self.title = title
        self.detail = detail


class PersistenceError(FunnelError):
    """Raised when the store or object storage fails; the action may be retried."""


class InvalidTransitionError(FunnelError):
    """Raised when an event is not accepted by the current session stage."""

    def __init__(self, event: str, stage: str):
        super().__init__(f"Event {event!r} is not allowed in stage {stage!r}")
        self.event = event
        self.stage = stage


class SubmissionInProgressError(FunnelError):
    """Raised when a submission arrives while another is still outstanding."""


class NotAuthenticatedError(FunnelError):
    """Raised when a recruiter operation runs without an authenticated identity."""


__all__ = [
    "FunnelError",
    "JobNotFoundError",
    "ScreeningValidationError",
    "JobDraftError",
    "PersistenceError",
    "InvalidTransitionError",
    "SubmissionInProgressError",
    "NotAuthenticatedError",
]
