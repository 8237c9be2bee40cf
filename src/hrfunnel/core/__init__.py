"""Screening funnel core: job access, sessions, records and dashboards."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .dashboard import DashboardAggregator
from .jobs import JobDirectory, JobPublisher, apply_link, build_slug, load_job_draft
from .reconcile import DEFAULT_GRACE, find_orphaned_resumes, sweep_orphaned_resumes
from .records import PDF_CONTENT_TYPE, CandidateRecordWriter, ShortlistResult
from .scoring import all_correct
from .session import (
    ApplicationForm,
    Info,
    KnockedOut,
    KnockoutPending,
    Loading,
    NotFound,
    Quiz,
    ResumeFile,
    ScreeningSession,
    SessionFactory,
    Stage,
    Submitted,
    Upload,
)

__all__ = [
    "DashboardAggregator",
    "JobDirectory",
    "JobPublisher",
    "apply_link",
    "build_slug",
    "load_job_draft",
    "DEFAULT_GRACE",
    "find_orphaned_resumes",
    "sweep_orphaned_resumes",
    "PDF_CONTENT_TYPE",
    "CandidateRecordWriter",
    "ShortlistResult",
    "all_correct",
    "ApplicationForm",
    "ResumeFile",
    "ScreeningSession",
    "SessionFactory",
    "Stage",
    "Loading",
    "NotFound",
    "Info",
    "Quiz",
    "KnockoutPending",
    "KnockedOut",
    "Upload",
    "Submitted",
]
