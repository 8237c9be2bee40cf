"""Pydantic schema definitions shared by the funnel components."""

from __future__ import annotations

from .candidate import (
    KNOCKED_OUT,
    SHORTLISTED,
    CandidateRecord,
    CandidateStatus,
    NewCandidateRecord,
)
from .dashboard import DashboardOverview, DashboardStats, JobSummary
from .job import OPTIONS_PER_QUESTION, Job, JobDraft, Question, QuestionDraft

__all__ = [
    "CandidateRecord",
    "CandidateStatus",
    "NewCandidateRecord",
    "KNOCKED_OUT",
    "SHORTLISTED",
    "DashboardOverview",
    "DashboardStats",
    "JobSummary",
    "Job",
    "JobDraft",
    "Question",
    "QuestionDraft",
    "OPTIONS_PER_QUESTION",
]
