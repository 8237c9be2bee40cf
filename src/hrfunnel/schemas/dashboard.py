"""Recruiter dashboard schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DashboardStats(BaseModel):
    """Per-status candidate counts across every job a recruiter owns."""

    total_candidates: int = 0
    shortlisted: int = 0
    knocked_out: int = 0

    model_config = ConfigDict(extra="forbid", frozen=True)


class JobSummary(BaseModel):
    """Dashboard row for one owned job."""

    id: str
    role: str
    slug: str
    created_at: datetime | None = None
    apply_link: str

    model_config = ConfigDict(extra="forbid")


class DashboardOverview(BaseModel):
    """Everything the recruiter dashboard shows."""

    recruiter_id: str
    stats: DashboardStats = Field(default_factory=DashboardStats)
    jobs: list[JobSummary] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
