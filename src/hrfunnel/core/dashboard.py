"""Recruiter dashboard aggregation."""

from __future__ import annotations

from collections import Counter

import structlog

from ..identity import RecruiterIdentity
from ..schemas import (
    KNOCKED_OUT,
    SHORTLISTED,
    DashboardOverview,
    DashboardStats,
    Job,
    JobSummary,
)
from ..store import CandidateStore, JobStore
from .jobs import apply_link


class DashboardAggregator:
    """Reduce a recruiter's candidate records into per-status counts.

    Recomputed in full on every call; there is no pagination or caching.
    """

    def __init__(
        self,
        jobs: JobStore,
        candidates: CandidateStore,
        *,
        base_url: str = "http://localhost:8080",
    ) -> None:
        self._jobs = jobs
        self._candidates = candidates
        self._base_url = base_url
        self._logger = structlog.get_logger(__name__)

    def get_stats(self, recruiter_id: str) -> DashboardStats:
        return self._stats_for(recruiter_id, self._jobs.list_jobs(recruiter_id))

    def overview(self, identity: RecruiterIdentity) -> DashboardOverview:
        recruiter_id = identity.require()
        jobs = self._jobs.list_jobs(recruiter_id)
        return DashboardOverview(
            recruiter_id=recruiter_id,
            stats=self._stats_for(recruiter_id, jobs),
            jobs=[
                JobSummary(
                    id=job.id,
                    role=job.role,
                    slug=job.slug,
                    created_at=job.created_at,
                    apply_link=apply_link(self._base_url, job.slug),
                )
                for job in jobs
            ],
        )

    def _stats_for(self, recruiter_id: str, jobs: list[Job]) -> DashboardStats:
        if not jobs:
            self._logger.info("dashboard.stats", recruiter_id=recruiter_id, jobs=0, total=0)
            return DashboardStats()

        statuses = self._candidates.list_candidate_statuses(job.id for job in jobs)
        counts = Counter(statuses)
        stats = DashboardStats(
            total_candidates=len(statuses),
            shortlisted=counts[SHORTLISTED],
            knocked_out=counts[KNOCKED_OUT],
        )
        self._logger.info(
            "dashboard.stats",
            recruiter_id=recruiter_id,
            jobs=len(jobs),
            total=stats.total_candidates,
            shortlisted=stats.shortlisted,
            knocked_out=stats.knocked_out,
        )
        return stats
