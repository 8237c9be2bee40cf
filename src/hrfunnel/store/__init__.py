"""Persistence boundary: job/candidate store and resume object storage."""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from ..schemas import CandidateRecord, CandidateStatus, Job, NewCandidateRecord
from .local import LocalResumeStorage
from .sqlite import SQLiteStore


@runtime_checkable
class JobStore(Protocol):
    """Relational store for published jobs."""

    def get_job_by_slug(self, slug: str) -> Job | None:
        """Return the job for ``slug`` or ``None`` when no such job exists."""

    def insert_job(self, job: Job) -> None:
        """Persist a newly published job."""

    def list_jobs(self, recruiter_id: str) -> list[Job]:
        """Return the recruiter's jobs, newest first."""


@runtime_checkable
class CandidateStore(Protocol):
    """Append-only store for candidate records."""

    def insert_candidate(self, record: NewCandidateRecord) -> str:
        """Insert a record and return its id.

        A record whose idempotency key is already stored is not inserted
        again; the id of the existing record is returned instead.
        """

    def list_candidate_statuses(self, job_ids: Iterable[str]) -> list[CandidateStatus]:
        """Return the status of every record belonging to ``job_ids``."""

    def list_resume_locations(self) -> set[str]:
        """Return every resume location referenced by a stored record."""

    def get_candidate(self, record_id: str) -> CandidateRecord | None:
        """Return a stored record by id."""

    def find_candidate_by_idempotency_key(self, key: str) -> CandidateRecord | None:
        """Return the record written under ``key``, if any."""


@runtime_checkable
class ResumeStorage(Protocol):
    """Binary object storage for uploaded resumes."""

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store ``content`` at ``path`` and return the stored location."""

    def list_paths(self) -> list[str]:
        """Return every stored object path."""

    def delete(self, path: str) -> None:
        """Remove the object at ``path``."""


__all__ = [
    "JobStore",
    "CandidateStore",
    "ResumeStorage",
    "SQLiteStore",
    "LocalResumeStorage",
]
