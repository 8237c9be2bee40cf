from __future__ import annotations

from typing import Any, Iterable

import pendulum
import pytest
import structlog

from hrfunnel.core import CandidateRecordWriter, JobDirectory, ScreeningSession
from hrfunnel.errors import PersistenceError
from hrfunnel.schemas import CandidateRecord, Job, NewCandidateRecord, Question

FIXED_NOW = pendulum.from_timestamp(1_700_000_000, tz="UTC")


class InMemoryStore:
    """Job and candidate store with failure injection."""

    def __init__(self) -> None:
        self.jobs: dict[str, Job] = {}
        self.records: list[CandidateRecord] = []
        self.fail_job_lookup = False
        self.fail_inserts = 0
        self.lose_insert_acks = 0
        self.status_queries: list[list[str]] = []

    def get_job_by_slug(self, slug: str) -> Job | None:
        if self.fail_job_lookup:
            raise PersistenceError("network down")
        for job in self.jobs.values():
            if job.slug == slug:
                return job
        return None

    def insert_job(self, job: Job) -> None:
        self.jobs[job.id] = job

    def list_jobs(self, recruiter_id: str) -> list[Job]:
        owned = [job for job in self.jobs.values() if job.recruiter_id == recruiter_id]
        return sorted(owned, key=lambda job: job.created_at, reverse=True)

    def insert_candidate(self, record: NewCandidateRecord) -> str:
        if self.fail_inserts:
            self.fail_inserts -= 1
            raise PersistenceError("insert failed")
        if record.idempotency_key:
            existing = self.find_candidate_by_idempotency_key(record.idempotency_key)
            if existing is not None:
                if existing.status != record.status:
                    raise PersistenceError("idempotency key already used for another outcome")
                return existing.id
        stored = CandidateRecord(id=f"cand-{len(self.records) + 1}", **record.model_dump())
        self.records.append(stored)
        if self.lose_insert_acks:
            # The write landed but the caller never hears about it.
            self.lose_insert_acks -= 1
            raise PersistenceError("connection reset after insert")
        return stored.id

    def list_candidate_statuses(self, job_ids: Iterable[str]) -> list[str]:
        ids = list(job_ids)
        self.status_queries.append(ids)
        return [record.status for record in self.records if record.job_id in ids]

    def list_resume_locations(self) -> set[str]:
        return {record.resume_location for record in self.records if record.resume_location}

    def get_candidate(self, record_id: str) -> CandidateRecord | None:
        return next((record for record in self.records if record.id == record_id), None)

    def find_candidate_by_idempotency_key(self, key: str) -> CandidateRecord | None:
        return next((record for record in self.records if record.idempotency_key == key), None)


class InMemoryResumeStorage:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.fail_uploads = 0

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        if self.fail_uploads:
            self.fail_uploads -= 1
            raise PersistenceError("upload failed")
        if path in self.objects:
            raise PersistenceError(f"Object already exists: {path}")
        self.objects[path] = content
        self.content_types[path] = content_type
        return path

    def list_paths(self) -> list[str]:
        return sorted(self.objects)

    def delete(self, path: str) -> None:
        self.objects.pop(path, None)


def build_job(**kwargs: Any) -> Job:
    defaults: dict[str, Any] = {
        "id": "job-1",
        "recruiter_id": "rec-1",
        "role": "Backend Engineer",
        "description": "Build and run our APIs.",
        "slug": "backend-engineer-lq2x9k",
        "quiz": (
            Question(
                text="Which HTTP method is idempotent?",
                options=("POST", "PUT", "PATCH", "CONNECT"),
                correct_option_index=0,
            ),
            Question(
                text="Which status code means Not Found?",
                options=("400", "404", "500", "302"),
                correct_option_index=1,
            ),
        ),
        "created_at": FIXED_NOW,
    }
    defaults.update(kwargs)
    return Job(**defaults)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def resumes() -> InMemoryResumeStorage:
    return InMemoryResumeStorage()


@pytest.fixture
def job(store: InMemoryStore) -> Job:
    """Two-question job whose correct answers are [0, 1]."""
    published = build_job()
    store.insert_job(published)
    return published


@pytest.fixture
def writer(store: InMemoryStore, resumes: InMemoryResumeStorage) -> CandidateRecordWriter:
    return CandidateRecordWriter(store, resumes, now_provider=lambda: FIXED_NOW)


@pytest.fixture
def make_session(store: InMemoryStore, writer: CandidateRecordWriter):
    def factory(slug: str) -> ScreeningSession:
        return ScreeningSession(slug, jobs=JobDirectory(store), writer=writer)

    return factory


@pytest.fixture
def job_factory():
    return build_job


@pytest.fixture
def fixed_now() -> pendulum.DateTime:
    return FIXED_NOW
