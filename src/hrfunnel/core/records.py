"""Candidate record writer."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Sequence

import pendulum
import structlog

from ..errors import PersistenceError
from ..schemas import KNOCKED_OUT, SHORTLISTED, NewCandidateRecord
from ..store import CandidateStore, ResumeStorage

PDF_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True, slots=True)
class ShortlistResult:
    record_id: str
    resume_location: str


def resume_object_path(job_id: str, filename: str, timestamp_ms: int) -> str:
    """Return ``<job_id>/<timestamp_ms>-<basename>`` for a resume upload."""
    basename = PurePosixPath(filename.replace("\\", "/")).name or "resume.pdf"
    return f"{job_id}/{timestamp_ms}-{basename}"


def resume_uploaded_at(path: str) -> int | None:
    """Epoch milliseconds encoded in a resume path, or ``None`` if it has none."""
    stamp, sep, _ = PurePosixPath(path).name.partition("-")
    if not sep or not stamp.isdigit():
        return None
    return int(stamp)


class CandidateRecordWriter:
    """Persist terminal screening outcomes.

    Shortlisting is upload-then-insert and not transactional: if the insert
    fails after a successful upload the resume stays in storage with no record
    pointing at it (see ``reconcile.find_orphaned_resumes``).
    """

    def __init__(
        self,
        candidates: CandidateStore,
        resumes: ResumeStorage,
        *,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._candidates = candidates
        self._resumes = resumes
        self._now_provider = now_provider or (lambda: pendulum.now("UTC"))
        self._logger = structlog.get_logger(__name__)

    def write_knocked_out(
        self,
        job_id: str,
        answers: Sequence[int],
        *,
        idempotency_key: str | None = None,
    ) -> str:
        record = NewCandidateRecord(
            job_id=job_id,
            status=KNOCKED_OUT,
            answers=list(answers),
            idempotency_key=idempotency_key,
            created_at=self._now_provider(),
        )
        record_id = self._candidates.insert_candidate(record)
        self._logger.info("record.knocked_out", job_id=job_id, record_id=record_id)
        return record_id

    def write_shortlisted(
        self,
        job_id: str,
        name: str,
        email: str,
        answers: Sequence[int],
        resume_bytes: bytes,
        resume_filename: str,
        *,
        content_type: str = PDF_CONTENT_TYPE,
        idempotency_key: str | None = None,
    ) -> ShortlistResult:
        if idempotency_key:
            existing = self._candidates.find_candidate_by_idempotency_key(idempotency_key)
            if existing is not None:
                if existing.status != SHORTLISTED or not existing.resume_location:
                    self._logger.error(
                        "record.idempotency_conflict",
                        job_id=job_id,
                        record_id=existing.id,
                        status=existing.status,
                    )
                    raise PersistenceError(
                        f"Session already recorded as {existing.status}; not shortlisting"
                    )
                self._logger.info(
                    "record.duplicate_submission", job_id=job_id, record_id=existing.id
                )
                return ShortlistResult(
                    record_id=existing.id, resume_location=existing.resume_location
                )

        now = self._now_provider()
        path = resume_object_path(job_id, resume_filename, int(now.timestamp() * 1000))
        location = self._resumes.upload(path, resume_bytes, content_type)

        record = NewCandidateRecord(
            job_id=job_id,
            status=SHORTLISTED,
            answers=list(answers),
            name=name,
            email=email,
            resume_location=location,
            idempotency_key=idempotency_key,
            created_at=now,
        )
        try:
            record_id = self._candidates.insert_candidate(record)
        except PersistenceError:
            self._logger.warning("resume.orphaned", job_id=job_id, resume_location=location)
            raise

        self._logger.info(
            "record.shortlisted",
            job_id=job_id,
            record_id=record_id,
            resume_location=location,
        )
        return ShortlistResult(record_id=record_id, resume_location=location)
