"""SQLite-backed job and candidate store."""

from __future__ import annotations

import json
import sqlite3
import uuid
from pathlib import Path
from typing import Iterable

import pendulum
from pydantic import ValidationError

from ..errors import PersistenceError
from ..schemas import CandidateRecord, CandidateStatus, Job, NewCandidateRecord

_JOBS_TABLE = """
CREATE TABLE IF NOT EXISTS jobs (
    id              TEXT PRIMARY KEY,
    recruiter_id    TEXT NOT NULL,
    role            TEXT NOT NULL,
    description     TEXT NOT NULL,
    slug            TEXT NOT NULL UNIQUE,
    quiz_json       TEXT NOT NULL,
    created_at      TEXT NOT NULL
);
"""

_CANDIDATES_TABLE = """
CREATE TABLE IF NOT EXISTS candidates (
    id              TEXT PRIMARY KEY,
    job_id          TEXT NOT NULL REFERENCES jobs(id),
    name            TEXT,
    email           TEXT,
    status          TEXT NOT NULL CHECK (status IN ('knocked_out', 'shortlisted')),
    answers_json    TEXT NOT NULL,
    resume_location TEXT,
    idempotency_key TEXT UNIQUE,
    created_at      TEXT NOT NULL
);
"""

_RECRUITER_INDEX = "CREATE INDEX IF NOT EXISTS idx_jobs_recruiter ON jobs(recruiter_id);"
_JOB_ID_INDEX = "CREATE INDEX IF NOT EXISTS idx_candidates_job ON candidates(job_id);"


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute(_JOBS_TABLE)
    conn.execute(_CANDIDATES_TABLE)
    conn.execute(_RECRUITER_INDEX)
    conn.execute(_JOB_ID_INDEX)
    conn.commit()
    return conn


class SQLiteStore:
    """Job and candidate store on a single SQLite database file."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                self._conn = init_db(self._path)
            except (sqlite3.Error, OSError) as exc:
                raise PersistenceError(f"Cannot open database {self._path}: {exc}") from exc
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # jobs

    def get_job_by_slug(self, slug: str) -> Job | None:
        try:
            row = self.conn.execute(
                "SELECT * FROM jobs WHERE slug = ? LIMIT 1", (slug,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Job lookup failed: {exc}") from exc
        return _row_to_job(row) if row is not None else None

    def insert_job(self, job: Job) -> None:
        created_at = job.created_at or pendulum.now("UTC")
        try:
            self.conn.execute(
                """
                INSERT INTO jobs (id, recruiter_id, role, description, slug, quiz_json, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job.id,
                    job.recruiter_id,
                    job.role,
                    job.description,
                    job.slug,
                    json.dumps(
                        [question.model_dump(mode="json") for question in job.quiz],
                        ensure_ascii=False,
                    ),
                    created_at.isoformat(),
                ),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Job insert failed: {exc}") from exc

    def list_jobs(self, recruiter_id: str) -> list[Job]:
        try:
            rows = self.conn.execute(
                "SELECT * FROM jobs WHERE recruiter_id = ? ORDER BY created_at DESC",
                (recruiter_id,),
            ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Job listing failed: {exc}") from exc
        return [_row_to_job(row) for row in rows]

    # candidates

    def insert_candidate(self, record: NewCandidateRecord) -> str:
        """Insert ``record`` once per idempotency key.

        A repeated key returns the stored record's id. A repeated key whose
        stored record has a different status raises ``PersistenceError``.
        """
        if record.idempotency_key:
            existing = self.find_candidate_by_idempotency_key(record.idempotency_key)
            if existing is not None:
                return _same_outcome(existing, record)

        record_id = uuid.uuid4().hex
        created_at = record.created_at or pendulum.now("UTC")
        try:
            self.conn.execute(
                """
                INSERT INTO candidates
                    (id, job_id, name, email, status, answers_json,
                     resume_location, idempotency_key, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record_id,
                    record.job_id,
                    record.name,
                    record.email,
                    record.status,
                    json.dumps(record.answers),
                    record.resume_location,
                    record.idempotency_key,
                    created_at.isoformat(),
                ),
            )
            self.conn.commit()
        except sqlite3.IntegrityError as exc:
            self.conn.rollback()
            if record.idempotency_key:
                existing = self.find_candidate_by_idempotency_key(record.idempotency_key)
                if existing is not None:
                    return _same_outcome(existing, record)
            raise PersistenceError(f"Candidate insert rejected: {exc}") from exc
        except sqlite3.Error as exc:
            raise PersistenceError(f"Candidate insert failed: {exc}") from exc
        return record_id

    def list_candidate_statuses(self, job_ids: Iterable[str]) -> list[CandidateStatus]:
        ids = list(job_ids)
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        try:
            rows = self.conn.execute(
                f"SELECT status FROM candidates WHERE job_id IN ({placeholders})",
                ids,
            ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Candidate query failed: {exc}") from exc
        return [row["status"] for row in rows]

    def list_resume_locations(self) -> set[str]:
        try:
            rows = self.conn.execute(
                "SELECT resume_location FROM candidates WHERE resume_location IS NOT NULL"
            ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Candidate query failed: {exc}") from exc
        return {row["resume_location"] for row in rows}

    def get_candidate(self, record_id: str) -> CandidateRecord | None:
        try:
            row = self.conn.execute(
                "SELECT * FROM candidates WHERE id = ?", (record_id,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Candidate lookup failed: {exc}") from exc
        return _row_to_candidate(row) if row is not None else None

    def find_candidate_by_idempotency_key(self, key: str) -> CandidateRecord | None:
        try:
            row = self.conn.execute(
                "SELECT * FROM candidates WHERE idempotency_key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Candidate lookup failed: {exc}") from exc
        return _row_to_candidate(row) if row is not None else None


def _same_outcome(existing: CandidateRecord, record: NewCandidateRecord) -> str:
    if existing.status != record.status:
        raise PersistenceError(
            f"Idempotency key {record.idempotency_key} already recorded as "
            f"{existing.status}, not {record.status}"
        )
    return existing.id


def _row_to_job(row: sqlite3.Row) -> Job:
    try:
        return Job(
            id=row["id"],
            recruiter_id=row["recruiter_id"],
            role=row["role"],
            description=row["description"],
            slug=row["slug"],
            quiz=json.loads(row["quiz_json"]),
            created_at=row["created_at"],
        )
    except (json.JSONDecodeError, ValidationError) as exc:
        raise PersistenceError(f"Corrupt job row {row['id']}: {exc}") from exc


def _row_to_candidate(row: sqlite3.Row) -> CandidateRecord:
    try:
        return CandidateRecord(
            id=row["id"],
            job_id=row["job_id"],
            name=row["name"],
            email=row["email"],
            status=row["status"],
            answers=json.loads(row["answers_json"]),
            resume_location=row["resume_location"],
            idempotency_key=row["idempotency_key"],
            created_at=row["created_at"],
        )
    except (json.JSONDecodeError, ValidationError) as exc:
        raise PersistenceError(f"Corrupt candidate row {row['id']}: {exc}") from exc
