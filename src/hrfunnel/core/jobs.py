"""Job definition access and authoring."""

from __future__ import annotations

import json
import re
import uuid
from pathlib import Path
from typing import Callable

import pendulum
import structlog
import yaml
from pydantic import ValidationError

from ..errors import JobDraftError, JobNotFoundError, PersistenceError
from ..identity import RecruiterIdentity
from ..schemas import OPTIONS_PER_QUESTION, Job, JobDraft, Question
from ..store import JobStore

_SLUG_INVALID = re.compile(r"[^a-z0-9]+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class JobDirectory:
    """Read access to published jobs."""

    def __init__(self, store: JobStore):
        self._store = store
        self._logger = structlog.get_logger(__name__)

    def get_by_slug(self, slug: str) -> Job:
        job = self._store.get_job_by_slug(slug)
        if job is None:
            self._logger.info("job.not_found", slug=slug)
            raise JobNotFoundError(slug)
        return job

    def list_for_recruiter(self, recruiter_id: str) -> list[Job]:
        return self._store.list_jobs(recruiter_id)


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def slugify(role: str) -> str:
    return _SLUG_INVALID.sub("-", role.lower()).strip("-")


def build_slug(role: str, created_at: pendulum.DateTime) -> str:
    """Return ``<slugified role>-<base36 epoch milliseconds>``."""
    suffix = to_base36(int(created_at.timestamp() * 1000))
    stem = slugify(role)
    return f"{stem}-{suffix}" if stem else suffix


def apply_link(base_url: str, slug: str) -> str:
    return f"{base_url.rstrip('/')}/apply/{slug}"


def load_job_draft(path: Path) -> JobDraft:
    """Load a job draft from a YAML or JSON file."""
    with path.open("r", encoding="utf-8") as handle:
        try:
            if path.suffix.lower() == ".json":
                data = json.load(handle)
            else:
                data = yaml.safe_load(handle)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise JobDraftError("Invalid job file", str(exc)) from exc
    if not isinstance(data, dict):
        raise JobDraftError("Invalid job file", "Job file must contain a mapping")
    try:
        return JobDraft.model_validate(data)
    except ValidationError as exc:
        raise JobDraftError("Invalid job file", str(exc)) from exc


class JobPublisher:
    """Validate recruiter drafts and publish them as immutable jobs."""

    def __init__(
        self,
        store: JobStore,
        *,
        base_url: str = "http://localhost:8080",
        now_provider: Callable[[], pendulum.DateTime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._base_url = base_url
        self._now_provider = now_provider or (lambda: pendulum.now("UTC"))
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._logger = structlog.get_logger(__name__)

    def publish(self, identity: RecruiterIdentity, draft: JobDraft) -> Job:
        recruiter_id = identity.require()
        role, description, quiz = self.validate(draft)

        created_at = self._now_provider()
        job = Job(
            id=self._id_factory(),
            recruiter_id=recruiter_id,
            role=role,
            description=description,
            slug=build_slug(role, created_at),
            quiz=quiz,
            created_at=created_at,
        )
        try:
            self._store.insert_job(job)
        except PersistenceError:
            self._logger.warning("job.publish_failed", recruiter_id=recruiter_id, slug=job.slug)
            raise

        self._logger.info(
            "job.published",
            job_id=job.id,
            recruiter_id=recruiter_id,
            slug=job.slug,
            questions=len(job.quiz),
            apply_link=self.apply_link(job),
        )
        return job

    def apply_link(self, job: Job) -> str:
        return apply_link(self._base_url, job.slug)

    @staticmethod
    def validate(draft: JobDraft) -> tuple[str, str, tuple[Question, ...]]:
        role = draft.role.strip()
        description = draft.description.strip()
        if not role:
            raise JobDraftError("Missing role", "Please fill in the role title")
        if not description:
            raise JobDraftError("Missing description", "Please fill in the job description")
        if not draft.quiz:
            raise JobDraftError("Missing quiz", "Add at least one screening question")

        questions: list[Question] = []
        for number, item in enumerate(draft.quiz, start=1):
            if not item.text.strip():
                raise JobDraftError("Missing question", f"Please fill in question {number}")
            options = [option.strip() for option in item.options]
            if len(options) != OPTIONS_PER_QUESTION or not all(options):
                raise JobDraftError(
                    "Missing option", f"Fill all options for question {number}"
                )
            if len(set(options)) != len(options):
                raise JobDraftError(
                    "Duplicate option", f"Options must differ for question {number}"
                )
            if not 0 <= item.correct_option_index < OPTIONS_PER_QUESTION:
                raise JobDraftError(
                    "Invalid answer", f"Pick the correct option for question {number}"
                )
            questions.append(
                Question(
                    text=item.text.strip(),
                    options=tuple(options),
                    correct_option_index=item.correct_option_index,
                )
            )
        return role, description, tuple(questions)

