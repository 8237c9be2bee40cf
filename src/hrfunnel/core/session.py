"""Screening session state machine.

One session drives one candidate through a job's screening quiz::

    loading -> info -> quiz -> knockout_pending -> knocked_out
                            -> upload -> submitted
    loading -> not_found

Every stage is its own frozen type carrying only the data valid for it, so a
``Quiz`` without a correctly sized answer sheet cannot be built. Events that
the current stage does not accept raise ``InvalidTransitionError`` and leave
the session untouched.

A failing sheet is frozen in ``knockout_pending`` before its record is written.
If that write fails the only accepted event is a retry of the same sheet, so a
record that landed without an acknowledgement can never be paired with
different answers.
"""

from __future__ import annotations

import re
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import ClassVar, Iterator, Literal, Union

import structlog

from ..errors import (
    InvalidTransitionError,
    JobNotFoundError,
    PersistenceError,
    ScreeningValidationError,
    SubmissionInProgressError,
)
from ..schemas import Job
from .jobs import JobDirectory
from .records import PDF_CONTENT_TYPE, CandidateRecordWriter
from .scoring import all_correct, first_unanswered

StageName = Literal[
    "loading",
    "not_found",
    "info",
    "quiz",
    "knockout_pending",
    "knocked_out",
    "upload",
    "submitted",
]

_EMAIL_SHAPE = re.compile(r"^[^@\s]+@[^@\s]+$")


@dataclass(frozen=True, slots=True)
class Loading:
    slug: str

    name: ClassVar[StageName] = "loading"


@dataclass(frozen=True, slots=True)
class NotFound:
    slug: str
    reason: Literal["missing", "unavailable"] = "missing"

    name: ClassVar[StageName] = "not_found"


@dataclass(frozen=True, slots=True)
class Info:
    job: Job

    name: ClassVar[StageName] = "info"


@dataclass(frozen=True, slots=True)
class Quiz:
    job: Job
    answers: tuple[int | None, ...]

    name: ClassVar[StageName] = "quiz"

    def __post_init__(self) -> None:
        if len(self.answers) != len(self.job.quiz):
            raise ValueError("answer sheet length must match the quiz length")

    @classmethod
    def blank(cls, job: Job) -> "Quiz":
        return cls(job=job, answers=(None,) * len(job.quiz))


@dataclass(frozen=True, slots=True)
class KnockoutPending:
    """A failing sheet whose knocked-out record has been sent but not confirmed."""

    job: Job
    answers: tuple[int, ...]

    name: ClassVar[StageName] = "knockout_pending"


@dataclass(frozen=True, slots=True)
class KnockedOut:
    job: Job
    answers: tuple[int, ...]
    record_id: str

    name: ClassVar[StageName] = "knocked_out"


@dataclass(frozen=True, slots=True)
class Upload:
    job: Job
    answers: tuple[int, ...]

    name: ClassVar[StageName] = "upload"

    def __post_init__(self) -> None:
        if len(self.answers) != len(self.job.quiz) or None in self.answers:
            raise ValueError("upload requires a fully answered quiz")


@dataclass(frozen=True, slots=True)
class Submitted:
    job: Job
    answers: tuple[int, ...]
    record_id: str
    resume_location: str

    name: ClassVar[StageName] = "submitted"


Stage = Union[
    Loading, NotFound, Info, Quiz, KnockoutPending, KnockedOut, Upload, Submitted
]

TERMINAL_STAGES: tuple[type, ...] = (NotFound, KnockedOut, Submitted)


@dataclass(frozen=True, slots=True)
class ResumeFile:
    """An uploaded file as declared by the client."""

    filename: str
    content_type: str
    content: bytes


@dataclass(frozen=True, slots=True)
class ApplicationForm:
    name: str
    email: str
    resume: ResumeFile | None


class ScreeningSession:
    """One candidate's attempt at one job. Never reused across candidates."""

    def __init__(
        self,
        slug: str,
        *,
        jobs: JobDirectory,
        writer: CandidateRecordWriter,
        idempotency_key: str | None = None,
    ) -> None:
        self._stage: Stage = Loading(slug=slug)
        self._jobs = jobs
        self._writer = writer
        self._in_flight = False
        self.idempotency_key = idempotency_key or uuid.uuid4().hex
        self._logger = structlog.get_logger(__name__).bind(
            slug=slug, session=self.idempotency_key
        )

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def stage_name(self) -> StageName:
        return self._stage.name

    @property
    def job(self) -> Job | None:
        return getattr(self._stage, "job", None)

    @property
    def is_terminal(self) -> bool:
        return isinstance(self._stage, TERMINAL_STAGES)

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def load(self) -> Stage:
        """Fetch the job; a missing job or a failed fetch both end in not_found."""
        stage = self._expect(Loading, "load")
        try:
            job = self._jobs.get_by_slug(stage.slug)
        except JobNotFoundError:
            self._stage = NotFound(slug=stage.slug, reason="missing")
        except PersistenceError as exc:
            self._logger.warning("session.job_fetch_failed", error=str(exc))
            self._stage = NotFound(slug=stage.slug, reason="unavailable")
        else:
            self._stage = Info(job=job)
            self._logger.info("session.loaded", job_id=job.id, questions=len(job.quiz))
            return self._stage

        self._logger.info("session.not_found", reason=self._stage.reason)
        return self._stage

    def start(self) -> Stage:
        stage = self._expect(Info, "start")
        self._stage = Quiz.blank(stage.job)
        return self._stage

    def select(self, question_index: int, option_index: int) -> Stage:
        """Record option ``option_index`` as the answer to ``question_index``."""
        stage = self._expect(Quiz, "select")
        quiz = stage.job.quiz
        if not 0 <= question_index < len(quiz):
            raise ScreeningValidationError(
                "Unknown question", f"Question {question_index + 1} does not exist"
            )
        if not 0 <= option_index < len(quiz[question_index].options):
            raise ScreeningValidationError(
                "Unknown option",
                f"Question {question_index + 1} has no option {option_index + 1}",
            )
        answers = list(stage.answers)
        answers[question_index] = option_index
        self._stage = Quiz(job=stage.job, answers=tuple(answers))
        return self._stage

    def submit_answers(self) -> Stage:
        """Score the quiz.

        A failing sheet is recorded immediately as knocked out; a passing one
        moves on to the upload stage without writing anything yet. From
        ``knockout_pending`` this retries the write for the frozen sheet.
        """
        stage = self._expect((Quiz, KnockoutPending), "submit_answers")
        if isinstance(stage, KnockoutPending):
            return self._record_knockout(stage)
        if first_unanswered(stage.answers) is not None:
            raise ScreeningValidationError(
                "Answer all questions", "Please select an answer for every question."
            )
        answers = tuple(answer for answer in stage.answers if answer is not None)

        if all_correct(stage.job, answers):
            self._stage = Upload(job=stage.job, answers=answers)
            self._logger.info("session.passed", job_id=stage.job.id)
            return self._stage

        self._stage = KnockoutPending(job=stage.job, answers=answers)
        return self._record_knockout(self._stage)

    def _record_knockout(self, stage: KnockoutPending) -> Stage:
        with self._submitting("submit_answers"):
            try:
                record_id = self._writer.write_knocked_out(
                    stage.job.id, stage.answers, idempotency_key=self.idempotency_key
                )
            except PersistenceError as exc:
                self._logger.warning(
                    "session.submit_failed", stage=stage.name, error=str(exc)
                )
                raise

        self._stage = KnockedOut(job=stage.job, answers=stage.answers, record_id=record_id)
        self._logger.info("session.knocked_out", job_id=stage.job.id, record_id=record_id)
        return self._stage

    def submit_application(self, form: ApplicationForm) -> Stage:
        """Upload the resume and record the candidate as shortlisted."""
        stage = self._expect(Upload, "submit_application")
        name, email, resume = self._validate_application(form)

        with self._submitting("submit_application"):
            try:
                result = self._writer.write_shortlisted(
                    stage.job.id,
                    name,
                    email,
                    stage.answers,
                    resume.content,
                    resume.filename,
                    content_type=resume.content_type,
                    idempotency_key=self.idempotency_key,
                )
            except PersistenceError as exc:
                self._logger.warning("session.submit_failed", stage="upload", error=str(exc))
                raise

        self._stage = Submitted(
            job=stage.job,
            answers=stage.answers,
            record_id=result.record_id,
            resume_location=result.resume_location,
        )
        self._logger.info(
            "session.submitted", job_id=stage.job.id, record_id=result.record_id
        )
        return self._stage

    @staticmethod
    def _validate_application(form: ApplicationForm) -> tuple[str, str, ResumeFile]:
        name = form.name.strip()
        email = form.email.strip()
        if not name:
            raise ScreeningValidationError("Missing name", "Please enter your full name.")
        if not email or not _EMAIL_SHAPE.match(email):
            raise ScreeningValidationError("Missing email", "Please enter a valid email address.")
        resume = form.resume
        if resume is None:
            raise ScreeningValidationError("Resume required", "Please choose a PDF file.")
        # Declared type only; the content is not sniffed.
        if resume.content_type != PDF_CONTENT_TYPE:
            raise ScreeningValidationError("PDF only", "Please upload a PDF file.")
        if not resume.content:
            raise ScreeningValidationError("Empty file", "The selected file is empty.")
        return name, email, resume

    def _expect(self, stage_type: type | tuple[type, ...], event: str):
        if not isinstance(self._stage, stage_type):
            raise InvalidTransitionError(event, self._stage.name)
        return self._stage

    @contextmanager
    def _submitting(self, event: str) -> Iterator[None]:
        if self._in_flight:
            raise SubmissionInProgressError(f"{event} is already in progress")
        self._in_flight = True
        try:
            yield
        finally:
            self._in_flight = False


class SessionFactory:
    """Open loaded screening sessions for job links."""

    def __init__(self, *, jobs: JobDirectory, writer: CandidateRecordWriter):
        self._jobs = jobs
        self._writer = writer

    def open(self, slug: str) -> ScreeningSession:
        session = ScreeningSession(slug, jobs=self._jobs, writer=self._writer)
        session.load()
        return session
