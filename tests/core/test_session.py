from __future__ import annotations

import pytest

from hrfunnel.core import (
    ApplicationForm,
    Info,
    JobDirectory,
    KnockedOut,
    KnockoutPending,
    NotFound,
    Quiz,
    ResumeFile,
    ScreeningSession,
    SessionFactory,
    Submitted,
    Upload,
)
from hrfunnel.errors import (
    InvalidTransitionError,
    PersistenceError,
    ScreeningValidationError,
    SubmissionInProgressError,
)

PDF = ResumeFile(filename="jane.pdf", content_type="application/pdf", content=b"%PDF-1.7 jane")


def answer(session: ScreeningSession, answers: list[int]) -> None:
    session.load()
    session.start()
    for index, option in enumerate(answers):
        session.select(index, option)


def jane(resume: ResumeFile | None = PDF) -> ApplicationForm:
    return ApplicationForm(name="Jane", email="jane@x.com", resume=resume)


def test_load_initialises_blank_answer_sheet(job, make_session):
    session = make_session(job.slug)
    assert session.stage_name == "loading"

    stage = session.load()
    assert isinstance(stage, Info)
    assert stage.job == job

    quiz = session.start()
    assert isinstance(quiz, Quiz)
    assert quiz.answers == (None, None)


def test_all_correct_moves_to_upload_without_writing(job, make_session, store):
    session = make_session(job.slug)
    answer(session, [0, 1])

    stage = session.submit_answers()

    assert isinstance(stage, Upload)
    assert stage.answers == (0, 1)
    assert store.records == []


def test_incorrect_answer_knocks_out_and_records(job, make_session, store):
    session = make_session(job.slug)
    answer(session, [0, 0])

    stage = session.submit_answers()

    assert isinstance(stage, KnockedOut)
    assert session.is_terminal
    assert len(store.records) == 1
    record = store.records[0]
    assert record.status == "knocked_out"
    assert record.answers == [0, 0]
    assert record.job_id == job.id
    assert record.name is None and record.email is None
    assert record.resume_location is None
    assert record.idempotency_key == session.idempotency_key
    assert stage.record_id == record.id


def test_valid_application_is_shortlisted(job, make_session, store, resumes):
    session = make_session(job.slug)
    answer(session, [0, 1])
    session.submit_answers()

    stage = session.submit_application(jane())

    assert isinstance(stage, Submitted)
    assert len(store.records) == 1
    record = store.records[0]
    assert record.status == "shortlisted"
    assert record.name == "Jane"
    assert record.email == "jane@x.com"
    assert record.answers == [0, 1]
    assert record.resume_location
    assert record.resume_location.startswith(f"{job.id}/")
    assert resumes.objects[record.resume_location] == PDF.content
    assert stage.resume_location == record.resume_location


def test_non_pdf_resume_is_rejected_in_place(job, make_session, store, resumes):
    session = make_session(job.slug)
    answer(session, [0, 1])
    session.submit_answers()
    docx = ResumeFile(
        filename="jane.docx",
        content_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        content=b"PK..",
    )

    with pytest.raises(ScreeningValidationError) as exc:
        session.submit_application(jane(docx))

    assert exc.value.title == "PDF only"
    assert session.stage_name == "upload"
    assert store.records == []
    assert resumes.objects == {}


@pytest.mark.parametrize(
    "form, title",
    [
        (ApplicationForm(name="  ", email="jane@x.com", resume=PDF), "Missing name"),
        (ApplicationForm(name="Jane", email="", resume=PDF), "Missing email"),
        (ApplicationForm(name="Jane", email="not-an-email", resume=PDF), "Missing email"),
        (ApplicationForm(name="Jane", email="jane@x.com", resume=None), "Resume required"),
        (
            ApplicationForm(
                name="Jane",
                email="jane@x.com",
                resume=ResumeFile(filename="e.pdf", content_type="application/pdf", content=b""),
            ),
            "Empty file",
        ),
    ],
)
def test_incomplete_application_is_rejected(job, make_session, store, form, title):
    session = make_session(job.slug)
    answer(session, [0, 1])
    session.submit_answers()

    with pytest.raises(ScreeningValidationError) as exc:
        session.submit_application(form)

    assert exc.value.title == title
    assert session.stage_name == "upload"
    assert store.records == []


def test_identity_is_trimmed(job, make_session, store):
    session = make_session(job.slug)
    answer(session, [0, 1])
    session.submit_answers()

    session.submit_application(
        ApplicationForm(name="  Jane Doe ", email=" jane@x.com ", resume=PDF)
    )

    assert store.records[0].name == "Jane Doe"
    assert store.records[0].email == "jane@x.com"


def test_unknown_slug_is_not_found(job, make_session, store):
    session = make_session("no-such-job")

    stage = session.load()

    assert isinstance(stage, NotFound)
    assert stage.reason == "missing"
    assert session.job is None
    assert session.is_terminal
    assert store.records == []


def test_fetch_failure_is_not_found(job, make_session, store):
    store.fail_job_lookup = True
    session = make_session(job.slug)

    stage = session.load()

    assert isinstance(stage, NotFound)
    assert stage.reason == "unavailable"


def test_unanswered_question_blocks_submission(job, make_session, store):
    session = make_session(job.slug)
    answer(session, [0])

    with pytest.raises(ScreeningValidationError) as exc:
        session.submit_answers()

    assert exc.value.title == "Answer all questions"
    assert isinstance(session.stage, Quiz)
    assert session.stage.answers == (0, None)
    assert store.records == []


def test_answers_can_be_changed_before_submitting(job, make_session):
    session = make_session(job.slug)
    answer(session, [0, 0])
    session.select(1, 1)

    assert isinstance(session.submit_answers(), Upload)


@pytest.mark.parametrize("question, option", [(2, 0), (-1, 0), (0, 4), (0, -1)])
def test_select_out_of_range_is_rejected(job, make_session, question, option):
    session = make_session(job.slug)
    answer(session, [])

    with pytest.raises(ScreeningValidationError):
        session.select(question, option)
    assert session.stage.answers == (None, None)


def test_events_outside_transition_table_are_rejected(job, make_session):
    session = make_session(job.slug)

    with pytest.raises(InvalidTransitionError):
        session.start()
    session.load()
    with pytest.raises(InvalidTransitionError):
        session.select(0, 0)
    with pytest.raises(InvalidTransitionError):
        session.load()
    session.start()
    with pytest.raises(InvalidTransitionError):
        session.submit_application(jane())


def test_terminal_stages_accept_no_events(job, make_session):
    knocked = make_session(job.slug)
    answer(knocked, [1, 1])
    knocked.submit_answers()

    submitted = make_session(job.slug)
    answer(submitted, [0, 1])
    submitted.submit_answers()
    submitted.submit_application(jane())

    missing = make_session("missing")
    missing.load()

    for session in (knocked, submitted, missing):
        stage = session.stage
        for event in (
            session.load,
            session.start,
            session.submit_answers,
            lambda: session.select(0, 0),
            lambda: session.submit_application(jane()),
        ):
            with pytest.raises(InvalidTransitionError):
                event()
        assert session.stage is stage


def test_knockout_write_failure_freezes_sheet_and_allows_retry(job, make_session, store):
    store.fail_inserts = 1
    session = make_session(job.slug)
    answer(session, [3, 3])

    with pytest.raises(PersistenceError):
        session.submit_answers()
    assert isinstance(session.stage, KnockoutPending)
    assert session.stage.answers == (3, 3)
    assert not session.is_terminal
    assert store.records == []

    assert isinstance(session.submit_answers(), KnockedOut)
    assert len(store.records) == 1


def test_retry_after_lost_ack_does_not_duplicate_record(job, make_session, store):
    store.lose_insert_acks = 1
    session = make_session(job.slug)
    answer(session, [3, 3])

    with pytest.raises(PersistenceError):
        session.submit_answers()
    stage = session.submit_answers()

    assert len(store.records) == 1
    assert stage.record_id == store.records[0].id


def test_lost_knockout_ack_cannot_be_turned_into_a_pass(job, make_session, store, resumes):
    store.lose_insert_acks = 1
    session = make_session(job.slug)
    answer(session, [3, 3])

    with pytest.raises(PersistenceError):
        session.submit_answers()

    for index, option in enumerate([0, 1]):
        with pytest.raises(InvalidTransitionError):
            session.select(index, option)
    stage = session.submit_answers()

    assert isinstance(stage, KnockedOut)
    assert stage.answers == (3, 3)
    assert [record.status for record in store.records] == ["knocked_out"]
    assert stage.record_id == store.records[0].id
    assert resumes.objects == {}


def test_pending_knockout_rejects_application(job, make_session, store):
    store.fail_inserts = 1
    session = make_session(job.slug)
    answer(session, [1, 1])

    with pytest.raises(PersistenceError):
        session.submit_answers()

    with pytest.raises(InvalidTransitionError):
        session.submit_application(jane())
    assert session.stage_name == "knockout_pending"


def test_upload_failure_keeps_upload_stage(job, make_session, store, resumes):
    resumes.fail_uploads = 1
    session = make_session(job.slug)
    answer(session, [0, 1])
    session.submit_answers()

    with pytest.raises(PersistenceError):
        session.submit_application(jane())

    assert session.stage_name == "upload"
    assert store.records == []
    assert resumes.objects == {}


def test_insert_failure_after_upload_leaves_orphan_and_allows_retry(
    job, make_session, store, resumes
):
    store.fail_inserts = 1
    session = make_session(job.slug)
    answer(session, [0, 1])
    session.submit_answers()

    with pytest.raises(PersistenceError):
        session.submit_application(jane(ResumeFile("a.pdf", "application/pdf", b"%PDF a")))
    assert session.stage_name == "upload"
    assert len(resumes.objects) == 1

    stage = session.submit_application(jane(ResumeFile("b.pdf", "application/pdf", b"%PDF b")))

    assert isinstance(stage, Submitted)
    assert len(store.records) == 1
    assert len(resumes.objects) == 2


def test_resubmission_while_write_in_flight_is_rejected(job, store, resumes):
    captured: list[Exception] = []

    class ReentrantWriter:
        session: ScreeningSession

        def write_knocked_out(self, job_id, answers, *, idempotency_key=None):
            try:
                self.session.submit_answers()
            except SubmissionInProgressError as exc:
                captured.append(exc)
            return "cand-1"

    writer = ReentrantWriter()
    session = ScreeningSession(job.slug, jobs=JobDirectory(store), writer=writer)
    writer.session = session
    answer(session, [2, 2])

    session.submit_answers()

    assert len(captured) == 1
    assert isinstance(session.stage, KnockedOut)
    assert not session.in_flight


def test_quiz_stage_requires_matching_answer_sheet(job):
    with pytest.raises(ValueError):
        Quiz(job=job, answers=(0,))
    with pytest.raises(ValueError):
        Upload(job=job, answers=(0, None))


def test_each_session_gets_its_own_idempotency_key(job, make_session):
    first = make_session(job.slug)
    second = make_session(job.slug)

    assert first.idempotency_key != second.idempotency_key


def test_session_factory_opens_loaded_sessions(job, store, writer):
    factory = SessionFactory(jobs=JobDirectory(store), writer=writer)

    assert factory.open(job.slug).stage_name == "info"
    assert factory.open("nope").stage_name == "not_found"
