from __future__ import annotations

import pytest

from hrfunnel.core import CandidateRecordWriter
from hrfunnel.core.records import resume_object_path, resume_uploaded_at
from hrfunnel.errors import PersistenceError


def test_resume_path_is_namespaced_by_job_and_time():
    assert resume_object_path("job-1", "cv.pdf", 1700000000000) == "job-1/1700000000000-cv.pdf"


def test_resume_path_keeps_only_the_basename():
    assert resume_object_path("job-1", "../../etc/cv.pdf", 5) == "job-1/5-cv.pdf"
    assert resume_object_path("job-1", "C:\\Users\\jane\\cv.pdf", 5) == "job-1/5-cv.pdf"
    assert resume_object_path("job-1", "", 5) == "job-1/5-resume.pdf"


def test_upload_time_is_read_back_from_the_path():
    assert resume_uploaded_at("job-1/1700000000000-cv.pdf") == 1700000000000
    assert resume_uploaded_at("job-1/cv.pdf") is None
    assert resume_uploaded_at("job-1/x1-cv.pdf") is None


def test_write_knocked_out_has_no_identity(writer, store, fixed_now):
    record_id = writer.write_knocked_out("job-1", [1, 0], idempotency_key="k-1")

    record = store.get_candidate(record_id)
    assert record.status == "knocked_out"
    assert record.answers == [1, 0]
    assert not record.has_identity
    assert record.created_at == fixed_now


def test_write_shortlisted_uploads_then_inserts(writer, store, resumes):
    result = writer.write_shortlisted(
        "job-1", "Jane", "jane@x.com", [0, 1], b"%PDF", "cv.pdf", idempotency_key="k-2"
    )

    assert result.resume_location == "job-1/1700000000000-cv.pdf"
    assert resumes.content_types[result.resume_location] == "application/pdf"
    record = store.get_candidate(result.record_id)
    assert record.status == "shortlisted"
    assert record.resume_location == result.resume_location


def test_write_shortlisted_insert_failure_leaves_resume(writer, store, resumes):
    store.fail_inserts = 1

    with pytest.raises(PersistenceError):
        writer.write_shortlisted("job-1", "Jane", "jane@x.com", [0, 1], b"%PDF", "cv.pdf")

    assert list(resumes.objects) == ["job-1/1700000000000-cv.pdf"]
    assert store.records == []


def test_write_shortlisted_skips_upload_for_recorded_key(writer, store, resumes):
    first = writer.write_shortlisted(
        "job-1", "Jane", "jane@x.com", [0, 1], b"%PDF", "cv.pdf", idempotency_key="k-3"
    )
    resumes.objects.clear()

    second = writer.write_shortlisted(
        "job-1", "Jane", "jane@x.com", [0, 1], b"%PDF", "cv.pdf", idempotency_key="k-3"
    )

    assert second == first
    assert resumes.objects == {}
    assert len(store.records) == 1


def test_writer_uses_default_clock(store, resumes):
    writer = CandidateRecordWriter(store, resumes)

    record_id = writer.write_knocked_out("job-1", [0])

    assert store.get_candidate(record_id).created_at is not None


def test_shortlisting_a_knocked_out_key_is_refused(writer, store, resumes):
    writer.write_knocked_out("job-1", [3, 3], idempotency_key="k-4")

    with pytest.raises(PersistenceError):
        writer.write_shortlisted(
            "job-1", "Jane", "jane@x.com", [0, 1], b"%PDF", "cv.pdf", idempotency_key="k-4"
        )

    assert resumes.objects == {}
    assert [record.status for record in store.records] == ["knocked_out"]


def test_knocking_out_a_shortlisted_key_is_refused(writer, store):
    writer.write_shortlisted(
        "job-1", "Jane", "jane@x.com", [0, 1], b"%PDF", "cv.pdf", idempotency_key="k-5"
    )

    with pytest.raises(PersistenceError):
        writer.write_knocked_out("job-1", [3, 3], idempotency_key="k-5")

    assert [record.status for record in store.records] == ["shortlisted"]
