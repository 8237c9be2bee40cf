"""Sweep for resumes left behind by failed shortlist inserts."""

from __future__ import annotations

from typing import Callable

import pendulum
import structlog

from ..store import CandidateStore, ResumeStorage
from .records import resume_uploaded_at

# A shortlist insert normally lands within seconds of its upload.
DEFAULT_GRACE = pendulum.duration(hours=1)


def find_orphaned_resumes(
    candidates: CandidateStore,
    resumes: ResumeStorage,
    *,
    grace: pendulum.Duration = DEFAULT_GRACE,
    now_provider: Callable[[], pendulum.DateTime] | None = None,
) -> list[str]:
    """Return stored resume paths that no candidate record references.

    Objects uploaded less than ``grace`` ago are left out: their shortlist
    insert may still be running. Paths without an upload timestamp are
    treated as old.
    """
    now = (now_provider or (lambda: pendulum.now("UTC")))()
    cutoff_ms = int((now - grace).timestamp() * 1000)
    referenced = candidates.list_resume_locations()
    orphans = []
    for path in resumes.list_paths():
        if path in referenced:
            continue
        uploaded_ms = resume_uploaded_at(path)
        if uploaded_ms is not None and uploaded_ms > cutoff_ms:
            continue
        orphans.append(path)
    return orphans


def sweep_orphaned_resumes(
    candidates: CandidateStore,
    resumes: ResumeStorage,
    *,
    delete: bool = False,
    grace: pendulum.Duration = DEFAULT_GRACE,
    now_provider: Callable[[], pendulum.DateTime] | None = None,
) -> list[str]:
    """Find orphaned resumes and, when ``delete`` is set, remove them."""
    logger = structlog.get_logger(__name__)
    orphans = find_orphaned_resumes(
        candidates, resumes, grace=grace, now_provider=now_provider
    )
    for path in orphans:
        if delete:
            resumes.delete(path)
            logger.info("resume.orphan_deleted", path=path)
        else:
            logger.info("resume.orphan_found", path=path)
    return orphans
