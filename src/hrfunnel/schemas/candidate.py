"""Candidate record schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

CandidateStatus = Literal["knocked_out", "shortlisted"]

KNOCKED_OUT: CandidateStatus = "knocked_out"
SHORTLISTED: CandidateStatus = "shortlisted"


class NewCandidateRecord(BaseModel):
    """Terminal outcome of one screening session, before the store assigns an id.

    Knocked-out records carry no identity: ``name`` and ``email`` are ``None``
    because the candidate never reached the point where identity is collected.
    """

    job_id: str
    status: CandidateStatus
    answers: list[int] = Field(default_factory=list)
    name: str | None = None
    email: str | None = None
    resume_location: str | None = None
    idempotency_key: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_outcome_shape(self) -> "NewCandidateRecord":
        if self.status == SHORTLISTED:
            if not (self.name and self.email):
                raise ValueError("shortlisted records require name and email")
            if not self.resume_location:
                raise ValueError("shortlisted records require a resume location")
        else:
            if self.name is not None or self.email is not None:
                raise ValueError("knocked_out records carry no identity")
            if self.resume_location is not None:
                raise ValueError("knocked_out records carry no resume")
        return self

    @property
    def has_identity(self) -> bool:
        return self.name is not None


class CandidateRecord(NewCandidateRecord):
    """Persisted candidate record."""

    id: str
