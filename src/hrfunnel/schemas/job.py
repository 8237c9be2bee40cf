"""Job and screening quiz schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

OPTIONS_PER_QUESTION = 4


class Question(BaseModel):
    """A multiple-choice screening question with exactly four options."""

    text: str = Field(min_length=1)
    options: tuple[str, str, str, str]
    correct_option_index: int = Field(ge=0, lt=OPTIONS_PER_QUESTION)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("question text must not be blank")
        return v

    @field_validator("options")
    @classmethod
    def options_filled_and_distinct(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if any(not option.strip() for option in v):
            raise ValueError("every option must be non-empty")
        if len({option.strip() for option in v}) != len(v):
            raise ValueError("options must be distinct")
        return v


class Job(BaseModel):
    """A published job posting. Read-only once created."""

    id: str
    recruiter_id: str
    role: str
    description: str
    slug: str
    quiz: tuple[Question, ...] = Field(min_length=1)
    created_at: datetime | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class QuestionDraft(BaseModel):
    """Question as entered by a recruiter, before authoring validation."""

    text: str = ""
    options: list[str] = Field(default_factory=lambda: [""] * OPTIONS_PER_QUESTION)
    correct_option_index: int = 0

    model_config = ConfigDict(extra="forbid")


class JobDraft(BaseModel):
    """Unvalidated job definition produced by the authoring form or a file."""

    role: str = ""
    description: str = ""
    quiz: list[QuestionDraft] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
