"""Quiz scoring."""

from __future__ import annotations

from typing import Sequence

from ..schemas import Job


def all_correct(job: Job, answers: Sequence[int]) -> bool:
    """Return True iff every answer matches the question's correct option.

    Strict AND across the quiz: no partial credit, no threshold. Callers must
    only score a fully answered quiz.
    """
    if len(answers) != len(job.quiz):
        raise ValueError(
            f"Expected {len(job.quiz)} answers, got {len(answers)}"
        )
    return all(
        answer == question.correct_option_index
        for question, answer in zip(job.quiz, answers)
    )


def first_unanswered(answers: Sequence[int | None]) -> int | None:
    """Return the index of the first unanswered slot, or None when complete."""
    for index, answer in enumerate(answers):
        if answer is None:
            return index
    return None
