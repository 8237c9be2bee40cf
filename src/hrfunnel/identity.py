"""Recruiter identity as supplied by the external identity provider."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import NotAuthenticatedError


@dataclass(frozen=True, slots=True)
class RecruiterIdentity:
    authenticated: bool
    recruiter_id: str | None = None

    def require(self) -> str:
        """Return the recruiter id, or raise when nobody is signed in."""
        if not self.authenticated or not self.recruiter_id:
            raise NotAuthenticatedError("A signed-in recruiter is required")
        return self.recruiter_id


ANONYMOUS = RecruiterIdentity(authenticated=False)


class StaticIdentityProvider:
    """Identity fixed at construction time (CLI flag or environment)."""

    def __init__(self, recruiter_id: str | None = None):
        recruiter_id = (recruiter_id or "").strip()
        self._identity = (
            RecruiterIdentity(authenticated=True, recruiter_id=recruiter_id)
            if recruiter_id
            else ANONYMOUS
        )

    def current(self) -> RecruiterIdentity:
        return self._identity
