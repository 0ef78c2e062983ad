from __future__ import annotations

from typing import Optional


class TalentMatchError(Exception):
    """Base class for matching and shortlist failures."""


class NotFoundError(TalentMatchError, LookupError):
    """Raised when a job, shortlist or shortlist entry does not exist."""


class ConflictError(TalentMatchError):
    """Raised when a shortlist write is based on a stale lastUpdatedAt."""


class MalformedCandidateError(TalentMatchError, ValueError):
    """
    Raised when a stored candidate record cannot be turned into a snapshot.
    candidate_id is set when the record still names its candidate.
    """

    def __init__(self, message: str, candidate_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.candidate_id = candidate_id
