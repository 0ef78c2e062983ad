from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional

from talentmatch.errors import MalformedCandidateError


class EducationLevel(str, Enum):
    STUDENT = "student"
    GRADUATE = "graduate"
    PHD = "phd"
    ANY = "any"


class ShortlistStatus(str, Enum):
    SHORTLISTED = "shortlisted"
    CONTACTED = "contacted"
    INTERVIEWED = "interviewed"
    HIRED = "hired"
    REJECTED = "rejected"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_whitespace(text: str) -> str:
    return " ".join((text or "").split()).strip()


def parse_education(value: Any) -> Optional[EducationLevel]:
    """
    Case-insensitive parse ("PhD", "Graduate", "Any" all accepted).
    Returns None for anything unrecognised.
    """
    if isinstance(value, EducationLevel):
        return value
    if not isinstance(value, str):
        return None
    key = normalize_whitespace(value).lower()
    try:
        return EducationLevel(key)
    except ValueError:
        return None


def _clean_skills(values: Any) -> FrozenSet[str]:
    if isinstance(values, str) or not values:
        return frozenset()
    try:
        items = list(values)
    except TypeError:
        return frozenset()
    return frozenset(normalize_whitespace(s) for s in items if isinstance(s, str) and normalize_whitespace(s))


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if data.get(k) is not None:
            return data[k]
    return None


def parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class JobRequirement:
    """
    What a job posting asks for. Read once per matching run and never mutated.
    """
    job_id: str
    required_skills: FrozenSet[str] = field(default_factory=frozenset)
    min_years_experience: float = 0.0
    education_preference: EducationLevel = EducationLevel.ANY
    availability: Optional[str] = None
    max_candidates: int = 10

    # Carried through from the posting, ignored by scoring
    title: str = ""
    currency: Optional[str] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "required_skills", _clean_skills(self.required_skills))
        object.__setattr__(self, "title", normalize_whitespace(self.title))
        if self.availability is not None:
            object.__setattr__(self, "availability", normalize_whitespace(self.availability) or None)
        object.__setattr__(
            self, "education_preference", parse_education(self.education_preference) or EducationLevel.ANY
        )
        if self.min_years_experience is None or self.min_years_experience < 0:
            object.__setattr__(self, "min_years_experience", 0.0)
        if self.max_candidates < 1:
            raise ValueError(f"max_candidates must be a positive integer, got {self.max_candidates}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, default_max_candidates: int = 10) -> "JobRequirement":
        budget = data.get("budget") or {}
        return cls(
            job_id=str(_first_present(data, "jobId", "_id", "id")),
            required_skills=frozenset(data.get("requiredSkills") or []),
            min_years_experience=float(_first_present(data, "minYearsExperience", "minExperience") or 0),
            education_preference=parse_education(data.get("educationPreference")) or EducationLevel.ANY,
            availability=_first_present(data, "availability", "roleType"),
            max_candidates=int(data.get("maxCandidates") or default_max_candidates),
            title=data.get("title") or "",
            currency=budget.get("currency"),
            budget_min=budget.get("min"),
            budget_max=budget.get("max"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobId": self.job_id,
            "title": self.title,
            "requiredSkills": sorted(self.required_skills),
            "minYearsExperience": self.min_years_experience,
            "educationPreference": self.education_preference.value,
            "availability": self.availability,
            "maxCandidates": self.max_candidates,
            "budget": {"currency": self.currency, "min": self.budget_min, "max": self.budget_max},
        }


@dataclass(frozen=True)
class CandidateSnapshot:
    """
    Read-only view of a published candidate profile.

    portfolio_depth and github_activity come precomputed (0-100) from the
    portfolio analyzer; both default to 0 when the analyzer has not run.
    """
    candidate_id: str
    skills: FrozenSet[str] = field(default_factory=frozenset)
    years_experience: float = 0.0
    education_level: Optional[EducationLevel] = None
    availability: Optional[str] = None
    portfolio_depth: float = 0.0
    github_activity: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "skills", _clean_skills(self.skills))
        object.__setattr__(self, "education_level", parse_education(self.education_level))
        if self.availability is not None:
            object.__setattr__(self, "availability", normalize_whitespace(self.availability) or None)

    @classmethod
    def from_dict(cls, data: Any) -> "CandidateSnapshot":
        """
        Build a snapshot from a stored candidate record.
        Raises MalformedCandidateError when the record cannot identify a candidate
        or carries values that cannot be read as numbers.
        """
        if not isinstance(data, Mapping):
            raise MalformedCandidateError(f"candidate record must be a mapping, got {type(data).__name__}")

        raw_id = _first_present(data, "candidateId", "_id", "id")
        if raw_id is None or not str(raw_id).strip():
            raise MalformedCandidateError("candidate record has no identifier")
        candidate_id = str(raw_id).strip()

        try:
            years = float(_first_present(data, "yearsOfExperience", "experienceYears") or 0)
            portfolio = float(_first_present(data, "portfolioDepth", "portfolioScore") or 0)
            github = float(_first_present(data, "githubActivity", "githubScore") or 0)
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedCandidateError(f"candidate {candidate_id}: {exc}", candidate_id) from exc

        skills = data.get("skills") or []
        if isinstance(skills, str) or not isinstance(skills, (list, tuple, set, frozenset)):
            raise MalformedCandidateError(f"candidate {candidate_id}: skills must be a list", candidate_id)

        return cls(
            candidate_id=candidate_id,
            skills=frozenset(skills),
            years_experience=years,
            education_level=data.get("educationLevel"),
            availability=data.get("availability") or None,
            portfolio_depth=portfolio,
            github_activity=github,
        )
