from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, FrozenSet, Tuple


COMPONENTS: Tuple[str, ...] = (
    "skill_match",
    "experience_match",
    "portfolio_depth",
    "education_alignment",
    "github_activity",
    "availability_fit",
)

# snake_case attribute -> wire name
WIRE_NAMES: Dict[str, str] = {
    "skill_match": "skillMatch",
    "experience_match": "experienceMatch",
    "portfolio_depth": "portfolioDepth",
    "education_alignment": "educationAlignment",
    "github_activity": "githubActivity",
    "availability_fit": "availabilityFit",
}


@dataclass(frozen=True)
class MatchWeights:
    """
    Percent weight per component. Must total exactly 100.
    """
    skill_match: int = 35
    experience_match: int = 20
    portfolio_depth: int = 20
    education_alignment: int = 10
    github_activity: int = 10
    availability_fit: int = 5

    def __post_init__(self) -> None:
        for f in fields(self):
            v = getattr(self, f.name)
            if isinstance(v, bool) or not isinstance(v, int) or v < 0:
                raise ValueError(f"weight {f.name} must be a non-negative integer percent, got {v!r}")
        if self.total() != 100:
            raise ValueError(f"match weights must sum to 100, got {self.total()}")

    def total(self) -> int:
        return sum(getattr(self, name) for name in COMPONENTS)

    def to_dict(self) -> Dict[str, int]:
        return {WIRE_NAMES[name]: getattr(self, name) for name in COMPONENTS}


@dataclass(frozen=True)
class ComponentBreakdown:
    skill_match: int
    experience_match: int
    portfolio_depth: int
    education_alignment: int
    github_activity: int
    availability_fit: int

    def items(self) -> Tuple[Tuple[str, int], ...]:
        return tuple((name, getattr(self, name)) for name in COMPONENTS)

    def to_dict(self) -> Dict[str, int]:
        return {WIRE_NAMES[name]: score for name, score in self.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComponentBreakdown":
        return cls(**{name: int(data.get(WIRE_NAMES[name], 0)) for name in COMPONENTS})


@dataclass(frozen=True)
class MatchResult:
    candidate_id: str
    overall_score: int
    breakdown: ComponentBreakdown
    strengths: Tuple[str, ...]
    missing_skills: FrozenSet[str]
    explanation: str
    # Explainability payload (stable, deterministic)
    matching_skills: Tuple[str, ...] = ()
    weights: MatchWeights = MatchWeights()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidateId": self.candidate_id,
            "overallScore": self.overall_score,
            "breakdown": self.breakdown.to_dict(),
            "strengths": list(self.strengths),
            "missingSkills": sorted(self.missing_skills),
            "matchingSkills": list(self.matching_skills),
            "explanation": self.explanation,
            "weights": self.weights.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchResult":
        raw_weights = data.get("weights")
        weights = (
            MatchWeights(**{name: int(raw_weights[WIRE_NAMES[name]]) for name in COMPONENTS})
            if raw_weights
            else MatchWeights()
        )
        return cls(
            candidate_id=str(data["candidateId"]),
            overall_score=int(data["overallScore"]),
            breakdown=ComponentBreakdown.from_dict(data.get("breakdown") or {}),
            strengths=tuple(data.get("strengths") or ()),
            missing_skills=frozenset(data.get("missingSkills") or ()),
            explanation=data.get("explanation") or "",
            matching_skills=tuple(data.get("matchingSkills") or ()),
            weights=weights,
        )
