from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from talentmatch.models import CandidateSnapshot, JobRequirement

from .scoring import (
    availability_fit_score,
    clamp_score,
    education_alignment_score,
    experience_match_score,
    github_activity_score,
    portfolio_depth_score,
    skill_match_score,
)
from .text import label_index
from .types import COMPONENTS, ComponentBreakdown, MatchResult, MatchWeights


DEFAULT_WEIGHTS = MatchWeights()

STRENGTH_THRESHOLD = 80
MAX_STRENGTHS = 3

STRENGTH_LABELS = {
    "skill_match": "Strong skill alignment",
    "experience_match": "Meets experience requirement",
    "portfolio_depth": "Deep portfolio of projects",
    "education_alignment": "Education fits the preference",
    "github_activity": "Active GitHub contributor",
    "availability_fit": "Availability fits the role",
}

# (floor, label), checked top-down
TIERS: Tuple[Tuple[int, str], ...] = (
    (85, "Excellent"),
    (70, "Good"),
    (50, "Fair"),
    (0, "Weak"),
)


def tier_for(score: int) -> str:
    for floor, label in TIERS:
        if score >= floor:
            return label
    return TIERS[-1][1]


def compute_breakdown(job: JobRequirement, candidate: CandidateSnapshot) -> ComponentBreakdown:
    return ComponentBreakdown(
        skill_match=skill_match_score(job.required_skills, candidate.skills),
        experience_match=experience_match_score(job.min_years_experience, candidate.years_experience),
        portfolio_depth=portfolio_depth_score(candidate),
        education_alignment=education_alignment_score(job.education_preference, candidate.education_level),
        github_activity=github_activity_score(candidate),
        availability_fit=availability_fit_score(job.availability, candidate.availability),
    )


def weighted_overall(breakdown: ComponentBreakdown, weights: MatchWeights) -> int:
    # Integer percents keep the sum exact before the single rounding step.
    total = sum(score * getattr(weights, name) for name, score in breakdown.items())
    return clamp_score(total / 100.0)


def pick_strengths(breakdown: ComponentBreakdown) -> Tuple[str, ...]:
    """
    Up to MAX_STRENGTHS components scoring >= STRENGTH_THRESHOLD, best first.
    Equal scores keep component order (sort is stable).
    """
    strong = [(name, score) for name, score in breakdown.items() if score >= STRENGTH_THRESHOLD]
    strong.sort(key=lambda item: item[1], reverse=True)
    return tuple(STRENGTH_LABELS[name] for name, _ in strong[:MAX_STRENGTHS])


def build_explanation(overall: int, strengths: Sequence[str]) -> str:
    lead = strengths[0] if strengths else f"No component scored {STRENGTH_THRESHOLD} or above"
    return f"{tier_for(overall)} match ({overall}%): {lead}."


def split_skills(job: JobRequirement, candidate: CandidateSnapshot) -> Tuple[Tuple[str, ...], frozenset]:
    """
    Returns (matching, missing) using the job's spelling of each skill.
    """
    required = label_index(job.required_skills)
    have = label_index(candidate.skills)
    matching = tuple(sorted(display for key, display in required.items() if key in have))
    missing = frozenset(display for key, display in required.items() if key not in have)
    return matching, missing


def compute_match(
        job: JobRequirement,
        candidate: CandidateSnapshot,
        weights: MatchWeights = DEFAULT_WEIGHTS,
) -> MatchResult:
    """
    Score one candidate against one job. Pure: no I/O, no clock, no randomness.
    """
    breakdown = compute_breakdown(job, candidate)
    overall = weighted_overall(breakdown, weights)
    strengths = pick_strengths(breakdown)
    matching, missing = split_skills(job, candidate)

    return MatchResult(
        candidate_id=candidate.candidate_id,
        overall_score=overall,
        breakdown=breakdown,
        strengths=strengths,
        missing_skills=missing,
        explanation=build_explanation(overall, strengths),
        matching_skills=matching,
        weights=weights,
    )


def rank_key(result: Any) -> Tuple[int, int, str]:
    """
    Total order for ranking: overall desc, skill match desc, candidate id asc.
    Accepts anything with overall_score / breakdown / candidate_id (MatchResult
    or ShortlistEntry).
    """
    return (-result.overall_score, -result.breakdown.skill_match, result.candidate_id)


def rank_results(results: Sequence[MatchResult], top_n: int | None = None) -> List[MatchResult]:
    ranked = sorted(results, key=rank_key)
    return ranked if top_n is None else ranked[:top_n]


def rank_candidates(
        job: JobRequirement,
        candidates: Sequence[CandidateSnapshot],
        weights: MatchWeights = DEFAULT_WEIGHTS,
) -> List[MatchResult]:
    return rank_results([compute_match(job, c, weights) for c in candidates])


__all__ = [
    "COMPONENTS",
    "DEFAULT_WEIGHTS",
    "compute_breakdown",
    "compute_match",
    "rank_candidates",
    "rank_key",
    "rank_results",
    "tier_for",
]
