from __future__ import annotations

import math
from typing import Any, Dict, FrozenSet, Iterable, Optional

from talentmatch.models import EducationLevel, parse_education

from .text import label_index, normalize_label

# Every function here is total: bad or missing input degrades to a
# conservative score instead of raising. Scores are integers in [0, 100].

_EDUCATION_RANK = {
    EducationLevel.STUDENT: 1,
    EducationLevel.GRADUATE: 2,
    EducationLevel.PHD: 3,
}

# requirement -> candidate availabilities that can still fill it
AVAILABILITY_COMPATIBILITY: Dict[str, FrozenSet[str]] = {
    "full-time": frozenset({"contract"}),
    "part-time": frozenset({"full-time", "contract", "6 months", "3 months", "months"}),
    "contract": frozenset({"full-time", "part-time", "6 months", "3 months", "months"}),
    "freelance": frozenset({"contract", "part-time"}),
    "internship": frozenset({"3 months", "6 months", "months", "part-time"}),
}

EXACT_AVAILABILITY_SCORE = 100
COMPATIBLE_AVAILABILITY_SCORE = 75
INCOMPATIBLE_AVAILABILITY_SCORE = 25


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def as_number(value: Any) -> float:
    """Coerce to a finite float; anything else is treated as missing (0)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    try:
        number = float(value)
    except OverflowError:
        # ints beyond float range
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def clamp_score(x: float) -> int:
    return max(0, min(100, round_half_up(as_number(x))))


def skill_match_score(required: Iterable[str], candidate_skills: Iterable[str]) -> int:
    # Normalized by the required count (not a Jaccard union) so extra skills never hurt.
    req = label_index(required)
    if not req:
        return 100
    have = label_index(candidate_skills)
    matched = sum(1 for k in req if k in have)
    return clamp_score(100.0 * matched / len(req))


def experience_match_score(min_years: Any, candidate_years: Any) -> int:
    needed = as_number(min_years)
    if needed <= 0:
        return 100
    have = max(0.0, as_number(candidate_years))
    return clamp_score(min(have / needed, 1.0) * 100.0)


def portfolio_depth_score(candidate: Any) -> int:
    return clamp_score(as_number(getattr(candidate, "portfolio_depth", None)))


def education_alignment_score(preference: Any, candidate_level: Any) -> int:
    pref = parse_education(preference)
    if pref is None or pref == EducationLevel.ANY:
        return 100
    level = parse_education(candidate_level)
    have = _EDUCATION_RANK.get(level, 0) if level is not None else 0
    want = _EDUCATION_RANK[pref]
    if have == want:
        return 100
    if have > want:
        return 90
    return 50


def github_activity_score(candidate: Any) -> int:
    # Opaque composite from the portfolio analyzer; passed through.
    return clamp_score(as_number(getattr(candidate, "github_activity", None)))


def availability_fit_score(required: Optional[str], candidate_availability: Optional[str]) -> int:
    want = normalize_label(required)
    if not want:
        return EXACT_AVAILABILITY_SCORE
    have = normalize_label(candidate_availability)
    if have == want:
        return EXACT_AVAILABILITY_SCORE
    if have and have in AVAILABILITY_COMPATIBILITY.get(want, frozenset()):
        return COMPATIBLE_AVAILABILITY_SCORE
    return INCOMPATIBLE_AVAILABILITY_SCORE
