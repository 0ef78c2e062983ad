from .engine import DEFAULT_WEIGHTS, compute_match, rank_candidates, rank_key, rank_results
from .types import ComponentBreakdown, MatchResult, MatchWeights

__all__ = [
    "DEFAULT_WEIGHTS",
    "compute_match",
    "rank_candidates",
    "rank_key",
    "rank_results",
    "ComponentBreakdown",
    "MatchResult",
    "MatchWeights",
]
