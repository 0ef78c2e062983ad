"""
Seeded randomized checks over the matching engine and shortlist merge.
Cases are generated up front from fixed seeds so every run sees the same inputs.
"""
import random
from datetime import datetime, timedelta, timezone

import pytest

from talentmatch.matching.engine import compute_match, rank_key
from talentmatch.matching.types import COMPONENTS
from talentmatch.models import CandidateSnapshot, EducationLevel, JobRequirement
from talentmatch.shortlist import Shortlist, upsert_batch

SKILL_POOL = ["python", "react", "sql", "go", "rust", "aws", "css", "docker", "k8s", "java"]
AVAILABILITY = ["Full-time", "Part-time", "Contract", "3 Months", "6 Months", "Months", "", None]
EDUCATION = ["student", "graduate", "phd", "any", "", None, "PhD"]
T0 = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _random_job(rng: random.Random, job_id: str = "job") -> JobRequirement:
    return JobRequirement(
        job_id=job_id,
        required_skills=set(rng.sample(SKILL_POOL, rng.randint(0, 5))),
        min_years_experience=rng.choice([0, 1, 2.5, 4, 10]),
        education_preference=rng.choice(EDUCATION),
        availability=rng.choice(AVAILABILITY),
        max_candidates=rng.randint(1, 8),
    )


def _random_candidate(rng: random.Random, candidate_id: str) -> CandidateSnapshot:
    return CandidateSnapshot(
        candidate_id=candidate_id,
        skills=set(rng.sample(SKILL_POOL, rng.randint(0, 7))),
        years_experience=rng.choice([0, 0.5, 1, 3, 7, 20]),
        education_level=rng.choice(EDUCATION),
        availability=rng.choice(AVAILABILITY),
        portfolio_depth=rng.uniform(-20, 130),
        github_activity=rng.choice([0, 33.3, 50, 99.9, 100, 150]),
    )


def _cases(seed: int, n: int):
    rng = random.Random(seed)
    return [(_random_job(rng), _random_candidate(rng, f"c{i}")) for i in range(n)]


@pytest.mark.parametrize("job, candidate", _cases(seed=7, n=60))
def test_scores_are_bounded(job, candidate):
    result = compute_match(job, candidate)
    assert 0 <= result.overall_score <= 100
    for name in COMPONENTS:
        assert 0 <= getattr(result.breakdown, name) <= 100
    assert len(result.strengths) <= 3


@pytest.mark.parametrize("job, candidate", _cases(seed=11, n=30))
def test_compute_match_is_deterministic(job, candidate):
    assert compute_match(job, candidate) == compute_match(job, candidate)


@pytest.mark.parametrize("job, candidate", _cases(seed=13, n=30))
def test_all_required_skills_beats_none(job, candidate):
    if not job.required_skills:
        job = JobRequirement(job_id=job.job_id, required_skills={"python"}, max_candidates=job.max_candidates)
    with_all = CandidateSnapshot(
        candidate_id="all",
        skills=job.required_skills,
        years_experience=candidate.years_experience,
        education_level=candidate.education_level,
        availability=candidate.availability,
        portfolio_depth=candidate.portfolio_depth,
        github_activity=candidate.github_activity,
    )
    with_none = CandidateSnapshot(
        candidate_id="none",
        skills=set(),
        years_experience=candidate.years_experience,
        education_level=candidate.education_level,
        availability=candidate.availability,
        portfolio_depth=candidate.portfolio_depth,
        github_activity=candidate.github_activity,
    )
    assert compute_match(job, with_all).overall_score > compute_match(job, with_none).overall_score


@pytest.mark.parametrize("seed", range(15))
def test_shortlist_is_ordered_bounded_and_keeps_top_scorers(seed):
    rng = random.Random(seed)
    job = _random_job(rng)
    results = [compute_match(job, _random_candidate(rng, f"c{i:02d}")) for i in range(rng.randint(0, 20))]

    shortlist = upsert_batch(Shortlist(job_id=job.job_id), results, job.max_candidates, now=T0)

    scores = [e.overall_score for e in shortlist.entries]
    assert scores == sorted(scores, reverse=True)
    assert len(shortlist) <= job.max_candidates

    expected = sorted(results, key=rank_key)[: job.max_candidates]
    assert [e.candidate_id for e in shortlist.entries] == [r.candidate_id for r in expected]


@pytest.mark.parametrize("seed", range(10))
def test_regenerating_with_same_results_keeps_recruiter_fields(seed):
    rng = random.Random(seed)
    job = _random_job(rng)
    results = [compute_match(job, _random_candidate(rng, f"c{i}")) for i in range(10)]

    first = upsert_batch(Shortlist(job_id=job.job_id), results, job.max_candidates, now=T0)
    for e in first.entries:
        e.notes = f"note for {e.candidate_id}"

    second = upsert_batch(first, list(reversed(results)), job.max_candidates, now=T0 + timedelta(hours=1))

    assert [e.candidate_id for e in second.entries] == [e.candidate_id for e in first.entries]
    for before, after in zip(first.entries, second.entries):
        assert after.status == before.status
        assert after.notes == before.notes
        assert after.added_at == before.added_at
