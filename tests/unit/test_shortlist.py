from datetime import datetime, timedelta, timezone

import pytest

from talentmatch.errors import NotFoundError
from talentmatch.matching.types import ComponentBreakdown, MatchResult
from talentmatch.models import ShortlistStatus
from talentmatch.shortlist import (
    Shortlist,
    ShortlistEntry,
    active_entries,
    entries_by_status,
    set_status,
    upsert_batch,
)

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=1)


def _result(candidate_id: str, overall: int, skill: int = 50) -> MatchResult:
    return MatchResult(
        candidate_id=candidate_id,
        overall_score=overall,
        breakdown=ComponentBreakdown(
            skill_match=skill,
            experience_match=50,
            portfolio_depth=50,
            education_alignment=50,
            github_activity=50,
            availability_fit=50,
        ),
        strengths=(),
        missing_skills=frozenset(),
        explanation=f"score {overall}",
    )


def test_upsert_into_empty_sets_both_timestamps():
    sl = upsert_batch(Shortlist(job_id="j1"), [_result("a", 80), _result("b", 90)], 10, now=T0)

    assert [e.candidate_id for e in sl.entries] == ["b", "a"]
    assert all(e.status == ShortlistStatus.SHORTLISTED for e in sl.entries)
    assert all(e.added_at == T0 for e in sl.entries)
    assert sl.generated_at == T0
    assert sl.last_updated_at == T0


def test_empty_batch_does_not_set_generated_at():
    sl = upsert_batch(Shortlist(job_id="j1"), [], 5, now=T0)
    assert len(sl) == 0
    assert sl.generated_at is None
    assert sl.last_updated_at == T0


def test_upsert_keeps_status_notes_and_added_at_but_replaces_scores():
    first = upsert_batch(Shortlist(job_id="j1"), [_result("a", 60), _result("b", 70)], 10, now=T0)
    set_status(first, "a", "interviewed", "great call", now=T0)

    second = upsert_batch(first, [_result("a", 95), _result("c", 50)], 10, now=T1)

    a = second.get("a")
    assert a.overall_score == 95
    assert a.status == ShortlistStatus.INTERVIEWED
    assert a.notes == "great call"
    assert a.added_at == T0
    assert second.get("c").added_at == T1
    assert second.generated_at == T0
    assert second.last_updated_at == T1
    assert [e.candidate_id for e in second.entries] == ["a", "b", "c"]


def test_upsert_does_not_touch_the_existing_shortlist():
    first = upsert_batch(Shortlist(job_id="j1"), [_result("a", 60)], 10, now=T0)
    upsert_batch(first, [_result("a", 99)], 10, now=T1)
    assert first.get("a").overall_score == 60
    assert first.last_updated_at == T0


def test_truncation_evicts_lowest_even_when_hired():
    sl = upsert_batch(Shortlist(job_id="j1"), [_result("a", 40), _result("b", 70)], 2, now=T0)
    set_status(sl, "a", ShortlistStatus.HIRED, now=T0)

    sl = upsert_batch(sl, [_result("c", 90)], 2, now=T1)

    assert [e.candidate_id for e in sl.entries] == ["c", "b"]
    assert sl.get("a") is None


def test_equal_scores_break_on_skill_then_candidate_id():
    results = [_result("b", 80, skill=60), _result("c", 80, skill=90), _result("a", 80, skill=60)]
    sl = upsert_batch(Shortlist(job_id="j1"), results, 10, now=T0)
    assert [e.candidate_id for e in sl.entries] == ["c", "a", "b"]


def test_upsert_drops_excluded_existing_entries():
    first = upsert_batch(Shortlist(job_id="j1"), [_result("a", 95), _result("b", 70)], 10, now=T0)
    set_status(first, "a", "interviewed", now=T0)

    second = upsert_batch(first, [_result("b", 70)], 10, exclude={"a"}, now=T1)

    assert [e.candidate_id for e in second.entries] == ["b"]
    assert first.get("a") is not None


def test_duplicate_results_keep_the_better_ranked_one():
    results = [_result("a", 90, skill=70), _result("a", 40), _result("a", 90, skill=20)]
    sl = upsert_batch(Shortlist(job_id="j1"), results, 10, now=T0)

    assert len(sl) == 1
    assert sl.get("a").overall_score == 90
    assert sl.get("a").breakdown.skill_match == 70


def test_upsert_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        upsert_batch(Shortlist(job_id="j1"), [], 0)


def test_set_status_any_transition_allowed():
    sl = upsert_batch(Shortlist(job_id="j1"), [_result("a", 50)], 10, now=T0)
    for status in ("hired", "shortlisted", "rejected", "contacted"):
        entry = set_status(sl, "a", status, now=T1)
        assert entry.status.value == status


def test_set_status_updates_notes_only_when_given_and_bumps_timestamp():
    sl = upsert_batch(Shortlist(job_id="j1"), [_result("a", 50)], 10, now=T0)
    set_status(sl, "a", "contacted", "left voicemail", now=T0)
    entry = set_status(sl, "a", "interviewed", now=T0)

    assert entry.notes == "left voicemail"
    # same clock reading still moves lastUpdatedAt forward
    assert sl.last_updated_at > T0


def test_set_status_unknown_candidate_raises_not_found():
    sl = upsert_batch(Shortlist(job_id="j1"), [_result("a", 50)], 10, now=T0)
    with pytest.raises(NotFoundError):
        set_status(sl, "nobody", "hired")


def test_set_status_unknown_status_raises_value_error():
    sl = upsert_batch(Shortlist(job_id="j1"), [_result("a", 50)], 10, now=T0)
    with pytest.raises(ValueError):
        set_status(sl, "a", "promoted")


def test_entries_by_status_and_active_entries():
    sl = upsert_batch(Shortlist(job_id="j1"), [_result("a", 50), _result("b", 60), _result("c", 70)], 10, now=T0)
    set_status(sl, "b", "rejected")

    assert [e.candidate_id for e in entries_by_status(sl, "rejected")] == ["b"]
    assert [e.candidate_id for e in active_entries(sl)] == ["c", "a"]


def test_summary_and_serialisation_round_trip():
    sl = upsert_batch(Shortlist(job_id="j1"), [_result("a", 50), _result("b", 61)], 10, now=T0)
    set_status(sl, "a", "contacted", "emailed", now=T1)

    d = sl.to_dict()
    assert d["summary"] == {"totalCandidates": 2, "averageMatchScore": 56, "topMatchScore": 61}
    assert d["entries"][1]["status"] == "contacted"
    assert d["entries"][0]["breakdown"]["skillMatch"] == 50

    restored = Shortlist.from_dict(d)
    assert restored == sl


def test_empty_summary():
    assert Shortlist(job_id="j1").summary() == {"totalCandidates": 0, "averageMatchScore": 0, "topMatchScore": 0}


def test_entry_from_dict_defaults_status():
    entry = ShortlistEntry.from_dict(_result("a", 50).to_dict())
    assert entry.status == ShortlistStatus.SHORTLISTED
