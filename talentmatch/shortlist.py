from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from talentmatch.errors import NotFoundError
from talentmatch.matching.engine import rank_key
from talentmatch.matching.types import ComponentBreakdown, MatchResult
from talentmatch.models import ShortlistStatus, parse_dt, utc_now


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def _advance(previous: Optional[datetime], now: datetime) -> datetime:
    """
    lastUpdatedAt doubles as the optimistic-write token, so it must move
    forward on every mutation even when two land in the same clock tick.
    """
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def coerce_status(value: Any) -> ShortlistStatus:
    if isinstance(value, ShortlistStatus):
        return value
    try:
        return ShortlistStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in ShortlistStatus)
        raise ValueError(f"unknown shortlist status {value!r} (expected one of: {allowed})") from None


@dataclass
class ShortlistEntry:
    """
    A scored candidate on a job's shortlist.

    The match fields are replaced on every regenerate; status, notes and
    added_at belong to the recruiter and survive regeneration.
    """
    match: MatchResult
    status: ShortlistStatus = ShortlistStatus.SHORTLISTED
    notes: Optional[str] = None
    added_at: datetime = field(default_factory=utc_now)

    @property
    def candidate_id(self) -> str:
        return self.match.candidate_id

    @property
    def overall_score(self) -> int:
        return self.match.overall_score

    @property
    def breakdown(self) -> ComponentBreakdown:
        return self.match.breakdown

    def to_dict(self) -> Dict[str, Any]:
        d = self.match.to_dict()
        d["status"] = self.status.value
        d["notes"] = self.notes
        d["addedAt"] = self.added_at.isoformat()
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShortlistEntry":
        return cls(
            match=MatchResult.from_dict(data),
            status=coerce_status(data.get("status") or ShortlistStatus.SHORTLISTED.value),
            notes=data.get("notes"),
            added_at=parse_dt(data.get("addedAt")) or utc_now(),
        )


@dataclass
class Shortlist:
    job_id: str
    entries: List[ShortlistEntry] = field(default_factory=list)
    generated_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, candidate_id: str) -> Optional[ShortlistEntry]:
        for e in self.entries:
            if e.candidate_id == candidate_id:
                return e
        return None

    def summary(self) -> Dict[str, int]:
        scores = [e.overall_score for e in self.entries]
        return {
            "totalCandidates": len(scores),
            "averageMatchScore": int(sum(scores) / len(scores) + 0.5) if scores else 0,
            "topMatchScore": max(scores) if scores else 0,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobId": self.job_id,
            "entries": [e.to_dict() for e in self.entries],
            "generatedAt": _iso(self.generated_at),
            "lastUpdatedAt": _iso(self.last_updated_at),
            "summary": self.summary(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Shortlist":
        return cls(
            job_id=str(data["jobId"]),
            entries=[ShortlistEntry.from_dict(e) for e in data.get("entries") or []],
            generated_at=parse_dt(data.get("generatedAt")),
            last_updated_at=parse_dt(data.get("lastUpdatedAt")),
        )


def upsert_batch(
        existing: Shortlist,
        results: Iterable[MatchResult],
        max_candidates: int,
        *,
        exclude: Iterable[str] = (),
        now: Optional[datetime] = None,
) -> Shortlist:
    """
    Merge fresh match results into a shortlist and return a NEW shortlist.
    `existing` is not modified.

    - known candidates get the new scores but keep status / notes / added_at
    - new candidates enter as `shortlisted`
    - candidate ids in `exclude` are dropped from the existing entries
    - a candidate appearing twice in `results` keeps its better-ranked result
    - the merged list is ranked and cut to max_candidates; anything below the
      cut is evicted whatever its status (hired included)
    """
    if max_candidates < 1:
        raise ValueError(f"max_candidates must be a positive integer, got {max_candidates}")
    now = now or utc_now()

    fresh: Dict[str, MatchResult] = {}
    for result in results:
        seen = fresh.get(result.candidate_id)
        if seen is None or rank_key(result) < rank_key(seen):
            fresh[result.candidate_id] = result

    dropped = set(exclude)
    merged: Dict[str, ShortlistEntry] = {
        e.candidate_id: replace(e) for e in existing.entries if e.candidate_id not in dropped
    }
    for result in fresh.values():
        current = merged.get(result.candidate_id)
        if current is not None:
            current.match = result
        else:
            merged[result.candidate_id] = ShortlistEntry(match=result, added_at=now)

    ranked = sorted(merged.values(), key=rank_key)[:max_candidates]

    generated_at = existing.generated_at
    if generated_at is None and ranked:
        generated_at = now

    return Shortlist(
        job_id=existing.job_id,
        entries=ranked,
        generated_at=generated_at,
        last_updated_at=_advance(existing.last_updated_at, now),
    )


def set_status(
        shortlist: Shortlist,
        candidate_id: str,
        new_status: Any,
        notes: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
) -> ShortlistEntry:
    """
    Change one entry's status in place. Any status may follow any other.
    Notes are only replaced when given.
    """
    status = coerce_status(new_status)
    entry = shortlist.get(candidate_id)
    if entry is None:
        raise NotFoundError(f"candidate {candidate_id} is not on the shortlist for job {shortlist.job_id}")

    entry.status = status
    if notes is not None:
        entry.notes = notes
    shortlist.last_updated_at = _advance(shortlist.last_updated_at, now or utc_now())
    return entry


def entries_by_status(shortlist: Shortlist, status: Any) -> List[ShortlistEntry]:
    wanted = coerce_status(status)
    return [e for e in shortlist.entries if e.status == wanted]


def active_entries(shortlist: Shortlist) -> List[ShortlistEntry]:
    return entries_by_status(shortlist, ShortlistStatus.SHORTLISTED)
