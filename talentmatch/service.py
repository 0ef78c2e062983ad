from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Set, Tuple

from talentmatch.errors import ConflictError, MalformedCandidateError, NotFoundError
from talentmatch.matching.engine import DEFAULT_WEIGHTS, compute_match
from talentmatch.matching.types import MatchResult, MatchWeights
from talentmatch.models import CandidateSnapshot, JobRequirement, ShortlistStatus, utc_now
from talentmatch.repository import CandidateRepository, JobRepository, ShortlistRepository
from talentmatch.shortlist import Shortlist, ShortlistEntry, set_status, upsert_batch

logger = logging.getLogger(__name__)


class HireNotifier(Protocol):
    def notify_hired(self, job: JobRequirement, entry: ShortlistEntry) -> None:
        ...


class LoggingHireNotifier:
    """Default notifier: records the hire in the log and nothing else."""

    def notify_hired(self, job: JobRequirement, entry: ShortlistEntry) -> None:
        logger.info("Candidate %s hired for job %s", entry.candidate_id, job.job_id)


class MatchingService:
    """
    Regenerates and mutates per-job shortlists.

    Regenerate and status changes for the same job run one at a time in this
    process (per-job lock). Locks are only created for jobs that exist. Every
    save is also checked against the lastUpdatedAt that was read, which
    catches most stale writers from other processes; that check is not atomic
    across processes.
    """

    def __init__(
            self,
            *,
            jobs: JobRepository,
            candidates: CandidateRepository,
            shortlists: ShortlistRepository,
            weights: MatchWeights = DEFAULT_WEIGHTS,
            notifier: Optional[HireNotifier] = None,
            clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.jobs = jobs
        self.candidates = candidates
        self.shortlists = shortlists
        self.weights = weights
        self.notifier = notifier or LoggingHireNotifier()
        self.clock = clock
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, job_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(job_id)
            if lock is None:
                lock = self._locks[job_id] = threading.Lock()
            return lock

    def _require_job(self, job_id: str) -> JobRequirement:
        job = self.jobs.get_job(job_id)
        if job is None:
            raise NotFoundError(f"job {job_id} not found")
        return job

    def score_candidates(self, job: JobRequirement) -> Tuple[List[MatchResult], Set[str]]:
        """
        Score every published candidate. A record that cannot be read as a
        snapshot is logged and skipped; the rest of the batch carries on.

        Returns the results and the ids of skipped records that still name
        their candidate.
        """
        results: List[MatchResult] = []
        skipped_ids: Set[str] = set()
        skipped = 0
        for record in self.candidates.iter_published_candidates():
            try:
                snapshot = CandidateSnapshot.from_dict(record)
            except MalformedCandidateError as exc:
                skipped += 1
                if exc.candidate_id:
                    skipped_ids.add(exc.candidate_id)
                logger.warning("Skipping malformed candidate for job %s: %s", job.job_id, exc)
                continue
            results.append(compute_match(job, snapshot, self.weights))
        logger.info("Scored %d candidates for job %s (%d skipped)", len(results), job.job_id, skipped)
        return results, skipped_ids

    def regenerate_shortlist(self, job_id: str) -> Shortlist:
        """
        Rescore all candidates for a job and replace its stored shortlist.
        Either the whole new document is saved or nothing is.
        Candidates whose records are now malformed lose their entries.
        """
        start = time.time()
        job = self._require_job(job_id)
        with self._lock_for(job_id):
            results, skipped_ids = self.score_candidates(job)

            existing = self.shortlists.load_shortlist(job_id)
            expected = existing.last_updated_at if existing is not None else None
            base = existing if existing is not None else Shortlist(job_id=job_id)

            updated = upsert_batch(base, results, job.max_candidates, exclude=skipped_ids, now=self.clock())
            try:
                self.shortlists.save_shortlist(updated, expected_last_updated_at=expected)
            except ConflictError:
                logger.warning("Shortlist for job %s was changed by another writer; regenerate discarded", job_id)
                raise

        logger.info(
            "Regenerated shortlist for job %s: %d entries (capacity %d) in %dms",
            job_id,
            len(updated),
            job.max_candidates,
            int((time.time() - start) * 1000),
        )
        return updated

    def regenerate_with_retry(self, job_id: str, *, retries: int = 2) -> Shortlist:
        attempt = 0
        while True:
            try:
                return self.regenerate_shortlist(job_id)
            except ConflictError:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.info("Retrying regenerate for job %s (attempt %d of %d)", job_id, attempt, retries)

    def get_shortlist(self, job_id: str) -> Shortlist:
        self._require_job(job_id)
        return self.shortlists.load_shortlist(job_id) or Shortlist(job_id=job_id)

    def set_status(
            self,
            job_id: str,
            candidate_id: str,
            status: ShortlistStatus | str,
            notes: Optional[str] = None,
    ) -> ShortlistEntry:
        job = self._require_job(job_id)
        return self._set_status(job, candidate_id, status, notes)

    def _set_status(
            self,
            job: JobRequirement,
            candidate_id: str,
            status: ShortlistStatus | str,
            notes: Optional[str],
    ) -> ShortlistEntry:
        job_id = job.job_id
        with self._lock_for(job_id):
            shortlist = self.shortlists.load_shortlist(job_id)
            if shortlist is None:
                raise NotFoundError(f"job {job_id} has no shortlist yet")

            expected = shortlist.last_updated_at
            entry = set_status(shortlist, candidate_id, status, notes, now=self.clock())
            self.shortlists.save_shortlist(shortlist, expected_last_updated_at=expected)

        logger.info("Job %s: candidate %s -> %s", job_id, candidate_id, entry.status.value)
        return entry

    def hire_candidate(self, job_id: str, candidate_id: str, notes: Optional[str] = None) -> ShortlistEntry:
        job = self._require_job(job_id)
        entry = self._set_status(job, candidate_id, ShortlistStatus.HIRED, notes)
        try:
            self.notifier.notify_hired(job, entry)
        except Exception as exc:
            # The hire is already saved; a failed notification must not undo it.
            logger.warning("Hire notification failed for job %s, candidate %s: %s", job_id, candidate_id, exc)
        return entry
