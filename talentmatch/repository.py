from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol

from talentmatch.config import load_matching_config
from talentmatch.errors import ConflictError
from talentmatch.models import JobRequirement, parse_dt
from talentmatch.shortlist import Shortlist

logger = logging.getLogger(__name__)


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _best_effort_lockdown_file_permissions(path: Path) -> None:
    """
    Best-effort privacy: on Unix, set 600. On Windows, no-op.
    """
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


def _read_json(path: Path) -> Any:
    if not path.exists():
        return None
    raw_text = path.read_text(encoding="utf-8").strip()
    if not raw_text:
        return None
    return json.loads(raw_text)


def _atomic_write_json(path: Path, payload: Any) -> None:
    """
    Write to a temp file next to the target, then os.replace() it in.
    Readers see either the old document or the new one, never a partial one.
    """
    _ensure_dir(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    _best_effort_lockdown_file_permissions(path)


class JobRepository(Protocol):
    def get_job(self, job_id: str) -> Optional[JobRequirement]:
        ...


class CandidateRepository(Protocol):
    def iter_published_candidates(self) -> Iterable[Dict[str, Any]]:
        """
        Raw candidate records; parsing happens in the caller so one bad record
        can be skipped without losing the rest.
        """
        ...


class ShortlistRepository(Protocol):
    def load_shortlist(self, job_id: str) -> Optional[Shortlist]:
        ...

    def save_shortlist(self, shortlist: Shortlist, *, expected_last_updated_at: Optional[datetime]) -> None:
        """
        Replace the whole stored document.
        Raises ConflictError if the stored lastUpdatedAt is not the expected one
        (None means no document is expected to exist yet).
        """
        ...


class JsonJobRepository:
    """
    <base_dir>/jobs.json -> { "<job_id>": {jobId, requiredSkills, minYearsExperience, ...}, ... }
    """

    def __init__(self, base_dir: Path, *, default_max_candidates: int = 10) -> None:
        self.base_dir = base_dir
        self.jobs_path = base_dir / "jobs.json"
        self.default_max_candidates = default_max_candidates
        _ensure_dir(self.base_dir)

    def get_job(self, job_id: str) -> Optional[JobRequirement]:
        data = _read_json(self.jobs_path) or {}
        record = data.get(job_id)
        if record is None:
            return None
        record = dict(record)
        record["jobId"] = job_id
        return JobRequirement.from_dict(record, default_max_candidates=self.default_max_candidates)

    def put_job(self, job: JobRequirement) -> None:
        data = _read_json(self.jobs_path) or {}
        data[job.job_id] = job.to_dict()
        _atomic_write_json(self.jobs_path, data)


class JsonCandidateRepository:
    """
    <base_dir>/candidates.json -> [ {candidateId, skills, yearsOfExperience, ..., published}, ... ]
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self.candidates_path = base_dir / "candidates.json"
        _ensure_dir(self.base_dir)

    def iter_published_candidates(self) -> Iterator[Dict[str, Any]]:
        data = _read_json(self.candidates_path) or []
        for record in data:
            # Non-mappings are passed through so the caller can report them.
            if isinstance(record, dict) and not record.get("published", False):
                continue
            yield record

    def put_candidates(self, records: List[Dict[str, Any]]) -> None:
        _atomic_write_json(self.candidates_path, records)


class JsonShortlistRepository:
    """
    <base_dir>/shortlists/<job_id>.json -> Shortlist.to_dict()

    Saves are compare-and-swap on lastUpdatedAt. The lock makes the
    compare + replace atomic for callers sharing this repository object only.
    Writers in other processes are caught when their save lands after ours,
    but a save racing between our read and os.replace() can still be lost.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self.shortlists_dir = base_dir / "shortlists"
        self._lock = threading.Lock()
        _ensure_dir(self.shortlists_dir)

    def _path(self, job_id: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in job_id)
        return self.shortlists_dir / f"{safe}.json"

    def load_shortlist(self, job_id: str) -> Optional[Shortlist]:
        data = _read_json(self._path(job_id))
        if data is None:
            return None
        return Shortlist.from_dict(data)

    def save_shortlist(self, shortlist: Shortlist, *, expected_last_updated_at: Optional[datetime]) -> None:
        path = self._path(shortlist.job_id)
        with self._lock:
            current = _read_json(path)
            stored = parse_dt(current.get("lastUpdatedAt")) if current else None
            if stored != expected_last_updated_at:
                raise ConflictError(
                    f"shortlist for job {shortlist.job_id} changed since it was read "
                    f"(expected lastUpdatedAt={expected_last_updated_at}, found {stored})"
                )
            _atomic_write_json(path, shortlist.to_dict())
            logger.debug("Wrote shortlist for job %s (%d entries)", shortlist.job_id, len(shortlist))


def default_repo_dir() -> Path:
    """
    Default local persistence dir (TALENTMATCH_DATA_DIR).
    """
    return load_matching_config().data_dir
