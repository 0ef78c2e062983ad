# talentmatch/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

# --- Storage ---

# Base directory for jobs.json, candidates.json and shortlists/<job_id>.json
TALENTMATCH_DATA_DIR: str = os.environ.get("TALENTMATCH_DATA_DIR", "").strip() or ".talentmatch"

# --- Matching ---

# Used when a job record has no maxCandidates of its own (source default: 10)
DEFAULT_MAX_CANDIDATES = 10

# How many times a regenerate is re-run after a stale-write conflict
DEFAULT_CONFLICT_RETRIES = 2

# --- Logging ---

TALENTMATCH_LOG_LEVEL: str = os.environ.get("TALENTMATCH_LOG_LEVEL", "INFO").strip().upper() or "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class MatchingConfig:
    data_dir: Path
    default_max_candidates: int
    conflict_retries: int
    log_level: str


def load_matching_config() -> MatchingConfig:
    return MatchingConfig(
        data_dir=Path(os.getenv("TALENTMATCH_DATA_DIR", "").strip() or TALENTMATCH_DATA_DIR),
        default_max_candidates=max(1, _env_int("TALENTMATCH_DEFAULT_MAX_CANDIDATES", DEFAULT_MAX_CANDIDATES)),
        conflict_retries=max(0, _env_int("TALENTMATCH_CONFLICT_RETRIES", DEFAULT_CONFLICT_RETRIES)),
        log_level=os.getenv("TALENTMATCH_LOG_LEVEL", "").strip().upper() or TALENTMATCH_LOG_LEVEL,
    )


def configure_logging(level: str | None = None) -> None:
    """Entry points call this once; library modules only create loggers."""
    logging.basicConfig(
        level=getattr(logging, (level or TALENTMATCH_LOG_LEVEL), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
