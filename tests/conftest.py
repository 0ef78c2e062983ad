import json
import shutil
from pathlib import Path
import pytest

from talentmatch.repository import JsonCandidateRepository, JsonJobRepository, JsonShortlistRepository
from talentmatch.service import MatchingService

# Path to tests/fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """
    Exposes the fixtures directory in case a test needs direct file access.
    """
    return FIXTURES_DIR


@pytest.fixture
def load_text(fixtures_dir):
    """
    Fixture that returns a function: load_text("file.ext") -> str
    """
    def _load(name: str) -> str:
        return (fixtures_dir / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def load_json(load_text):
    """
    Fixture that returns a function: load_json("file.json") -> dict
    Built on load_text so there's one source of truth for file IO.
    """
    def _load(name: str):
        return json.loads(load_text(name))
    return _load


@pytest.fixture
def data_dir(tmp_path: Path, fixtures_dir: Path) -> Path:
    """
    A throwaway data dir seeded with jobs.json + candidates.json from fixtures.
    """
    for name in ("jobs.json", "candidates.json"):
        shutil.copy(fixtures_dir / name, tmp_path / name)
    return tmp_path


@pytest.fixture
def service(data_dir: Path) -> MatchingService:
    return MatchingService(
        jobs=JsonJobRepository(data_dir),
        candidates=JsonCandidateRepository(data_dir),
        shortlists=JsonShortlistRepository(data_dir),
    )
