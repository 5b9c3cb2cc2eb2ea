import sys
from pathlib import Path
from typing import Dict, List

import pytest

from langreactor.runners.base import Runner

FAKE_BENCH = Path(__file__).parent / "fake_bench.py"


class FakeRunner(Runner):
    """Maps a language token to fake_bench.py arguments instead of scripts/run.sh."""

    def __init__(self, modes: Dict[str, List[str]]):
        self.modes = modes

    def command(self, language: str) -> List[str]:
        return [sys.executable, str(FAKE_BENCH), *self.modes.get(language, ["ok"])]


@pytest.fixture
def pidfile(tmp_path: Path) -> Path:
    return tmp_path / "pids.txt"


@pytest.fixture
def fake_runner(pidfile: Path) -> FakeRunner:
    return FakeRunner({
        "python": ["ok"],
        "c": ["fail"],
        "go": ["silentfail"],
        "rust": ["sleep", "0.3"],
        "java": ["hang", str(pidfile)],
    })


@pytest.fixture
def collect():
    """Event sink; pass ``collect.append`` as the progress callback."""
    return []
