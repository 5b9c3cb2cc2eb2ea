from __future__ import annotations
import sys
from pathlib import Path
from typing import List, Optional

from .base import Runner


class ScriptRunner(Runner):
    """Runs ``scripts/run.sh <language>`` (``run.ps1`` through PowerShell on Windows).

    This is the only place that branches on the host platform.
    """

    def __init__(self, scripts_dir: Path, platform: Optional[str] = None):
        self.scripts_dir = scripts_dir
        self.platform = platform or sys.platform

    def command(self, language: str) -> List[str]:
        if self.platform == "win32":
            return ["powershell.exe", "-File", str(self.scripts_dir / "run.ps1"), language]
        return ["bash", str(self.scripts_dir / "run.sh"), language]
