from typing import Callable

from ..core.models import JobResult, ProgressEvent

ProgressCallback = Callable[[ProgressEvent], None]


class Executor:
    async def execute(self, language: str, on_progress: ProgressCallback) -> JobResult: ...
