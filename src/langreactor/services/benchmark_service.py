from __future__ import annotations
import asyncio
from typing import Dict, Iterable, Optional

import structlog

from ..core.errors import BenchmarkTimeout, ExecutionError
from ..core.models import Job, JobResult, JobState, ProgressEvent
from ..core.utils import ensure_supported
from ..executor.base import Executor, ProgressCallback
from ..executor.process import ProcessExecutor
from ..runners.script_runner import ScriptRunner
from ..settings import DEFAULT_LANGUAGES, Settings
from .admission import AdmissionQueue

log = structlog.get_logger(__name__)


class BenchmarkService:
    """
    Glue between admission, execution and progress reporting:
    admit (maybe wait in line) -> run the external program -> always release.
    """

    def __init__(
        self,
        admission: AdmissionQueue,
        executor: Executor,
        languages: Optional[Iterable[str]] = None,
    ):
        self.admission = admission
        self.executor = executor
        self.languages = list(languages) if languages is not None else list(DEFAULT_LANGUAGES)

    @classmethod
    def from_settings(cls, s: Settings) -> "BenchmarkService":
        executor = ProcessExecutor(
            runner=ScriptRunner(s.resolved(s.scripts_dir)),
            cwd=s.project_root,
            timeout_s=s.timeout_s,
            heartbeat_s=s.heartbeat_s,
        )
        return cls(AdmissionQueue(s.max_concurrent), executor, s.supported_languages)

    async def run(self, language: str, on_progress: ProgressCallback) -> JobResult:
        job = Job(language=ensure_supported(language, self.languages))

        def on_queued(position: int) -> None:
            job.state = JobState.QUEUED
            on_progress(ProgressEvent.queued(language, position))

        await self.admission.admit(job.job_id, language, on_queued=on_queued)
        job.state = JobState.RUNNING
        try:
            result = await self.executor.execute(language, on_progress)
            job.state = JobState.SUCCEEDED
            return result
        except BenchmarkTimeout:
            job.state = JobState.TIMED_OUT
            raise
        except ExecutionError:
            job.state = JobState.FAILED
            raise
        except asyncio.CancelledError:
            job.state = JobState.CANCELLED
            log.info("job_cancelled", job_id=job.job_id, language=language)
            raise
        finally:
            self.admission.release(job.job_id)
            log.info("job_released", job_id=job.job_id, language=language, state=job.state.value)

    def get_status(self) -> Dict:
        snap = self.admission.snapshot()
        return {
            "running_jobs": snap.running_jobs,
            "queued_count": snap.queued_count,
            "concurrency_limit": snap.concurrency_limit,
            "available_slots": snap.available_slots,
        }
