import asyncio

import pytest
from structlog.testing import capture_logs

from langreactor.core.errors import InvalidLanguage, NonZeroExit
from langreactor.core.models import EventStatus, JobResult, ParsedResult, ProgressEvent
from langreactor.executor.base import Executor
from langreactor.executor.process import ProcessExecutor
from langreactor.services.admission import AdmissionQueue
from langreactor.services.benchmark_service import BenchmarkService
from langreactor.settings import Settings


class GatedExecutor(Executor):
    """Holds every job until the test opens its gate; tracks concurrency."""

    def __init__(self):
        self.gates = {}
        self.started = []
        self.active = 0
        self.peak = 0

    async def execute(self, language, on_progress):
        gate = self.gates.setdefault(language, asyncio.Event())
        self.started.append(language)
        self.active += 1
        self.peak = max(self.peak, self.active)
        on_progress(ProgressEvent.starting(language))
        try:
            await gate.wait()
        finally:
            self.active -= 1
        if language == "c":
            on_progress(ProgressEvent.error(language, "boom", NonZeroExit.kind))
            raise NonZeroExit(language, "boom", 1)
        result = JobResult.from_parsed(language, "", ParsedResult())
        on_progress(ProgressEvent.success(result))
        return result

    def open(self, language):
        self.gates.setdefault(language, asyncio.Event()).set()


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_never_more_than_limit_running_and_queue_is_fifo():
    ex = GatedExecutor()
    svc = BenchmarkService(AdmissionQueue(limit=2), ex)
    langs = ["rust", "go", "zig", "nim", "java"]
    events = {l: [] for l in langs}

    tasks = []
    for l in langs:
        tasks.append(asyncio.create_task(svc.run(l, events[l].append)))
        await _settle()

    assert ex.started == ["rust", "go"]
    queued = [(l, e.position) for l in langs for e in events[l] if e.status == EventStatus.QUEUED]
    assert queued == [("zig", 1), ("nim", 2), ("java", 3)]
    assert svc.get_status() == {
        "running_jobs": ["rust", "go"],
        "queued_count": 3,
        "concurrency_limit": 2,
        "available_slots": 0,
    }

    for l in langs:
        ex.open(l)
        await _settle()
    await asyncio.gather(*tasks)

    assert ex.started == langs
    assert ex.peak == 2
    assert svc.get_status()["available_slots"] == 2
    for l in langs:
        assert events[l][-1].status == EventStatus.SUCCESS


@pytest.mark.asyncio
async def test_failed_job_still_frees_its_slot():
    ex = GatedExecutor()
    svc = BenchmarkService(AdmissionQueue(limit=1), ex)
    failing = asyncio.create_task(svc.run("c", lambda e: None))
    await _settle()
    waiting_events = []
    waiting = asyncio.create_task(svc.run("python", waiting_events.append))
    await _settle()
    assert ex.started == ["c"]

    ex.open("c")
    ex.open("python")
    with pytest.raises(NonZeroExit):
        await failing
    await waiting
    assert ex.started == ["c", "python"]
    assert [e.status for e in waiting_events] == [
        EventStatus.QUEUED, EventStatus.STARTING, EventStatus.SUCCESS,
    ]


@pytest.mark.asyncio
async def test_cancelled_queued_job_does_not_block_the_line():
    ex = GatedExecutor()
    svc = BenchmarkService(AdmissionQueue(limit=1), ex)
    first = asyncio.create_task(svc.run("rust", lambda e: None))
    await _settle()
    quitter = asyncio.create_task(svc.run("go", lambda e: None))
    patient = asyncio.create_task(svc.run("zig", lambda e: None))
    await _settle()

    quitter.cancel()
    await _settle()
    assert svc.get_status()["queued_count"] == 1

    ex.open("rust")
    ex.open("zig")
    await first
    await patient
    assert ex.started == ["rust", "zig"]


@pytest.mark.asyncio
async def test_unknown_language_is_rejected_before_admission():
    svc = BenchmarkService(AdmissionQueue(limit=1), GatedExecutor(), languages=["c"])
    with pytest.raises(InvalidLanguage):
        await svc.run("c; rm -rf /", lambda e: None)
    assert svc.get_status()["available_slots"] == 1


@pytest.mark.asyncio
async def test_real_processes_through_the_service(fake_runner):
    svc = BenchmarkService(AdmissionQueue(limit=1), ProcessExecutor(fake_runner, timeout_s=30))
    first, second = [], []
    results = await asyncio.gather(
        svc.run("c", first.append),
        svc.run("python", second.append),
        return_exceptions=True,
    )
    assert isinstance(results[0], NonZeroExit)
    assert results[1].prime_count == 2262
    assert first[-1].status == EventStatus.ERROR
    assert second[0].status == EventStatus.QUEUED
    assert second[-1].status == EventStatus.SUCCESS


def test_from_settings_wires_limits(tmp_path):
    s = Settings(project_root=tmp_path, max_concurrent=4, timeout_s=12, heartbeat_s=2,
                 supported_languages=["c", "go"])
    svc = BenchmarkService.from_settings(s)
    assert svc.admission.limit == 4
    assert svc.executor.timeout_s == 12
    assert svc.executor.heartbeat_s == 2
    assert svc.executor.runner.scripts_dir == (tmp_path / "scripts").resolve()
    assert svc.languages == ["c", "go"]


@pytest.mark.asyncio
async def test_cancelled_running_job_is_logged_as_cancelled():
    ex = GatedExecutor()
    svc = BenchmarkService(AdmissionQueue(limit=1), ex)
    with capture_logs() as logs:
        task = asyncio.create_task(svc.run("rust", lambda e: None))
        await _settle()
        assert ex.started == ["rust"]
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
    events = [entry["event"] for entry in logs]
    assert "job_cancelled" in events
    released = [entry for entry in logs if entry["event"] == "job_released"]
    assert released[0]["state"] == "CANCELLED"
    assert svc.get_status()["available_slots"] == 1
