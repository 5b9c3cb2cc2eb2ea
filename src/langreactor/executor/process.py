from __future__ import annotations
import asyncio
import codecs
from pathlib import Path
from typing import List, Optional

import psutil
import structlog

from ..core.errors import BenchmarkTimeout, NonZeroExit, SpawnFailure
from ..core.models import JobResult, ProgressEvent
from ..core.parser import parse_output
from ..runners.base import Runner
from .base import Executor, ProgressCallback

log = structlog.get_logger(__name__)


def kill_process_tree(pid: int) -> None:
    # benchmark scripts fork compilers/interpreters; take the whole tree down
    try:
        parent = psutil.Process(pid)
    except psutil.Error:
        return

    try:
        children = parent.children(recursive=True)
    except psutil.Error:
        children = []
    for child in children:
        try:
            child.kill()
        except psutil.Error:
            pass
    try:
        parent.kill()
    except psutil.Error:
        pass


def _format_timeout(timeout_s: float) -> str:
    if timeout_s >= 60 and timeout_s % 60 == 0:
        minutes = int(timeout_s // 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    return f"{timeout_s:g} seconds"


class ProcessExecutor(Executor):
    """Runs one benchmark program per call and streams its stdout as progress events."""

    def __init__(
        self,
        runner: Runner,
        cwd: Optional[Path] = None,
        timeout_s: float = 300,
        heartbeat_s: float = 15,
        chunk_size: int = 4096,
    ):
        self.runner = runner
        self.cwd = cwd
        self.timeout_s = timeout_s
        self.heartbeat_s = heartbeat_s
        self.chunk_size = chunk_size

    async def execute(self, language: str, on_progress: ProgressCallback) -> JobResult:
        """
        Spawn the benchmark for ``language`` and wait for it.

        Emits ``starting``, then ``running`` per stdout chunk and ``heartbeat``
        on a timer, then exactly one ``success`` or ``error``. Raises
        SpawnFailure, NonZeroExit or BenchmarkTimeout after the error event.
        The process is dead and reaped when this returns, whatever the outcome.
        """
        cmd = self.runner.command(language)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.cwd) if self.cwd else None,
            )
        except OSError as e:
            log.error("spawn_failed", language=language, cmd=cmd, error=str(e))
            on_progress(ProgressEvent.error(language, str(e), SpawnFailure.kind))
            raise SpawnFailure(language, str(e)) from e

        log.info("job_started", language=language, pid=proc.pid)
        on_progress(ProgressEvent.starting(language))

        stdout_parts: List[str] = []
        stderr_parts: List[str] = []
        heartbeat = asyncio.create_task(self._heartbeat(proc, on_progress))
        try:
            try:
                rc, _ = await asyncio.wait_for(
                    asyncio.gather(
                        self._pump(proc, language, stdout_parts, on_progress),
                        self._drain(proc.stderr, stderr_parts),
                    ),
                    timeout=self.timeout_s,
                )
            except asyncio.TimeoutError:
                kill_process_tree(proc.pid)
                msg = f"Benchmark timeout ({_format_timeout(self.timeout_s)} exceeded)"
                log.warning("job_timeout", language=language, pid=proc.pid, timeout_s=self.timeout_s)
                on_progress(ProgressEvent.error(language, msg, BenchmarkTimeout.kind))
                raise BenchmarkTimeout(language, msg, self.timeout_s)
            except asyncio.CancelledError:
                log.info("job_cancelled", language=language, pid=proc.pid)
                raise
        finally:
            heartbeat.cancel()
            if proc.returncode is None:
                kill_process_tree(proc.pid)
                await proc.wait()
            await asyncio.gather(heartbeat, return_exceptions=True)

        stdout = "".join(stdout_parts)
        if rc == 0:
            result = JobResult.from_parsed(language, stdout, parse_output(stdout, language))
            log.info("job_finished", language=language, time_ms=result.time_ms)
            on_progress(ProgressEvent.success(result))
            return result

        msg = "".join(stderr_parts) or "Benchmark failed"
        log.warning("job_failed", language=language, exit_code=rc)
        on_progress(ProgressEvent.error(language, msg, NonZeroExit.kind))
        raise NonZeroExit(language, msg, rc)

    async def _pump(self, proc, language: str, parts: List[str], on_progress: ProgressCallback) -> int:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await proc.stdout.read(self.chunk_size)
            if not data:
                break
            text = decoder.decode(data)
            if text:
                parts.append(text)
                on_progress(ProgressEvent.running(language, text))
        tail = decoder.decode(b"", final=True)
        if tail:
            parts.append(tail)
            on_progress(ProgressEvent.running(language, tail))
        return await proc.wait()

    @staticmethod
    async def _drain(stream, parts: List[str]) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await stream.read(4096)
            if not data:
                break
            parts.append(decoder.decode(data))
        parts.append(decoder.decode(b"", final=True))

    async def _heartbeat(self, proc, on_progress: ProgressCallback) -> None:
        while proc.returncode is None:
            await asyncio.sleep(self.heartbeat_s)
            if proc.returncode is None:
                on_progress(ProgressEvent.heartbeat())
