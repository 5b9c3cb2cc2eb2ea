from __future__ import annotations
import asyncio
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Tuple

import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AdmissionSnapshot:
    running_jobs: List[str]
    queued_count: int
    concurrency_limit: int
    available_slots: int


@dataclass
class _Waiter:
    job_id: str
    language: str
    future: "asyncio.Future[None]"


class AdmissionQueue:
    """
    Caps how many benchmark jobs run at once and queues the rest FIFO.

    ``release`` hands a freed slot straight to the head waiter, so the running
    count never dips and then overshoots. Every read and write of the shared
    state happens under one lock, and nothing awaits while holding it.
    """

    def __init__(self, limit: int = 3):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self._lock = threading.Lock()
        self._running: Dict[str, str] = {}
        self._waiters: Deque[_Waiter] = deque()

    async def admit(
        self,
        job_id: str,
        language: str = "",
        on_queued: Optional[Callable[[int], None]] = None,
    ) -> Tuple[bool, int]:
        """Return ``(True, 0)`` if admitted at once, else wait and return ``(False, position)``."""
        with self._lock:
            if len(self._running) < self.limit:
                self._running[job_id] = language
                return True, 0
            waiter = _Waiter(job_id, language, asyncio.get_running_loop().create_future())
            self._waiters.append(waiter)
            position = len(self._waiters)

        log.info("job_queued", job_id=job_id, language=language, position=position)
        if on_queued is not None:
            on_queued(position)

        try:
            await waiter.future
        except asyncio.CancelledError:
            with self._lock:
                handed_over = waiter.future.done() and not waiter.future.cancelled()
                if not handed_over and waiter in self._waiters:
                    self._waiters.remove(waiter)
            if handed_over:
                # the slot arrived just as we were cancelled; pass it on
                self.release(job_id)
            log.info("job_dequeued", job_id=job_id, language=language)
            raise
        return False, position

    def release(self, job_id: str) -> None:
        with self._lock:
            if job_id not in self._running:
                return
            del self._running[job_id]
            while self._waiters and len(self._running) < self.limit:
                nxt = self._waiters.popleft()
                if nxt.future.done():
                    continue
                self._running[nxt.job_id] = nxt.language
                nxt.future.set_result(None)
                break

    def snapshot(self) -> AdmissionSnapshot:
        with self._lock:
            running = list(self._running.values())
            return AdmissionSnapshot(
                running_jobs=running,
                queued_count=len(self._waiters),
                concurrency_limit=self.limit,
                available_slots=self.limit - len(running),
            )
