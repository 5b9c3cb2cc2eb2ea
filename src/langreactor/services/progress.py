from __future__ import annotations
import asyncio
import json
from typing import Any, AsyncIterator, Dict, Union

from ..core.models import ProgressEvent

_CLOSED = object()


class ProgressChannel:
    """Bridges the executor's progress callback to an async iterator for streaming responses."""

    def __init__(self):
        self._queue: "asyncio.Queue[Union[ProgressEvent, object]]" = asyncio.Queue()
        self._closed = False

    def emit(self, event: ProgressEvent) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


def format_sse(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
