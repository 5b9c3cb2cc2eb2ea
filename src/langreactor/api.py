from __future__ import annotations
import asyncio
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from starlette.staticfiles import StaticFiles

from .core.errors import ExecutionError
from .core.models import ProgressEvent
from .services.benchmark_service import BenchmarkService
from .services.comment_store import CommentStore
from .services.moderation import CommentRejected, validate_comment
from .services.progress import ProgressChannel, format_sse
from .services.rate_limit import RateLimiter
from .settings import Settings, load_settings

log = structlog.get_logger(__name__)

CSP = "; ".join([
    "default-src 'self'",
    "script-src 'self' 'unsafe-inline' cdn.tailwindcss.com cdn.jsdelivr.net cdnjs.cloudflare.com",
    "style-src 'self' 'unsafe-inline' fonts.googleapis.com cdnjs.cloudflare.com cdn.jsdelivr.net",
    "font-src 'self' fonts.gstatic.com cdnjs.cloudflare.com cdn.jsdelivr.net",
    "img-src 'self' data: cdn.tailwindcss.com",
    "connect-src 'self'",
    "object-src 'none'",
    "frame-ancestors 'self'",
])

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": CSP,
}

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# --------- Schemas ---------
class CommentReq(BaseModel):
    name: Optional[str] = None
    text: Optional[str] = None

class CommentRes(BaseModel):
    id: int
    name: str
    text: str
    date: str

class StatusRes(BaseModel):
    running_jobs: List[str]
    queued_count: int
    concurrency_limit: int
    available_slots: int

class HealthRes(BaseModel):
    ok: bool
    comments: int


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limited(limiter: RateLimiter, message: str):
    def dependency(request: Request) -> None:
        if not limiter.hit(client_ip(request)):
            raise HTTPException(status_code=429, detail=message)
    return dependency


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[BenchmarkService] = None,
    comments: Optional[CommentStore] = None,
) -> FastAPI:
    s = settings or load_settings()
    svc = service or BenchmarkService.from_settings(s)
    store = comments or CommentStore(s.database_url)

    app = FastAPI(title="Language Reactor API")
    app.state.settings = s
    app.state.benchmarks = svc
    app.state.comments = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=s.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for k, v in SECURITY_HEADERS.items():
            response.headers.setdefault(k, v)
        return response

    comment_limit = rate_limited(
        RateLimiter(s.comment_rate, s.comment_window_s),
        "Too many comments. Please try again later.",
    )
    benchmark_limit = rate_limited(
        RateLimiter(s.benchmark_rate, s.benchmark_window_s),
        "Please wait before running another benchmark.",
    )

    # --------- Endpoints ---------

    @app.get("/health", response_model=HealthRes)
    def health():
        return HealthRes(ok=True, comments=store.count())

    @app.get("/api/comments", response_model=List[CommentRes])
    def list_comments():
        return [CommentRes(**c.public()) for c in store.list()]

    @app.post("/api/comments", response_model=CommentRes, status_code=201,
              dependencies=[Depends(comment_limit)])
    def add_comment(req: CommentReq, request: Request):
        try:
            validate_comment(req.name, req.text)
        except CommentRejected as e:
            raise HTTPException(status_code=400, detail=str(e))
        c = store.add(req.name, req.text, client_ip(request))
        log.info("comment_added", comment_id=c.id)
        return CommentRes(**c.public())

    @app.get("/api/languages", response_model=List[str])
    def languages():
        return svc.languages

    @app.get("/api/status", response_model=StatusRes)
    def status():
        return StatusRes(**svc.get_status())

    @app.get("/api/run/{language}", dependencies=[Depends(benchmark_limit)])
    async def run_benchmark(language: str):
        if language not in svc.languages:
            raise HTTPException(status_code=400, detail="Invalid language")
        return StreamingResponse(
            _stream_benchmark(svc, language),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    docs_dir = s.resolved(s.docs_dir)
    if docs_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(docs_dir), html=True), name="docs")

    return app


async def _stream_benchmark(svc: BenchmarkService, language: str):
    channel = ProgressChannel()
    task = asyncio.create_task(svc.run(language, channel.emit))
    task.add_done_callback(lambda _: channel.close())
    try:
        async for event in channel:
            yield format_sse(event.to_dict())

        exc = task.exception()
        if exc is None:
            yield format_sse({"status": "completed"})
        elif not isinstance(exc, ExecutionError):
            # executor errors already sent their terminal event
            log.error("benchmark_crashed", language=language, exc_info=exc)
            yield format_sse(ProgressEvent.error(language, str(exc), "internal").to_dict())
    finally:
        if not task.done():
            # client went away; the executor kills the process on cancellation
            log.info("client_disconnected", language=language)
            task.cancel()
