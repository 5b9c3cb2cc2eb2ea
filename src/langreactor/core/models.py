from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .utils import new_job_id


class JobState(str, Enum):
    REQUESTED = "REQUESTED"
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    CANCELLED = "CANCELLED"


class EventStatus(str, Enum):
    QUEUED = "queued"
    STARTING = "starting"
    RUNNING = "running"
    HEARTBEAT = "heartbeat"
    SUCCESS = "success"
    ERROR = "error"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Job:
    language: str
    job_id: str = field(default_factory=new_job_id)
    state: JobState = JobState.REQUESTED


@dataclass(frozen=True)
class ParsedResult:
    time_ms: Optional[float] = None
    time_formatted: Optional[str] = None
    prime_count: Optional[int] = None


@dataclass(frozen=True)
class JobResult:
    language: str
    output: str
    time_ms: Optional[float]
    time_formatted: Optional[str]
    prime_count: Optional[int]
    timestamp: str

    @classmethod
    def from_parsed(cls, language: str, output: str, parsed: ParsedResult) -> "JobResult":
        return cls(
            language=language,
            output=output,
            time_ms=parsed.time_ms,
            time_formatted=parsed.time_formatted,
            prime_count=parsed.prime_count,
            timestamp=utc_now_iso(),
        )

    def summary(self) -> Dict[str, Any]:
        """Result payload for the success event (raw output travels separately)."""
        d = asdict(self)
        d.pop("output")
        return {k: v for k, v in d.items() if v is not None}


@dataclass(frozen=True)
class ProgressEvent:
    status: EventStatus
    language: Optional[str] = None
    message: Optional[str] = None
    output: Optional[str] = None
    position: Optional[int] = None
    timestamp: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    full_output: Optional[str] = None
    kind: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return self.status in (EventStatus.SUCCESS, EventStatus.ERROR)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": self.status.value}
        for k, v in asdict(self).items():
            if k != "status" and v is not None:
                out[k] = v
        return out

    # ---- constructors, one per lifecycle tag ----
    @classmethod
    def queued(cls, language: str, position: int) -> "ProgressEvent":
        return cls(EventStatus.QUEUED, language=language, position=position)

    @classmethod
    def starting(cls, language: str) -> "ProgressEvent":
        return cls(EventStatus.STARTING, language=language,
                   message=f"Starting {language} benchmark...")

    @classmethod
    def running(cls, language: str, output: str) -> "ProgressEvent":
        return cls(EventStatus.RUNNING, language=language, output=output)

    @classmethod
    def heartbeat(cls) -> "ProgressEvent":
        return cls(EventStatus.HEARTBEAT, timestamp=utc_now_iso())

    @classmethod
    def success(cls, result: JobResult) -> "ProgressEvent":
        return cls(EventStatus.SUCCESS, language=result.language,
                   result=result.summary(), full_output=result.output)

    @classmethod
    def error(cls, language: str, message: str, kind: str) -> "ProgressEvent":
        return cls(EventStatus.ERROR, language=language, message=message, kind=kind)
