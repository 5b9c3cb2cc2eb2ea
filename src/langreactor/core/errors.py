from __future__ import annotations
from typing import Optional


class ReactorError(Exception):
    """Base class for errors raised by the benchmark core."""


class InvalidLanguage(ReactorError, ValueError):
    def __init__(self, language: str):
        self.language = language
        super().__init__(f"Invalid language: {language!r}")


class ExecutionError(ReactorError):
    """A benchmark job terminated without a result.

    By the time one of these is raised the executor has already sent the
    terminal ``error`` event to the job's progress callback.
    """

    kind = "execution_error"

    def __init__(self, language: str, message: str):
        self.language = language
        self.message = message
        super().__init__(message)


class SpawnFailure(ExecutionError):
    kind = "spawn_failure"


class NonZeroExit(ExecutionError):
    kind = "non_zero_exit"

    def __init__(self, language: str, message: str, exit_code: Optional[int]):
        super().__init__(language, message)
        self.exit_code = exit_code


class BenchmarkTimeout(ExecutionError):
    kind = "timeout"

    def __init__(self, language: str, message: str, timeout_s: float):
        super().__init__(language, message)
        self.timeout_s = timeout_s
