from __future__ import annotations
import random, string, time
from typing import Iterable

from .errors import InvalidLanguage


def new_job_id() -> str:
    suf = "".join(random.choice(string.hexdigits.lower()) for _ in range(6))
    return f"{int(time.time())}-{suf}"


def ensure_supported(language: str, allowed: Iterable[str]) -> str:
    # the token is passed to an external script, so only exact whitelist hits pass
    if language not in set(allowed):
        raise InvalidLanguage(language)
    return language
