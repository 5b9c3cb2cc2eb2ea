"""Pull timing figures out of free-form benchmark output.

Benchmark scripts are written independently and print whatever they like, so
the parser tries a few patterns in order and never fails: anything it cannot
find is simply left as ``None``. Lines are scanned from the bottom up, so when
a script prints several timings (warm-up, then the real run) the last one wins.
"""
from __future__ import annotations
import re
from typing import List, Optional, Tuple

from .models import ParsedResult

_REAL_TIME = re.compile(r"real\s+(\d+)m(\d+\.?\d*)s")
_GENERIC_TIME = re.compile(r"(\d+\.?\d*)\s*s(?:econds)?", re.IGNORECASE)
_PRIME_COUNT = re.compile(r"prime.*?:\s*(\d+)", re.IGNORECASE)


def _short_number(text: str) -> str:
    # "3.500" -> "3.5", "2.000" -> "2"
    value = float(text)
    return str(int(value)) if value.is_integer() else repr(value)


def _lines_bottom_up(raw: str) -> List[str]:
    return [line for line in raw.split("\n") if line.strip()][::-1]


def _find_real_time(lines: List[str]) -> Tuple[Optional[float], Optional[str]]:
    for line in lines:
        m = _REAL_TIME.search(line)
        if m:
            minutes = int(m.group(1))
            seconds = float(m.group(2))
            ms = round((minutes * 60 + seconds) * 1000, 3)
            return ms, f"{minutes}m{_short_number(m.group(2))}s"
    return None, None


def _find_generic_time(lines: List[str]) -> Tuple[Optional[float], Optional[str]]:
    for line in lines:
        # "Python version 3.10.12" and friends are not durations
        if "version" in line.lower():
            continue
        m = _GENERIC_TIME.search(line)
        if m:
            return round(float(m.group(1)) * 1000, 3), f"{m.group(1)}s"
    return None, None


def _find_prime_count(lines: List[str]) -> Optional[int]:
    for line in lines:
        m = _PRIME_COUNT.search(line)
        if m:
            return int(m.group(1))
    return None


def parse_output(raw: str, language: str = "") -> ParsedResult:
    """Extract duration and prime count from a finished job's stdout."""
    lines = _lines_bottom_up(raw or "")

    time_ms, formatted = _find_real_time(lines)
    if time_ms is None:
        time_ms, formatted = _find_generic_time(lines)

    return ParsedResult(
        time_ms=time_ms,
        time_formatted=formatted,
        prime_count=_find_prime_count(lines),
    )
