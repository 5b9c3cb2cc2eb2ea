from langreactor.core.models import ParsedResult
from langreactor.core.parser import parse_output


def test_real_time_with_version_line_and_prime_count():
    raw = "Python 3.10.12\nElapsed: real 0m3.500s\nprime count: 42"
    r = parse_output(raw, "python")
    assert r.time_ms == 3500
    assert r.time_formatted == "0m3.5s"
    assert r.prime_count == 42


def test_last_timing_line_wins():
    raw = "real 0m5.000s\nsomething else\nreal 0m2.000s\n"
    r = parse_output(raw, "c")
    assert r.time_ms == 2000
    assert r.time_formatted == "0m2s"


def test_minutes_are_folded_into_milliseconds():
    r = parse_output("real\t1m2.250s", "java")
    assert r.time_ms == 62250
    assert r.time_formatted == "1m2.25s"


def test_generic_seconds_fallback():
    r = parse_output("Computing...\nTotal: 1.25 seconds\n", "ruby")
    assert r.time_ms == 1250
    assert r.time_formatted == "1.25s"


def test_generic_fallback_skips_version_lines():
    raw = "took 4.5s\nruby version 3.2 s-series\n"
    r = parse_output(raw, "ruby")
    assert r.time_ms == 4500
    assert r.time_formatted == "4.5s"


def test_real_pattern_beats_generic_even_if_generic_is_later():
    raw = "real 0m1.000s\nsleeping 9s\n"
    r = parse_output(raw, "go")
    assert r.time_formatted == "0m1s"


def test_prime_count_is_independent_of_duration():
    r = parse_output("Primes found: 1229\n", "nim")
    assert r.time_ms is None
    assert r.time_formatted is None
    assert r.prime_count == 1229


def test_nothing_recognisable():
    assert parse_output("hello\n\n   \nworld", "zig") == ParsedResult()
    assert parse_output("", "zig") == ParsedResult()


def test_parse_is_repeatable():
    raw = "Prime count: 7\nreal 0m0.010s\n"
    assert parse_output(raw, "c") == parse_output(raw, "c")


def test_carriage_return_does_not_split_a_line():
    # progress bars rewrite the line with \r; only \n ends it
    r = parse_output("took 5s\rwarming 9s\n", "go")
    assert r.time_ms == 5000
    assert r.time_formatted == "5s"
