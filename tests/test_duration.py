import math

from core.duration import (
    coerce_duration,
    elapsed_in_set,
    format_hms,
    pad2,
    parse_quick_digits,
    total_duration,
)
from domain.models import SubTimer


def _timers(*durations):
    return [SubTimer(id=str(i), label=f"T{i}", duration_sec=d) for i, d in enumerate(durations)]


def test_coerce_duration():
    assert coerce_duration(90) == 90
    assert coerce_duration("90") == 90
    assert coerce_duration(12.9) == 12
    assert coerce_duration(-5) == 0
    assert coerce_duration(None) == 0
    assert coerce_duration(True) == 0
    assert coerce_duration("abc") == 0
    assert coerce_duration(math.nan) == 0
    assert coerce_duration(math.inf) == 0


def test_pad2():
    assert pad2(5) == "05"
    assert pad2(12) == "12"
    assert pad2("x") == "00"


def test_format_hms():
    assert format_hms(0) == "00:00"
    assert format_hms(65) == "01:05"
    assert format_hms(3600) == "01:00:00"
    assert format_hms(3725) == "01:02:05"
    assert format_hms(-3) == "00:00"


def test_parse_quick_digits():
    assert parse_quick_digits("130") == 90
    assert parse_quick_digits("5") == 5
    assert parse_quick_digits("0090") == 90
    assert parse_quick_digits("1:30") == 90
    assert parse_quick_digits("") == 0
    assert parse_quick_digits(None) == 0
    # at most six digits are read
    assert parse_quick_digits("12345678") == 1234 * 60 + 56


def test_total_duration_ignores_bad_values():
    assert total_duration(_timers(60, 30, -10, None)) == 90
    assert total_duration([]) == 0


def test_elapsed_in_set():
    timers = _timers(60, 120, 180)
    assert elapsed_in_set(timers, 0, 60) == 0
    assert elapsed_in_set(timers, 1, 100) == 80
    assert elapsed_in_set(timers, 2, 0) == 360
    assert elapsed_in_set(timers, 3, 0) == 360
