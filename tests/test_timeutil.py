from __future__ import annotations

import pytest

from tornwatch.timeutil import format_duration, parse_duration, parse_duration_list, relative_time


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("5m", 300),
        ("1h30m", 5400),
        ("30m 1h", 5400),
        ("90s", 90),
        ("2.5h", 9000),
        ("10min", 600),
        ("300", 300),
        ("  45 sec ", 45),
    ],
)
def test_parse_duration(text: str, expected: int) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", [None, "", "   ", "soon", "m5"])
def test_parse_duration_rejects_garbage(text: str | None) -> None:
    assert parse_duration(text) is None


def test_format_duration_compact_and_verbose() -> None:
    assert format_duration(3725) == "1h 2m 5s"
    assert format_duration(3661, verbose=True) == "1 hour, 1 minute, 1 second"
    assert format_duration(7200, verbose=True) == "2 hours"
    assert format_duration(125, show_seconds=False) == "2m"
    assert format_duration(3725, max_parts=1) == "1h"


@pytest.mark.parametrize("seconds", [0, -5, None])
def test_format_duration_non_positive_is_now(seconds: float | None) -> None:
    assert format_duration(seconds) == "now"


@pytest.mark.parametrize("seconds", [1, 59, 60, 61, 3599, 3600, 3601, 5400, 86399, 86400, 90061])
def test_format_duration_parse_duration_agree(seconds: int) -> None:
    assert parse_duration(format_duration(seconds)) == seconds


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("5m, 1m 10m 5m bogus", [600, 300, 60]),
        ("60s, 1m", [60]),
        ("1.5m 90s", [90]),
        ("0.5h, 30m, 1800", [1800]),
        ("2.5m, 10s, 0s", [150, 10]),
        ("1h,1h,2h", [7200, 3600]),
        ("30s", [30]),
    ],
)
def test_parse_duration_list_dedupes_and_sorts_descending(text: str, expected: list[int]) -> None:
    result = parse_duration_list(text)

    assert result == expected
    assert len(set(result)) == len(result)
    assert result == sorted(result, reverse=True)


@pytest.mark.parametrize("text", [None, "", "off", "None", "-"])
def test_parse_duration_list_disabled(text: str | None) -> None:
    assert parse_duration_list(text) == []


def test_relative_time() -> None:
    now = 1_700_000_000
    assert relative_time(now + 300, now) == "in 5m"
    assert relative_time(now - 7200, now) == "2h ago"
    assert relative_time(now + 30, now) == "just now"
    assert relative_time(now + 3 * 86400, now) == "in 3d"
