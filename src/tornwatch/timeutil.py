"""Human-readable durations.

``parse_duration`` accepts what operators type into commands (``"5m"``,
``"1h30m"``, ``"90s"``, ``"2.5h"``, a bare ``"300"``) and
``format_duration`` renders seconds back in the same compact style.
"""

from __future__ import annotations

import math
import re

_BARE_INT = re.compile(r"^\d+$")
_TOKEN = re.compile(r"(\d+(?:\.\d+)?)\s*(min|sec|h|m|s)", re.IGNORECASE)
_SPLIT = re.compile(r"[,\s]+")

_UNIT_SECONDS: dict[str, int] = {"h": 3600, "m": 60, "min": 60, "s": 1, "sec": 1}

# Inputs that mean "no thresholds at all".
_DISABLED_WORDS = frozenset({"off", "none", "-", "disable", "0", "false"})


def parse_duration(text: str | int | None) -> int | None:
    """Convert a duration string to whole seconds.

    Returns ``None`` for empty input or when no ``<number><unit>`` token
    is recognised.  Tokens are summed, so ``"1h30m"`` and ``"30m 1h"``
    both give ``5400``.
    """
    if text is None:
        return None
    if isinstance(text, int):
        return text

    value = str(text).strip().lower()
    if not value:
        return None
    if _BARE_INT.match(value):
        return int(value)

    matches = _TOKEN.findall(value)
    if not matches:
        return None
    total = sum(float(number) * _UNIT_SECONDS[unit.lower()] for number, unit in matches)
    return math.floor(total)


def format_duration(
    seconds: float | None,
    *,
    verbose: bool = False,
    show_seconds: bool = True,
    max_parts: int = 3,
) -> str:
    """Render seconds as ``"1h 5m 3s"`` (or ``"1 hour, 5 minutes, 3 seconds"``).

    Zero components are omitted and at most ``max_parts`` components are
    kept, largest first.  Non-positive input renders as ``"now"``.
    """
    if not seconds or seconds <= 0:
        return "now"

    whole = int(seconds)
    components = (
        (whole // 3600, "h", "hour"),
        ((whole % 3600) // 60, "m", "minute"),
        (whole % 60, "s", "second"),
    )

    parts: list[str] = []
    for amount, short, long in components:
        if amount <= 0:
            continue
        if short == "s" and not show_seconds:
            continue
        if verbose:
            parts.append(f"{amount} {long}{'' if amount == 1 else 's'}")
        else:
            parts.append(f"{amount}{short}")

    parts = parts[: max(1, max_parts)]
    if not parts:
        return "now"
    return ", ".join(parts) if verbose else " ".join(parts)


def parse_duration_list(text: str | None) -> list[int]:
    """Parse a comma/space separated list of durations.

    Unparseable and non-positive entries are dropped, duplicates removed,
    and the result sorted descending so the least urgent threshold comes
    first.
    """
    if not text:
        return []
    if text.strip().lower() in _DISABLED_WORDS:
        return []

    values = {parse_duration(part) for part in _SPLIT.split(text.strip()) if part}
    return sorted((v for v in values if v is not None and v > 0), reverse=True)


def relative_time(timestamp: float, now: float) -> str:
    """Describe ``timestamp`` relative to ``now`` (``"in 5m"``, ``"3h ago"``)."""
    diff = int(timestamp - now)
    distance = abs(diff)
    if distance < 60:
        return "just now"

    if distance < 3600:
        label = f"{distance // 60}m"
    elif distance < 86400:
        label = f"{distance // 3600}h"
    else:
        label = f"{distance // 86400}d"
    return f"in {label}" if diff > 0 else f"{label} ago"
