"""Timestamp parsing and epoch conversion.

``parse_timestamp`` is the only place item timestamps are turned into
datetimes.  It never raises for malformed input: a failed parse is an
ordinary ``None`` so callers can skip the item.
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone

# strptime has no %s directive, so a bare "%s" is handled by hand
EPOCH_FORMAT = "%s"

_EPOCH_RE = re.compile(r"^[+-]?\d+$")
_EPOCH_PREFIX_RE = re.compile(r"^(?P<epoch>[+-]?\d+)(?P<rest>.*)$")

# Relative CLI offsets, e.g. "30s", "15m", "2h", "7d"
_RELATIVE_RE = re.compile(r"^(?P<value>\d+)(?P<unit>[smhd])$")

_UNITS: dict[str, str] = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


def _from_epoch(raw: str) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(raw: str, fmt: str = EPOCH_FORMAT) -> datetime | None:
    """Parse ``raw`` according to ``fmt``; return None if it does not parse.

    ``%s`` is supported as the whole format or as its leading directive.
    In ``%s.%f`` style formats the epoch digits come first and the rest is
    matched against the remaining directives; only its microseconds are
    kept.  ``%s`` anywhere else is not understood by strptime, so such
    formats never parse.
    """
    raw = raw.strip()
    if fmt == EPOCH_FORMAT:
        if not _EPOCH_RE.match(raw):
            return None
        return _from_epoch(raw)
    if fmt.startswith(EPOCH_FORMAT):
        m = _EPOCH_PREFIX_RE.match(raw)
        if not m:
            return None
        base = _from_epoch(m.group("epoch"))
        if base is None:
            return None
        try:
            tail = datetime.strptime(m.group("rest"), fmt[len(EPOCH_FORMAT):])
        except ValueError:
            return None
        return base + timedelta(microseconds=tail.microsecond)
    try:
        return datetime.strptime(raw, fmt)
    except ValueError:
        return None


def to_epoch(dt: datetime) -> int:
    """Whole seconds since the Unix epoch.  Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return math.floor(dt.timestamp())


def parse_duration(text: str) -> timedelta:
    """Parse a relative duration such as ``30s`` or ``2h``."""
    m = _RELATIVE_RE.match(text.strip())
    if not m:
        raise ValueError(f"Invalid duration: {text!r} (expected e.g. 30s, 15m, 2h, 7d)")
    return timedelta(**{_UNITS[m.group("unit")]: int(m.group("value"))})


def parse_cli_time(text: str, now: datetime | None = None) -> datetime:
    """Parse a command-line time value into an aware datetime.

    Accepted forms:
      - ``now``
      - a relative offset before now: ``30s``, ``15m``, ``2h``, ``7d``
      - epoch seconds: ``1677468620``
      - ISO-8601: ``2023-02-27T03:30:20`` (naive values are UTC)
    """
    if now is None:
        now = datetime.now(timezone.utc)
    text = text.strip()

    if text == "now":
        return now
    if _RELATIVE_RE.match(text):
        return now - parse_duration(text)
    if _EPOCH_RE.match(text):
        parsed = parse_timestamp(text)
        if parsed is None:
            raise ValueError(f"Epoch value out of range: {text!r}")
        return parsed

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Invalid time: {text!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
