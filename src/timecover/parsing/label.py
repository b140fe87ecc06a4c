"""Extract timestamp keys from item labels (usually file names)."""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from ..errors import InvalidPatternError
from .timestamp import EPOCH_FORMAT, parse_timestamp, to_epoch

logger = logging.getLogger(__name__)

# Rotated capture files, e.g. daemonlogger.1677468632.pcap or
# daemonlogger.1677468632.123456.pcap
DEFAULT_PATTERN = r"(?P<timestamp>\d{6,})(\.pcap|(?P<subsec>\.\d+)\.pcap)$"

# For numeric mode, where the sub-second digits live inside the timestamp capture
NUMERIC_PATTERN = r"(?P<timestamp>\d{6,}(?:\.\d+)?)\.pcap$"

_SUBSEC_RE = re.compile(r"^[.,]?(?P<digits>\d*)$")


@dataclass(frozen=True, order=True)
class TimestampKey:
    """Sortable timestamp of an item.

    Ordered numerically by ``(seconds, fraction)``; ``text`` is the key as
    written (``<epoch><subsec>`` or the raw numeric capture) and breaks ties
    between spellings of the same instant.
    """

    seconds: int
    fraction: Decimal
    text: str

    def __str__(self) -> str:
        return self.text

    @classmethod
    def from_numeric(cls, raw: str) -> "TimestampKey | None":
        """Build a key from a capture that already is an epoch number."""
        try:
            value = Decimal(raw.strip())
        except InvalidOperation:
            return None
        if not value.is_finite():
            return None
        seconds = math.floor(value)
        return cls(seconds=seconds, fraction=value - seconds, text=raw)

    @classmethod
    def from_epoch(cls, epoch: int, subsec: str = "") -> "TimestampKey | None":
        """Build a key from parsed epoch seconds plus a verbatim sub-second suffix."""
        m = _SUBSEC_RE.match(subsec)
        if not m:
            return None
        digits = m.group("digits")
        fraction = Decimal(f"0.{digits}") if digits else Decimal(0)
        return cls(seconds=epoch, fraction=fraction, text=f"{epoch}{subsec}")


class LabelMatcher:
    """Match item labels against a pattern and turn them into TimestampKeys.

    The pattern needs a ``timestamp`` named group and may have a ``subsec``
    group.  It is searched, not anchored, so surrounding text is allowed.

    Usage::

        matcher = LabelMatcher()
        key = matcher.key_for("daemonlogger.1677468632.pcap")
        # TimestampKey(seconds=1677468632, fraction=Decimal('0'), text='1677468632')
    """

    def __init__(
        self,
        pattern: str | re.Pattern[str] = DEFAULT_PATTERN,
        time_format: str = EPOCH_FORMAT,
        timestamp_is_numeric: bool = False,
    ) -> None:
        if isinstance(pattern, re.Pattern):
            self._regex = pattern
        else:
            try:
                self._regex = re.compile(pattern)
            except re.error as exc:
                raise InvalidPatternError(f"Invalid pattern {pattern!r}: {exc}") from exc
        if "timestamp" not in self._regex.groupindex:
            raise InvalidPatternError(
                f"Pattern {self._regex.pattern!r} has no named group 'timestamp'"
            )
        self._time_format = time_format
        self._numeric = timestamp_is_numeric

    @property
    def pattern(self) -> str:
        return self._regex.pattern

    def captures(self, item: str) -> tuple[str, str] | None:
        """Return (timestamp, subsec) captures, or None if the item does not match."""
        m = self._regex.search(item)
        if not m:
            return None
        timestamp = m.group("timestamp")
        if timestamp is None:
            return None
        subsec = m.groupdict().get("subsec") or ""
        return timestamp, subsec

    def key_for(self, item: str) -> TimestampKey | None:
        """Return the item's TimestampKey, or None if it has no usable timestamp."""
        found = self.captures(item)
        if found is None:
            logger.debug("No timestamp match: %r", item)
            return None
        raw, subsec = found

        if self._numeric:
            key = TimestampKey.from_numeric(raw)
        else:
            parsed = parse_timestamp(raw, self._time_format)
            if parsed is None:
                logger.debug("Unparseable timestamp %r in %r (format %r)", raw, item, self._time_format)
                return None
            key = TimestampKey.from_epoch(to_epoch(parsed), subsec)

        if key is None:
            logger.debug("Non-numeric timestamp %r%s in %r", raw, subsec, item)
        return key

    def __repr__(self) -> str:
        return f"LabelMatcher(pattern={self.pattern!r}, numeric={self._numeric})"
