"""Select the timestamped items whose spans cover a requested time range.

Each item (typically a rotated capture file) is assumed to hold data from
its own timestamp up to the next item's timestamp.  Covering ``[start, end]``
therefore needs every item stamped inside the range plus the last item
stamped before ``start``, unless some item starts exactly at ``start``.

Usage::

    from timecover.selection.selector import TimeRangeSelector

    selector = TimeRangeSelector()
    files = selector.select(os.listdir("/var/log/pcap"), start, end)
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Sequence

from ..errors import InvalidRangeError
from ..parsing.label import DEFAULT_PATTERN, LabelMatcher, TimestampKey
from ..parsing.timestamp import EPOCH_FORMAT, to_epoch
from .buckets import KeyBuckets

logger = logging.getLogger(__name__)


def _check_items(items: object) -> Sequence[str]:
    if items is None:
        raise InvalidRangeError("items is missing")
    if not isinstance(items, (list, tuple)):
        raise InvalidRangeError(f"items must be a list of strings, got {type(items).__name__}")
    for item in items:
        if not isinstance(item, str):
            raise InvalidRangeError(f"items must contain only strings, got {item!r}")
    return items


def _check_time(name: str, value: object) -> datetime:
    if value is None:
        raise InvalidRangeError(f"{name} is missing")
    if not isinstance(value, datetime):
        raise InvalidRangeError(f"{name} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def scan_keys(keys: Sequence[TimestampKey], start: int, end: int) -> list[TimestampKey]:
    """Pick the keys needed to cover ``[start, end]`` (epoch seconds).

    ``keys`` must be sorted ascending.  Keys are compared to the bounds by
    whole seconds.  The result is in selection order, not sorted, and may
    repeat a key.
    """
    selected: list[TimestampKey] = []
    previous: TimestampKey | None = None
    previous_found = False

    for current in keys:
        seconds = current.seconds
        if start <= seconds <= end:
            selected.append(current)
            if not previous_found:
                if previous is not None and seconds != start:
                    # previous began before start and runs into the range
                    selected.append(previous)
                    previous_found = True
                elif seconds == start:
                    previous_found = True
        elif (
            previous is not None
            and not previous_found
            and previous.seconds < start
            and seconds > end
        ):
            # The whole range sits inside previous's span
            selected.append(previous)
            previous_found = True
        previous = current

    # Range lies after every known key: the newest item is still open
    if not selected and keys and keys[-1].seconds <= end:
        selected.append(keys[-1])

    return selected


class TimeRangeSelector:
    """Find the items whose timestamps cover a time range.

    Args:
        pattern:               Pattern with a ``timestamp`` named group and an
                               optional ``subsec`` group.  Defaults to rotated
                               ``.pcap`` names with epoch timestamps.
        time_format:           strptime format for the ``timestamp`` capture.
                               ``%s`` (default) means raw epoch seconds.
        timestamp_is_numeric:  Use the ``timestamp`` capture as an epoch
                               number directly, sub-seconds included, and skip
                               format parsing.
    """

    def __init__(
        self,
        pattern: str | re.Pattern[str] | None = None,
        time_format: str | None = None,
        timestamp_is_numeric: bool = False,
    ) -> None:
        self._matcher = LabelMatcher(
            pattern=pattern if pattern is not None else DEFAULT_PATTERN,
            time_format=time_format if time_format is not None else EPOCH_FORMAT,
            timestamp_is_numeric=timestamp_is_numeric,
        )

    @property
    def matcher(self) -> LabelMatcher:
        return self._matcher

    def bucket(self, items: Sequence[str]) -> KeyBuckets:
        """Group the timestamped items by key; others are dropped."""
        buckets = KeyBuckets()
        for item in _check_items(items):
            key = self._matcher.key_for(item)
            if key is not None:
                buckets.add(key, item)
        return buckets

    def select(self, items: Sequence[str], start: datetime, end: datetime) -> list[str]:
        """Return the items needed to cover ``[start, end]``, in timestamp order.

        Raises:
            InvalidRangeError: an argument is missing or mistyped, or start > end.
        """
        items = _check_items(items)
        start = _check_time("start", start)
        end = _check_time("end", end)
        start_s, end_s = to_epoch(start), to_epoch(end)
        if start_s > end_s:
            raise InvalidRangeError(f"start ({start.isoformat()}) is after end ({end.isoformat()})")

        buckets = self.bucket(items)
        keys = buckets.keys()
        selected = scan_keys(keys, start_s, end_s)
        result = buckets.expand(selected)

        logger.debug(
            "Selected %d of %d items (%d keys, %d selected) for %s .. %s",
            len(result), len(items), len(keys), len(set(selected)),
            start.isoformat(), end.isoformat(),
        )
        return result

    def __repr__(self) -> str:
        return f"TimeRangeSelector({self._matcher!r})"


def select(
    items: Sequence[str],
    start: datetime,
    end: datetime,
    pattern: str | re.Pattern[str] | None = None,
    time_format: str | None = None,
    timestamp_is_numeric: bool = False,
) -> list[str]:
    """Convenience wrapper around ``TimeRangeSelector(...).select(...)``."""
    selector = TimeRangeSelector(
        pattern=pattern,
        time_format=time_format,
        timestamp_is_numeric=timestamp_is_numeric,
    )
    return selector.select(items, start, end)
