"""Group items by their timestamp key."""
from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from ..parsing.label import TimestampKey


class KeyBuckets:
    """Bucket item labels by TimestampKey.

    Items sharing a key keep the order in which they were added.

    Usage::

        buckets = KeyBuckets()
        for item in items:
            key = matcher.key_for(item)
            if key is not None:
                buckets.add(key, item)

        for key, bucket in buckets.items():
            print(key, bucket)
    """

    def __init__(self) -> None:
        self._groups: defaultdict[TimestampKey, list[str]] = defaultdict(list)

    def add(self, key: TimestampKey, item: str) -> None:
        self._groups[key].append(item)

    def keys(self) -> list[TimestampKey]:
        """Distinct keys in ascending order."""
        return sorted(self._groups)

    def items(self) -> list[tuple[TimestampKey, list[str]]]:
        return [(k, self._groups[k]) for k in self.keys()]

    def expand(self, keys: Iterable[TimestampKey]) -> list[str]:
        """Concatenate the buckets for ``keys`` in ascending key order."""
        result: list[str] = []
        for key in sorted(set(keys)):
            result.extend(self._groups.get(key, []))
        return result

    def __len__(self) -> int:
        return len(self._groups)

    def __repr__(self) -> str:
        return f"KeyBuckets(keys={len(self._groups)})"
