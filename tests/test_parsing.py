"""Tests for timestamp parsing and label matching."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from timecover.errors import InvalidPatternError
from timecover.parsing.label import DEFAULT_PATTERN, LabelMatcher, TimestampKey
from timecover.parsing.timestamp import (
    parse_cli_time,
    parse_duration,
    parse_timestamp,
    to_epoch,
)

NOW = datetime(2023, 2, 27, 4, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# parse_timestamp / to_epoch
# ---------------------------------------------------------------------------

class TestParseTimestamp:
    def test_epoch_default_format(self) -> None:
        result = parse_timestamp("1677468632")
        assert result == datetime.fromtimestamp(1677468632, tz=timezone.utc)

    def test_strptime_format(self) -> None:
        result = parse_timestamp("20230227-033000", "%Y%m%d-%H%M%S")
        assert result == datetime(2023, 2, 27, 3, 30)

    @pytest.mark.parametrize("raw,fmt", [
        ("not a number", "%s"),
        ("12.5", "%s"),
        ("", "%s"),
        ("20231399-999999", "%Y%m%d-%H%M%S"),
        ("2023-02-27", "%Y%m%d"),
    ])
    def test_returns_none_for_garbage(self, raw: str, fmt: str) -> None:
        assert parse_timestamp(raw, fmt) is None

    def test_epoch_with_microseconds(self) -> None:
        result = parse_timestamp("1677468632.250000", "%s.%f")
        base = datetime.fromtimestamp(1677468632, tz=timezone.utc)
        assert result == base + timedelta(microseconds=250000)

    @pytest.mark.parametrize("raw,fmt", [
        ("1677468632", "%s.%f"),
        ("1677468632.abc", "%s.%f"),
        ("x1677468632.5", "%s.%f"),
        ("2023 1677468632", "%Y %s"),
    ])
    def test_epoch_in_larger_format_failures(self, raw: str, fmt: str) -> None:
        assert parse_timestamp(raw, fmt) is None

    def test_naive_is_utc(self) -> None:
        assert to_epoch(datetime(1970, 1, 1, 0, 0, 10)) == 10

    def test_aware_uses_offset(self) -> None:
        tz = timezone(timedelta(hours=2))
        assert to_epoch(datetime(1970, 1, 1, 2, 0, 10, tzinfo=tz)) == 10

    def test_drops_microseconds(self) -> None:
        assert to_epoch(datetime(1970, 1, 1, 0, 0, 10, 999999, tzinfo=timezone.utc)) == 10


class TestParseCliTime:
    def test_now(self) -> None:
        assert parse_cli_time("now", now=NOW) == NOW

    @pytest.mark.parametrize("text,delta", [
        ("30s", timedelta(seconds=30)),
        ("15m", timedelta(minutes=15)),
        ("2h", timedelta(hours=2)),
        ("7d", timedelta(days=7)),
    ])
    def test_relative(self, text: str, delta: timedelta) -> None:
        assert parse_cli_time(text, now=NOW) == NOW - delta

    def test_epoch(self) -> None:
        assert to_epoch(parse_cli_time("1677468620", now=NOW)) == 1677468620

    def test_iso_naive_is_utc(self) -> None:
        result = parse_cli_time("2023-02-27T03:30:20", now=NOW)
        assert result == datetime(2023, 2, 27, 3, 30, 20, tzinfo=timezone.utc)

    def test_iso_with_offset(self) -> None:
        result = parse_cli_time("2023-02-27T04:30:20+01:00", now=NOW)
        assert to_epoch(result) == to_epoch(datetime(2023, 2, 27, 3, 30, 20, tzinfo=timezone.utc))

    def test_garbage_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid time"):
            parse_cli_time("yesterday-ish", now=NOW)

    def test_bad_duration(self) -> None:
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration("5 minutes")


# ---------------------------------------------------------------------------
# LabelMatcher / TimestampKey
# ---------------------------------------------------------------------------

class TestLabelMatcher:
    def test_default_pattern_key(self) -> None:
        key = LabelMatcher().key_for("daemonlogger.1677468632.pcap")
        assert key == TimestampKey(seconds=1677468632, fraction=Decimal(0), text="1677468632")

    def test_default_pattern_subsec(self) -> None:
        key = LabelMatcher().key_for("daemonlogger.1677468632.123456.pcap")
        assert key is not None
        assert key.seconds == 1677468632
        assert key.fraction == Decimal("0.123456")
        assert str(key) == "1677468632.123456"

    def test_captures(self) -> None:
        matcher = LabelMatcher()
        assert matcher.captures("x.1677468632.5.pcap") == ("1677468632", ".5")
        assert matcher.captures("x.1677468632.pcap") == ("1677468632", "")
        assert matcher.captures("x.12345.pcap") is None

    @pytest.mark.parametrize("item", ["README.txt", "daemonlogger.pcap", "x.1677468632.pcap.gz"])
    def test_non_matching(self, item: str) -> None:
        assert LabelMatcher().key_for(item) is None

    def test_numeric_mode_keeps_capture_verbatim(self) -> None:
        matcher = LabelMatcher(
            pattern=r"(?P<timestamp>\d+(?:\.\d+)?)\.pcap$",
            timestamp_is_numeric=True,
        )
        key = matcher.key_for("x.169900.50.pcap")
        assert key == TimestampKey(seconds=169900, fraction=Decimal("0.50"), text="169900.50")

    def test_numeric_mode_ignores_subsec_group(self) -> None:
        matcher = LabelMatcher(pattern=DEFAULT_PATTERN, timestamp_is_numeric=True)
        key = matcher.key_for("x.1677468632.5.pcap")
        assert key is not None
        assert key.text == "1677468632"

    def test_invalid_regex(self) -> None:
        with pytest.raises(InvalidPatternError, match="Invalid pattern"):
            LabelMatcher(pattern=r"(?P<timestamp>\d+")

    def test_missing_timestamp_group(self) -> None:
        with pytest.raises(InvalidPatternError, match="timestamp"):
            LabelMatcher(pattern=r"(?P<ts>\d+)")

    def test_repr(self) -> None:
        assert "numeric=False" in repr(LabelMatcher())


class TestTimestampKey:
    def test_ordering_is_numeric(self) -> None:
        small = TimestampKey.from_numeric("999999")
        big = TimestampKey.from_numeric("1000000")
        assert small is not None and big is not None
        assert small < big

    def test_fraction_breaks_ties(self) -> None:
        whole = TimestampKey.from_epoch(169900)
        half = TimestampKey.from_epoch(169900, ".5")
        assert whole is not None and half is not None
        assert whole < half
        assert whole != half

    @pytest.mark.parametrize("raw", ["abc", "nan", "inf", ""])
    def test_from_numeric_rejects(self, raw: str) -> None:
        assert TimestampKey.from_numeric(raw) is None

    def test_from_epoch_rejects_bad_subsec(self) -> None:
        assert TimestampKey.from_epoch(10, ".5x") is None

    def test_from_epoch_comma_subsec(self) -> None:
        key = TimestampKey.from_epoch(10, ",25")
        assert key is not None
        assert key.fraction == Decimal("0.25")
        assert key.text == "10,25"
