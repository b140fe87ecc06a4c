"""Shared pytest fixtures for timecover tests."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

# Rotation step of 121 seconds
EPOCHS: list[int] = [
    1677468390, 1677468511, 1677468632, 1677468753,
    1677468874, 1677468995, 1677469116, 1677469237,
    1677469358, 1677469479, 1677469600, 1677469721,
]


def utc(epoch: int) -> datetime:
    return datetime.fromtimestamp(epoch, tz=timezone.utc)


def pcap(epoch: int | str, prefix: str = "daemonlogger") -> str:
    return f"{prefix}.{epoch}.pcap"


@pytest.fixture()
def daemonlogger_files() -> list[str]:
    return [pcap(e) for e in EPOCHS]


@pytest.fixture()
def capture_dir(tmp_path: Path, daemonlogger_files: list[str]) -> Path:
    """A directory holding empty rotated capture files plus some noise."""
    d = tmp_path / "captures"
    d.mkdir()
    for name in daemonlogger_files + ["README.txt", "daemonlogger.pcap"]:
        (d / name).write_bytes(b"")
    (d / "archive").mkdir()
    return d
