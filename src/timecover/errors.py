"""Exception types raised by timecover."""
from __future__ import annotations


class TimeCoverError(Exception):
    """Base class for all timecover errors."""


class InvalidRangeError(TimeCoverError, ValueError):
    """A selection call was malformed: missing or mistyped argument, or start > end."""


class InvalidPatternError(TimeCoverError, ValueError):
    """The item pattern does not compile or has no ``timestamp`` group."""
