"""
Engine Errors - Exceptions raised by the rule engine.

Every operation validates before it mutates, so when one of these is
raised the round, boards and scores are exactly as they were before the
call. Drivers surface them to the user; the engine never retries.
"""

from __future__ import annotations


class CanogaError(Exception):
    """Base class for all rule-engine errors."""

    error_code = "CANOGA_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(CanogaError):
    """Board size or configuration value outside the allowed range."""

    error_code = "CONFIG_ERROR"


class WrongPhase(CanogaError):
    """Operation invoked while the round is in another phase."""

    error_code = "WRONG_PHASE"


class InvalidMove(CanogaError):
    """Selected combination is not currently legal, or is malformed."""

    error_code = "INVALID_MOVE"


class OneDieNotAllowed(CanogaError):
    """One-die roll requested while squares 7..size are not all covered."""

    error_code = "ONE_DIE_NOT_ALLOWED"


class OutOfRange(CanogaError):
    """Square index, die value or die count outside its range."""

    error_code = "OUT_OF_RANGE"


class CorruptSnapshot(CanogaError):
    """Snapshot text is missing a block or carries an impossible board."""

    error_code = "CORRUPT_SNAPSHOT"
