"""Typed failures raised by the timing engine.

Lower layers (angle kernel, sidereal adapter, nakshatra resolver) only raise;
the timing orchestrator is the one place that turns a failure into a degraded
but successful result.
"""

from __future__ import annotations


class TimingEngineError(RuntimeError):
    """Base class for every engine failure."""


class InvalidAngle(TimingEngineError, ValueError):
    """Raised for non-finite or otherwise unusable angle input."""


class EphemerisUnavailable(TimingEngineError):
    """Raised when a single ephemeris oracle call fails or returns garbage."""

    def __init__(self, message: str, body: str | None = None) -> None:
        super().__init__(message)
        self.body = body


class DashaUnavailable(TimingEngineError):
    """Raised when no dasha tree can be built (the natal Moon is unknown)."""


class InsufficientBirthData(TimingEngineError):
    """Raised by the orchestrator when birth data cannot support a prediction."""


__all__ = [
    "DashaUnavailable",
    "EphemerisUnavailable",
    "InsufficientBirthData",
    "InvalidAngle",
    "TimingEngineError",
]
