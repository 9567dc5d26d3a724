"""Angle and calendar arithmetic shared by every timing component.

Everything here is pure and free of ephemeris dependencies so it can be
unit-tested without the Swiss Ephemeris bindings.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

from .errors import InvalidAngle

UTC = timezone.utc

DAYS_PER_YEAR = 365.2425
SECONDS_PER_DAY = 86400.0


def require_finite(value: float, what: str = "angle") -> float:
    """Return ``value`` as float or raise :class:`InvalidAngle`."""

    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidAngle(f"{what} is not a number: {value!r}") from exc
    if not math.isfinite(number):
        raise InvalidAngle(f"{what} is not finite: {value!r}")
    return number


def normalize360(x: float) -> float:
    """Wrap any finite angle into ``[0, 360)``."""

    value = require_finite(x) % 360.0
    # -1e-17 % 360 rounds up to exactly 360.0
    if value >= 360.0:
        value -= 360.0
    return value


def angular_separation(a: float, b: float) -> float:
    """Return the shortest arc between two longitudes, in ``[0, 180]``."""

    diff = normalize360(require_finite(a) - require_finite(b))
    return 360.0 - diff if diff > 180.0 else diff


def signed_delta(transit_lon: float, natal_lon: float, aspect_angle: float = 0.0) -> float:
    """Return the signed difference from the exact aspect in degrees.

    The result is in the range [-180, 180). Positive values mean the transit
    body has moved past the exact aspect, negative values mean it is still
    approaching.
    """

    return ((require_finite(transit_lon) - require_finite(natal_lon)) - aspect_angle + 540.0) % 360.0 - 180.0


def ensure_utc(instant: datetime) -> datetime:
    """Return ``instant`` as an aware UTC datetime (naive input is taken as UTC)."""

    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def add_fractional_years(instant: datetime, years: float) -> datetime:
    """Shift ``instant`` by ``years`` of 365.2425 days; negative values back-date."""

    years = require_finite(years, "years")
    return ensure_utc(instant) + timedelta(days=years * DAYS_PER_YEAR)


def days_between(a: datetime, b: datetime) -> float:
    """Signed number of days from ``a`` to ``b``."""

    return (ensure_utc(b) - ensure_utc(a)).total_seconds() / SECONDS_PER_DAY


def years_between(a: datetime, b: datetime) -> float:
    return days_between(a, b) / DAYS_PER_YEAR


def clamp_to_horizon(
    start: datetime,
    end: datetime,
    horizon_start: datetime,
    horizon_end: datetime,
) -> tuple[datetime, datetime] | None:
    """Intersect ``[start, end]`` with the horizon; ``None`` when disjoint."""

    s = max(ensure_utc(start), ensure_utc(horizon_start))
    e = min(ensure_utc(end), ensure_utc(horizon_end))
    return (s, e) if s <= e else None


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


__all__ = [
    "DAYS_PER_YEAR",
    "UTC",
    "add_fractional_years",
    "angular_separation",
    "clamp01",
    "clamp_to_horizon",
    "days_between",
    "ensure_utc",
    "normalize360",
    "require_finite",
    "signed_delta",
    "years_between",
]
