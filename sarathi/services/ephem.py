"""Swiss Ephemeris oracle used by the timing engine and the HTTP routes."""

from __future__ import annotations

import os
import threading
from datetime import datetime
from typing import Dict, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import swisseph as swe

from .angles import ensure_utc, normalize360
from .bodies import Body

# Engine version for API responses
try:
    ENGINE_VERSION = f"swisseph-{swe.version}"
except AttributeError:
    ENGINE_VERSION = "swisseph-2.10"  # Fallback if version not available

BODIES: Dict[Body, int] = {
    Body.SUN: swe.SUN,
    Body.MOON: swe.MOON,
    Body.MERCURY: swe.MERCURY,
    Body.VENUS: swe.VENUS,
    Body.MARS: swe.MARS,
    Body.JUPITER: swe.JUPITER,
    Body.SATURN: swe.SATURN,
}

NODE_CODES = {
    "mean": swe.MEAN_NODE,
    "true": swe.TRUE_NODE,
}

AYANAMSHA_MAP = {
    "lahiri": swe.SIDM_LAHIRI,
    "krishnamurti": swe.SIDM_KRISHNAMURTI,
    "raman": swe.SIDM_RAMAN,
}


class EphemerisOracle(Protocol):
    """The only two questions the engine ever asks an ephemeris."""

    def longitude(self, body: Body, instant: datetime) -> float:
        """Tropical ecliptic longitude in degrees."""

    def ayanamsa(self, instant: datetime) -> float:
        """Tropical-to-sidereal offset in degrees."""


def _backend_flag() -> int:
    """Return the Swiss Ephemeris backend flag based on environment configuration."""

    raw_backend = os.getenv("EPHEMERIS_BACKEND")
    backend = raw_backend.strip().lower() if raw_backend else "swieph"
    return swe.FLG_MOSEPH if backend == "moseph" else swe.FLG_SWIEPH


def init_paths(ephe_dir: str | os.PathLike[str] | None) -> None:
    """Set the Swiss Ephemeris file search path when available."""

    if not ephe_dir:
        return

    path = os.fspath(ephe_dir)
    if os.path.isdir(path):
        swe.set_ephe_path(path)


def to_utc(date_str: str, time_str: str, tz: str) -> datetime:
    """Convert a local date/time in an IANA zone to an aware UTC datetime."""

    try:
        zone = ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {tz!r}") from exc
    dt_local = datetime.fromisoformat(f"{date_str}T{time_str}").replace(tzinfo=zone)
    return dt_local.astimezone(ZoneInfo("UTC"))


def jd_from_datetime(instant: datetime) -> float:
    dt_utc = ensure_utc(instant)
    hour = (
        dt_utc.hour
        + dt_utc.minute / 60
        + dt_utc.second / 3600
        + dt_utc.microsecond / 3_600_000_000
    )
    return swe.julday(dt_utc.year, dt_utc.month, dt_utc.day, hour, swe.GREG_CAL)



class SwissEphemeris:
    """:class:`EphemerisOracle` backed by pyswisseph.

    ``swe.set_sid_mode`` is process-global, so calls that depend on it are
    serialised behind a lock; the oracle can be shared across sampler workers.
    """

    def __init__(self, ayanamsha: str | None = None, node_mode: str | None = None) -> None:
        ayan = (ayanamsha or os.getenv("SARATHI_AYANAMSHA") or "lahiri").strip().lower()
        node = (node_mode or os.getenv("SARATHI_NODE_MODE") or "mean").strip().lower()
        self.ayanamsha = ayan if ayan in AYANAMSHA_MAP else "lahiri"
        self.node_mode = node if node in NODE_CODES else "mean"
        self._lock = threading.Lock()
        init_paths(os.getenv("EPHE_PATH"))

    def _code(self, body: Body) -> int:
        if body is Body.RAHU:
            return NODE_CODES[self.node_mode]
        if body is Body.KETU:
            raise ValueError("Ketu is derived from Rahu and never queried")
        return BODIES[body]

    def longitude(self, body: Body, instant: datetime) -> float:
        jd = jd_from_datetime(instant)
        with self._lock:
            values, _ = swe.calc_ut(jd, self._code(body), _backend_flag())
        return values[0] % 360.0

    def ayanamsa(self, instant: datetime) -> float:
        jd = jd_from_datetime(instant)
        with self._lock:
            swe.set_sid_mode(AYANAMSHA_MAP[self.ayanamsha])
            return swe.get_ayanamsa_ut(jd)

    def ascendant(self, instant: datetime, lat: float, lon: float) -> float:
        """Tropical ascendant; used only to seed whole-sign houses at ingestion."""

        from .houses import ascendant_tropical

        with self._lock:
            return ascendant_tropical(jd_from_datetime(instant), lat, lon)

    def sidereal_ascendant(self, instant: datetime, lat: float, lon: float) -> float:
        return normalize360(self.ascendant(instant, lat, lon) - self.ayanamsa(instant))


__all__ = [
    "AYANAMSHA_MAP",
    "ENGINE_VERSION",
    "EphemerisOracle",
    "SwissEphemeris",
    "init_paths",
    "jd_from_datetime",
    "to_utc",
]
