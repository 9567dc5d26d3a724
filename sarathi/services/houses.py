from __future__ import annotations

import swisseph as swe

from .angles import normalize360
from .bodies import Body

SIGN_NAMES = ["Aries","Taurus","Gemini","Cancer","Leo","Virgo","Libra","Scorpio","Sagittarius","Capricorn","Aquarius","Pisces"]

# Ruler per sign index 0..11 (Aries..Pisces)
SIGN_RULERS: list[Body] = [
    Body.MARS,     # Aries
    Body.VENUS,    # Taurus
    Body.MERCURY,  # Gemini
    Body.MOON,     # Cancer
    Body.SUN,      # Leo
    Body.MERCURY,  # Virgo
    Body.VENUS,    # Libra
    Body.MARS,     # Scorpio
    Body.JUPITER,  # Sagittarius
    Body.SATURN,   # Capricorn
    Body.SATURN,   # Aquarius
    Body.JUPITER,  # Pisces
]


def sign_index_from_lon(lon: float) -> int:
    return int(normalize360(lon) // 30) % 12


def sign_name_from_lon(lon: float) -> str:
    return SIGN_NAMES[sign_index_from_lon(lon)]


def ascendant_tropical(jd_utc: float, lat: float, lon: float) -> float:
    # whole-sign only needs the ascendant degree; "W" keeps swe from failing at high latitudes
    _cusps, ascmc = swe.houses(jd_utc, lat, lon, b"W")
    return ascmc[0] % 360.0


def house_sign(asc_lon: float, house: int) -> int:
    """Sign index occupying ``house`` (1..12) in whole-sign houses."""

    if not 1 <= house <= 12:
        raise ValueError(f"house must be 1..12, got {house}")
    return (sign_index_from_lon(asc_lon) + house - 1) % 12


def house_lord(asc_lon: float, house: int) -> Body:
    return SIGN_RULERS[house_sign(asc_lon, house)]


def house_cusp(asc_lon: float, house: int) -> float:
    """Cusp of ``house`` as the ascendant degree carried into that house's sign."""

    if not 1 <= house <= 12:
        raise ValueError(f"house must be 1..12, got {house}")
    return normalize360(asc_lon + (house - 1) * 30.0)
