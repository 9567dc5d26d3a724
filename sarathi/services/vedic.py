from __future__ import annotations

from dataclasses import dataclass

from .angles import normalize360, require_finite
from .bodies import DASHA_ORDER, Body

NAKSHATRAS = [
  "Ashwini","Bharani","Krittika","Rohini","Mrigashira","Ardra","Punarvasu","Pushya","Ashlesha",
  "Magha","Purva Phalguni","Uttara Phalguni","Hasta","Chitra","Swati","Vishakha","Anuradha",
  "Jyeshtha","Mula","Purva Ashadha","Uttara Ashadha","Shravana","Dhanishtha","Shatabhisha",
  "Purva Bhadrapada","Uttara Bhadrapada","Revati"
]

NAKSHATRA_SPAN = 360.0 / 27   # 13°20′
PADA_SPAN = 360.0 / 108       # 3°20′

TARA_NAMES = [
    "Janma", "Sampat", "Vipat", "Kshema", "Pratyak",
    "Sadhana", "Naidhana", "Mitra", "Parama Mitra",
]
INAUSPICIOUS_TARAS = frozenset({3, 5, 7})


@dataclass(frozen=True)
class NakshatraSlot:
    index: int
    name: str
    lord: Body
    pada: int


def resolve(lon_sid: float) -> NakshatraSlot:
    """Map a sidereal longitude to its nakshatra, pada and ruling lord."""

    lon = normalize360(require_finite(lon_sid))
    idx = min(int(lon // NAKSHATRA_SPAN), 26)
    pada = min(int((lon % NAKSHATRA_SPAN) // PADA_SPAN) + 1, 4)
    return NakshatraSlot(index=idx, name=NAKSHATRAS[idx], lord=DASHA_ORDER[idx % 9], pada=pada)


def fraction_elapsed(lon_sid: float) -> float:
    """How far ``lon_sid`` has travelled through its nakshatra, in ``[0, 1)``."""

    lon = normalize360(require_finite(lon_sid))
    return (lon % NAKSHATRA_SPAN) / NAKSHATRA_SPAN


def nakshatra_index(name: str) -> int:
    lowered = name.strip().lower()
    for idx, candidate in enumerate(NAKSHATRAS):
        if candidate.lower() == lowered:
            return idx
    # "Dhanishta" is the other common spelling
    if lowered == "dhanishta":
        return NAKSHATRAS.index("Dhanishtha")
    raise ValueError(f"Unknown nakshatra: {name!r}")


def tara_bala(natal_index: int, transit_index: int) -> int:
    """Tara number 1..9 of the transit star counted from the natal star."""

    return ((transit_index - natal_index) % 27) % 9 + 1


def nakshatra_from_lon_sidereal(lon_sid: float) -> dict:
    slot = resolve(lon_sid)
    return {"name": slot.name, "pada": slot.pada, "lord": slot.lord.value}
