"""Closed set of grahas tracked by the timing engine.

Upstream providers spell planets many ways ("Jup", "TrueNode", "north node",
"Shukra"...). Alias resolution happens once, here, at the ingestion boundary;
the scoring core only ever sees :class:`Body` members.
"""

from __future__ import annotations

from enum import Enum


class Body(str, Enum):
    SUN = "Sun"
    MOON = "Moon"
    MARS = "Mars"
    MERCURY = "Mercury"
    JUPITER = "Jupiter"
    VENUS = "Venus"
    SATURN = "Saturn"
    RAHU = "Rahu"
    KETU = "Ketu"

    @classmethod
    def from_name(cls, name: str) -> "Body":
        """Resolve a provider spelling to a member; raises ``ValueError``."""

        key = (name or "").strip().lower().replace("_", " ")
        try:
            return _ALIASES[key]
        except KeyError:
            raise ValueError(f"Unknown body name: {name!r}") from None


_ALIASES: dict[str, Body] = {}
for _body in Body:
    _ALIASES[_body.value.lower()] = _body
_ALIASES.update(
    {
        "su": Body.SUN,
        "surya": Body.SUN,
        "ravi": Body.SUN,
        "mo": Body.MOON,
        "chandra": Body.MOON,
        "ma": Body.MARS,
        "mangal": Body.MARS,
        "kuja": Body.MARS,
        "me": Body.MERCURY,
        "mer": Body.MERCURY,
        "merc": Body.MERCURY,
        "budha": Body.MERCURY,
        "ju": Body.JUPITER,
        "jup": Body.JUPITER,
        "guru": Body.JUPITER,
        "ve": Body.VENUS,
        "ven": Body.VENUS,
        "shukra": Body.VENUS,
        "sa": Body.SATURN,
        "sat": Body.SATURN,
        "shani": Body.SATURN,
        "ra": Body.RAHU,
        "truenode": Body.RAHU,
        "true node": Body.RAHU,
        "meannode": Body.RAHU,
        "mean node": Body.RAHU,
        "north node": Body.RAHU,
        "ke": Body.KETU,
        "south node": Body.KETU,
    }
)

# Vimshottari lord sequence and full Mahadasha years (sum = 120).
DASHA_ORDER: tuple[Body, ...] = (
    Body.KETU,
    Body.VENUS,
    Body.SUN,
    Body.MOON,
    Body.MARS,
    Body.RAHU,
    Body.JUPITER,
    Body.SATURN,
    Body.MERCURY,
)
DASHA_YEARS: dict[Body, float] = {
    Body.KETU: 7,
    Body.VENUS: 20,
    Body.SUN: 6,
    Body.MOON: 10,
    Body.MARS: 7,
    Body.RAHU: 18,
    Body.JUPITER: 16,
    Body.SATURN: 19,
    Body.MERCURY: 17,
}
TOTAL_DASHA_YEARS = 120.0

NATURAL_BENEFICS = frozenset({Body.JUPITER, Body.VENUS, Body.MERCURY, Body.MOON})
NATURAL_MALEFICS = frozenset({Body.SATURN, Body.MARS, Body.RAHU, Body.KETU, Body.SUN})

# Bodies whose apparent motion can turn retrograde.
CAN_RETROGRADE = frozenset({Body.MERCURY, Body.VENUS, Body.MARS, Body.JUPITER, Body.SATURN})


def canonical_bodies(names) -> list[Body]:
    """Resolve a list of provider names, dropping duplicates but keeping order."""

    out: list[Body] = []
    for name in names:
        body = name if isinstance(name, Body) else Body.from_name(name)
        if body not in out:
            out.append(body)
    return out


__all__ = [
    "Body",
    "CAN_RETROGRADE",
    "DASHA_ORDER",
    "DASHA_YEARS",
    "NATURAL_BENEFICS",
    "NATURAL_MALEFICS",
    "TOTAL_DASHA_YEARS",
    "canonical_bodies",
]
