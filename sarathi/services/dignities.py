from __future__ import annotations

from .bodies import Body
from .houses import SIGN_NAMES, SIGN_RULERS, sign_index_from_lon

# Sidereal exaltation signs (Rahu/Ketu follow the common Taurus/Scorpio school).
EXALT = {
    Body.SUN: "Aries",
    Body.MOON: "Taurus",
    Body.MERCURY: "Virgo",
    Body.VENUS: "Pisces",
    Body.MARS: "Capricorn",
    Body.JUPITER: "Cancer",
    Body.SATURN: "Libra",
    Body.RAHU: "Taurus",
    Body.KETU: "Scorpio",
}
DEBILITATION = {
    body: SIGN_NAMES[(SIGN_NAMES.index(sign) + 6) % 12] for body, sign in EXALT.items()
}

DIGNITY_STRENGTH = {
    "exalted": 1.0,
    "own": 0.6,
    "neutral": 0.0,
    "debilitated": -1.0,
}


def dignity_for(body: Body, lon_sid: float) -> str:
    sign = SIGN_NAMES[sign_index_from_lon(lon_sid)]
    if sign == EXALT.get(body):
        return "exalted"
    if sign == DEBILITATION.get(body):
        return "debilitated"
    if SIGN_RULERS[sign_index_from_lon(lon_sid)] is body:
        return "own"
    return "neutral"


def natal_dignities(positions: dict[Body, float]) -> dict[Body, str]:
    return {body: dignity_for(body, lon) for body, lon in positions.items()}
