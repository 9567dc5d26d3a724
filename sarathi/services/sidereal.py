"""Sidereal position adapter over an :class:`~sarathi.services.ephem.EphemerisOracle`."""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Iterable

from .angles import ensure_utc, normalize360
from .bodies import Body
from .ephem import EphemerisOracle
from .errors import EphemerisUnavailable

logger = logging.getLogger(__name__)


class SiderealAdapter:
    """Turns tropical oracle answers into ayanamsa-corrected longitudes.

    Ketu is never sent to the oracle; it is always Rahu + 180°.
    """

    def __init__(self, oracle: EphemerisOracle) -> None:
        self.oracle = oracle

    def _ask(self, what: str, call, body: Body | None = None) -> float:
        try:
            value = call()
        except EphemerisUnavailable:
            raise
        except Exception as exc:
            raise EphemerisUnavailable(f"{what} lookup failed: {exc}", body=body.value if body else None) from exc
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise EphemerisUnavailable(f"{what} returned {value!r}", body=body.value if body else None) from exc
        if not math.isfinite(number):
            raise EphemerisUnavailable(f"{what} returned non-finite {number!r}", body=body.value if body else None)
        return number

    def ayanamsa(self, instant: datetime) -> float:
        instant = ensure_utc(instant)
        return self._ask("ayanamsa", lambda: self.oracle.ayanamsa(instant))

    def position_of(self, body: Body, instant: datetime) -> float:
        """Sidereal longitude of ``body``; raises :class:`EphemerisUnavailable`."""

        instant = ensure_utc(instant)
        if body is Body.KETU:
            return normalize360(self.position_of(Body.RAHU, instant) + 180.0)
        tropical = self._ask(f"{body.value} longitude", lambda: self.oracle.longitude(body, instant), body)
        return normalize360(tropical - self.ayanamsa(instant))

    def positions(self, bodies: Iterable[Body], instant: datetime) -> dict[Body, float]:
        """Best-effort positions: failed bodies are omitted, never fabricated."""

        instant = ensure_utc(instant)
        wanted = list(bodies)
        queried = [b for b in wanted if b is not Body.KETU]
        if Body.KETU in wanted and Body.RAHU not in queried:
            queried.append(Body.RAHU)
        out: dict[Body, float] = {}
        for body in queried:
            try:
                out[body] = self.position_of(body, instant)
            except EphemerisUnavailable as exc:
                logger.debug("sidereal_position_missing", extra={"body": body.value, "instant": instant.isoformat(), "error": str(exc)})
        if Body.KETU in wanted and Body.RAHU in out:
            out[Body.KETU] = normalize360(out[Body.RAHU] + 180.0)
        if Body.RAHU not in wanted:
            out.pop(Body.RAHU, None)
        return out


__all__ = ["SiderealAdapter"]
