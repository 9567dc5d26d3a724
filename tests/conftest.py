import datetime as dt
import os
import threading
import time

import pytest

os.environ.setdefault("EPHEMERIS_BACKEND", "moseph")

from sarathi.services.bodies import Body

EPOCH = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
AYANAMSA = 24.0

# tropical longitude at EPOCH and mean daily motion
BASE = {
    Body.SUN: 280.0,
    Body.MOON: 10.0,
    Body.MERCURY: 265.0,
    Body.VENUS: 245.0,
    Body.MARS: 270.0,
    Body.JUPITER: 35.0,
    Body.SATURN: 339.0,
    Body.RAHU: 15.0,
}
SPEED = {
    Body.SUN: 0.9856,
    Body.MOON: 13.176,
    Body.MERCURY: 1.2,
    Body.VENUS: 1.2,
    Body.MARS: 0.52,
    Body.JUPITER: 0.083,
    Body.SATURN: 0.033,
    Body.RAHU: -0.053,
}


class FakeOracle:
    """Linear-motion ephemeris; ``fail(body, instant)`` decides which calls raise."""

    def __init__(self, base=None, speed=None, fail=None, ayanamsa=AYANAMSA, delay=None, on_call=None):
        self.base = {**BASE, **(base or {})}
        self.speed = {**SPEED, **(speed or {})}
        self.fail = fail or (lambda body, instant: False)
        self.delay = delay or (lambda body, instant: 0.0)
        self.on_call = on_call
        self._ayanamsa = ayanamsa
        self._lock = threading.Lock()
        self.calls = []

    def longitude(self, body, instant):
        with self._lock:
            self.calls.append((body, instant))
            n = len(self.calls)
        if self.on_call:
            self.on_call(n)
        pause = self.delay(body, instant)
        if pause:
            time.sleep(pause)
        if self.fail(body, instant):
            raise RuntimeError(f"no data for {body.value}")
        days = (instant - EPOCH).total_seconds() / 86400.0
        return (self.base[body] + self.speed[body] * days) % 360.0

    def ayanamsa(self, instant):
        return self._ayanamsa

    def asked(self):
        return {body for body, _ in self.calls}


@pytest.fixture
def fake_oracle():
    return FakeOracle()
