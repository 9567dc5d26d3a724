import datetime as dt
import threading
from dataclasses import replace

import pytest

from sarathi.services.angles import add_fractional_years
from sarathi.services.bodies import Body
from sarathi.services.dashas_vimshottari import DashaOverride
from sarathi.services.domains import get_domain
from sarathi.services.errors import InsufficientBirthData
from sarathi.services.orchestrators.timing_full import BirthData, Horizon, natal_context, predict
from sarathi.services.scoring import NatalContext
from sarathi.services.sidereal import SiderealAdapter

from conftest import FakeOracle

UTC = dt.timezone.utc
BIRTH = BirthData(instant=dt.datetime(2000, 1, 1, 6, 0, tzinfo=UTC), moon_longitude=20.0)
H0 = dt.datetime(2005, 1, 1, tzinfo=UTC)


def venus_only(**kw):
    base = replace(
        get_domain("general"),
        affine_lords=frozenset({Body.VENUS}),
        averse_lords=frozenset(),
        transit_bodies=(),
        retrograde_bodies=frozenset(),
        supportive_nakshatras=frozenset(),
        tara_penalty=0.0,
        own_sign_bonus=0.0,
        natal_strength_weight=0.0,
        threshold=0.55,
        min_days=5,
        max_days=60,
    )
    return replace(base, **kw)


def _sun_md_with_venus_antardasha(start):
    # Sun MD (6y): Venus is the last AD, covering years 5..6; 5.3y in avoids the Venus PD
    return DashaOverride(Body.SUN, add_fractional_years(start, -5.3))


def test_antardasha_only_signal_gives_one_window():
    start = dt.datetime(2025, 3, 1, tzinfo=UTC)
    result = predict(
        BirthData(instant=dt.datetime(1990, 1, 1, tzinfo=UTC)),
        "general",
        Horizon.from_days(start, 40),
        FakeOracle(),
        weights=venus_only(),
        natal=NatalContext(),
        dasha_override=_sun_md_with_venus_antardasha(start),
    )
    assert result.status == "ok"
    assert len(result.windows) == 1
    w = result.windows[0]
    assert (w.from_, w.to, w.days) == ("2025-03-01", "2025-04-10", 41)
    assert w.score == pytest.approx(0.6)
    assert w.reasons == ["Venus AD supports general"]
    assert result.current_dasha.md == "Sun" and result.current_dasha.ad == "Venus"
    assert result.bottom_line.verdict == "cautious_go"
    assert result.bottom_line.best_window == w


def test_antardasha_window_clamped_to_max_days():
    start = dt.datetime(2025, 3, 1, tzinfo=UTC)
    result = predict(
        BirthData(instant=dt.datetime(1990, 1, 1, tzinfo=UTC)),
        "general",
        Horizon.from_days(start, 40),
        FakeOracle(),
        weights=venus_only(max_days=28),
        natal=NatalContext(),
        dasha_override=_sun_md_with_venus_antardasha(start),
    )
    [w] = result.windows
    assert (w.from_, w.to, w.days) == ("2025-03-01", "2025-03-28", 28)


def test_dead_oracle_falls_back_to_dasha_signal():
    oracle = FakeOracle(fail=lambda body, instant: True)
    result = predict(BIRTH, "general", Horizon.from_days(H0, 90), oracle)
    assert result.status == "ok"
    assert result.current_dasha.md == "Venus"
    assert result.windows
    assert "Venus MD supports general" in result.windows[0].reasons
    assert result.score.confidence == pytest.approx(0.3)


def test_threshold_above_every_score_is_no_signal():
    oracle = FakeOracle(fail=lambda body, instant: True)
    result = predict(BIRTH, "general", Horizon.from_days(H0, 90), oracle, threshold=0.99)
    assert result.status == "no_signal"
    assert result.windows == []
    assert result.bottom_line.verdict == "wait"
    assert result.bottom_line.best_window is None
    assert result.bottom_line.lead


def test_missing_moon_is_insufficient_birth_data():
    oracle = FakeOracle(fail=lambda body, instant: body is Body.MOON)
    birth = BirthData(instant=dt.datetime(2000, 1, 1, tzinfo=UTC))
    with pytest.raises(InsufficientBirthData):
        predict(birth, "career", Horizon.from_days(H0, 30), oracle)


def test_twenty_percent_missing_days_degrade_gracefully():
    horizon = Horizon.from_days(H0, 60)
    clean = predict(BIRTH, "general", horizon, FakeOracle())
    sparse_oracle = FakeOracle(fail=lambda body, instant: instant >= H0 and instant.day % 5 == 0)
    sparse = predict(BIRTH, "general", horizon, sparse_oracle)
    assert sparse.status == clean.status == "ok"
    assert sparse.windows
    assert sparse.score.confidence < clean.score.confidence
    assert sparse.current_dasha == clean.current_dasha


def test_cancelled_run_reports_partial_horizon():
    cancel = threading.Event()

    def trip(n):
        if n >= 80:
            cancel.set()

    oracle = FakeOracle(on_call=trip, delay=lambda body, instant: 0.002)
    result = predict(
        BIRTH, "general", Horizon.from_days(H0, 180), oracle,
        cancel=cancel, max_workers=1,
    )
    assert result.status == "partial"
    assert result.horizon.computed_end is not None
    assert result.horizon.computed_end < result.horizon.end
    assert "stopped early" in result.bottom_line.nuance


def test_domain_defaults_and_hints():
    result = predict(BIRTH, "job", None, FakeOracle(), now=H0)
    assert result.category == "career"
    assert result.horizon.start == "2005-01-01"
    assert result.horizon.end == "2005-06-30"
    assert result.action_hints and result.risk_hints
    assert 0.0 <= result.score.now <= 1.0
    assert result.score.peak >= result.score.now
    assert all(w.strength_label in {"low", "medium", "high"} for w in result.windows)


def test_natal_ascendant_comes_from_birth_data():
    oracle = FakeOracle()
    birth = BirthData(instant=dt.datetime(2000, 1, 1, tzinfo=UTC), ascendant=76.0)
    natal = natal_context(SiderealAdapter(oracle), birth)
    assert natal.ascendant == pytest.approx(76.0)
    assert Body.KETU in natal.positions
    assert natal_context(SiderealAdapter(oracle), BIRTH).ascendant is None


def test_natal_context_never_asks_the_oracle_for_an_ascendant():
    class WithAscendant(FakeOracle):
        def ascendant(self, instant, lat, lon):
            raise AssertionError("ascendant is resolved at ingestion")

    birth = BirthData(instant=dt.datetime(2000, 1, 1, tzinfo=UTC))
    assert natal_context(SiderealAdapter(WithAscendant()), birth).ascendant is None


def test_horizon_must_run_forward():
    with pytest.raises(ValueError):
        Horizon(start=H0, end=H0 - dt.timedelta(days=1))
