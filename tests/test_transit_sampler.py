import datetime as dt
import threading

import pytest

from sarathi.services.bodies import Body
from sarathi.services.sidereal import SiderealAdapter
from sarathi.services.transit_sampler import TransitSampler, mark_retrograde, step_instants

from conftest import EPOCH, FakeOracle

BODIES = [Body.SUN, Body.MOON, Body.MARS, Body.MERCURY, Body.JUPITER]


def _sampler(oracle, **kw):
    return TransitSampler(SiderealAdapter(oracle), max_workers=kw.pop("max_workers", 4), **kw)


def test_step_instants_are_inclusive():
    assert len(step_instants(EPOCH, EPOCH + dt.timedelta(days=10))) == 11
    assert len(step_instants(EPOCH, EPOCH + dt.timedelta(days=9), 3)) == 4
    assert step_instants(EPOCH, EPOCH) == [EPOCH]
    with pytest.raises(ValueError):
        step_instants(EPOCH, EPOCH, 0)


def test_one_sample_per_day_in_order():
    series = _sampler(FakeOracle()).sample(BODIES, EPOCH, EPOCH + dt.timedelta(days=14))
    assert len(series) == 15 and series.complete and not series.cancelled
    instants = [s.instant for s in series]
    assert instants == sorted(instants)
    assert instants[0] == EPOCH
    assert all(set(s.longitudes) == set(BODIES) for s in series)


def test_failed_body_is_absent_not_fatal():
    oracle = FakeOracle(fail=lambda body, instant: body is Body.MARS)
    series = _sampler(oracle).sample(BODIES, EPOCH, EPOCH + dt.timedelta(days=5))
    assert len(series) == 6
    for s in series:
        assert s.lon(Body.MARS) is None
        assert s.lon(Body.SUN) is not None


def test_every_call_failing_still_yields_empty_samples():
    oracle = FakeOracle(fail=lambda body, instant: True)
    series = _sampler(oracle).sample(BODIES, EPOCH, EPOCH + dt.timedelta(days=3))
    assert len(series) == 4
    assert all(not s.longitudes for s in series)


def test_retrograde_from_backward_motion():
    oracle = FakeOracle(speed={Body.MERCURY: -0.8})
    series = _sampler(oracle).sample([Body.MERCURY, Body.JUPITER], EPOCH, EPOCH + dt.timedelta(days=4))
    assert all(s.is_retrograde(Body.MERCURY) for s in series)
    assert not any(s.is_retrograde(Body.JUPITER) for s in series)


def test_mark_retrograde_handles_wrap_and_gaps():
    raw = [{Body.MARS: 359.5}, {Body.MARS: 0.2}, {}, {Body.MARS: 359.9}]
    flags = mark_retrograde(raw, lead_in={Body.MARS: 359.0})
    assert flags[0] == frozenset() and flags[1] == frozenset()
    assert flags[2] == frozenset()
    # nothing to compare against after an empty step
    assert flags[3] == frozenset()


def test_nodes_and_luminaries_never_flagged():
    raw = [{Body.RAHU: 10.0}, {Body.RAHU: 9.9}]
    assert mark_retrograde(raw) == [frozenset(), frozenset()]


def test_cancel_before_start_returns_empty_partial():
    cancel = threading.Event()
    cancel.set()
    series = _sampler(FakeOracle()).sample(BODIES, EPOCH, EPOCH + dt.timedelta(days=30), cancel=cancel)
    assert series.cancelled and not series.complete
    assert len(series) == 0


def test_cancel_mid_run_keeps_contiguous_prefix():
    cancel = threading.Event()

    def trip(n):
        if n >= 40:
            cancel.set()

    oracle = FakeOracle(on_call=trip, delay=lambda body, instant: 0.002)
    end = EPOCH + dt.timedelta(days=120)
    series = _sampler(oracle, max_workers=1).sample(BODIES, EPOCH, end, cancel=cancel)
    assert series.cancelled and not series.complete
    assert 0 < len(series) < 121
    instants = [s.instant for s in series]
    assert instants == [EPOCH + dt.timedelta(days=i) for i in range(len(series))]


def test_stuck_step_times_out_as_empty_sample():
    stuck = EPOCH + dt.timedelta(days=2)
    oracle = FakeOracle(delay=lambda body, instant: 0.8 if instant == stuck else 0.0)
    series = _sampler(oracle, timeout_s=0.2).sample([Body.SUN], EPOCH, EPOCH + dt.timedelta(days=5))
    assert len(series) == 6 and series.complete
    assert series.timed_out_steps == 1
    assert not series.samples[2].longitudes
    assert series.samples[3].lon(Body.SUN) is not None
