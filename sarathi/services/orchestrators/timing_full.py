"""End-to-end timing prediction: dashas + transits -> scored days -> windows.

The orchestrator is the one place where failures turn into degraded results:
a missing natal Moon is fatal (``InsufficientBirthData``), a sparse transit
series is not, nothing above threshold is a successful ``no_signal`` result,
and a cancelled run returns what was computed as ``partial``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import List, Optional

from ...schemas.timing import (
    BottomLine,
    CurrentDasha,
    HorizonOut,
    PredictionResult,
    ScoreSummary,
    WindowOut,
)
from .. import ephem
from ..angles import UTC, ensure_utc, normalize360
from ..bodies import Body
from ..dashas_vimshottari import DashaOverride, DashaTimeline, build_tree
from ..domains import DomainWeights, get_domain
from ..errors import DashaUnavailable, EphemerisUnavailable, InsufficientBirthData
from ..scoring import NatalContext, ScoredDay, score_series
from ..sidereal import SiderealAdapter
from ..transit_sampler import SampleSeries, TransitSampler
from ..vedic import nakshatra_from_lon_sidereal
from ..windows import Window, extract, strength_label

logger = logging.getLogger(__name__)

ENGINE = "sarathi-timing-v2"


@dataclass(frozen=True)
class BirthData:
    instant: datetime
    moon_longitude: Optional[float] = None  # sidereal, when already known
    ascendant: Optional[float] = None  # sidereal, resolved at ingestion

    @classmethod
    def from_local(cls, date: str, time: str, tz: str) -> "BirthData":
        return cls(instant=ephem.to_utc(date, time, tz))


@dataclass(frozen=True)
class Horizon:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if ensure_utc(self.end) < ensure_utc(self.start):
            raise ValueError("horizon end is before its start")

    @classmethod
    def from_days(cls, start: datetime, days: int) -> "Horizon":
        start = ensure_utc(start)
        return cls(start=start, end=start + timedelta(days=days))


def natal_context(adapter: SiderealAdapter, birth: BirthData) -> NatalContext:
    """Best-effort natal facts; the Moon is the only one the engine cannot do without."""

    positions = adapter.positions(list(Body), birth.instant)
    if birth.moon_longitude is not None:
        positions[Body.MOON] = birth.moon_longitude
    ascendant = normalize360(birth.ascendant) if birth.ascendant is not None else None
    return NatalContext(positions=MappingProxyType(positions), ascendant=ascendant)


def _iso(instant: datetime) -> str:
    return ensure_utc(instant).date().isoformat()


def _window_out(w: Window) -> WindowOut:
    return WindowOut(
        **{"from": _iso(w.from_instant)},
        to=_iso(w.to_instant),
        label=w.label,
        score=round(w.score, 3),
        strength_label=w.strength_label,
        reasons=list(w.reasons),
        days=w.days,
    )


def _key_signals(scored: List[ScoredDay], windows: List[Window], limit: int = 5) -> List[str]:
    """Most recurring positive facts: inside the windows if any, else across the horizon."""

    if windows:
        out: List[str] = []
        for w in windows:
            for reason in w.reasons:
                if reason not in out:
                    out.append(reason)
        return out[:limit]
    totals: dict[str, float] = {}
    for day in scored:
        for c in day.contributions:
            if c.delta > 0:
                totals[c.reason] = totals.get(c.reason, 0.0) + c.delta
    return [r for r, _ in sorted(totals.items(), key=lambda kv: -kv[1])[:limit]]


def _coverage(series: SampleSeries, weights: DomainWeights) -> float:
    expected = len(series) * len(weights.sampled_bodies)
    if not expected:
        return 0.0
    got = sum(1 for s in series for b in weights.sampled_bodies if s.lon(b) is not None)
    return got / expected


def _verdict(windows: List[Window], threshold: float) -> str:
    if not windows:
        return "wait"
    best = windows[0].score
    if best >= 0.7:
        return "go"
    return "cautious_go" if best >= threshold else "wait"


def predict(
    birth: BirthData,
    domain: str | None,
    horizon: Horizon | None,
    oracle: ephem.EphemerisOracle,
    *,
    now: datetime | None = None,
    weights: DomainWeights | None = None,
    natal: NatalContext | None = None,
    step_days: int = 1,
    max_workers: int | None = None,
    timeout_s: float | None = None,
    cancel: threading.Event | None = None,
    dasha_override: DashaOverride | None = None,
    threshold: float | None = None,
    min_days: int | None = None,
    max_days: int | None = None,
    top_n: int | None = None,
) -> PredictionResult:
    weights = weights or get_domain(domain)
    overrides = {k: v for k, v in (("threshold", threshold), ("min_days", min_days), ("max_days", max_days), ("top_n", top_n)) if v is not None}
    if overrides:
        weights = replace(weights, **overrides)
    if horizon is None:
        horizon = Horizon.from_days(now or datetime.now(UTC), weights.horizon_days)
    h_start, h_end = ensure_utc(horizon.start), ensure_utc(horizon.end)

    adapter = SiderealAdapter(oracle)
    if natal is None:
        natal = natal_context(adapter, birth)
    moon = birth.moon_longitude if birth.moon_longitude is not None else natal.moon

    try:
        forest = build_tree(moon, birth.instant, 2, h_end, window_start=h_start, override=dasha_override)
    except (DashaUnavailable, EphemerisUnavailable) as exc:
        raise InsufficientBirthData(f"cannot build dashas: {exc}") from exc
    timeline = DashaTimeline(forest)

    sampler = TransitSampler(adapter, max_workers=max_workers, timeout_s=timeout_s)
    series = sampler.sample(weights.sampled_bodies, h_start, h_end, step_days=step_days, cancel=cancel)
    scored = score_series(series, timeline, weights, natal)

    windows = extract(
        scored,
        threshold=weights.threshold,
        min_days=weights.min_days,
        max_days=weights.max_days,
        top_n=weights.top_n,
        step_days=step_days,
        close_trailing_run=series.complete,
        labels=weights.window_labels,
    )

    if series.cancelled or not series.complete:
        status = "partial"
    elif not windows:
        status = "no_signal"
    else:
        status = "ok"

    ctx = timeline.at(h_start)
    now_score = scored[0].score if scored else 0.5
    peak = max((d.score for d in scored), default=now_score)
    coverage = _coverage(series, weights)
    confidence = max(0.3, min(0.95, 0.3 + 0.65 * coverage))

    window_out = [_window_out(w) for w in windows]
    nuance = weights.nuance or None
    if status == "no_signal":
        nuance = "No strong window in this horizon; keep steady and revisit later."
    elif status == "partial":
        nuance = "Computation stopped early; windows cover the computed part only."

    logger.info(
        "timing_predict_done",
        extra={
            "category": weights.name,
            "status": status,
            "days": len(scored),
            "windows": len(windows),
            "coverage": round(coverage, 3),
        },
    )

    return PredictionResult(
        category=weights.name,
        status=status,
        horizon=HorizonOut(
            start=_iso(h_start),
            end=_iso(h_end),
            computed_end=_iso(series.last_instant) if status == "partial" and series.last_instant else None,
        ),
        windows=window_out,
        bottom_line=BottomLine(
            lead=weights.lead,
            nuance=nuance,
            verdict=_verdict(windows, weights.threshold),
            best_window=window_out[0] if window_out else None,
        ),
        current_dasha=CurrentDasha(
            md=ctx.md.value if ctx.md else None,
            ad=ctx.ad.value if ctx.ad else None,
            pd=ctx.pd.value if ctx.pd else None,
            label=ctx.label,
        ),
        key_signals=_key_signals(scored, windows),
        action_hints=list(weights.action_hints),
        risk_hints=list(weights.risk_hints),
        score=ScoreSummary(now=round(now_score, 3), peak=round(peak, 3), confidence=round(confidence, 2)),
        meta={
            "engine": ENGINE,
            "birth_star": nakshatra_from_lon_sidereal(moon) if moon is not None else None,
            "step_days": step_days,
            "threshold": weights.threshold,
            "strength_now": strength_label(now_score),
            "timed_out_steps": series.timed_out_steps,
        },
    )


__all__ = ["BirthData", "Horizon", "natal_context", "predict"]
