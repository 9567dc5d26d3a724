"""Per-day domain scoring.

A day's score is a weighted sum of small, bounded signal deltas. Each delta
keeps the fact that produced it, so the window extractor can explain a window
without re-running anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from .angles import angular_separation, clamp01
from .bodies import NATURAL_BENEFICS, NATURAL_MALEFICS, Body
from .dashas_vimshottari import LEVEL_NAMES, DashaContext, DashaTimeline
from .dignities import DIGNITY_STRENGTH, dignity_for, natal_dignities
from .domains import ASPECT_ANGLES, DomainWeights
from .houses import house_cusp, house_lord, sign_name_from_lon
from .transit_sampler import TransitSample
from .vedic import INAUSPICIOUS_TARAS, TARA_NAMES, resolve, tara_bala

PRESENTATION_BASELINE = 0.5


def ordinal(n: int) -> str:
    suffix = "th" if 10 <= n % 100 <= 20 else {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


@dataclass(frozen=True)
class NatalContext:
    """Natal facts used by the optional chart-aware signals."""

    positions: Mapping[Body, float] = field(default_factory=lambda: MappingProxyType({}))
    ascendant: Optional[float] = None

    @property
    def moon(self) -> Optional[float]:
        return self.positions.get(Body.MOON)

    @cached_property
    def moon_nakshatra(self) -> Optional[int]:
        return resolve(self.moon).index if self.moon is not None else None

    @cached_property
    def dignities(self) -> Mapping[Body, str]:
        return MappingProxyType(natal_dignities(dict(self.positions)))


@dataclass(frozen=True)
class Contribution:
    signal: str
    delta: float
    reason: str


@dataclass(frozen=True)
class ScoredDay:
    instant: datetime
    score: float
    raw: float
    reasons: Tuple[str, ...] = ()
    contributions: Tuple[Contribution, ...] = ()


def reference_points(natal: Optional[NatalContext], weights: DomainWeights) -> List[Tuple[str, float]]:
    """Natal longitudes the domain cares about: house cusps, house lords, karakas.

    Without an ascendant the natal Moon stands in as lagna (Chandra lagna).
    """

    if natal is None:
        return []
    points: List[Tuple[str, float]] = []
    lagna = natal.ascendant if natal.ascendant is not None else natal.moon
    frame = "" if natal.ascendant is not None else " from Moon"
    if lagna is not None:
        for h in weights.cusp_houses:
            points.append((f"natal {ordinal(h)} house{frame}", house_cusp(lagna, h)))
        for h in weights.lord_houses:
            lord = house_lord(lagna, h)
            lon = natal.positions.get(lord)
            if lon is not None:
                points.append((f"natal {lord.value} ({ordinal(h)} lord{frame})", lon))
    for karaka in weights.karakas:
        lon = natal.positions.get(karaka)
        if lon is not None:
            points.append((f"natal {karaka.value}", lon))

    seen = set()
    unique = []
    for name, lon in points:
        if name not in seen:
            seen.add(name)
            unique.append((name, lon))
    return unique


def _dasha_signals(ctx: DashaContext, weights: DomainWeights) -> List[Contribution]:
    out = []
    for depth, lord in ctx.lords():
        w = weights.depth_weights[depth]
        if lord in weights.affine_lords:
            out.append(Contribution("dasha", w, f"{lord.value} {LEVEL_NAMES[depth]} supports {weights.label}"))
        elif lord in weights.averse_lords:
            out.append(Contribution("dasha", -w, f"{lord.value} {LEVEL_NAMES[depth]} works against {weights.label}"))
    return out


def _aspect_signals(
    sample: TransitSample,
    refs: List[Tuple[str, float]],
    weights: DomainWeights,
) -> List[Contribution]:
    out = []
    for body in weights.transit_bodies:
        t_lon = sample.lon(body)
        if t_lon is None:
            continue
        pw = weights.planet_weights.get(body, 0.5)
        for ref_name, ref_lon in refs:
            sep = angular_separation(t_lon, ref_lon)
            for aspect, angle in ASPECT_ANGLES.items():
                orb = weights.orbs.get(aspect, 0.0)
                diff = abs(sep - angle)
                if orb <= 0 or diff > orb:
                    continue
                base = weights.aspect_weights.get(aspect, 0.0)
                if aspect == "conjunction" and body in NATURAL_MALEFICS:
                    base = -base
                elif base < 0 and body in NATURAL_BENEFICS:
                    base *= 0.5
                delta = base * pw * (1.0 - diff / orb)
                if delta:
                    out.append(Contribution(
                        "aspect", delta,
                        f"{body.value} {aspect} {ref_name} (orb {diff:.1f}°)",
                    ))
                break
    return out


def _moon_signals(sample: TransitSample, weights: DomainWeights, natal: Optional[NatalContext]) -> List[Contribution]:
    moon = sample.lon(Body.MOON)
    if moon is None:
        return []
    out = []
    slot = resolve(moon)
    if weights.nakshatra_bonus and slot.name in weights.supportive_nakshatras:
        out.append(Contribution("nakshatra", weights.nakshatra_bonus, f"Moon in {slot.name}"))
    if natal is not None and natal.moon_nakshatra is not None and weights.tara_penalty:
        tara = tara_bala(natal.moon_nakshatra, slot.index)
        if tara in INAUSPICIOUS_TARAS:
            out.append(Contribution(
                "tara", -weights.tara_penalty,
                f"Moon in {TARA_NAMES[tara - 1]} tara from birth star",
            ))
    return out


def _retrograde_signals(sample: TransitSample, weights: DomainWeights) -> List[Contribution]:
    return [
        Contribution("retrograde", -weights.retrograde_penalty, f"{body.value} retrograde")
        for body in sorted(weights.retrograde_bodies, key=lambda b: b.value)
        if weights.retrograde_penalty and sample.is_retrograde(body)
    ]


def _dignity_signals(sample: TransitSample, weights: DomainWeights) -> List[Contribution]:
    out = []
    if not weights.own_sign_bonus:
        return out
    for body in weights.transit_bodies:
        lon = sample.lon(body)
        if lon is None:
            continue
        dignity = dignity_for(body, lon)
        if dignity in ("own", "exalted"):
            out.append(Contribution(
                "dignity", weights.own_sign_bonus,
                f"transiting {body.value} {dignity} in {sign_name_from_lon(lon)}",
            ))
    return out


def _natal_strength_signals(
    ctx: DashaContext,
    weights: DomainWeights,
    natal: Optional[NatalContext],
) -> List[Contribution]:
    if natal is None or not weights.natal_strength_weight:
        return []
    out = []
    top = weights.depth_weights[0] or 1.0
    for depth, lord in ctx.lords():
        dignity = natal.dignities.get(lord)
        strength = DIGNITY_STRENGTH.get(dignity or "neutral", 0.0)
        if not strength:
            continue
        delta = weights.natal_strength_weight * strength * weights.depth_weights[depth] / top
        out.append(Contribution(
            "natal", delta,
            f"natal {lord.value} {dignity} ({LEVEL_NAMES[depth]} lord)",
        ))
    return out


def score_day(
    sample: TransitSample,
    dasha_context: DashaContext,
    weights: DomainWeights,
    natal: Optional[NatalContext] = None,
    refs: Optional[List[Tuple[str, float]]] = None,
) -> ScoredDay:
    """Score one sampled instant for a domain.

    Absent longitudes just skip the signals that need them. ``refs`` may be
    passed in pre-computed when scoring a whole series.
    """

    if refs is None:
        refs = reference_points(natal, weights)
    contributions: List[Contribution] = []
    contributions += _dasha_signals(dasha_context, weights)
    contributions += _aspect_signals(sample, refs, weights)
    contributions += _moon_signals(sample, weights, natal)
    contributions += _retrograde_signals(sample, weights)
    contributions += _dignity_signals(sample, weights)
    contributions += _natal_strength_signals(dasha_context, weights, natal)

    raw = sum(c.delta for c in contributions)
    ranked = sorted(contributions, key=lambda c: abs(c.delta), reverse=True)
    return ScoredDay(
        instant=sample.instant,
        score=clamp01(PRESENTATION_BASELINE + raw * weights.score_scale),
        raw=raw,
        reasons=tuple(c.reason for c in ranked),
        contributions=tuple(ranked),
    )


def score_series(
    samples: Iterable[TransitSample],
    timeline: DashaTimeline,
    weights: DomainWeights,
    natal: Optional[NatalContext] = None,
) -> List[ScoredDay]:
    refs = reference_points(natal, weights)
    return [score_day(s, timeline.at(s.instant), weights, natal, refs) for s in samples]


__all__ = [
    "Contribution",
    "NatalContext",
    "ScoredDay",
    "reference_points",
    "score_day",
    "score_series",
]
