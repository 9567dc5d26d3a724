"""Vimshottari dasha periods computed from the natal sidereal Moon.

Algorithm:
  - Moon's sidereal longitude -> nakshatra index 0..26 -> starting lord
  - fraction already traversed in that nakshatra back-dates the first
    Mahadasha: its notional start is ``birth - fraction * full_years``
  - Mahadashas roll forward through the 9-lord cycle (two cycles at most)
  - each period splits into 9 children starting from its own lord, each
    ``parent * child_years / 120`` long; the last child is end-snapped

Periods are produced lazily and only where they overlap the requested
window, so a caller never materialises the full 120-year, three-level tree.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .angles import add_fractional_years, clamp_to_horizon, ensure_utc, require_finite, years_between
from .bodies import DASHA_ORDER, DASHA_YEARS, TOTAL_DASHA_YEARS, Body
from .errors import DashaUnavailable, EphemerisUnavailable, InvalidAngle
from .vedic import fraction_elapsed, resolve

LEVEL_NAMES = ("MD", "AD", "PD")
MAX_DEPTH = 2
MAX_MAHADASHAS = len(DASHA_ORDER) * 2


@dataclass(frozen=True)
class DashaNode:
    lord: Body
    start: datetime
    end: datetime
    depth: int
    children: Tuple["DashaNode", ...] = ()

    @property
    def years(self) -> float:
        return years_between(self.start, self.end)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.end > start and self.start <= end

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


@dataclass(frozen=True)
class DashaOverride:
    """Force the first Mahadasha lord and its (notional) start."""

    lord: Body
    start: datetime


@dataclass(frozen=True)
class DashaAnchor:
    lord: Body
    fraction: float
    birth: datetime
    first_start: datetime

    @property
    def full_years(self) -> float:
        return float(DASHA_YEARS[self.lord])

    @property
    def remaining_years(self) -> float:
        return self.full_years * (1.0 - self.fraction)

    @property
    def balance_end(self) -> datetime:
        return add_fractional_years(self.first_start, self.full_years)


@dataclass(frozen=True)
class DashaContext:
    """Running MD/AD/PD lords at one instant (any level may be unknown)."""

    md: Optional[Body] = None
    ad: Optional[Body] = None
    pd: Optional[Body] = None

    def lords(self) -> List[Tuple[int, Body]]:
        return [(depth, lord) for depth, lord in enumerate((self.md, self.ad, self.pd)) if lord is not None]

    @property
    def label(self) -> str:
        parts = [f"{lord.value} {LEVEL_NAMES[depth]}" for depth, lord in self.lords()]
        return " / ".join(parts) if parts else "unknown"


def anchor_from_moon(
    moon_longitude: Optional[float],
    birth_instant: datetime,
    override: Optional[DashaOverride] = None,
) -> DashaAnchor:
    birth = ensure_utc(birth_instant)
    if override is not None:
        start = ensure_utc(override.start)
        full = float(DASHA_YEARS[override.lord])
        fraction = min(max(years_between(start, birth) / full, 0.0), 1.0)
        return DashaAnchor(lord=override.lord, fraction=fraction, birth=birth, first_start=start)

    if moon_longitude is None:
        raise DashaUnavailable("natal Moon longitude is unavailable")
    try:
        lon = require_finite(moon_longitude, "natal Moon longitude")
    except InvalidAngle as exc:
        raise DashaUnavailable(str(exc)) from exc

    lord = resolve(lon).lord
    fraction = fraction_elapsed(lon)
    first_start = add_fractional_years(birth, -DASHA_YEARS[lord] * fraction)
    return DashaAnchor(lord=lord, fraction=fraction, birth=birth, first_start=first_start)


def subdivide(lord: Body, start: datetime, end: datetime, depth: int) -> List[DashaNode]:
    """Split ``[start, end)`` into the 9 sub-periods beginning with ``lord``."""

    span: timedelta = end - start
    first = DASHA_ORDER.index(lord)
    out: List[DashaNode] = []
    cursor = start
    elapsed_years = 0.0
    for i in range(len(DASHA_ORDER)):
        sub_lord = DASHA_ORDER[(first + i) % len(DASHA_ORDER)]
        elapsed_years += DASHA_YEARS[sub_lord]
        if i == len(DASHA_ORDER) - 1:
            sub_end = end
        else:
            sub_end = start + span * (elapsed_years / TOTAL_DASHA_YEARS)
        out.append(DashaNode(lord=sub_lord, start=cursor, end=sub_end, depth=depth))
        cursor = sub_end
    return out


def children_of(node: DashaNode) -> List[DashaNode]:
    return subdivide(node.lord, node.start, node.end, node.depth + 1)


def _mahadasha_cursor(anchor: DashaAnchor) -> Iterator[DashaNode]:
    lord_idx = DASHA_ORDER.index(anchor.lord)
    cursor = anchor.first_start
    for _ in range(MAX_MAHADASHAS):
        lord = DASHA_ORDER[lord_idx]
        end = add_fractional_years(cursor, DASHA_YEARS[lord])
        yield DashaNode(lord=lord, start=cursor, end=end, depth=0)
        cursor = end
        lord_idx = (lord_idx + 1) % len(DASHA_ORDER)


def iter_periods(
    anchor: DashaAnchor,
    max_depth: int = MAX_DEPTH,
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
) -> Iterator[DashaNode]:
    """Yield periods overlapping the window in pre-order (parents first).

    Yielded nodes carry no children. The state is an explicit stack of pending
    periods plus the Mahadasha cursor; the cursor stops as soon as a Mahadasha
    starts after ``window_end``.
    """

    if not 0 <= max_depth <= MAX_DEPTH:
        raise ValueError(f"max_depth must be 0..{MAX_DEPTH}, got {max_depth}")
    ws = ensure_utc(window_start) if window_start else anchor.birth
    we = ensure_utc(window_end) if window_end else add_fractional_years(anchor.first_start, TOTAL_DASHA_YEARS)

    mahadashas = _mahadasha_cursor(anchor)
    stack: List[DashaNode] = []
    while True:
        if not stack:
            md = next(mahadashas, None)
            if md is None or md.start > we:
                return
            if not md.overlaps(ws, we):
                continue
            stack.append(md)
        node = stack.pop()
        yield node
        if node.depth < max_depth:
            kids = [c for c in children_of(node) if c.overlaps(ws, we)]
            stack.extend(reversed(kids))


def assemble_forest(nodes: Iterator[DashaNode]) -> Tuple[DashaNode, ...]:
    """Rebuild parent/child links from a pre-order stream of periods."""

    roots: List[DashaNode] = []
    open_nodes: List[Tuple[DashaNode, List[DashaNode]]] = []

    def close_to(depth: int) -> None:
        while open_nodes and open_nodes[-1][0].depth >= depth:
            node, kids = open_nodes.pop()
            done = replace(node, children=tuple(kids))
            (open_nodes[-1][1] if open_nodes else roots).append(done)

    for node in nodes:
        close_to(node.depth)
        open_nodes.append((node, []))
    close_to(0)
    return tuple(roots)


def build_tree(
    natal_moon_longitude: Optional[float],
    birth_instant: datetime,
    max_depth: int,
    horizon_end: datetime,
    window_start: Optional[datetime] = None,
    override: Optional[DashaOverride] = None,
) -> Tuple[DashaNode, ...]:
    """Forest of Mahadashas (with AD/PD children to ``max_depth``) overlapping
    ``[window_start or birth, horizon_end]``."""

    anchor = anchor_from_moon(natal_moon_longitude, birth_instant, override)
    return assemble_forest(iter_periods(anchor, max_depth, window_start or anchor.birth, horizon_end))


class DashaTimeline:
    """Point lookup of the running MD/AD/PD over a built forest."""

    def __init__(self, forest: Tuple[DashaNode, ...]) -> None:
        self._paths: List[Tuple[DashaNode, ...]] = []
        for root in forest:
            self._collect(root, ())
        self._starts = [path[-1].start for path in self._paths]

    def _collect(self, node: DashaNode, trail: Tuple[DashaNode, ...]) -> None:
        path = trail + (node,)
        if node.children:
            for child in node.children:
                self._collect(child, path)
        else:
            self._paths.append(path)

    def path_at(self, instant: datetime) -> Tuple[DashaNode, ...]:
        instant = ensure_utc(instant)
        idx = bisect.bisect_right(self._starts, instant) - 1
        if idx < 0:
            return ()
        path = self._paths[idx]
        return path if path[-1].contains(instant) else ()

    def at(self, instant: datetime) -> DashaContext:
        lords = [node.lord for node in self.path_at(instant)]
        lords += [None] * (3 - len(lords))
        return DashaContext(md=lords[0], ad=lords[1], pd=lords[2])

    def __len__(self) -> int:
        return len(self._paths)


def compute_vimshottari(
    chart_input: Dict[str, Any],
    levels: int = 2,
    ayanamsha: str = "lahiri",
    oracle=None,
) -> List[Dict[str, Any]]:
    """Flat MD/AD(/PD) listing from birth for one 120-year cycle.

    Returns list of dasha periods with ISO start/end dates; ``level`` is 1 for
    Mahadasha, 2 for Antardasha, 3 for Pratyantardasha.
    """
    from . import ephem
    from .sidereal import SiderealAdapter

    birth = ephem.to_utc(chart_input["date"], chart_input["time"], chart_input["place"]["tz"])
    adapter = SiderealAdapter(oracle or ephem.SwissEphemeris(ayanamsha=ayanamsha))
    try:
        moon = adapter.position_of(Body.MOON, birth)
    except EphemerisUnavailable as exc:
        raise DashaUnavailable(f"natal Moon unavailable: {exc}") from exc

    anchor = anchor_from_moon(moon, birth)
    horizon_end = add_fractional_years(anchor.first_start, TOTAL_DASHA_YEARS)
    periods: List[Dict[str, Any]] = []
    parents: List[Body] = []
    for node in iter_periods(anchor, max_depth=max(0, min(levels, 3) - 1), window_start=birth, window_end=horizon_end):
        del parents[node.depth:]
        start, end = clamp_to_horizon(node.start, node.end, birth, horizon_end)
        if start >= end:
            # the next cycle's first lord touches the end instant only
            continue
        periods.append({
            "level": node.depth + 1,
            "lord": node.lord.value,
            "start": start.date().isoformat(),
            "end": end.date().isoformat(),
            "parent": parents[-1].value if parents else None,
        })
        parents.append(node.lord)
    return periods


__all__ = [
    "DashaAnchor",
    "DashaContext",
    "DashaNode",
    "DashaOverride",
    "DashaTimeline",
    "anchor_from_moon",
    "assemble_forest",
    "build_tree",
    "children_of",
    "compute_vimshottari",
    "iter_periods",
    "subdivide",
]
