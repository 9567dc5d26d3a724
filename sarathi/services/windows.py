"""Collapse a daily score series into ranked, explained windows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from .scoring import ScoredDay

MAX_REASONS = 4
DEFAULT_LABELS = ("steady", "favourable", "strong")

NO_RUN = "no-run"
IN_RUN = "in-run"


def strength_label(score: float) -> str:
    if score >= 0.7:
        return "high"
    if score >= 0.45:
        return "medium"
    return "low"


@dataclass(frozen=True)
class Window:
    from_instant: datetime
    to_instant: datetime
    label: str
    score: float
    reasons: Tuple[str, ...]
    days: int

    @property
    def strength_label(self) -> str:
        return strength_label(self.score)


def _top_reasons(run: Sequence[ScoredDay], cap: int = MAX_REASONS) -> Tuple[str, ...]:
    totals: Dict[str, float] = {}
    for day in run:
        for c in day.contributions:
            if c.delta > 0:
                totals[c.reason] = totals.get(c.reason, 0.0) + c.delta
    # dict order is first-seen, so sorted() keeps earlier facts ahead on ties
    ranked = sorted(totals.items(), key=lambda kv: -kv[1])
    return tuple(reason for reason, _ in ranked[:cap])


def _label_for(score: float, labels: Sequence[str]) -> str:
    idx = {"low": 0, "medium": 1, "high": 2}[strength_label(score)]
    return labels[min(idx, len(labels) - 1)]


def _close(
    run: List[ScoredDay],
    min_days: int,
    max_days: int,
    step_days: int,
    labels: Sequence[str],
) -> Optional[Window]:
    if not run or len(run) * step_days < min_days:
        return None
    max_steps = max_days // step_days
    kept = run[:max_steps]
    score = sum(d.score for d in kept) / len(kept)
    return Window(
        from_instant=kept[0].instant,
        to_instant=kept[-1].instant,
        label=_label_for(score, labels),
        score=score,
        reasons=_top_reasons(kept),
        days=len(kept) * step_days,
    )


def extract(
    series: Sequence[ScoredDay],
    threshold: float,
    min_days: int,
    max_days: int,
    top_n: int,
    step_days: int = 1,
    close_trailing_run: bool = True,
    labels: Sequence[str] = DEFAULT_LABELS,
) -> List[Window]:
    """Run-length encode days scoring ``>= threshold`` into windows.

    Runs shorter than ``min_days`` are dropped; longer than ``max_days`` are
    cut to their first ``max_days`` (one window, not several). A gap larger
    than ``step_days`` between consecutive days ends a run. With
    ``close_trailing_run=False`` a run still open at the end of the series is
    discarded, since its true length is unknown.
    """

    if min_days > max_days:
        raise ValueError(f"min_days ({min_days}) > max_days ({max_days})")
    if max_days < step_days:
        raise ValueError(f"max_days ({max_days}) < step_days ({step_days}): one step already exceeds a window")
    if top_n <= 0 or not series:
        return []

    step = timedelta(days=step_days)
    windows: List[Window] = []
    state = NO_RUN
    run: List[ScoredDay] = []

    for day in sorted(series, key=lambda d: d.instant):
        hot = day.score >= threshold
        if state == IN_RUN and day.instant - run[-1].instant > step:
            w = _close(run, min_days, max_days, step_days, labels)
            if w:
                windows.append(w)
            state, run = NO_RUN, []

        if state == NO_RUN:
            if hot:
                state, run = IN_RUN, [day]
        elif hot:
            run.append(day)
        else:
            w = _close(run, min_days, max_days, step_days, labels)
            if w:
                windows.append(w)
            state, run = NO_RUN, []

    if state == IN_RUN and close_trailing_run:
        w = _close(run, min_days, max_days, step_days, labels)
        if w:
            windows.append(w)

    # float means of equal days differ in the last bits; rank at 1e-9
    windows.sort(key=lambda w: (-round(w.score, 9), w.from_instant))
    return windows[:top_n]


__all__ = ["DEFAULT_LABELS", "MAX_REASONS", "Window", "extract", "strength_label"]
