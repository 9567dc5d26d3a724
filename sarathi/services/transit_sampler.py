"""Daily (or every ``step_days``) sidereal transit samples over a horizon.

Each step's oracle calls are independent, so steps are dispatched on a bounded
thread pool and joined in instant order before scoring. A body the oracle
cannot answer for is simply absent from that step's sample; a step that times
out yields an empty sample. Neither aborts the horizon.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .angles import ensure_utc, signed_delta
from .bodies import CAN_RETROGRADE, Body, canonical_bodies
from .sidereal import SiderealAdapter

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8
DEFAULT_TIMEOUT_S = 10.0
POLL_S = 0.05


@dataclass(frozen=True)
class TransitSample:
    instant: datetime
    longitudes: Mapping[Body, float] = field(default_factory=lambda: MappingProxyType({}))
    retrograde: frozenset = frozenset()

    def lon(self, body: Body) -> Optional[float]:
        return self.longitudes.get(body)

    def is_retrograde(self, body: Body) -> bool:
        return body in self.retrograde


@dataclass(frozen=True)
class SampleSeries:
    samples: Tuple[TransitSample, ...]
    complete: bool = True
    cancelled: bool = False
    timed_out_steps: int = 0

    def __iter__(self) -> Iterator[TransitSample]:
        return iter(self.samples)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def last_instant(self) -> Optional[datetime]:
        return self.samples[-1].instant if self.samples else None


def step_instants(start: datetime, end: datetime, step_days: int = 1) -> List[datetime]:
    """Every step boundary from ``start`` up to and including ``end``."""

    if step_days < 1:
        raise ValueError(f"step_days must be >= 1, got {step_days}")
    a, b = ensure_utc(start), ensure_utc(end)
    out: List[datetime] = []
    cur = a
    while cur <= b:
        out.append(cur)
        cur = cur + timedelta(days=step_days)
    return out


def _workers_from_env() -> int:
    raw = os.getenv("TIMING_MAX_WORKERS")
    try:
        return max(1, int(raw)) if raw else DEFAULT_MAX_WORKERS
    except ValueError:
        return DEFAULT_MAX_WORKERS


def _timeout_from_env() -> float:
    raw = os.getenv("TIMING_ORACLE_TIMEOUT_S")
    try:
        return max(0.1, float(raw)) if raw else DEFAULT_TIMEOUT_S
    except ValueError:
        return DEFAULT_TIMEOUT_S


def mark_retrograde(
    raw: Sequence[Dict[Body, float]],
    lead_in: Optional[Dict[Body, float]] = None,
) -> List[frozenset]:
    """Flag bodies whose longitude went backwards since the previous step."""

    flags: List[frozenset] = []
    previous = lead_in or {}
    for current in raw:
        retro = set()
        for body in CAN_RETROGRADE:
            if body in current and body in previous:
                if signed_delta(current[body], previous[body]) < 0:
                    retro.add(body)
        flags.append(frozenset(retro))
        previous = current
    return flags


class TransitSampler:
    def __init__(
        self,
        adapter: SiderealAdapter,
        max_workers: Optional[int] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.adapter = adapter
        self.max_workers = max_workers or _workers_from_env()
        self.timeout_s = timeout_s if timeout_s is not None else _timeout_from_env()

    def sample(
        self,
        bodies: Iterable,
        from_instant: datetime,
        to_instant: datetime,
        step_days: int = 1,
        cancel: Optional[threading.Event] = None,
    ) -> SampleSeries:
        wanted = canonical_bodies(bodies)
        instants = step_instants(from_instant, to_instant, step_days)
        if not instants:
            return SampleSeries(samples=())

        lead_instant = instants[0] - timedelta(days=step_days)
        results: Dict[int, Dict[Body, float]] = {}
        timed_out = 0
        cancelled = False

        lead_in: Dict[Body, float] = {}
        pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="transit")
        try:
            lead_future = pool.submit(self.adapter.positions, wanted, lead_instant)
            pending: Dict[Future, int] = {
                pool.submit(self.adapter.positions, wanted, instant): idx
                for idx, instant in enumerate(instants)
            }
            last_progress = time.monotonic()
            while pending:
                if cancel is not None and cancel.is_set():
                    cancelled = True
                    break
                done, _ = wait(list(pending), timeout=POLL_S, return_when=FIRST_COMPLETED)
                if done:
                    last_progress = time.monotonic()
                    for fut in done:
                        idx = pending.pop(fut)
                        results[idx] = self._result(fut, instants[idx])
                elif time.monotonic() - last_progress > self.timeout_s:
                    # no step finished within timeout_s: the stragglers become empty samples
                    for fut, idx in pending.items():
                        fut.cancel()
                        results[idx] = {}
                        timed_out += 1
                    logger.warning("transit_sampler_timeout", extra={"steps": len(pending), "timeout_s": self.timeout_s})
                    pending.clear()

            if not cancelled:
                try:
                    lead_in = lead_future.result(timeout=self.timeout_s)
                except Exception as exc:
                    logger.warning("transit_sampler_lead_in_failed", extra={"error": str(exc)})
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        # only the contiguous completed prefix survives a cancellation
        count = 0
        while count < len(instants) and count in results:
            count += 1
        raw = [results[i] for i in range(count)]
        flags = mark_retrograde(raw, lead_in)
        samples = tuple(
            TransitSample(instant=instants[i], longitudes=MappingProxyType(dict(raw[i])), retrograde=flags[i])
            for i in range(count)
        )
        complete = count == len(instants)
        if not complete:
            logger.info("transit_sampler_partial", extra={"steps": len(instants), "completed": count})
        return SampleSeries(samples=samples, complete=complete, cancelled=cancelled, timed_out_steps=timed_out)

    def _result(self, fut: Future, instant: datetime) -> Dict[Body, float]:
        try:
            return fut.result()
        except Exception as exc:
            # positions() already omits failed bodies; anything else degrades this step only
            logger.warning("transit_sampler_step_failed", extra={"instant": instant.isoformat(), "error": str(exc)})
            return {}


__all__ = [
    "SampleSeries",
    "TransitSample",
    "TransitSampler",
    "mark_retrograde",
    "step_instants",
]
