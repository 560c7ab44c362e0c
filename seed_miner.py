#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
seed_miner.py

Mine Mandelbrot seeds: points c whose escape depth lies in [min_depth, max_depth].

Loop:
  - draw c with Re(c) in [-2, 2), Im(c) in [0, 2) (the set is symmetric about
    the real axis, so only the upper half is searched)
  - escape_depth(c, max_depth, guidemap)
  - accept when min_depth <= depth <= max_depth: store c, mark its guidemap cell,
    track the observed depth range
  - stop once `howmany` seeds are accepted

There is no bound on the number of candidates drawn. Callers wanting one pass
`max_candidates=` or a `should_stop` callable; both raise MiningInterrupted
carrying whatever was accepted so far.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from escape_time import escape_depth
from guidemap import GUIDEMAP_SECONDS, GUIDEMAP_SIZE, Guidemap, candidate_stream
from seedpack import SeedPack

REPORT_WINDOW = 45.0


class ConfigurationError(ValueError):
    pass


@dataclass
class MinerConfig:
    min_depth: int = 100
    max_depth: int = 1000
    howmany: int = 1000000

    def validate(self) -> None:
        if self.howmany < 1:
            raise ConfigurationError("Number of seeds sought is less than one.")
        if self.max_depth < self.min_depth:
            raise ConfigurationError("Maximum seed depth is less than minimum seed depth.")
        if self.min_depth < 2:
            raise ConfigurationError("Minimum seed depth is less than 2.")


@dataclass
class MiningResult:
    """Seeds plus the observed depth range; the range is None while no seed is accepted."""
    seeds: SeedPack
    min_depth: Optional[int]
    max_depth: Optional[int]


@dataclass
class ProgressEvent:
    found: int
    total: int
    elapsed: float
    rate_per_hour: float
    seconds_remaining: float
    final: bool = False


class MiningInterrupted(RuntimeError):
    def __init__(self, message: str, partial: MiningResult, candidates: int):
        super().__init__(message)
        self.partial = partial
        self.candidates = candidates


class ProgressTracker:
    """
    Self-tuning report cadence.

    Every `interval` accepted seeds: if the last window took under
    REPORT_WINDOW seconds the interval grows (scaled towards ~90 s windows once
    past 5), otherwise an ETA event is emitted. Never affects which seeds are
    accepted.
    """

    def __init__(self, total: int, clock: Callable[[], float] = time.monotonic,
                 on_progress: Optional[Callable[[ProgressEvent], None]] = None,
                 window: float = REPORT_WINDOW):
        self.total = total
        self.clock = clock
        self.on_progress = on_progress
        self.window = window
        self.interval = 1
        self.found = 0
        self.rel_found = 0
        self.start = clock()
        self.rel_start = self.start

    def accepted(self) -> None:
        self.found += 1
        self.rel_found += 1
        if self.rel_found % self.interval:
            return
        now = self.clock()
        rel_elapsed = now - self.rel_start
        if rel_elapsed < self.window:
            if self.interval > 5 and rel_elapsed > 0:
                self.interval *= int(2 * self.window / rel_elapsed)
            self.interval += 1
        else:
            elapsed = math.floor(now - self.start)
            self._emit(ProgressEvent(
                found=self.found,
                total=self.total,
                elapsed=float(elapsed),
                rate_per_hour=self.found * 3600.0 / elapsed if elapsed > 0 else 0.0,
                seconds_remaining=float(int((self.total - self.found) * elapsed / self.found)),
            ))
        self.rel_found = 0
        self.rel_start = now

    def finish(self) -> ProgressEvent:
        elapsed = math.floor(self.clock() - self.start)
        rate = self.found / elapsed if elapsed > 0 else 0.0
        event = ProgressEvent(
            found=self.found,
            total=self.total,
            elapsed=float(elapsed),
            rate_per_hour=float(round(rate)) * 3600.0,
            seconds_remaining=0.0,
            final=True,
        )
        self._emit(event)
        return event

    def _emit(self, event: ProgressEvent) -> None:
        if self.on_progress is not None:
            self.on_progress(event)


class Miner:
    def __init__(self, config: MinerConfig,
                 rng: Optional[np.random.Generator] = None,
                 guidemap: Optional[Guidemap] = None,
                 guidemap_size: int = GUIDEMAP_SIZE,
                 guidemap_seconds: float = GUIDEMAP_SECONDS,
                 guidemap_samples: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic,
                 on_progress: Optional[Callable[[ProgressEvent], None]] = None,
                 on_guidemap_progress: Optional[Callable[[int, int, int], None]] = None):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng()
        self.guidemap = guidemap
        self.guidemap_size = guidemap_size
        self.guidemap_seconds = guidemap_seconds
        self.guidemap_samples = guidemap_samples
        self.clock = clock
        self.on_progress = on_progress
        self.on_guidemap_progress = on_guidemap_progress

    def mine(self, max_candidates: Optional[int] = None,
             should_stop: Optional[Callable[[], bool]] = None) -> MiningResult:
        cfg = self.config
        cfg.validate()

        if self.guidemap is None:
            self.guidemap = Guidemap.build(
                self.guidemap_size, rng=self.rng,
                seconds=self.guidemap_seconds, samples=self.guidemap_samples,
                clock=self.clock, on_progress=self.on_guidemap_progress,
            )
        gm = self.guidemap

        seeds = SeedPack(cfg.howmany)
        lo, hi = cfg.max_depth, cfg.min_depth
        tracker = ProgressTracker(cfg.howmany, clock=self.clock, on_progress=self.on_progress)
        drawn = 0

        for c in candidate_stream(self.rng):
            if seeds.is_full():
                break
            if should_stop is not None and should_stop():
                raise MiningInterrupted("Mining cancelled.",
                                        self._partial(seeds, lo, hi), drawn)
            if max_candidates is not None and drawn >= max_candidates:
                raise MiningInterrupted(f"Candidate budget of {max_candidates} exhausted.",
                                        self._partial(seeds, lo, hi), drawn)
            drawn += 1

            depth = escape_depth(c, cfg.max_depth, gm)
            if cfg.min_depth <= depth <= cfg.max_depth:
                lo = min(lo, depth)
                hi = max(hi, depth)
                seeds.append(c)
                gm.mark(c)
                tracker.accepted()

        tracker.finish()
        return MiningResult(seeds, lo, hi)

    @staticmethod
    def _partial(seeds: SeedPack, lo: int, hi: int) -> MiningResult:
        if len(seeds) == 0:
            return MiningResult(seeds, None, None)
        return MiningResult(seeds, lo, hi)


def mine(min_depth: int, max_depth: int, howmany: int, **kwargs) -> MiningResult:
    """Validate, mine and return the result with seeds in canonical order."""
    max_candidates = kwargs.pop("max_candidates", None)
    should_stop = kwargs.pop("should_stop", None)
    result = Miner(MinerConfig(min_depth, max_depth, howmany), **kwargs).mine(
        max_candidates=max_candidates, should_stop=should_stop)
    result.seeds.sort()
    return result
