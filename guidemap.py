#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
guidemap.py

Coarse boolean grid over the parameter plane marking cells that have
produced long-escaping points. The miner consults it to abandon orbits
early in regions that have never shown a deep escape.

Build phase:
  - draw c uniformly with Re(c) in [-2, 2) and Im(c) in [0, 2)
  - iterate z -> z^2 + c from 0 up to a ceiling
  - mark the cell of c when it escapes at or beyond the current threshold
  - threshold (and ceiling) double every THRESHOLD_STEP qualifying points

The build is time-boxed by default; pass `samples=` for a reproducible map.
"""
from __future__ import annotations

import math
import time
from typing import Callable, Iterator, Optional

import numpy as np

# ============================================================
# Knobs
# ============================================================

GUIDEMAP_SIZE = 51
GUIDEMAP_SECONDS = 60.0
DOMAIN = (-2.0, 2.0, -2.0, 2.0)  # minR, maxR, minI, maxI

START_THRESHOLD = 32
THRESHOLD_STEP = 1000


def candidate_stream(rng: np.random.Generator, block: int = 4096) -> Iterator[complex]:
    """Endless stream of c = (u1*4 - 2) + (u2*2)i drawn from `rng`."""
    while True:
        u = rng.random((block, 2))
        for u1, u2 in u:
            yield complex(u1 * 4.0 - 2.0, u2 * 2.0)


class Guidemap:
    def __init__(self, width: int, height: int, domain=DOMAIN):
        if width < 1 or height < 1:
            raise ValueError(f"Guidemap dimensions must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.min_r, self.max_r, self.min_i, self.max_i = (float(v) for v in domain)
        self.del_r = (self.max_r - self.min_r) / self.width
        self.del_i = (self.max_i - self.min_i) / self.height
        self.grid = np.zeros((self.height, self.width), dtype=bool)

    def cell(self, c: complex) -> tuple[int, int]:
        """(x, y) cell index for c, rounded to nearest and clamped to the grid."""
        # floor(v + 0.5) agrees with round-half-away-from-zero once clamped at 0
        x = math.floor((c.real - self.min_r) / self.del_r + 0.5)
        y = math.floor((c.imag - self.min_i) / self.del_i + 0.5)
        x = min(max(x, 0), self.width - 1)
        y = min(max(y, 0), self.height - 1)
        return x, y

    def check(self, c: complex) -> bool:
        x, y = self.cell(c)
        return bool(self.grid[y, x])

    def mark(self, c: complex) -> None:
        x, y = self.cell(c)
        self.grid[y, x] = True

    def marked_fraction(self) -> float:
        return float(np.mean(self.grid))

    def render(self) -> str:
        """Text dump of the grid, 'O' for marked cells and '-' otherwise."""
        return "\n".join("".join("O" if v else "-" for v in row) for row in self.grid)

    @classmethod
    def build(cls,
              size: int = GUIDEMAP_SIZE,
              rng: Optional[np.random.Generator] = None,
              seconds: float = GUIDEMAP_SECONDS,
              samples: Optional[int] = None,
              start_threshold: int = START_THRESHOLD,
              threshold_step: int = THRESHOLD_STEP,
              clock: Callable[[], float] = time.monotonic,
              on_progress: Optional[Callable[[int, int, int], None]] = None) -> "Guidemap":
        """
        Probe the plane and mark cells of points escaping at depth >= threshold.

        Stops after `samples` candidates when given, otherwise once `seconds`
        of wall-clock time have elapsed. `on_progress(samples, qualifying, threshold)`
        is called when the threshold doubles and once at the end.
        """
        if rng is None:
            rng = np.random.default_rng()
        gm = cls(size, size)

        lim_min = int(start_threshold)
        lim_max = lim_min * 2
        found = 0
        drawn = 0
        t0 = clock()

        for c in candidate_stream(rng):
            if samples is not None:
                if drawn >= samples:
                    break
            elif clock() - t0 >= seconds:
                break
            drawn += 1

            z = 0j
            for idx in range(lim_max + 2):
                z = z * z + c
                if z.real * z.real + z.imag * z.imag > 4.0:
                    if idx >= lim_min:
                        found += 1
                        if found % threshold_step == 0:
                            lim_min *= 2
                            lim_max *= 2
                            if on_progress is not None:
                                on_progress(drawn, found, lim_min)
                        gm.mark(c)
                    break

        if on_progress is not None:
            on_progress(drawn, found, lim_min)
        return gm
