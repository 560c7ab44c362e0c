#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
seedpack.py

Fixed-capacity store of accepted seeds, filled left to right in acceptance
order, sorted once into canonical (real, imag) order before serialization.
"""
from __future__ import annotations

import numpy as np


class SeedPack:
    def __init__(self, howmany: int):
        if howmany < 1:
            raise ValueError(f"SeedPack capacity must be at least 1, got {howmany}")
        self.seeds = np.zeros(int(howmany), dtype=np.complex128)
        self.count = 0

    @property
    def capacity(self) -> int:
        return int(self.seeds.shape[0])

    def is_full(self) -> bool:
        return self.count >= self.capacity

    def append(self, c: complex) -> None:
        if self.is_full():
            raise IndexError(f"SeedPack is full ({self.capacity} seeds)")
        self.seeds[self.count] = c
        self.count += 1

    def filled(self) -> np.ndarray:
        """Seeds accepted so far (a view, acceptance order until sorted)."""
        return self.seeds[:self.count]

    def sort(self) -> "SeedPack":
        """Stable ascending sort by real part, then imaginary part."""
        s = self.filled()
        # lexsort keys: last key is primary
        order = np.lexsort((s.imag, s.real))
        self.seeds[:self.count] = s[order]
        return self

    def __array__(self, dtype=None, copy=None):
        s = self.filled()
        if dtype is not None:
            s = s.astype(dtype, copy=False)
        return s.copy() if copy else s

    def __len__(self) -> int:
        return self.count

    def __iter__(self):
        return iter(self.filled().tolist())
