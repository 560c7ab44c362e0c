#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
escape_time.py

Escape-time depth of c under z -> z^2 + c, z0 = 0, bailout |z| > 2.

escape_depth()     : fast path used by the miner. Periodic exact-cycle checks
                     on a growing schedule; every 8th-step check also asks the
                     guidemap whether c lies in a region known to escape deep,
                     and gives up on c if not (unless the step is a multiple of 64).
reference_depth()  : plain iteration with no shortcuts, for verification.

Both run at most max_depth + 2 steps and return REJECTED (-1) when no escape
was seen. A depth returned by escape_depth() always equals reference_depth().
"""
from __future__ import annotations

REJECTED = -1
BAILOUT_SQ = 4.0
FIRST_CHECK = 2


def escape_depth(c: complex, max_depth: int, guidemap=None) -> int:
    """Escape step count of c, or REJECTED on cycle, guidemap prune or ceiling."""
    limit = max_depth + 2
    z = 0j
    old_z = z
    interval = FIRST_CHECK
    countdown = interval
    i = 0
    while True:
        z = z * z + c
        if countdown == 0:
            if z == old_z:
                return REJECTED
            old_z = z
            if i % 8 == 0:
                interval += 2
                if i % 64 != 0 and guidemap is not None and not guidemap.check(c):
                    return REJECTED
            else:
                interval += 1
            countdown = interval
        countdown -= 1

        i += 1
        if z.real * z.real + z.imag * z.imag > BAILOUT_SQ:
            return i
        if i >= limit:
            return REJECTED


def reference_depth(c: complex, max_depth: int) -> int:
    """Unshortcut escape step count of c within max_depth + 2 steps."""
    z = 0j
    for i in range(1, max_depth + 3):
        z = z * z + c
        if z.real * z.real + z.imag * z.imag > BAILOUT_SQ:
            return i
    return REJECTED
