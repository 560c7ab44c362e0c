#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ems_inspect.py

Check and summarize an .EMS seed file:
  - magic header and record alignment
  - canonical (real, imag) ordering
  - MD5 of the payload against the md5 in the file name
  - optional: recompute every seed's depth without shortcuts (--verify)
  - optional: scatter plot of the seeds (--plot out.png)

Example:
python ems_inspect.py out/100-1000_0123abcd....ems --verify --plot out/seeds.png
"""
from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, asdict
from typing import Optional

import numpy as np
import matplotlib.pyplot as plt

from escape_time import reference_depth
from ems_format import MAGIC, EMSFormatError, decode, digest, load_ems, parse_name


@dataclass
class Report:
    path: str
    count: int
    sorted_ok: bool
    md5: str
    name_md5_ok: Optional[bool]
    name_min: Optional[int]
    name_max: Optional[int]
    depth_min: Optional[int] = None
    depth_max: Optional[int] = None
    out_of_range: Optional[int] = None


def is_canonical(seeds: np.ndarray) -> bool:
    """Non-decreasing by real part, ties non-decreasing by imaginary part."""
    if seeds.size < 2:
        return True
    r, i = seeds.real, seeds.imag
    dr = np.diff(r)
    return bool(np.all((dr > 0) | ((dr == 0) & (np.diff(i) >= 0))))


def seed_depths(seeds: np.ndarray, max_depth: int) -> np.ndarray:
    return np.array([reference_depth(complex(c), max_depth) for c in seeds], dtype=int)


class VerificationError(ValueError):
    pass


def inspect_ems(path: str, verify: bool = False, depth_range=None) -> Report:
    """
    Summarize the artifact at `path`.

    With `verify`, every seed is re-iterated and checked against `depth_range`
    (min, max), or the range carried in the file name when that is None.
    """
    with open(path, "rb") as f:
        data = f.read()
    seeds = decode(data)
    md5 = digest(data[len(MAGIC):]).hex()
    parsed = parse_name(path)
    lo = hi = None
    if parsed is not None:
        lo, hi, name_md5 = parsed
    rep = Report(
        path=path,
        count=int(seeds.size),
        sorted_ok=is_canonical(seeds),
        md5=md5,
        name_md5_ok=None if parsed is None else (name_md5 == md5),
        name_min=lo,
        name_max=hi,
    )
    if verify:
        if depth_range is not None:
            lo, hi = depth_range
        if lo is None:
            raise VerificationError("file name carries no depth range; pass --min and --max")
        rep.out_of_range = 0
        if seeds.size:
            d = seed_depths(seeds, hi)
            rep.depth_min = int(d.min())
            rep.depth_max = int(d.max())
            rep.out_of_range = int(np.count_nonzero((d < lo) | (d > hi)))
    return rep


def plot_seeds(seeds: np.ndarray, path: str, title: str = ""):
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    plt.figure(figsize=(8, 5))
    plt.scatter(seeds.real, seeds.imag, s=1, c="black")
    plt.xlim(-2, 2); plt.ylim(0, 2)
    plt.gca().set_aspect("equal")
    plt.title(title or f"{seeds.size} seeds")
    plt.tight_layout()
    plt.savefig(path, dpi=200)
    plt.close()


def main(argv=None):
    ap = argparse.ArgumentParser(description="Inspect an .EMS seed file.")
    ap.add_argument("path")
    ap.add_argument("--verify", action="store_true",
                    help="Recompute depths and check them against the range in the file name.")
    ap.add_argument("--plot", default="", help="Write a scatter plot of the seeds here.")
    ap.add_argument("--min", type=int, default=None, help="Depth range for --verify (default: from the file name).")
    ap.add_argument("--max", type=int, default=None)
    args = ap.parse_args(argv)

    if (args.min is None) != (args.max is None):
        ap.error("--min and --max must be given together")
    depth_range = None if args.min is None else (args.min, args.max)

    try:
        rep = inspect_ems(args.path, verify=args.verify, depth_range=depth_range)
    except VerificationError as e:
        raise SystemExit(f"Cannot verify {args.path}: {e}")
    except (OSError, EMSFormatError) as e:
        raise SystemExit(f"Cannot read {args.path}: {e}")

    for k, v in asdict(rep).items():
        print(f"  {k:>14}: {v}")

    if args.plot:
        plot_seeds(load_ems(args.path), args.plot, title=os.path.basename(args.path))
        print(f"[plot] wrote {args.plot}")

    bad = (not rep.sorted_ok) or rep.name_md5_ok is False or bool(rep.out_of_range)
    if bad:
        raise SystemExit(1)
    return rep


if __name__ == "__main__":
    main()
