#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ems_miner.py

Command-line seed miner. Builds a guidemap, mines `--howmany` seeds with escape
depths in [--min, --max], and writes them sorted to
<outdir>/<observed min>-<observed max>_<md5>.ems

Example:
python ems_miner.py --min 100 --max 1000 --howmany 10000 --seed 7 --outdir out
python ems_miner.py -min 2 -max 4 -howmany 5 --guidemap-samples 20000
"""
from __future__ import annotations

import argparse
import os
import sys
import time

import numpy as np
import matplotlib.pyplot as plt

from ems_format import save_ems
from guidemap import GUIDEMAP_SECONDS, GUIDEMAP_SIZE, Guidemap
from seed_miner import ConfigurationError, Miner, MinerConfig, MiningInterrupted, ProgressEvent

VERSION = "0.1"


def hms(seconds: float) -> str:
    total = int(seconds)
    hours = total // 3600
    minutes = (total - hours * 3600) // 60
    secs = total - hours * 3600 - minutes * 60
    return f"{hours}h {minutes}m {secs}s"


def progress_printer(cfg: MinerConfig):
    span = f"{cfg.min_depth} - {cfg.max_depth}"

    def report(ev: ProgressEvent):
        if ev.final:
            print(f"[mine] {ev.found} seeds with depths between {span} have been found after "
                  f"{hms(ev.elapsed)} with an overall speed of {int(ev.rate_per_hour)} sph.")
        else:
            print(f"[mine] {ev.found} seeds with depths between {span} have been found so far. "
                  f"{hms(ev.seconds_remaining)} left at current speed of {int(ev.rate_per_hour)} sph.")
    return report


def guidemap_printer(samples: int, qualifying: int, threshold: int):
    print(f"[guidemap] samples={samples} qualifying={qualifying} threshold={threshold}")


def save_guidemap_png(gm, path: str):
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    plt.figure(figsize=(5, 5))
    plt.imshow(gm.grid, origin="lower", cmap="Greys", interpolation="nearest",
               extent=(gm.min_r, gm.max_r, gm.min_i, gm.max_i))
    plt.title(f"Guidemap {gm.width}x{gm.height} ({gm.marked_fraction()*100:.1f}% marked)")
    plt.xlabel("Re(c)"); plt.ylabel("Im(c)")
    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Mine Mandelbrot seeds into an .EMS file.")
    ap.add_argument("--min", "-min", type=int, default=100, help="minimum depth of seeds to mine")
    ap.add_argument("--max", "-max", type=int, default=1000, help="maximum depth of seeds to mine")
    ap.add_argument("--howmany", "-howmany", type=int, default=1000000, help="number of seeds to mine")
    ap.add_argument("--seed", type=int, default=None, help="RNG seed (default: clock based)")
    ap.add_argument("--guidemap-size", type=int, default=GUIDEMAP_SIZE)
    ap.add_argument("--guidemap-seconds", type=float, default=GUIDEMAP_SECONDS)
    ap.add_argument("--guidemap-samples", type=int, default=None,
                    help="Fixed number of probe samples; overrides --guidemap-seconds.")
    ap.add_argument("--guidemap-png", default="", help="Optional image of the built guidemap.")
    ap.add_argument("--max-candidates", type=int, default=None,
                    help="Give up after this many candidates (no artifact is written).")
    ap.add_argument("--outdir", default=".")
    return ap


def main(argv=None):
    ap = build_parser()
    args = ap.parse_args(argv)

    print(f"\nEMSMiner v{VERSION}")
    print(f"Usage: {os.path.basename(sys.argv[0])} -min [minimum_depth] -max [maximum_depth] "
          f"-howmany [number_of_seeds_wanted]\n")

    cfg = MinerConfig(min_depth=args.min, max_depth=args.max, howmany=args.howmany)
    try:
        cfg.validate()
    except ConfigurationError as e:
        raise SystemExit(f"Configuration error: {e}")

    seed = args.seed if args.seed is not None else time.time_ns()
    print(f"[mine] rng seed={seed}")

    rng = np.random.default_rng(seed)

    print("[guidemap] generating...")
    gm = Guidemap.build(args.guidemap_size, rng=rng, seconds=args.guidemap_seconds,
                        samples=args.guidemap_samples, on_progress=guidemap_printer)
    print(f"[guidemap] done, {gm.marked_fraction()*100:.1f}% of cells marked")

    miner = Miner(cfg, rng=rng, guidemap=gm, on_progress=progress_printer(cfg))
    print(f"[mine] commencing mining of {cfg.howmany} seeds with depths between "
          f"{cfg.min_depth} - {cfg.max_depth}")
    try:
        result = miner.mine(max_candidates=args.max_candidates)
    except MiningInterrupted as e:
        raise SystemExit(f"Mining stopped after {e.candidates} candidates with "
                         f"{len(e.partial.seeds)}/{cfg.howmany} seeds: {e}")

    if args.guidemap_png:
        save_guidemap_png(gm, args.guidemap_png)
        print(f"[guidemap] wrote {args.guidemap_png}")

    result.seeds.sort()
    try:
        path = save_ems(args.outdir, result.seeds, result.min_depth, result.max_depth)
    except OSError as e:
        raise SystemExit(f"Unable to write .EMS file to {args.outdir}: {e}")
    print(f"[ems] wrote {path}")
    return path


if __name__ == "__main__":
    main()
