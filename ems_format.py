#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ems_format.py

.EMS seed artifacts.

Layout:
  [32-byte ASCII magic "@DM.EMS{codex.apeirography.art} "]
  [N x (float64 LE real, float64 LE imag)]

No length field or footer; N = (file size - 32) / 16. The MD5 digest is taken
over the payload only and goes into the file name: {min}-{max}_{md5hex}.ems
"""
from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path

import numpy as np

MAGIC = b"@DM.EMS{codex.apeirography.art} "
RECORD_SIZE = 16
SUFFIX = ".ems"

_RECORD = np.dtype([("real", "<f8"), ("imag", "<f8")])


class EMSFormatError(ValueError):
    pass


def encode(seeds) -> bytes:
    """Seed payload: real then imag of each seed as little-endian float64."""
    s = np.asarray(seeds, dtype=np.complex128)
    rec = np.empty(s.shape[0], dtype=_RECORD)
    rec["real"] = s.real
    rec["imag"] = s.imag
    return rec.tobytes()


def digest(payload: bytes) -> bytes:
    return hashlib.md5(payload).digest()


def artifact_bytes(seeds) -> bytes:
    return MAGIC + encode(seeds)


def decode_payload(payload: bytes) -> np.ndarray:
    if len(payload) % RECORD_SIZE:
        raise EMSFormatError(f"Payload length {len(payload)} is not a multiple of {RECORD_SIZE}")
    rec = np.frombuffer(payload, dtype=_RECORD)
    return rec["real"] + 1j * rec["imag"]


def decode(data: bytes) -> np.ndarray:
    """Seeds stored in a full artifact (header + payload)."""
    if not data.startswith(MAGIC):
        raise EMSFormatError("Missing .EMS magic header")
    return decode_payload(data[len(MAGIC):])


def artifact_name(min_depth: int, max_depth: int, md5: bytes) -> str:
    return f"{min_depth}-{max_depth}_{md5.hex()}{SUFFIX}"


def parse_name(name: str):
    """(min, max, md5hex) from an artifact file name, or None if it does not match."""
    stem = Path(name).name
    if not stem.endswith(SUFFIX):
        return None
    try:
        depths, md5hex = stem[:-len(SUFFIX)].split("_", 1)
        lo, hi = depths.split("-", 1)
        return int(lo), int(hi), md5hex
    except ValueError:
        return None


def save_ems(outdir, seeds, min_depth: int, max_depth: int) -> Path:
    """
    Write sorted seeds to outdir/{min}-{max}_{md5}.ems and return the path.

    The file is written under a temporary name in the same directory and moved
    into place, so a failed write never leaves a truncated artifact behind.
    """
    payload = encode(seeds)
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    path = outdir / artifact_name(min_depth, max_depth, digest(payload))

    fd, tmp = tempfile.mkstemp(prefix=".ems-", suffix=".tmp", dir=outdir)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(MAGIC)
            f.write(payload)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    return path


def load_ems(path) -> np.ndarray:
    with open(path, "rb") as f:
        return decode(f.read())
