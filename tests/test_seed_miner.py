import itertools

import numpy as np
import pytest

from escape_time import reference_depth
from ems_format import MAGIC, artifact_bytes, decode
from guidemap import Guidemap
from seed_miner import (ConfigurationError, Miner, MinerConfig, MiningInterrupted,
                        ProgressTracker, mine)


class FakeClock:
    def __init__(self):
        self.t = 0.0

    def __call__(self):
        return self.t


@pytest.mark.parametrize("cfg, message", [
    (MinerConfig(2, 4, 0), "less than one"),
    (MinerConfig(2, 4, -3), "less than one"),
    (MinerConfig(10, 5, 1), "Maximum seed depth"),
    (MinerConfig(1, 5, 1), "Minimum seed depth"),
])
def test_invalid_config(cfg, message):
    with pytest.raises(ConfigurationError, match=message):
        cfg.validate()


def test_invalid_config_fails_before_sampling(monkeypatch):
    def no_build(*a, **k):
        raise AssertionError("guidemap built for an invalid config")

    monkeypatch.setattr(Guidemap, "build", no_build)
    rng = np.random.default_rng(0)
    state = rng.bit_generator.state
    with pytest.raises(ConfigurationError):
        Miner(MinerConfig(2, 4, 0), rng=rng).mine()
    assert rng.bit_generator.state == state


def test_small_scenario(empty_map):
    result = mine(2, 4, 5, rng=np.random.default_rng(42), guidemap=empty_map)
    seeds = result.seeds.filled()
    assert len(result.seeds) == 5
    for c in seeds:
        assert 2 <= reference_depth(complex(c), 4) <= 4
    assert 2 <= result.min_depth <= result.max_depth <= 4
    data = artifact_bytes(seeds)
    assert data[:len(MAGIC)] == b"@DM.EMS{codex.apeirography.art} "
    assert np.array_equal(decode(data), seeds)


def test_deterministic_for_seed():
    a = mine(3, 40, 25, rng=np.random.default_rng(5), guidemap_samples=2000)
    b = mine(3, 40, 25, rng=np.random.default_rng(5), guidemap_samples=2000)
    assert np.array_equal(a.seeds.filled(), b.seeds.filled())
    assert (a.min_depth, a.max_depth) == (b.min_depth, b.max_depth)


def test_accepted_seeds_are_sound_and_marked():
    gm = Guidemap(51, 51)
    gm.grid[:, :25] = True
    result = Miner(MinerConfig(20, 120, 40), rng=np.random.default_rng(9), guidemap=gm).mine()
    depths = [reference_depth(complex(c), 120) for c in result.seeds.filled()]
    assert all(20 <= d <= 120 for d in depths)
    assert result.min_depth == min(depths)
    assert result.max_depth == max(depths)
    for c in result.seeds.filled():
        assert gm.check(complex(c))


def test_sorted_result(empty_map):
    result = mine(2, 10, 50, rng=np.random.default_rng(1), guidemap=empty_map)
    s = result.seeds.filled()
    assert np.all((np.diff(s.real) > 0) | ((np.diff(s.real) == 0) & (np.diff(s.imag) >= 0)))


def test_candidate_budget_keeps_partial_result(empty_map):
    miner = Miner(MinerConfig(2, 4, 10 ** 6), rng=np.random.default_rng(3), guidemap=empty_map)
    with pytest.raises(MiningInterrupted) as info:
        miner.mine(max_candidates=500)
    err = info.value
    assert err.candidates == 500
    assert 0 < len(err.partial.seeds) < 500
    for c in err.partial.seeds.filled():
        assert 2 <= reference_depth(complex(c), 4) <= 4


def test_should_stop(empty_map):
    calls = itertools.count()
    miner = Miner(MinerConfig(2, 4, 10 ** 6), rng=np.random.default_rng(3), guidemap=empty_map)
    with pytest.raises(MiningInterrupted) as info:
        miner.mine(should_stop=lambda: next(calls) >= 100)
    assert info.value.candidates == 100


def test_progress_does_not_change_result(empty_map):
    events = []
    quiet = mine(2, 8, 30, rng=np.random.default_rng(4), guidemap=Guidemap(51, 51))
    loud = mine(2, 8, 30, rng=np.random.default_rng(4), guidemap=empty_map, on_progress=events.append)
    assert np.array_equal(quiet.seeds.filled(), loud.seeds.filled())
    assert events[-1].final
    assert events[-1].found == 30


def test_tracker_grows_interval_while_fast():
    clock = FakeClock()
    events = []
    tr = ProgressTracker(1000, clock=clock, on_progress=events.append)
    for _ in range(6):
        clock.t += 1.0
        tr.accepted()
    # interval grows to 2, 3, 4 after seeds 1, 3 and 6
    assert tr.interval == 4
    assert events == []


def test_tracker_scales_interval_past_five():
    clock = FakeClock()
    tr = ProgressTracker(1000, clock=clock)
    tr.interval = 6
    clock.t = 10.0
    for _ in range(6):
        tr.accepted()
    # window of 10s: 6 * int(90 / 10) + 1
    assert tr.interval == 55


def test_tracker_reports_eta_when_slow():
    clock = FakeClock()
    events = []
    tr = ProgressTracker(100, clock=clock, on_progress=events.append)
    clock.t = 50.0
    tr.accepted()
    assert tr.interval == 1
    ev = events[-1]
    assert ev.found == 1 and ev.total == 100
    assert ev.elapsed == 50.0
    assert ev.rate_per_hour == pytest.approx(72.0)
    assert ev.seconds_remaining == 4950.0
    assert not ev.final


def test_tracker_finish_with_no_elapsed_time():
    tr = ProgressTracker(3, clock=FakeClock())
    ev = tr.finish()
    assert ev.final and ev.rate_per_hour == 0.0


def test_tracker_sub_second_window():
    clock = FakeClock()
    events = []
    tr = ProgressTracker(10, clock=clock, on_progress=events.append, window=0.5)
    clock.t = 0.6
    tr.accepted()
    assert events[-1].elapsed == 0.0
    assert events[-1].rate_per_hour == 0.0


def test_empty_partial_has_no_depth_range(empty_map):
    miner = Miner(MinerConfig(2, 4, 10), rng=np.random.default_rng(3), guidemap=empty_map)
    with pytest.raises(MiningInterrupted) as info:
        miner.mine(max_candidates=0)
    partial = info.value.partial
    assert len(partial.seeds) == 0
    assert partial.min_depth is None and partial.max_depth is None
