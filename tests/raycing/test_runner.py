# -*- coding: utf-8 -*-
import threading
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal
import pytest

import polycap
from polycap import runner, multipro
from polycap.backends.raycing import run as rrun
from polycap.backends.raycing import screens
from polycap.backends.raycing.photons import Tally, ImageSample


@pytest.mark.parametrize("nPhotons, nWorkers", [
    (10, 1), (10, 3), (3, 3), (1000, 7), (5, 8)])
def test_split_budget(nPhotons, nWorkers):
    ranges = runner.split_budget(nPhotons, nWorkers)
    assert len(ranges) == nWorkers
    assert ranges[0][0] == 0
    assert ranges[-1][1] == nPhotons
    for (start0, stop0), (start1, stop1) in zip(ranges[:-1], ranges[1:]):
        assert stop0 == start1
    sizes = [stop - start for start, stop in ranges]
    assert max(sizes) - min(sizes) <= 1


def test_split_budget_no_workers():
    with pytest.raises(ValueError):
        runner.split_budget(10, 0)


def test_make_seeds():
    seeds = runner.make_seeds(4)
    assert len(seeds) == 4
    assert all(0 <= s < 2**64 for s in seeds)
    assert len(set(seeds)) == 4


def test_reducer_combines_concurrently():
    reducer = runner.Reducer(3, 5, bins=4, imageSize=40)

    def work(i):
        tally = Tally(3, 5, bins=4)
        tally.cnt += 1.
        tally.spot[1, 2] = 0.5
        tally.nDetected = 10
        images = ImageSample(10, offset=10*i)
        images.screen[:, 4] = i
        for k in range(20):
            one = Tally(3, 5, bins=4)
            one.nStarted = 1
            tally.combine(one)
        reducer.combine(tally, images)

    threads = [threading.Thread(target=work, args=(i,)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert reducer.nCombined == 4
    assert_array_equal(reducer.tally.cnt, 4.)
    assert reducer.tally.spot[1, 2] == 2.
    assert reducer.tally.nDetected == 40
    assert reducer.tally.nStarted == 80
    assert_array_equal(reducer.images.screen[:, 4],
                       np.repeat(np.arange(4), 10))


def test_tally_shape_mismatch():
    with pytest.raises(ValueError):
        Tally(3, 5, bins=4).combine(Tally(3, 6, bins=4))


def test_run_polycap_threads(bundle, source):
    screen = screens.Screen(dScreen=1., bins=64)
    res = runner.run_polycap(bundle, source, screen, nPhotons=300, threads=2,
                             seeds=[1, 2])
    assert res.nWorkers == 2
    assert res.nHistories == 300
    assert res.nLost == 0
    assert res.nEntered >= 300
    assert_allclose(res.transmission, res.cnt / res.nEntered * res.eta)
    assert_allclose(res.transmissionStarted, res.cnt / res.nStarted)
    assert_allclose(res.leakFraction, res.leak / res.nEntered)
    assert_allclose(res.entranceEfficiency, res.nEntered / res.nStarted)
    assert_allclose(res.averageReflections, res.nRefl / 300.)
    assert np.all(res.transmission >= 0)
    assert res.images.size == 300

    again = runner.run_polycap(bundle, source, screen, nPhotons=300,
                               threads=2, seeds=[1, 2])
    assert_allclose(again.cnt, res.cnt)
    assert_allclose(again.spot, res.spot)
    assert again.nStarted == res.nStarted


def test_run_polycap_processes(bundle, source):
    res = runner.run_polycap(bundle, source, screens.Screen(bins=32),
                             nPhotons=40, processes=2)
    assert res.nWorkers == 2
    assert res.nHistories == 40


def test_more_workers_than_photons(bundle, source):
    res = runner.run_polycap(bundle, source, nPhotons=2, threads=4)
    assert res.nWorkers == 2
    assert res.nHistories == 2


@pytest.mark.parametrize("nPhotons", [0, -5, 2.5, True, '10'])
def test_invalid_budget(bundle, source, nPhotons):
    with pytest.raises(ValueError):
        runner.run_polycap(bundle, source, nPhotons=nPhotons)


def test_invalid_arguments(bundle, source):
    with pytest.raises(ValueError):
        runner.run_polycap(None, source, nPhotons=10)
    with pytest.raises(ValueError):
        runner.run_polycap(bundle, None, nPhotons=10)
    with pytest.raises(ValueError):
        runner.run_polycap(bundle, source, nPhotons=10, threads=2, seeds=[1])
    with pytest.raises(ValueError):
        runner.run_polycap(bundle, source, nPhotons=10, threads=0)


def test_worker_failure_discards_run(bundle, source, monkeypatch):
    def broken(*args, **kw):
        raise ZeroDivisionError('broken worker')
    monkeypatch.setattr(rrun, 'run_process', broken)
    with pytest.raises(RuntimeError):
        runner.run_polycap(bundle, source, nPhotons=20, threads=2)


def test_silently_dead_worker_discards_run(bundle, source, monkeypatch):
    monkeypatch.setattr(multipro.GenericProcessOrThread, 'run',
                        lambda self: None)
    monkeypatch.setattr(runner, 'workerPollTime', 0.05)
    with pytest.raises(RuntimeError):
        runner.run_polycap(bundle, source, nPhotons=20, threads=2)


def test_version():
    assert polycap.__version__ == '.'.join(
        str(part) for part in polycap.__versioninfo__)
