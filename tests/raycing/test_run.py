# -*- coding: utf-8 -*-
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from polycap.backends import raycing
from polycap.backends.raycing import oes, run, sources
from polycap.backends.raycing.photons import Tally, ESCAPE_MISS


def _tracer(optic, source, screen, **kw):
    tally = Tally(optic.nE, optic.nSamples, screen.bins)
    return run.PhotonTracer(optic, source, screen, run.make_rng(5), tally,
                            **kw)


def _place(tracer, v):
    """Puts the photon at the entrance center of the central channel."""
    photon = tracer.photon
    photon.reset()
    photon.channel = 0, 0
    tracer.polycap.channel_axis(0, 0, sx=photon.sx, sy=photon.sy)
    photon.rh = np.array([0, 0, tracer.zEntrance])
    photon.v = raycing.normalize(np.array(v, dtype=float))
    return photon


def test_on_axis_photon_passes(bundle, source, screen):
    tracer = _tracer(bundle, source, screen)
    assert screen.z == source.dSource + bundle.profile.length + 1.
    photon = _place(tracer, (0, 0, 1))
    assert tracer.trace(photon) == run.EXIT_CHECK
    assert photon.nRefl == 0
    assert tracer.count(photon) == run.DETECTED
    assert_array_equal(tracer.tally.cnt, 1.)
    assert tracer.tally.spot.sum() == 1.
    assert tracer.tally.spot[screen.bins//2, screen.bins//2] == 1.
    assert not tracer.tally.leak.any()


def test_two_reflections_in_cylinder(table, cylinderProfile, source,
                                     screen):
    optic = oes.Polycapillary(cylinderProfile, table, nChannels=37)
    tracer = _tracer(optic, source, screen)
    theta = 2e-3
    # hits at z = 0.25 and z = 0.75, the exit at the axis
    photon = _place(tracer, (theta, 0, 1))
    assert tracer.trace(photon) == run.EXIT_CHECK
    assert photon.nRefl == 2
    alpha = np.arctan(theta)
    refl = table.get_fresnel_reflectivity(alpha)
    assert_allclose(photon.w, refl**2, rtol=1e-9)
    assert_allclose(photon.v[0], np.sin(alpha), rtol=1e-9)
    assert_allclose(photon.rh[2], source.dSource + 0.75, rtol=1e-9)
    assert_allclose(photon.trajLength, 0.75*np.sqrt(1 + theta**2),
                    rtol=1e-9)
    assert tracer.count(photon) == run.DETECTED
    assert_allclose(tracer.tally.cnt, refl**2, rtol=1e-9)
    tally = tracer.tally
    assert_allclose(tally.absorb.sum(), 1 - refl[0]**2, rtol=1e-9)
    assert tally.absorb[12] > 0 and tally.absorb[37] > 0
    assert np.all(tally.leak > 0)
    assert np.all(tally.leak < 1 - refl**2)


def test_absorption_is_terminal(table, cylinderProfile, source, screen,
                                monkeypatch):
    monkeypatch.setattr(raycing, 'weightThreshold', 0.999)
    optic = oes.Polycapillary(cylinderProfile, table, nChannels=37)
    tracer = _tracer(optic, source, screen)
    photon = _place(tracer, (2e-3, 0, 1))
    assert tracer.trace(photon) == run.ABSORBED
    assert photon.nRefl == 0
    assert not tracer.tally.cnt.any()


def test_every_history_resolves_once(bundle, source, screen):
    tally, images = run.run_process(bundle, source, screen, 0, 200, seed=1)
    assert tally.nHistories == 200
    assert tally.nLost == 0
    assert tally.nEntered >= 200
    assert tally.nStarted >= tally.nEntered
    assert np.all(tally.cnt <= tally.nDetected)
    assert images.size == 200
    assert_allclose(images.screen[:, 4].sum(), tally.cnt[0])


def test_run_process_is_reproducible(bundle, source, screen):
    tally1, images1 = run.run_process(bundle, source, screen, 10, 60, seed=7)
    tally2, images2 = run.run_process(bundle, source, screen, 10, 60, seed=7)
    assert_array_equal(tally1.cnt, tally2.cnt)
    assert_array_equal(tally1.absorb, tally2.absorb)
    assert_array_equal(images1.source, images2.source)
    for counter in Tally.counters:
        assert getattr(tally1, counter) == getattr(tally2, counter)


def test_image_window(bundle, source, screen):
    tally, images = run.run_process(bundle, source, screen, 50, 80, seed=3,
                                    imageSize=60)
    assert images.offset == 50
    assert images.size == 10
    assert np.all(np.hypot(images.source[:, 0], images.source[:, 1]) <=
                  source.radius)


def test_history_lost_after_retries(bundle, screen):
    # a wide beam practically never hits the mouth of a channel
    source = sources.Source(dSource=10., sigX=0.5, sigY=0.5)
    tracer = _tracer(bundle, source, screen, maxRetries=5)
    assert tracer.run_history() == run.LOST
    assert tracer.tally.nStarted == 6
    assert tracer.tally.nEntered == 0
    assert tracer.tally.nLost == 1
    assert tracer.tally.nHistories == 1


def _steady_tracer(optic, screen, monkeypatch, **kw):
    """A point source and the central channel: every history is detected
    unless a regeneration is forced."""
    monkeypatch.setattr(optic, 'select_channel', lambda rng: (0, 0))
    return _tracer(optic, sources.Source(dSource=10.), screen, **kw)


def test_steady_history_is_detected(bundle, screen, monkeypatch):
    tracer = _steady_tracer(bundle, screen, monkeypatch)
    for i in range(5):
        assert tracer.run_history() == run.DETECTED
    tally = tracer.tally
    assert tally.nDetected == tally.nHistories == 5
    assert tally.nEntered == 5
    assert tally.nMissRetries == tally.nHousingRetries == 0


def test_outside_housing_regenerates(bundle, screen, monkeypatch):
    tracer = _steady_tracer(bundle, screen, monkeypatch)
    calls = []

    def housing(x, y):
        calls.append((x, y))
        return len(calls) > 2
    monkeypatch.setattr(bundle, 'is_inside_housing', housing)

    assert tracer.run_history() == run.DETECTED
    tally = tracer.tally
    assert len(calls) == 3
    assert tally.nHousingRetries == 2
    assert tally.nMissRetries == 0
    assert tally.nEntered == 3
    assert tally.nStarted >= 3
    assert tally.nHistories == tally.nDetected == 1
    assert_allclose(tally.cnt, tracer.photon.w)


def test_grazing_cosine_above_one_regenerates(bundle, screen, monkeypatch):
    tracer = _steady_tracer(bundle, screen, monkeypatch)
    intersect = tracer.intersect
    calls = []

    def rounded_off(photon):
        calls.append(photon.segment)
        if len(calls) <= 2:
            return photon.rh.copy(), np.array([1., 0, 0]), 1 + 1e-12
        return intersect(photon)
    monkeypatch.setattr(tracer, 'intersect', rounded_off)

    photon = tracer.photon
    tracer.start(photon)
    assert tracer.step(photon) == run.GEOMETRIC_MISS
    assert photon.escape == ESCAPE_MISS
    assert photon.nRefl == 0

    assert tracer.run_history() == run.DETECTED
    tally = tracer.tally
    assert tally.nMissRetries == 1
    assert tally.nHousingRetries == 0
    # one manual start and two starts of the history
    assert tally.nEntered == 3
    assert tally.nHistories == tally.nDetected == 1


def test_backward_photon_without_hit_regenerates(bundle, screen,
                                                 monkeypatch):
    tracer = _steady_tracer(bundle, screen, monkeypatch)
    intersect = tracer.intersect
    calls = []

    def turned_back(photon):
        calls.append(photon.segment)
        if len(calls) == 1:
            photon.v = np.array([0, 0, -1.])
            return None
        return intersect(photon)
    monkeypatch.setattr(tracer, 'intersect', turned_back)

    assert tracer.run_history() == run.DETECTED
    tally = tracer.tally
    assert tally.nMissRetries == 1
    assert tally.nHousingRetries == 0
    assert tally.nEntered == 2
    assert tally.nHistories == tally.nDetected == 1
    assert tracer.photon.v[2] > 0


def test_mixed_regenerations_resolve_once(bundle, screen, monkeypatch):
    tracer = _steady_tracer(bundle, screen, monkeypatch)
    intersect = tracer.intersect
    nIntersect, nHousing = [], []

    def rounded_off(photon):
        nIntersect.append(1)
        if len(nIntersect) == 1:
            return photon.rh.copy(), np.array([1., 0, 0]), 1 + 1e-12
        return intersect(photon)

    def housing(x, y):
        nHousing.append(1)
        return len(nHousing) > 2
    monkeypatch.setattr(tracer, 'intersect', rounded_off)
    monkeypatch.setattr(bundle, 'is_inside_housing', housing)

    assert tracer.run_history() == run.DETECTED
    assert tracer.run_history() == run.DETECTED
    tally = tracer.tally
    assert tally.nMissRetries == 1
    assert tally.nHousingRetries == 2
    assert tally.nHistories == 2
    assert tally.nEntered == 5


def test_regeneration_limit_ends_as_lost(bundle, screen, monkeypatch):
    tracer = _steady_tracer(bundle, screen, monkeypatch, maxRetries=3)
    monkeypatch.setattr(bundle, 'is_inside_housing', lambda x, y: False)
    assert tracer.run_history() == run.LOST
    tally = tracer.tally
    assert tally.nHousingRetries == 4
    assert tally.nEntered == 4
    assert tally.nLost == tally.nHistories == 1
    assert not tally.cnt.any()
