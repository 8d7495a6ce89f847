# -*- coding: utf-8 -*-
import numpy as np
from numpy.testing import assert_allclose
import pytest

from polycap.backends.raycing import profiles


def test_conical_samples():
    prf = profiles.conical(5., (0.3, 0.1), (0.002, 0.001), nmax=100)
    assert prf.nSegments == 100
    assert len(prf.z) == 101
    assert prf.length == 5.
    assert np.all(np.diff(prf.z) > 0)
    assert_allclose(prf.z[:100], 5./100*np.arange(100))
    assert_allclose(prf.channelRadius[[0, -1]], (0.002, 0.001))
    assert_allclose(prf.outerRadius[[0, -1]], (0.3, 0.1))
    assert prf.rEntrance == 0.3
    assert_allclose(prf.rExit, 0.1)
    assert not prf.sx.any() and not prf.sy.any()
    assert prf.binSize == 20e-4


def test_profile_is_read_only():
    prf = profiles.conical(1., (0.1, 0.1), (0.001, 0.001), nmax=4)
    with pytest.raises(ValueError):
        prf.z[0] = 1.


@pytest.mark.parametrize("kwargs", [
    dict(z=[0, 1, 1], channelRadius=[1e-3]*3, outerRadius=[0.1]*3),
    dict(z=[0, 2, 1], channelRadius=[1e-3]*3, outerRadius=[0.1]*3),
    dict(z=[0, 1, 2], channelRadius=[1e-3, -1e-3, 1e-3],
         outerRadius=[0.1]*3),
    dict(z=[0, 1, 2], channelRadius=[1e-3]*3, outerRadius=[0.1, 0, 0.1]),
    dict(z=[0, 1, 2], channelRadius=[1e-3]*2, outerRadius=[0.1]*3),
    dict(z=[0, 1, 2], channelRadius=[1e-3]*3, outerRadius=[0.1]*3,
         binSize=0),
    dict(z=[0, 1, np.nan], channelRadius=[1e-3]*3, outerRadius=[0.1]*3),
    dict(z=[0], channelRadius=[1e-3], outerRadius=[0.1]),
])
def test_invalid_geometry(kwargs):
    with pytest.raises(ValueError):
        profiles.CapillaryProfile(**kwargs)


def test_ellipsoidal_focusing_reaches_both_radii():
    prf = profiles.ellipsoidal(5., (0.3, 0.1), (0.002, 0.001), (1., 1.))
    assert_allclose(prf.outerRadius[0], 0.3)
    assert_allclose(prf.outerRadius[-1], 0.1)
    # the wide side has a horizontal tangent
    assert abs(prf.outerRadius[1] - prf.outerRadius[0]) < 1e-6


def test_ellipsoidal_collimating_is_mirrored():
    foc = profiles.ellipsoidal(5., (0.3, 0.1), (0.001, 0.001), (1., 1.))
    col = profiles.ellipsoidal(5., (0.1, 0.3), (0.001, 0.001), (1., 1.))
    assert_allclose(col.outerRadius, foc.outerRadius[::-1], atol=1e-12)


def test_paraboloidal():
    prf = profiles.paraboloidal(10., (0.4, 0.2), (0.002, 0.001), (20., 5.))
    assert np.all(prf.outerRadius > 0)
    assert prf.length == 10.
    assert_allclose(prf.outerRadius[[0, -1]], (0.4, 0.2), atol=0.05)


def _write(path, n, rows):
    with open(path, 'w') as f:
        f.write('{0}\n'.format(n))
        for row in rows:
            f.write(' '.join(str(v) for v in row) + '\n')


def test_read_profile_files(tmp_path):
    z = np.linspace(0, 2., 5)
    prf, axs, ext = [str(tmp_path / n) for n in ('a.prf', 'a.axs', 'a.ext')]
    _write(prf, 4, [(zi, 0.001) for zi in z])
    _write(axs, 4, [(zi, 0., 0.01*zi) for zi in z])
    _write(ext, 4, [(zi, 0.2 - 0.05*zi) for zi in z])
    profile = profiles.read_profile_files(prf, axs, ext)
    assert profile.nSegments == 4
    assert_allclose(profile.z, z)
    assert_allclose(profile.sy, 0.01*z)
    assert_allclose(profile.outerRadius, 0.2 - 0.05*z)


def test_read_profile_files_inconsistent(tmp_path):
    z = np.linspace(0, 2., 5)
    prf, axs, ext = [str(tmp_path / n) for n in ('a.prf', 'a.axs', 'a.ext')]
    _write(prf, 4, [(zi, 0.001) for zi in z])
    _write(axs, 3, [(zi, 0., 0.) for zi in z[:4]])
    _write(ext, 4, [(zi, 0.2) for zi in z])
    with pytest.raises(ValueError):
        profiles.read_profile_files(prf, axs, ext)


@pytest.mark.parametrize("args", [
    (3., (0.2, 0.05), (0.001, 0.001), (0.5, 0.5)),
    (1., (0.1, 0.1), (0.001, 0.001), (1., 1.)),
    (1., (0.1, 0.05), (0.001, 0.001), (1., 0.)),
])
def test_ellipsoidal_degenerate_shape(args):
    with pytest.raises(ValueError):
        profiles.ellipsoidal(*args)
