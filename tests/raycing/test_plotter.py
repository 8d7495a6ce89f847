# -*- coding: utf-8 -*-
import os
import numpy as np
from numpy.testing import assert_allclose
import pytest

from polycap import runner, plotter
from polycap.backends.raycing import screens


@pytest.fixture
def results(bundle, source):
    return runner.run_polycap(bundle, source, screens.Screen(bins=50),
                              nPhotons=60, seeds=[3], imageSize=25)


def test_save_results(results, tmp_path):
    base = str(tmp_path / 'out' / 'run1')
    names = plotter.save_results(results, base)
    suffixes = '.out', '.abs', '_spot.dat', '_lspot.dat', '_xy.dat', \
        '_xys.dat'
    assert names == [base + s for s in suffixes]
    assert all(os.path.exists(name) for name in names)

    with open(base + '.out') as f:
        lines = f.read().splitlines()
    iData = lines.index('$DATA:')
    assert lines[iData+1].split() == ['3', '5']
    table = np.array([line.split() for line in lines[iData+2:iData+5]],
                     dtype=float)
    assert_allclose(table[:, 0], results.energies)
    assert_allclose(table[:, 1], results.transmission, atol=1e-9)
    assert_allclose(table[:, 4], results.leakFraction, atol=1e-9)

    absData = np.loadtxt(base + '.abs', skiprows=2)
    assert absData.shape == (len(results.z), 2)
    assert_allclose(absData[:, 0], results.z, atol=1e-6)

    spot = np.loadtxt(base + '_spot.dat', skiprows=1)
    assert spot.shape == (50, 50)
    assert_allclose(spot.T, results.spot, atol=1e-6)

    with open(base + '_xy.dat') as f:
        header = [f.readline() for i in range(4)]
    assert int(header[0]) == 25
    assert float(header[1]) == results.energies[0]
    assert float(header[2]) == results.energies[-1]
    xy = np.loadtxt(base + '_xy.dat', skiprows=4)
    assert xy.shape == (25, 5)
    assert_allclose(xy[:, 0], results.images.screen[:, 0], atol=1e-6)
    assert_allclose(xy[:, 1], results.images.screen[:, 2], atol=1e-6)


def test_plots(results, tmp_path):
    fig = plotter.plot_transmission(results, str(tmp_path / 'tr.png'))
    assert len(fig.axes) == 1
    assert os.path.exists(str(tmp_path / 'tr.png'))
    fig = plotter.plot_spots(results, log=True)
    assert len(fig.axes) == 2
