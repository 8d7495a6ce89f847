# -*- coding: utf-8 -*-
import matplotlib
matplotlib.use('agg')

import pytest

from polycap.backends.raycing import profiles, materials, oes, sources, \
    screens

# borosilicate-like glass on a 3-point energy grid, 10..20 keV
MU = 28.5, 9.2, 4.3  # 1/cm
SCATF = 0.497, 0.498, 0.498  # sum (Z+f')*w/A
RHO = 2.23  # g/cm3


@pytest.fixture
def table():
    return materials.AbsorptionTable(10., 20., 5., MU, SCATF, RHO)


@pytest.fixture
def transparentTable():
    """Glass without absorption."""
    return materials.AbsorptionTable(10., 20., 5., (0, 0, 0), SCATF, RHO)


@pytest.fixture
def cylinderProfile():
    """Parallel channels of 5 µm radius in a 2 mm wide bundle, 1 cm long."""
    return profiles.conical(1., (0.1, 0.1), (0.0005, 0.0005), nmax=50)


@pytest.fixture
def bundle(table):
    profile = profiles.conical(1., (0.1, 0.1), (0.001, 0.001), nmax=20)
    return oes.Polycapillary(profile, table, nChannels=37)


@pytest.fixture
def source():
    return sources.Source(dSource=10., radius=0.01)


@pytest.fixture
def screen():
    return screens.Screen(dScreen=1., bins=64)
