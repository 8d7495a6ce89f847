# -*- coding: utf-8 -*-
"""
Package :mod:`~polycap.backends.raycing` provides the Monte-Carlo backend of
polycap. It defines the capillary profiles in the module
:mod:`~polycap.backends.raycing.profiles`, the glass optical constants and
the reflectivity in :mod:`~polycap.backends.raycing.materials`, the
polycapillary optic itself (channel lattice, wall intersection, reflection
and leakage through the walls, hexagonal housing) in
:mod:`~polycap.backends.raycing.oes`, the photon source in
:mod:`~polycap.backends.raycing.sources`, the detector plane in
:mod:`~polycap.backends.raycing.screens`, photon states and accumulators in
:mod:`~polycap.backends.raycing.photons` and the photon transport in
:mod:`~polycap.backends.raycing.run`.

Coordinate system
-----------------

The z axis is the optical axis of the polycapillary. The source plane is at
z = 0, the optic entrance at z = *dSource* and its exit at
z = *dSource* + *length*. The detector plane (screen) is at
z = *dSource* + *length* + *dScreen*. The capillary profiles are given in
the local optic system where z = 0 is the entrance.

The channels are hexagonally close-packed. A channel is addressed by two
integer lattice indices (*ix*, *iy*) along the primitive vectors
*a* = (*s*, 0) and *b* = (*s*/2, *s*·√3/2), where *s* is the width of one
hexagonal shell at the entrance. The central channel is (0, 0).

Units
-----

Lengths are in cm, angles in radians, energies in keV, surface roughness
in Å, densities in g/cm³ and linear attenuation coefficients in cm⁻¹.

Photon histories
----------------

Each photon history starts with the generation of a photon that enters the
mouth of a randomly selected channel. The photon is then transported
through the channel by successive wall reflections, each of which reduces
the photon's weights (one weight per energy of the energy grid) and sends
the lost intensity through the wall as leakage. A history ends when the
photon is detected behind the optic or when its weight at the lowest
energy drops below *weightThreshold*. Photons that miss the channel geometry
or exit outside of the optic housing are regenerated.
"""

__module__ = "raycing"
__date__ = "18 Oct 2026"

import numpy as np

from .singletons import colorPrint, statusPrint, colors, is_sequence, \
    _VERBOSITY_  # analysis:ignore

from .physconsts import HC, AVOGADRO, R0  # analysis:ignore

EPSILON = 1e-30  # guards divisions in the intersection solver
DELTA = 1e-10  # lattice distance below which a channel is the central one
selfIntersectionEps = 1e-10  # cm: minimum forward distance to the next hit
weightThreshold = 1e-4  # lowest-energy weight that terminates a history
binSize = 20e-4  # cm: default lateral bin size of the detector histograms
nSpot = 1000  # bins per side of the detector histograms
imageSize = 500001  # max number of histories kept as image samples
maxRetries = 100000  # max regenerations of one photon history
uniformAimLimit = 1e-20  # below this sigX*sigY the source aims at channels


def normalize(v):
    """Returns the normalized copy of the vector *v*."""
    return v / np.sqrt(np.dot(v, v))
