# -*- coding: utf-8 -*-
r"""
Screens
-------

Module :mod:`~polycap.backends.raycing.screens` defines the detector plane
behind the optic. The plane is perpendicular to the optical axis and
collects two square histograms centered on the axis: the spot of the
transmitted photons and the spot of the photons leaked through the channel
walls.

.. autoclass:: polycap.backends.raycing.screens.Screen()
   :members: __init__, prepare, expose, bin_index

"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"
__all__ = 'Screen',

import numpy as np
from .. import raycing


class Screen(object):
    """Flat detector plane for the spot images."""

    def __init__(self, dScreen=0., bins=raycing.nSpot, binSize=None,
                 name=''):
        """
        *dScreen*: float
            Distance in cm from the optic exit to the detector plane.

        *bins*: int
            Number of histogram bins per side.

        *binSize*: float or None
            Lateral bin size in cm. If None, the bin size of the capillary
            profile is used.

        *name*: str
            User-specified name, used for diagnostics output.


        """
        if bins < 1:
            raise ValueError('Screen {0}: bins must be positive'.format(name))
        if binSize is not None and binSize <= 0:
            raise ValueError('Screen {0}: the bin size must be positive'
                             .format(name))
        self.name = name
        self.dScreen = float(dScreen)
        self.bins = int(bins)
        self.binSize = binSize
        self.z = None
        self.dx = binSize

    def prepare(self, profile, dSource):
        """Sets the global position of the plane behind an optic with
        *profile* at the distance *dSource* from the source and, if not set,
        the bin size."""
        self.z = dSource + profile.length + self.dScreen
        self.dx = profile.binSize if self.binSize is None else self.binSize
        return self

    def expose(self, rh, v):
        """Projects the ray from the point *rh* along *v* straight to the
        plane and returns the crossing point (x, y). Rays that do not move
        along the axis never reach the plane and return None."""
        if v[2] <= 0:
            return None
        c = (self.z - rh[2]) / v[2]
        return rh[0] + c*v[0], rh[1] + c*v[1]

    def bin_index(self, xp, yp):
        """Returns the histogram indices of the point (*xp*, *yp*) or None
        when the point is outside the grid."""
        if not (np.isfinite(xp) and np.isfinite(yp)):
            return None
        half = self.bins // 2
        ix = int(np.floor(xp / self.dx)) + half
        iy = int(np.floor(yp / self.dx)) + half
        if 0 <= ix < self.bins and 0 <= iy < self.bins:
            return ix, iy
        return None

    def add(self, hist, rh, v, weight):
        """Projects the ray and adds *weight* to the bin of *hist* it falls
        into. Returns the projected point or None."""
        point = self.expose(rh, v)
        if point is None:
            return None
        ind = self.bin_index(*point)
        if ind is not None:
            hist[ind] += weight
        return point
