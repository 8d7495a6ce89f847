# -*- coding: utf-8 -*-
r"""
Sources
-------

Module :mod:`~polycap.backends.raycing.sources` defines the photon source: a
disc in the plane z = 0 that emits photons towards the entrance of the
optic at the distance *dSource*.

Each photon is emitted from a point at the radius *radius*·√u (u is uniform
in [0, 1)) and a uniform azimuth. The direction is either aimed at a random
point of the entrance disc of the selected channel (when the divergences
*sigX* and *sigY* are not given) or sampled independently per axis as
(*sigX*·(1-2u₁), *sigY*·(1-2u₂), 1).

Before the photon enters a channel, its weights are multiplied by the
cosine of the angle γ between the optical axis and the line from the
emission point to the channel entrance center:

.. math::

    \tan\gamma = \frac{\sqrt{(r_a - x)^2 + (r_b - y)^2}}{d_{source}},

which accounts for the effective solid angle of the channel seen from the
source ('exact' formula). The 'legacy' formula uses *x* in place of *y* in
the second term and reproduces the historical results.

.. autoclass:: polycap.backends.raycing.sources.Source()
   :members: __init__, emit, aim, solid_angle_weight

"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"
__all__ = 'Source',

import numpy as np
from .. import raycing
from .physconsts import PI2

solidAngleFormulas = 'exact', 'legacy'


class Source(object):
    """Disc source of photons in front of the optic."""

    def __init__(self, dSource, radius=0., shiftX=0., shiftY=0., sigX=0.,
                 sigY=0., solidAngleWeight='exact', name=''):
        """
        *dSource*: float
            Distance in cm from the source plane to the optic entrance.

        *radius*: float
            Source radius in cm.

        *shiftX, shiftY*: float
            Lateral shift of the source center in cm.

        *sigX, sigY*: float
            Horizontal and vertical divergences in rad. If their product is
            below 1e-20, every photon is aimed at a random point of the
            entrance of its channel.

        *solidAngleWeight*: str
            'exact' or 'legacy', see the module docstring.

        *name*: str
            User-specified name, used for diagnostics output.


        """
        if dSource <= 0:
            raise ValueError('Source {0}: dSource must be positive'.format(
                name))
        if radius < 0 or sigX < 0 or sigY < 0:
            raise ValueError('Source {0}: the radius and the divergences '
                             'must be non-negative'.format(name))
        if solidAngleWeight not in solidAngleFormulas:
            raise ValueError(
                'Source {0}: unknown solid angle formula "{1}", use one of '
                '{2}'.format(name, solidAngleWeight, solidAngleFormulas))
        self.name = name
        self.dSource = float(dSource)
        self.radius = float(radius)
        self.shiftX = float(shiftX)
        self.shiftY = float(shiftY)
        self.sigX = float(sigX)
        self.sigY = float(sigY)
        self.solidAngleWeight = solidAngleWeight

    @property
    def aimsAtChannel(self):
        return self.sigX * self.sigY < raycing.uniformAimLimit

    def emit(self, rng):
        """Returns the emission point (x, y) in the source plane."""
        rad = self.radius * np.sqrt(rng.random())
        fi = PI2 * rng.random()
        return rad*np.cos(fi) + self.shiftX, rad*np.sin(fi) + self.shiftY

    def aim(self, rng, x, y, ra, rb, rChannel):
        """Returns the normalized direction of a photon emitted at (*x*, *y*)
        towards the channel with the entrance center (*ra*, *rb*) and the
        entrance radius *rChannel*."""
        if self.aimsAtChannel:
            rad = rChannel * np.sqrt(rng.random())
            fi = PI2 * rng.random()
            v = np.array([rad*np.cos(fi) + ra - x, rad*np.sin(fi) + rb - y,
                          self.dSource])
        else:
            vx = self.sigX * (1 - 2*rng.random())
            vy = self.sigY * (1 - 2*rng.random())
            v = np.array([vx, vy, 1.])
        return raycing.normalize(v)

    def solid_angle_weight(self, x, y, ra, rb):
        """Returns cos(γ) for the emission point (*x*, *y*) and the channel
        entrance center (*ra*, *rb*)."""
        dy = rb - x if self.solidAngleWeight == 'legacy' else rb - y
        return np.cos(np.arctan(np.sqrt((ra-x)**2 + dy**2) / self.dSource))
