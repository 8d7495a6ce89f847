# -*- coding: utf-8 -*-
r"""
Profiles
--------

Module :mod:`~polycap.backends.raycing.profiles` defines the capillary
profile, i.e. the sampled geometry of a polycapillary optic: the radius of a
single channel, the outer radius of the optic and the lateral offsets of the
channel axis, all given at *N* + 1 axial positions. The profile is read-only
during a run and is shared by all the workers.

A profile can be given directly by arrays, generated from one of the
analytic shapes (conical, paraboloidal, ellipsoidal) or read from three text
files describing the single channel, the central axis and the external
shape.

.. autoclass:: polycap.backends.raycing.profiles.CapillaryProfile()
   :members: __init__

.. autofunction:: conical
.. autofunction:: paraboloidal
.. autofunction:: ellipsoidal
.. autofunction:: read_profile_files

"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"
__all__ = ('CapillaryProfile', 'conical', 'paraboloidal', 'ellipsoidal',
           'read_profile_files')

import numpy as np
from .. import raycing

_NMAX = 999


class CapillaryProfile(object):
    """Sampled geometry of a polycapillary optic."""

    def __init__(self, z, channelRadius, outerRadius, sx=None, sy=None,
                 binSize=raycing.binSize, name=''):
        """
        *z*: sequence of N+1 floats
            Axial positions of the samples in cm, strictly increasing. The
            sample 0 is the optic entrance and the sample N is its exit; the
            channel length is *z*\\[N].

        *channelRadius*: sequence of N+1 floats
            Radius of a single channel in cm, non-negative.

        *outerRadius*: sequence of N+1 floats
            Outer radius of the optic in cm, positive.

        *sx, sy*: sequences of N+1 floats or None
            Lateral offsets of the central channel axis as read from an axis
            file. If None, the axis is straight.

        *binSize*: float
            Lateral size of a detector histogram bin in cm.

        *name*: str
            User-specified name, used for diagnostics output.


        """
        self.name = name
        self.z = np.array(z, dtype=np.float64)
        self.channelRadius = np.array(channelRadius, dtype=np.float64)
        self.outerRadius = np.array(outerRadius, dtype=np.float64)
        self.sx = np.zeros_like(self.z) if sx is None else \
            np.array(sx, dtype=np.float64)
        self.sy = np.zeros_like(self.z) if sy is None else \
            np.array(sy, dtype=np.float64)
        self.binSize = float(binSize)
        self._check()
        for arr in (self.z, self.channelRadius, self.outerRadius, self.sx,
                    self.sy):
            arr.flags.writeable = False

    def _check(self):
        if self.z.ndim != 1 or len(self.z) < 2:
            raise ValueError(
                'Profile {0}: z must be a 1D array of at least 2 samples'
                .format(self.name))
        for what in ('channelRadius', 'outerRadius', 'sx', 'sy'):
            arr = getattr(self, what)
            if arr.shape != self.z.shape:
                raise ValueError(
                    'Profile {0}: {1} has {2} samples, z has {3}'.format(
                        self.name, what, arr.size, self.z.size))
            if not np.all(np.isfinite(arr)):
                raise ValueError('Profile {0}: {1} is not finite'.format(
                    self.name, what))
        if not np.all(np.isfinite(self.z)):
            raise ValueError('Profile {0}: z is not finite'.format(self.name))
        if np.any(np.diff(self.z) <= 0):
            raise ValueError('Profile {0}: z must be strictly increasing'
                             .format(self.name))
        if np.any(self.channelRadius < 0):
            raise ValueError('Profile {0}: negative channel radius'.format(
                self.name))
        if np.any(self.outerRadius <= 0):
            raise ValueError('Profile {0}: the outer radius must be positive'
                             .format(self.name))
        if self.binSize <= 0:
            raise ValueError('Profile {0}: the bin size must be positive'
                             .format(self.name))

    @property
    def nSegments(self):
        return len(self.z) - 1

    @property
    def length(self):
        return self.z[-1]

    @property
    def rEntrance(self):
        return self.outerRadius[0]

    @property
    def rExit(self):
        return self.outerRadius[-1]


def _sample_z(length, nmax):
    z = np.empty(nmax + 1)
    z[:nmax] = length / nmax * np.arange(nmax)
    z[nmax] = length
    return z


def _linear(z, length, r):
    return (r[1]-r[0]) / length * z + r[0]


def _check_shape_args(length, rExt, rInt, nmax):
    if length <= 0:
        raise ValueError('the optic length must be positive')
    if not (raycing.is_sequence(rExt) and raycing.is_sequence(rInt)) or \
            len(rExt) != 2 or len(rInt) != 2:
        raise ValueError('rExt and rInt must be pairs (entrance, exit)')
    if nmax < 1:
        raise ValueError('nmax must be at least 1')


def conical(length, rExt, rInt, nmax=_NMAX, **kwargs):
    """
    Returns a :class:`CapillaryProfile` of a conical optic.

    *length*: float
        Optic length in cm.

    *rExt*: 2-sequence of floats
        Outer radii at the entrance and at the exit.

    *rInt*: 2-sequence of floats
        Single channel radii at the entrance and at the exit. The channel is
        conical for all the analytic shapes.

    *nmax*: int
        Number of segments.

    Other keyword arguments are passed to :class:`CapillaryProfile`.
    """
    _check_shape_args(length, rExt, rInt, nmax)
    z = _sample_z(length, nmax)
    return CapillaryProfile(z, _linear(z, length, rInt),
                            _linear(z, length, rExt), **kwargs)


def paraboloidal(length, rExt, rInt, focalDist, nmax=_NMAX, **kwargs):
    """
    Returns a :class:`CapillaryProfile` of an optic with a second order
    polynomial outer shape. The polynomial is a least squares fit through
    the entrance and exit points and two more points that lie on the lines
    from the foci at the distances *focalDist* (before the entrance and after
    the exit) through the entrance and exit edges. The other parameters are
    as in :func:`conical`.
    """
    _check_shape_args(length, rExt, rInt, nmax)
    fIn, fOut = focalDist
    if fIn <= 0 or fOut <= 0:
        raise ValueError('focal distances must be positive')
    px = np.zeros(4)
    py = np.zeros(4)
    px[0], py[0] = 0., rExt[0]
    px[3], py[3] = length, rExt[1]
    px[1] = fIn/10. if fIn <= length else length/10.
    py[1] = rExt[0] / fIn * px[1] + rExt[0]
    px[2] = length - (fOut/10. if fOut <= length else length/10.)
    py[2] = -rExt[1] / fOut * (px[2] - length) + rExt[1]
    coeff = np.polyfit(px, py, 2)

    z = _sample_z(length, nmax)
    return CapillaryProfile(z, _linear(z, length, rInt),
                            np.polyval(coeff, z), **kwargs)


def ellipsoidal(length, rExt, rInt, focalDist, nmax=_NMAX, **kwargs):
    """
    Returns a :class:`CapillaryProfile` of an optic with an ellipsoidal
    outer shape. The side with the larger radius has a horizontal tangent,
    the other side points towards the focus at the focal distance that
    corresponds to the smaller outer radius. If the exit radius is the
    smaller one, the optic is focusing, otherwise it is collimating. The
    parameters are as in :func:`paraboloidal`.
    """
    _check_shape_args(length, rExt, rInt, nmax)
    z = _sample_z(length, nmax)
    if rExt[1] < rExt[0]:
        rBig, rSmall, focus, zz = rExt[0], rExt[1], focalDist[1], z
    else:
        rBig, rSmall, focus, zz = rExt[1], rExt[0], focalDist[0], length - z
    if focus <= 0:
        raise ValueError('focal distances must be positive')
    slope = rSmall / focus
    dr = rSmall - rBig
    denom = slope*length + 2*dr
    if abs(denom) < raycing.DELTA:
        raise ValueError(
            'no ellipsoid joins the radii {0} over {1} cm with the focal '
            'distance {2}'.format(tuple(rExt), length, focus))
    b = (-dr**2 - slope*length*dr) / denom
    if abs(b) < raycing.DELTA or abs(dr + b) < raycing.DELTA:
        raise ValueError(
            'degenerate ellipsoid for the radii {0} over {1} cm with the '
            'focal distance {2}'.format(tuple(rExt), length, focus))
    k = rBig - b
    a2 = b**2 * length / (slope * (rSmall-k))
    arg = b**2 - b**2 * zz**2 / a2
    if np.any(arg < 0):
        raise ValueError('the ellipsoid does not span the optic length')
    return CapillaryProfile(z, _linear(z, length, rInt), np.sqrt(arg) + k,
                            **kwargs)


def _read_table(fname, ncols, what):
    with open(fname, 'r') as f:
        tokens = f.read().split()
    if not tokens:
        raise ValueError('{0} file {1} is empty'.format(what, fname))
    n = int(tokens[0])
    values = np.array([float(t) for t in tokens[1:]])
    if n < 1 or values.size < (n+1)*ncols:
        raise ValueError('{0} file {1}: expected {2} rows of {3} columns'
                         .format(what, fname, n+1, ncols))
    return n, values[:(n+1)*ncols].reshape(n+1, ncols)


def read_profile_files(prfFile, axsFile, extFile, **kwargs):
    """
    Reads a profile from three text files. Each file starts with the number
    of intervals N followed by N+1 rows:

    *prfFile*: single channel profile, rows of `z r`;

    *axsFile*: central axis, rows of `z sx sy`;

    *extFile*: external shape, rows of `z R`.

    The three interval counts must be equal. The axial positions are taken
    from *extFile*. Other keyword arguments are passed to
    :class:`CapillaryProfile`.
    """
    n, prf = _read_table(prfFile, 2, 'profile')
    nAxs, axs = _read_table(axsFile, 3, 'axis')
    if nAxs != n:
        raise ValueError('Inconsistent axis file {0}: number of intervals '
                         'different'.format(axsFile))
    nExt, ext = _read_table(extFile, 2, 'external shape')
    if nExt != n:
        raise ValueError('Inconsistent external shape file {0}: number of '
                         'intervals different'.format(extFile))
    if raycing._VERBOSITY_ > 10:
        print('read a profile of {0} intervals'.format(n))
    return CapillaryProfile(ext[:, 0], prf[:, 1], ext[:, 1], sx=axs[:, 1],
                            sy=axs[:, 2], **kwargs)
