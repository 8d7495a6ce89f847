# -*- coding: utf-8 -*-
r"""
Optical elements
----------------

Module :mod:`~polycap.backends.raycing.oes` defines the polycapillary optic
in class :class:`Polycapillary`. The optic is a bundle of hexagonally packed
tapered glass channels inside a hexagonal housing. Its methods serve for
selecting a channel, finding the next wall hit of a photon inside the
selected channel, reflecting the photon at the wall with the energy
dependent Fresnel reflectivity and accumulating the intensity that leaks
through the wall.

Each channel is approximated by a sequence of conical segments between the
profile samples. The axis of the channel (*ix*, *iy*) follows the outer
shape of the optic: at the sample *i* its lateral offset is

.. math::

    s_{x,y}[i] = R[i]\,\frac{r_{ch}}{R[0]}(\cos\phi, \sin\phi),

where :math:`r_{ch}` and :math:`\phi` are the polar coordinates of the
channel center at the entrance and :math:`R` is the outer radius.

Wall intersection
~~~~~~~~~~~~~~~~~

For a segment with the axis from :math:`\mathbf{s}_0` to
:math:`\mathbf{s}_1` (:math:`\mathbf{d} = \mathbf{s}_1 - \mathbf{s}_0`) and
radii :math:`r_0`, :math:`r_1`, the point of closest approach of the ray
:math:`\mathbf{r} + t\mathbf{v}` to the axis point
:math:`\mathbf{s}_0 + k\mathbf{d}` gives :math:`t = a + kb` with
:math:`a = -(\mathbf{r}-\mathbf{s}_0)\cdot\mathbf{d}/\mathbf{v}\cdot\mathbf{d}`
and :math:`b = \mathbf{d}\cdot\mathbf{d}/\mathbf{v}\cdot\mathbf{d}`. The
wall condition :math:`|\mathbf{r} + t\mathbf{v} - \mathbf{s}_0 -
k\mathbf{d}| = r_0 + k(r_1 - r_0)` is then a quadratic in *k*. A root is
accepted if :math:`0 < k \le 1` and the forward distance *t* is at least
*selfIntersectionEps*.

.. autoclass:: PolycapGeometry()
   :members: __init__, lattice_point

.. autoclass:: Polycapillary()
   :members: __init__, select_channel, channel_axis, intersect_segment,
             reflect, is_inside_housing

"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"
__all__ = 'PolycapGeometry', 'Polycapillary', 'intersect_segment'

import numpy as np
from .. import raycing
from .physconsts import PI, SQ3
from .photons import ESCAPE_ABSORBED

_MISS = False, None, None, None


class PolycapGeometry(object):
    """
    Hexagonal channel lattice derived from the entrance of a profile and the
    declared channel count. The attributes are the open area fraction *eta*,
    the shell bound *nChanMax*, the integer shell count *nShells*, the shell
    width *shellWidth* and the primitive lattice vectors *a* and *b*.
    """

    def __init__(self, profile, nChannels):
        if nChannels < 7:
            raise ValueError(
                'the number of channels must be >= 7, got {0}'.format(
                    nChannels))
        self.nChannels = nChannels
        rEntrance = profile.rEntrance
        self.eta = (profile.channelRadius[0] / rEntrance)**2 * nChannels
        self.nChanMax = np.sqrt(12.*nChannels - 3) / 6. - 0.5
        if self.nChanMax <= 0:
            raise ValueError('the number of channels must be >= 7')
        self.nShells = int(np.floor(self.nChanMax + 1e-9))
        self.shellWidth = rEntrance / self.nChanMax
        s = self.shellWidth
        self.a = np.array([s, 0.])
        self.b = np.array([s*np.cos(PI/3), s*np.sin(PI/3)])
        if self.eta > 1:
            raycing.colorPrint(
                'the open area {0:.3f} is > 1: the channels overlap'.format(
                    self.eta), 'YELLOW')

    @property
    def nLattice(self):
        """Number of lattice sites within *nShells* hexagonal shells."""
        n = self.nShells
        return 3*n*n + 3*n + 1

    def lattice_point(self, ix, iy):
        """Returns the entrance center of the channel (*ix*, *iy*)."""
        return ix*self.a + iy*self.b


def intersect_segment(s0, s1, rad0, rad1, rh, v):
    """
    Finds the next hit of the ray from *rh* along the unit vector *v* with
    the wall of the conical segment with the axis from *s0* to *s1* and the
    radii *rad0* and *rad1*. All vectors are 3D in the local system of the
    optic.

    Returns a tuple (hit, point, normal, cosGrazing) where *normal* is the
    outward unit normal of the wall at *point* and *cosGrazing* = normal·v.
    A miss is returned as (False, None, None, None).
    """
    ds = s1 - s0
    vds = np.dot(v, ds)
    if abs(vds) < raycing.EPSILON:
        return _MISS
    drs = rh - s0
    a = -np.dot(drs, ds) / vds
    b = np.dot(ds, ds) / vds
    aa = rh + a*v - s0
    bb = b*v - ds
    dr = rad1 - rad0
    a0 = np.dot(bb, bb) - dr**2
    b0 = 2 * (np.dot(aa, bb) - rad0*dr)
    c0 = np.dot(aa, aa) - rad0**2

    if abs(a0) <= raycing.EPSILON:
        if abs(b0) <= raycing.EPSILON:
            return _MISS
        roots = -c0 / b0,
    else:
        disc = b0**2 - 4*a0*c0
        if disc < 0:
            return _MISS
        disc = np.sqrt(disc)
        roots = (-b0 + disc) / (2*a0), (-b0 - disc) / (2*a0)

    ck, cc = None, None
    for k in roots:
        if not raycing.EPSILON < k <= 1:
            continue
        t = a + k*b
        if t < raycing.selfIntersectionEps:
            continue
        if cc is None or t < cc:
            ck, cc = k, t
    if ck is None:
        return _MISS

    point = rh + cc*v
    u = point - (s0 + ck*ds)
    au = np.sqrt(np.dot(u, u))
    if au < raycing.EPSILON:
        return _MISS
    ads = np.sqrt(np.dot(ds, ds))
    gam = np.arctan((rad0 - rad1) / ads)
    normal = raycing.normalize(np.cos(gam)*u/au + np.sin(gam)*ds/ads)
    cosGrazing = np.dot(normal, v)
    if cosGrazing <= 0:
        return _MISS
    return True, point, normal, cosGrazing


class Polycapillary(object):
    """The polycapillary optic."""

    def __init__(self, profile, table, nChannels, roughness=0., name=''):
        """
        *profile*: instance of
            :class:`~polycap.backends.raycing.profiles.CapillaryProfile`
            Geometry of the optic.

        *table*: instance of
            :class:`~polycap.backends.raycing.materials.AbsorptionTable`
            Optical constants of the glass on the energy grid.

        *nChannels*: float
            Declared number of channels, >= 7.

        *roughness*: float
            RMS surface roughness of the channel walls in Å.

        *name*: str
            User-specified name, used for diagnostics output.


        """
        if roughness < 0:
            raise ValueError('Polycapillary {0}: negative roughness'.format(
                name))
        self.name = name
        self.profile = profile
        self.table = table
        self.roughness = float(roughness)
        self.geometry = PolycapGeometry(profile, nChannels)
        self.hexEdgeDist = profile.rExit * SQ3 / 2
        self.hexNormals = np.array([[0., 1.],
                                    [np.cos(PI/6), np.sin(PI/6)],
                                    [np.cos(-PI/6), np.sin(-PI/6)]])

    @property
    def nE(self):
        return self.table.nE

    @property
    def nSamples(self):
        return len(self.profile.z)

    @property
    def eta(self):
        return self.geometry.eta

    def select_channel(self, rng):
        """Returns the lattice indices (ix, iy) of a channel drawn uniformly
        from the hexagonally packed channels."""
        n = self.geometry.nShells
        while True:
            ix, iy = rng.integers(-n, n+1, size=2)
            if abs(ix + iy) <= n:
                return int(ix), int(iy)

    def channel_axis(self, ix, iy, sx=None, sy=None):
        """Returns the lateral offsets (sx, sy) of the axis of the channel
        (*ix*, *iy*) at all profile samples. If given, the arrays *sx* and
        *sy* are filled in place."""
        ra, rb = self.geometry.lattice_point(ix, iy)
        rr = np.sqrt(ra**2 + rb**2)
        if rr <= raycing.DELTA:
            cosphi, sinphi = 0., 0.
        else:
            cosphi, sinphi = ra/rr, rb/rr
        prf = self.profile
        scale = prf.outerRadius * rr / prf.rEntrance
        if sx is None:
            sx = np.empty_like(scale)
            sy = np.empty_like(scale)
        np.multiply(scale, cosphi, out=sx)
        np.multiply(scale, sinphi, out=sy)
        sx += prf.sx
        sy += prf.sy
        return sx, sy

    def intersect_segment(self, s0, s1, rad0, rad1, rh, v):
        """See :func:`intersect_segment`."""
        return intersect_segment(s0, s1, rad0, rad1, rh, v)

    def reflect(self, photon, alpha, tally, screen, zEntrance):
        r"""
        Applies the wall reflection at the grazing angle *alpha* to the
        weights of *photon* located at the wall hit. For each energy the
        leaked weight

        .. math::

            w_{leak} = (1 - R_F)\,w\,\exp(-\mu d_{esc})

        is added to *tally.leak*, where :math:`R_F` is the Fresnel
        reflectivity and :math:`d_{esc}` is the remaining in-tube path
        length estimated along the optical axis. The leaked weight at the
        lowest energy is projected straight to the detector plane of
        *screen* and binned into *tally.lspot*. The weights become
        :math:`w R_F r_{rough}`; the lost weight at the lowest energy is
        added to *tally.absorb* of the current segment. If the lowest-energy
        weight falls below *weightThreshold*, the photon is marked as
        absorbed.

        *zEntrance* is the global z of the optic entrance.

        Returns the per-energy lost weight (before minus after) and its
        leaked part.
        """
        table = self.table
        vz = photon.v[2]
        desc = (self.profile.length + zEntrance - photon.rh[2]) / vz \
            if vz > 0 else self.profile.length
        refl = table.get_fresnel_reflectivity(alpha)
        leaked = (1 - refl) * photon.w * np.exp(-desc * table.mu)
        tally.leak += leaked
        screen.add(tally.lspot, photon.rh, photon.v, leaked[0])

        wBefore = photon.w
        photon.w = wBefore * refl
        if self.roughness:
            photon.w *= table.get_roughness_factor(alpha, self.roughness)
        lost = wBefore - photon.w
        tally.absorb[photon.segment] += lost[0]
        if photon.w[0] < raycing.weightThreshold:
            photon.escape = ESCAPE_ABSORBED
        return lost, leaked

    def is_inside_housing(self, x, y):
        """Tests the point (*x*, *y*) of the exit plane against the
        hexagonal housing of the optic."""
        dp = np.abs(self.hexNormals.dot([x, y]))
        return bool(np.all(dp <= self.hexEdgeDist))
