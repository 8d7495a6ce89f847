# -*- coding: utf-8 -*-
r"""
Materials
---------

Module :mod:`~polycap.backends.raycing.materials` defines the optical
constants of the capillary glass on the energy grid of a run and the
reflectivity of the channel walls.

The table holds, for equally spaced energies, the linear attenuation
coefficient :math:`\mu` in cm\ :sup:`-1` and the combined atomic scattering
factor of the glass

.. math::

    f = \sum_i{\frac{(Z_i + f'_i) w_i}{A_i}},

where :math:`w_i` are the weight fractions and :math:`A_i` the atomic
weights of the constituent elements. These values are usually prepared by an
external atomic database and are read from a three-column text file.

.. autoclass:: polycap.backends.raycing.materials.AbsorptionTable()
   :members: __init__, get_refractive_decrement, get_fresnel_reflectivity,
             get_roughness_factor, get_reflectivity

.. autofunction:: read_absorption_table

"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"
__all__ = 'AbsorptionTable', 'read_absorption_table'

import numpy as np
from scipy.interpolate import interp1d

from .. import raycing
from .physconsts import PI, PI2, HC, AVOGADRO, R0, KROUGH

spl_kw = {'kind': 'cubic', 'bounds_error': True}


class AbsorptionTable(object):
    """
    :class:`AbsorptionTable` serves for getting the complex refractive
    decrement and the reflectivity of the capillary glass at the energies of
    the energy grid of a run.
    """

    def __init__(self, eStart, eFinal, deltaE, mu, scatf, rho, name=''):
        r"""
        *eStart, eFinal, deltaE*: float
            The energy grid in keV: *eStart* + i·*deltaE* for
            i = 0..nE-1, where nE = int((*eFinal* - *eStart*)/*deltaE*) + 1.

        *mu*: sequence of nE floats
            Linear attenuation coefficient in cm\ :sup:`-1`, non-negative.

        *scatf*: sequence of nE floats
            Combined atomic scattering factor (see the module docstring).

        *rho*: float
            Glass density in g/cm³.

        *name*: str
            User-specified name, used for diagnostics output.


        """
        if deltaE <= 0:
            raise ValueError('deltaE must be positive')
        if eStart <= 0 or eFinal < eStart:
            raise ValueError('invalid energy range [{0}, {1}]'.format(
                eStart, eFinal))
        if rho <= 0:
            raise ValueError('the density must be positive')
        self.name = name
        self.eStart = float(eStart)
        self.eFinal = float(eFinal)
        self.deltaE = float(deltaE)
        self.rho = float(rho)
        nE = int((self.eFinal - self.eStart) / self.deltaE) + 1
        self.energies = self.eStart + self.deltaE * np.arange(nE)
        self.mu = np.array(mu, dtype=np.float64).ravel()
        self.scatf = np.array(scatf, dtype=np.float64).ravel()
        for what in ('mu', 'scatf'):
            arr = getattr(self, what)
            if arr.size != nE:
                raise ValueError(
                    '{0} has {1} values but the energy grid has {2}'.format(
                        what, arr.size, nE))
            if not np.all(np.isfinite(arr)):
                raise ValueError('{0} is not finite'.format(what))
        if np.any(self.mu < 0):
            raise ValueError('negative attenuation coefficient')

        self.delta, self.beta = self.get_refractive_decrement()
        for arr in (self.energies, self.mu, self.scatf, self.delta,
                    self.beta):
            arr.flags.writeable = False

    @property
    def nE(self):
        return len(self.energies)

    def get_refractive_decrement(self):
        r"""
        Returns the real and imaginary parts of the complex refractive
        decrement :math:`n = 1 - \delta + i\beta` at the grid energies:

        .. math::

            \delta &= \left(\frac{hc}{E}\right)^2
            \frac{N_A r_0 \rho}{2\pi} f\\
            \beta &= \frac{hc}{4\pi}\frac{\mu}{E}
        """
        E = self.energies
        delta = (HC/E)**2 * AVOGADRO * R0 * self.rho / PI2 * self.scatf
        beta = HC / (4*PI) * self.mu / E
        return delta, beta

    def get_fresnel_reflectivity(self, alpha):
        r"""
        Calculates the Fresnel reflectivity at the grazing angle *alpha*
        (in rad) for all grid energies:

        .. math::

            R = \left|\frac{\alpha - \sqrt{\alpha^2 - 2(\delta - i\beta)}}
            {\alpha + \sqrt{\alpha^2 - 2(\delta - i\beta)}}\right|^2
        """
        root = np.sqrt(alpha**2 - 2*(self.delta - 1j*self.beta))
        return np.abs((alpha - root) / (alpha + root))**2

    def get_roughness_factor(self, alpha, roughness):
        r"""
        Returns the Gaussian (Debye-Waller like) damping of reflectivity
        :math:`\exp(-(k E \alpha \sigma)^2)` for the rms roughness *roughness*
        (:math:`\sigma`, in Å) at the grazing angle *alpha*.
        """
        return np.exp(-(KROUGH * self.energies * alpha * roughness)**2)

    def get_reflectivity(self, alpha, roughness=0):
        """Returns the reflectivity of a rough wall for all grid energies."""
        refl = self.get_fresnel_reflectivity(alpha)
        if roughness:
            refl = refl * self.get_roughness_factor(alpha, roughness)
        return refl


def read_absorption_table(fname, rho, eStart=None, eFinal=None, deltaE=None,
                          name=''):
    """
    Reads a text file of three columns: energy (keV), linear attenuation
    coefficient (cm⁻¹) and the combined scattering factor. Returns an
    :class:`AbsorptionTable`.

    If the energy grid *eStart*, *eFinal*, *deltaE* is given, the tabulated
    columns are interpolated onto it and the file energies may be spaced
    arbitrarily; the grid must lie within the tabulated range. Otherwise the
    energies of the file must be equally spaced and form the grid.
    """
    data = np.loadtxt(fname, ndmin=2)
    if data.shape[1] < 3:
        raise ValueError('{0}: expected 3 columns (E mu scatf)'.format(fname))
    E = data[:, 0]
    steps = np.diff(E)
    if np.any(steps <= 0):
        raise ValueError('{0}: the energies must increase'.format(fname))

    if deltaE is not None:
        if eStart is None or eFinal is None:
            raise ValueError('eStart, eFinal and deltaE must be given '
                             'together')
        if deltaE <= 0 or eFinal < eStart:
            raise ValueError('invalid energy grid {0}..{1} keV, step {2}'
                             .format(eStart, eFinal, deltaE))
        nE = int((eFinal - eStart) / deltaE) + 1
        grid = eStart + deltaE*np.arange(nE)
        tol = 1e-9 * (E[-1] - E[0])
        if len(E) < 2 or grid[0] < E[0] - tol or grid[-1] > E[-1] + tol:
            raise ValueError(
                '{0}: the energy grid {1}..{2} keV is outside of the '
                'tabulated range'.format(fname, grid[0], grid[-1]))
        kw = dict(spl_kw, kind='cubic' if len(E) > 3 else 'linear')
        grid = np.clip(grid, E[0], E[-1])
        mu = interp1d(E, data[:, 1], **kw)(grid)
        scatf = interp1d(E, data[:, 2], **kw)(grid)
        # cubic overshoot near absorption edges
        mu[mu < 0] = 0.
        table = AbsorptionTable(eStart, eFinal, deltaE, mu, scatf, rho,
                                name=name)
    else:
        if len(E) > 1:
            if not np.allclose(steps, steps[0]):
                raise ValueError('{0}: the energies must be equally spaced'
                                 .format(fname))
            deltaE = steps[0]
        else:
            deltaE = 1.
        # a fractional step may round the grid size down by one point
        eFinal = E[-1] + 0.5*deltaE if len(E) > 1 else E[-1]
        table = AbsorptionTable(E[0], eFinal, deltaE, data[:, 1], data[:, 2],
                                rho, name=name)
    if raycing._VERBOSITY_ > 10:
        print('read {0} energies from {1}'.format(table.nE, fname))
    return table
