# -*- coding: utf-8 -*-
u"""Package polycap is a Monte-Carlo simulator of x-ray photon transport
through polycapillary optics. It predicts the transmission efficiency, the
focal spot shape and the spectrum of the radiation leaked through the channel
walls as functions of photon energy.

Features of polycap
-------------------

* *Channel geometry*. The optic is a bundle of hexagonally packed tapered
  channels. The profiles can be conical, paraboloidal, ellipsoidal or read
  from profile, axis and external shape files.

* *Physics*. Scalar Fresnel reflectivity with a Gaussian roughness
  correction, computed per energy from the optical constants of the glass.
  The intensity lost at each reflection is attenuated along the remaining
  path and accumulated as leak.

* *Statistics*. Every photon history carries a weight per energy, so a
  single run gives the whole transmission curve. Photon histories are
  distributed over threads or processes, each with its own random stream.

Usage
-----

.. code-block:: python

    from polycap import runner
    from polycap.backends.raycing import profiles, materials, oes, sources

    profile = profiles.conical(9.1, (0.2, 0.02), (0.0002, 0.00002))
    table = materials.read_absorption_table('glass.txt', rho=2.23)
    optic = oes.Polycapillary(profile, table, nChannels=200000,
                              roughness=5.)
    source = sources.Source(dSource=2., radius=0.005)
    results = runner.run_polycap(optic, source, nPhotons=100000,
                                 processes='all')

"""

# ========Convention: note the difference from PEP8 for variables!=============
# Naming:
#   * classes MixedUpperCase
#   * varables lowerUpper _or_ lower
#   * functions and methods underscore_separated _or_ lower
# =============================================================================

from .version import __versioninfo__, __version__, __date__
__module__ = "polycap"
__author__ = "polycap developers"
__license__ = "MIT license"
