# -*- coding: utf-8 -*-
r"""
Photons
-------

Module :mod:`~polycap.backends.raycing.photons` defines the state of one
photon history and the accumulators that a worker fills while it runs its
slice of histories.

A :class:`PhotonState` is owned by one worker and reused for all its
histories. Its weight vector has one entry per energy of the energy grid;
all entries start at 1 and are reduced at each wall reflection.

The *escape* attribute of a photon tells why the transport of the current
attempt has stopped:

=================  ==========================================================
ESCAPE_NONE        the photon is still inside the channel
ESCAPE_MISS        geometric miss (no valid wall hit, a non-positive grazing
                   cosine or a grazing cosine above 1 by round-off)
ESCAPE_ABSORBED    the weight at the lowest energy fell below the threshold
ESCAPE_OUTSIDE     the photon left the optic outside of its hexagonal housing
=================  ==========================================================

.. autoclass:: PhotonState()
   :members: __init__, reset

.. autoclass:: Tally()
   :members: __init__, combine

.. autoclass:: ImageSample()
   :members: __init__, record_source, record_screen, combine

"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"
__all__ = ('ESCAPE_NONE', 'ESCAPE_MISS', 'ESCAPE_ABSORBED', 'ESCAPE_OUTSIDE',
           'PhotonState', 'Tally', 'ImageSample')

import numpy as np
from .. import raycing

ESCAPE_NONE = 0
ESCAPE_MISS = 1
ESCAPE_ABSORBED = 2
ESCAPE_OUTSIDE = 3

escapeNames = {ESCAPE_NONE: 'none', ESCAPE_MISS: 'geometric miss',
               ESCAPE_ABSORBED: 'absorbed', ESCAPE_OUTSIDE: 'outside housing'}


class PhotonState(object):
    """Position, direction and per-energy weights of one photon."""

    def __init__(self, nE, nSamples=None):
        """
        *nE*: int
            Number of energies of the energy grid.

        *nSamples*: int or None
            Number of profile samples (segments + 1) for the lateral offsets
            of the selected channel axis.


        """
        self.nE = nE
        self.sx = None if nSamples is None else np.zeros(nSamples)
        self.sy = None if nSamples is None else np.zeros(nSamples)
        self.channel = 0, 0
        self.reset()

    def reset(self, nE=None):
        """Prepares the state for a new attempt of a photon history."""
        if nE is not None:
            self.nE = nE
        self.rh = np.zeros(3)
        self.v = np.array([0., 0., 1.])
        self.trajLength = 0.
        self.w = np.ones(self.nE)
        self.nRefl = 0
        self.segment = 0
        self.escape = ESCAPE_NONE

    def __repr__(self):
        return ('PhotonState(rh={0}, v={1}, nRefl={2}, segment={3}, '
                'escape={4})').format(self.rh, self.v, self.nRefl,
                                      self.segment,
                                      escapeNames.get(self.escape))


class Tally(object):
    """
    Per-worker accumulators. The arrays are summed over the histories of a
    worker and are then combined into the totals of a run.

    *cnt*: per-energy detected weight,
    *leak*: per-energy weight leaked through the channel walls,
    *absorb*: per-segment weight lost at the lowest energy,
    *spot*, *lspot*: 2D histograms of the detected and leaked weights in the
    detector plane (the first index is x).

    The counters are *nStarted* (photon attempts, including the regenerated
    ones), *nEntered* (photons that entered a channel mouth), *nRefl* (sum
    of reflection counts of the resolved histories), the history fates
    *nDetected*, *nAbsorbed*, *nLost* and the regeneration counters
    *nMissRetries* and *nHousingRetries*.
    """
    counters = ('nStarted', 'nEntered', 'nRefl', 'nDetected', 'nAbsorbed',
                'nLost', 'nMissRetries', 'nHousingRetries')

    def __init__(self, nE, nSamples, bins=raycing.nSpot):
        self.cnt = np.zeros(nE)
        self.leak = np.zeros(nE)
        self.absorb = np.zeros(nSamples)
        self.spot = np.zeros((bins, bins))
        self.lspot = np.zeros((bins, bins))
        for counter in self.counters:
            setattr(self, counter, 0)

    @property
    def nHistories(self):
        return self.nDetected + self.nAbsorbed + self.nLost

    def combine(self, other):
        """Adds the accumulators of *other* to self in place."""
        if self.spot.shape != other.spot.shape or\
                self.cnt.shape != other.cnt.shape or\
                self.absorb.shape != other.absorb.shape:
            raise ValueError('cannot combine tallies of different shapes')
        self.cnt += other.cnt
        self.leak += other.leak
        self.absorb += other.absorb
        self.spot += other.spot
        self.lspot += other.lspot
        for counter in self.counters:
            setattr(self, counter,
                    getattr(self, counter) + getattr(other, counter))
        return self


class ImageSample(object):
    """
    Source-plane and detector-plane records (*x*, *y*, *vx*, *vy*, *w*) of
    the first histories of a run, for diagnostic plots only. An instance
    covers the window of history indices [*offset*, *offset* + *size*).
    """
    fields = 'x', 'y', 'vx', 'vy', 'w'

    def __init__(self, size, offset=0):
        self.size = max(int(size), 0)
        self.offset = offset
        self.source = np.zeros((self.size, len(self.fields)))
        self.screen = np.zeros((self.size, len(self.fields)))

    @classmethod
    def window(cls, iStart, iStop, cap):
        """Returns the part of a sample of *cap* records that falls into the
        history range [*iStart*, *iStop*)."""
        return cls(min(iStop, cap) - iStart, offset=iStart)

    def _row(self, icount):
        i = icount - self.offset
        return i if 0 <= i < self.size else None

    def record_source(self, icount, x, y, vx, vy, w=1.):
        i = self._row(icount)
        if i is not None:
            self.source[i] = x, y, vx, vy, w

    def record_screen(self, icount, x, y, vx, vy, w):
        i = self._row(icount)
        if i is not None:
            self.screen[i] = x, y, vx, vy, w

    def combine(self, other):
        """Copies the window of *other* into self."""
        if other.size == 0:
            return self
        start = other.offset - self.offset
        stop = start + other.size
        if start < 0 or stop > self.size:
            raise ValueError('the image window does not fit into the sample')
        self.source[start:stop] = other.source
        self.screen[start:stop] = other.screen
        return self
