# -*- coding: utf-8 -*-
r"""
Run
---

Module :mod:`~polycap.backends.raycing.run` transports photons through the
polycapillary. One photon history is an explicit state machine:

.. code-block:: none

    GENERATE -> INTERSECT -> (REFLECT -> INTERSECT)* -> EXIT_CHECK
                    |                  |                   |
              GEOMETRIC_MISS        ABSORBED       DETECTED or
                    |                                OUTSIDE_HOUSING
                GENERATE                                  |
                                                      GENERATE

GENERATE includes the channel selection and the propagation to the channel
entrance; it is repeated until the photon lands inside the mouth of its
channel. GEOMETRIC_MISS and OUTSIDE_HOUSING regenerate the history from
GENERATE. DETECTED and ABSORBED are terminal. After *maxRetries*
regenerations the history ends as LOST, so that every history resolves to
exactly one of DETECTED, ABSORBED and LOST.

.. autoclass:: PhotonTracer()
   :members: __init__, start, intersect, step, count, trace, run_history

.. autofunction:: run_process

"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"
__all__ = 'PhotonTracer', 'run_process', 'make_rng'

import numpy as np
from .. import raycing
from .physconsts import PI
from .photons import (PhotonState, Tally, ImageSample, ESCAPE_NONE,
                      ESCAPE_MISS, ESCAPE_OUTSIDE)

GENERATE = 'generate'
INTERSECT = 'intersect'
EXIT_CHECK = 'exit check'
GEOMETRIC_MISS = 'geometric miss'
OUTSIDE_HOUSING = 'outside housing'
DETECTED = 'detected'
ABSORBED = 'absorbed'
LOST = 'lost'
terminalStates = DETECTED, ABSORBED, LOST


def make_rng(seed):
    """Returns a private random generator of a worker."""
    return np.random.Generator(np.random.MT19937(seed))


class PhotonTracer(object):
    """Transports photons through *polycap* from *source* to *screen*. The
    results go to the accumulators *tally* and, optionally, *images*."""

    def __init__(self, polycap, source, screen, rng, tally, images=None,
                 maxRetries=None):
        self.polycap = polycap
        self.profile = polycap.profile
        self.source = source
        self.screen = screen
        if screen.z is None:
            screen.prepare(polycap.profile, source.dSource)
        self.rng = rng
        self.tally = tally
        self.images = images
        self.maxRetries = raycing.maxRetries if maxRetries is None else \
            maxRetries
        self.zEntrance = source.dSource
        self.zExit = source.dSource + self.profile.length
        self.photon = PhotonState(polycap.nE, polycap.nSamples)

    def start(self, photon, icount=-1):
        """
        Generates a photon: selects a channel, emits the photon from the
        source and propagates it to the entrance plane. This is repeated
        until the photon lands inside the mouth of the selected channel
        (*nStarted* counts every attempt). The weights of the entered photon
        are multiplied by the solid angle factor. Returns False if no photon
        has entered in *maxRetries* attempts.
        """
        polycap, source, rng = self.polycap, self.source, self.rng
        rChannel = self.profile.channelRadius[0]
        for attempt in range(self.maxRetries + 1):
            photon.reset()
            photon.channel = polycap.select_channel(rng)
            polycap.channel_axis(*photon.channel, sx=photon.sx, sy=photon.sy)
            ra, rb = photon.sx[0], photon.sy[0]
            x, y = source.emit(rng)
            photon.v = source.aim(rng, x, y, ra, rb, rChannel)
            wGamma = source.solid_angle_weight(x, y, ra, rb)
            if self.images is not None:
                self.images.record_source(
                    icount, x, y, photon.v[0], photon.v[1])
            c = self.zEntrance / photon.v[2]
            photon.rh = np.array([x + c*photon.v[0], y + c*photon.v[1],
                                  self.zEntrance])
            photon.trajLength = c
            self.tally.nStarted += 1
            if (photon.rh[0]-ra)**2 + (photon.rh[1]-rb)**2 <= rChannel**2:
                break
        else:
            return False
        self.tally.nEntered += 1
        photon.w *= wGamma
        return True

    def intersect(self, photon):
        """Scans the segments of the channel starting from the segment of
        the last hit. Returns (point, normal, cosGrazing) of the first hit
        in global coordinates or None. The segment index of the photon is
        updated on a hit."""
        prf = self.profile
        sx, sy, z = photon.sx, photon.sy, prf.z
        rad = prf.channelRadius
        rh = photon.rh - [0, 0, self.zEntrance]
        for i in range(photon.segment, prf.nSegments):
            s0 = np.array([sx[i], sy[i], z[i]])
            s1 = np.array([sx[i+1], sy[i+1], z[i+1]])
            hit, point, normal, cosGrazing = self.polycap.intersect_segment(
                s0, s1, rad[i], rad[i+1], rh, photon.v)
            if hit:
                photon.segment = i
                point[2] += self.zEntrance
                return point, normal, cosGrazing
        return None

    def step(self, photon):
        """Makes one INTERSECT step and, on a hit, the REFLECT step. Returns
        the next state: INTERSECT, EXIT_CHECK, GEOMETRIC_MISS or
        ABSORBED."""
        hit = self.intersect(photon)
        if hit is None:
            if photon.v[2] <= 0:
                photon.escape = ESCAPE_MISS
                return GEOMETRIC_MISS
            return EXIT_CHECK
        point, normal, cosGrazing = hit
        if abs(cosGrazing) > 1:
            photon.escape = ESCAPE_MISS
            return GEOMETRIC_MISS
        d = point - photon.rh
        photon.trajLength += np.sqrt(np.dot(d, d))
        photon.rh = point

        alpha = PI/2 - np.arccos(cosGrazing)
        self.polycap.reflect(photon, alpha, self.tally, self.screen,
                             self.zEntrance)
        if photon.escape != ESCAPE_NONE:
            return ABSORBED
        photon.v = raycing.normalize(photon.v - 2*cosGrazing*normal)
        photon.nRefl += 1
        return INTERSECT

    def count(self, photon, icount=-1):
        """EXIT_CHECK: extrapolates the photon to the exit plane and tests
        it against the housing. An accepted photon adds its weights to
        *cnt* and its lowest-energy weight to the spot histogram."""
        v = photon.v
        cc = (self.zExit - photon.rh[2]) / v[2]
        xEnd = photon.rh[0] + cc*v[0]
        yEnd = photon.rh[1] + cc*v[1]
        if not self.polycap.is_inside_housing(xEnd, yEnd):
            photon.escape = ESCAPE_OUTSIDE
            return OUTSIDE_HOUSING
        tally = self.tally
        tally.cnt += photon.w
        point = self.screen.add(tally.spot, photon.rh, v, photon.w[0])
        d = (self.screen.z - photon.rh[2]) / v[2] * v
        photon.trajLength += np.sqrt(np.dot(d, d))
        if self.images is not None:
            self.images.record_screen(
                icount, point[0], point[1], v[0], v[1], photon.w[0])
        return DETECTED

    def trace(self, photon):
        """Transports an entered *photon* until EXIT_CHECK, GEOMETRIC_MISS
        or ABSORBED, which is returned."""
        state = INTERSECT
        while state == INTERSECT:
            state = self.step(photon)
        return state

    def run_history(self, icount=-1):
        """Runs one photon history to its final state and updates the
        counters of the tally. Returns the final state."""
        photon, tally = self.photon, self.tally
        nRegenerated = 0
        state = GENERATE
        while state not in terminalStates:
            if state == GENERATE:
                state = INTERSECT if self.start(photon, icount) else LOST
            elif state == INTERSECT:
                state = self.trace(photon)
            elif state == EXIT_CHECK:
                state = self.count(photon, icount)
            else:
                if state == GEOMETRIC_MISS:
                    tally.nMissRetries += 1
                elif state == OUTSIDE_HOUSING:
                    tally.nHousingRetries += 1
                else:
                    raise ValueError('unknown state {0}'.format(state))
                nRegenerated += 1
                state = GENERATE if nRegenerated <= self.maxRetries else \
                    LOST

        if state == DETECTED:
            tally.nDetected += 1
        elif state == ABSORBED:
            tally.nAbsorbed += 1
        else:
            tally.nLost += 1
        tally.nRefl += photon.nRefl
        return state


def run_process(polycap, source, screen, iStart, iStop, seed,
                imageSize=raycing.imageSize):
    """
    Runs the photon histories [*iStart*, *iStop*) of one worker with a
    private generator seeded by *seed* and private accumulators. Returns the
    tuple (tally, images).
    """
    tally = Tally(polycap.nE, polycap.nSamples, screen.bins)
    images = ImageSample.window(iStart, iStop, imageSize)
    tracer = PhotonTracer(polycap, source, screen, make_rng(seed), tally,
                          images)
    for icount in range(iStart, iStop):
        tracer.run_history(icount)
    return tally, images
