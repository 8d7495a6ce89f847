# -*- coding: utf-8 -*-
"""
Module :mod:`runner` defines the entry point of polycap -
:func:`run_polycap`, functions for splitting the photon budget between
processes or threads, the reducer that accumulates their results and the
container of the final statistics.
"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"

import os
import time
import errno
import queue
import threading
import multiprocessing
import numpy as np

from . import multipro
from .backends import raycing
from .backends.raycing.oes import Polycapillary
from .backends.raycing.sources import Source
from .backends.raycing.screens import Screen
from .backends.raycing.photons import Tally, ImageSample

lowEntranceEfficiency = 1e-3
workerPollTime = 5.  # s, between the checks for dead workers


def retry_on_eintr(function, *args, **kw):
    """
    Suggested in:
    http://mail.python.org/pipermail/python-list/2011-February/1266462.html
    as a solution for `IOError: [Errno 4] Interrupted system call` in Linux.
    """
    while True:
        try:
            return function(*args, **kw)
        except IOError as e:
            if e.errno == errno.EINTR:
                continue
            else:
                raise


def make_seeds(n):
    """Returns *n* independent 64-bit seeds from the OS entropy source, one
    per worker."""
    return [int.from_bytes(os.urandom(8), 'little') for i in range(n)]


def split_budget(nPhotons, nWorkers):
    """Splits the histories 0..*nPhotons*-1 into *nWorkers* static
    non-overlapping ranges [iStart, iStop) that differ in size by at most
    one."""
    if nWorkers < 1:
        raise ValueError('the number of workers must be >= 1')
    base, extra = divmod(nPhotons, nWorkers)
    ranges = []
    iStart = 0
    for iw in range(nWorkers):
        iStop = iStart + base + (1 if iw < extra else 0)
        ranges.append((iStart, iStop))
        iStart = iStop
    return ranges


class Reducer(object):
    """
    Holds the totals of a run. :meth:`combine` is the only place where the
    totals are modified; it is entered once per worker slice, under a single
    lock.
    """
    def __init__(self, nE, nSamples, bins=raycing.nSpot, imageSize=0):
        self.tally = Tally(nE, nSamples, bins)
        self.images = ImageSample(imageSize)
        self.lock = threading.Lock()
        self.nCombined = 0

    def combine(self, tally, images=None):
        with self.lock:
            self.tally.combine(tally)
            if images is not None:
                self.images.combine(images)
            self.nCombined += 1


class Results(object):
    """
    Statistics of a run as passed to the report writers in
    :mod:`~polycap.plotter`:

    *energies*: the energy grid (keV),

    *transmission*: detected weight per entered photon times the open area
    fraction, per energy,

    *transmissionStarted*: detected weight per started photon,

    *entranceEfficiency*: entered per started photons,

    *leakFraction*: leaked weight per entered photon, per energy,

    *averageReflections*: reflections per history,

    *absorb*, *z*: weight absorbed at the lowest energy per profile sample,

    *spot*, *lspot*: detector-plane histograms of the detected and the
    leaked weight,

    *images*: :class:`~polycap.backends.raycing.photons.ImageSample`,

    the fate counters *nDetected*, *nAbsorbed*, *nLost*, the counters
    *nStarted*, *nEntered*, *nMissRetries*, *nHousingRetries* and the run
    time *elapsed* in s.
    """
    def __init__(self, polycap, source, screen, reducer, nPhotons, elapsed,
                 nWorkers=1):
        tally = reducer.tally
        self.name = polycap.name
        self.polycap = polycap
        self.source = source
        self.screen = screen
        self.nPhotons = nPhotons
        self.nWorkers = nWorkers
        self.elapsed = elapsed
        self.eta = polycap.eta
        self.energies = np.array(polycap.table.energies)
        self.z = np.array(polycap.profile.z)
        for counter in Tally.counters:
            setattr(self, counter, getattr(tally, counter))
        self.cnt = tally.cnt
        self.leak = tally.leak
        self.absorb = tally.absorb
        self.spot = tally.spot
        self.lspot = tally.lspot
        self.images = reducer.images

        with np.errstate(divide='ignore', invalid='ignore'):
            if self.nEntered > 0:
                self.transmission = tally.cnt / self.nEntered * self.eta
                self.leakFraction = tally.leak / self.nEntered
            else:
                self.transmission = np.zeros_like(tally.cnt)
                self.leakFraction = np.zeros_like(tally.leak)
            if self.nStarted > 0:
                self.transmissionStarted = tally.cnt / self.nStarted
                self.entranceEfficiency = self.nEntered / self.nStarted
            else:
                self.transmissionStarted = np.zeros_like(tally.cnt)
                self.entranceEfficiency = 0.
        self.averageReflections = tally.nRefl / float(nPhotons)

    @property
    def nHistories(self):
        return self.nDetected + self.nAbsorbed + self.nLost


def _count_workers(threads, processes):
    cpuCount = multiprocessing.cpu_count()
    if isinstance(processes, str):
        if processes.startswith('a'):  # all
            processes = cpuCount
        else:
            processes = max(cpuCount // 2, 1)
    if isinstance(threads, str):
        if threads.startswith('a'):  # all
            threads = cpuCount
        else:
            threads = max(cpuCount // 2, 1)
    if threads < 1 or processes < 1:
        raise ValueError('threads and processes must be >= 1')
    return threads, processes


def check_inputs(polycap, source, screen, nPhotons):
    """Validates the run before any worker is spawned."""
    if not isinstance(polycap, Polycapillary):
        raise ValueError('polycap must be a Polycapillary instance')
    if not isinstance(source, Source):
        raise ValueError('source must be a Source instance')
    if not isinstance(screen, Screen):
        raise ValueError('screen must be a Screen instance')
    if isinstance(nPhotons, bool) or \
            not isinstance(nPhotons, (int, np.integer)) or nPhotons < 1:
        raise ValueError('the photon budget must be a positive integer, '
                         'got {0}'.format(nPhotons))
    if polycap.profile.channelRadius[0] <= 0:
        raise ValueError('the channel radius at the entrance must be '
                         'positive')


def run_polycap(polycap, source, screen=None, nPhotons=10000, threads=1,
                processes=1, seeds=None, imageSize=raycing.imageSize):
    u"""
    This function is the entry point of polycap. It transports *nPhotons*
    photon histories through *polycap* and returns a :class:`Results`
    instance.

        *polycap*: instance of
            :class:`~polycap.backends.raycing.oes.Polycapillary`

        *source*: instance of
            :class:`~polycap.backends.raycing.sources.Source`

        *screen*: instance of
            :class:`~polycap.backends.raycing.screens.Screen` or None
            The detector plane. If None, a plane at the optic exit is used.

        *nPhotons*: int
            The photon budget: the number of photon histories. Each history
            ends as detected, absorbed or lost.

        *threads*, *processes*: int or str
            The number of parallel threads or processes, should not be
            greater than the number of cores in your computer, otherwise it
            gives no gain. The bigger of the two will be used as a signal for
            using either :mod:`threading` or :mod:`multiprocessing`. If they
            are equal, :mod:`threading` is used. If 'all' is given then the
            number returned by multiprocessing.cpu_count() will be used, any
            other string gives the half of it.

        *seeds*: sequence of int or None
            One seed per worker. If None, the seeds are taken from the OS
            entropy source. Runs with the same seeds and the same number of
            workers are reproducible.

        *imageSize*: int
            The number of the first histories recorded in
            :class:`~polycap.backends.raycing.photons.ImageSample`.


    """
    if screen is None:
        screen = Screen()
    check_inputs(polycap, source, screen, nPhotons)
    threads, processes = _count_workers(threads, processes)
    cpus = min(max(threads, processes), nPhotons)
    if seeds is None:
        seeds = make_seeds(cpus)
    elif not raycing.is_sequence(seeds) or len(seeds) != cpus:
        raise ValueError('one seed per worker is needed, got {0} for {1} '
                         'workers'.format(seeds, cpus))
    imageSize = max(min(imageSize, nPhotons), 0)
    screen.prepare(polycap.profile, source.dSource)

    if threads >= processes or cpus == 1:
        BackendOrProcess = multipro.BackendThread
        outQueue = queue.Queue()
    else:
        BackendOrProcess = multipro.BackendProcess
        outQueue = multiprocessing.Queue()

    reducer = Reducer(polycap.nE, polycap.nSamples, screen.bins, imageSize)
    tstart = time.time()
    if raycing._VERBOSITY_ > 0:
        print("The job is running... ")
    workers = [BackendOrProcess(polycap, source, screen, iStart, iStop,
                                seed, imageSize, outQueue, icpu)
               for icpu, ((iStart, iStop), seed) in enumerate(
                   zip(split_budget(nPhotons, cpus), seeds))]
    for worker in workers:
        worker.start()

    failures = []
    reported = set()
    suspects = set()
    while len(reported) < len(workers):
        try:
            idN, tally, images = retry_on_eintr(
                outQueue.get, timeout=workerPollTime)
        except queue.Empty:
            # a worker found dead on two consecutive polls has no result
            dead = set(worker.idN for worker in workers
                       if worker.idN not in reported and
                       not worker.is_alive())
            for idN in sorted(dead & suspects):
                failures.append((idN, 'exited without a result'))
                reported.add(idN)
            suspects = dead - reported
            continue
        reported.add(idN)
        if tally is None:
            failures.append((idN, images))
        elif not failures:
            reducer.combine(tally, images)
        if raycing._VERBOSITY_ > 10:
            raycing.statusPrint('{0} of {1} workers in {2:.1f} s'.format(
                len(reported), len(workers), time.time()-tstart))
    for worker in workers:
        worker.join(60.)
    if raycing._VERBOSITY_ > 10:
        print()

    if failures:
        for idN, tb in failures:
            raycing.colorPrint('worker {0} failed:\n{1}'.format(idN, tb),
                               'RED')
        raise RuntimeError('{0} of {1} workers failed, the run is discarded'
                           .format(len(failures), len(workers)))

    res = Results(polycap, source, screen, reducer, nPhotons,
                  time.time()-tstart, len(workers))
    if raycing._VERBOSITY_ > 0:
        raycing.colorPrint(
            'The photon transport of {0} histor{1} took {2:0.1f} s'.format(
                nPhotons, 'ies' if nPhotons > 1 else 'y', res.elapsed),
            fcolor="GREEN")
        if res.entranceEfficiency < lowEntranceEfficiency:
            raycing.colorPrint(
                'low entrance efficiency: {0:.2e}'.format(
                    res.entranceEfficiency), 'RED')
        if res.nLost > 0:
            raycing.colorPrint(
                '{0} histor{1} lost after {2} regenerations'.format(
                    res.nLost, 'ies' if res.nLost > 1 else 'y',
                    raycing.maxRetries), 'RED')
    return res
