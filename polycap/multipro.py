# -*- coding: utf-8 -*-
"""
Module :mod:`multipro` defines :class:`BackendProcess` as a subclass of
``multiprocessing.Process`` and :class:`BackendThread` as a subclass of
``threading.Thread``. You can opt between deriving from
:mod:`multiprocessing` or :mod:`threading` by selecting the corresponding
parameter in :func:`~polycap.runner.run_polycap`. The multiprocessing is
normally faster because the photon transport is pure Python and holds the
GIL; the threads are cheaper to start and are convenient for small runs and
tests.

Each worker runs a static slice of photon histories with its own random
generator and its own accumulators and puts exactly one result into its
output queue: either (id, tally, images) or (id, None, traceback) if the
slice has failed.
"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"

import traceback
from multiprocessing import Process
from threading import Thread

from .backends import raycing
from .backends.raycing import run as rrun

_DEBUG = 1


class GenericProcessOrThread(object):
    """
    Defines a photon transport process or thread that can run in parallel
    execution over the histories [*iStart*, *iStop*).
    """
    def __init__(self, polycap, source, screen, iStart, iStop, seed,
                 imageSize, outQueue, idLoc):
        self.status = -1
        self.idN = idLoc
        self.polycap = polycap
        self.source = source
        self.screen = screen
        self.iStart = iStart
        self.iStop = iStop
        self.seed = seed
        self.imageSize = imageSize
        self.outQueue = outQueue
        self.status = 0

    def run(self):
        """
        Runs the slice of photon histories and puts the accumulators into
        the output queue.
        """
        if _DEBUG > 2:
            print('worker {0}: seed {1}'.format(self.idN, self.seed))
        try:
            tally, images = rrun.run_process(
                self.polycap, self.source, self.screen, self.iStart,
                self.iStop, self.seed, self.imageSize)
        except Exception:
            self.status = 1
            self.outQueue.put((self.idN, None, traceback.format_exc()))
            return
        if raycing._VERBOSITY_ > 10:
            print('worker {0} done: histories {1}..{2}, {3} detected'.format(
                self.idN, self.iStart, self.iStop-1, tally.nDetected))
        self.outQueue.put((self.idN, tally, images))


class BackendProcess(GenericProcessOrThread, Process):
    def __init__(self, polycap, source, screen, iStart, iStop, seed,
                 imageSize, outQueue, idLoc):
        Process.__init__(self)
        GenericProcessOrThread.__init__(self, polycap, source, screen, iStart,
                                        iStop, seed, imageSize, outQueue,
                                        idLoc)


class BackendThread(GenericProcessOrThread, Thread):
    def __init__(self, polycap, source, screen, iStart, iStop, seed,
                 imageSize, outQueue, idLoc):
        Thread.__init__(self)
        GenericProcessOrThread.__init__(self, polycap, source, screen, iStart,
                                        iStop, seed, imageSize, outQueue,
                                        idLoc)
