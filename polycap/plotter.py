# -*- coding: utf-8 -*-
u"""
Module :mod:`plotter` writes the results of a run into text files and draws
the transmission curves and the detector-plane spots with matplotlib.

.. tip::

    If you do not want to create plot windows (e.g. when you run polycap on
    a remote machine) but only want to save plots, use a non-interactive
    matplotlib backend such as Agg::

        matplotlib.use('agg')

    This must be done at the very top of your script, right after import
    matplotlib and before importing anything else.

The text outputs of :func:`save_results`, for the base name *base*:

=================  ===========================================================
*base*.out         the run parameters and the table: E, transmission,
                   transmission per started photon, entrance efficiency and
                   leak fraction
*base*.abs         z and the weight absorbed at the lowest energy
*base*_spot.dat    the histogram of the detected photons
*base*_lspot.dat   the histogram of the leaked photons
*base*_xy.dat      detector-plane records x, vx, y, vy, w of the first
                   histories
*base*_xys.dat     source-plane records of the same histories
=================  ===========================================================
"""
__author__ = "polycap developers"
__date__ = "18 Oct 2026"

import os
import numpy as np

import matplotlib as mpl
mpl.rcParams['axes.linewidth'] = 0.75
import matplotlib.pyplot as plt

from .backends import raycing

dpi = 100
epsHist = 1e-100  # keeps log scale finite on empty bins


def _write_histogram(fname, hist):
    nx, ny = hist.shape
    with open(fname, 'w') as f:
        f.write('{0}\t{1}\n'.format(nx, ny))
        # a row per y bin
        np.savetxt(f, hist.T, fmt='%f', delimiter='\t')


def _write_images(fname, records, results):
    with open(fname, 'w') as f:
        f.write('{0}\n'.format(len(records)))
        f.write('{0:f}\n'.format(results.energies[0]))
        f.write('{0:f}\n'.format(results.energies[-1]))
        f.write('{0:f}\n'.format(results.screen.dScreen))
        np.savetxt(f, records[:, [0, 2, 1, 3, 4]], fmt='%f', delimiter='\t')


def save_results(results, baseName):
    """
    Writes the text outputs (see the module docstring) of *results*, an
    instance of :class:`~polycap.runner.Results`. Returns the list of the
    written file names.
    """
    polycap, source = results.polycap, results.source
    dirName = os.path.dirname(baseName)
    if dirName and not os.path.exists(dirName):
        os.makedirs(dirName)
    outName = baseName + '.out'
    with open(outName, 'w') as f:
        f.write('Surface roughness [Angstrom]:\t {0:f}\n'.format(
            polycap.roughness))
        f.write('Source distance [cm]:\t\t {0:f}\n'.format(source.dSource))
        f.write('Screen distance [cm]:\t\t {0:f}\n'.format(
            results.screen.dScreen))
        f.write('Source diameter [cm]:\t\t {0:f}\n'.format(source.radius*2))
        f.write('Source divergence [rad]:\t {0:f}\t{1:f}\n'.format(
            source.sigX, source.sigY))
        f.write('Source shift [cm]:\t\t {0:f}\t{1:f}\n'.format(
            source.shiftX, source.shiftY))
        f.write('Number of channels:\t\t {0:5.0f}\n'.format(
            polycap.geometry.nChannels))
        f.write('Calculated capillary open area:\t {0:5.3f}\n'.format(
            results.eta))
        f.write('  E [keV]      I/I0\n')
        f.write('$DATA:\n')
        f.write('{0}\t{1}\n'.format(len(results.energies), 5))
        for row in zip(results.energies, results.transmission,
                       results.transmissionStarted,
                       np.full_like(results.energies,
                                    results.entranceEfficiency),
                       results.leakFraction):
            f.write('{0:8.2f}\t{1:10.9f}\t{2:10.9f}\t{3:10.9f}\t{4:10.9f}\n'
                    .format(*row))
        f.write('\nThe started photons: {0}\n'.format(results.nStarted))
        f.write('\nAverage number of reflections: {0:f}\n'.format(
            results.averageReflections))

    absName = baseName + '.abs'
    with open(absName, 'w') as f:
        f.write('$DATA:\n')
        f.write('{0}\t{1}\n'.format(len(results.z) - 1, 2))
        np.savetxt(f, np.column_stack((results.z, results.absorb)), fmt='%f',
                   delimiter='\t')

    names = [outName, absName]
    for suffix, hist in (('_spot.dat', results.spot),
                         ('_lspot.dat', results.lspot)):
        names.append(baseName + suffix)
        _write_histogram(names[-1], hist)
    for suffix, records in (('_xy.dat', results.images.screen),
                            ('_xys.dat', results.images.source)):
        names.append(baseName + suffix)
        _write_images(names[-1], records, results)
    if raycing._VERBOSITY_ > 10:
        print('saved {0}'.format(', '.join(names)))
    return names


def plot_transmission(results, saveName=None):
    """Plots the transmission and the leak fraction vs energy. Returns the
    figure."""
    fig = plt.figure(figsize=(6, 4), dpi=dpi)
    ax = fig.add_subplot(111)
    ax.plot(results.energies, results.transmission, 'o-', label='transmission')
    ax.plot(results.energies, results.leakFraction, 's--', label='leak')
    ax.set_xlabel('energy (keV)')
    ax.set_ylabel('fraction')
    ax.set_title(results.name if results.name else 'polycapillary')
    ax.legend(loc='best')
    if saveName is not None:
        fig.savefig(saveName, dpi=dpi)
    return fig


def plot_spots(results, saveName=None, log=False):
    """Plots the detector-plane images of the detected and the leaked
    photons. Returns the figure."""
    fig = plt.figure(figsize=(10, 4.5), dpi=dpi)
    dx = results.screen.dx
    half = results.spot.shape[0] // 2
    extent = np.array([-half, results.spot.shape[0]-half,
                       -half, results.spot.shape[1]-half]) * dx * 1e4
    for iax, (hist, title) in enumerate(
            ((results.spot, 'transmitted'), (results.lspot, 'leaked'))):
        ax = fig.add_subplot(1, 2, iax+1)
        data = np.log10(hist + epsHist) if log else hist
        ax.imshow(data.T, origin='lower', extent=extent, aspect='equal',
                  cmap='jet', interpolation='none')
        ax.set_xlabel(u'x (µm)')
        ax.set_ylabel(u'y (µm)')
        ax.set_title(title)
    if saveName is not None:
        fig.savefig(saveName, dpi=dpi)
    return fig
