# -*- coding: utf-8 -*-
import os
import sys
import colorama

_VERBOSITY_ = 10   # [0-100] Regulates the level of diagnostics printout

colors = 'BLACK', 'RED', 'GREEN', 'YELLOW', 'BLUE', 'MAGENTA', 'CYAN', \
    'WHITE', 'RESET'

colorama.init(autoreset=True)


def colorPrint(s, fcolor=None, bcolor=None):
    style = getattr(colorama.Fore, fcolor) if fcolor in colors else \
        colorama.Fore.RESET
    style += getattr(colorama.Back, bcolor) if bcolor in colors else \
        colorama.Back.RESET
    print('{0}{1}'.format(style, s))


def is_sequence(arg):
    """Checks whether *arg* is a sequence."""
    result = (not hasattr(arg, "strip") and hasattr(arg, "__getitem__") or
              hasattr(arg, "__iter__"))
    if result:
        try:
            arg[0]
        except IndexError:
            result = False
        if result:
            result = not isinstance(arg, (str, bytes))
    return result


def statusPrint(msg):
    """Overwrites the current console line with *msg* (used for the job
    progress)."""
    if os.name == 'posix':
        sys.stdout.write("\r\x1b[K " + msg)
    else:
        sys.stdout.write("\r  " + msg + ' ')
    sys.stdout.flush()
