# -*- coding: utf-8 -*-
__date__ = "18 Oct 2026"

PI = 3.1415926535897932384626433832795
PI2 = 6.283185307179586476925286766559
SQ3 = 1.7320508075688772935274463415059

HC = 1.23984193e-7  # h*c [keV*cm]
AVOGADRO = 6.022098e23  # atoms/mol
R0 = 2.8179403227e-13  # classical electron radius [cm]
# 4*pi/(h*c) in 1/(keV*A), the Debye-Waller exponent of a rough surface:
# (KROUGH * E[keV] * alpha * sigma[A])**2
KROUGH = 1.01358
