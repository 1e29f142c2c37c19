# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
Named column indices of the MATPOWER bus matrix.

    Pd = bus[3, PD]     # real power demand of the 4th bus
    bus[:, VMIN] = 0.95

Columns 0-12 must be present in a case file; the rest are filled by an OPF run.
"""

# define bus types
PQ = 1
PV = 2
REF = 3
NONE = 4

# define the indices
BUS_I = 0  # bus number (1 to 29997)
BUS_TYPE = 1  # bus type (1 - PQ bus, 2 - PV bus, 3 - reference bus, 4 - isolated bus)
PD = 2  # Pd, real power demand (MW)
QD = 3  # Qd, reactive power demand (MVAr)
GS = 4  # Gs, shunt conductance (MW at V = 1.0 p.u.)
BS = 5  # Bs, shunt susceptance (MVAr at V = 1.0 p.u.)
BUS_AREA = 6  # area number, 1-100
VM = 7  # Vm, voltage magnitude (p.u.)
VA = 8  # Va, voltage angle (degrees)
BASE_KV = 9  # baseKV, base voltage (kV)
ZONE = 10  # zone, loss zone (1-999)
VMAX = 11  # maxVm, maximum voltage magnitude (p.u.)
VMIN = 12  # minVm, minimum voltage magnitude (p.u.)

# included in opf solution, not necessarily in input
# assume objective function has units, u
LAM_P = 13  # Lagrange multiplier on real power mismatch (u/MW)
LAM_Q = 14  # Lagrange multiplier on reactive power mismatch (u/MVAr)
MU_VMAX = 15  # Kuhn-Tucker multiplier on upper voltage limit (u/p.u.)
MU_VMIN = 16  # Kuhn-Tucker multiplier on lower voltage limit (u/p.u.)

N_BUS_COLS = 13
