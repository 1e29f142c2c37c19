# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
Named column indices of the MATPOWER gen and gencost matrices.

    Pg = gen[3, PG]   # real power output of the 4th generator
    gen[:, PMIN] = 0

Only the first ten gen columns are used by the OPF formulation.
"""

# define the indices
GEN_BUS = 0  # bus number
PG = 1  # Pg, real power output (MW)
QG = 2  # Qg, reactive power output (MVAr)
QMAX = 3  # Qmax, maximum reactive power output at Pmin (MVAr)
QMIN = 4  # Qmin, minimum reactive power output at Pmin (MVAr)
VG = 5  # Vg, voltage magnitude setpoint (p.u.)
MBASE = 6  # mBase, total MVA base of this machine, defaults to baseMVA
GEN_STATUS = 7  # status, 1 - machine in service, 0 - machine out of service
PMAX = 8  # Pmax, maximum real power output (MW)
PMIN = 9  # Pmin, minimum real power output (MW)

N_GEN_COLS = 10

# gencost model types
PW_LINEAR = 1
POLYNOMIAL = 2

# gencost columns
MODEL = 0  # cost model, 1 - piecewise linear, 2 - polynomial
STARTUP = 1  # startup cost in US dollars
SHUTDOWN = 2  # shutdown cost in US dollars
NCOST = 3  # number of cost coefficients for polynomial cost function, or number of data points for pw linear
COST = 4  # parameters defining total cost function begin in this col
