# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
Named column indices of the MATPOWER branch matrix.

    branch[3, BR_STATUS] = 0  # take branch 4 out of service

Columns 0-12 must be present in a case file (angle limits may be omitted).
A RATE_A of 0 means "unlimited" in MATPOWER; this engine asks for an explicit
rating instead, with inf standing for no limit.
"""

F_BUS = 0  # f, from bus number
T_BUS = 1  # t, to bus number
BR_R = 2  # r, resistance (p.u.)
BR_X = 3  # x, reactance (p.u.)
BR_B = 4  # b, total line charging susceptance (p.u.)
RATE_A = 5  # rateA, MVA rating A (long term rating)
RATE_B = 6  # rateB, MVA rating B (short term rating)
RATE_C = 7  # rateC, MVA rating C (emergency rating)
TAP = 8  # ratio, transformer off nominal turns ratio
SHIFT = 9  # angle, transformer phase shift angle (degrees)
BR_STATUS = 10  # initial branch status, 1 - in service, 0 - out of service
ANGMIN = 11  # minimum angle difference, angle(Vf) - angle(Vt) (degrees)
ANGMAX = 12  # maximum angle difference, angle(Vf) - angle(Vt) (degrees)

# included in power flow solution, not necessarily in input
PF = 13  # real power injected at "from" bus end (MW)
QF = 14  # reactive power injected at "from" bus end (MVAr)
PT = 15  # real power injected at "to" bus end (MW)
QT = 16  # reactive power injected at "to" bus end (MVAr)

# included in opf solution, not necessarily in input
MU_SF = 17  # Kuhn-Tucker multiplier on MVA limit at "from" bus (u/MVA)
MU_ST = 18  # Kuhn-Tucker multiplier on MVA limit at "to" bus (u/MVA)

N_BRANCH_COLS = 11
