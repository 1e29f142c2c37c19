# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from pathlib import Path
import numpy as np
import pytest
from ScopfEngine.DataStructures.matpower_case import MatpowerCase

ROOT_PATH = Path(__file__).parent


@pytest.fixture
def root_path():
    return ROOT_PATH


def make_three_bus_case() -> MatpowerCase:
    """
    Meshed 3 bus grid: reference generator at bus 1, PV generator at bus 2 and a load at bus 3.
    Any single branch outage keeps the grid connected
    """
    bus = np.array([
        # bus_i type Pd Qd Gs Bs area Vm Va baseKV zone Vmax Vmin
        [1, 3, 0, 0, 0, 0, 1, 1.0, 0, 230, 1, 1.1, 0.9],
        [2, 2, 20, 5, 0, 0, 1, 1.0, 0, 230, 1, 1.1, 0.9],
        [3, 1, 100, 20, 0, 0, 1, 1.0, 0, 230, 1, 1.1, 0.9],
    ], dtype=float)

    gen = np.array([
        # bus Pg Qg Qmax Qmin Vg mBase status Pmax Pmin
        [1, 60, 0, 150, -150, 1.0, 100, 1, 200, 0],
        [2, 60, 0, 150, -150, 1.0, 100, 1, 200, 0],
    ], dtype=float)

    branch = np.array([
        # fbus tbus r x b rateA rateB rateC ratio angle status angmin angmax
        [1, 2, 0.01, 0.05, 0.02, 250, 250, 250, 0, 0, 1, -360, 360],
        [2, 3, 0.01, 0.05, 0.02, 250, 250, 250, 0, 0, 1, -360, 360],
        [1, 3, 0.01, 0.05, 0.02, 250, 250, 250, 0, 0, 1, -360, 360],
    ], dtype=float)

    gencost = np.array([
        # model startup shutdown n c2 c1 c0
        [2, 0, 0, 3, 0.01, 10, 0],
        [2, 0, 0, 3, 0.02, 12, 0],
    ], dtype=float)

    return MatpowerCase(baseMVA=100.0, bus=bus, gen=gen, branch=branch, gencost=gencost, name='three_bus')


@pytest.fixture
def three_bus_case() -> MatpowerCase:
    return make_three_bus_case().to_internal()
