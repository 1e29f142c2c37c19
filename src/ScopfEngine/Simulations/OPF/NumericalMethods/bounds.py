# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import Tuple
import numpy as np
from ScopfEngine.basic_structures import Vec
from ScopfEngine.DataStructures.matpower_case import MatpowerCase
from ScopfEngine.Simulations.OPF.NumericalMethods.ac_opf_functions import AcOpfData
from ScopfEngine.Simulations.OPF.NumericalMethods.variable_layout import StandardLayout
import ScopfEngine.IO.matpower.matpower_bus_definitions as matpower_buses
import ScopfEngine.IO.matpower.matpower_gen_definitions as matpower_gen

# added to the upper bounds so that no variable is seen as fixed by the solver
UPPER_BOUND_EPSILON = 1e-10

# finite proxy of the infinite bounds
BOUND_INFINITY = 1e10


def get_opf_bounds(case: MatpowerCase, data: AcOpfData) -> Tuple[Vec, Vec]:
    """
    Box bounds of the OPF variables in the order [Va, Vm, Pg, Qg].
    The angles are free except the reference one, which is fixed to its case value
    :param case: internal MatpowerCase
    :param data: AcOpfData
    :return: x_min, x_max
    """
    nb = data.nbus
    baseMVA = case.baseMVA

    Va_max = np.full(nb, np.inf)
    Va_min = np.full(nb, -np.inf)
    va_ref = np.deg2rad(case.bus[data.ref_bus, matpower_buses.VA])
    Va_max[data.ref_bus] = va_ref
    Va_min[data.ref_bus] = va_ref

    x_min = np.r_[Va_min,
                  case.bus[:, matpower_buses.VMIN],
                  case.gen[:, matpower_gen.PMIN] / baseMVA,
                  case.gen[:, matpower_gen.QMIN] / baseMVA]

    x_max = np.r_[Va_max,
                  case.bus[:, matpower_buses.VMAX],
                  case.gen[:, matpower_gen.PMAX] / baseMVA,
                  case.gen[:, matpower_gen.QMAX] / baseMVA]

    return x_min, x_max


def assemble_bounds(opf_min: Vec, opf_max: Vec, layout: StandardLayout,
                    epsilon: float = UPPER_BOUND_EPSILON) -> Tuple[Vec, Vec]:
    """
    Full length bound vectors: the local bounds are repeated for every scenario and the
    shared ones appear once. Every upper bound but the reference angles gets epsilon added
    :param opf_min: lower bounds in the OPF order
    :param opf_max: upper bounds in the OPF order
    :param layout: variable layout
    :param epsilon: upper bound perturbation
    :return: x_min, x_max
    """
    x_min = layout.compose(opf_min)
    x_max = layout.compose(opf_max)

    ref = layout.get_ref_angle_positions()
    ref_value = x_max[ref].copy()
    x_max += epsilon
    x_max[ref] = ref_value

    return x_min, x_max


def interior_point_start(x_min: Vec, x_max: Vec, infinity: float = BOUND_INFINITY) -> Vec:
    """
    Starting point inside the bounds: the middle of the bounds, replacing the infinite ones by
    +-infinity, or one unit inside the bound when only one side is limited
    :param x_min: lower bounds
    :param x_max: upper bounds
    :param infinity: value used in place of the infinite bounds
    :return: x0
    """
    lb = np.maximum(x_min, -infinity)
    ub = np.minimum(x_max, infinity)
    x0 = (lb + ub) / 2.0

    lower_only = (x_min > -infinity) & (x_max >= infinity)
    upper_only = (x_min <= -infinity) & (x_max < infinity)
    x0[lower_only] = x_min[lower_only] + 1.0
    x0[upper_only] = x_max[upper_only] - 1.0

    return x0
