# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
from ScopfEngine.enumerations import VariableRole
from ScopfEngine.Simulations.OPF.NumericalMethods.scopf_problem import ScopfProblem
import ScopfEngine.IO.matpower.matpower_gen_definitions as matpower_gen
from ScopfEngine.Simulations.OPF.NumericalMethods.bounds import (interior_point_start, UPPER_BOUND_EPSILON,
                                                                 BOUND_INFINITY)


def test_local_bounds_repeated(three_bus_case):
    problem = ScopfProblem(three_bus_case, contingencies=[0, 1, 2])
    ref_pos = problem.layout.get_ref_angle_positions()

    for i in range(problem.n_scenarios):
        idx = problem.maps[i]
        assert np.allclose(problem.x_min[idx], problem.opf_min)

        x_max = problem.x_max[idx]
        assert x_max[problem.data.ref_bus] == problem.opf_max[problem.data.ref_bus]

        others = np.setdiff1d(np.arange(problem.data.n_opf), [problem.data.ref_bus])
        assert np.allclose(x_max[others], problem.opf_max[others] + UPPER_BOUND_EPSILON, rtol=0, atol=1e-14)

    # the reference angles are fixed and the rest of the angles are free
    assert np.allclose(problem.x_min[ref_pos], 0.0)
    assert np.allclose(problem.x_max[ref_pos], 0.0)
    va = np.setdiff1d(problem.layout.get_angle_positions(), ref_pos)
    assert np.all(np.isinf(problem.x_min[va]))
    assert np.all(np.isinf(problem.x_max[va]))


def test_bounds_per_unit(three_bus_case):
    problem = ScopfProblem(three_bus_case)
    nb = 3
    assert np.allclose(problem.opf_min[nb:2 * nb], 0.9)
    assert np.allclose(problem.opf_max[nb:2 * nb], 1.1)
    assert np.allclose(problem.opf_max[2 * nb:2 * nb + 2], 2.0)
    assert np.allclose(problem.opf_min[2 * nb + 2:], -1.5)


def test_interior_point_start():
    x_min = np.array([0.0, -np.inf, 1.0, -np.inf, 2.0])
    x_max = np.array([2.0, 5.0, np.inf, np.inf, 2.0])
    x0 = interior_point_start(x_min, x_max)

    assert np.allclose(x0, [1.0, 4.0, 2.0, 0.0, 2.0])

    # the finite proxies make the bounds far away count as infinite
    x0 = interior_point_start(np.array([-BOUND_INFINITY]), np.array([3.0]))
    assert np.allclose(x0, [2.0])


def test_default_start_pins_angles(three_bus_case):
    problem = ScopfProblem(three_bus_case, contingencies=[1])
    x0 = problem.get_x0()

    assert np.allclose(x0[problem.layout.get_angle_positions()], 0.0)
    assert np.all(x0 >= problem.x_min)
    assert np.all(x0 <= problem.x_max)

    Va, Vm, Pg, Qg = problem.decode(x0)
    assert np.allclose(Vm, 1.0)
    assert np.allclose(Pg, 1.0)
    assert np.allclose(Qg, 0.0)


def test_start_from_case(three_bus_case):
    problem = ScopfProblem(three_bus_case, contingencies=[1])
    x0 = problem.get_x0_from_case()
    _, Vm, Pg, _ = problem.decode(x0)

    assert np.allclose(Vm, 1.0)
    assert np.allclose(Pg, 0.6)


def test_equal_bounds_get_the_epsilon(three_bus_case):
    case = three_bus_case.copy()
    case.gen[1, matpower_gen.PMIN] = 50.0
    case.gen[1, matpower_gen.PMAX] = 50.0
    problem = ScopfProblem(case, contingencies=[2])

    pg = problem.layout.get_role_indices(VariableRole.PgNonRef)[0]
    assert problem.x_min[pg] == 0.5
    assert problem.x_max[pg] > problem.x_min[pg]
    assert np.isclose(problem.x_max[pg] - problem.x_min[pg], UPPER_BOUND_EPSILON, rtol=1e-5, atol=0)

    # only the reference angles stay fixed
    fixed = np.flatnonzero(problem.x_min == problem.x_max)
    assert np.array_equal(fixed, problem.layout.get_ref_angle_positions())
