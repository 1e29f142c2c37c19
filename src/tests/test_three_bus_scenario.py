# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import scipy.sparse as sp
from ScopfEngine.basic_structures import Logger
from ScopfEngine.enumerations import VariableRole
from ScopfEngine.Simulations.OPF.NumericalMethods.ac_opf_problem import AcOpfProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.scopf_problem import ScopfProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.ac_opf_functions import eval_cost
from ScopfEngine.Utils.NumericalMethods.autodiff import calc_autodiff_jacobian, calc_autodiff_jacobian_f_obj
import ScopfEngine.IO.matpower.matpower_bus_definitions as matpower_buses


def lagrangian_gradient(x, problem, lam):
    return problem.gradient(x) + problem.jacobian(x).T @ lam


def test_variable_and_constraint_count(three_bus_case):
    problem = ScopfProblem(three_bus_case, contingencies=[0])

    # 2 local blocks of (3 Va + 2 Vm + 2 Qg + 1 Pg) and 1 Vm + 1 Pg shared
    assert problem.n_scenarios == 2
    assert problem.n_x == 18
    assert problem.n_g == 2 * (2 * 3 + 2 * 3)
    assert len(problem.layout.get_shared_indices()) == 2


def test_objective_belongs_to_the_nominal_scenario(three_bus_case):
    problem = ScopfProblem(three_bus_case, contingencies=[0, 2])
    rng = np.random.default_rng(5)
    x = problem.get_x0() + rng.uniform(-0.1, 0.1, problem.n_x) * np.isfinite(problem.x_min)

    f, _, _ = eval_cost(x[problem.maps[0]], problem.data)
    assert np.isclose(problem.objective(x), f)

    grad = problem.gradient(x)
    nominal_pg = problem.maps[0][2 * 3:2 * 3 + 2]
    others = np.setdiff1d(np.arange(problem.n_x), nominal_pg)
    assert np.all(grad[others] == 0)
    assert np.all(grad[nominal_pg] != 0)

    # the contingency reference generator powers do not enter the cost
    for i in (1, 2):
        assert grad[problem.layout.get_role_indices(VariableRole.PgRef, i)[0]] == 0


def test_derivatives_of_the_full_problem(three_bus_case):
    problem = ScopfProblem(three_bus_case, contingencies=[0, 1])
    rng = np.random.default_rng(7)
    x = problem.get_x0() + rng.uniform(-0.1, 0.1, problem.n_x) * np.isfinite(problem.x_min)
    lam = rng.uniform(-1, 1, problem.n_g)

    grad_num = calc_autodiff_jacobian_f_obj(problem.objective, x, h=1e-6)
    assert np.allclose(problem.gradient(x), grad_num, rtol=1e-5, atol=1e-3)

    J_num = calc_autodiff_jacobian(problem.constraints, x, h=1e-6).toarray()
    assert np.allclose(problem.jacobian(x).toarray(), J_num, atol=1e-5)

    H_num = calc_autodiff_jacobian(lagrangian_gradient, x, arg=(problem, lam), h=1e-6).toarray()
    H = problem.hessian_full(x, 1.0, lam).toarray()
    assert np.allclose(H, H_num, atol=1e-3)


def test_contingency_scenarios_differ(three_bus_case):
    logger = Logger()
    problem = ScopfProblem(three_bus_case, contingencies=[0], logger=logger)

    assert problem.scenarios[0].is_nominal
    assert problem.scenarios[1].outaged_branch == 0
    dY = (problem.admittances[0].Ybus - problem.admittances[1].Ybus).toarray()
    assert np.abs(dY).max() > 1.0
    assert problem.get_islanding_contingencies() == []
    assert logger.warning_count() == 0


def test_single_scenario_matches_the_standard_problem(three_bus_case):
    """
    With no contingencies both formulations describe the same problem in a different variable order
    """
    scopf = ScopfProblem(three_bus_case)
    opf = AcOpfProblem(three_bus_case)
    assert scopf.n_x == opf.n_x
    assert scopf.n_g == opf.n_g

    rng = np.random.default_rng(11)
    x_opf = opf.get_x0() + rng.uniform(-0.1, 0.1, opf.n_x) * np.isfinite(opf.x_min)
    x_sc = np.empty(scopf.n_x)
    x_sc[scopf.maps[0]] = x_opf

    assert np.isclose(scopf.objective(x_sc), opf.objective(x_opf))
    assert np.allclose(scopf.constraints(x_sc), opf.constraints(x_opf))

    P = sp.csr_matrix((np.ones(opf.n_x), (scopf.maps[0], np.arange(opf.n_x))), shape=(scopf.n_x, opf.n_x))
    assert np.allclose((scopf.jacobian(x_sc) @ P).toarray(), opf.jacobian(x_opf).toarray())


def test_single_generator_at_the_reference_bus(three_bus_case):
    """
    One generator at the reference bus and no PV bus leave no shared variables;
    the contingency of the non radial branch keeps the grid connected
    """
    case = three_bus_case.copy()
    case.gen = case.gen[:1, :]
    case.gencost = case.gencost[:1, :]
    case.bus[1, matpower_buses.BUS_TYPE] = 1
    logger = Logger()
    problem = ScopfProblem(case, contingencies=[1], logger=logger)

    nb = 3
    ng = 1
    ns = 2
    assert problem.layout.npv == 0
    assert problem.n_x == ns * (nb + nb + ng + 1) + 0 + (ng - 1)
    assert len(problem.layout.get_shared_indices()) == 0

    x = problem.get_x0()
    grad = problem.gradient(x)
    nominal_pg = problem.maps[0][2 * nb]
    assert grad[nominal_pg] != 0
    assert np.count_nonzero(grad) == 1
    assert logger.warning_count() == 0
