# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import scipy.sparse as sp
from ScopfEngine.Topology.admittance_matrices import compute_admittances
from ScopfEngine.Simulations.OPF.NumericalMethods.ac_opf_functions import (compile_ac_opf_data, eval_cost,
                                                                           eval_constraints, eval_hessian)
from ScopfEngine.Utils.NumericalMethods.autodiff import (calc_autodiff_jacobian, calc_autodiff_jacobian_f_obj,
                                                         calc_autodiff_hessian)


def random_point(data, seed=0):
    rng = np.random.default_rng(seed)
    nb = data.nbus
    ng = data.ngen
    Va = rng.uniform(-0.1, 0.1, nb)
    Vm = rng.uniform(0.95, 1.05, nb)
    Pg = rng.uniform(0.2, 1.0, ng)
    Qg = rng.uniform(-0.3, 0.3, ng)
    return np.r_[Va, Vm, Pg, Qg]


def constraints_vector(x, adm, data):
    G, H, _, _ = eval_constraints(x, adm, data, compute_jac=False)
    return np.r_[G, H]


def lagrangian_gradient(x, adm, data, lam_eq, lam_ineq, include_cost):
    _, fx, _ = eval_cost(x, data)
    _, _, Gx, Hx = eval_constraints(x, adm, data, compute_jac=True)
    grad = Gx.T @ lam_eq + Hx.T @ lam_ineq
    if include_cost:
        grad = grad + fx
    return grad


def test_cost_gradient(three_bus_case):
    data = compile_ac_opf_data(three_bus_case)
    x = random_point(data)

    f, fx, fxx = eval_cost(x, data)
    fx_num = calc_autodiff_jacobian_f_obj(lambda xx: eval_cost(xx, data)[0], x, h=1e-6)

    assert np.allclose(fx, fx_num, rtol=1e-5, atol=1e-3)
    assert np.allclose(fxx.diagonal()[6:8], 2 * np.array([0.01, 0.02]) * 100 ** 2)

    # f = sum(c2 P^2 + c1 P) with P in MW
    P = x[6:8] * 100
    assert np.isclose(f, 0.01 * P[0] ** 2 + 10 * P[0] + 0.02 * P[1] ** 2 + 12 * P[1])


def test_constraints_jacobian(three_bus_case):
    data = compile_ac_opf_data(three_bus_case)
    x = random_point(data, seed=1)

    for contingency in (None, 0, 2):
        adm = compute_admittances(three_bus_case.baseMVA, three_bus_case.bus, three_bus_case.branch, contingency)
        _, _, Gx, Hx = eval_constraints(x, adm, data, compute_jac=True)
        J = sp.vstack([Gx, Hx]).toarray()
        J_num = calc_autodiff_jacobian(constraints_vector, x, arg=(adm, data), h=1e-6).toarray()

        assert J.shape == (2 * data.nbus + 2 * data.nl2, data.n_opf)
        assert np.allclose(J, J_num, atol=1e-5)


def test_lagrangian_hessian(three_bus_case):
    data = compile_ac_opf_data(three_bus_case)
    x = random_point(data, seed=2)
    rng = np.random.default_rng(3)
    lam_eq = rng.uniform(-1, 1, 2 * data.nbus)
    lam_ineq = rng.uniform(0, 1, 2 * data.nl2)

    for contingency, include_cost in ((None, True), (1, False)):
        adm = compute_admittances(three_bus_case.baseMVA, three_bus_case.bus, three_bus_case.branch, contingency)
        Lxx = eval_hessian(x, adm, data, lam_eq, lam_ineq, sigma=1.0, include_cost=include_cost).toarray()
        Lxx_num = calc_autodiff_hessian(lagrangian_gradient, x,
                                        arg=(adm, data, lam_eq, lam_ineq, include_cost), h=1e-6).toarray()

        assert np.allclose(Lxx, Lxx.T, atol=1e-8)
        assert np.allclose(Lxx, Lxx_num, atol=1e-4)


def test_constraint_values_at_flat_start(three_bus_case):
    data = compile_ac_opf_data(three_bus_case)
    adm = compute_admittances(three_bus_case.baseMVA, three_bus_case.bus, three_bus_case.branch)
    x = np.r_[np.zeros(3), np.ones(3), np.zeros(2), np.zeros(2)]
    G, H, _, _ = eval_constraints(x, adm, data, compute_jac=False)

    # flat voltages: P mismatch is the load, Q mismatch is the load minus the line charging
    assert np.allclose(G[:3], [0.0, 0.2, 1.0])
    assert np.allclose(G[3:], [0.0, 0.05, 0.2] - 0.02 * np.ones(3))

    # every branch carries only charging current: |S| = b/2 at both ends
    assert np.allclose(H, 0.01 ** 2 - 2.5 ** 2)
