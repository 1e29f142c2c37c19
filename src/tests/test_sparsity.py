# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import os
import numpy as np
import pytest
import scipy.sparse as sp
from ScopfEngine.api import open_file
from ScopfEngine.exceptions import SparsityPatternError
from ScopfEngine.Simulations.OPF.NumericalMethods.scopf_problem import ScopfProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.sparsity import SparsityPattern, jacobian_opf_structure


def random_state(problem: ScopfProblem, seed: int):
    rng = np.random.default_rng(seed)
    x = problem.get_x0()
    x[problem.layout.get_angle_positions()] = rng.uniform(-0.2, 0.2, len(problem.layout.get_angle_positions()))
    x[problem.layout.get_ref_angle_positions()] = 0.0
    x += rng.uniform(-0.05, 0.05, problem.n_x) * (np.isfinite(problem.x_min) & np.isfinite(problem.x_max))
    lam = rng.uniform(-1, 1, problem.n_g)
    return x, lam


def test_pattern_positions():
    pattern = SparsityPattern(rows=np.array([2, 0, 1, 0, 2]), cols=np.array([1, 0, 2, 0, 0]), shape=(3, 3),
                              name='test')

    assert pattern.nnz == 4
    assert np.array_equal(pattern.rows, [0, 1, 2, 2])
    assert np.array_equal(pattern.cols, [0, 2, 0, 1])
    assert pattern.contains(np.array([2]), np.array([1]))
    assert not pattern.contains(np.array([1]), np.array([1]))

    data = pattern.scatter(np.array([2, 2, 0, 1]), np.array([1, 1, 0, 1]), np.array([1.0, 2.0, 5.0, 0.0]))
    assert np.allclose(data, [5.0, 0.0, 0.0, 3.0])

    M = pattern.to_csr(data)
    assert M.nnz == 4
    assert M[2, 1] == 3.0


def test_pattern_rejects_entries_outside():
    pattern = SparsityPattern(rows=np.array([0]), cols=np.array([0]), shape=(2, 2), name='test')

    with pytest.raises(SparsityPatternError):
        pattern.scatter(np.array([1]), np.array([1]), np.array([1.0]))

    # it is a programming defect, not a runtime condition
    with pytest.raises(AssertionError):
        pattern.positions(np.array([0, 1]), np.array([1, 0]))


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_three_bus_structures_contain_the_values(three_bus_case, seed):
    problem = ScopfProblem(three_bus_case, contingencies=[0, 1, 2])
    x, lam = random_state(problem, seed)

    rows, cols, vals = problem.jacobian_triplets(x)
    nz = vals != 0
    assert problem.jac_pattern.contains(rows[nz], cols[nz])

    J = problem.jacobian(x)
    assert J.shape == (problem.n_g, problem.n_x)
    assert J.nnz == problem.jac_pattern.nnz

    H = problem.hessian(x, 1.0, lam)
    assert H.nnz == problem.hess_pattern.nnz
    assert sp.triu(H, k=1).nnz == 0

    Hf = problem.hessian_full(x, 1.0, lam).toarray()
    assert np.allclose(Hf, Hf.T, atol=1e-10)
    assert np.allclose(np.tril(Hf), H.toarray(), atol=1e-10)


def test_case9_structures_contain_the_values(root_path):
    case = open_file(os.path.join(root_path, 'data', 'case9.m'))
    problem = ScopfProblem(case, contingencies=[1, 2, 4, 5, 7, 8])
    x, lam = random_state(problem, 10)

    rows, cols, vals = problem.jacobian_triplets(x)
    nz = vals != 0
    assert problem.jac_pattern.contains(rows[nz], cols[nz])

    rows, cols, vals = problem.hessian_triplets(x, 0.5, lam)
    lower = (rows >= cols) & (vals != 0)
    assert problem.hess_pattern.contains(rows[lower], cols[lower])

    rs, cs = problem.hessian_structure()
    assert np.all(rs >= cs)
    assert len(problem.jacobian_structure()[0]) == problem.jac_pattern.nnz


def test_linear_rows_in_the_pattern(three_bus_case):
    base = ScopfProblem(three_bus_case, contingencies=[0])
    A = sp.csr_matrix((np.ones(2), ([0, 0], [0, base.n_x - 1])), shape=(1, base.n_x))
    problem = ScopfProblem(three_bus_case, contingencies=[0], A=A, l=np.array([-1.0]), u=np.array([1.0]))

    assert problem.n_g == base.n_g + 1
    assert problem.jac_pattern.nnz == base.jac_pattern.nnz + 2

    x = problem.get_x0()
    g = problem.constraints(x)
    assert np.isclose(g[-1], x[0] + x[-1])

    J = problem.jacobian(x).toarray()
    assert np.allclose(J[-1], A.toarray()[0])
    assert problem.g_min[-1] == -1.0
    assert problem.g_max[-1] == 1.0


def test_scenario_jacobian_structure_blocks(three_bus_case):
    problem = ScopfProblem(three_bus_case, contingencies=[0])
    conn = problem.connectivity[1]
    J = jacobian_opf_structure(conn).toarray()
    nb = conn.nbus
    ng = conn.Cg.shape[1]
    nl2 = conn.Cl2.shape[0]

    assert J.shape == (2 * nb + 2 * nl2, 2 * nb + 2 * ng)

    # flow limit rows depend on the voltages only
    assert np.all(J[2 * nb:, 2 * nb:] == 0)
    assert np.array_equal(J[2 * nb:2 * nb + nl2, :nb], conn.Cl2.toarray())
    assert np.array_equal(J[2 * nb + nl2:, nb:2 * nb], conn.Cl2.toarray())

    # the outaged branch keeps an empty row
    assert np.all(J[2 * nb, :] == 0)

    assert problem.jac_pattern.shape == (problem.n_g, problem.n_x)
