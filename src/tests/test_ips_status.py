# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import pytest
import scipy.sparse as sp
from ScopfEngine.basic_structures import Logger
from ScopfEngine.enumerations import IpsStatus, SparseSolver
from ScopfEngine.exceptions import ConfigurationError
from ScopfEngine.Simulations.OPF.opf_options import ScopfOptions
from ScopfEngine.Simulations.OPF.NumericalMethods.nlp_problem import NlpProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.nlp_solver import solve_nlp, IpsAdapter
from ScopfEngine.Utils.NumericalMethods.ips import IpsSolution


class SmallQp(NlpProblem):
    """
    min x0^2 + x1^2  s.t.  x0 + x1 = 1,  0.7 <= x0 <= 10,  x1 <= 5
    """

    def __init__(self):
        NlpProblem.__init__(self)
        self.x_min = np.array([0.7, -np.inf])
        self.x_max = np.array([10.0, 5.0])
        self.g_min = np.array([1.0])
        self.g_max = np.array([1.0])

    def objective(self, x):
        return x[0] ** 2 + x[1] ** 2

    def gradient(self, x):
        return 2.0 * x

    def constraints(self, x):
        return np.array([x[0] + x[1]])

    def jacobian(self, x):
        return sp.csr_matrix(np.array([[1.0, 1.0]]))

    def hessian(self, x, sigma, lam):
        return sp.csr_matrix(2.0 * sigma * np.eye(2))

    def jacobian_structure(self):
        return np.array([0, 0]), np.array([0, 1])

    def hessian_structure(self):
        return np.array([0, 1]), np.array([0, 1])

    def get_x0(self):
        return np.array([2.0, 0.0])


def test_status_success():
    assert IpsStatus.Optimal.is_success()
    assert IpsStatus.Acceptable.is_success()
    assert not IpsStatus.MaximumIterationsExceeded.is_success()
    assert not IpsStatus.NumericalError.is_success()
    assert IpsStatus.NumericalError.value == -13


def test_adapter_split():
    adapter = IpsAdapter(SmallQp())

    assert np.array_equal(adapter.eq_c, [0])
    assert len(adapter.up_c) == 0
    assert len(adapter.lo_c) == 0
    assert np.array_equal(adapter.up_x, [0, 1])
    assert np.array_equal(adapter.lo_x, [0])
    assert adapter.n_eq == 1
    assert adapter.n_ineq == 3

    ret = adapter(np.array([1.0, 1.0]), np.ones(3), np.ones(1), True, True)
    assert np.allclose(ret.G, [1.0])
    assert np.allclose(ret.H, [-9.0, -4.0, -0.3])
    assert ret.Gx.shape == (1, 2)
    assert ret.Hx.shape == (3, 2)
    assert np.allclose(ret.Lxx.toarray(), 2 * np.eye(2))


def test_small_qp():
    logger = Logger()
    sol = solve_nlp(SmallQp(), options=ScopfOptions(ips_tolerance=1e-8), logger=logger)

    assert sol.success
    assert sol.status == IpsStatus.Optimal
    assert np.allclose(sol.x, [0.7, 0.3], atol=1e-6)
    assert np.isclose(sol.objective, 0.58, atol=1e-6)

    # x1 sets the price of the equality and x0 sits at its lower bound
    assert np.isclose(sol.constraint_multipliers[0], -0.6, atol=1e-5)
    assert np.isclose(sol.lower_bound_multipliers[0], 0.8, atol=1e-5)
    assert np.allclose(sol.upper_bound_multipliers, 0.0, atol=1e-5)
    assert logger.error_count() == 0


def test_iteration_limit():
    logger = Logger()
    options = ScopfOptions(ips_tolerance=1e-12, ips_acceptable_tolerance=1e-12, ips_iterations=1)
    sol = solve_nlp(SmallQp(), options=options, logger=logger)

    assert not sol.success
    assert sol.status == IpsStatus.MaximumIterationsExceeded
    assert sol.iterations == 1
    assert logger.error_count() == 1


def test_options_registry():
    options = ScopfOptions()
    options.set('linear_solver', 'UMFPACK')
    options.set('ips_iterations', '50')
    options.set('ips_step_control', 'true')

    assert options.linear_solver == SparseSolver.UMFPACK
    assert options.ips_iterations == 50
    assert options.ips_step_control

    data = options.to_dict()
    assert data['linear_solver'] == 'UMFPACK'
    assert data['ips_tolerance'] == 1e-6

    other = ScopfOptions()
    other.parse_dict(data)
    assert other.to_dict() == data

    with pytest.raises(ConfigurationError):
        options.set('not_an_option', 1)

    with pytest.raises(ConfigurationError):
        options.set('linear_solver', 'Mumps')

    with pytest.raises(ConfigurationError):
        ScopfOptions(ips_tolerance=1e-3, ips_acceptable_tolerance=1e-4).check()


def test_plot_error_evolution():
    matplotlib = pytest.importorskip("matplotlib")
    matplotlib.use("Agg")
    from matplotlib import pyplot as plt

    sol = solve_nlp(SmallQp(), options=ScopfOptions(ips_tolerance=1e-8))
    ips_sol = IpsSolution(x=sol.x, f=sol.objective, error=sol.error, gamma=0.0,
                          lam=sol.constraint_multipliers, mu=np.zeros(3), z=np.zeros(3),
                          status=sol.status, iterations=sol.iterations,
                          error_evolution=sol.error_evolution, wall_time=sol.wall_time)
    ips_sol.plot_error()

    ax = plt.gca()
    assert ax.get_yscale() == 'log'
    assert len(ax.lines[0].get_xdata()) == sol.iterations + 1
    plt.close('all')
