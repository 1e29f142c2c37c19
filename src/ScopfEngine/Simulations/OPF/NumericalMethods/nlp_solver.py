# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
Bridge between the bounded NLP form (g_min <= g(x) <= g_max, x_min <= x <= x_max)
and the interior point solver form (G(x) = 0, H(x) <= 0).
"""
from dataclasses import dataclass
from typing import Union
import numpy as np
import scipy.sparse as sp
from ScopfEngine.basic_structures import Vec, IntVec, CscMat, Logger
from ScopfEngine.enumerations import IpsStatus
from ScopfEngine.exceptions import ConfigurationError
from ScopfEngine.Simulations.OPF.opf_options import ScopfOptions
from ScopfEngine.Simulations.OPF.NumericalMethods.nlp_problem import NlpProblem
from ScopfEngine.Utils.NumericalMethods.ips import interior_point_solver, IpsFunctionReturn, IpsSolution


@dataclass
class NlpSolution:
    """
    Solution of a bounded NLP
    """
    x: Vec
    objective: float
    success: bool
    status: IpsStatus
    iterations: int
    wall_time: float
    error: float
    g: Vec  # constraint values at x
    constraint_multipliers: Vec  # one per row of g
    lower_bound_multipliers: Vec  # one per variable
    upper_bound_multipliers: Vec  # one per variable
    error_evolution: Vec


def selector(idx: IntVec, n: int) -> CscMat:
    """
    Rows of the identity matrix
    :param idx: selected positions
    :param n: size
    :return: (len(idx), n) matrix
    """
    return sp.csc_matrix((np.ones(len(idx)), (np.arange(len(idx)), idx)), shape=(len(idx), n))


class IpsAdapter:
    """
    Evaluates an NlpProblem in the form expected by interior_point_solver.

    Equalities: the constraint rows with g_min == g_max and the fixed variables.
    Inequalities: the finite sides of the remaining constraint rows and variable bounds.
    """

    def __init__(self, problem: NlpProblem, infinity: float = 1e10):
        """

        :param problem: NlpProblem
        :param infinity: bounds with a magnitude at least this large are ignored
        """
        self.problem = problem

        g_lo = problem.g_min > -infinity
        g_hi = problem.g_max < infinity
        g_eq = g_lo & g_hi & (problem.g_min == problem.g_max)
        self.eq_c = np.flatnonzero(g_eq)
        self.up_c = np.flatnonzero(g_hi & ~g_eq)
        self.lo_c = np.flatnonzero(g_lo & ~g_eq)

        x_lo = problem.x_min > -infinity
        x_hi = problem.x_max < infinity
        x_fix = x_lo & x_hi & (problem.x_min == problem.x_max)
        self.fix_x = np.flatnonzero(x_fix)
        self.up_x = np.flatnonzero(x_hi & ~x_fix)
        self.lo_x = np.flatnonzero(x_lo & ~x_fix)

        n = problem.n_x
        self.S_fix = selector(self.fix_x, n)
        self.S_up = selector(self.up_x, n)
        self.S_lo = selector(self.lo_x, n)

        self.n_eq = len(self.eq_c) + len(self.fix_x)
        self.n_ineq = len(self.up_c) + len(self.lo_c) + len(self.up_x) + len(self.lo_x)

    def constraint_multipliers(self, lam: Vec, mu: Vec) -> Vec:
        """
        Multipliers of the rows of g from the solver multipliers.
        An upper side adds its multiplier and a lower side subtracts it
        :param lam: equality multipliers
        :param mu: inequality multipliers
        :return: vector of size n_g
        """
        n_up = len(self.up_c)
        n_lo = len(self.lo_c)
        lam_g = np.zeros(self.problem.n_g)
        lam_g[self.eq_c] = lam[:len(self.eq_c)]
        lam_g[self.up_c] += mu[:n_up]
        lam_g[self.lo_c] -= mu[n_up:n_up + n_lo]
        return lam_g

    def bound_multipliers(self, lam: Vec, mu: Vec):
        """
        Multipliers of the variable bounds
        :param lam: equality multipliers
        :param mu: inequality multipliers
        :return: lower bound multipliers, upper bound multipliers
        """
        n = self.problem.n_x
        a = len(self.up_c) + len(self.lo_c)
        b = a + len(self.up_x)
        z_up = np.zeros(n)
        z_lo = np.zeros(n)
        z_up[self.up_x] = mu[a:b]
        z_lo[self.lo_x] = mu[b:]

        lam_fix = lam[len(self.eq_c):]
        z_up[self.fix_x] = np.maximum(lam_fix, 0.0)
        z_lo[self.fix_x] = np.maximum(-lam_fix, 0.0)
        return z_lo, z_up

    def __call__(self, x: Vec, mu: Union[Vec, None], lam: Union[Vec, None],
                 compute_jac: bool, compute_hess: bool) -> IpsFunctionReturn:
        p = self.problem
        f = p.objective(x)
        fx = p.gradient(x)
        c = p.constraints(x)

        G = np.r_[c[self.eq_c] - p.g_min[self.eq_c],
                  x[self.fix_x] - p.x_min[self.fix_x]]

        H = np.r_[c[self.up_c] - p.g_max[self.up_c],
                  p.g_min[self.lo_c] - c[self.lo_c],
                  x[self.up_x] - p.x_max[self.up_x],
                  p.x_min[self.lo_x] - x[self.lo_x]]

        if compute_jac:
            J = p.jacobian(x).tocsr()
            Gx = sp.vstack([J[self.eq_c, :], self.S_fix], format='csc')
            Hx = sp.vstack([J[self.up_c, :], -J[self.lo_c, :], self.S_up, -self.S_lo], format='csc')
        else:
            Gx = None
            Hx = None

        if compute_hess:
            lam_g = self.constraint_multipliers(lam, mu)
            L = p.hessian(x, 1.0, lam_g).tocsc()
            Lxx = (L + L.T - sp.diags(L.diagonal())).tocsc()
        else:
            Lxx = None

        return IpsFunctionReturn(f=f, G=G, H=H, fx=fx, Gx=Gx, Hx=Hx, Lxx=Lxx)


def solve_nlp(problem: NlpProblem,
              x0: Union[Vec, None] = None,
              options: Union[ScopfOptions, None] = None,
              logger: Logger = Logger()) -> NlpSolution:
    """
    Solve a bounded NLP with the interior point solver
    :param problem: NlpProblem
    :param x0: starting point (problem.get_x0() if None)
    :param options: ScopfOptions
    :param logger: Logger
    :return: NlpSolution
    """
    if options is None:
        options = ScopfOptions()

    if x0 is None:
        x0 = problem.get_x0()
    else:
        x0 = np.array(x0, dtype=float)
        if len(x0) != problem.n_x:
            raise ConfigurationError(f"The starting point has {len(x0)} values, expected {problem.n_x}")

    if not np.all(np.isfinite(x0)):
        raise ConfigurationError("The starting point has non finite values")

    adapter = IpsAdapter(problem, infinity=options.bound_infinity)

    sol: IpsSolution = interior_point_solver(x0=x0,
                                             n_x=problem.n_x,
                                             n_eq=adapter.n_eq,
                                             n_ineq=adapter.n_ineq,
                                             func=adapter,
                                             max_iter=options.ips_iterations,
                                             tol=options.ips_tolerance,
                                             acceptable_tol=options.ips_acceptable_tolerance,
                                             pf_init=options.ips_init_with_pf,
                                             trust=options.ips_trust_radius,
                                             verbose=options.verbose,
                                             step_control=options.ips_step_control,
                                             linear_solver=options.linear_solver)

    z_lo, z_up = adapter.bound_multipliers(sol.lam, sol.mu)

    if sol.status.is_success():
        logger.add_info('Interior point solver finished', value=str(sol.status), device_property='status')
    else:
        logger.add_error('Interior point solver did not converge', value=sol.error,
                         expected_value=options.ips_tolerance, device_property=str(sol.status))

    return NlpSolution(x=sol.x,
                       objective=sol.f,
                       success=sol.status.is_success(),
                       status=sol.status,
                       iterations=sol.iterations,
                       wall_time=sol.wall_time,
                       error=sol.error,
                       g=problem.constraints(sol.x),
                       constraint_multipliers=adapter.constraint_multipliers(sol.lam, sol.mu),
                       lower_bound_multipliers=z_lo,
                       upper_bound_multipliers=z_up,
                       error_evolution=sol.error_evolution[:sol.iterations + 1])
