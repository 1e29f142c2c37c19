# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import Callable, Any, Union
from dataclasses import dataclass
import timeit
import numba as nb
import numpy as np
import pandas as pd
from scipy.sparse import csc_matrix as csc
from scipy.sparse.linalg import lsqr
from matplotlib import pyplot as plt
from ScopfEngine.basic_structures import Vec
from ScopfEngine.enumerations import SparseSolver, IpsStatus
from ScopfEngine.Utils.Sparse.utils import pack_3_by_4, diags
from ScopfEngine.Utils.NumericalMethods.sparse_solve import get_linear_solver


def step_calculation(v: Vec, dv: Vec, tau: float = 0.99995):
    """
    This function calculates for each Lambda multiplier or its associated Slack variable
    the maximum allowed step in order to not violate the KKT condition Lambda > 0 and S > 0
    :param v: Array of multipliers or slack variables
    :param dv: Variation calculated in the Newton step
    :param tau: Factor to be not exactly 1
    :return: step size value for the given multipliers
    """
    k = np.flatnonzero(dv < 0.0)
    if len(k) > 0:
        alpha = min([tau * min(v[k] / (-dv[k] + 1e-15)), 1])
    else:
        alpha = 1

    return alpha


@nb.njit(cache=True)
def split(sol: Vec, n: int):
    """
    Split the solution vector in two
    :param sol: solution vector
    :param n: integer position at which to split the solution
    :return: A before, B after the splitting point
    """
    return sol[:n], sol[n:]


@nb.njit(cache=True)
def max_abs(x: Vec):
    """
    Compute max abs efficiently
    :param x: State vector
    :return: Inf-norm of the state vector
    """
    max_val = 0.0
    for x_val in x:
        x_abs = x_val if x_val > 0.0 else -x_val
        if x_abs > max_val:
            max_val = x_abs

    return max_val


def calc_feascond(g: Vec, h: Vec, x: Vec, z: Vec):
    """
    Calculate the feasible conditions
    :param g: Equality values
    :param h: Inequality values
    :param x: State vector
    :param z: Vector of z slack variables
    :return: Feasibility condition value
    """
    h_max = np.max(h) if len(h) else 0.0
    return max(max_abs(g), h_max) / (1.0 + max(max_abs(x), max_abs(z)))


def calc_gradcond(lx: Vec, lam: Vec, mu: Vec):
    """
    calculate the gradient conditions
    :param lx: Gradient of the lagrangian
    :param lam: Vector of lambda multipliers
    :param mu: Vector of mu multipliers
    :return: Gradient condition value
    """
    return max_abs(lx) / (1 + max(max_abs(lam), max_abs(mu)))


def all_finite(*arrays) -> bool:
    """
    Check that all the given arrays (or scalars) are finite
    """
    for arr in arrays:
        if not np.all(np.isfinite(arr)):
            return False
    return True


@dataclass
class IpsFunctionReturn:
    """
    Represents the returning value of the interior point evaluation
    """
    f: float  # objective function value
    G: Vec  # equalities increment vector
    H: Vec  # inequalities increment vector
    fx: Vec  # objective function gradient vector
    Gx: csc  # equalities Jacobian Matrix (n_eq, n_x)
    Hx: csc  # inequalities Jacobian Matrix (n_ineq, n_x)
    Lxx: Union[csc, None] = None  # Hessian of the Lagrangian (n_x, n_x), full symmetric


@dataclass
class IpsSolution:
    """
    Represents the returning value of the interior point solution
    """
    x: Vec
    f: float
    error: float
    gamma: float
    lam: Vec
    mu: Vec
    z: Vec
    status: IpsStatus
    iterations: int
    error_evolution: Vec
    wall_time: float

    @property
    def converged(self) -> bool:
        return self.status.is_success()

    def plot_error(self):
        """
        Plot the IPS error
        """
        plt.figure()
        plt.plot(self.error_evolution[:self.iterations + 1], )
        plt.xlabel("Iterations")
        plt.ylabel("Error")
        plt.yscale('log')
        plt.show()


def interior_point_solver(x0: Vec,
                          n_x: int,
                          n_eq: int,
                          n_ineq: int,
                          func: Callable[[Vec, Vec, Vec, bool, bool, Any], IpsFunctionReturn],
                          arg=(),
                          max_iter=100,
                          tol=1e-6,
                          acceptable_tol=1e-4,
                          pf_init=False,
                          trust=0.9,
                          verbose: int = 0,
                          step_control=False,
                          linear_solver: SparseSolver = SparseSolver.SuperLU) -> IpsSolution:
    """
    Solve a non-linear problem of the form:

        min: f(x)
        s.t.
            G(x)  = 0
            H(x) <= 0

    The problem is specified by a function `func`
    This function is called with (x, mu, lmbda, compute_jac, compute_hess, *arg) and
    returns an IpsFunctionReturn with (f, G, H, fx, Gx, Hx, Lxx)

    where:
        x: array of variables
        mu: Lagrange Multiplier associated with the inequality constraints
        lmbda: Lagrange Multiplier associated with the equality constraints
        f: objective function value (float)
        G: Array of equality mismatches (vec)
        H: Array of inequality mismatches (vec)
        fx: gradient of f(x) (vec)
        Gx: Jacobian of G(x) (CSC mat)
        Hx: Jacobian of H(x) (CSC mat)
        Lxx: Hessian of f(x) + lmbda'G(x) + mu'H(x) (CSC mat)

    See: On Computational Issues of Market-Based Optimal Power Flow by
         Hongye Wang, Carlos E. Murillo-Sánchez, Ray D. Zimmerman, and Robert J. Thomas
         IEEE TRANSACTIONS ON POWER SYSTEMS, VOL. 22, NO. 3, AUGUST 2007

    :param x0: Initial solution
    :param n_x: Number of variables (size of x)
    :param n_eq: Number of equality constraints (rows of G)
    :param n_ineq: Number of inequality constraints (rows of H)
    :param func: A function pointer called with (x, mu, lmbda, compute_jac, compute_hess, *args)
    :param arg: Tuple of arguments to call func: func(x, mu, lmbda, compute_jac, compute_hess, *arg)
    :param max_iter: Maximum number of iterations
    :param tol: Convergence tolerance
    :param acceptable_tol: tolerance under which a solution is accepted when the iterations run out
    :param pf_init: Initialize the multipliers from the KKT conditions instead of the PyPower way
    :param trust: Amount of trust in the initial Newton derivative length estimation
    :param verbose: 0 to 3 (the larger, the more verbose)
    :param step_control: Use step control to improve the solution process control
    :param linear_solver: SparseSolver used for the KKT systems
    :return: IpsSolution
    """
    t_start = timeit.default_timer()
    solve = get_linear_solver(linear_solver)

    # Init iteration values
    error = 1e6
    iter_counter = 0
    x = np.array(x0, dtype=float)
    gamma = 1.0
    nabla = 0.05
    rho_lower = 1.0 - nabla
    rho_upper = 1.0 + nabla
    e = np.ones(n_ineq)
    status = IpsStatus.MaximumIterationsExceeded
    feascond = 1e6
    gradcond = 1e6

    ret = func(x, None, None, True, False, *arg)
    z0 = 1.0
    z = z0 * np.ones(n_ineq)
    mu = z0 * np.ones(n_ineq)
    kk = np.flatnonzero(ret.H < -z0)
    z[kk] = -ret.H[kk]

    if pf_init:
        # multipliers from the KKT conditions
        z = np.maximum(z, 1e-2)
        mu = gamma / z
        if n_eq > 0:
            lam = lsqr(ret.Gx.T, -ret.fx - ret.Hx.T @ mu)[0]
        else:
            lam = np.zeros(n_eq)

    # PyPower init
    else:
        lam = np.zeros(n_eq)
        kk = np.flatnonzero((gamma / z) > z0)
        mu[kk] = gamma / z[kk]

    z_inv = diags(1.0 / z)
    mu_diag = diags(mu)

    error_evolution = np.zeros(max_iter + 1)
    error_evolution[0] = error

    converged = False
    if not all_finite(ret.f, ret.G, ret.H, ret.fx):
        status = IpsStatus.NumericalError

    while status != IpsStatus.NumericalError and not converged and iter_counter < max_iter:

        # Evaluate the functions, gradients and hessians at the current iteration.
        ret = func(x, mu, lam, True, True, *arg)
        Hx_t = ret.Hx.T
        Gx_t = ret.Gx.T

        # compose the Jacobian
        lxx = ret.Lxx
        m = lxx + Hx_t @ z_inv @ mu_diag @ ret.Hx
        jac = pack_3_by_4(m.tocsc(), Gx_t.tocsc(), ret.Gx.tocsc())

        # compose the residual
        lx = ret.fx + Gx_t @ lam + Hx_t @ mu
        n = lx + Hx_t @ z_inv @ (gamma * e + mu * ret.H)
        r = - np.r_[n, ret.G]

        # Find the reduced problem residuals and split them
        try:
            sol = solve(jac, r)
        except RuntimeError:
            # singular KKT system
            status = IpsStatus.NumericalError
            break

        if not all_finite(sol):
            status = IpsStatus.NumericalError
            break

        dx, dlam = split(sol, n_x)

        # Calculate the inequalities residuals using the reduced problem residuals
        dz = - ret.H - z - ret.Hx @ dx
        dmu = - mu + z_inv @ (gamma * e - mu * dz)

        # Step control as in PyPower
        if step_control:
            l0 = ret.f + np.dot(lam, ret.G) + np.dot(mu, ret.H + z) - gamma * np.sum(np.log(z))
            alpha = trust
            for j in range(20):
                dx1 = alpha * dx
                x1 = x + dx1

                ret1 = func(x1, mu, lam, False, False, *arg)

                l1 = ret1.f + lam.T @ ret1.G + mu.T @ (ret1.H + z) - gamma * np.sum(np.log(z))
                rho = (l1 - l0) / (lx @ dx1 + 0.5 * dx1.T @ lxx @ dx1)

                if rho_lower < rho < rho_upper:
                    break
                else:
                    alpha = alpha / 2.0
                    if verbose > 1:
                        print('Use step control!')

            dx = alpha * dx
            dz = alpha * dz
            dlam = alpha * dlam
            dmu = alpha * dmu

        # Compute the maximum step allowed
        alpha_p = step_calculation(z, dz)
        alpha_d = step_calculation(mu, dmu)

        # Update the values of the variables and multipliers
        x += dx * alpha_p
        z += dz * alpha_p
        lam += dlam * alpha_d
        mu += dmu * alpha_d
        gamma = 0.1 * mu @ z / n_ineq if n_ineq > 0 else 0.0

        # Update fobj, g, h
        ret = func(x, mu, lam, True, False, *arg)

        if not all_finite(ret.f, ret.G, ret.H, ret.fx, x):
            status = IpsStatus.NumericalError
            iter_counter += 1
            break

        lx = ret.fx + ret.Hx.T @ mu + ret.Gx.T @ lam
        feascond = calc_feascond(g=ret.G, h=ret.H, x=x, z=z)
        gradcond = calc_gradcond(lx=lx, lam=lam, mu=mu)
        error = max(feascond, gradcond)

        z_inv = diags(1.0 / z)
        mu_diag = diags(mu)

        converged = feascond < tol and gradcond < tol and gamma < tol

        if verbose > 1:
            print(f'Iteration: {iter_counter}', "-" * 80)
            if verbose > 2:
                x_df = pd.DataFrame(data={'x': x, 'dx': dx})
                eq_df = pd.DataFrame(data={'λ': lam, 'dλ': dlam})
                ineq_df = pd.DataFrame(data={'mu': mu, 'z': z, 'dmu': dmu, 'dz': dz})

                print("x:\n", x_df)
                print("EQ:\n", eq_df)
                print("INEQ:\n", ineq_df)
            print("\tGamma:", gamma)
            print("\tErr:", error)

        # Add an iteration step
        iter_counter += 1
        error_evolution[iter_counter] = error

    if converged:
        status = IpsStatus.Optimal
    elif status != IpsStatus.NumericalError:
        if feascond < acceptable_tol and gradcond < acceptable_tol and gamma < acceptable_tol:
            status = IpsStatus.Acceptable
        else:
            status = IpsStatus.MaximumIterationsExceeded

    t_end = timeit.default_timer()

    if verbose > 0:
        print(f'SOLUTION', "-" * 80)
        print(f"\tStatus: {status}")
        print(f"\tF.obj: {ret.f}")
        print(f"\tErr: {error}")
        print(f'\tIterations: {iter_counter}')
        print(f'\tTime elapsed (s): {t_end - t_start}')
        print(f'\tFeas cond: ', feascond)

    return IpsSolution(x=x, f=ret.f, error=error, gamma=gamma, lam=lam, mu=mu, z=z, status=status,
                       iterations=iter_counter, error_evolution=error_evolution, wall_time=t_end - t_start)
