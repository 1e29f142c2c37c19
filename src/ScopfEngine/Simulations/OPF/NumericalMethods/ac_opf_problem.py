# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import List, Tuple, Union
import numpy as np
import scipy.sparse as sp
from ScopfEngine.basic_structures import Vec, IntVec, CsrMat, CscMat, Logger
from ScopfEngine.exceptions import ConfigurationError
from ScopfEngine.DataStructures.matpower_case import MatpowerCase
from ScopfEngine.Topology.admittance_matrices import (AdmittanceMatrices, ConnectivityMatrices,
                                                      compute_admittances)
from ScopfEngine.Simulations.OPF.NumericalMethods.nlp_problem import NlpProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.scenarios import Scenario
from ScopfEngine.Simulations.OPF.NumericalMethods.variable_layout import StandardLayout
from ScopfEngine.Simulations.OPF.NumericalMethods.ac_opf_functions import (compile_ac_opf_data, eval_cost,
                                                                           eval_constraints, eval_hessian)
from ScopfEngine.Simulations.OPF.NumericalMethods.bounds import (get_opf_bounds, assemble_bounds,
                                                                 interior_point_start, BOUND_INFINITY)
from ScopfEngine.Simulations.OPF.NumericalMethods.sparsity import (build_jacobian_pattern, build_hessian_pattern,
                                                                   SparsityPattern)
import ScopfEngine.IO.matpower.matpower_bus_definitions as matpower_buses
import ScopfEngine.IO.matpower.matpower_gen_definitions as matpower_gen


class AcOpfProblem(NlpProblem):
    """
    Standard AC optimal power flow with x = [Va, Vm, Pg, Qg].

    The evaluation loops over the scenarios of the problem, so the security
    constrained formulation only changes the scenarios and the variable layout.
    Everything is built at construction and never modified afterwards.
    """

    def __init__(self,
                 case: MatpowerCase,
                 A: Union[sp.spmatrix, None] = None,
                 l: Union[Vec, None] = None,
                 u: Union[Vec, None] = None,
                 logger: Logger = Logger(),
                 bound_infinity: float = BOUND_INFINITY):
        """

        :param case: MatpowerCase (converted to internal numbering if needed)
        :param A: optional linear constraints matrix over the full decision vector
        :param l: lower bounds of A x (-inf if None)
        :param u: upper bounds of A x (+inf if None)
        :param logger: Logger
        :param bound_infinity: magnitude from which a bound is considered infinite
        """
        NlpProblem.__init__(self)

        self.logger = logger
        self.case = case if case.is_internal else case.to_internal(logger)
        self.bound_infinity = bound_infinity

        # validation of the network data happens here, before anything else
        self.data = compile_ac_opf_data(self.case, logger)

        self.scenarios: List[Scenario] = self.create_scenarios()
        self.layout: StandardLayout = self.create_layout()

        # per scenario admittances and structural connectivity
        self.admittances: List[AdmittanceMatrices] = [
            compute_admittances(self.case.baseMVA, self.case.bus, self.case.branch, sc.outaged_branch)
            for sc in self.scenarios
        ]
        nominal = ConnectivityMatrices(Cf=self.admittances[0].Cf, Ct=self.admittances[0].Ct,
                                       Cg=self.data.Cg, il=self.data.il)
        self.connectivity: List[ConnectivityMatrices] = [nominal.get_contingency_view(sc.outaged_branch)
                                                         for sc in self.scenarios]

        # position of the OPF variables of every scenario
        self.maps: List[IntVec] = [self.layout.get_global_indices(i) for i in range(self.n_scenarios)]

        # variable bounds
        self.opf_min, self.opf_max = get_opf_bounds(self.case, self.data)
        self.x_min, self.x_max = assemble_bounds(self.opf_min, self.opf_max, self.layout)

        # linear constraints
        self.A, self.l, self.u = self.check_linear_constraints(A, l, u)

        # constraint bounds
        nb = self.data.nbus
        nl2 = self.data.nl2
        g_min_sc = np.r_[np.zeros(2 * nb), np.full(2 * nl2, -bound_infinity)]
        g_max_sc = np.zeros(2 * nb + 2 * nl2)
        self.g_min = np.r_[np.tile(g_min_sc, self.n_scenarios), self.l]
        self.g_max = np.r_[np.tile(g_max_sc, self.n_scenarios), self.u]

        # constant structures
        self.jac_pattern: SparsityPattern = build_jacobian_pattern(self.connectivity, self.layout, self.A)
        self.hess_pattern: SparsityPattern = build_hessian_pattern(self.connectivity, self.layout)

    def create_scenarios(self) -> List[Scenario]:
        return [Scenario(index=0, outaged_branch=None)]

    def create_layout(self) -> StandardLayout:
        return StandardLayout(nbus=self.data.nbus, ngen=self.data.ngen, nbranch=self.data.nbranch,
                              ref_bus=self.data.ref_bus)

    def check_linear_constraints(self, A, l, u):
        """
        Validate the optional linear constraints l <= A x <= u
        :return: A (csr or None), l, u
        """
        if A is None:
            return None, np.zeros(0), np.zeros(0)

        A = sp.csr_matrix(A)
        n = A.shape[0]
        if A.shape[1] != self.layout.n_total:
            raise ConfigurationError(f"The linear constraints matrix has {A.shape[1]} columns, "
                                     f"expected {self.layout.n_total}")

        l = np.full(n, -np.inf) if l is None else np.asarray(l, dtype=float)
        u = np.full(n, np.inf) if u is None else np.asarray(u, dtype=float)

        if len(l) != n or len(u) != n:
            raise ConfigurationError("The linear constraints bounds do not match the rows of A")

        if np.any(l > u):
            raise ConfigurationError("Some linear constraint has l > u")

        return A, l, u

    @property
    def n_scenarios(self) -> int:
        return len(self.scenarios)

    @property
    def n_linear(self) -> int:
        return 0 if self.A is None else self.A.shape[0]

    @property
    def n_cons_scenario(self) -> int:
        return self.data.n_cons

    def get_scenario_point(self, x: Vec, i: int) -> Vec:
        return x[self.maps[i]]

    def objective(self, x: Vec) -> float:
        f, _, _ = eval_cost(self.get_scenario_point(x, 0), self.data)
        return f

    def gradient(self, x: Vec) -> Vec:
        _, fx, _ = eval_cost(self.get_scenario_point(x, 0), self.data)
        grad = np.zeros(self.n_x)
        grad[self.maps[0]] = fx
        return grad

    def constraints(self, x: Vec) -> Vec:
        parts = list()
        for i, adm in enumerate(self.admittances):
            G, H, _, _ = eval_constraints(self.get_scenario_point(x, i), adm, self.data, compute_jac=False)
            parts.append(G)
            parts.append(H)

        if self.A is not None:
            parts.append(self.A @ x)

        return np.concatenate(parts)

    def jacobian_triplets(self, x: Vec) -> Tuple[IntVec, IntVec, Vec]:
        """
        Numeric Jacobian entries of all the scenarios in the decision vector positions
        :param x: decision vector
        :return: rows, cols, values
        """
        rows = list()
        cols = list()
        vals = list()
        m = self.n_cons_scenario
        for i, adm in enumerate(self.admittances):
            _, _, Gx, Hx = eval_constraints(self.get_scenario_point(x, i), adm, self.data, compute_jac=True)
            J = sp.vstack([Gx, Hx]).tocoo()
            rows.append(J.row + i * m)
            cols.append(self.maps[i][J.col])
            vals.append(J.data)

        if self.A is not None:
            A = self.A.tocoo()
            rows.append(A.row + self.n_scenarios * m)
            cols.append(A.col)
            vals.append(A.data)

        return np.concatenate(rows), np.concatenate(cols), np.concatenate(vals)

    def jacobian(self, x: Vec) -> CsrMat:
        rows, cols, vals = self.jacobian_triplets(x)
        return self.jac_pattern.to_csr(self.jac_pattern.scatter(rows, cols, vals))

    def hessian_triplets(self, x: Vec, sigma: float, lam: Vec) -> Tuple[IntVec, IntVec, Vec]:
        """
        Numeric Lagrangian Hessian entries (full, symmetric) in the decision vector positions.
        The objective belongs to the nominal scenario only
        :param x: decision vector
        :param sigma: objective multiplier
        :param lam: constraint multipliers
        :return: rows, cols, values
        """
        rows = list()
        cols = list()
        vals = list()
        m = self.n_cons_scenario
        nb2 = 2 * self.data.nbus
        for i, adm in enumerate(self.admittances):
            lam_sc = lam[i * m:(i + 1) * m]
            Lxx = eval_hessian(self.get_scenario_point(x, i), adm, self.data,
                               lam_eq=lam_sc[:nb2], lam_ineq=lam_sc[nb2:],
                               sigma=sigma, include_cost=(i == 0)).tocoo()
            rows.append(self.maps[i][Lxx.row])
            cols.append(self.maps[i][Lxx.col])
            vals.append(Lxx.data)

        return np.concatenate(rows), np.concatenate(cols), np.concatenate(vals)

    def hessian_full(self, x: Vec, sigma: float, lam: Vec) -> CscMat:
        """
        Full symmetric Lagrangian Hessian (before keeping the lower triangle)
        """
        rows, cols, vals = self.hessian_triplets(x, sigma, lam)
        return sp.csc_matrix((vals, (rows, cols)), shape=(self.n_x, self.n_x))

    def hessian(self, x: Vec, sigma: float, lam: Vec) -> CsrMat:
        rows, cols, vals = self.hessian_triplets(x, sigma, lam)
        lower = rows >= cols
        data = self.hess_pattern.scatter(rows[lower], cols[lower], vals[lower])
        return self.hess_pattern.to_csr(data)

    def jacobian_structure(self) -> Tuple[IntVec, IntVec]:
        return self.jac_pattern.rows, self.jac_pattern.cols

    def hessian_structure(self) -> Tuple[IntVec, IntVec]:
        return self.hess_pattern.rows, self.hess_pattern.cols

    def get_reference_angle(self) -> float:
        return np.deg2rad(self.case.bus[self.data.ref_bus, matpower_buses.VA])

    def get_x0(self) -> Vec:
        """
        Point inside the bounds with every angle at the reference angle
        :return: x0
        """
        x0 = interior_point_start(self.x_min, self.x_max, infinity=self.bound_infinity)
        x0[self.layout.get_angle_positions()] = self.get_reference_angle()
        return x0

    def get_x0_from_case(self) -> Vec:
        """
        Starting point from the voltages and dispatch stored in the case, clipped to the bounds
        :return: x0
        """
        baseMVA = self.case.baseMVA
        x_opf = np.r_[np.deg2rad(self.case.bus[:, matpower_buses.VA]),
                      self.case.bus[:, matpower_buses.VM],
                      self.case.gen[:, matpower_gen.PG] / baseMVA,
                      self.case.gen[:, matpower_gen.QG] / baseMVA]
        return np.clip(self.layout.compose(x_opf), self.x_min, self.x_max)

    def decode(self, x: Vec) -> Tuple[Vec, Vec, Vec, Vec]:
        """
        Split a decision vector in the per scenario variables
        :param x: decision vector
        :return: Va, Vm, Pg, Qg, each with one row per scenario
        """
        pts = np.array([self.get_scenario_point(x, i) for i in range(self.n_scenarios)])
        nb = self.data.nbus
        ng = self.data.ngen
        return pts[:, :nb], pts[:, nb:2 * nb], pts[:, 2 * nb:2 * nb + ng], pts[:, 2 * nb + ng:]
