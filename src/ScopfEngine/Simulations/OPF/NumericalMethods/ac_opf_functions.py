# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
AC OPF model in the standard variable order x = [Va, Vm, Pg, Qg]:

    min  sum_g cost_g(Pg)
    s.t. G(x) = [P balance; Q balance] = 0                (2 nbus rows)
         H(x) = [|Sf|^2 - rate^2; |St|^2 - rate^2] <= 0   (2 nl2 rows, flow limited branches)

All magnitudes are per unit except the cost, which is computed with Pg in MW.
"""
from dataclasses import dataclass
from typing import Tuple, Union
import numpy as np
import scipy.sparse as sp
from ScopfEngine.basic_structures import Vec, CxVec, IntVec, Mat, CscMat, Logger
from ScopfEngine.enumerations import BusMode
from ScopfEngine.DataStructures.matpower_case import MatpowerCase
from ScopfEngine.Topology.admittance_matrices import AdmittanceMatrices
from ScopfEngine.Simulations.Derivatives.matpower_derivatives import (dSbus_dV_matpower, dSbr_dV_matpower,
                                                                      dAbr_dV_matpower, d2Sbus_dV2, d2ASbr_dV2)
import ScopfEngine.IO.matpower.matpower_bus_definitions as matpower_buses


@dataclass
class AcOpfData:
    """
    Compiled numerical data of a MATPOWER case needed by the OPF formulations
    """
    baseMVA: float
    nbus: int
    ngen: int
    nbranch: int
    ref_bus: int
    ref_gen: int
    non_ref_gens: IntVec
    pv: IntVec
    non_pv: IntVec
    il: IntVec  # flow limited branches
    rate: Vec  # ratings of the flow limited branches (p.u.)
    Cg: CscMat  # bus - generator connectivity
    Sd: CxVec  # bus demand (p.u.)
    cost_coeffs: Mat  # (ngen, n) polynomial coefficients, increasing order, Pg in MW

    @property
    def n_opf(self) -> int:
        return 2 * self.nbus + 2 * self.ngen

    @property
    def nl2(self) -> int:
        return len(self.il)

    @property
    def n_cons(self) -> int:
        """
        Number of constraint rows of one scenario
        """
        return 2 * self.nbus + 2 * self.nl2

    def split(self, x: Vec) -> Tuple[Vec, Vec, Vec, Vec]:
        """
        Split an OPF point into Va, Vm, Pg, Qg
        """
        nb = self.nbus
        ng = self.ngen
        return x[:nb], x[nb:2 * nb], x[2 * nb:2 * nb + ng], x[2 * nb + ng:]


def compile_ac_opf_data(case: MatpowerCase, logger: Logger = Logger()) -> AcOpfData:
    """
    Validate an internal MATPOWER case and compile its OPF data.
    Raises the configuration errors (reference generator, ratings, cost models)
    :param case: MatpowerCase in internal numbering
    :param logger: Logger
    :return: AcOpfData
    """
    ref_gens, non_ref_gens = case.get_ref_gens()
    pv, non_pv = case.get_bus_indices_of_type(BusMode.PV_tpe)
    il = case.get_constrained_branches()
    rate = case.get_branch_ratings()[il] / case.baseMVA

    n_free = case.nbranch - len(il)
    if n_free:
        logger.add_info('Branches without flow limit', value=n_free)

    Sd = (case.bus[:, matpower_buses.PD] + 1j * case.bus[:, matpower_buses.QD]) / case.baseMVA

    return AcOpfData(baseMVA=case.baseMVA,
                     nbus=case.nbus,
                     ngen=case.ngen,
                     nbranch=case.nbranch,
                     ref_bus=case.get_ref_bus(),
                     ref_gen=int(ref_gens[0]),
                     non_ref_gens=non_ref_gens,
                     pv=pv,
                     non_pv=non_pv,
                     il=il,
                     rate=rate,
                     Cg=case.get_generator_bus_connectivity(),
                     Sd=Sd,
                     cost_coeffs=case.get_polynomial_costs(logger))


def eval_cost(x: Vec, data: AcOpfData) -> Tuple[float, Vec, CscMat]:
    """
    Polynomial fuel cost of the active power
    :param x: OPF point [Va, Vm, Pg, Qg]
    :param data: AcOpfData
    :return: f, gradient (n_opf), Hessian (n_opf, n_opf)
    """
    _, _, Pg, _ = data.split(x)
    P = Pg * data.baseMVA
    c = data.cost_coeffs
    ng = data.ngen

    f = 0.0
    df = np.zeros(ng)
    d2f = np.zeros(ng)
    for k in range(c.shape[1]):
        f += np.sum(c[:, k] * np.power(P, k))
        if k >= 1:
            df += k * c[:, k] * np.power(P, k - 1)
        if k >= 2:
            d2f += k * (k - 1) * c[:, k] * np.power(P, k - 2)

    a = 2 * data.nbus
    fx = np.zeros(data.n_opf)
    fx[a:a + ng] = df * data.baseMVA

    idx = np.arange(a, a + ng)
    fxx = sp.csc_matrix((d2f * data.baseMVA ** 2, (idx, idx)), shape=(data.n_opf, data.n_opf))

    return f, fx, fxx


def get_branch_flows(V: CxVec, adm: AdmittanceMatrices, il: IntVec) -> Tuple[CxVec, CxVec]:
    """
    Power flows at both ends of the flow limited branches
    :param V: complex voltages
    :param adm: AdmittanceMatrices
    :param il: flow limited branches
    :return: Sf, St
    """
    Sf = V[adm.F[il]] * np.conj(adm.Yf[il, :] @ V)
    St = V[adm.T[il]] * np.conj(adm.Yt[il, :] @ V)
    return Sf, St


def eval_constraints(x: Vec, adm: AdmittanceMatrices, data: AcOpfData,
                     compute_jac: bool = True) -> Tuple[Vec, Vec, Union[CscMat, None], Union[CscMat, None]]:
    """
    Evaluate the nodal balance and the branch flow limits
    :param x: OPF point [Va, Vm, Pg, Qg]
    :param adm: AdmittanceMatrices of the scenario
    :param data: AcOpfData
    :param compute_jac: compute the Jacobians?
    :return: G (2 nbus), H (2 nl2), Gx (2 nbus, n_opf), Hx (2 nl2, n_opf)
    """
    Va, Vm, Pg, Qg = data.split(x)
    V = Vm * np.exp(1j * Va)
    il = data.il

    Scalc = V * np.conj(adm.Ybus @ V)
    mis = Scalc - (data.Cg @ (Pg + 1j * Qg) - data.Sd)
    G = np.r_[mis.real, mis.imag]

    Sf, St = get_branch_flows(V, adm, il)
    rate2 = np.power(data.rate, 2)
    H = np.r_[np.power(np.abs(Sf), 2) - rate2, np.power(np.abs(St), 2) - rate2]

    if not compute_jac:
        return G, H, None, None

    ng = data.ngen
    nl2 = data.nl2

    dS_dVa, dS_dVm = dSbus_dV_matpower(adm.Ybus, V)
    Gx = sp.bmat([[dS_dVa.real, dS_dVm.real, -data.Cg, None],
                  [dS_dVa.imag, dS_dVm.imag, None, -data.Cg]], format='csc')

    if nl2 > 0:
        dSf_dVa, dSf_dVm, dSt_dVa, dSt_dVm = dSbr_dV_matpower(adm.Yf[il, :], adm.Yt[il, :], V,
                                                              adm.F[il], adm.T[il],
                                                              adm.Cf[il, :], adm.Ct[il, :])
        dAf_dVa, dAf_dVm, dAt_dVa, dAt_dVm = dAbr_dV_matpower(dSf_dVa, dSf_dVm, dSt_dVa, dSt_dVm, Sf, St)
        zero = sp.csc_matrix((nl2, 2 * ng))
        Hx = sp.bmat([[dAf_dVa, dAf_dVm, zero],
                      [dAt_dVa, dAt_dVm, zero]], format='csc')
    else:
        Hx = sp.csc_matrix((0, data.n_opf))

    return G, H, Gx, Hx


def eval_hessian(x: Vec, adm: AdmittanceMatrices, data: AcOpfData,
                 lam_eq: Vec, lam_ineq: Vec, sigma: float = 1.0, include_cost: bool = True) -> CscMat:
    """
    Hessian of the Lagrangian sigma * f + lam_eq' G + lam_ineq' H
    :param x: OPF point [Va, Vm, Pg, Qg]
    :param adm: AdmittanceMatrices of the scenario
    :param data: AcOpfData
    :param lam_eq: multipliers of G (2 nbus)
    :param lam_ineq: multipliers of H (2 nl2)
    :param sigma: objective multiplier
    :param include_cost: add the cost Hessian (only the nominal scenario carries the objective)
    :return: symmetric (n_opf, n_opf) matrix
    """
    Va, Vm, _, _ = data.split(x)
    V = Vm * np.exp(1j * Va)
    nb = data.nbus
    ng = data.ngen
    nl2 = data.nl2
    il = data.il

    # nodal balance
    Gpaa, Gpav, Gpva, Gpvv = d2Sbus_dV2(adm.Ybus, V, lam_eq[:nb])
    Gqaa, Gqav, Gqva, Gqvv = d2Sbus_dV2(adm.Ybus, V, lam_eq[nb:2 * nb])
    Gaa = Gpaa.real + Gqaa.imag
    Gav = Gpav.real + Gqav.imag
    Gva = Gpva.real + Gqva.imag
    Gvv = Gpvv.real + Gqvv.imag

    # flow limits
    if nl2 > 0:
        Yf = adm.Yf[il, :]
        Yt = adm.Yt[il, :]
        Cf = adm.Cf[il, :]
        Ct = adm.Ct[il, :]
        Sf, St = get_branch_flows(V, adm, il)
        dSf_dVa, dSf_dVm, dSt_dVa, dSt_dVm = dSbr_dV_matpower(Yf, Yt, V, adm.F[il], adm.T[il], Cf, Ct)
        Hfaa, Hfav, Hfva, Hfvv = d2ASbr_dV2(dSf_dVa, dSf_dVm, Sf, Cf, Yf, V, lam_ineq[:nl2])
        Htaa, Htav, Htva, Htvv = d2ASbr_dV2(dSt_dVa, dSt_dVm, St, Ct, Yt, V, lam_ineq[nl2:2 * nl2])
        Gaa = Gaa + Hfaa + Htaa
        Gav = Gav + Hfav + Htav
        Gva = Gva + Hfva + Htva
        Gvv = Gvv + Hfvv + Htvv

    Lvv = sp.bmat([[Gaa, Gav],
                   [Gva, Gvv]], format='csc')

    Lxx = sp.bmat([[Lvv, None],
                   [None, sp.csc_matrix((2 * ng, 2 * ng))]], format='csc')

    if include_cost:
        _, _, fxx = eval_cost(x, data)
        Lxx = Lxx + sigma * fxx

    return Lxx.tocsc()
