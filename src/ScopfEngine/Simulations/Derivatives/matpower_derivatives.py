# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

import numpy as np
from typing import Tuple
from scipy.sparse import diags, csc_matrix
from ScopfEngine.basic_structures import CxVec, IntVec, Vec

Hessian4 = Tuple[csc_matrix, csc_matrix, csc_matrix, csc_matrix]


def dSbus_dV_matpower(Ybus: csc_matrix, V: CxVec) -> Tuple[csc_matrix, csc_matrix]:
    """
    Derivatives of the power Injections w.r.t the voltage
    :param Ybus: Admittance matrix
    :param V: complex voltage arrays
    :return: dSbus_dVa, dSbus_dVm
    """
    diagV = diags(V)
    diagE = diags(V / np.abs(V))
    Ibus = Ybus @ V
    diagIbus = diags(Ibus)

    dSbus_dVa = 1j * diagV @ (diagIbus - Ybus @ diagV).conj()  # dSbus / dVa
    dSbus_dVm = diagV @ (Ybus @ diagE).conj() + diagIbus.conj() @ diagE  # dSbus / dVm

    return dSbus_dVa.tocsc(), dSbus_dVm.tocsc()


def dSbr_dV_matpower(Yf: csc_matrix, Yt: csc_matrix, V: CxVec,
                     F: IntVec, T: IntVec,
                     Cf: csc_matrix, Ct: csc_matrix) -> Tuple[csc_matrix, csc_matrix, csc_matrix, csc_matrix]:
    """
    Derivatives of the branch power w.r.t the branch voltage modules and angles
    :param Yf: Admittances matrix of the Branches with the "from" buses
    :param Yt: Admittances matrix of the Branches with the "to" buses
    :param V: Array of voltages
    :param F: Array of branch "from" bus indices
    :param T: Array of branch "to" bus indices
    :param Cf: Connectivity matrix of the Branches with the "from" buses
    :param Ct: Connectivity matrix of the Branches with the "to" buses
    :return: dSf_dVa, dSf_dVm, dSt_dVa, dSt_dVm
    """
    Yfc = Yf.conj()
    Ytc = Yt.conj()
    Vc = np.conj(V)
    Ifc = Yfc @ Vc  # conjugate  of "from"  current
    Itc = Ytc @ Vc  # conjugate of "to" current

    diagIfc = diags(Ifc)
    diagItc = diags(Itc)
    diagVf = diags(V[F])
    diagVt = diags(V[T])
    diagVc = diags(Vc)

    diagVnorm = diags(V / np.abs(V))
    diagV = diags(V)

    dSf_dVa = 1j * (diagIfc @ Cf @ diagV - diagVf @ Yfc @ diagVc)
    dSf_dVm = diagVf @ (Yf @ diagVnorm).conj() + diagIfc @ Cf @ diagVnorm
    dSt_dVa = 1j * (diagItc @ Ct @ diagV - diagVt @ Ytc @ diagVc)
    dSt_dVm = diagVt @ (Yt @ diagVnorm).conj() + diagItc @ Ct @ diagVnorm

    return dSf_dVa.tocsc(), dSf_dVm.tocsc(), dSt_dVa.tocsc(), dSt_dVm.tocsc()


def dAbr_dV_matpower(dSf_dVa: csc_matrix, dSf_dVm: csc_matrix,
                     dSt_dVa: csc_matrix, dSt_dVm: csc_matrix,
                     Sf: CxVec, St: CxVec) -> Tuple[csc_matrix, csc_matrix, csc_matrix, csc_matrix]:
    """
    Derivatives of the squared apparent branch flows |Sf|^2 and |St|^2
    :param dSf_dVa: derivative of Sf w.r.t. the angles
    :param dSf_dVm: derivative of Sf w.r.t. the modules
    :param dSt_dVa: derivative of St w.r.t. the angles
    :param dSt_dVm: derivative of St w.r.t. the modules
    :param Sf: branch "from" power
    :param St: branch "to" power
    :return: dAf_dVa, dAf_dVm, dAt_dVa, dAt_dVm
    """
    dAf_dPf = diags(2.0 * Sf.real)
    dAf_dQf = diags(2.0 * Sf.imag)
    dAt_dPt = diags(2.0 * St.real)
    dAt_dQt = diags(2.0 * St.imag)

    dAf_dVa = dAf_dPf @ dSf_dVa.real + dAf_dQf @ dSf_dVa.imag
    dAt_dVa = dAt_dPt @ dSt_dVa.real + dAt_dQt @ dSt_dVa.imag
    dAf_dVm = dAf_dPf @ dSf_dVm.real + dAf_dQf @ dSf_dVm.imag
    dAt_dVm = dAt_dPt @ dSt_dVm.real + dAt_dQt @ dSt_dVm.imag

    return dAf_dVa.tocsc(), dAf_dVm.tocsc(), dAt_dVa.tocsc(), dAt_dVm.tocsc()


def d2Sbus_dV2(Ybus: csc_matrix, V: CxVec, lam: Vec) -> Hessian4:
    """
    Second derivatives of the bus power injections, multiplied by a vector of multipliers:
    d/dx (dSbus_dx.T @ lam)
    :param Ybus: admittance matrix
    :param V: complex voltages
    :param lam: multipliers (one per bus)
    :return: Gaa, Gav, Gva, Gvv (complex)
    """
    Ibus = Ybus @ V
    diaglam = diags(lam)
    diagV = diags(V)

    A = diags(lam * V)
    B = Ybus @ diagV
    C = A @ B.conj()
    D = Ybus.conj().T @ diagV
    E = diagV.conj() @ (D @ diaglam - diags(D @ lam))
    F = C - A @ diags(np.conj(Ibus))
    G = diags(1.0 / np.abs(V))

    Gaa = E + F
    Gva = 1j * G @ (E - F)
    Gav = Gva.T
    Gvv = G @ (C + C.T) @ G

    return Gaa.tocsc(), Gav.tocsc(), Gva.tocsc(), Gvv.tocsc()


def d2Sbr_dV2(Cbr: csc_matrix, Ybr: csc_matrix, V: CxVec, lam: CxVec) -> Hessian4:
    """
    Second derivatives of the complex branch flows (one end), multiplied by the multipliers
    :param Cbr: branch - bus connectivity of the end ("from" or "to")
    :param Ybr: branch admittance matrix of the same end
    :param V: complex voltages
    :param lam: multipliers (one per branch, may be complex)
    :return: Haa, Hav, Hva, Hvv (complex)
    """
    diaglam = diags(lam)
    diagV = diags(V)

    A = Ybr.conj().T @ diaglam @ Cbr
    B = diagV.conj() @ A @ diagV
    D = diags((A @ V) * np.conj(V))
    E = diags((A.T @ np.conj(V)) * V)
    F = B + B.T
    G = diags(1.0 / np.abs(V))

    Haa = F - D - E
    Hva = 1j * G @ (B - B.T - D + E)
    Hav = Hva.T
    Hvv = G @ F @ G

    return Haa.tocsc(), Hav.tocsc(), Hva.tocsc(), Hvv.tocsc()


def d2ASbr_dV2(dSbr_dVa: csc_matrix, dSbr_dVm: csc_matrix, Sbr: CxVec,
               Cbr: csc_matrix, Ybr: csc_matrix, V: CxVec, lam: Vec) -> Hessian4:
    """
    Second derivatives of the squared apparent power flows |Sbr|^2, multiplied by the multipliers
    :param dSbr_dVa: derivative of the flows w.r.t. the angles
    :param dSbr_dVm: derivative of the flows w.r.t. the modules
    :param Sbr: complex flows
    :param Cbr: branch - bus connectivity of the end
    :param Ybr: branch admittance matrix of the end
    :param V: complex voltages
    :param lam: multipliers (one per branch)
    :return: Haa, Hav, Hva, Hvv (real)
    """
    diaglam = diags(lam)

    Saa, Sav, Sva, Svv = d2Sbr_dV2(Cbr, Ybr, V, np.conj(Sbr) * lam)

    Haa = 2.0 * (Saa + dSbr_dVa.T @ diaglam @ dSbr_dVa.conj()).real
    Hva = 2.0 * (Sva + dSbr_dVm.T @ diaglam @ dSbr_dVa.conj()).real
    Hav = 2.0 * (Sav + dSbr_dVa.T @ diaglam @ dSbr_dVm.conj()).real
    Hvv = 2.0 * (Svv + dSbr_dVm.T @ diaglam @ dSbr_dVm.conj()).real

    return Haa.tocsc(), Hav.tocsc(), Hva.tocsc(), Hvv.tocsc()
