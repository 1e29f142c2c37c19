# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from typing import Union
import numpy as np
import scipy.sparse as sp
from ScopfEngine.basic_structures import Vec, CxVec, IntVec, Mat, CscMat, Logger
from ScopfEngine.Topology.topology import find_islands, get_adjacency_matrix
import ScopfEngine.IO.matpower.matpower_bus_definitions as matpower_buses
import ScopfEngine.IO.matpower.matpower_branch_definitions as matpower_branches


class AdmittanceMatrices:
    """
    Class to store admittance matrices
    """

    def __init__(self,
                 Ybus: CscMat,
                 Yf: CscMat,
                 Yt: CscMat,
                 Cf: CscMat,
                 Ct: CscMat,
                 F: IntVec,
                 T: IntVec,
                 yff: CxVec,
                 yft: CxVec,
                 ytf: CxVec,
                 ytt: CxVec,
                 Yshunt_bus: CxVec,
                 contingency_branch: Union[int, None] = None):
        """
        Constructor
        :param Ybus: Admittance matrix
        :param Yf: Admittance matrix of the branches with their "from" bus
        :param Yt: Admittance matrix of the branches with their "to" bus
        :param Cf: Connectivity matrix of the branches with their "from" bus
        :param Ct: Connectivity matrix of the branches with their "to" bus
        :param F: branch "from" bus indices
        :param T: branch "to" bus indices
        :param yff: admittance from-from primitives vector
        :param yft: admittance from-to primitives vector
        :param ytf: admittance to-from primitives vector
        :param ytt: admittance to-to primitives vector
        :param Yshunt_bus: array of shunt admittances per bus
        :param contingency_branch: branch switched off to build these matrices (None for the base case)
        """
        self.Ybus = Ybus
        self.Yf = Yf
        self.Yt = Yt
        self.Cf = Cf
        self.Ct = Ct
        self.F = F
        self.T = T
        self.yff = yff
        self.yft = yft
        self.ytf = ytf
        self.ytt = ytt
        self.Yshunt_bus = Yshunt_bus
        self.contingency_branch = contingency_branch


def get_branch_bus_connectivity(nbus: int, F: IntVec, T: IntVec, active: Vec):
    """
    Branch to bus incidence matrices with the branch states applied
    :param nbus: number of buses
    :param F: branch "from" bus indices
    :param T: branch "to" bus indices
    :param active: branch states
    :return: Cf, Ct (nbranch, nbus)
    """
    nl = len(F)
    rows = np.arange(nl)
    Cf = sp.csc_matrix((active, (rows, F)), shape=(nl, nbus))
    Ct = sp.csc_matrix((active, (rows, T)), shape=(nl, nbus))
    Cf.eliminate_zeros()
    Ct.eliminate_zeros()
    return Cf, Ct


def compute_admittances(baseMVA: float,
                        bus: Mat,
                        branch: Mat,
                        contingency_branch: Union[int, None] = None) -> AdmittanceMatrices:
    """
    Compute the admittance matrices of a MATPOWER case in internal (zero-based) numbering.
    Series admittance, line charging, off-nominal taps, phase shifters and bus shunts
    are modelled; out of service branches and the contingency branch have no admittance
    :param baseMVA: base power (MVA)
    :param bus: bus table
    :param branch: branch table
    :param contingency_branch: index of the branch to switch off (None for the base case)
    :return: AdmittanceMatrices instance
    """
    nb = bus.shape[0]
    F = branch[:, matpower_branches.F_BUS].astype(int)
    T = branch[:, matpower_branches.T_BUS].astype(int)

    active = (branch[:, matpower_branches.BR_STATUS] > 0).astype(float)
    if contingency_branch is not None:
        active[contingency_branch] = 0.0

    R = branch[:, matpower_branches.BR_R]
    X = branch[:, matpower_branches.BR_X]
    B = branch[:, matpower_branches.BR_B]

    ys = active / (R + 1.0j * X + 1e-20)  # series admittance
    bc2 = active * 1j * B / 2.0  # shunt admittance

    tap_module = branch[:, matpower_branches.TAP].copy()
    tap_module[tap_module == 0] = 1.0
    tap_angle = np.deg2rad(branch[:, matpower_branches.SHIFT])
    tap = tap_module * np.exp(1.0j * tap_angle)

    Ytt = ys + bc2
    Yff = Ytt / (tap * np.conj(tap))
    Yft = -ys / np.conj(tap)
    Ytf = -ys / tap

    # bus shunts at V = 1 p.u.
    Yshunt_bus = (bus[:, matpower_buses.GS] + 1j * bus[:, matpower_buses.BS]) / baseMVA

    Cf, Ct = get_branch_bus_connectivity(nb, F, T, active)

    # compose the matrices
    Yf = (sp.diags(Yff) @ Cf + sp.diags(Yft) @ Ct).tocsc()
    Yt = (sp.diags(Ytf) @ Cf + sp.diags(Ytt) @ Ct).tocsc()
    Ybus = (Cf.T @ Yf + Ct.T @ Yt + sp.diags(Yshunt_bus)).tocsc()

    return AdmittanceMatrices(Ybus=Ybus, Yf=Yf, Yt=Yt, Cf=Cf, Ct=Ct, F=F, T=T,
                              yff=Yff, yft=Yft, ytf=Ytf, ytt=Ytt,
                              Yshunt_bus=Yshunt_bus,
                              contingency_branch=contingency_branch)


class ConnectivityMatrices:
    """
    Structural (0/1) incidence matrices used to declare the sparsity of the
    OPF Jacobian and Hessian:

        Cf, Ct: branch - bus "from" / "to"
        Cl = Cf + Ct
        Cb = Cl'Cl + I (bus adjacency with the diagonal)
        Cg: bus - generator
        Cl2: rows of Cl for the flow limited branches
    """

    def __init__(self, Cf: CscMat, Ct: CscMat, Cg: CscMat, il: IntVec,
                 outaged_branch: Union[int, None] = None):
        """

        :param Cf: branch - bus "from" connectivity (branch states applied)
        :param Ct: branch - bus "to" connectivity (branch states applied)
        :param Cg: bus - generator connectivity
        :param il: indices of the flow limited branches
        :param outaged_branch: branch removed in this view (None for the base case)
        """
        self.Cf = Cf.tocsc()
        self.Ct = Ct.tocsc()
        self.Cg = Cg.tocsc()
        self.il = il
        self.outaged_branch = outaged_branch

        self.Cl = self.structural(self.Cf + self.Ct)
        self.Cb = self.structural(self.Cl.T @ self.Cl + sp.eye(self.nbus, format='csc'))
        self.Cl2 = self.structural(self.Cl[il, :])

    @staticmethod
    def structural(M) -> CscMat:
        """
        Get the boolean structure of a matrix (ones where M is nonzero)
        :param M: sparse matrix
        :return: csc matrix of ones
        """
        M = sp.csc_matrix(M)
        M.eliminate_zeros()
        M.data = np.ones_like(M.data, dtype=float)
        return M

    @property
    def nbus(self) -> int:
        return self.Cf.shape[1]

    @property
    def nbranch(self) -> int:
        return self.Cf.shape[0]

    def get_contingency_view(self, branch_idx: Union[int, None]) -> "ConnectivityMatrices":
        """
        Get the connectivity without one branch.
        The branch keeps its row in Cl and Cl2 but the row becomes empty, so the
        number of flow limit rows does not change with the contingency. Cb is rebuilt
        from the reduced Cl, so parallel branches keep their buses connected.
        :param branch_idx: branch to remove (None returns a copy of this view)
        :return: ConnectivityMatrices
        """
        if branch_idx is None:
            return ConnectivityMatrices(Cf=self.Cf, Ct=self.Ct, Cg=self.Cg, il=self.il)

        keep = np.ones(self.nbranch)
        keep[branch_idx] = 0.0
        D = sp.diags(keep)
        return ConnectivityMatrices(Cf=D @ self.Cf, Ct=D @ self.Ct, Cg=self.Cg, il=self.il,
                                    outaged_branch=branch_idx)

    def get_islands(self):
        """
        Get the islands of this topology
        :return: list of arrays of bus indices
        """
        adj = get_adjacency_matrix(self.Cl, bus_active=np.ones(self.nbus, dtype=int))
        return find_islands(adj, active=np.ones(self.nbus, dtype=int))

    def is_islanded(self, logger: Logger = Logger()) -> bool:
        """
        Does this topology split the grid?
        :param logger: Logger
        :return: True if there is more than one island
        """
        islands = self.get_islands()
        if len(islands) > 1:
            if self.outaged_branch is None:
                logger.add_warning('The base topology is split in islands',
                                   value=len(islands), expected_value=1)
            else:
                logger.add_warning('Contingency splits the grid in islands',
                                   device=self.outaged_branch, device_class='Branch',
                                   value=len(islands), expected_value=1)
            return True
        return False
