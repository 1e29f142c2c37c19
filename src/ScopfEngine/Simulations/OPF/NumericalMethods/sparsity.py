# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
Constant sparsity structures of the constraint Jacobian and of the
lower triangular Lagrangian Hessian.

The structures are declared once from the connectivity of every scenario,
written in the standard OPF order and moved to the decision vector through the
layout of each scenario. The numeric matrices are scattered into them.
"""
from typing import List, Union
import numpy as np
import scipy.sparse as sp
from ScopfEngine.basic_structures import IntVec, Vec, CsrMat
from ScopfEngine.exceptions import SparsityPatternError
from ScopfEngine.Topology.admittance_matrices import ConnectivityMatrices
from ScopfEngine.Simulations.OPF.NumericalMethods.variable_layout import StandardLayout


class SparsityPattern:
    """
    Sorted (row, col) structure of a sparse matrix in CSR order
    """

    def __init__(self, rows: IntVec, cols: IntVec, shape, name: str = ''):
        """

        :param rows: row indices (repetitions allowed)
        :param cols: column indices (repetitions allowed)
        :param shape: matrix shape
        :param name: name used in the error messages
        """
        self.name = name
        self.shape = (int(shape[0]), int(shape[1]))
        n_cols = np.int64(self.shape[1])

        keys = np.unique(np.asarray(rows, dtype=np.int64) * n_cols + np.asarray(cols, dtype=np.int64))
        self.keys = keys
        self.rows = (keys // n_cols).astype(np.int64)
        self.cols = (keys % n_cols).astype(np.int64)

        self.indptr = np.zeros(self.shape[0] + 1, dtype=np.int64)
        np.add.at(self.indptr, self.rows + 1, 1)
        self.indptr = np.cumsum(self.indptr)

    @property
    def nnz(self) -> int:
        return len(self.keys)

    def positions(self, rows: IntVec, cols: IntVec) -> IntVec:
        """
        Get the positions of entries in the structure
        :param rows: row indices
        :param cols: column indices
        :return: positions (raises SparsityPatternError if some entry is not in the structure)
        """
        k = np.asarray(rows, dtype=np.int64) * np.int64(self.shape[1]) + np.asarray(cols, dtype=np.int64)
        pos = np.searchsorted(self.keys, k)
        pos_c = np.minimum(pos, max(self.nnz - 1, 0))
        if self.nnz == 0:
            found = np.zeros(len(k), dtype=bool)
        else:
            found = self.keys[pos_c] == k
        if not found.all():
            raise SparsityPatternError(self.name, np.asarray(rows)[~found], np.asarray(cols)[~found])
        return pos

    def contains(self, rows: IntVec, cols: IntVec) -> bool:
        """
        Are all the given entries part of the structure?
        """
        try:
            self.positions(rows, cols)
            return True
        except SparsityPatternError:
            return False

    def scatter(self, rows: IntVec, cols: IntVec, values: Vec) -> Vec:
        """
        Accumulate triplets into a data array aligned with the structure.
        Zero values are skipped, so numerically cancelled entries are always accepted
        :param rows: row indices
        :param cols: column indices
        :param values: values
        :return: data array (nnz)
        """
        data = np.zeros(self.nnz)
        nz = values != 0.0
        pos = self.positions(np.asarray(rows)[nz], np.asarray(cols)[nz])
        np.add.at(data, pos, np.asarray(values)[nz])
        return data

    def to_csr(self, data: Union[Vec, None] = None) -> CsrMat:
        """
        Build the matrix with exactly this structure (explicit zeros kept)
        :param data: values aligned with the structure (ones if None)
        :return: csr_matrix
        """
        if data is None:
            data = np.ones(self.nnz)
        return sp.csr_matrix((data, self.cols, self.indptr), shape=self.shape)


def jacobian_opf_structure(conn: ConnectivityMatrices) -> sp.csc_matrix:
    """
    Structure of the Jacobian of one scenario in the OPF order [Va, Vm, Pg, Qg]:

        | Cb   Cb   Cg  0  |   P balance
        | Cb   Cb   0   Cg |   Q balance
        | Cl2  Cl2  0   0  |   |Sf|^2
        | Cl2  Cl2  0   0  |   |St|^2

    :param conn: ConnectivityMatrices of the scenario
    :return: structural matrix
    """
    ng = conn.Cg.shape[1]
    nl2 = conn.Cl2.shape[0]
    zl = sp.csc_matrix((nl2, ng))
    return sp.bmat([[conn.Cb, conn.Cb, conn.Cg, None],
                    [conn.Cb, conn.Cb, None, conn.Cg],
                    [conn.Cl2, conn.Cl2, zl, None],
                    [conn.Cl2, conn.Cl2, zl, None]], format='csc')


def hessian_opf_structure(conn: ConnectivityMatrices, with_cost: bool) -> sp.csc_matrix:
    """
    Structure of the Lagrangian Hessian of one scenario in the OPF order [Va, Vm, Pg, Qg]:

        | Cb  Cb  0  0 |
        | Cb  Cb  0  0 |
        | 0   0   I  0 |  (only when the scenario carries the objective)
        | 0   0   0  0 |

    :param conn: ConnectivityMatrices of the scenario
    :param with_cost: add the generation diagonal
    :return: structural matrix
    """
    ng = conn.Cg.shape[1]
    Pg_block = sp.eye(ng, format='csc') if with_cost else sp.csc_matrix((ng, ng))
    return sp.block_diag([sp.bmat([[conn.Cb, conn.Cb], [conn.Cb, conn.Cb]]),
                          Pg_block,
                          sp.csc_matrix((ng, ng))], format='csc')


def build_jacobian_pattern(connectivity: List[ConnectivityMatrices], layout: StandardLayout,
                           A: Union[sp.spmatrix, None] = None) -> SparsityPattern:
    """
    Jacobian structure of all the scenarios stacked (plus the optional linear rows)
    :param connectivity: ConnectivityMatrices of every scenario
    :param layout: variable layout
    :param A: optional linear constraints matrix (n_linear, n_total)
    :return: SparsityPattern
    """
    rows = list()
    cols = list()
    m = 0
    for i, conn in enumerate(connectivity):
        J = jacobian_opf_structure(conn).tocoo()
        x_idx = layout.get_global_indices(i)
        rows.append(J.row + m)
        cols.append(x_idx[J.col])
        m += J.shape[0]

    if A is not None:
        A = sp.coo_matrix(A)
        rows.append(A.row + m)
        cols.append(A.col)
        m += A.shape[0]

    return SparsityPattern(np.concatenate(rows), np.concatenate(cols),
                           shape=(m, layout.n_total), name='Jacobian')


def build_hessian_pattern(connectivity: List[ConnectivityMatrices], layout: StandardLayout) -> SparsityPattern:
    """
    Lower triangular Lagrangian Hessian structure of all the scenarios.
    The objective (and so the generation diagonal) belongs to the nominal scenario only.
    :param connectivity: ConnectivityMatrices of every scenario
    :param layout: variable layout
    :return: SparsityPattern
    """
    rows = list()
    cols = list()
    for i, conn in enumerate(connectivity):
        Hs = hessian_opf_structure(conn, with_cost=(i == 0)).tocoo()
        x_idx = layout.get_global_indices(i)
        r = x_idx[Hs.row]
        c = x_idx[Hs.col]
        lower = r >= c
        rows.append(r[lower])
        cols.append(c[lower])

    return SparsityPattern(np.concatenate(rows), np.concatenate(cols),
                           shape=(layout.n_total, layout.n_total), name='Hessian')
