# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
from typing import Union
from collections.abc import Callable
from scipy.sparse import csc_matrix
from scipy.sparse.linalg import spsolve as scipy_spsolve, splu
from ScopfEngine.basic_structures import Vec, Mat
from ScopfEngine.enumerations import SparseSolver


# list of available linear algebra frameworks
available_sparse_solvers = [SparseSolver.SuperLU, SparseSolver.UMFPACK]

try:
    from pypardiso import spsolve as pardiso_spsolve

    available_sparse_solvers.append(SparseSolver.Pardiso)
except ImportError:
    pass

preferred_type = SparseSolver.SuperLU


def super_lu_linsolver(A: csc_matrix, b: Union[Vec, Mat]) -> Union[Vec, Mat]:
    """
    SuperLU wrapper function for linear system solve A x = b
    :param A: System matrix
    :param b: right hand side
    :return: solution
    """
    return splu(A.tocsc()).solve(b)


def pardiso_linsolver(A: csc_matrix, b: Union[Vec, Mat]) -> Union[Vec, Mat]:
    """
    Pardiso wrapper function for linear system solve A x = b
    :param A: System matrix
    :param b: right hand side
    :return: solution
    """
    return pardiso_spsolve(A.tocsr(), b)


def get_linear_solver(solver_type: SparseSolver = preferred_type) -> Callable[[csc_matrix, Union[Vec, Mat]],
                                                                              Union[Vec, Mat]]:
    """
    Provide the chosen linear solver function pointer to
    solve linear systems of the type A x = b, with x = f(A,b)
    :param solver_type: SparseSolver option
    :return: function pointer f(A, b)
    """
    if solver_type in available_sparse_solvers:

        if solver_type == SparseSolver.UMFPACK:
            return scipy_spsolve

        elif solver_type == SparseSolver.SuperLU:
            return super_lu_linsolver

        elif solver_type == SparseSolver.Pardiso:
            return pardiso_linsolver

        else:
            raise Exception('Unrecognized LU solver')

    else:
        return scipy_spsolve
