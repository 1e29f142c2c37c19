# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from scipy.sparse import csc_matrix, bmat, diags as sp_diags
from ScopfEngine.basic_structures import Vec


def diags(array: Vec) -> csc_matrix:
    """
    Diagonal matrix in CSC format
    :param array: diagonal values
    :return: csc_matrix
    """
    return sp_diags(array, format='csc')


def pack_3_by_4(A: csc_matrix, B: csc_matrix, C: csc_matrix) -> csc_matrix:
    """
    Pack three matrices in the saddle point form:

        | A  B |
        | C  0 |

    :param A: square block (n x n)
    :param B: (n x m)
    :param C: (m x n)
    :return: csc_matrix (n + m, n + m)
    """
    m = C.shape[0]
    return bmat([[A, B], [C, csc_matrix((m, m))]], format='csc')
