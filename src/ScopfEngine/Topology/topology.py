# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import List
import numpy as np
import numba as nb
from scipy.sparse import csc_matrix, diags
from ScopfEngine.basic_structures import IntVec


@nb.njit(cache=True)
def find_islands_numba(node_number: int, indptr: IntVec, indices: IntVec, active: IntVec) -> List[IntVec]:
    """
    Method to get the islands of a graph
    This is the non-recursive version
    :param node_number: number of nodes
    :param indptr: index pointers in the CSC scheme
    :param indices: row indices in the CSC scheme
    :param active: array of node active
    :return: list of islands, where each element is a list of the node indices of the island
    """

    visited = np.zeros(node_number, dtype=np.int32)
    islands = list()
    current_island = np.empty(node_number, dtype=np.int64)
    node_count = 0

    for node in range(node_number):

        if not visited[node] and active[node]:

            # depth first search from "node"
            stack = list()
            stack.append(node)

            while len(stack) > 0:

                v = stack.pop()

                if not visited[v]:
                    visited[v] = 1
                    current_island[node_count] = v
                    node_count += 1

                    for i in range(indptr[v], indptr[v + 1]):
                        k = indices[i]
                        if not visited[k] and active[k]:
                            stack.append(k)

            island = current_island[:node_count].copy()
            island.sort()
            islands.append(island)

            # current_island is overwritten by the next search
            node_count = 0

    return islands


def find_islands(adj: csc_matrix, active: IntVec) -> List[IntVec]:
    """
    Method to get the islands of a graph
    :param adj: adjacency
    :param active: active state of the nodes
    :return: list of islands, where each element is a list of the node indices of the island
    """
    if adj.format != "csc":
        adj = adj.tocsc()

    return find_islands_numba(node_number=adj.shape[0],
                              indptr=adj.indptr.astype(np.int64),
                              indices=adj.indices.astype(np.int64),
                              active=np.asarray(active, dtype=np.int64))


def get_adjacency_matrix(C_branch_bus: csc_matrix, bus_active: IntVec) -> csc_matrix:
    """
    Compute the bus-bus adjacency matrix
    :param C_branch_bus: Branch-bus connectivity matrix (Cf + Ct with the branch states applied)
    :param bus_active: array of buses availability
    :return: Adjacency matrix
    """
    return (diags(bus_active) @ (C_branch_bus.T @ C_branch_bus)).tocsc()
