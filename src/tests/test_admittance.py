# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import os
import numpy as np
from ScopfEngine.basic_structures import Logger
from ScopfEngine.api import open_file
from ScopfEngine.Topology.admittance_matrices import compute_admittances, ConnectivityMatrices


def test_ybus_symmetric_without_shifters(three_bus_case):
    adm = compute_admittances(three_bus_case.baseMVA, three_bus_case.bus, three_bus_case.branch)
    Y = adm.Ybus.toarray()

    assert Y.shape == (3, 3)
    assert np.allclose(Y, Y.T)

    # with flat voltages only the line charging remains: two branches of b = 0.02 per bus
    assert np.allclose(Y @ np.ones(3), 1j * 0.02 * np.ones(3))


def test_branch_flows_match_ybus(three_bus_case):
    adm = compute_admittances(three_bus_case.baseMVA, three_bus_case.bus, three_bus_case.branch)
    V = np.array([1.0, 0.98 * np.exp(-0.05j), 0.96 * np.exp(-0.1j)])

    Sbus = V * np.conj(adm.Ybus @ V)
    Sf = V[adm.F] * np.conj(adm.Yf @ V)
    St = V[adm.T] * np.conj(adm.Yt @ V)
    Sbus_br = adm.Cf.T @ Sf + adm.Ct.T @ St

    assert np.allclose(Sbus, Sbus_br)


def test_contingency_removes_branch(three_bus_case):
    adm0 = compute_admittances(three_bus_case.baseMVA, three_bus_case.bus, three_bus_case.branch)
    adm1 = compute_admittances(three_bus_case.baseMVA, three_bus_case.bus, three_bus_case.branch,
                               contingency_branch=0)

    assert adm1.contingency_branch == 0
    assert adm1.Cf[0, :].nnz == 0
    assert adm1.Ct[0, :].nnz == 0
    assert np.allclose(adm1.Yf[0, :].toarray(), 0)

    # the difference is the two port model of the removed branch
    ys = 1.0 / (0.01 + 0.05j)
    dY = (adm0.Ybus - adm1.Ybus).toarray()
    expected = np.zeros((3, 3), dtype=complex)
    expected[0, 0] = ys + 0.01j
    expected[1, 1] = ys + 0.01j
    expected[0, 1] = -ys
    expected[1, 0] = -ys
    assert np.allclose(dY, expected)

    # the rest of the branches are untouched
    assert np.allclose(adm0.Yf[1:, :].toarray(), adm1.Yf[1:, :].toarray())


def test_contingency_view(three_bus_case):
    adm = compute_admittances(three_bus_case.baseMVA, three_bus_case.bus, three_bus_case.branch)
    conn = ConnectivityMatrices(Cf=adm.Cf, Ct=adm.Ct, Cg=three_bus_case.get_generator_bus_connectivity(),
                                il=three_bus_case.get_constrained_branches())
    view = conn.get_contingency_view(2)

    assert view.outaged_branch == 2
    assert view.Cl2.shape == conn.Cl2.shape
    assert view.Cl[2, :].nnz == 0

    # buses 0 and 2 are no longer directly connected
    assert conn.Cb[0, 2] != 0
    assert view.Cb[0, 2] == 0
    assert view.Cb[0, 0] != 0

    assert not view.is_islanded()


def test_case9_islanding_contingencies(root_path):
    case = open_file(os.path.join(root_path, 'data', 'case9.m'))
    adm = compute_admittances(case.baseMVA, case.bus, case.branch)
    conn = ConnectivityMatrices(Cf=adm.Cf, Ct=adm.Ct, Cg=case.get_generator_bus_connectivity(),
                                il=case.get_constrained_branches())

    logger = Logger()
    islanding = [k for k in range(case.nbranch) if conn.get_contingency_view(k).is_islanded(logger)]

    assert islanding == [0, 3, 6]
    assert logger.warning_count() == 3
    assert len(conn.get_islands()) == 1


def test_islanded_base_topology(root_path):
    case = open_file(os.path.join(root_path, 'data', 'case9.m'))
    adm = compute_admittances(case.baseMVA, case.bus, case.branch)
    conn = ConnectivityMatrices(Cf=adm.Cf, Ct=adm.Ct, Cg=case.get_generator_bus_connectivity(),
                                il=case.get_constrained_branches())
    view = conn.get_contingency_view(0)
    base = ConnectivityMatrices(Cf=view.Cf, Ct=view.Ct, Cg=view.Cg, il=view.il)

    logger = Logger()
    assert base.is_islanded(logger)
    assert view.is_islanded(logger)

    assert logger[0].msg == 'The base topology is split in islands'
    assert logger[0].device == ''
    assert logger[1].msg == 'Contingency splits the grid in islands'
    assert logger[1].device == 0
