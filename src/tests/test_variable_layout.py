# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import pytest
from ScopfEngine.enumerations import VariableRole
from ScopfEngine.Simulations.OPF.NumericalMethods.variable_layout import StandardLayout, VariableLayout


@pytest.mark.parametrize("nbus, ngen, pv, ref_bus, ref_gen, n_scenarios", [
    (3, 2, [1], 0, 0, 1),
    (3, 2, [1], 0, 0, 4),
    (9, 3, [1, 2], 0, 0, 7),
    (5, 3, [2, 4], 3, 1, 3),
    (4, 1, [], 0, 0, 2),
])
def test_layout_partition(nbus, ngen, pv, ref_bus, ref_gen, n_scenarios):
    """
    Every position of x belongs to exactly one role and the scenario maps are consistent
    """
    layout = VariableLayout(nbus=nbus, ngen=ngen, nbranch=nbus, n_scenarios=n_scenarios,
                            ref_bus=ref_bus, ref_gen=ref_gen, pv=np.array(pv, dtype=int))
    npv = len(pv)

    assert layout.n_local == 2 * nbus - npv + ngen + 1
    assert layout.n_global == npv + ngen - 1
    assert layout.n_total == n_scenarios * (2 * nbus - npv + ngen + 1) + npv + ngen - 1

    # the roles split x without overlaps
    positions = list()
    for i in range(n_scenarios):
        for role in (VariableRole.Va, VariableRole.VmNonPV, VariableRole.Qg, VariableRole.PgRef):
            positions.append(layout.get_role_indices(role, i))
    positions.append(layout.get_role_indices(VariableRole.VmPV))
    positions.append(layout.get_role_indices(VariableRole.PgNonRef))
    positions = np.concatenate(positions)
    assert np.array_equal(np.sort(positions), np.arange(layout.n_total))

    seen = np.zeros(layout.n_total, dtype=int)
    for i in range(n_scenarios):
        idx = layout.get_global_indices(i)
        assert len(idx) == layout.n_opf
        assert len(np.unique(idx)) == layout.n_opf
        seen[idx] += 1

        # the local block of the scenario is exactly its non shared variables
        local = np.setdiff1d(idx, layout.get_shared_indices())
        assert np.array_equal(local, layout.get_local_indices(i))

    # shared variables are seen by every scenario, the local ones by a single scenario
    assert np.all(seen[layout.get_shared_indices()] == n_scenarios)
    assert np.all(seen[:layout.global_offset] == 1)


def test_layout_roles_in_opf_order():
    pv = np.array([1, 2])
    layout = VariableLayout(nbus=4, ngen=3, nbranch=4, n_scenarios=2, ref_bus=0, ref_gen=0, pv=pv)
    nb = 4
    ng = 3
    for i in range(2):
        idx = layout.get_global_indices(i)
        Vm = idx[nb:2 * nb]
        Pg = idx[2 * nb:2 * nb + ng]

        assert np.array_equal(idx[:nb], layout.get_role_indices(VariableRole.Va, i))
        assert np.array_equal(Vm[pv], layout.get_role_indices(VariableRole.VmPV))
        assert np.array_equal(Vm[[0, 3]], layout.get_role_indices(VariableRole.VmNonPV, i))
        assert Pg[0] == layout.get_role_indices(VariableRole.PgRef, i)[0]
        assert np.array_equal(Pg[1:], layout.get_role_indices(VariableRole.PgNonRef))
        assert np.array_equal(idx[2 * nb + ng:], layout.get_role_indices(VariableRole.Qg, i))


def test_compose_and_extract():
    layout = VariableLayout(nbus=3, ngen=2, nbranch=3, n_scenarios=3, ref_bus=0, ref_gen=0, pv=np.array([1]))
    x_opf = np.arange(layout.n_opf, dtype=float) + 1.0
    x = layout.compose(x_opf)

    assert len(x) == layout.n_total
    for i in range(3):
        assert np.allclose(layout.get_scenario_point(x, i), x_opf)


def test_single_scenario_layouts_have_the_same_size():
    std = StandardLayout(nbus=9, ngen=3, nbranch=9, ref_bus=0)
    sc = VariableLayout(nbus=9, ngen=3, nbranch=9, n_scenarios=1, ref_bus=0, ref_gen=0, pv=np.array([1, 2]))

    assert std.n_total == sc.n_total == 24
    assert np.array_equal(std.get_global_indices(0), np.arange(24))
    assert np.array_equal(std.get_ref_angle_positions(), [0])
    assert np.array_equal(sc.get_ref_angle_positions(), [0])
