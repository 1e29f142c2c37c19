# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
Position of every OPF variable in the flat decision vector.

The standard OPF uses x = [Va, Vm, Pg, Qg].

The security constrained OPF stacks one local block per scenario

    [Va (all buses), Vm (non PV buses), Qg (all generators), Pg (reference generator)]

and appends, once, the variables shared by all the scenarios

    [Vm (PV buses), Pg (non reference generators)]
"""
from typing import Dict
import numpy as np
from ScopfEngine.basic_structures import IntVec, Vec
from ScopfEngine.enumerations import VariableRole


class StandardLayout:
    """
    Layout of the single scenario OPF: x = [Va, Vm, Pg, Qg]
    """

    def __init__(self, nbus: int, ngen: int, nbranch: int, ref_bus: int):
        self.nbus = nbus
        self.ngen = ngen
        self.nbranch = nbranch
        self.ref_bus = ref_bus
        self.n_scenarios = 1

    @property
    def n_opf(self) -> int:
        """
        Number of variables of one scenario in the standard OPF order
        """
        return 2 * self.nbus + 2 * self.ngen

    @property
    def n_total(self) -> int:
        return self.n_opf

    def get_global_indices(self, scenario_idx: int) -> IntVec:
        """
        Positions in x of the OPF variables [Va, Vm, Pg, Qg] of a scenario
        :param scenario_idx: scenario index
        :return: integer array of size 2 nbus + 2 ngen
        """
        return np.arange(self.n_opf)

    def get_ref_angle_positions(self) -> IntVec:
        """
        Positions in x of the reference bus angle of every scenario
        """
        return np.array([self.get_global_indices(i)[self.ref_bus] for i in range(self.n_scenarios)], dtype=int)

    def get_angle_positions(self) -> IntVec:
        """
        Positions in x of all the voltage angles of every scenario
        """
        return np.concatenate([self.get_global_indices(i)[:self.nbus] for i in range(self.n_scenarios)])

    def get_scenario_point(self, x: Vec, scenario_idx: int) -> Vec:
        """
        Extract the OPF point [Va, Vm, Pg, Qg] of a scenario
        :param x: full decision vector
        :param scenario_idx: scenario index
        :return: vector of size 2 nbus + 2 ngen
        """
        return x[self.get_global_indices(scenario_idx)]

    def compose(self, x_opf: Vec) -> Vec:
        """
        Build a full vector by writing the same OPF point in every scenario
        :param x_opf: vector in the standard OPF order
        :return: full decision vector
        """
        x = np.empty(self.n_total)
        for i in range(self.n_scenarios):
            x[self.get_global_indices(i)] = x_opf
        return x


class VariableLayout(StandardLayout):
    """
    Layout of the security constrained OPF with local and global variables
    """

    def __init__(self, nbus: int, ngen: int, nbranch: int, n_scenarios: int,
                 ref_bus: int, ref_gen: int, pv: IntVec):
        """

        :param nbus: number of buses
        :param ngen: number of generators
        :param nbranch: number of branches
        :param n_scenarios: number of scenarios (nominal included)
        :param ref_bus: reference bus index
        :param ref_gen: reference generator index
        :param pv: PV bus indices
        """
        StandardLayout.__init__(self, nbus=nbus, ngen=ngen, nbranch=nbranch, ref_bus=ref_bus)
        self.n_scenarios = n_scenarios
        self.ref_gen = int(ref_gen)
        self.pv = np.sort(np.asarray(pv, dtype=int))
        self.non_pv = np.setdiff1d(np.arange(nbus), self.pv)
        self.non_ref_gens = np.setdiff1d(np.arange(ngen), [self.ref_gen])

        self.npv = len(self.pv)
        self.n_local = nbus + len(self.non_pv) + ngen + 1
        self.n_global = self.npv + ngen - 1

        # role ranges inside a local block and inside the global block
        self._local_slices: Dict[VariableRole, slice] = dict()
        a = 0
        for role, n in ((VariableRole.Va, nbus),
                        (VariableRole.VmNonPV, len(self.non_pv)),
                        (VariableRole.Qg, ngen),
                        (VariableRole.PgRef, 1)):
            self._local_slices[role] = slice(a, a + n)
            a += n

        self._global_slices: Dict[VariableRole, slice] = {
            VariableRole.VmPV: slice(0, self.npv),
            VariableRole.PgNonRef: slice(self.npv, self.npv + ngen - 1)
        }

    @property
    def n_total(self) -> int:
        return self.n_scenarios * self.n_local + self.n_global

    @property
    def global_offset(self) -> int:
        return self.n_scenarios * self.n_local

    def local_role_slice(self, role: VariableRole) -> slice:
        """
        Range of a role inside a local block
        :param role: VariableRole
        :return: slice
        """
        if role in self._local_slices:
            return self._local_slices[role]
        return self._global_slices[role]

    def get_local_indices(self, scenario_idx: int) -> IntVec:
        """
        Positions in x of the local block of a scenario
        """
        a = scenario_idx * self.n_local
        return np.arange(a, a + self.n_local)

    def get_shared_indices(self) -> IntVec:
        """
        Positions in x of the variables shared by all the scenarios
        """
        return np.arange(self.global_offset, self.n_total)

    def get_role_indices(self, role: VariableRole, scenario_idx: int = 0) -> IntVec:
        """
        Positions in x of a role
        :param role: VariableRole
        :param scenario_idx: scenario index (ignored for the shared roles)
        :return: integer array
        """
        sl = self.local_role_slice(role)
        if role in self._local_slices:
            a = scenario_idx * self.n_local
        else:
            a = self.global_offset
        return np.arange(a + sl.start, a + sl.stop)

    def get_global_indices(self, scenario_idx: int) -> IntVec:
        """
        Positions in x of the OPF variables [Va, Vm, Pg, Qg] of a scenario
        :param scenario_idx: scenario index
        :return: integer array of size 2 nbus + 2 ngen
        """
        nb = self.nbus
        ng = self.ngen
        idx = np.empty(self.n_opf, dtype=int)

        # Va
        idx[:nb] = self.get_role_indices(VariableRole.Va, scenario_idx)

        # Vm
        vm = idx[nb:2 * nb]
        vm[self.non_pv] = self.get_role_indices(VariableRole.VmNonPV, scenario_idx)
        vm[self.pv] = self.get_role_indices(VariableRole.VmPV)

        # Pg
        pg = idx[2 * nb:2 * nb + ng]
        pg[self.ref_gen] = self.get_role_indices(VariableRole.PgRef, scenario_idx)[0]
        pg[self.non_ref_gens] = self.get_role_indices(VariableRole.PgNonRef)

        # Qg
        idx[2 * nb + ng:] = self.get_role_indices(VariableRole.Qg, scenario_idx)

        return idx
