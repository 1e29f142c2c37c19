# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from typing import Tuple, Union
import numpy as np
import scipy.sparse as sp
from ScopfEngine.basic_structures import Logger, Vec, IntVec, Mat, StrVec, CscMat
from ScopfEngine.enumerations import BusMode
from ScopfEngine.exceptions import (ReferenceGeneratorError, BranchRatingError, CostModelError,
                                    CaseFormatError)
import ScopfEngine.IO.matpower.matpower_bus_definitions as matpower_buses
import ScopfEngine.IO.matpower.matpower_branch_definitions as matpower_branches
import ScopfEngine.IO.matpower.matpower_gen_definitions as matpower_gen


class MatpowerCase:
    """
    MATPOWER case tables (baseMVA, bus, gen, branch, gencost).
    All the network accessors used by the OPF formulations live here and are
    pure functions of the tables
    """

    def __init__(self,
                 baseMVA: float,
                 bus: Mat,
                 gen: Mat,
                 branch: Mat,
                 gencost: Mat,
                 bus_names: Union[StrVec, None] = None,
                 name: str = '',
                 bus_ids: Union[IntVec, None] = None):
        """

        :param baseMVA: system base power (MVA)
        :param bus: bus table
        :param gen: generator table
        :param branch: branch table
        :param gencost: generator cost table
        :param bus_names: optional bus names
        :param name: case name
        :param bus_ids: external bus numbers (set by to_internal)
        """
        self.name = name
        self.baseMVA = float(baseMVA)
        self.bus = np.array(bus, dtype=float)
        self.gen = np.array(gen, dtype=float)
        self.branch = np.array(branch, dtype=float)
        self.gencost = np.array(gencost, dtype=float)
        self.bus_names = bus_names
        self.bus_ids = bus_ids

    @property
    def nbus(self) -> int:
        return self.bus.shape[0]

    @property
    def ngen(self) -> int:
        return self.gen.shape[0]

    @property
    def nbranch(self) -> int:
        return self.branch.shape[0]

    @property
    def is_internal(self) -> bool:
        """
        Has this case been renumbered already?
        """
        return self.bus_ids is not None

    def copy(self) -> "MatpowerCase":
        """
        Deep copy of the case
        :return: MatpowerCase
        """
        return MatpowerCase(baseMVA=self.baseMVA,
                            bus=self.bus.copy(),
                            gen=self.gen.copy(),
                            branch=self.branch.copy(),
                            gencost=self.gencost.copy(),
                            bus_names=None if self.bus_names is None else self.bus_names.copy(),
                            name=self.name,
                            bus_ids=None if self.bus_ids is None else self.bus_ids.copy())

    def to_internal(self, logger: Logger = Logger()) -> "MatpowerCase":
        """
        Get a copy with consecutive zero-based bus indices and without the
        out of service generators (and their cost rows)
        :param logger: Logger
        :return: MatpowerCase
        """
        if self.is_internal:
            return self.copy()

        bus = self.bus.copy()
        gen = self.gen.copy()
        branch = self.branch.copy()

        ext = bus[:, matpower_buses.BUS_I].astype(int)
        if len(np.unique(ext)) != len(ext):
            raise CaseFormatError(['bus'], message="Repeated bus numbers")

        bus_dict = {e: i for i, e in enumerate(ext)}

        try:
            bus[:, matpower_buses.BUS_I] = np.arange(len(ext))
            gen[:, matpower_gen.GEN_BUS] = [bus_dict[int(b)] for b in gen[:, matpower_gen.GEN_BUS]]
            branch[:, matpower_branches.F_BUS] = [bus_dict[int(b)] for b in branch[:, matpower_branches.F_BUS]]
            branch[:, matpower_branches.T_BUS] = [bus_dict[int(b)] for b in branch[:, matpower_branches.T_BUS]]
        except KeyError as e:
            logger.add_error('Element connected to a bus that does not exist', value=e.args[0])
            raise CaseFormatError(['bus'], message="Unknown bus number {}".format(e.args[0]))

        # out of service generators
        ng = gen.shape[0]
        gencost = self.gencost.copy()
        on = gen[:, matpower_gen.GEN_STATUS] > 0
        for g in np.where(~on)[0]:
            logger.add_info('Generator out of service removed', device=g,
                            device_class='Generator', value=int(ext[int(gen[g, matpower_gen.GEN_BUS])]))

        if gencost.shape[0] >= ng:
            rows = np.where(on)[0]
            if gencost.shape[0] >= 2 * ng:
                # keep the reactive cost rows aligned with their generators
                rows = np.r_[rows, rows + ng]
            gencost = gencost[rows, :]

        n_off = int(np.sum(branch[:, matpower_branches.BR_STATUS] == 0))
        if n_off:
            logger.add_info('Out of service branches contribute no admittance', value=n_off)

        return MatpowerCase(baseMVA=self.baseMVA,
                            bus=bus,
                            gen=gen[on, :],
                            branch=branch,
                            gencost=gencost,
                            bus_names=self.bus_names,
                            name=self.name,
                            bus_ids=ext)

    def get_bus_types(self) -> IntVec:
        return self.bus[:, matpower_buses.BUS_TYPE].astype(int)

    def get_bus_indices_of_type(self, tpe: BusMode) -> Tuple[IntVec, IntVec]:
        """
        Get the indices of the buses of a type and of the rest
        :param tpe: BusMode
        :return: indices of the type, indices of the rest
        """
        mask = self.get_bus_types() == tpe.value
        return np.where(mask)[0], np.where(~mask)[0]

    def get_ref_bus(self) -> int:
        """
        Get the reference (slack) bus
        :return: bus index
        """
        ref, _ = self.get_bus_indices_of_type(BusMode.Slack_tpe)
        if len(ref) != 1:
            raise ReferenceGeneratorError(len(ref), message="Exactly one reference bus is supported")
        return int(ref[0])

    def get_generator_buses(self) -> IntVec:
        return self.gen[:, matpower_gen.GEN_BUS].astype(int)

    def get_ref_gens(self) -> Tuple[IntVec, IntVec]:
        """
        Get the generators connected at the reference bus
        :return: reference generator indices (exactly one), non reference generator indices
        """
        ref_bus = self.get_ref_bus()
        mask = self.get_generator_buses() == ref_bus
        ref = np.where(mask)[0]
        if len(ref) != 1:
            raise ReferenceGeneratorError(len(ref))
        return ref, np.where(~mask)[0]

    def get_generator_bus_connectivity(self) -> CscMat:
        """
        Generator to bus incidence matrix
        :return: Cg (nbus, ngen)
        """
        ng = self.ngen
        return sp.csc_matrix((np.ones(ng), (self.get_generator_buses(), np.arange(ng))),
                             shape=(self.nbus, ng))

    def get_branch_ratings(self) -> Vec:
        """
        Get the validated RATE_A values.
        inf means that the branch flow is not limited, anything else must be a positive number
        :return: ratings in MVA
        """
        rate = self.branch[:, matpower_branches.RATE_A].copy()
        bad = np.isnan(rate) | (rate <= 0)
        if bad.any():
            raise BranchRatingError(np.where(bad)[0])
        return rate

    def get_constrained_branches(self) -> IntVec:
        """
        Indices of the in service branches with a finite flow limit
        :return: array of branch indices
        """
        rate = self.get_branch_ratings()
        active = self.branch[:, matpower_branches.BR_STATUS] > 0
        return np.where(np.isfinite(rate) & active)[0]

    def get_polynomial_costs(self, logger: Logger = Logger()) -> Mat:
        """
        Get the active power cost coefficients.
        :param logger: Logger
        :return: matrix (ngen, n) of coefficients sorted by increasing power of Pg (MW)
        """
        ng = self.ngen
        if self.gencost.shape[0] < ng:
            raise CaseFormatError(['gencost'], message="There are fewer cost rows than generators")

        if self.gencost.shape[0] > ng:
            logger.add_warning('Reactive power costs are ignored', device_class='gencost',
                               value=self.gencost.shape[0] - ng)

        cost = self.gencost[:ng, :]
        models = cost[:, matpower_gen.MODEL].astype(int)
        bad = models != matpower_gen.POLYNOMIAL
        if bad.any():
            raise CostModelError(int(models[bad][0]))

        n = cost[:, matpower_gen.NCOST].astype(int)
        n_max = max(int(n.max()), 1)
        coeffs = np.zeros((ng, n_max))
        for g in range(ng):
            c = cost[g, matpower_gen.COST:matpower_gen.COST + n[g]]
            coeffs[g, :n[g]] = c[::-1]

        return coeffs
