# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import List, Sequence, Union
import scipy.sparse as sp
from ScopfEngine.basic_structures import Vec, Logger
from ScopfEngine.DataStructures.matpower_case import MatpowerCase
from ScopfEngine.Simulations.OPF.NumericalMethods.ac_opf_problem import AcOpfProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.scenarios import Scenario, build_scenarios
from ScopfEngine.Simulations.OPF.NumericalMethods.variable_layout import VariableLayout
from ScopfEngine.Simulations.OPF.NumericalMethods.bounds import BOUND_INFINITY


class ScopfProblem(AcOpfProblem):
    """
    Security constrained AC optimal power flow.

    One scenario per contingency (plus the nominal one) with its own angles,
    non PV voltage modules, reactive powers and reference generator power;
    the PV voltage modules and the rest of the active powers are shared.
    The cost is the one of the nominal scenario.
    """

    def __init__(self,
                 case: MatpowerCase,
                 contingencies: Sequence[int] = (),
                 A: Union[sp.spmatrix, None] = None,
                 l: Union[Vec, None] = None,
                 u: Union[Vec, None] = None,
                 logger: Logger = Logger(),
                 bound_infinity: float = BOUND_INFINITY):
        """

        :param case: MatpowerCase
        :param contingencies: zero based indices of the branches to outage, one scenario each
        :param A: optional linear constraints matrix over the full decision vector
        :param l: lower bounds of A x
        :param u: upper bounds of A x
        :param logger: Logger
        :param bound_infinity: magnitude from which a bound is considered infinite
        """
        self.contingencies = list(contingencies)

        AcOpfProblem.__init__(self, case=case, A=A, l=l, u=u, logger=logger, bound_infinity=bound_infinity)

        self.islanding = [conn.is_islanded(logger) for conn in self.connectivity]

    def create_scenarios(self) -> List[Scenario]:
        return build_scenarios(self.contingencies, self.data.nbranch)

    def create_layout(self) -> VariableLayout:
        return VariableLayout(nbus=self.data.nbus,
                              ngen=self.data.ngen,
                              nbranch=self.data.nbranch,
                              n_scenarios=len(self.scenarios),
                              ref_bus=self.data.ref_bus,
                              ref_gen=self.data.ref_gen,
                              pv=self.data.pv)

    def get_islanding_contingencies(self) -> List[int]:
        """
        Branches whose outage splits the grid
        """
        return [sc.outaged_branch for sc, isl in zip(self.scenarios, self.islanding) if isl]
