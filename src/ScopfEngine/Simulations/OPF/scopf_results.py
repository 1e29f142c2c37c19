# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import List, Union
import numpy as np
import pandas as pd
from ScopfEngine.basic_structures import Vec, Mat, CxMat, StrVec, CscMat
from ScopfEngine.enumerations import IpsStatus
from ScopfEngine.Simulations.OPF.NumericalMethods.scenarios import Scenario


class ScopfResults:
    """
    Security constrained OPF results.
    The per scenario magnitudes have one row per scenario, the nominal one first
    """

    def __init__(self,
                 bus_names: StrVec,
                 scenarios: List[Scenario],
                 baseMVA: float,
                 x: Vec,
                 f: float,
                 success: bool,
                 status: IpsStatus,
                 iterations: int,
                 wall_time: float,
                 Va: Mat,
                 Vm: Mat,
                 Pg: Mat,
                 Qg: Mat,
                 Sf: CxMat,
                 St: CxMat,
                 x_min: Vec,
                 x_max: Vec,
                 lam_g: Vec,
                 z_lower: Vec,
                 z_upper: Vec,
                 Ybus: List[CscMat],
                 Yf: List[CscMat],
                 Yt: List[CscMat],
                 A: Union[CscMat, None] = None):
        """

        :param bus_names: names of the buses
        :param scenarios: list of Scenario
        :param baseMVA: base power
        :param x: decision vector
        :param f: objective function value
        :param success: did the solver succeed?
        :param status: IpsStatus
        :param iterations: number of iterations
        :param wall_time: solver time (s)
        :param Va: voltage angles (rad)
        :param Vm: voltage modules (p.u.)
        :param Pg: generators active power (p.u.)
        :param Qg: generators reactive power (p.u.)
        :param Sf: from side power of every branch (p.u.)
        :param St: to side power of every branch (p.u.)
        :param x_min: lower bounds of the decision vector
        :param x_max: upper bounds of the decision vector
        :param lam_g: constraint multipliers
        :param z_lower: lower bound multipliers
        :param z_upper: upper bound multipliers
        :param Ybus: admittance matrix of every scenario
        :param Yf: from side admittance matrix of every scenario
        :param Yt: to side admittance matrix of every scenario
        :param A: linear constraints matrix, if any
        """
        self.name = 'SCOPF'
        self.bus_names = bus_names
        self.scenarios = scenarios
        self.baseMVA = baseMVA
        self.x = x
        self.f = f
        self.success = success
        self.status = status
        self.iterations = iterations
        self.wall_time = wall_time
        self.Va = Va
        self.Vm = Vm
        self.Pg = Pg
        self.Qg = Qg
        self.Sf = Sf
        self.St = St
        self.x_min = x_min
        self.x_max = x_max
        self.lam_g = lam_g
        self.z_lower = z_lower
        self.z_upper = z_upper
        self.Ybus = Ybus
        self.Yf = Yf
        self.Yt = Yt
        self.A = A

    @property
    def converged(self) -> bool:
        return self.success

    @property
    def n_scenarios(self) -> int:
        return len(self.scenarios)

    @property
    def scenario_names(self) -> List[str]:
        return [str(sc) for sc in self.scenarios]

    @property
    def voltage(self) -> CxMat:
        return self.Vm * np.exp(1j * self.Va)

    def get_bus_df(self, scenario_idx: int = 0) -> pd.DataFrame:
        """
        Bus results of one scenario
        :param scenario_idx: scenario index (0 is the nominal)
        :return: DataFrame
        """
        return pd.DataFrame(data={'Vm': self.Vm[scenario_idx, :],
                                  'Va': self.Va[scenario_idx, :]},
                            index=self.bus_names)

    def get_generator_df(self) -> pd.DataFrame:
        """
        Active power of every generator (MW) per scenario
        :return: DataFrame
        """
        return pd.DataFrame(data=self.Pg.T * self.baseMVA, columns=self.scenario_names)

    def get_branch_loading_df(self) -> pd.DataFrame:
        """
        Apparent power at the from side of every branch (MVA) per scenario
        :return: DataFrame
        """
        return pd.DataFrame(data=np.abs(self.Sf.T) * self.baseMVA, columns=self.scenario_names)

    def get_summary_df(self) -> pd.DataFrame:
        """
        Solution summary
        :return: DataFrame
        """
        return pd.DataFrame(data={'Value': [self.f, str(self.status), self.iterations, self.wall_time,
                                            self.n_scenarios]},
                            index=['Objective', 'Status', 'Iterations', 'Time (s)', 'Scenarios'])
