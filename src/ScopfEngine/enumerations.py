# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from enum import Enum


class BusMode(Enum):
    """
    MATPOWER bus types
    """
    PQ_tpe = 1  # control P, Q
    PV_tpe = 2  # Control P, Vm
    Slack_tpe = 3  # Control Vm, Va (slack)
    Isolated_tpe = 4  # isolated bus

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return BusMode[s]
        except KeyError:
            return s


class LogSeverity(Enum):
    """
    Enumeration of logs severities
    """
    Error = 'Error'
    Warning = 'Warning'
    Information = 'Information'
    Divergence = 'Divergence'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return LogSeverity[s]
        except KeyError:
            return s


class SparseSolver(Enum):
    """
    Sparse solvers to use
    """
    SuperLU = 'SuperLU'
    Pardiso = 'Pardiso'
    UMFPACK = 'UmfPack'

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return SparseSolver[s]
        except KeyError:
            return s


class IpsStatus(Enum):
    """
    Termination status of the interior point solver.
    The values follow the IPOPT return codes where one exists
    """
    Optimal = 0
    Acceptable = 1
    MaximumIterationsExceeded = -1
    NumericalError = -13

    def __str__(self):
        return self.name

    def __repr__(self):
        return str(self)

    def is_success(self) -> bool:
        """
        Does this status count as a converged solution?
        :return: True for optimal and acceptable terminations
        """
        return self in (IpsStatus.Optimal, IpsStatus.Acceptable)


class VariableRole(Enum):
    """
    Roles of the decision variables of the security constrained OPF
    """
    Va = 'Voltage angle'  # local
    VmNonPV = 'Voltage module at non PV buses'  # local
    Qg = 'Generator reactive power'  # local
    PgRef = 'Reference generator active power'  # local
    VmPV = 'Voltage module at PV buses'  # global
    PgNonRef = 'Non reference generator active power'  # global

    def __str__(self):
        return self.value

    def __repr__(self):
        return str(self)

    @property
    def is_local(self) -> bool:
        return self in (VariableRole.Va, VariableRole.VmNonPV, VariableRole.Qg, VariableRole.PgRef)
