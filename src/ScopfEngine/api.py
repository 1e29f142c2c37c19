# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from ScopfEngine.basic_structures import Logger
from ScopfEngine.enumerations import *
from ScopfEngine.exceptions import *
from ScopfEngine.IO.matpower.matpower_parser import read_matpower_file, parse_matpower_text
from ScopfEngine.DataStructures.matpower_case import MatpowerCase
from ScopfEngine.Topology.admittance_matrices import compute_admittances, ConnectivityMatrices
from ScopfEngine.Simulations.OPF.opf_options import ScopfOptions
from ScopfEngine.Simulations.OPF.scopf_results import ScopfResults
from ScopfEngine.Simulations.OPF.scopf_worker import run_nonlinear_scopf, run_nonlinear_opf
from ScopfEngine.Simulations.OPF.NumericalMethods.variable_layout import StandardLayout, VariableLayout
from ScopfEngine.Simulations.OPF.NumericalMethods.scenarios import Scenario, build_scenarios
from ScopfEngine.Simulations.OPF.NumericalMethods.ac_opf_problem import AcOpfProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.scopf_problem import ScopfProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.nlp_solver import solve_nlp, NlpSolution


def open_file(filename: str, logger: Logger = Logger()) -> MatpowerCase:
    """
    Open a MATPOWER case file
    :param filename: name of the .m file
    :param logger: Logger
    :return: MatpowerCase in internal (zero based) numbering
    """
    return read_matpower_file(filename, logger=logger).to_internal(logger)
