# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import Sequence, Union
import numpy as np
import scipy.sparse as sp
from ScopfEngine.basic_structures import Vec, Logger
from ScopfEngine.DataStructures.matpower_case import MatpowerCase
from ScopfEngine.Simulations.OPF.opf_options import ScopfOptions
from ScopfEngine.Simulations.OPF.scopf_results import ScopfResults
from ScopfEngine.Simulations.OPF.NumericalMethods.ac_opf_problem import AcOpfProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.scopf_problem import ScopfProblem
from ScopfEngine.Simulations.OPF.NumericalMethods.nlp_solver import solve_nlp


def solve_problem(problem: AcOpfProblem,
                  options: ScopfOptions,
                  x0: Union[Vec, None] = None,
                  logger: Logger = Logger()) -> ScopfResults:
    """
    Solve an OPF problem and pack its results
    :param problem: AcOpfProblem or ScopfProblem
    :param options: ScopfOptions
    :param x0: starting point (None to use the options choice)
    :param logger: Logger
    :return: ScopfResults
    """
    if x0 is None:
        x0 = problem.get_x0_from_case() if options.init_from_case else problem.get_x0()

    sol = solve_nlp(problem=problem, x0=x0, options=options, logger=logger)

    Va, Vm, Pg, Qg = problem.decode(sol.x)

    # flows of every branch per scenario
    Sf = np.zeros((problem.n_scenarios, problem.data.nbranch), dtype=complex)
    St = np.zeros((problem.n_scenarios, problem.data.nbranch), dtype=complex)
    for i, adm in enumerate(problem.admittances):
        V = Vm[i, :] * np.exp(1j * Va[i, :])
        Sf[i, :] = V[adm.F] * np.conj(adm.Yf @ V)
        St[i, :] = V[adm.T] * np.conj(adm.Yt @ V)

    if options.verbose > 0:
        print(f'Scenarios: {problem.n_scenarios}, variables: {problem.n_x}, constraints: {problem.n_g}')

    return ScopfResults(bus_names=problem.case.bus_names,
                        scenarios=problem.scenarios,
                        baseMVA=problem.case.baseMVA,
                        x=sol.x,
                        f=sol.objective,
                        success=sol.success,
                        status=sol.status,
                        iterations=sol.iterations,
                        wall_time=sol.wall_time,
                        Va=Va,
                        Vm=Vm,
                        Pg=Pg,
                        Qg=Qg,
                        Sf=Sf,
                        St=St,
                        x_min=problem.x_min,
                        x_max=problem.x_max,
                        lam_g=sol.constraint_multipliers,
                        z_lower=sol.lower_bound_multipliers,
                        z_upper=sol.upper_bound_multipliers,
                        Ybus=[adm.Ybus for adm in problem.admittances],
                        Yf=[adm.Yf for adm in problem.admittances],
                        Yt=[adm.Yt for adm in problem.admittances],
                        A=problem.A)


def run_nonlinear_scopf(case: MatpowerCase,
                        contingencies: Sequence[int] = (),
                        options: Union[ScopfOptions, None] = None,
                        x0: Union[Vec, None] = None,
                        A: Union[sp.spmatrix, None] = None,
                        l: Union[Vec, None] = None,
                        u: Union[Vec, None] = None,
                        logger: Logger = Logger()) -> ScopfResults:
    """
    Run the AC security constrained optimal power flow
    :param case: MatpowerCase
    :param contingencies: zero based indices of the branches to outage
    :param options: ScopfOptions
    :param x0: starting point over the full decision vector
    :param A: optional linear constraints matrix over the full decision vector
    :param l: lower bounds of A x
    :param u: upper bounds of A x
    :param logger: Logger
    :return: ScopfResults
    """
    if options is None:
        options = ScopfOptions()
    options.check()

    problem = ScopfProblem(case=case, contingencies=contingencies, A=A, l=l, u=u, logger=logger,
                           bound_infinity=options.bound_infinity)

    logger.add_info('SCOPF problem built', value=problem.n_x, device_property='variables')

    return solve_problem(problem=problem, options=options, x0=x0, logger=logger)


def run_nonlinear_opf(case: MatpowerCase,
                      options: Union[ScopfOptions, None] = None,
                      x0: Union[Vec, None] = None,
                      logger: Logger = Logger()) -> ScopfResults:
    """
    Run the standard AC optimal power flow (x = [Va, Vm, Pg, Qg])
    :param case: MatpowerCase
    :param options: ScopfOptions
    :param x0: starting point
    :param logger: Logger
    :return: ScopfResults with a single scenario
    """
    if options is None:
        options = ScopfOptions()
    options.check()

    problem = AcOpfProblem(case=case, logger=logger, bound_infinity=options.bound_infinity)

    return solve_problem(problem=problem, options=options, x0=x0, logger=logger)
