# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from ScopfEngine.enumerations import SparseSolver
from ScopfEngine.exceptions import ConfigurationError
from ScopfEngine.Simulations.options_template import OptionsTemplate


class ScopfOptions(OptionsTemplate):
    """
    ScopfOptions
    """

    def __init__(self,
                 verbose: int = 0,
                 ips_tolerance: float = 1e-6,
                 ips_acceptable_tolerance: float = 1e-4,
                 ips_iterations: int = 100,
                 ips_trust_radius: float = 1.0,
                 ips_step_control: bool = False,
                 ips_init_with_pf: bool = False,
                 init_from_case: bool = False,
                 linear_solver: SparseSolver = SparseSolver.SuperLU,
                 bound_infinity: float = 1e10):
        """
        Security constrained optimal power flow options
        :param verbose: 0 to 3
        :param ips_tolerance: convergence tolerance of the interior point solver
        :param ips_acceptable_tolerance: tolerance under which the last point is accepted
        :param ips_iterations: maximum number of iterations
        :param ips_trust_radius: trust in the Newton step for the step control
        :param ips_step_control: use the step control
        :param ips_init_with_pf: initialize the multipliers from the KKT conditions
        :param init_from_case: start from the case voltages and dispatch instead of the bounds midpoint
        :param linear_solver: SparseSolver for the KKT systems
        :param bound_infinity: magnitude from which a bound is considered infinite
        """
        OptionsTemplate.__init__(self, name="Security constrained optimal power flow options")

        self.verbose = verbose

        # IPS settings
        self.ips_tolerance = ips_tolerance
        self.ips_acceptable_tolerance = ips_acceptable_tolerance
        self.ips_iterations = ips_iterations
        self.ips_trust_radius = ips_trust_radius
        self.ips_step_control = ips_step_control
        self.ips_init_with_pf = ips_init_with_pf

        self.init_from_case = init_from_case
        self.linear_solver = linear_solver
        self.bound_infinity = bound_infinity

        self.register(key="verbose", tpe=int)
        self.register(key="ips_tolerance", tpe=float)
        self.register(key="ips_acceptable_tolerance", tpe=float)
        self.register(key="ips_iterations", tpe=int)
        self.register(key="ips_trust_radius", tpe=float)
        self.register(key="ips_step_control", tpe=bool)
        self.register(key="ips_init_with_pf", tpe=bool)
        self.register(key="init_from_case", tpe=bool)
        self.register(key="linear_solver", tpe=SparseSolver)
        self.register(key="bound_infinity", tpe=float)

    def check(self):
        """
        Raise ConfigurationError on meaningless values
        """
        if self.ips_tolerance <= 0:
            raise ConfigurationError("The IPS tolerance must be positive")
        if self.ips_acceptable_tolerance < self.ips_tolerance:
            raise ConfigurationError("The IPS acceptable tolerance cannot be smaller than the tolerance")
        if self.ips_iterations < 1:
            raise ConfigurationError("At least one IPS iteration is needed")
        if self.bound_infinity <= 0:
            raise ConfigurationError("The bound infinity must be positive")
