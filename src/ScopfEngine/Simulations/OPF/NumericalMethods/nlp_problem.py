# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import Tuple
from ScopfEngine.basic_structures import Vec, IntVec, CsrMat


class NlpProblem:
    """
    Nonlinear program in the form used by IPOPT like solvers:

        min  f(x)
        s.t. g_min <= g(x) <= g_max
             x_min <= x    <= x_max

    The Jacobian and the lower triangle of the Lagrangian Hessian
    sigma * f''(x) + sum_i lam_i g_i''(x) keep a constant structure.
    """

    def __init__(self):
        self.x_min: Vec = None
        self.x_max: Vec = None
        self.g_min: Vec = None
        self.g_max: Vec = None

    @property
    def n_x(self) -> int:
        return len(self.x_min)

    @property
    def n_g(self) -> int:
        return len(self.g_min)

    def objective(self, x: Vec) -> float:
        raise NotImplementedError()

    def gradient(self, x: Vec) -> Vec:
        raise NotImplementedError()

    def constraints(self, x: Vec) -> Vec:
        raise NotImplementedError()

    def jacobian(self, x: Vec) -> CsrMat:
        """
        Constraints Jacobian with exactly the structure of jacobian_structure()
        """
        raise NotImplementedError()

    def hessian(self, x: Vec, sigma: float, lam: Vec) -> CsrMat:
        """
        Lower triangle of the Lagrangian Hessian with exactly the structure of hessian_structure()
        """
        raise NotImplementedError()

    def jacobian_structure(self) -> Tuple[IntVec, IntVec]:
        raise NotImplementedError()

    def hessian_structure(self) -> Tuple[IntVec, IntVec]:
        raise NotImplementedError()

    def get_x0(self) -> Vec:
        """
        Default starting point
        """
        raise NotImplementedError()
