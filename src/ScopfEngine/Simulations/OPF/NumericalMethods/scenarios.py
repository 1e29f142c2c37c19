# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from dataclasses import dataclass
from typing import List, Union, Sequence
import numpy as np
from ScopfEngine.exceptions import ContingencyError


@dataclass(frozen=True)
class Scenario:
    """
    One operating state of the security constrained problem.
    Scenario 0 is the nominal state; every other scenario outages one branch
    """
    index: int
    outaged_branch: Union[int, None] = None

    @property
    def is_nominal(self) -> bool:
        return self.outaged_branch is None

    def __str__(self):
        if self.is_nominal:
            return f"Scenario {self.index} (nominal)"
        return f"Scenario {self.index} (branch {self.outaged_branch} out)"


def build_scenarios(contingency_branches: Sequence[int], n_branch: int) -> List[Scenario]:
    """
    Build the list of scenarios: the nominal one followed by one per contingency
    :param contingency_branches: zero based branch indices to outage
    :param n_branch: number of branches of the grid
    :return: list of Scenario
    """
    scenarios = [Scenario(index=0, outaged_branch=None)]

    for k, br in enumerate(contingency_branches):
        if not np.isfinite(br) or int(br) != br or not (0 <= br < n_branch):
            raise ContingencyError(br, n_branch)
        scenarios.append(Scenario(index=k + 1, outaged_branch=int(br)))

    return scenarios
