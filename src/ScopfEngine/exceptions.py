# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0


class ScopfError(Exception):
    """Base class for exceptions in this module."""
    pass


class ConfigurationError(ScopfError):
    """Exception raised when the network data cannot be turned into a valid problem."""
    def __init__(self, message="Invalid SCOPF configuration"):
        self.message = message
        super().__init__(self.message)


class CaseFormatError(ConfigurationError):
    """Exception raised when a case file misses mandatory tables."""
    def __init__(self, missing, message="The case is missing mandatory data"):
        self.missing = missing
        self.message = f"{message}: {missing}"
        super().__init__(self.message)


class ReferenceGeneratorError(ConfigurationError):
    """Exception raised when there is not exactly one in-service generator at the reference bus."""
    def __init__(self, n_ref, message="Exactly one reference generator is supported"):
        self.n_ref = n_ref
        self.message = f"{message}, found {n_ref}"
        super().__init__(self.message)


class BranchRatingError(ConfigurationError):
    """Exception raised when some branches do not carry a usable RATE_A value."""
    def __init__(self, branch_indices, message="Every branch must have a positive rating (use inf for no limit)"):
        self.branch_indices = branch_indices
        self.message = f"{message}, offending branches: {list(branch_indices)}"
        super().__init__(self.message)


class CostModelError(ConfigurationError):
    """Exception raised if a generator cost model is not supported."""
    def __init__(self, model, message="Only polynomial cost models are supported"):
        self.model = model
        self.message = f"{message}: found model {model}"
        super().__init__(self.message)


class ContingencyError(ConfigurationError):
    """Exception raised when a contingency refers to a branch that does not exist."""
    def __init__(self, branch_idx, n_branch, message="Contingency branch index out of range"):
        self.branch_idx = branch_idx
        self.n_branch = n_branch
        self.message = f"{message}: {branch_idx} (there are {n_branch} branches)"
        super().__init__(self.message)


class SparsityPatternError(AssertionError):
    """
    Raised when a numeric Jacobian or Hessian entry falls outside the declared structure.
    This is a programming defect, never a recoverable runtime condition.
    """
    def __init__(self, name, rows, cols, message="Nonzero outside the declared sparsity structure"):
        self.name = name
        self.rows = rows
        self.cols = cols
        self.message = f"{message} of {name}: {list(zip(rows, cols))[:10]}"
        super().__init__(self.message)
