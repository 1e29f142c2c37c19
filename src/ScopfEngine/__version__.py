# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import datetime

_current_year_ = datetime.datetime.now().year

# do not forget to keep a three-number version!!!
__ScopfEngine_VERSION__ = "0.3.1"

url = 'https://github.com/SanPen/GridCal'

about_msg = "ScopfEngine v" + str(__ScopfEngine_VERSION__) + '\n\n'

about_msg += """
ScopfEngine formulates the AC security-constrained optimal power flow
(preventive N-1) as one sparse nonlinear program and solves it with
a primal-dual interior point method.\n"""

about_msg += """
This program is free software; you can redistribute it and/or
modify it subject to the terms of the Mozilla Public License, v. 2.0.
If a copy of the MPL was not distributed with this file,
You can obtain one at https://mozilla.org/MPL/2.0/.
"""
