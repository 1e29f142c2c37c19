# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from typing import Dict
import numpy as np
from ScopfEngine.basic_structures import Logger
from ScopfEngine.exceptions import CaseFormatError
from ScopfEngine.DataStructures.matpower_case import MatpowerCase
from ScopfEngine.IO.matpower.matpower_utils import find_between, txt2mat
import ScopfEngine.IO.matpower.matpower_bus_definitions as matpower_buses
import ScopfEngine.IO.matpower.matpower_branch_definitions as matpower_branches
import ScopfEngine.IO.matpower.matpower_gen_definitions as matpower_gen


def get_matpower_case_data(text: str) -> Dict[str, np.ndarray]:
    """
    Split the text of a MATPOWER case into its tables
    :param text: contents of the .m file
    :return: dictionary of baseMVA, bus, gen, branch, gencost and bus_names (the ones found)
    """

    # split the file into its case variables (the case variables always start with 'mpc.')
    chunks = text.split('mpc.')

    data = dict()

    # the first chunk is the function header
    for chunk in chunks[1:]:

        vals = chunk.split('=')
        key = vals[0].strip()

        if key == "baseMVA":
            data['baseMVA'] = float(find_between(chunk, '=', ';'))

        elif key == "bus_name":
            v = txt2mat(find_between(chunk, '{', '}'), line_splitter=';', to_float=False)
            data['bus_names'] = np.ndarray.flatten(v)

        elif key in ("bus", "gen", "branch", "gencost"):
            data[key] = txt2mat(find_between(chunk, '[', ']'), line_splitter=';')

    return data


def parse_matpower_text(text: str, name: str = '', logger: Logger = Logger()) -> MatpowerCase:
    """
    Build a MatpowerCase from the text of a MATPOWER case file
    :param text: case text
    :param name: case name
    :param logger: Logger
    :return: MatpowerCase (external numbering, as in the file)
    """
    data = get_matpower_case_data(text)

    missing = [key for key in ('baseMVA', 'bus', 'gen', 'branch', 'gencost') if key not in data]
    if len(missing):
        for key in missing:
            logger.add_error('Missing MATPOWER table', device=name, value=key)
        raise CaseFormatError(missing)

    bus = data['bus']
    gen = data['gen']
    branch = data['branch']

    for table, array, n_cols in (('bus', bus, matpower_buses.N_BUS_COLS),
                                 ('gen', gen, matpower_gen.N_GEN_COLS),
                                 ('branch', branch, matpower_branches.N_BRANCH_COLS)):
        if array.ndim != 2 or array.shape[0] == 0 or array.shape[1] < n_cols:
            logger.add_error('Not enough columns', device=name, device_class=table,
                             value=array.shape, expected_value=n_cols)
            raise CaseFormatError([table], message="The table has too few columns")

    case = MatpowerCase(baseMVA=data['baseMVA'],
                        bus=bus,
                        gen=gen,
                        branch=branch,
                        gencost=data['gencost'],
                        bus_names=data.get('bus_names', None),
                        name=name)

    logger.add_info('MATPOWER case parsed', device=name,
                    value='{} buses, {} generators, {} branches'.format(case.nbus, case.ngen, case.nbranch))

    return case


def read_matpower_file(filename: str, logger: Logger = Logger()) -> MatpowerCase:
    """
    Read a MATPOWER .m case file
    :param filename: file name
    :param logger: Logger
    :return: MatpowerCase
    """

    # open the file as text
    with open(filename, 'r') as myfile:
        text = myfile.read()

    name = find_between(text, 'function mpc =', '\n').strip()

    return parse_matpower_text(text=text, name=name, logger=logger)
