# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from typing import List
import numpy as np


def find_between(s: str, first: str, last: str) -> str:
    """
    Find sting between two sub-strings
    Args:
        s: Main string
        first: first sub-string
        last: second sub-string
    Example find_between('[Hello]', '[', ']')  -> returns 'Hello'
    Returns:
        String between the first and second sub-strings, if any was found otherwise returns an empty string
    """
    try:
        start = s.index(first) + len(first)
        end = s.index(last, start)
        return s[start:end]
    except ValueError:
        return ""


def remove_comment(line: str) -> str:
    """
    Remove the MATLAB comment of a line
    :param line: text line
    :return: line up to the first '%'
    """
    pos = line.find('%')
    if pos >= 0:
        return line[:pos]
    else:
        return line


def txt2mat(txt: str, line_splitter=';', to_float=True) -> np.ndarray:
    """
    Convert the body of a MATLAB matrix into a numpy array.
    Rows shorter than the longest one are padded with zeros (gencost rows may
    carry a different number of coefficients)
    :param txt: text between the brackets
    :param line_splitter: row separator
    :param to_float: convert to float, otherwise return the stripped strings
    :return: 2D array
    """
    rows: List[List[str]] = list()
    for line in txt.strip().split('\n'):
        line = remove_comment(line).strip()

        # a single text line may hold several rows
        for piece in line.split(line_splitter):
            vec = piece.strip().split()
            if len(vec):
                rows.append(vec)

    if len(rows) == 0:
        return np.zeros((0, 0))

    ncols = max([len(vec) for vec in rows])

    if to_float:
        arr = np.zeros((len(rows), ncols))
    else:
        arr = np.zeros((len(rows), ncols), dtype=object)

    # fill-in the data
    for i, vec in enumerate(rows):
        for j, val in enumerate(vec):
            if to_float:
                arr[i, j] = float(val)
            else:
                arr[i, j] = val.strip().replace("'", "")

    return arr
