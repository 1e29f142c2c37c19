# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from typing import List, Any, Dict, Union
import datetime
import numpy as np
import numpy.typing as npt
import pandas as pd
from scipy.sparse import csc_matrix, csr_matrix
from ScopfEngine.enumerations import LogSeverity

IntList = List[int]
Numeric = Union[int, float, bool, complex]
IntVec = npt.NDArray[np.int_]
BoolVec = npt.NDArray[np.bool_]
Vec = npt.NDArray[np.float64]
CxVec = npt.NDArray[np.complex128]
StrVec = npt.NDArray[np.str_]
Mat = npt.NDArray[np.float64]
CxMat = npt.NDArray[np.complex128]
IntMat = npt.NDArray[np.int_]
CscMat = csc_matrix
CsrMat = csr_matrix


class LogEntry:
    """
    Logger entry
    """

    def __init__(self,
                 time: Union[str, None] = None,
                 msg="",
                 severity: LogSeverity = LogSeverity.Information,
                 device="",
                 value="",
                 expected_value="",
                 device_class="",
                 device_property=""):
        if time is None:
            self.time = "{date:%H:%M:%S}".format(date=datetime.datetime.now())
        else:
            self.time = time
        self.msg = str(msg)
        self.severity = severity
        self.device = device
        self.device_class = device_class
        self.device_property = device_property
        self.value = value
        self.expected_value = str(expected_value)

    def to_list(self) -> List[Any]:
        """
        Get list representation of this entry
        :return:
        """
        return [self.time, self.severity.value, self.msg,
                self.device_class, self.device_property, self.device,
                self.value, self.expected_value]

    def __str__(self):
        return "{0} {1}: {2} {3} {4} {5}".format(self.time,
                                                 self.severity.value,
                                                 self.msg,
                                                 self.device,
                                                 self.value,
                                                 self.expected_value)


class Logger:
    """
    Logger class
    """

    def __init__(self) -> None:

        self.entries: List[LogEntry] = list()

    def append(self, txt: str):
        """
        simple text log
        :param txt: some message text
        """
        self.entries.append(LogEntry(msg=txt))

    def has_logs(self):
        """
        Are there any logs?
        :return: True / False
        """
        return len(self.entries) > 0

    def add(self, msg: str, severity: LogSeverity = LogSeverity.Error, device="", value="", expected_value="",
            device_class='', device_property=''):
        """
        Add general entry
        :param msg: message
        :param severity: LogSeverity
        :param device: device name or index
        :param value: offending value
        :param expected_value: value that was expected
        :param device_class: device class (Bus, Branch, Generator...)
        :param device_property: property involved
        """
        self.entries.append(LogEntry(msg=str(msg),
                                     severity=severity,
                                     device=str(device),
                                     value=str(value),
                                     expected_value=str(expected_value),
                                     device_class=str(device_class),
                                     device_property=str(device_property)))

    def add_info(self, msg: str, device="", value="", expected_value="", device_class='', device_property=''):
        """
        Add info entry
        """
        self.add(msg=msg, severity=LogSeverity.Information, device=device, value=value,
                 expected_value=expected_value, device_class=device_class, device_property=device_property)

    def add_warning(self, msg: str, device="", value="", expected_value="", device_class='', device_property=''):
        """
        Add warning entry
        """
        self.add(msg=msg, severity=LogSeverity.Warning, device=device, value=value,
                 expected_value=expected_value, device_class=device_class, device_property=device_property)

    def add_error(self, msg: str, device="", value="", expected_value="", device_class='', device_property=''):
        """
        Add error entry
        """
        self.add(msg=msg, severity=LogSeverity.Error, device=device, value=value,
                 expected_value=expected_value, device_class=device_class, device_property=device_property)

    def to_dict(self) -> Dict[str, Dict[str, List[List[str]]]]:
        """
        Get the logs sorted by severity and message
        :return: Dictionary[Dictionary[List[time, device, value, expected value]]]
        """
        by_severity = dict()

        for e in self.entries:

            if e.severity.value not in by_severity.keys():
                by_severity[e.severity.value] = dict()

            by_msg = by_severity[e.severity.value]

            if e.msg not in by_msg.keys():
                by_msg[e.msg] = list()

            by_msg[e.msg].append([e.time, e.device_class, e.device_property, e.device, e.value, e.expected_value])

        return by_severity

    def to_df(self) -> pd.DataFrame:
        """
        Get DataFrame
        :return: DataFrame
        """
        return pd.DataFrame(data=[e.to_list() for e in self.entries],
                            columns=['Time', 'Severity', 'Message', 'Class', 'Property',
                                     'Device', 'Value', 'Expected value'])

    def print(self) -> None:
        """
        Print the logs
        """
        print(self.to_df().to_string())

    def __str__(self):
        val = ''
        for e in self.entries:
            val += str(e) + '\n'
        return val

    def __getitem__(self, key):
        """
        Get item
        :param key: integer
        :return: LogEntry
        """
        return self.entries[key]

    def __len__(self) -> int:
        return len(self.entries)

    def size(self) -> int:
        """
        Get the size of the logger
        :return: integer
        """
        return len(self.entries)

    def count_type(self, severity: LogSeverity) -> int:
        """
        Count the number of entries of a given severity
        :param severity: LogSeverity
        :return: number of entries
        """
        return sum([1 for e in self.entries if e.severity == severity])

    def info_count(self) -> int:
        """
        Get the number of information entries
        :return: int
        """
        return self.count_type(LogSeverity.Information)

    def warning_count(self) -> int:
        """
        Get the number of warning entries
        :return: int
        """
        return self.count_type(LogSeverity.Warning)

    def error_count(self) -> int:
        """
        Get the number of error entries
        :return: int
        """
        return self.count_type(LogSeverity.Error)
