# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from enum import Enum
from typing import Any, Dict, Type, Union
from ScopfEngine.exceptions import ConfigurationError


class OptionProp:
    """
    Registered option
    """

    def __init__(self, prop_name: str, tpe: Type, definition: str = ''):
        """

        :param prop_name: name of the attribute
        :param tpe: data type (int, float, bool, str or an Enum class)
        :param definition: Definition of the option
        """
        self.name = prop_name
        self.tpe = tpe
        self.definition = definition

    def parse(self, value: Any) -> Any:
        """
        Convert a value to the registered type
        :param value: anything
        :return: value of type tpe
        """
        if isinstance(value, self.tpe):
            return value

        if isinstance(self.tpe, type) and issubclass(self.tpe, Enum):
            if isinstance(value, str):
                try:
                    return self.tpe[value]
                except KeyError:
                    raise ConfigurationError(f"{value} is not a valid {self.tpe.__name__} for {self.name}")
            try:
                return self.tpe(value)
            except ValueError:
                raise ConfigurationError(f"{value} is not a valid {self.tpe.__name__} for {self.name}")

        if self.tpe is bool:
            if isinstance(value, str):
                return value.lower() in ('true', '1', 'yes')
            return bool(value)

        try:
            return self.tpe(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{value} cannot be converted to {self.tpe.__name__} for {self.name}")

    def __str__(self):
        return self.name

    def __repr__(self):
        return str(self)


class OptionsTemplate:
    """
    Options template
    """

    def __init__(self, name: str):
        """

        :param name:
        """
        self.name = name

        self.registered_properties: Dict[str, OptionProp] = dict()

    def register(self, key: str, tpe: Type, definition: str = ''):
        """
        Register property
        The property must exist
        :param key: attribute name
        :param tpe: data type
        :param definition: Definition of the property
        """
        assert (hasattr(self, key))  # the property must exist, this avoids bugs when registering

        self.registered_properties[key] = OptionProp(prop_name=key, tpe=tpe, definition=definition)

    def set(self, key: str, value: Any):
        """
        Set a registered option, converting it to the registered type
        :param key: attribute name
        :param value: value
        """
        prop = self.registered_properties.get(key, None)
        if prop is None:
            raise ConfigurationError(f"{key} is not an option of {self.name}")
        setattr(self, key, prop.parse(value))

    def to_dict(self) -> Dict[str, Union[int, float, bool, str]]:
        """
        Get a dictionary of the registered options (enums by name)
        :return: dict
        """
        data = dict()
        for key in self.registered_properties.keys():
            val = getattr(self, key)
            data[key] = val.name if isinstance(val, Enum) else val
        return data

    def parse_dict(self, data: Dict[str, Any]):
        """
        Set the options from a dictionary
        :param data: dict
        """
        for key, val in data.items():
            self.set(key, val)
