# Recidiviz - a data platform for criminal justice reform
# Copyright (C) 2024 Recidiviz, Inc.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
# =============================================================================
"""Functionality for working with configuration objects parsed from YAML."""
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import yaml

# Represents a dictionary parsed from YAML, where values in the dictionary can only
# contain strings, numbers, booleans or nested dictionaries.
YAMLDictType = Dict[str, Union[str, float, bool, "YAMLDictType"]]  # type: ignore

T = TypeVar("T")


class YAMLDict:
    """Wraps a dict parsed from YAML and provides type safety when accessing items
    within the dict."""

    def __init__(self, raw_yaml: YAMLDictType):
        self.raw_yaml = raw_yaml

    @classmethod
    def from_path(cls, yaml_path: str) -> "YAMLDict":
        with open(yaml_path, encoding="utf-8") as yaml_file:
            loaded_raw_yaml = yaml.safe_load(yaml_file)
            if not isinstance(loaded_raw_yaml, dict):
                raise ValueError(
                    f"Expected config to contain a top-level dictionary, but "
                    f"received: {type(loaded_raw_yaml)} at path [{yaml_path}]."
                )
            return YAMLDict(loaded_raw_yaml)

    @classmethod
    def _assert_type(cls, field: str, value: Any, value_type: Type[T]) -> T:
        # bool is a subclass of int, but a YAML `true` is never a valid number
        if (
            value is None
            or not isinstance(value, value_type)
            or (isinstance(value, bool) and value_type is not bool)
        ):
            raise ValueError(
                f"The field [{field}] must be of type [{value_type}]. Invalid "
                f"[{field}] value, expected type [{value_type}] but received: "
                f"{type(value)}"
            )
        return value

    def pop(self, field: str, value_type: Type[T]) -> T:
        """Returns the object at the given key |field| after popping it from the
        YAMLDict. Throws if the value is nonnull but the type is not the expected
        |value_type|, or if the field does not exist, or if the value at that field is
        None.
        """
        try:
            value = self.raw_yaml.pop(field)
        except KeyError as e:
            raise KeyError(
                f"Expected nonnull [{field}] in input: {self.raw_yaml}"
            ) from e
        return self._assert_type(field, value, value_type)

    def pop_optional(self, field: str, value_type: Type[T]) -> Optional[T]:
        """Pops the object at the given key |field|. Returns None if the field does
        not exist or if the value at that field is None. Throws if the value is
        nonnull but the type is not the expected |value_type|.
        """
        value = self.raw_yaml.pop(field, None)
        if value is None:
            return None
        return self._assert_type(field, value, value_type)

    def pop_number(self, field: str) -> float:
        """Pops the numeric value at |field|. YAML parses `15` as an int and `15.0`
        as a float; both are returned as a float."""
        value = self.pop(field, (int, float))  # type: ignore[arg-type]
        return float(value)

    def pop_number_optional(self, field: str) -> Optional[float]:
        if self.raw_yaml.get(field) is None:
            self.raw_yaml.pop(field, None)
            return None
        return self.pop_number(field)

    def pop_dict(self, field: str) -> "YAMLDict":
        """Returns the dictionary at the given key |field| after popping it from the
        YAMLDict. Throws if the value is nonnull but the type is not a dictionary, or
        if the field does not exist, or if the value at that field is None.
        """
        return YAMLDict(self.pop(field, dict))

    def pop_dict_optional(self, field: str) -> Optional["YAMLDict"]:
        raw_yaml = self.pop_optional(field, dict)
        if raw_yaml is None:
            return None
        return YAMLDict(raw_yaml)

    def pop_list(self, field: str, list_values_type: Type[T]) -> List[T]:
        """Returns the list at the given key |field| after popping it from the
        YAMLDict. Throws if any of the list values are not the expected
        |list_values_type|.
        """
        raw_values = self.pop(field, list)
        return [
            self._assert_type(field, raw_val, list_values_type)
            for raw_val in raw_values
        ]

    def keys(self) -> List[str]:
        return list(self.raw_yaml.keys())

    def __len__(self) -> int:
        return len(self.raw_yaml)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, YAMLDict):
            return False

        return self.get() == other.get()

    def __repr__(self) -> str:
        return str(self.get())

    def get(self) -> YAMLDictType:
        """Returns the underlying raw dictionary representation of the YAML."""
        return self.raw_yaml
