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
"""Contains logic related to MappableEnums"""

import re
from enum import Enum
from typing import Dict, Optional, Type, TypeVar

MappableEnumT = TypeVar("MappableEnumT", bound="MappableEnum")


class EnumParsingError(Exception):
    """Raised if an MappableEnum can't be built from the provided string."""

    def __init__(self, cls: type, string: str):
        msg = f"Could not parse {string} when building {cls}"
        super().__init__(msg)


def normalize_label(label: str) -> str:
    """Normalizes a raw label for lookup in an enum map.

    CamelCase words are split, punctuation is dropped and tokens are joined with a
    single space, so `AssaultOnCivilian`, `Assault on Civilian` and
    `assault_on_civilian` all normalize to `ASSAULT ON CIVILIAN`.
    """
    label = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", label.strip())
    label = re.sub(r"[^A-Za-z0-9]+", " ", label)
    return " ".join(label.upper().split())


class MappableEnum(Enum):
    """Enum class that can be mapped from a string.

    When extending this class, you must override: _get_default_map
    """

    @classmethod
    def from_str(
        cls: Type[MappableEnumT],
        label: str,
        override_map: Optional[Dict[str, Optional[MappableEnumT]]] = None,
    ) -> Optional[MappableEnumT]:
        """Parses |label| into a member of this enum. Labels mapped to None in the
        |override_map| are ignored and return None."""
        label = normalize_label(label)
        if not override_map:
            return cls._parse_to_enum(label, cls._get_default_map())

        fields_to_ignore = {
            normalize_label(k) for k, v in override_map.items() if not v
        }
        if label in fields_to_ignore:
            return None

        complete_map = dict(cls._get_default_map())
        complete_map.update(
            {
                normalize_label(k): v
                for k, v in override_map.items()
                if isinstance(v, cls)
            }
        )

        return cls._parse_to_enum(label, complete_map)

    @classmethod
    def _parse_to_enum(
        cls: Type[MappableEnumT], label: str, complete_map: Dict[str, MappableEnumT]
    ) -> MappableEnumT:
        try:
            return complete_map[label]
        except KeyError as e:
            raise EnumParsingError(cls, label) from e

    @staticmethod
    def _get_default_map() -> Dict[str, "MappableEnum"]:
        raise NotImplementedError
