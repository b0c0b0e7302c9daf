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
"""The schedule of fine amounts charged per offense.

The default schedule ships with the package in fine_schedule.yaml. A different
schedule can be loaded from any YAML file with the same structure.
"""
import logging
import os
from typing import Dict, Optional

import attr

from custody.common.constants.mappable_enum import EnumParsingError
from custody.common.constants.offenses import (
    DEFAULT_VICTIM_TYPE,
    OffenseKind,
    VictimType,
)
from custody.utils.yaml_dict import YAMLDict

DEFAULT_FINE_SCHEDULE_PATH = os.path.join(
    os.path.dirname(__file__), "fine_schedule.yaml"
)


def _non_negative_amounts(
    _instance: "FineTable", attribute: attr.Attribute, value: Dict
) -> None:
    for key, amount in value.items():
        if amount < 0:
            raise ValueError(
                f"Found negative amount [{amount}] for [{key}] in [{attribute.name}]"
            )


@attr.s(frozen=True)
class FineTable:
    """Maps offense kinds to base fines, and homicide victim types to homicide
    fines."""

    base_fines: Dict[OffenseKind, float] = attr.ib(validator=_non_negative_amounts)
    homicide_fines: Dict[VictimType, float] = attr.ib(
        validator=_non_negative_amounts
    )

    # Charged per instance of any offense kind missing from base_fines.
    default_fine: float = attr.ib(default=25.0)

    # Flat amount added once when the subject evaded arrest.
    evaded_arrest_fine: float = attr.ib(default=300.0)

    # Offense count on the ledger -> multiplier. Counts past the largest key use
    # the largest key's multiplier; counts below the smallest key use 1.0.
    repeat_offender_multipliers: Dict[int, float] = attr.ib(
        factory=lambda: {1: 1.0, 2: 1.25, 3: 1.5, 4: 2.0}
    )

    @homicide_fines.validator
    def _has_all_victim_types(
        self, _attribute: attr.Attribute, value: Dict[VictimType, float]
    ) -> None:
        missing = set(VictimType) - set(value)
        if missing:
            raise ValueError(
                f"Missing homicide fines for victim types: "
                f"{sorted(victim.value for victim in missing)}"
            )

    def has_base_fine(self, kind: OffenseKind) -> bool:
        return kind in self.base_fines

    def lookup(self, kind: OffenseKind) -> float:
        """Returns the base fine for |kind|, or the default fine if the kind has no
        entry."""
        return self.base_fines.get(kind, self.default_fine)

    def homicide_fine(self, victim_type: Optional[VictimType]) -> float:
        return self.homicide_fines[victim_type or DEFAULT_VICTIM_TYPE]

    def repeat_offender_multiplier(self, offense_count: int) -> float:
        """Returns the multiplier for the largest threshold at or below
        |offense_count|. Counts below every threshold, including 0, fall through to
        the multiplier for the largest threshold."""
        thresholds = sorted(self.repeat_offender_multipliers)
        if not thresholds:
            return 1.0
        applicable = [t for t in thresholds if t <= offense_count]
        return self.repeat_offender_multipliers[(applicable or thresholds)[-1]]

    @classmethod
    def from_yaml_dict(cls, yaml_dict: YAMLDict) -> "FineTable":
        default_fine = yaml_dict.pop_number("default_fine")
        evaded_arrest_fine = yaml_dict.pop_number("evaded_arrest_fine")

        raw_base_fines = yaml_dict.pop_dict("base_fines")
        base_fines: Dict[OffenseKind, float] = {}
        for kind_label in raw_base_fines.keys():
            amount = raw_base_fines.pop_number(kind_label)
            try:
                base_fines[OffenseKind(kind_label)] = amount
            except ValueError as e:
                raise ValueError(
                    f"Unexpected offense kind [{kind_label}] in fine schedule"
                ) from e

        raw_homicide_fines = yaml_dict.pop_dict("homicide_fines")
        homicide_fines: Dict[VictimType, float] = {}
        for victim_label in raw_homicide_fines.keys():
            amount = raw_homicide_fines.pop_number(victim_label)
            try:
                homicide_fines[VictimType.from_str(victim_label)] = amount
            except EnumParsingError as e:
                raise ValueError(
                    f"Unexpected victim type [{victim_label}] in fine schedule"
                ) from e

        raw_multipliers = yaml_dict.pop_dict("repeat_offender_multipliers")
        repeat_offender_multipliers: Dict[int, float] = {}
        for count, multiplier in raw_multipliers.get().items():
            if not isinstance(count, int) or not isinstance(multiplier, (int, float)):
                raise ValueError(
                    f"Invalid repeat offender multiplier entry [{count}: {multiplier}]"
                )
            repeat_offender_multipliers[count] = float(multiplier)

        if len(yaml_dict):
            raise ValueError(f"Unexpected fields in fine schedule: {yaml_dict.keys()}")

        return cls(
            base_fines=base_fines,
            homicide_fines=homicide_fines,
            default_fine=default_fine,
            evaded_arrest_fine=evaded_arrest_fine,
            repeat_offender_multipliers=repeat_offender_multipliers,
        )

    @classmethod
    def load(cls, yaml_path: Optional[str] = None) -> "FineTable":
        yaml_path = yaml_path or DEFAULT_FINE_SCHEDULE_PATH
        logging.info("Loading fine schedule from [%s]", yaml_path)
        return cls.from_yaml_dict(YAMLDict.from_path(yaml_path))
