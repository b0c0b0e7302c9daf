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
"""Constants related to offenses and the victims of homicide offenses.

Offense kinds are resolved once, when offense data is ingested, from the raw labels
produced by upstream systems. Both class-style names (`AssaultOnCivilian`) and
display descriptions (`Assault on Civilian`) are accepted.
"""
import logging
from typing import Dict, Optional, Tuple

from custody.common.constants.mappable_enum import (
    EnumParsingError,
    MappableEnum,
    normalize_label,
)


class OffenseKind(MappableEnum):
    # Minor offenses
    TRESPASSING = "TRESPASSING"
    VANDALISM = "VANDALISM"
    PUBLIC_INTOXICATION = "PUBLIC_INTOXICATION"
    DISTURBING_PEACE = "DISTURBING_PEACE"
    SPEEDING = "SPEEDING"
    RECKLESS_DRIVING = "RECKLESS_DRIVING"
    BRANDISHING_WEAPON = "BRANDISHING_WEAPON"
    DISCHARGE_FIREARM = "DISCHARGE_FIREARM"
    DRUG_POSSESSION_LOW = "DRUG_POSSESSION_LOW"
    CONTROLLED_SUBSTANCE_POSSESSION = "CONTROLLED_SUBSTANCE_POSSESSION"
    WEAPON_POSSESSION = "WEAPON_POSSESSION"

    # Moderate offenses
    THEFT = "THEFT"
    VEHICLE_THEFT = "VEHICLE_THEFT"
    ASSAULT = "ASSAULT"
    ASSAULT_ON_CIVILIAN = "ASSAULT_ON_CIVILIAN"
    VEHICULAR_ASSAULT = "VEHICULAR_ASSAULT"
    DRUG_POSSESSION_MODERATE = "DRUG_POSSESSION_MODERATE"
    EVADING_ARREST = "EVADING_ARREST"
    FAILURE_TO_COMPLY = "FAILURE_TO_COMPLY"
    HIT_AND_RUN = "HIT_AND_RUN"
    VIOLATING_CURFEW = "VIOLATING_CURFEW"

    # Major offenses
    DEADLY_ASSAULT = "DEADLY_ASSAULT"
    ASSAULT_ON_OFFICER = "ASSAULT_ON_OFFICER"
    BURGLARY = "BURGLARY"
    DRUG_POSSESSION_HIGH = "DRUG_POSSESSION_HIGH"
    DRUG_TRAFFICKING = "DRUG_TRAFFICKING"
    ATTEMPTING_TO_SELL = "ATTEMPTING_TO_SELL"
    WITNESS_INTIMIDATION = "WITNESS_INTIMIDATION"

    # Severe offenses
    MANSLAUGHTER = "MANSLAUGHTER"
    MURDER = "MURDER"

    EXTERNAL_UNKNOWN = "EXTERNAL_UNKNOWN"

    @property
    def is_homicide(self) -> bool:
        return self is OffenseKind.MURDER

    @staticmethod
    def _get_default_map() -> Dict[str, "OffenseKind"]:
        return _OFFENSE_KIND_MAP


class VictimType(MappableEnum):
    CIVILIAN = "CIVILIAN"
    EMPLOYEE = "EMPLOYEE"
    POLICE = "POLICE"

    @staticmethod
    def _get_default_map() -> Dict[str, "VictimType"]:
        return _VICTIM_TYPE_MAP


DEFAULT_VICTIM_TYPE = VictimType.CIVILIAN

# MappableEnum.from_str splits CamelCase, strips punctuation and separates tokens
# with a single space. Add mappings here using a single space between words, e.g.
# both `DrugPossessionLow` and `Drug Possession (Low)` are `DRUG POSSESSION LOW`.
_OFFENSE_KIND_MAP: Dict[str, OffenseKind] = {
    "TRESPASSING": OffenseKind.TRESPASSING,
    "VANDALISM": OffenseKind.VANDALISM,
    "PUBLIC INTOXICATION": OffenseKind.PUBLIC_INTOXICATION,
    "DISTURBING PEACE": OffenseKind.DISTURBING_PEACE,
    "DISTURBING THE PEACE": OffenseKind.DISTURBING_PEACE,
    "SPEEDING": OffenseKind.SPEEDING,
    "RECKLESS DRIVING": OffenseKind.RECKLESS_DRIVING,
    "BRANDISHING WEAPON": OffenseKind.BRANDISHING_WEAPON,
    "DISCHARGE FIREARM": OffenseKind.DISCHARGE_FIREARM,
    "DRUG POSSESSION LOW": OffenseKind.DRUG_POSSESSION_LOW,
    "POSSESSING LOW SEVERITY DRUG": OffenseKind.DRUG_POSSESSION_LOW,
    "POSSESSING CONTROLLED SUBSTANCES": OffenseKind.CONTROLLED_SUBSTANCE_POSSESSION,
    "CONTROLLED SUBSTANCE POSSESSION": OffenseKind.CONTROLLED_SUBSTANCE_POSSESSION,
    "WEAPON POSSESSION": OffenseKind.WEAPON_POSSESSION,
    "ILLEGAL WEAPON POSSESSION": OffenseKind.WEAPON_POSSESSION,
    "THEFT": OffenseKind.THEFT,
    "VEHICLE THEFT": OffenseKind.VEHICLE_THEFT,
    "ASSAULT": OffenseKind.ASSAULT,
    "ASSAULT ON CIVILIAN": OffenseKind.ASSAULT_ON_CIVILIAN,
    "VEHICULAR ASSAULT": OffenseKind.VEHICULAR_ASSAULT,
    "DRUG POSSESSION MODERATE": OffenseKind.DRUG_POSSESSION_MODERATE,
    "POSSESSING MODERATE SEVERITY DRUG": OffenseKind.DRUG_POSSESSION_MODERATE,
    "EVADING": OffenseKind.EVADING_ARREST,
    "EVADING ARREST": OffenseKind.EVADING_ARREST,
    "FAILURE TO COMPLY": OffenseKind.FAILURE_TO_COMPLY,
    "HIT AND RUN": OffenseKind.HIT_AND_RUN,
    "VIOLATING CURFEW": OffenseKind.VIOLATING_CURFEW,
    "DEADLY ASSAULT": OffenseKind.DEADLY_ASSAULT,
    "ASSAULT ON OFFICER": OffenseKind.ASSAULT_ON_OFFICER,
    "BURGLARY": OffenseKind.BURGLARY,
    "DRUG POSSESSION HIGH": OffenseKind.DRUG_POSSESSION_HIGH,
    "POSSESSING HIGH SEVERITY DRUG": OffenseKind.DRUG_POSSESSION_HIGH,
    "DRUG TRAFFICKING": OffenseKind.DRUG_TRAFFICKING,
    "DRUG TRAFFICKING CRIME": OffenseKind.DRUG_TRAFFICKING,
    "ATTEMPTING TO SELL": OffenseKind.ATTEMPTING_TO_SELL,
    "WITNESS INTIMIDATION": OffenseKind.WITNESS_INTIMIDATION,
    "MANSLAUGHTER": OffenseKind.MANSLAUGHTER,
    "INVOLUNTARY MANSLAUGHTER": OffenseKind.MANSLAUGHTER,
    "MURDER": OffenseKind.MURDER,
    "EXTERNAL UNKNOWN": OffenseKind.EXTERNAL_UNKNOWN,
}

_VICTIM_TYPE_MAP: Dict[str, VictimType] = {
    "CIVILIAN": VictimType.CIVILIAN,
    "EMPLOYEE": VictimType.EMPLOYEE,
    "POLICE": VictimType.POLICE,
    "POLICE OFFICER": VictimType.POLICE,
    "OFFICER": VictimType.POLICE,
}

# Homicide descriptions that carry the victim type in the label itself.
_HOMICIDE_DESCRIPTION_MAP: Dict[str, VictimType] = {
    "MURDER OF A POLICE OFFICER": VictimType.POLICE,
    "MURDER OF AN EMPLOYEE": VictimType.EMPLOYEE,
    "MURDER OF A CIVILIAN": VictimType.CIVILIAN,
}


def parse_offense_label(
    label: Optional[str], victim_label: Optional[str] = None
) -> Tuple[OffenseKind, Optional[VictimType]]:
    """Resolves a raw offense label, and optionally a raw victim label, into an
    OffenseKind and, for homicide only, a VictimType.

    Labels that cannot be parsed resolve to OffenseKind.EXTERNAL_UNKNOWN. A victim
    label supplied for a non-homicide offense is ignored.
    """
    if not label:
        logging.warning("Found empty offense label, treating as unknown offense")
        return OffenseKind.EXTERNAL_UNKNOWN, None

    victim_from_description = _HOMICIDE_DESCRIPTION_MAP.get(normalize_label(label))
    if victim_from_description:
        return OffenseKind.MURDER, victim_from_description

    try:
        kind = OffenseKind.from_str(label)
    except EnumParsingError:
        logging.warning("Unknown offense label [%s], treating as unknown offense", label)
        return OffenseKind.EXTERNAL_UNKNOWN, None

    if kind is None or not kind.is_homicide:
        return kind or OffenseKind.EXTERNAL_UNKNOWN, None

    if not victim_label:
        return kind, None
    try:
        return kind, VictimType.from_str(victim_label)
    except EnumParsingError:
        logging.warning(
            "Unknown victim type [%s] for homicide, using [%s]",
            victim_label,
            DEFAULT_VICTIM_TYPE.value,
        )
        return kind, DEFAULT_VICTIM_TYPE

