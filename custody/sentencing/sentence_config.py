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
"""Configuration for sentence lengths and sentence multipliers.

The default configuration ships with the package in sentence_config.yaml. Each
multiplier family can be switched off, in which case it always evaluates to 1.0.
"""
import logging
import os
from typing import Dict, List, Optional

import attr
from more_itertools import first

from custody.common.constants.mappable_enum import EnumParsingError
from custody.common.constants.offenses import (
    DEFAULT_VICTIM_TYPE,
    OffenseKind,
    VictimType,
)
from custody.utils.yaml_dict import YAMLDict

DEFAULT_SENTENCE_CONFIG_PATH = os.path.join(
    os.path.dirname(__file__), "sentence_config.yaml"
)


@attr.s(frozen=True)
class SeverityBand:
    max_severity: float = attr.ib()
    multiplier: float = attr.ib()


@attr.s(frozen=True)
class SentenceConfig:
    """Sentence lengths, in simulated minutes, and the multipliers applied to
    them."""

    min_sentence_minutes: float = attr.ib()
    max_sentence_minutes: float = attr.ib()
    default_sentence_minutes: float = attr.ib()
    base_sentences: Dict[OffenseKind, float] = attr.ib()
    homicide_sentences: Dict[VictimType, float] = attr.ib()
    diminishing_returns: List[float] = attr.ib()

    severity_bands: List[SeverityBand] = attr.ib()
    above_max_severity_multiplier: float = attr.ib()
    repeat_offender_multipliers: Dict[int, float] = attr.ib()
    unwitnessed_multiplier: float = attr.ib()
    per_additional_witness_bonus: float = attr.ib()
    max_witness_bonus: float = attr.ib()
    parole_violation_multiplier: float = attr.ib()
    global_multiplier: float = attr.ib()

    default_severity: float = attr.ib()
    offense_severities: Dict[OffenseKind, float] = attr.ib()

    enable_severity_multipliers: bool = attr.ib(default=True)
    enable_repeat_offender_multipliers: bool = attr.ib(default=True)
    enable_witness_multipliers: bool = attr.ib(default=True)

    def __attrs_post_init__(self) -> None:
        if self.min_sentence_minutes > self.max_sentence_minutes:
            raise ValueError(
                f"Minimum sentence [{self.min_sentence_minutes}] is greater than "
                f"maximum sentence [{self.max_sentence_minutes}]"
            )
        if not self.diminishing_returns:
            raise ValueError("Expected at least one diminishing returns value")

    def get_sentence_length(self, kind: OffenseKind) -> float:
        if kind in self.base_sentences:
            return self.base_sentences[kind]
        logging.warning(
            "No sentence configured for [%s], using default of [%s] minutes",
            kind.value,
            self.default_sentence_minutes,
        )
        return self.default_sentence_minutes

    def get_homicide_sentence_length(self, victim_type: Optional[VictimType]) -> float:
        return self.homicide_sentences[victim_type or DEFAULT_VICTIM_TYPE]

    def get_offense_severity(self, kind: OffenseKind) -> float:
        return self.offense_severities.get(kind, self.default_severity)

    def get_diminishing_return(self, index: int) -> float:
        """Share of the |index|-th most serious offense's sentence that counts."""
        return self.diminishing_returns[min(index, len(self.diminishing_returns) - 1)]

    def get_severity_multiplier(self, severity: float) -> float:
        if not self.enable_severity_multipliers:
            return 1.0
        band = first(
            (band for band in self.severity_bands if severity <= band.max_severity),
            None,
        )
        return band.multiplier if band else self.above_max_severity_multiplier

    def get_repeat_offender_multiplier(self, offense_count: int) -> float:
        if not self.enable_repeat_offender_multipliers:
            return 1.0
        if not self.repeat_offender_multipliers:
            return 1.0
        applicable = [
            count for count in self.repeat_offender_multipliers if count <= offense_count
        ]
        # Counts below every key, including 0, take the highest key's multiplier.
        return self.repeat_offender_multipliers[
            max(applicable or self.repeat_offender_multipliers)
        ]

    def get_witness_multiplier(self, witness_count: int, was_witnessed: bool) -> float:
        if not self.enable_witness_multipliers:
            return 1.0
        if not was_witnessed or witness_count == 0:
            return self.unwitnessed_multiplier
        bonus = min(
            (witness_count - 1) * self.per_additional_witness_bonus,
            self.max_witness_bonus,
        )
        return 1.0 + bonus

    @classmethod
    def from_yaml_dict(cls, yaml_dict: YAMLDict) -> "SentenceConfig":
        """Builds a SentenceConfig, throwing if any field is missing, has the wrong
        type, or is not expected."""
        min_sentence_minutes = yaml_dict.pop_number("min_sentence_minutes")
        max_sentence_minutes = yaml_dict.pop_number("max_sentence_minutes")
        default_sentence_minutes = yaml_dict.pop_number("default_sentence_minutes")
        base_sentences = _pop_offense_kind_numbers(yaml_dict, "base_sentences")

        raw_homicide = yaml_dict.pop_dict("homicide_sentences")
        homicide_sentences: Dict[VictimType, float] = {}
        for victim_label in raw_homicide.keys():
            try:
                victim_type = VictimType.from_str(victim_label)
            except EnumParsingError as e:
                raise ValueError(
                    f"Unexpected victim type [{victim_label}] in sentence config"
                ) from e
            homicide_sentences[victim_type] = raw_homicide.pop_number(victim_label)
        missing = set(VictimType) - set(homicide_sentences)
        if missing:
            raise ValueError(
                f"Missing homicide sentences for victim types: "
                f"{sorted(victim.value for victim in missing)}"
            )

        diminishing_returns = [
            float(value)
            for value in yaml_dict.pop_list("diminishing_returns", (int, float))  # type: ignore[arg-type]
        ]

        multipliers = yaml_dict.pop_dict("multipliers")
        enable_severity = multipliers.pop("enable_severity", bool)
        enable_repeat_offender = multipliers.pop("enable_repeat_offender", bool)
        enable_witness = multipliers.pop("enable_witness", bool)
        severity_bands = []
        for raw_band in multipliers.pop("severity_bands", list):
            band = YAMLDict(raw_band)
            severity_bands.append(
                SeverityBand(
                    max_severity=band.pop_number("max_severity"),
                    multiplier=band.pop_number("multiplier"),
                )
            )
        above_max_severity = multipliers.pop_number("above_max_severity")
        repeat_offender: Dict[int, float] = {}
        for count, multiplier in multipliers.pop("repeat_offender", dict).items():
            if not isinstance(count, int) or not isinstance(multiplier, (int, float)):
                raise ValueError(
                    f"Invalid repeat offender multiplier entry [{count}: {multiplier}]"
                )
            repeat_offender[count] = float(multiplier)
        unwitnessed = multipliers.pop_number("unwitnessed")
        per_additional_witness = multipliers.pop_number("per_additional_witness")
        max_witness_bonus = multipliers.pop_number("max_witness_bonus")
        parole_violation = multipliers.pop_number("parole_violation")
        global_multiplier = multipliers.pop_number("global")
        if len(multipliers):
            raise ValueError(
                f"Unexpected fields in sentence multipliers: {multipliers.keys()}"
            )

        default_severity = yaml_dict.pop_number("default_severity")
        offense_severities = _pop_offense_kind_numbers(yaml_dict, "offense_severities")

        if len(yaml_dict):
            raise ValueError(f"Unexpected fields in sentence config: {yaml_dict.keys()}")

        return cls(
            min_sentence_minutes=min_sentence_minutes,
            max_sentence_minutes=max_sentence_minutes,
            default_sentence_minutes=default_sentence_minutes,
            base_sentences=base_sentences,
            homicide_sentences=homicide_sentences,
            diminishing_returns=diminishing_returns,
            severity_bands=sorted(severity_bands, key=lambda b: b.max_severity),
            above_max_severity_multiplier=above_max_severity,
            repeat_offender_multipliers=repeat_offender,
            unwitnessed_multiplier=unwitnessed,
            per_additional_witness_bonus=per_additional_witness,
            max_witness_bonus=max_witness_bonus,
            parole_violation_multiplier=parole_violation,
            global_multiplier=global_multiplier,
            default_severity=default_severity,
            offense_severities=offense_severities,
            enable_severity_multipliers=enable_severity,
            enable_repeat_offender_multipliers=enable_repeat_offender,
            enable_witness_multipliers=enable_witness,
        )

    @classmethod
    def load(cls, yaml_path: Optional[str] = None) -> "SentenceConfig":
        yaml_path = yaml_path or DEFAULT_SENTENCE_CONFIG_PATH
        logging.info("Loading sentence config from [%s]", yaml_path)
        return cls.from_yaml_dict(YAMLDict.from_path(yaml_path))


def _pop_offense_kind_numbers(
    yaml_dict: YAMLDict, field: str
) -> Dict[OffenseKind, float]:
    raw = yaml_dict.pop_dict(field)
    result: Dict[OffenseKind, float] = {}
    for kind_label in raw.keys():
        try:
            kind = OffenseKind(kind_label)
        except ValueError as e:
            raise ValueError(f"Unexpected offense kind [{kind_label}] in [{field}]") from e
        result[kind] = raw.pop_number(kind_label)
    return result
