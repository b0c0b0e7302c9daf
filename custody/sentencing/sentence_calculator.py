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
"""Calculates how long a subject is confined for their offenses.

The sentence is built in three steps:

    1. Each offense is charged its base sentence. Homicide is charged by victim
       type. Offenses are ordered most serious first and the i-th offense only
       counts for a diminishing share of its base sentence (100%, 75%, 50%, then
       25% for every offense after that).
    2. The sum is scaled by the severity, repeat offender, witness, parole and
       global multipliers.
    3. The result is clamped to the configured minimum and maximum sentence.

The fine is calculated separately by the FineCalculator and attached to the
resulting SentenceSpec for display.
"""
import logging
from typing import List, Optional, Set

import attr

from custody.common.constants.offenses import OffenseKind, VictimType
from custody.fines.crime_ledger_resolver import records_from_raw_counter
from custody.fines.fine_calculator import FineCalculator
from custody.offenses.offense_record import (
    OffenseLedger,
    OffenseRecord,
    RawOffenseCounter,
)
from custody.offenses.providers import (
    OffenseLedgerProvider,
    RawOffenseCounterProvider,
)
from custody.sentencing.game_time import format_game_time
from custody.sentencing.sentence_config import SentenceConfig
from custody.sentencing.sentence_data import SentenceSpec


@attr.s(frozen=True)
class ChargedOffense:
    """A single offense as it counts toward a sentence."""

    kind: OffenseKind = attr.ib()
    base_minutes: float = attr.ib()
    severity: float = attr.ib()
    witness_count: int = attr.ib(default=0)
    victim_type: Optional[VictimType] = attr.ib(default=None)

    @property
    def was_witnessed(self) -> bool:
        return self.witness_count > 0


class SentenceCalculator:
    """Calculates SentenceSpecs from a subject's offenses."""

    def __init__(
        self,
        config: Optional[SentenceConfig] = None,
        fine_calculator: Optional[FineCalculator] = None,
        ledger_provider: Optional[OffenseLedgerProvider] = None,
        raw_counter_provider: Optional[RawOffenseCounterProvider] = None,
    ):
        self.config = config or SentenceConfig.load()
        self.fine_calculator = fine_calculator
        self.ledger_provider = ledger_provider
        self.raw_counter_provider = raw_counter_provider

    def calculate_sentence(
        self,
        subject_id: str,
        ledger: Optional[OffenseLedger] = None,
        on_parole: bool = False,
    ) -> SentenceSpec:
        """Returns the sentence for |subject_id|. If |ledger| is not provided, it is
        looked up from the ledger provider."""
        if not subject_id:
            logging.warning(
                "Cannot calculate sentence for null subject, using minimum sentence"
            )
            return self._minimum_sentence(fine_amount=0.0)

        if ledger is None and self.ledger_provider is not None:
            ledger = self.ledger_provider.get_ledger(subject_id)
        raw_counter = (
            self.raw_counter_provider.get_raw_counter(subject_id)
            if self.raw_counter_provider is not None
            else None
        )

        fine_amount = (
            self.fine_calculator.calculate_total_fine(subject_id, ledger)
            if self.fine_calculator is not None
            else 0.0
        )

        charges = self.get_charged_offenses(subject_id, ledger, raw_counter)
        if not charges:
            logging.warning(
                "No offenses found for [%s], using minimum sentence of [%s] minutes",
                subject_id,
                self.config.min_sentence_minutes,
            )
            return self._minimum_sentence(fine_amount=fine_amount)

        base_minutes = self._total_with_diminishing_returns(charges)
        # Without a ledger there is no offense history to scale by.
        repeat_multiplier = (
            self.config.get_repeat_offender_multiplier(ledger.offense_count())
            if ledger is not None
            else 1.0
        )

        spec = SentenceSpec(
            base_minutes=base_minutes,
            severity_multiplier=self._severity_multiplier(charges),
            repeat_multiplier=repeat_multiplier,
            witness_multiplier=self._witness_multiplier(charges),
            parole_multiplier=(
                self.config.parole_violation_multiplier if on_parole else 1.0
            ),
            global_multiplier=self.config.global_multiplier,
            fine_amount=fine_amount,
        )

        unclamped = spec.unclamped_minutes
        total_minutes = min(
            max(unclamped, self.config.min_sentence_minutes),
            self.config.max_sentence_minutes,
        )
        if total_minutes != unclamped:
            logging.warning(
                "Clamped sentence for [%s] from [%s] to [%s] minutes",
                subject_id,
                unclamped,
                total_minutes,
            )
        spec = attr.evolve(spec, total_minutes=total_minutes)
        logging.info(
            "Sentence for [%s]: %s (%s)",
            subject_id,
            format_game_time(total_minutes),
            spec.get_breakdown(),
        )
        return spec

    def get_charged_offenses(
        self,
        subject_id: str,
        ledger: Optional[OffenseLedger],
        raw_counter: Optional[RawOffenseCounter],
    ) -> List[ChargedOffense]:
        """Returns every offense that counts toward the sentence: all ledger
        instances, plus raw counter offenses of kinds the ledger does not already
        hold."""
        charges: List[ChargedOffense] = []
        ledger_kinds: Set[OffenseKind] = set()
        if ledger is not None:
            for instance in ledger.get_all_offenses():
                if instance is None:
                    logging.warning(
                        "Found null offense instance on ledger for [%s], skipping",
                        subject_id,
                    )
                    continue
                ledger_kinds.add(instance.kind)
                charges.append(
                    ChargedOffense(
                        kind=instance.kind,
                        base_minutes=self._base_minutes(
                            instance.kind, instance.victim_type
                        ),
                        severity=(
                            instance.severity
                            if instance.severity > 0
                            else self.config.get_offense_severity(instance.kind)
                        ),
                        witness_count=instance.witness_count,
                        victim_type=instance.victim_type,
                    )
                )

        if raw_counter is None:
            return charges

        raw_records = records_from_raw_counter(subject_id, raw_counter)
        if raw_counter.evaded_arrest:
            raw_records.append(OffenseRecord(kind=OffenseKind.EVADING_ARREST, count=1))
        for record in raw_records:
            if record.kind in ledger_kinds:
                continue
            # The evaded-arrest flag is not charged again if the counter has the kind.
            ledger_kinds.add(record.kind)
            charges.extend(
                ChargedOffense(
                    kind=record.kind,
                    base_minutes=self._base_minutes(record.kind, record.victim_type),
                    severity=self.config.get_offense_severity(record.kind),
                    victim_type=record.victim_type,
                )
                for _ in range(record.count)
            )
        return charges

    def _base_minutes(
        self, kind: OffenseKind, victim_type: Optional[VictimType]
    ) -> float:
        if kind.is_homicide:
            return self.config.get_homicide_sentence_length(victim_type)
        return self.config.get_sentence_length(kind)

    def _total_with_diminishing_returns(self, charges: List[ChargedOffense]) -> float:
        ordered = sorted(charges, key=lambda c: c.base_minutes, reverse=True)
        return sum(
            charge.base_minutes * self.config.get_diminishing_return(i)
            for i, charge in enumerate(ordered)
        )

    def _severity_multiplier(self, charges: List[ChargedOffense]) -> float:
        average_severity = sum(c.severity for c in charges) / len(charges)
        return self.config.get_severity_multiplier(average_severity)

    def _witness_multiplier(self, charges: List[ChargedOffense]) -> float:
        any_witnessed = any(c.was_witnessed for c in charges)
        # Whole witnesses only.
        average_witness_count = sum(c.witness_count for c in charges) // len(charges)
        return self.config.get_witness_multiplier(average_witness_count, any_witnessed)

    def _minimum_sentence(self, fine_amount: float) -> SentenceSpec:
        return SentenceSpec(
            base_minutes=self.config.min_sentence_minutes,
            total_minutes=self.config.min_sentence_minutes,
            fine_amount=fine_amount,
        )
