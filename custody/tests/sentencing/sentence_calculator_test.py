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
"""Tests for SentenceCalculator."""
import unittest
from typing import Optional

import attr

from custody.common.constants.offenses import OffenseKind, VictimType
from custody.fines.fine_calculator import FineCalculator
from custody.fines.fine_schedule import FineTable
from custody.offenses.offense_record import OffenseInstance, OffenseLedger
from custody.offenses.providers import (
    InMemoryOffenseLedgerProvider,
    InMemoryRawOffenseCounterProvider,
)
from custody.sentencing.sentence_calculator import SentenceCalculator
from custody.sentencing.sentence_config import SentenceConfig
from custody.sentencing.sentence_data import SentenceSpec

_SUBJECT = "subject-1"


class TestSentenceCalculator(unittest.TestCase):
    """Tests for SentenceCalculator."""

    def setUp(self) -> None:
        self.config = SentenceConfig.load()
        self.ledger_provider = InMemoryOffenseLedgerProvider()
        self.raw_counter_provider = InMemoryRawOffenseCounterProvider()
        self.fine_calculator = FineCalculator(
            fine_table=FineTable.load(),
            ledger_provider=self.ledger_provider,
            raw_counter_provider=self.raw_counter_provider,
        )
        self.calculator = SentenceCalculator(
            config=self.config,
            fine_calculator=self.fine_calculator,
            ledger_provider=self.ledger_provider,
            raw_counter_provider=self.raw_counter_provider,
        )

    def _record(
        self,
        kind: OffenseKind,
        severity: float = 1.0,
        witness_count: int = 1,
        victim_type: Optional[VictimType] = None,
    ) -> None:
        self.ledger_provider.record_offense(
            _SUBJECT,
            OffenseInstance(
                kind=kind,
                victim_type=victim_type,
                severity=severity,
                witness_count=witness_count,
            ),
        )

    def test_single_offense(self) -> None:
        self._record(OffenseKind.BURGLARY, severity=2.0)

        spec = self.calculator.calculate_sentence(_SUBJECT)

        self.assertEqual(
            SentenceSpec(
                base_minutes=2160.0,
                severity_multiplier=2.0,
                repeat_multiplier=1.0,
                witness_multiplier=1.0,
                parole_multiplier=1.0,
                global_multiplier=1.0,
                total_minutes=4320.0,
                fine_amount=1500.0,
            ),
            spec,
        )

    def test_diminishing_returns(self) -> None:
        for kind in [
            OffenseKind.SPEEDING,
            OffenseKind.THEFT,
            OffenseKind.TRESPASSING,
            OffenseKind.BURGLARY,
            OffenseKind.VANDALISM,
        ]:
            self._record(kind)

        spec = self.calculator.calculate_sentence(_SUBJECT)

        # 2160 + 120 * 0.75 + 30 * 0.5 + 15 * 0.25 + 3 * 0.25
        self.assertAlmostEqual(2269.5, spec.base_minutes)
        self.assertEqual(2.0, spec.repeat_multiplier)
        self.assertAlmostEqual(4539.0, spec.total_minutes)

    def test_homicide_by_victim_type(self) -> None:
        self._record(OffenseKind.MURDER, victim_type=VictimType.EMPLOYEE)

        spec = self.calculator.calculate_sentence(_SUBJECT)

        self.assertEqual(6480.0, spec.base_minutes)
        self.assertEqual(6480.0, spec.total_minutes)
        self.assertEqual(20000.0, spec.fine_amount)

    def test_clamped_to_maximum(self) -> None:
        self._record(OffenseKind.MURDER, severity=4.0, victim_type=VictimType.POLICE)

        with self.assertLogs(level="WARNING"):
            spec = self.calculator.calculate_sentence(_SUBJECT)

        self.assertEqual(28800.0, spec.unclamped_minutes)
        self.assertEqual(7200.0, spec.total_minutes)

    def test_clamped_to_minimum(self) -> None:
        self._record(OffenseKind.SPEEDING, witness_count=0)

        with self.assertLogs(level="WARNING"):
            spec = self.calculator.calculate_sentence(_SUBJECT)

        self.assertEqual(0.8, spec.witness_multiplier)
        self.assertEqual(120.0, spec.total_minutes)

    def test_on_parole(self) -> None:
        self._record(OffenseKind.BURGLARY)

        spec = self.calculator.calculate_sentence(_SUBJECT, on_parole=True)

        self.assertEqual(1.5, spec.parole_multiplier)
        self.assertAlmostEqual(3240.0, spec.total_minutes)

    def test_global_multiplier(self) -> None:
        self._record(OffenseKind.BURGLARY)
        calculator = SentenceCalculator(
            config=attr.evolve(self.config, global_multiplier=0.5),
            ledger_provider=self.ledger_provider,
        )

        spec = calculator.calculate_sentence(_SUBJECT)

        self.assertEqual(1080.0, spec.total_minutes)
        self.assertEqual(0.0, spec.fine_amount)

    def test_raw_counter_kinds_not_on_ledger_are_added(self) -> None:
        self._record(OffenseKind.THEFT)
        self.raw_counter_provider.record_offense(_SUBJECT, OffenseKind.THEFT, count=3)
        self.raw_counter_provider.record_offense(
            _SUBJECT, OffenseKind.VANDALISM, count=2
        )

        ledger = self.ledger_provider.get_ledger(_SUBJECT)
        raw_counter = self.raw_counter_provider.get_raw_counter(_SUBJECT)
        charges = self.calculator.get_charged_offenses(_SUBJECT, ledger, raw_counter)
        spec = self.calculator.calculate_sentence(_SUBJECT)

        self.assertEqual(
            [OffenseKind.THEFT, OffenseKind.VANDALISM, OffenseKind.VANDALISM],
            [charge.kind for charge in charges],
        )
        # 120 + 30 * 0.75 + 30 * 0.5
        self.assertAlmostEqual(157.5, spec.base_minutes)
        # One witness spread over three offenses rounds down to none.
        self.assertEqual(0.8, spec.witness_multiplier)
        self.assertAlmostEqual(126.0, spec.total_minutes)

    def test_raw_counter_only(self) -> None:
        self.raw_counter_provider.record_offense(
            _SUBJECT, OffenseKind.VEHICLE_THEFT, count=2
        )
        self.raw_counter_provider.set_evaded_arrest(_SUBJECT)

        spec = self.calculator.calculate_sentence(_SUBJECT)

        # 360 + 240 * 0.75 + 240 * 0.5
        self.assertAlmostEqual(660.0, spec.base_minutes)
        self.assertEqual(2.0, spec.severity_multiplier)
        self.assertEqual(1.0, spec.repeat_multiplier)
        self.assertEqual(0.8, spec.witness_multiplier)
        self.assertAlmostEqual(1056.0, spec.total_minutes)
        self.assertEqual(1300.0, spec.fine_amount)

    def test_raw_counter_with_empty_ledger_takes_highest_repeat_multiplier(
        self,
    ) -> None:
        self.raw_counter_provider.record_offense(
            _SUBJECT, OffenseKind.VEHICLE_THEFT, count=2
        )
        self.raw_counter_provider.set_evaded_arrest(_SUBJECT)

        spec = self.calculator.calculate_sentence(
            _SUBJECT, OffenseLedger(subject_id=_SUBJECT)
        )

        self.assertAlmostEqual(660.0, spec.base_minutes)
        self.assertEqual(2.0, spec.repeat_multiplier)
        self.assertAlmostEqual(2112.0, spec.total_minutes)
        self.assertAlmostEqual(2600.0, spec.fine_amount)

    def test_null_ledger_entries_skipped(self) -> None:
        ledger = OffenseLedger(
            subject_id=_SUBJECT,
            instances=[
                None,
                OffenseInstance(kind=OffenseKind.BURGLARY, witness_count=1),
            ],
        )

        with self.assertLogs(level="WARNING"):
            spec = self.calculator.calculate_sentence(_SUBJECT, ledger)

        self.assertEqual(2160.0, spec.base_minutes)
        # The null entry still counts towards the ledger's offense count.
        self.assertEqual(1.25, spec.repeat_multiplier)

    def test_no_offenses_is_minimum_sentence(self) -> None:
        with self.assertLogs(level="WARNING"):
            spec = self.calculator.calculate_sentence(_SUBJECT)

        self.assertEqual(
            SentenceSpec(base_minutes=120.0, total_minutes=120.0, fine_amount=0.0),
            spec,
        )

    def test_null_subject(self) -> None:
        with self.assertLogs(level="WARNING"):
            spec = self.calculator.calculate_sentence("")

        self.assertEqual(120.0, spec.total_minutes)
        self.assertEqual(0.0, spec.fine_amount)
