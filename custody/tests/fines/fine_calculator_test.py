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
"""Tests for FineCalculator."""
import unittest
from typing import List, Optional

from custody.common.constants.offenses import OffenseKind, VictimType
from custody.fines.crime_ledger_resolver import OffenseSource
from custody.fines.fine_calculator import FineCalculator, FineLineItem
from custody.fines.fine_schedule import FineTable
from custody.offenses.offense_record import OffenseInstance, OffenseLedger
from custody.offenses.providers import (
    InMemoryOffenseLedgerProvider,
    InMemoryRawOffenseCounterProvider,
)

_SUBJECT = "subject-1"


def _ledger(
    kinds: List[OffenseKind], victim_type: Optional[VictimType] = None
) -> OffenseLedger:
    return OffenseLedger(
        subject_id=_SUBJECT,
        instances=[
            OffenseInstance(kind=kind, victim_type=victim_type) for kind in kinds
        ],
    )


class TestFineCalculator(unittest.TestCase):
    """Tests for FineCalculator."""

    def setUp(self) -> None:
        self.fine_table = FineTable.load()
        self.ledger_provider = InMemoryOffenseLedgerProvider()
        self.raw_counter_provider = InMemoryRawOffenseCounterProvider()
        self.calculator = FineCalculator(
            fine_table=self.fine_table,
            ledger_provider=self.ledger_provider,
            raw_counter_provider=self.raw_counter_provider,
        )

    def test_single_kind_with_ledger(self) -> None:
        expected_multipliers = {1: 1.0, 2: 1.25, 3: 1.5, 4: 2.0, 7: 2.0}
        for count, multiplier in expected_multipliers.items():
            ledger = _ledger([OffenseKind.THEFT] * count)

            total = self.calculator.calculate_total_fine(_SUBJECT, ledger)

            self.assertAlmostEqual(200.0 * count * multiplier, total)

    def test_ledger_looked_up_from_provider(self) -> None:
        for _ in range(2):
            self.ledger_provider.record_offense(
                _SUBJECT, OffenseInstance(kind=OffenseKind.VANDALISM)
            )

        self.assertAlmostEqual(
            50.0 * 2 * 1.25, self.calculator.calculate_total_fine(_SUBJECT)
        )

    def test_homicide_uses_victim_table(self) -> None:
        expected = {
            VictimType.POLICE: 25000.0,
            VictimType.EMPLOYEE: 20000.0,
            VictimType.CIVILIAN: 15000.0,
            None: 15000.0,
        }
        for victim_type, amount in expected.items():
            ledger = _ledger([OffenseKind.MURDER], victim_type)

            breakdown = self.calculator.calculate_fine_breakdown(_SUBJECT, ledger)

            self.assertAlmostEqual(amount, breakdown.total)
            self.assertEqual({}, breakdown.per_kind_counts)

    def test_homicide_not_summed_with_general_table(self) -> None:
        fine_table = FineTable(
            base_fines={OffenseKind.MURDER: 999999.0, OffenseKind.THEFT: 200.0},
            homicide_fines={
                VictimType.CIVILIAN: 15000.0,
                VictimType.EMPLOYEE: 20000.0,
                VictimType.POLICE: 25000.0,
            },
        )
        calculator = FineCalculator(fine_table=fine_table)
        ledger = OffenseLedger(
            subject_id=_SUBJECT,
            instances=[
                OffenseInstance(kind=OffenseKind.MURDER, victim_type=VictimType.POLICE),
                OffenseInstance(kind=OffenseKind.THEFT),
            ],
        )

        breakdown = calculator.calculate_fine_breakdown(_SUBJECT, ledger)

        self.assertAlmostEqual((25000.0 + 200.0) * 1.25, breakdown.total)
        self.assertEqual({OffenseKind.THEFT: 1}, breakdown.per_kind_counts)

    def test_mixed_homicide_victims(self) -> None:
        ledger = OffenseLedger(
            subject_id=_SUBJECT,
            instances=[
                OffenseInstance(kind=OffenseKind.MURDER, victim_type=VictimType.CIVILIAN),
                OffenseInstance(kind=OffenseKind.MURDER, victim_type=VictimType.POLICE),
            ],
        )

        total = self.calculator.calculate_total_fine(_SUBJECT, ledger)

        self.assertAlmostEqual((15000.0 + 25000.0) * 1.25, total)

    def test_multiplier_skipped_without_ledger(self) -> None:
        self.raw_counter_provider.record_offense(_SUBJECT, OffenseKind.THEFT, count=3)

        breakdown = self.calculator.calculate_fine_breakdown(_SUBJECT)

        self.assertEqual(OffenseSource.RAW_COUNTER, breakdown.source)
        self.assertIsNone(breakdown.repeat_offender_multiplier)
        self.assertAlmostEqual(600.0, breakdown.total)

    def test_multiplier_applied_with_empty_ledger(self) -> None:
        # The ledger handle is present even though the raw counter is the source.
        self.raw_counter_provider.record_offense(_SUBJECT, OffenseKind.THEFT, count=3)
        ledger = OffenseLedger(subject_id=_SUBJECT)

        breakdown = self.calculator.calculate_fine_breakdown(_SUBJECT, ledger)

        self.assertEqual(OffenseSource.RAW_COUNTER, breakdown.source)
        # An empty ledger has no threshold to match and takes the highest one.
        self.assertEqual(2.0, breakdown.repeat_offender_multiplier)
        self.assertAlmostEqual(1200.0, breakdown.total)

    def test_single_offense_with_empty_ledger_doubles(self) -> None:
        self.raw_counter_provider.record_offense(_SUBJECT, OffenseKind.THEFT)

        total = self.calculator.calculate_total_fine(
            _SUBJECT, OffenseLedger(subject_id=_SUBJECT)
        )

        self.assertAlmostEqual(400.0, total)

    def test_unknown_kind_uses_default(self) -> None:
        ledger = _ledger([OffenseKind.EXTERNAL_UNKNOWN])

        with self.assertLogs(level="WARNING"):
            breakdown = self.calculator.calculate_fine_breakdown(_SUBJECT, ledger)

        self.assertEqual(
            [FineLineItem(kind=OffenseKind.EXTERNAL_UNKNOWN, count=1, unit_fine=25.0)],
            breakdown.line_items,
        )
        self.assertEqual({}, breakdown.per_kind_counts)
        self.assertAlmostEqual(25.0, breakdown.total)

    def test_evaded_arrest_applied_once_on_raw_counter_path(self) -> None:
        self.raw_counter_provider.record_offense(
            _SUBJECT, OffenseKind.VANDALISM, count=2
        )
        self.raw_counter_provider.record_offense(_SUBJECT, OffenseKind.THEFT)
        self.raw_counter_provider.set_evaded_arrest(_SUBJECT)

        breakdown = self.calculator.calculate_fine_breakdown(_SUBJECT)

        self.assertEqual(300.0, breakdown.evaded_arrest_addend)
        self.assertEqual(
            {OffenseKind.VANDALISM: 2, OffenseKind.THEFT: 1}, breakdown.per_kind_counts
        )
        self.assertAlmostEqual(50.0 * 2 + 200.0 + 300.0, breakdown.total)

    def test_evaded_arrest_ignored_on_ledger_path(self) -> None:
        self.raw_counter_provider.set_evaded_arrest(_SUBJECT)
        ledger = _ledger([OffenseKind.THEFT])

        breakdown = self.calculator.calculate_fine_breakdown(_SUBJECT, ledger)

        self.assertEqual(0.0, breakdown.evaded_arrest_addend)
        self.assertAlmostEqual(200.0, breakdown.total)

    def test_evaded_arrest_only(self) -> None:
        self.raw_counter_provider.set_evaded_arrest(_SUBJECT)

        self.assertAlmostEqual(300.0, self.calculator.calculate_total_fine(_SUBJECT))

    def test_no_offenses_returns_zero_without_multiplier(self) -> None:
        with self.assertLogs(level="WARNING"):
            breakdown = self.calculator.calculate_fine_breakdown(
                _SUBJECT, OffenseLedger(subject_id=_SUBJECT)
            )

        self.assertEqual(0.0, breakdown.total)
        self.assertIsNone(breakdown.repeat_offender_multiplier)
        self.assertEqual([], breakdown.line_items)

    def test_no_sources_returns_zero(self) -> None:
        calculator = FineCalculator(fine_table=self.fine_table)

        with self.assertLogs(level="WARNING"):
            self.assertEqual(0.0, calculator.calculate_total_fine(_SUBJECT))

    def test_null_subject_returns_zero(self) -> None:
        with self.assertLogs(level="WARNING"):
            self.assertEqual(0.0, self.calculator.calculate_total_fine(""))

    def test_get_base_fine(self) -> None:
        self.assertEqual(200.0, self.calculator.get_base_fine(OffenseKind.THEFT))
        self.assertEqual(
            25000.0,
            self.calculator.get_base_fine(OffenseKind.MURDER, VictimType.POLICE),
        )
        self.assertEqual(
            15000.0, self.calculator.get_base_fine(OffenseKind.MURDER, None)
        )
        self.assertEqual(
            25.0, self.calculator.get_base_fine(OffenseKind.EXTERNAL_UNKNOWN)
        )

    def test_loads_default_fine_table(self) -> None:
        calculator = FineCalculator()

        self.assertEqual(self.fine_table, calculator.fine_table)
