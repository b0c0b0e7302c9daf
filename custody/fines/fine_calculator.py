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
"""Calculates the fines a subject owes for their offenses.

Fines are computed independently from jail sentences:

    1. Offenses are resolved from the ledger, falling back to the raw counter.
    2. Each (kind, count) pair is charged its base fine times the count. Homicide
       is charged from the homicide schedule by victim type instead.
    3. The evaded-arrest addend, if any, is added once.
    4. If a ledger is available, the total is scaled by the repeat offender
       multiplier for the ledger's offense count.
"""
import logging
from typing import Dict, List, Optional

import attr

from custody.common.constants.offenses import OffenseKind, VictimType
from custody.fines.crime_ledger_resolver import (
    CrimeLedgerResolver,
    OffenseSource,
    ResolvedOffenses,
)
from custody.fines.fine_schedule import FineTable
from custody.offenses.offense_record import OffenseLedger, OffenseRecord
from custody.offenses.providers import (
    OffenseLedgerProvider,
    RawOffenseCounterProvider,
)


@attr.s(frozen=True)
class FineLineItem:
    kind: OffenseKind = attr.ib()
    count: int = attr.ib()
    unit_fine: float = attr.ib()
    victim_type: Optional[VictimType] = attr.ib(default=None)

    @property
    def amount(self) -> float:
        return self.unit_fine * self.count


@attr.s(frozen=True)
class FineBreakdown:
    """Every step of a fine calculation, for display and auditing."""

    subject_id: Optional[str] = attr.ib()
    line_items: List[FineLineItem] = attr.ib(factory=list)

    # Counts of offenses charged from the general fine table. Homicide and unknown
    # offense kinds are not included.
    per_kind_counts: Dict[OffenseKind, int] = attr.ib(factory=dict)

    evaded_arrest_addend: float = attr.ib(default=0.0)
    source: OffenseSource = attr.ib(default=OffenseSource.NONE)

    # None when no ledger was available and the multiplier step was skipped.
    repeat_offender_multiplier: Optional[float] = attr.ib(default=None)

    @property
    def base_total(self) -> float:
        return (
            sum(item.amount for item in self.line_items) + self.evaded_arrest_addend
        )

    @property
    def total(self) -> float:
        if self.repeat_offender_multiplier is None:
            return self.base_total
        return self.base_total * self.repeat_offender_multiplier


class FineCalculator:
    """Calculates fines from a subject's offenses using a FineTable."""

    def __init__(
        self,
        fine_table: Optional[FineTable] = None,
        ledger_provider: Optional[OffenseLedgerProvider] = None,
        raw_counter_provider: Optional[RawOffenseCounterProvider] = None,
    ):
        self.fine_table = fine_table or FineTable.load()
        self.ledger_provider = ledger_provider
        self.raw_counter_provider = raw_counter_provider
        self.resolver = CrimeLedgerResolver(
            evaded_arrest_fine=self.fine_table.evaded_arrest_fine
        )

    def calculate_total_fine(
        self, subject_id: str, ledger: Optional[OffenseLedger] = None
    ) -> float:
        """Returns the total fine owed by |subject_id|. If |ledger| is not provided,
        it is looked up from the ledger provider."""
        return self.calculate_fine_breakdown(subject_id, ledger).total

    def calculate_fine_breakdown(
        self, subject_id: str, ledger: Optional[OffenseLedger] = None
    ) -> FineBreakdown:
        if not subject_id:
            logging.warning("Cannot calculate fine for null subject, returning $0")
            return FineBreakdown(subject_id=subject_id)

        if ledger is None and self.ledger_provider is not None:
            ledger = self.ledger_provider.get_ledger(subject_id)
        raw_counter = (
            self.raw_counter_provider.get_raw_counter(subject_id)
            if self.raw_counter_provider is not None
            else None
        )

        resolved = self.resolver.resolve(subject_id, ledger, raw_counter)
        if resolved.is_empty:
            logging.warning(
                "No offenses found for [%s] in ledger or raw counter, returning $0",
                subject_id,
            )
            return FineBreakdown(subject_id=subject_id, source=resolved.source)

        breakdown = self._price_offenses(subject_id, resolved)
        logging.info(
            "Base fine for [%s] before multipliers: $%.2f",
            subject_id,
            breakdown.base_total,
        )

        if ledger is None:
            logging.info(
                "No ledger available for [%s], skipping repeat offender multiplier",
                subject_id,
            )
            return breakdown

        offense_count = ledger.offense_count()
        multiplier = self.fine_table.repeat_offender_multiplier(offense_count)
        breakdown = attr.evolve(breakdown, repeat_offender_multiplier=multiplier)
        logging.info(
            "Repeat offender multiplier for [%s]: [%s] offenses = %sx, total $%.2f",
            subject_id,
            offense_count,
            multiplier,
            breakdown.total,
        )
        return breakdown

    def _price_offenses(
        self, subject_id: str, resolved: ResolvedOffenses
    ) -> FineBreakdown:
        line_items: List[FineLineItem] = []
        per_kind_counts: Dict[OffenseKind, int] = {}
        for record in resolved.records:
            line_items.append(self._price_record(subject_id, record))
            if not record.kind.is_homicide and self.fine_table.has_base_fine(
                record.kind
            ):
                per_kind_counts[record.kind] = (
                    per_kind_counts.get(record.kind, 0) + record.count
                )

        return FineBreakdown(
            subject_id=subject_id,
            line_items=line_items,
            per_kind_counts=per_kind_counts,
            evaded_arrest_addend=resolved.evaded_arrest_addend,
            source=resolved.source,
        )

    def _price_record(self, subject_id: str, record: OffenseRecord) -> FineLineItem:
        if record.kind.is_homicide:
            # Homicide bypasses the general fine table entirely.
            unit_fine = self.fine_table.homicide_fine(record.victim_type)
        else:
            if not self.fine_table.has_base_fine(record.kind):
                logging.warning(
                    "Unknown offense kind [%s] for [%s], using default fine $%.2f",
                    record.kind.value,
                    subject_id,
                    self.fine_table.default_fine,
                )
            unit_fine = self.fine_table.lookup(record.kind)

        item = FineLineItem(
            kind=record.kind,
            count=record.count,
            unit_fine=unit_fine,
            victim_type=record.victim_type,
        )
        logging.info(
            "  [%s] %s x %s = $%.2f",
            subject_id,
            record.kind.value,
            record.count,
            item.amount,
        )
        return item

    def get_base_fine(
        self, kind: OffenseKind, victim_type: Optional[VictimType] = None
    ) -> float:
        """Returns the fine for a single offense of |kind|, without multipliers."""
        if kind.is_homicide and victim_type is not None:
            return self.fine_table.homicide_fine(victim_type)
        return self.fine_table.lookup(kind)
