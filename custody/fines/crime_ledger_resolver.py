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
"""Resolves a subject's offenses from whichever offense source takes priority.

The ledger is authoritative: when it holds any entries it is the only source used.
Otherwise the raw counter is used, along with its separate evaded-arrest flag.
"""
import logging
from enum import Enum
from typing import Dict, List, Optional

import attr

from custody.common.constants.offenses import OffenseKind
from custody.offenses.offense_record import (
    OffenseKey,
    OffenseLedger,
    OffenseRecord,
    RawOffenseCounter,
)


class OffenseSource(Enum):
    LEDGER = "LEDGER"
    RAW_COUNTER = "RAW_COUNTER"
    NONE = "NONE"


@attr.s(frozen=True)
class ResolvedOffenses:
    """The per-kind offense counts for a subject, from a single source."""

    # (kind, count) pairs in the order each kind was first seen.
    records: List[OffenseRecord] = attr.ib(factory=list)

    # Flat fine owed for evading arrest. Always 0 when the ledger was the source.
    evaded_arrest_addend: float = attr.ib(default=0.0)

    source: OffenseSource = attr.ib(default=OffenseSource.NONE)

    @property
    def is_empty(self) -> bool:
        """True when no source produced any offense. This is distinct from offenses
        that happen to be worth nothing."""
        return not self.records and not self.evaded_arrest_addend


class CrimeLedgerResolver:
    """Picks an offense source by priority and groups its offenses by kind."""

    def __init__(self, evaded_arrest_fine: float):
        self.evaded_arrest_fine = evaded_arrest_fine

    def resolve(
        self,
        subject_id: str,
        ledger: Optional[OffenseLedger],
        raw_counter: Optional[RawOffenseCounter],
    ) -> ResolvedOffenses:
        if ledger is not None and not ledger.is_empty():
            logging.info(
                "Resolving offenses for [%s] from ledger with [%s] instances",
                subject_id,
                ledger.offense_count(),
            )
            return ResolvedOffenses(
                records=records_from_ledger(subject_id, ledger),
                source=OffenseSource.LEDGER,
            )

        if raw_counter is not None:
            logging.info(
                "Ledger empty or unavailable for [%s], resolving from raw counter",
                subject_id,
            )
            evaded_arrest_addend = (
                self.evaded_arrest_fine if raw_counter.evaded_arrest else 0.0
            )
            return ResolvedOffenses(
                records=records_from_raw_counter(subject_id, raw_counter),
                evaded_arrest_addend=evaded_arrest_addend,
                source=OffenseSource.RAW_COUNTER,
            )

        logging.info("No offense source available for [%s]", subject_id)
        return ResolvedOffenses()


def records_from_ledger(subject_id: str, ledger: OffenseLedger) -> List[OffenseRecord]:
    """Groups the ledger's instances by offense key, in first-seen order."""
    counts: Dict[OffenseKey, int] = {}
    for instance in ledger.get_all_offenses():
        if instance is None:
            logging.warning(
                "Found null offense instance on ledger for [%s], skipping",
                subject_id,
            )
            continue
        counts[instance.key] = counts.get(instance.key, 0) + 1
    return _to_records(counts)


def records_from_raw_counter(
    subject_id: str, raw_counter: RawOffenseCounter
) -> List[OffenseRecord]:
    counts: Dict[OffenseKey, int] = {}
    for key, count in raw_counter.counts.items():
        if key is None:
            logging.warning(
                "Found null offense entry in raw counter for [%s], skipping",
                subject_id,
            )
            continue
        if isinstance(key, OffenseKind):
            key = OffenseKey.for_offense(key)
        if count < 0:
            logging.warning(
                "Found negative count [%s] for [%s] in raw counter for [%s], skipping",
                count,
                key.kind.value,
                subject_id,
            )
            continue
        if count == 0:
            continue
        counts[key] = counts.get(key, 0) + count
    return _to_records(counts)


def _to_records(counts: Dict[OffenseKey, int]) -> List[OffenseRecord]:
    return [
        OffenseRecord(kind=key.kind, count=count, victim_type=key.victim_type)
        for key, count in counts.items()
    ]
