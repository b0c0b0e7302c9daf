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
"""Interfaces for looking up a subject's offense data, with in-memory
implementations that hold state for the current run."""
import abc
import logging
from threading import Lock
from typing import Dict, Optional

from custody.common.constants.offenses import OffenseKind, VictimType
from custody.offenses.offense_record import (
    OffenseInstance,
    OffenseLedger,
    RawOffenseCounter,
)


class OffenseLedgerProvider(abc.ABC):
    """Provides the authoritative, post-arrest offense ledger for a subject."""

    @abc.abstractmethod
    def get_ledger(self, subject_id: str) -> Optional[OffenseLedger]:
        """Returns the subject's ledger, or None if the subject has none yet."""


class RawOffenseCounterProvider(abc.ABC):
    """Provides the raw, pre-processing offense counts for a subject."""

    @abc.abstractmethod
    def get_raw_counter(self, subject_id: str) -> Optional[RawOffenseCounter]:
        """Returns the subject's raw offense counter, or None if unavailable."""


class InMemoryOffenseLedgerProvider(OffenseLedgerProvider):
    """Holds one OffenseLedger per subject for the lifetime of the process."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._ledgers: Dict[str, OffenseLedger] = {}

    def get_ledger(self, subject_id: str) -> Optional[OffenseLedger]:
        with self._lock:
            return self._ledgers.get(subject_id)

    def get_or_create_ledger(self, subject_id: str) -> OffenseLedger:
        with self._lock:
            if subject_id not in self._ledgers:
                logging.info("Creating offense ledger for subject [%s]", subject_id)
                self._ledgers[subject_id] = OffenseLedger(subject_id=subject_id)
            return self._ledgers[subject_id]

    def record_offense(self, subject_id: str, instance: OffenseInstance) -> None:
        self.get_or_create_ledger(subject_id).add_offense(instance)

    def remove_ledger(self, subject_id: str) -> None:
        with self._lock:
            self._ledgers.pop(subject_id, None)


class InMemoryRawOffenseCounterProvider(RawOffenseCounterProvider):
    """Holds one RawOffenseCounter per subject for the lifetime of the process."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._counters: Dict[str, RawOffenseCounter] = {}

    def get_raw_counter(self, subject_id: str) -> Optional[RawOffenseCounter]:
        with self._lock:
            return self._counters.get(subject_id)

    def record_offense(
        self,
        subject_id: str,
        kind: OffenseKind,
        victim_type: Optional[VictimType] = None,
        count: int = 1,
    ) -> None:
        with self._lock:
            counter = self._counters.setdefault(subject_id, RawOffenseCounter())
            counter.record_offense(kind, victim_type=victim_type, count=count)

    def set_evaded_arrest(self, subject_id: str, evaded_arrest: bool = True) -> None:
        with self._lock:
            counter = self._counters.setdefault(subject_id, RawOffenseCounter())
            counter.evaded_arrest = evaded_arrest

    def clear(self, subject_id: str) -> None:
        """Drops the raw counts, e.g. once they have been moved onto a ledger."""
        with self._lock:
            self._counters.pop(subject_id, None)
