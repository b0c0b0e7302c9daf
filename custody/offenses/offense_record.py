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
"""Models for the two sources of offense data about a subject.

The OffenseLedger is the authoritative, post-arrest list of offense instances. The
RawOffenseCounter is the pre-processing fallback, a count of offenses by kind plus
a standalone flag for evading arrest.
"""
from typing import Dict, List, Optional

import attr

from custody.common.constants.offenses import (
    OffenseKind,
    VictimType,
    parse_offense_label,
)


@attr.s(frozen=True)
class OffenseKey:
    """Identifies a group of like offenses. The victim type is only ever set for
    homicide offenses."""

    kind: OffenseKind = attr.ib()
    victim_type: Optional[VictimType] = attr.ib(default=None)

    @classmethod
    def for_offense(
        cls, kind: OffenseKind, victim_type: Optional[VictimType] = None
    ) -> "OffenseKey":
        return cls(kind=kind, victim_type=victim_type if kind.is_homicide else None)


@attr.s(frozen=True)
class OffenseRecord:
    """A resolved (kind, count) pair produced from one of the offense sources."""

    kind: OffenseKind = attr.ib()
    count: int = attr.ib(validator=attr.validators.instance_of(int))
    victim_type: Optional[VictimType] = attr.ib(default=None)

    @count.validator
    def _count_is_non_negative(self, _attribute: attr.Attribute, value: int) -> None:
        if value < 0:
            raise ValueError(f"Offense count must be non-negative, found [{value}]")


@attr.s(frozen=True)
class OffenseInstance:
    """A single offense recorded on a subject's ledger."""

    kind: OffenseKind = attr.ib()

    # Only meaningful for homicide offenses.
    victim_type: Optional[VictimType] = attr.ib(default=None)

    # How serious this particular instance was, on a 1.0 - 4.0 scale.
    severity: float = attr.ib(default=1.0)

    # The number of people who saw the offense happen.
    witness_count: int = attr.ib(default=0)

    # Free-text description from the upstream source, kept for display.
    description: Optional[str] = attr.ib(default=None)

    @property
    def was_witnessed(self) -> bool:
        return self.witness_count > 0

    @property
    def key(self) -> OffenseKey:
        return OffenseKey.for_offense(self.kind, self.victim_type)

    @classmethod
    def from_label(
        cls,
        label: Optional[str],
        victim_label: Optional[str] = None,
        severity: float = 1.0,
        witness_count: int = 0,
    ) -> "OffenseInstance":
        kind, victim_type = parse_offense_label(label, victim_label)
        return cls(
            kind=kind,
            victim_type=victim_type,
            severity=severity,
            witness_count=witness_count,
            description=label,
        )


@attr.s
class OffenseLedger:
    """The authoritative, ordered list of offense instances for a subject.

    Entries may be None when an upstream record could not be loaded; consumers skip
    them.
    """

    subject_id: str = attr.ib()
    instances: List[Optional[OffenseInstance]] = attr.ib(factory=list)

    def add_offense(self, instance: Optional[OffenseInstance]) -> None:
        self.instances.append(instance)

    def get_all_offenses(self) -> List[Optional[OffenseInstance]]:
        return list(self.instances)

    def offense_count(self) -> int:
        """The total number of offense instances on the ledger."""
        return len(self.instances)

    def is_empty(self) -> bool:
        return not self.instances


@attr.s
class RawOffenseCounter:
    """Pre-processing fallback source: offense counts by kind, plus whether the
    subject evaded arrest. Evading arrest is tracked separately from the counts."""

    counts: Dict[Optional[OffenseKey], int] = attr.ib(factory=dict)
    evaded_arrest: bool = attr.ib(default=False)

    @classmethod
    def from_kind_counts(
        cls, kind_counts: Dict[OffenseKind, int], evaded_arrest: bool = False
    ) -> "RawOffenseCounter":
        return cls(
            counts={
                OffenseKey.for_offense(kind): count
                for kind, count in kind_counts.items()
            },
            evaded_arrest=evaded_arrest,
        )

    def record_offense(
        self,
        kind: OffenseKind,
        victim_type: Optional[VictimType] = None,
        count: int = 1,
    ) -> None:
        key = OffenseKey.for_offense(kind, victim_type)
        self.counts[key] = self.counts.get(key, 0) + count

    def is_empty(self) -> bool:
        return not self.counts and not self.evaded_arrest
