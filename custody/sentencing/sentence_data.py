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
"""Data structures describing a jail sentence and its outcome."""
import attr

from custody.sentencing.game_time import format_game_time


@attr.s(frozen=True)
class SentenceSpec:
    """A calculated jail sentence, in simulated minutes, and the independently
    calculated fine."""

    # Base sentence after diminishing returns, before any multiplier.
    base_minutes: float = attr.ib()

    severity_multiplier: float = attr.ib(default=1.0)
    repeat_multiplier: float = attr.ib(default=1.0)
    witness_multiplier: float = attr.ib(default=1.0)

    # Applied when the subject was on parole when arrested.
    parole_multiplier: float = attr.ib(default=1.0)
    global_multiplier: float = attr.ib(default=1.0)

    # The product of every multiplier applied to base_minutes, clamped to the
    # configured minimum and maximum sentence.
    total_minutes: float = attr.ib(default=0.0)

    fine_amount: float = attr.ib(default=0.0)

    @property
    def unclamped_minutes(self) -> float:
        return (
            self.base_minutes
            * self.severity_multiplier
            * self.repeat_multiplier
            * self.witness_multiplier
            * self.parole_multiplier
            * self.global_multiplier
        )

    @property
    def formatted_sentence(self) -> str:
        return format_game_time(self.total_minutes)

    def get_breakdown(self) -> str:
        return (
            f"Base: {self.base_minutes}m x Severity: {self.severity_multiplier} "
            f"x Repeat: {self.repeat_multiplier} x Witness: {self.witness_multiplier} "
            f"x Parole: {self.parole_multiplier} x Global: {self.global_multiplier} "
            f"= {self.total_minutes}m"
        )


@attr.s(frozen=True)
class CompletedSnapshot:
    """What is left of a sentence once it is no longer tracked. Kept until the
    consumer clears it."""

    subject_id: str = attr.ib()
    original_minutes: float = attr.ib()
    served_minutes: float = attr.ib()

    # False when the sentence was stopped early instead of running out.
    completed_naturally: bool = attr.ib(default=True)
