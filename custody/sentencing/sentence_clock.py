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
"""The countdown for a single active sentence."""
from typing import Callable, Optional

import attr

from custody.sentencing.game_time import (
    REAL_SECONDS_PER_GAME_MINUTE,
    real_seconds_to_game_minutes,
)

CompletionCallback = Callable[[str], None]


@attr.s
class SentenceClock:
    """Tracks how much of a subject's sentence remains.

    Two independent drivers move the clock: discrete simulated-minute ticks and
    periodic wall-clock polls. Whichever has progressed further wins, and the
    remaining time only ever moves toward zero. 0 <= remaining_minutes <=
    total_minutes always holds.

    Not thread-safe on its own, callers must hold the owning registry's lock.
    """

    subject_id: str = attr.ib()
    total_minutes: float = attr.ib()
    remaining_minutes: float = attr.ib()

    # Monotonic wall-clock seconds at which tracking started.
    start_instant: float = attr.ib()

    on_complete: Optional[CompletionCallback] = attr.ib(default=None)

    @classmethod
    def start(
        cls,
        subject_id: str,
        total_minutes: float,
        start_instant: float,
        on_complete: Optional[CompletionCallback] = None,
    ) -> "SentenceClock":
        # Non-positive sentences complete on the next driver pass.
        total_minutes = max(float(total_minutes), 0.0)
        return cls(
            subject_id=subject_id,
            total_minutes=total_minutes,
            remaining_minutes=total_minutes,
            start_instant=start_instant,
            on_complete=on_complete,
        )

    def tick(self, game_minutes: float = 1.0) -> None:
        self.remaining_minutes = max(self.remaining_minutes - game_minutes, 0.0)

    def elapsed_minutes(
        self,
        now: float,
        real_seconds_per_game_minute: float = REAL_SECONDS_PER_GAME_MINUTE,
    ) -> float:
        """Simulated minutes elapsed since tracking started, measured on the wall
        clock."""
        return real_seconds_to_game_minutes(
            max(now - self.start_instant, 0.0), real_seconds_per_game_minute
        )

    def reconcile_wall_clock(
        self,
        now: float,
        real_seconds_per_game_minute: float = REAL_SECONDS_PER_GAME_MINUTE,
    ) -> None:
        """Adopts the wall-clock remaining time if it is further along than the
        ticked remaining time."""
        candidate = self.total_minutes - self.elapsed_minutes(
            now, real_seconds_per_game_minute
        )
        remaining = min(self.remaining_minutes, candidate)
        self.remaining_minutes = min(max(remaining, 0.0), self.total_minutes)

    def is_complete(self) -> bool:
        return self.remaining_minutes <= 0

    def served_minutes(self) -> float:
        return self.total_minutes - self.remaining_minutes

    def live_served_minutes(
        self,
        now: float,
        real_seconds_per_game_minute: float = REAL_SECONDS_PER_GAME_MINUTE,
    ) -> float:
        """Served time including wall-clock progress not yet reconciled, so that
        readers see time move between ticks."""
        served = max(
            self.served_minutes(),
            self.elapsed_minutes(now, real_seconds_per_game_minute),
        )
        return min(served, self.total_minutes)
