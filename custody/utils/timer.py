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
"""
Implements the RepeatedTimer class, which invokes a callback on a fixed real-time
period from a background thread. Used to drive wall-clock polling of active
sentences.
"""
import logging
import threading
from typing import Callable, Optional


class RepeatedTimer(threading.Thread):
    """Starts a daemon thread that calls |callback| every |period_seconds| until
    stop_timer() is called."""

    def __init__(
        self,
        period_seconds: float,
        callback: Callable[[], None],
        name: Optional[str] = None,
        run_immediately: bool = False,
    ):
        if period_seconds <= 0:
            raise ValueError(
                f"Timer period must be positive, found [{period_seconds}]."
            )
        threading.Thread.__init__(self, name=name)
        self.period_seconds = period_seconds
        self.callback = callback
        self.run_immediately = run_immediately

        self.daemon = True
        self.stop_event = threading.Event()

    def run(self) -> None:
        logging.info(
            "Starting timer [%s] with a period of [%s] seconds",
            self.name,
            self.period_seconds,
        )
        if self.run_immediately:
            self.callback()
        while True:
            # True if stop_timer() was called before the period elapsed
            is_set = self.stop_event.wait(timeout=self.period_seconds)
            if is_set:
                break
            self.callback()
        logging.info("Timer [%s] stopped", self.name)

    def stop_timer(self) -> None:
        self.stop_event.set()

    def is_stopped(self) -> bool:
        return self.stop_event.is_set()
