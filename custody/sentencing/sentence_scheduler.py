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
"""Drives a SentenceRegistry from simulated-time events and a wall-clock poll.

Tick, poll, start and stop events are all funneled through one SerialTaskQueue,
so the registry is only ever mutated by a single consumer thread, in the order
the events arrived. Queries go straight to the registry.
"""
import logging
from threading import Lock
from typing import Optional

from custody.sentencing.game_time import SimulatedTimeNotifier
from custody.sentencing.sentence_clock import CompletionCallback
from custody.sentencing.sentence_registry import SentenceRegistry
from custody.utils.serial_task_queue import SerialTaskQueue
from custody.utils.timer import RepeatedTimer


class SentenceScheduler:
    """Owns both time drivers for a SentenceRegistry."""

    def __init__(
        self,
        registry: SentenceRegistry,
        notifier: SimulatedTimeNotifier,
        poll_period_seconds: Optional[float] = None,
        name: str = "sentence-scheduler",
    ):
        self.registry = registry
        self.notifier = notifier
        # One poll period corresponds to one simulated minute by default.
        self.poll_period_seconds = (
            registry.real_seconds_per_game_minute
            if poll_period_seconds is None
            else poll_period_seconds
        )
        self.name = name
        self.queue = SerialTaskQueue(name=name)

        self._lock = Lock()
        self._timer: Optional[RepeatedTimer] = None

    def start(self) -> None:
        with self._lock:
            if self._timer is not None:
                logging.warning("Scheduler [%s] is already running", self.name)
                return
            timer = RepeatedTimer(
                self.poll_period_seconds,
                self._on_poll,
                name=f"{self.name}-poll",
            )
            self.notifier.subscribe(self._on_game_minute)
            self._timer = timer
            self._timer.start()
        logging.info("Started scheduler [%s]", self.name)

    def shutdown(self) -> None:
        """Stops both drivers. Events already queued still run."""
        with self._lock:
            if self._timer is None:
                logging.warning("Scheduler [%s] is not running", self.name)
                return
            self.notifier.unsubscribe(self._on_game_minute)
            self._timer.stop_timer()
            self._timer.join()
            self._timer = None
        logging.info("Shut down scheduler [%s]", self.name)

    def is_running(self) -> bool:
        with self._lock:
            return self._timer is not None

    def join(self) -> None:
        """Waits for every queued event to be applied."""
        self.queue.join()

    def submit_start(
        self,
        subject_id: str,
        total_minutes: float,
        on_complete: Optional[CompletionCallback] = None,
    ) -> bool:
        return self.queue.add_task(
            f"start_tracking:{subject_id}",
            self.registry.start_tracking,
            subject_id,
            total_minutes,
            on_complete,
        )

    def submit_stop(self, subject_id: str) -> bool:
        return self.queue.add_task(
            f"stop_tracking:{subject_id}", self.registry.stop_tracking, subject_id
        )

    def _on_game_minute(self, minute: int) -> None:
        self.queue.add_task(
            "on_game_minute_elapsed", self.registry.on_game_minute_elapsed, minute
        )

    def _on_poll(self) -> None:
        self.queue.add_task("poll_wall_clock", self.registry.poll_wall_clock)
