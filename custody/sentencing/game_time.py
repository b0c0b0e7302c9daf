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
"""Simulated ("game") time: unit conversions, formatting, and the notifier that
publishes one event per elapsed simulated minute.

By default one real second corresponds to one simulated minute.
"""
import logging
import math
from threading import Lock
from typing import Callable, List

REAL_SECONDS_PER_GAME_MINUTE = 1.0
GAME_MINUTES_PER_GAME_HOUR = 60
GAME_HOURS_PER_GAME_DAY = 24
GAME_MINUTES_PER_GAME_DAY = GAME_MINUTES_PER_GAME_HOUR * GAME_HOURS_PER_GAME_DAY

GameMinuteCallback = Callable[[int], None]


def real_seconds_to_game_minutes(
    real_seconds: float,
    real_seconds_per_game_minute: float = REAL_SECONDS_PER_GAME_MINUTE,
) -> float:
    return real_seconds / real_seconds_per_game_minute


def game_minutes_to_real_seconds(
    game_minutes: float,
    real_seconds_per_game_minute: float = REAL_SECONDS_PER_GAME_MINUTE,
) -> float:
    return game_minutes * real_seconds_per_game_minute


def game_days_to_game_minutes(game_days: float) -> float:
    return game_days * GAME_MINUTES_PER_GAME_DAY


def format_game_time(game_minutes: float) -> str:
    """Formats a duration in simulated minutes, e.g. "2d 3h 45m", "3h 5m" or
    "45m". Non-positive and non-finite durations format as "0m"."""
    if not math.isfinite(game_minutes) or game_minutes <= 0:
        return "0m"

    days = math.floor(game_minutes / GAME_MINUTES_PER_GAME_DAY)
    hours = math.floor(
        (game_minutes % GAME_MINUTES_PER_GAME_DAY) / GAME_MINUTES_PER_GAME_HOUR
    )
    minutes = math.floor(game_minutes % GAME_MINUTES_PER_GAME_HOUR)

    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


class SimulatedTimeNotifier:
    """Publishes an event to every subscriber each time a simulated minute
    elapses.

    Subscribers receive the minute of the hour (0-59) that just started. Time only
    moves when advance() is called, either by a caller that owns the simulation or
    by a RepeatedTimer.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._subscribers: List[GameMinuteCallback] = []
        self._elapsed_game_minutes = 0

    def subscribe(self, callback: GameMinuteCallback) -> None:
        with self._lock:
            if callback in self._subscribers:
                logging.warning("Callback [%s] is already subscribed", callback)
                return
            self._subscribers.append(callback)

    def unsubscribe(self, callback: GameMinuteCallback) -> None:
        with self._lock:
            if callback not in self._subscribers:
                logging.warning("Callback [%s] is not subscribed", callback)
                return
            self._subscribers.remove(callback)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def advance(self, game_minutes: int = 1) -> None:
        """Moves simulated time forward, publishing one event per minute."""
        for _ in range(game_minutes):
            with self._lock:
                self._elapsed_game_minutes += 1
                minute_of_hour = self.current_game_minute_unsafe()
                subscribers = list(self._subscribers)
            for callback in subscribers:
                callback(minute_of_hour)

    @property
    def elapsed_game_minutes(self) -> int:
        with self._lock:
            return self._elapsed_game_minutes

    def current_game_day(self) -> int:
        """The current simulated day, starting at 1."""
        with self._lock:
            return self._elapsed_game_minutes // GAME_MINUTES_PER_GAME_DAY + 1

    def current_game_hour(self) -> int:
        with self._lock:
            return (
                self._elapsed_game_minutes % GAME_MINUTES_PER_GAME_DAY
            ) // GAME_MINUTES_PER_GAME_HOUR

    def current_game_minute(self) -> int:
        with self._lock:
            return self.current_game_minute_unsafe()

    def current_game_minute_unsafe(self) -> int:
        """Returns the minute of the hour. Caller must hold the notifier lock."""
        return self._elapsed_game_minutes % GAME_MINUTES_PER_GAME_HOUR
