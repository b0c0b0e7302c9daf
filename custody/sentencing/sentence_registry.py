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
"""Tracks active sentences for every subject and releases each subject exactly
once when their sentence runs out.

Per subject, a sentence moves through:

    NotTracked -> Active -> Completed | Stopped -> NotTracked

Completed and Stopped sentences both leave a CompletedSnapshot behind, which is
kept until the consumer clears it. Whether a subject is physically in jail is
tracked separately and never implied by the sentence state.
"""
import logging
import math
import numbers
import time
from threading import RLock
from typing import Callable, Dict, List, Optional, Set, Tuple

from custody.sentencing.game_time import (
    REAL_SECONDS_PER_GAME_MINUTE,
    format_game_time,
)
from custody.sentencing.sentence_clock import CompletionCallback, SentenceClock
from custody.sentencing.sentence_data import CompletedSnapshot


class SentenceRegistry:
    """Owns every active SentenceClock and the snapshots of finished sentences.

    All state is guarded by a single re-entrant lock. Completion callbacks are
    invoked after the lock is released.
    """

    def __init__(
        self,
        real_seconds_per_game_minute: float = REAL_SECONDS_PER_GAME_MINUTE,
        clock: Optional[Callable[[], float]] = None,
    ):
        if real_seconds_per_game_minute <= 0:
            raise ValueError(
                f"real_seconds_per_game_minute must be positive, found "
                f"[{real_seconds_per_game_minute}]"
            )
        self.real_seconds_per_game_minute = real_seconds_per_game_minute
        self._clock = clock

        self._lock = RLock()
        self._active: Dict[str, SentenceClock] = {}
        self._completed: Dict[str, CompletedSnapshot] = {}
        self._in_jail: Set[str] = set()

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return time.monotonic()

    def start_tracking(
        self,
        subject_id: str,
        total_minutes: float,
        on_complete: Optional[CompletionCallback] = None,
    ) -> None:
        if not subject_id:
            logging.warning("Cannot track sentence for null subject")
            return
        if (
            not isinstance(total_minutes, numbers.Real)
            or isinstance(total_minutes, bool)
            or not math.isfinite(total_minutes)
        ):
            logging.warning(
                "Cannot track sentence for [%s] with invalid length [%s]",
                subject_id,
                total_minutes,
            )
            return

        with self._lock:
            if subject_id in self._active:
                # The replaced sentence's callback is dropped and never invoked.
                logging.warning(
                    "Subject [%s] is already serving a sentence, replacing it",
                    subject_id,
                )
            self._completed.pop(subject_id, None)
            self._active[subject_id] = SentenceClock.start(
                subject_id=subject_id,
                total_minutes=total_minutes,
                start_instant=self._now(),
                on_complete=on_complete,
            )
        logging.info(
            "Started tracking sentence for [%s]: %s",
            subject_id,
            format_game_time(total_minutes),
        )

    def stop_tracking(self, subject_id: str) -> Optional[CompletedSnapshot]:
        """Releases |subject_id| early. The completion callback is not invoked."""
        if not subject_id:
            logging.warning("Cannot stop tracking sentence for null subject")
            return None

        with self._lock:
            sentence = self._active.pop(subject_id, None)
            if sentence is None:
                logging.warning("Subject [%s] is not serving a sentence", subject_id)
                return None
            snapshot = CompletedSnapshot(
                subject_id=subject_id,
                original_minutes=sentence.total_minutes,
                served_minutes=sentence.served_minutes(),
                completed_naturally=False,
            )
            self._completed[subject_id] = snapshot

        logging.info(
            "Stopped tracking sentence for [%s] after %s of %s",
            subject_id,
            format_game_time(snapshot.served_minutes),
            format_game_time(snapshot.original_minutes),
        )
        return snapshot

    def on_game_minute_elapsed(self, _minute: Optional[int] = None) -> None:
        """Counts one simulated minute off every active sentence."""
        with self._lock:
            for sentence in self._active.values():
                sentence.tick()
            finished = self._pop_finished()
        self._notify_completed(finished)

    def poll_wall_clock(self) -> None:
        """Moves every active sentence forward to match the wall clock, if the
        wall clock is further along than the ticks."""
        with self._lock:
            now = self._now()
            for sentence in self._active.values():
                sentence.reconcile_wall_clock(now, self.real_seconds_per_game_minute)
            finished = self._pop_finished()
        self._notify_completed(finished)

    def _pop_finished(self) -> List[Tuple[SentenceClock, CompletedSnapshot]]:
        """Removes every complete sentence and stores its snapshot. Caller must
        hold the lock."""
        finished = []
        for subject_id, sentence in list(self._active.items()):
            if not sentence.is_complete():
                continue
            del self._active[subject_id]
            snapshot = CompletedSnapshot(
                subject_id=subject_id,
                original_minutes=sentence.total_minutes,
                served_minutes=sentence.total_minutes,
                completed_naturally=True,
            )
            self._completed[subject_id] = snapshot
            finished.append((sentence, snapshot))
        return finished

    @staticmethod
    def _notify_completed(
        finished: List[Tuple[SentenceClock, CompletedSnapshot]]
    ) -> None:
        for sentence, snapshot in finished:
            logging.info(
                "Sentence complete for [%s] after %s",
                snapshot.subject_id,
                format_game_time(snapshot.served_minutes),
            )
            if sentence.on_complete is None:
                continue
            try:
                sentence.on_complete(snapshot.subject_id)
            except Exception:
                logging.exception(
                    "Completion callback failed for [%s]", snapshot.subject_id
                )

    def get_completed_snapshot(self, subject_id: str) -> Optional[CompletedSnapshot]:
        with self._lock:
            return self._completed.get(subject_id)

    def clear_completed_snapshot(self, subject_id: str) -> None:
        with self._lock:
            self._completed.pop(subject_id, None)

    def get_time_served(self, subject_id: str) -> float:
        """Simulated minutes served. For an active sentence this includes
        wall-clock progress since the last driver pass."""
        if not subject_id:
            logging.warning("Cannot get time served for null subject")
            return 0.0

        with self._lock:
            sentence = self._active.get(subject_id)
            if sentence is not None:
                return sentence.live_served_minutes(
                    self._now(), self.real_seconds_per_game_minute
                )
            snapshot = self._completed.get(subject_id)
            if snapshot is not None:
                return snapshot.served_minutes
            return 0.0

    def get_remaining_time(self, subject_id: str) -> float:
        if not subject_id:
            logging.warning("Cannot get remaining time for null subject")
            return 0.0

        with self._lock:
            sentence = self._active.get(subject_id)
            return sentence.remaining_minutes if sentence is not None else 0.0

    def get_formatted_remaining_time(self, subject_id: str) -> str:
        return format_game_time(self.get_remaining_time(subject_id))

    def is_tracking(self, subject_id: str) -> bool:
        with self._lock:
            return subject_id in self._active

    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    def get_tracked_subject_ids(self) -> List[str]:
        with self._lock:
            return list(self._active)

    def set_in_jail(self, subject_id: str) -> None:
        if not subject_id:
            logging.warning("Cannot set in-jail flag for null subject")
            return
        with self._lock:
            self._in_jail.add(subject_id)

    def clear_in_jail(self, subject_id: str) -> None:
        with self._lock:
            self._in_jail.discard(subject_id)

    def is_in_jail(self, subject_id: str) -> bool:
        with self._lock:
            return subject_id in self._in_jail
