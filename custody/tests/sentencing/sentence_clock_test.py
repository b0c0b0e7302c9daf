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
"""Tests for SentenceClock."""
import unittest

from custody.sentencing.sentence_clock import SentenceClock


class TestSentenceClock(unittest.TestCase):
    """Tests for SentenceClock."""

    def setUp(self) -> None:
        self.clock = SentenceClock.start(
            subject_id="subject", total_minutes=100, start_instant=1000.0
        )

    def test_start(self) -> None:
        self.assertEqual(100.0, self.clock.total_minutes)
        self.assertEqual(100.0, self.clock.remaining_minutes)
        self.assertFalse(self.clock.is_complete())

    def test_start_non_positive(self) -> None:
        clock = SentenceClock.start(
            subject_id="subject", total_minutes=-5, start_instant=0.0
        )
        self.assertEqual(0.0, clock.total_minutes)
        self.assertTrue(clock.is_complete())

    def test_tick(self) -> None:
        for _ in range(40):
            self.clock.tick()

        self.assertEqual(60.0, self.clock.remaining_minutes)
        self.assertEqual(40.0, self.clock.served_minutes())

    def test_tick_clamps_at_zero(self) -> None:
        for _ in range(150):
            self.clock.tick()

        self.assertEqual(0.0, self.clock.remaining_minutes)
        self.assertTrue(self.clock.is_complete())

    def test_reconcile_adopts_wall_clock_when_further_along(self) -> None:
        self.clock.tick()
        self.clock.reconcile_wall_clock(now=1030.0)

        self.assertEqual(70.0, self.clock.remaining_minutes)

    def test_reconcile_never_moves_backward(self) -> None:
        for _ in range(50):
            self.clock.tick()
        self.clock.reconcile_wall_clock(now=1010.0)

        self.assertEqual(50.0, self.clock.remaining_minutes)

    def test_reconcile_clamps(self) -> None:
        self.clock.reconcile_wall_clock(now=5000.0)
        self.assertEqual(0.0, self.clock.remaining_minutes)

        clock = SentenceClock.start(
            subject_id="subject", total_minutes=100, start_instant=1000.0
        )
        # A wall clock behind the start instant never adds time.
        clock.reconcile_wall_clock(now=900.0)
        self.assertEqual(100.0, clock.remaining_minutes)

    def test_reconcile_scaled(self) -> None:
        self.clock.reconcile_wall_clock(now=1030.0, real_seconds_per_game_minute=2.0)

        self.assertEqual(85.0, self.clock.remaining_minutes)

    def test_live_served_minutes(self) -> None:
        for _ in range(10):
            self.clock.tick()

        self.assertEqual(25.0, self.clock.live_served_minutes(now=1025.0))
        self.assertEqual(10.0, self.clock.live_served_minutes(now=1005.0))
        self.assertEqual(100.0, self.clock.live_served_minutes(now=9999.0))
        # Reading never changes the countdown.
        self.assertEqual(90.0, self.clock.remaining_minutes)
