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
"""Calculates the fine and sentence for a single subject, then serves the sentence
on simulated time and prints the results as JSON.

Offenses are given as labels, optionally followed by a count. Labels may be
enum names (ASSAULT_ON_CIVILIAN), class-style names (AssaultOnCivilian) or
descriptions ("Assault on Civilian").

Example usage:

    python -m custody.tools.run_sentence_simulation \
        --subject_id subject-1 \
        --offense Theft:2 \
        --offense Murder --victim_type Police \
        --simulate_minutes 600

    python -m custody.tools.run_sentence_simulation \
        --offense Vandalism:3 --use_raw_counter --evaded_arrest \
        --simulate_minutes 60 --stop_after 30
"""
import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

import cattrs

from custody.common.constants.offenses import parse_offense_label
from custody.fines.fine_calculator import FineCalculator
from custody.fines.fine_schedule import FineTable
from custody.offenses.offense_record import OffenseInstance, OffenseLedger
from custody.offenses.providers import (
    InMemoryOffenseLedgerProvider,
    InMemoryRawOffenseCounterProvider,
)
from custody.sentencing.game_time import SimulatedTimeNotifier
from custody.sentencing.sentence_calculator import SentenceCalculator
from custody.sentencing.sentence_config import SentenceConfig
from custody.sentencing.sentence_registry import SentenceRegistry
from custody.sentencing.sentence_scheduler import SentenceScheduler


def parse_offense_arg(value: str) -> Tuple[str, int]:
    """Splits an offense argument of the form LABEL or LABEL:COUNT."""
    label, _, count = value.partition(":")
    if not count:
        return label, 1
    try:
        return label, int(count)
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"Invalid offense count in [{value}], expected LABEL:COUNT"
        ) from e


def run_simulation(
    subject_id: str,
    offenses: List[Tuple[str, int]],
    victim_label: Optional[str] = None,
    witness_count: int = 0,
    use_raw_counter: bool = False,
    evaded_arrest: bool = False,
    on_parole: bool = False,
    simulate_minutes: int = 0,
    stop_after: Optional[int] = None,
    fine_schedule_path: Optional[str] = None,
    sentence_config_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Runs one subject from offenses through to the end of simulated time and
    returns everything that was calculated, unstructured for display."""
    ledger_provider = InMemoryOffenseLedgerProvider()
    raw_counter_provider = InMemoryRawOffenseCounterProvider()

    for label, count in offenses:
        if use_raw_counter:
            kind, victim_type = parse_offense_label(label, victim_label)
            raw_counter_provider.record_offense(
                subject_id, kind, victim_type=victim_type, count=count
            )
            continue
        for _ in range(count):
            ledger_provider.record_offense(
                subject_id,
                OffenseInstance.from_label(
                    label, victim_label=victim_label, witness_count=witness_count
                ),
            )
    if evaded_arrest:
        raw_counter_provider.set_evaded_arrest(subject_id)

    fine_calculator = FineCalculator(
        fine_table=FineTable.load(fine_schedule_path),
        ledger_provider=ledger_provider,
        raw_counter_provider=raw_counter_provider,
    )
    sentence_calculator = SentenceCalculator(
        config=SentenceConfig.load(sentence_config_path),
        fine_calculator=fine_calculator,
        ledger_provider=ledger_provider,
        raw_counter_provider=raw_counter_provider,
    )

    ledger: Optional[OffenseLedger] = ledger_provider.get_ledger(subject_id)
    breakdown = fine_calculator.calculate_fine_breakdown(subject_id, ledger)
    sentence = sentence_calculator.calculate_sentence(
        subject_id, ledger, on_parole=on_parole
    )

    released: List[str] = []
    registry = SentenceRegistry()
    notifier = SimulatedTimeNotifier()
    scheduler = SentenceScheduler(registry, notifier)
    scheduler.start()
    try:
        scheduler.submit_start(
            subject_id, sentence.total_minutes, on_complete=released.append
        )
        minutes_to_run = (
            simulate_minutes if stop_after is None else min(stop_after, simulate_minutes)
        )
        notifier.advance(minutes_to_run)
        if stop_after is not None and stop_after < simulate_minutes:
            scheduler.submit_stop(subject_id)
        scheduler.join()
        remaining = registry.get_formatted_remaining_time(subject_id)
        served = registry.get_time_served(subject_id)
    finally:
        scheduler.shutdown()

    return {
        "fine": cattrs.unstructure(breakdown),
        "fine_total": breakdown.total,
        "sentence": cattrs.unstructure(sentence),
        "formatted_sentence": sentence.formatted_sentence,
        "simulated_minutes": notifier.elapsed_game_minutes,
        "time_served": served,
        "remaining": remaining,
        "released": bool(released),
        "snapshot": cattrs.unstructure(registry.get_completed_snapshot(subject_id)),
    }


def parse_arguments(argv: List[str]) -> argparse.Namespace:
    """Parses the arguments needed to call the run_simulation function."""
    parser = argparse.ArgumentParser(
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--subject_id", type=str, default="subject-1")
    parser.add_argument(
        "--offense",
        dest="offenses",
        type=parse_offense_arg,
        action="append",
        default=[],
        help="Offense label, optionally with a count, e.g. Theft:2. Repeatable.",
    )
    parser.add_argument(
        "--victim_type",
        type=str,
        help="Victim type for homicide offenses: Civilian, Employee or Police.",
    )
    parser.add_argument("--witness_count", type=int, default=0)
    parser.add_argument(
        "--use_raw_counter",
        action="store_true",
        help="Record offenses on the raw counter instead of the ledger.",
    )
    parser.add_argument("--evaded_arrest", action="store_true")
    parser.add_argument("--on_parole", action="store_true")
    parser.add_argument(
        "--simulate_minutes",
        type=int,
        default=0,
        help="Number of simulated minutes to run after the sentence starts.",
    )
    parser.add_argument(
        "--stop_after",
        type=int,
        help="Release the subject early after this many simulated minutes.",
    )
    parser.add_argument("--fine_schedule_path", type=str)
    parser.add_argument("--sentence_config_path", type=str)
    return parser.parse_args(argv)


def main(argv: List[str]) -> None:
    args = parse_arguments(argv)
    results = run_simulation(
        subject_id=args.subject_id,
        offenses=args.offenses,
        victim_label=args.victim_type,
        witness_count=args.witness_count,
        use_raw_counter=args.use_raw_counter,
        evaded_arrest=args.evaded_arrest,
        on_parole=args.on_parole,
        simulate_minutes=args.simulate_minutes,
        stop_after=args.stop_after,
        fine_schedule_path=args.fine_schedule_path,
        sentence_config_path=args.sentence_config_path,
    )
    print(json.dumps(results, indent=2))


if __name__ == "__main__":
    logging.getLogger().setLevel(logging.INFO)
    main(sys.argv[1:])
