#!/usr/bin/env python3
"""
Print the stored skill leaderboard and model parameters.

Read only: unlike the engine, this never registers players or saves.

Usage:
    python scripts/show_leaderboard.py
    python scripts/show_leaderboard.py --ratings-file data/elo_ratings.json --top 10
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from beaconelo.config import settings
from beaconelo.elo.constants import display_rating
from beaconelo.elo.store import RatingStore
from beaconelo.logging_setup import setup_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Show the Beacon War rating leaderboard")
    parser.add_argument(
        "--ratings-file",
        type=Path,
        default=settings.ratings_file,
        help="Ratings JSON file (default: from settings)",
    )
    parser.add_argument("--top", type=int, default=None, help="Only show the top N players")
    args = parser.parse_args()

    if args.top is not None and args.top <= 0:
        parser.error("--top must be greater than 0")

    setup_logging(settings.log_level, settings.log_format)

    store = RatingStore(args.ratings_file)
    store.load()

    alpha, beta = store.get_parameters()
    print(f"alpha={alpha:.3f} beta={beta:.3f} players={store.player_count}")

    rows = store.leaderboard()
    if args.top is not None:
        rows = rows[: args.top]
    if not rows:
        print("No rated players yet.")
        return 0

    for index, (player, skill) in enumerate(rows, start=1):
        print(f"{index:3d}. {player:<20} {display_rating(skill):6d}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
