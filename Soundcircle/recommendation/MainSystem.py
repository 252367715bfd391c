#!/usr/bin/env python3
"""
Command-line entry point for the Soundcircle recommendation engine.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import pandas as pd

from Soundcircle.recommendation.config_loader import load_engine_config
from Soundcircle.recommendation.dataloading import RecommendationDataManager
from Soundcircle.recommendation.exceptions import SoundcircleError
from Soundcircle.recommendation.recommendation_system import RecommendationSystem

logger = logging.getLogger("SoundcircleRunner")

DISPLAY_COLUMNS = ['song_id', 'title', 'artist_id', 'language', 'release_year', 'score']


def cli(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Soundcircle song recommendation engine",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument(
        "--data-dir",
        required=True,
        help="Directory with songs.csv, reviews.csv, sentiment.csv, preferences.json, follows.csv",
    )
    p.add_argument(
        "--config",
        default=None,
        help="YAML/JSON/TOML engine config (defaults to the bundled default.yml)",
    )
    p.add_argument("-n", "--limit", type=int, default=20, help="Number of results")
    p.add_argument("--verbose", action="store_true", help="Debug logging and progress bars")

    sub = p.add_subparsers(dest="command", required=True)
    rec = sub.add_parser("recommend", help="Personalized recommendations for a user")
    rec.add_argument("user_id")
    sub.add_parser("trending", help="Songs trending over the configured window")
    compat = sub.add_parser("compatibility", help="Taste compatibility of two users")
    compat.add_argument("user_a")
    compat.add_argument("user_b")
    return p.parse_args(argv)


def build_system(args: argparse.Namespace) -> RecommendationSystem:
    config = load_engine_config(args.config)
    store = RecommendationDataManager(args.data_dir).build_store()
    return RecommendationSystem(store, config)


def _print_frame(frame: pd.DataFrame) -> None:
    if frame.empty:
        print("No results.")
        return
    columns = [c for c in DISPLAY_COLUMNS if c in frame.columns]
    print(frame[columns].to_string(index=False))


def main(argv: Optional[List[str]] = None) -> int:
    args = cli(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
    )

    try:
        system = build_system(args)
        if args.command == "recommend":
            recs = system.recommend(args.user_id, n=args.limit, verbose=args.verbose)
            mode = recs['mode'].iloc[0] if not recs.empty else "none"
            logger.info(f"Recommendations for {args.user_id} ({mode})")
            _print_frame(recs)
        elif args.command == "trending":
            _print_frame(system.trending(n=args.limit))
        elif args.command == "compatibility":
            result = system.compatibility(args.user_a, args.user_b)
            print(f"{args.user_a} x {args.user_b}: {result.percentage}% compatible")
            for name, value in result.components.items():
                print(f"  {name:<9} {value:.3f}")
    except (SoundcircleError, FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
