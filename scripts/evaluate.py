#!/usr/bin/env python3
"""
评估脚本

Usage:
    python scripts/evaluate.py --tiers beginner intermediate advanced advanced
    python scripts/evaluate.py --matches 5 --rounds 3 --output results.json
"""
import argparse
import logging
import sys
from pathlib import Path
import json

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from engine.config import VALID_TIERS
from bots import BotConfig
from evaluation import Arena

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Heart Five bot tournament")

    parser.add_argument(
        "--tiers",
        nargs="+",
        default=["beginner", "intermediate", "advanced", "advanced"],
        choices=VALID_TIERS,
        help="Bot tier per seat (2-6 seats)",
    )
    parser.add_argument("--matches", type=int, default=2, help="Matches per seat rotation")
    parser.add_argument("--rounds", type=int, default=3, help="Rounds to win a match")
    parser.add_argument("--bot-config", type=str, help="Bot config JSON")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--output", type=str, help="Output file for results")

    return parser.parse_args()


def main():
    args = parse_args()

    bot_config = BotConfig()
    if args.bot_config:
        with open(args.bot_config, "r", encoding="utf-8") as f:
            bot_config = BotConfig.from_dict(json.load(f))

    logger.info(f"Running round robin: {args.tiers}")
    arena = Arena(rounds_to_win=args.rounds, bot_config=bot_config, seed=args.seed)
    result = arena.round_robin(args.tiers, matches_per_lineup=args.matches)

    logger.info("=" * 50)
    logger.info("Tournament Results")
    logger.info("=" * 50)

    ranking = result.get_ranking()
    for i, (tier, win_rate) in enumerate(ranking):
        stats = result.standings[tier]
        logger.info(
            f"{i+1}. {tier}: rounds {win_rate:.2%}, "
            f"matches {stats['match_win_rate']:.2%}"
        )

    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump({
                "rankings": ranking,
                "standings": result.standings,
                "total_matches": result.total_matches,
            }, f, indent=2)
        logger.info(f"Results saved to {args.output}")


if __name__ == "__main__":
    main()
