#!/usr/bin/env python3
"""
观战脚本

Usage:
    python scripts/play.py                                  # 四个机器人打一场
    python scripts/play.py --tiers beginner intermediate advanced advanced --rounds 3
    python scripts/play.py --config game.json --seed 7
"""
import argparse
import logging
import sys
from pathlib import Path
import time

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

import numpy as np

from engine import GameConfig, GameState, GameSnapshot, PlayAction, cards_to_str
from engine.config import VALID_TIERS
from engine.state import Phase
from bots import BotAgent, BotConfig, BotTier

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Heart Five - watch bots play")

    parser.add_argument(
        "--tiers",
        nargs="+",
        default=["beginner", "intermediate", "intermediate", "advanced"],
        choices=VALID_TIERS,
        help="Bot tier per seat (2-6 seats)",
    )
    parser.add_argument("--config", type=str, help="Game config JSON (overrides --tiers/--rounds)")
    parser.add_argument("--rounds", type=int, default=3, help="Rounds to win the match")
    parser.add_argument("--games", type=int, default=1, help="Number of matches")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--delay", type=float, default=0.0, help="Delay between moves")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    return parser.parse_args()


def build_config(args) -> GameConfig:
    if args.config:
        config = GameConfig.from_json(args.config)
    else:
        config = GameConfig.all_bots(tuple(args.tiers), rounds_to_win=args.rounds)
    if args.seed is not None:
        config = config.with_seed(args.seed)

    errors = config.validate()
    if errors:
        raise SystemExit("Invalid config: " + "; ".join(errors))
    if None in config.tiers():
        raise SystemExit("Every seat needs a bot tier in watch mode")
    return config


def print_table(snapshot: GameSnapshot):
    """打印桌面状态"""
    print("\n" + "=" * 60)
    print(f"Round {snapshot.round_number} | {snapshot.phase.value}")
    print("-" * 60)

    for player in snapshot.players:
        marker = ">" if player.id == snapshot.current_player else " "
        print(
            f"{marker} {player.name:<14} ({player.card_count:2d}) "
            f"{cards_to_str(player.hand)}  W{player.wins}/L{player.losses}"
        )

    if snapshot.trick is not None and snapshot.trick.last_play is not None:
        last = snapshot.trick.last_play
        print(f"\n上一手: {last.meld} by {snapshot.player(last.player_id).name}")

    print("=" * 60)


def watch_match(config: GameConfig, args, rng: np.random.Generator):
    """观看一整场比赛"""
    state = GameState(config, rng=rng)
    bot_config = BotConfig()
    bots = {
        pid: BotAgent(BotTier(tier), bot_config, rng=rng, name=name)
        for pid, name, tier in zip(config.player_ids(), config.names(), config.tiers())
    }

    while not any(p.wins >= config.rounds_to_win for p in state.players):
        state.start_round()
        print_table(state.snapshot())

        while state.phase != Phase.ROUND_OVER:
            player = state.current_player
            result = bots[player.id].take_turn(state)
            record = state.history[-1]
            if record.action == PlayAction.PASS:
                print(f"{player.name} 过")
            else:
                print(f"{player.name} 出牌: {record.meld} ({player.hand_size} left)")
            if result.trick_resolved:
                print(f"-- {state.current_player.name} 获得领出权 --")
            time.sleep(args.delay)

        outcome = state.last_round_result
        print(f"\n第 {outcome.round_number} 局结束! 胜者: {state.player(outcome.winner).name}")

    print("\n" + "=" * 60)
    print("比赛结束!")
    for player in sorted(state.players, key=lambda p: p.wins, reverse=True):
        print(f"  {player.name:<14} W{player.wins}/L{player.losses} ({player.win_rate:.0%})")
    print("=" * 60)


def main():
    args = parse_args()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = build_config(args)
    rng = np.random.default_rng(config.seed)

    print("=" * 60)
    print("Heart Five 红心五")
    print("=" * 60)

    for game_idx in range(args.games):
        print(f"\nMatch {game_idx + 1}/{args.games}")
        watch_match(config, args, rng)


if __name__ == "__main__":
    main()
