"""
对战竞技场

组织不同难度机器人之间的比赛
"""
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass
from collections import defaultdict
import logging

import numpy as np

from engine.config import GameConfig
from bots.config import BotConfig

from .match import MatchController, MatchResult

logger = logging.getLogger(__name__)


@dataclass
class TournamentResult:
    """锦标赛结果 (按难度统计)"""
    standings: Dict[str, Dict[str, float]]
    total_matches: int
    matches: List[MatchResult]

    def get_ranking(self) -> List[Tuple[str, float]]:
        """按单局胜率排名"""
        return sorted(
            [(tier, stats["win_rate"]) for tier, stats in self.standings.items()],
            key=lambda x: x[1],
            reverse=True,
        )

    def __repr__(self) -> str:
        ranking = self.get_ranking()
        lines = [f"Tournament Results ({self.total_matches} matches):"]
        for i, (tier, win_rate) in enumerate(ranking):
            match_wins = int(self.standings[tier]["match_wins"])
            lines.append(f"  {i+1}. {tier}: {win_rate:.2%} ({match_wins} matches won)")
        return "\n".join(lines)


class Arena:
    """
    对战竞技场

    所有座位都由机器人控制，按难度汇总战绩
    """

    def __init__(
        self,
        rounds_to_win: int = 3,
        bot_config: Optional[BotConfig] = None,
        seed: Optional[int] = None,
    ):
        """
        Args:
            rounds_to_win: 每场比赛先赢多少局
            bot_config: 机器人参数
            seed: 随机种子
        """
        self.rounds_to_win = rounds_to_win
        self.bot_config = bot_config
        self.rng = np.random.default_rng(seed)

    def play_match(self, tiers: Sequence[str], n_matches: int = 1) -> List[MatchResult]:
        """
        进行比赛

        Args:
            tiers: 每个座位的机器人难度
            n_matches: 比赛场数

        Returns:
            比赛结果列表
        """
        config = GameConfig.all_bots(tuple(tiers), rounds_to_win=self.rounds_to_win)
        results = []
        for _ in range(n_matches):
            controller = MatchController(config, bot_config=self.bot_config, rng=self.rng)
            results.append(controller.play_match())
        return results

    def round_robin(
        self,
        tiers: Sequence[str],
        matches_per_lineup: int = 1,
    ) -> TournamentResult:
        """
        循环赛

        每个难度轮流坐每个座位

        Args:
            tiers: 参赛难度列表 (人数 = 列表长度)
            matches_per_lineup: 每种座位排列的比赛场数

        Returns:
            锦标赛结果
        """
        tiers = list(tiers)
        standings = {tier: defaultdict(float) for tier in tiers}
        all_matches = []

        for shift in range(len(tiers)):
            lineup = tiers[shift:] + tiers[:shift]
            results = self.play_match(lineup, matches_per_lineup)
            all_matches.extend(results)

            for result in results:
                for pid, tier in zip(result.players, result.tiers):
                    stats = standings[tier]
                    stats["matches"] += 1
                    stats["round_wins"] += result.wins[pid]
                    stats["rounds"] += result.wins[pid] + result.losses[pid]
                    if pid == result.winner:
                        stats["match_wins"] += 1

            logger.info(f"Lineup {lineup}: {[r.winner_tier for r in results]}")

        # 计算胜率
        for tier, stats in standings.items():
            stats["win_rate"] = stats["round_wins"] / stats["rounds"] if stats["rounds"] > 0 else 0.0
            stats["match_win_rate"] = stats["match_wins"] / stats["matches"] if stats["matches"] > 0 else 0.0

        return TournamentResult(
            standings={tier: dict(stats) for tier, stats in standings.items()},
            total_matches=len(all_matches),
            matches=all_matches,
        )
