"""
比赛控制器

驱动状态机与机器人完成一局或整场比赛 (先赢够 rounds_to_win 局者胜)
"""
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field
import logging

import numpy as np

from engine.config import GameConfig
from engine.state import GameState, Phase, RoundResult
from bots.config import BotConfig
from bots.policies import BotAgent, BotTier

logger = logging.getLogger(__name__)

# 单局行动次数上限
MAX_TURNS_PER_ROUND = 10000


@dataclass
class MatchResult:
    """整场比赛结果"""
    players: Tuple[str, ...]
    tiers: Tuple[str, ...]
    winner: str
    wins: Dict[str, int]
    losses: Dict[str, int]
    rounds: List[RoundResult] = field(default_factory=list)
    turns: int = 0

    @property
    def winner_tier(self) -> str:
        return self.tiers[self.players.index(self.winner)]

    def win_rate(self, player_id: str) -> float:
        total = self.wins[player_id] + self.losses[player_id]
        return 0.0 if total == 0 else self.wins[player_id] / total

    def __repr__(self) -> str:
        return (
            f"MatchResult(winner={self.winner}, rounds={len(self.rounds)}, "
            f"wins={self.wins})"
        )


class MatchController:
    """
    比赛控制器

    每个座位由一个 BotAgent 控制；首局由红心 3 持有者领出，
    之后由上一局赢家领出 (由状态机保证)
    """

    def __init__(
        self,
        config: GameConfig,
        agents: Optional[Dict[str, BotAgent]] = None,
        bot_config: Optional[BotConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            config: 游戏配置
            agents: 座位 id -> 机器人 (默认按配置中的难度创建)
            bot_config: 机器人参数
            rng: 随机数生成器 (发牌与机器人共用)

        Raises:
            ValueError: 配置不合法，或有座位没有机器人控制
        """
        errors = config.validate()
        if errors:
            raise ValueError("; ".join(errors))

        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.state = GameState(config, rng=self.rng)

        agents = dict(agents or {})
        for pid, tier in zip(config.player_ids(), config.tiers()):
            if pid in agents:
                continue
            if tier is None:
                raise ValueError(f"Seat {pid} has no bot tier and no agent")
            agents[pid] = BotAgent(BotTier(tier), bot_config, rng=self.rng, name=pid)
        self.agents = agents
        self.turns = 0

    def play_round(self) -> RoundResult:
        """
        完整进行一局

        Returns:
            RoundResult
        """
        state = self.state
        state.start_round()

        turns = 0
        while state.phase != Phase.ROUND_OVER:
            self.agents[state.current_player.id].take_turn(state)
            turns += 1
            if turns > MAX_TURNS_PER_ROUND:
                raise RuntimeError(f"Round {state.round_number} exceeded {MAX_TURNS_PER_ROUND} turns")

        self.turns += turns
        result = state.last_round_result
        logger.debug(f"Round {result.round_number}: {result.winner} won in {turns} turns")
        return result

    def match_winner(self) -> Optional[str]:
        """先赢够 rounds_to_win 局的玩家，尚未决出返回 None"""
        for player in self.state.players:
            if player.wins >= self.config.rounds_to_win:
                return player.id
        return None

    def play_match(self) -> MatchResult:
        """
        进行整场比赛

        Returns:
            MatchResult
        """
        rounds = []
        while self.match_winner() is None:
            rounds.append(self.play_round())

        winner = self.match_winner()
        players = self.state.players
        result = MatchResult(
            players=tuple(p.id for p in players),
            tiers=tuple(self.agents[p.id].tier.value for p in players),
            winner=winner,
            wins={p.id: p.wins for p in players},
            losses={p.id: p.losses for p in players},
            rounds=rounds,
            turns=self.turns,
        )
        logger.info(
            f"Match won by {self.state.player(winner).name} "
            f"({result.wins[winner]} rounds of {len(rounds)})"
        )
        return result


def play_match(
    config: GameConfig,
    bot_config: Optional[BotConfig] = None,
    seed: Optional[int] = None,
) -> MatchResult:
    """
    便捷函数：按配置进行一整场比赛

    Args:
        config: 游戏配置 (所有座位都必须指定机器人难度)
        bot_config: 机器人参数
        seed: 随机种子 (默认使用配置中的种子)

    Returns:
        MatchResult
    """
    rng = np.random.default_rng(seed if seed is not None else config.seed)
    return MatchController(config, bot_config=bot_config, rng=rng).play_match()
