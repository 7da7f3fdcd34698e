"""
机器人决策

三个难度的策略都是纯函数:
    policy(player_id, snapshot, legal_moves, config, rng) -> Decision
只会返回 legal_moves 中的某一手牌，或者过牌
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence
import logging

import numpy as np

from engine.melds import Meld
from engine.state import GameSnapshot, GameState, PlayResult

from .analysis import analyze_situation, evaluate_hand_strength, rank_moves
from .config import BotConfig

logger = logging.getLogger(__name__)


class BotTier(Enum):
    """机器人难度"""
    BASIC = "beginner"
    HEURISTIC = "intermediate"
    SCORED = "advanced"


@dataclass(frozen=True)
class Decision:
    """机器人的决定: 出某一手牌或过牌"""
    meld: Optional[Meld] = None

    @classmethod
    def play(cls, meld: Meld) -> 'Decision':
        return cls(meld=meld)

    @classmethod
    def pass_turn(cls) -> 'Decision':
        return cls(meld=None)

    @property
    def is_pass(self) -> bool:
        return self.meld is None

    def __str__(self) -> str:
        return "pass" if self.meld is None else f"play {self.meld}"


Policy = Callable[
    [str, GameSnapshot, Sequence[Meld], BotConfig, np.random.Generator],
    Decision,
]


def _by_strength(legal_moves: Sequence[Meld]) -> List[Meld]:
    """按牌力从小到大 (同牌力保持原顺序)"""
    return sorted(legal_moves, key=lambda m: m.strength)


def basic_policy(
    player_id: str,
    snapshot: GameSnapshot,
    legal_moves: Sequence[Meld],
    config: BotConfig,
    rng: np.random.Generator,
) -> Decision:
    """初级: 领出时从最小的几手牌中随机选，跟牌时有一定概率过牌"""
    if not legal_moves:
        return Decision.pass_turn()

    if snapshot.is_trick_leader(player_id):
        weakest = _by_strength(legal_moves)[:config.leader_top_n]
        return Decision.play(weakest[rng.integers(len(weakest))])

    if rng.random() < config.follower_pass_probability:
        return Decision.pass_turn()

    return Decision.play(legal_moves[rng.integers(len(legal_moves))])


def heuristic_policy(
    player_id: str,
    snapshot: GameSnapshot,
    legal_moves: Sequence[Meld],
    config: BotConfig,
    rng: np.random.Generator,
) -> Decision:
    """中级: 领出出最小，残局出最大，强牌时保留炸弹"""
    if not legal_moves:
        return Decision.pass_turn()

    ordered = _by_strength(legal_moves)
    if snapshot.is_trick_leader(player_id):
        return Decision.play(ordered[0])

    hand = snapshot.player(player_id).hand
    if len(hand) <= config.endgame_cards:
        return Decision.play(ordered[-1])

    if evaluate_hand_strength(hand) > config.strong_hand_threshold:
        non_bombs = [m for m in ordered if not m.is_bomb]
        if non_bombs:
            return Decision.play(non_bombs[0])

    return Decision.play(ordered[0])


def scored_policy(
    player_id: str,
    snapshot: GameSnapshot,
    legal_moves: Sequence[Meld],
    config: BotConfig,
    rng: np.random.Generator,
) -> Decision:
    """高级: 分析局势后给每手牌打分，选最高分；局势允许时过牌保留实力"""
    if not legal_moves:
        return Decision.pass_turn()

    analysis = analyze_situation(player_id, snapshot, config, draw=rng.random())
    if analysis.should_pass:
        return Decision.pass_turn()

    hand = snapshot.player(player_id).hand
    return Decision.play(rank_moves(legal_moves, hand, analysis, config)[0])


POLICIES: Dict[BotTier, Policy] = {
    BotTier.BASIC: basic_policy,
    BotTier.HEURISTIC: heuristic_policy,
    BotTier.SCORED: scored_policy,
}


def decide(
    tier: BotTier,
    player_id: str,
    snapshot: GameSnapshot,
    legal_moves: Sequence[Meld],
    config: Optional[BotConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> Decision:
    """
    按难度做决定

    Args:
        tier: 机器人难度
        player_id: 玩家 id
        snapshot: 游戏快照
        legal_moves: 合法出牌列表
        config: 机器人配置
        rng: 随机数生成器

    Returns:
        Decision
    """
    config = config or BotConfig()
    rng = rng if rng is not None else np.random.default_rng()
    decision = POLICIES[tier](player_id, snapshot, legal_moves, config, rng)
    logger.debug(f"{tier.value} bot {player_id}: {decision}")
    return decision


class BotAgent:
    """
    机器人玩家

    绑定难度、配置与随机数生成器，便于控制器和环境调用
    """

    def __init__(
        self,
        tier: BotTier,
        config: Optional[BotConfig] = None,
        rng: Optional[np.random.Generator] = None,
        name: Optional[str] = None,
    ):
        self.tier = tier
        self.config = config or BotConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.name = name or tier.value

    @classmethod
    def from_tag(cls, tag: str, **kwargs) -> 'BotAgent':
        """从难度名创建 ("beginner" / "intermediate" / "advanced")"""
        return cls(BotTier(tag), **kwargs)

    def act(self, player_id: str, snapshot: GameSnapshot,
            legal_moves: Sequence[Meld]) -> Decision:
        return decide(self.tier, player_id, snapshot, legal_moves, self.config, self.rng)

    def take_turn(self, state: GameState) -> PlayResult:
        """
        替当前玩家做决定并提交给状态机

        Raises:
            RuntimeError: 状态机拒绝了决定 (说明策略返回了非法出牌)
        """
        player_id = state.current_player.id
        decision = self.act(player_id, state.snapshot(), state.legal_moves(player_id))
        if decision.is_pass:
            result = state.pass_turn(player_id)
        else:
            result = state.play(player_id, decision.meld)
        if not result.accepted:
            raise RuntimeError(
                f"{self.name} decision {decision} declined: {result.outcome.value}"
            )
        return result

    def __repr__(self) -> str:
        return f"BotAgent({self.name!r}, tier={self.tier.value})"
