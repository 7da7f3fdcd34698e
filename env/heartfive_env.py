"""
红心五 Gymnasium 环境

遵循标准 Gymnasium API，一个座位由智能体控制，其余座位由机器人控制
"""
from typing import Dict, Any, Tuple, Optional, List, Union
import logging
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from engine.cards import CARDS_PER_DECK, cards_to_str
from engine.config import GameConfig, MAX_PLAYERS
from engine.melds import Meld
from engine.state import GameState, Phase
from bots.config import BotConfig
from bots.policies import BotAgent, BotTier

from .observation import ObservationBuilder, NUM_MELD_TYPES

logger = logging.getLogger(__name__)

PASS_ACTION = 0
WIN_REWARD = 1.0
LOSS_REWARD = -1.0
INVALID_ACTION_REWARD = -1.0


class HeartFiveEnv(gym.Env):
    """
    红心五 Gymnasium 环境

    - 每个 episode 是一局 (有人出完手牌即结束)
    - 动作 0 为过牌，动作 i 为当前合法出牌列表中的第 i 个
    - 非法动作给予 -1 惩罚并保持状态不变
    - 本局结束时，赢家 +1，其余 -1

    API:
    - reset() -> observation, info
    - step(action) -> observation, reward, terminated, truncated, info
    """

    metadata = {
        "render_modes": ["human", "ansi"],
        "name": "HeartFive-v1",
    }

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        agent_seat: int = 0,
        bot_config: Optional[BotConfig] = None,
        default_tier: str = BotTier.HEURISTIC.value,
        history_length: int = 15,
        max_actions: int = 256,
        render_mode: Optional[str] = None,
        seed: Optional[int] = None,
    ):
        """
        Args:
            config: 游戏配置 (座位难度为 None 的对手使用 default_tier)
            agent_seat: 智能体的座位号
            bot_config: 机器人参数
            default_tier: 未指定难度的对手使用的难度
            history_length: 历史长度
            max_actions: 动作空间中可选出牌的最大数量 (多出的合法出牌被截断；两人局 27 张手牌领出时可达数十万种)
            render_mode: 渲染模式 ("human", "ansi", None)
            seed: 随机种子 (默认使用配置中的种子)
        """
        super().__init__()

        self.config = config or GameConfig()
        if not 0 <= agent_seat < self.config.player_count:
            raise ValueError(f"Agent seat {agent_seat} out of range")

        self.render_mode = render_mode
        self.agent_seat = agent_seat
        self.bot_config = bot_config or BotConfig()
        self.default_tier = BotTier(default_tier)
        self.max_actions = max_actions
        self._seed = seed if seed is not None else self.config.seed

        self._obs_builder = ObservationBuilder(
            history_length=history_length, max_actions=max_actions
        )

        self._rng = np.random.default_rng(self._seed)
        self._state: Optional[GameState] = None
        self._bots: Dict[str, BotAgent] = {}

        self._define_spaces(history_length)

    def _define_spaces(self, history_length: int):
        """定义观测和动作空间"""
        self.action_space = spaces.Discrete(self.max_actions + 1)

        self.observation_space = spaces.Dict({
            "hand": spaces.Box(0, 2, shape=(CARDS_PER_DECK,), dtype=np.float32),
            "played_cards": spaces.Box(0, 2, shape=(MAX_PLAYERS, CARDS_PER_DECK), dtype=np.float32),
            "history": spaces.Box(0, 2, shape=(history_length, CARDS_PER_DECK), dtype=np.float32),
            "last_play": spaces.Box(0, 2, shape=(CARDS_PER_DECK,), dtype=np.float32),
            "established_type": spaces.Box(0, 1, shape=(NUM_MELD_TYPES + 1,), dtype=np.float32),
            "cards_left": spaces.Box(0, 1, shape=(MAX_PLAYERS,), dtype=np.float32),
            "is_leading": spaces.Box(0, 1, shape=(1,), dtype=np.float32),
            "legal_mask": spaces.Box(0, 1, shape=(self.max_actions + 1,), dtype=np.float32),
        })

    @property
    def agent_id(self) -> str:
        return self.config.player_ids()[self.agent_seat]

    def _new_game(self):
        """创建新的状态机与机器人 (胜负计数清零)"""
        self._state = GameState(self.config, rng=self._rng)
        self._bots = {}
        for i, (pid, tier) in enumerate(zip(self.config.player_ids(), self.config.tiers())):
            if i == self.agent_seat:
                continue
            bot_tier = BotTier(tier) if tier is not None else self.default_tier
            self._bots[pid] = BotAgent(bot_tier, self.bot_config, rng=self._rng, name=pid)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        重置环境并开始新的一局

        不传种子时沿用当前比赛 (上一局赢家领出)；传入种子时重新开始整场比赛。
        机器人在智能体第一次行动前就出完手牌时，info["round_over"] 为 True，
        此时应直接再次 reset

        Args:
            seed: 随机种子
            options: 额外选项 ("hands": 指定各玩家手牌)

        Returns:
            (observation, info) 元组
        """
        super().reset(seed=seed)

        if seed is not None:
            self._rng = np.random.default_rng(seed)
            self._state = None
        if self._state is None or self._state.phase not in (Phase.WAITING, Phase.ROUND_OVER):
            self._new_game()

        hands = (options or {}).get("hands")
        self._state.start_round(hands)
        self._advance_bots()

        obs = self._build_observation()
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, info

    def step(
        self,
        action: Union[int, np.integer],
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        执行动作

        Args:
            action: 动作索引 (0 为过牌)

        Returns:
            (observation, reward, terminated, truncated, info) 元组
        """
        if self._state is None:
            raise RuntimeError("Environment not reset. Call reset() first.")
        if self._state.phase == Phase.ROUND_OVER:
            raise RuntimeError("Round is over. Call reset() to deal a new round.")

        agent_id = self.agent_id
        if int(action) == PASS_ACTION:
            result = self._state.pass_turn(agent_id)
        else:
            legal = self.get_legal_actions()
            index = int(action) - 1
            if not 0 <= index < len(legal):
                return self._invalid_step(f"Action {action} out of range ({len(legal)} legal)")
            result = self._state.play(agent_id, legal[index])

        if not result.accepted:
            # 非法动作：给予惩罚并保持状态
            return self._invalid_step(f"Action declined: {result.outcome.value}")

        self._advance_bots()

        terminated = self._state.phase == Phase.ROUND_OVER
        reward = self._compute_reward() if terminated else 0.0

        obs = self._build_observation()
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, False, info

    def _invalid_step(self, error: str):
        obs = self._build_observation()
        info = self._build_info()
        info["error"] = error
        return obs, INVALID_ACTION_REWARD, False, False, info

    def _advance_bots(self):
        """机器人依次行动，直到轮到智能体或本局结束"""
        state = self._state
        while state.phase != Phase.ROUND_OVER and state.current_player.id != self.agent_id:
            self._bots[state.current_player.id].take_turn(state)

    def _compute_reward(self) -> float:
        """本局结束时的奖励"""
        result = self._state.last_round_result
        return WIN_REWARD if result.winner == self.agent_id else LOSS_REWARD

    def _build_observation(self) -> Dict[str, np.ndarray]:
        """构建观测"""
        obs = self._obs_builder.build(
            self._state.snapshot(), self.agent_id, self.get_legal_actions()
        )
        return obs.to_dict()

    def _build_info(self) -> Dict[str, Any]:
        """构建 info 字典"""
        state = self._state
        legal_actions = self.get_legal_actions()

        info = {
            "current_player": state.current_player.id,
            "phase": state.phase.value,
            "round_number": state.round_number,
            "legal_actions": legal_actions,
            "can_pass": state.trick is not None and not state.trick.is_open,
            "round_over": state.phase == Phase.ROUND_OVER,
        }

        if state.phase == Phase.ROUND_OVER:
            result = state.last_round_result
            info["winner"] = result.winner
            info["losers"] = list(result.losers)
            info["wins"] = {p.id: p.wins for p in state.players}

        return info

    def render(self) -> Optional[str]:
        """渲染环境"""
        if self.render_mode == "ansi" or self.render_mode == "human":
            return self._render_text()
        return None

    def _render_text(self) -> str:
        """文本渲染"""
        state = self._state
        lines = []
        lines.append("=" * 50)
        lines.append(f"Round {state.round_number} | Phase: {state.phase.value}")
        lines.append(f"Current Player: {state.current_player.name}")

        for player in state.players:
            marker = "*" if state.is_leader(player.id) else " "
            lines.append(
                f"{marker}{player.name}: {cards_to_str(player.hand)} "
                f"({player.hand_size}) W{player.wins}/L{player.losses}"
            )

        if state.trick is not None and state.trick.last_play is not None:
            last = state.trick.last_play
            lines.append(f"Last Play: {last.meld} by {last.player_id}")

        if state.phase == Phase.ROUND_OVER:
            lines.append(f"Winner: {state.last_round_result.winner}")

        lines.append("=" * 50)

        output = "\n".join(lines)
        if self.render_mode == "human":
            print(output)
        return output

    def close(self):
        """关闭环境"""
        pass

    @property
    def state(self) -> Optional[GameState]:
        """获取当前状态 (用于调试)"""
        return self._state

    def get_legal_actions(self) -> List[Meld]:
        """
        获取智能体当前的合法出牌 (动作 i 对应第 i 个，最多 max_actions 个)

        不轮到智能体时返回空列表
        """
        state = self._state
        if state is None or state.phase in (Phase.WAITING, Phase.ROUND_OVER):
            return []
        if state.current_player.id != self.agent_id:
            return []
        legal = state.legal_moves(self.agent_id)
        if len(legal) > self.max_actions:
            logger.warning(
                f"{len(legal)} legal moves exceed action space, keeping first {self.max_actions}"
            )
            legal = legal[:self.max_actions]
        return legal

    def sample_action(self) -> int:
        """随机采样一个合法动作"""
        legal = self.get_legal_actions()
        choices = list(range(1, len(legal) + 1))
        if self._state.trick is not None and not self._state.trick.is_open:
            choices.append(PASS_ACTION)
        if not choices:
            return PASS_ACTION
        return int(choices[self._rng.integers(len(choices))])


def make_env(
    env_id: str = "HeartFive-v1",
    **kwargs
) -> HeartFiveEnv:
    """
    工厂函数：创建环境

    Args:
        env_id: 环境 ID
        **kwargs: 环境参数

    Returns:
        HeartFiveEnv 实例
    """
    return HeartFiveEnv(**kwargs)
