"""
观察空间编码

将游戏快照转换为 numpy 特征
"""
from dataclasses import dataclass
from typing import Dict, List, Sequence
import numpy as np

from engine.cards import CARDS_PER_DECK, cards_to_array
from engine.config import MAX_PLAYERS
from engine.melds import Meld, MeldType
from engine.state import GameSnapshot, Phase, PlayAction


# 两人局每人 27 张，用于归一化剩余牌数
MAX_HAND_SIZE = 27
NUM_MELD_TYPES = len(MeldType)


@dataclass
class Observation:
    """
    结构化观测

    所有按座位排列的特征都以观测者为 0 号，按出牌顺序排列

    Attributes:
        hand: 自己的手牌 (54,)
        played_cards: 各座位本局已出的牌 (6, 54)
        history: 最近 N 步出牌历史 (N, 54)
        last_play: 桌面上最后一手牌 (54,)
        established_type: 本轮牌型 one-hot (9,)，0 号表示尚未确定
        cards_left: 各座位剩余牌数，归一化 (6,)
        is_leading: 是否由自己领出 (1,)
        legal_mask: 合法动作掩码 (max_actions + 1,)，0 号为过牌
    """
    hand: np.ndarray
    played_cards: np.ndarray
    history: np.ndarray
    last_play: np.ndarray
    established_type: np.ndarray
    cards_left: np.ndarray
    is_leading: np.ndarray
    legal_mask: np.ndarray

    def to_dict(self) -> Dict[str, np.ndarray]:
        """转换为字典格式"""
        return {
            "hand": self.hand,
            "played_cards": self.played_cards,
            "history": self.history,
            "last_play": self.last_play,
            "established_type": self.established_type,
            "cards_left": self.cards_left,
            "is_leading": self.is_leading,
            "legal_mask": self.legal_mask,
        }

    def to_flat_array(self) -> np.ndarray:
        """展平为单一向量 (不含动作掩码)"""
        return np.concatenate([
            self.hand,
            self.played_cards.flatten(),
            self.history.flatten(),
            self.last_play,
            self.established_type,
            self.cards_left,
            self.is_leading,
        ])


class ObservationBuilder:
    """
    观测构建器

    负责将 GameSnapshot 转换为 Observation
    """

    def __init__(self, history_length: int = 15, max_actions: int = 256):
        """
        Args:
            history_length: 历史记录长度
            max_actions: 动作空间中可选出牌的最大数量
        """
        self.history_length = history_length
        self.max_actions = max_actions

    def build(self, snapshot: GameSnapshot, player_id: str,
              legal_moves: Sequence[Meld] = ()) -> Observation:
        """
        从快照构建观测

        Args:
            snapshot: 游戏快照
            player_id: 观测者
            legal_moves: 观测者当前的合法出牌

        Returns:
            Observation 对象
        """
        seats = self._seat_order(snapshot, player_id)

        return Observation(
            hand=cards_to_array(snapshot.player(player_id).hand),
            played_cards=self._encode_played_cards(snapshot, seats),
            history=self._encode_history(snapshot),
            last_play=self._encode_last_play(snapshot),
            established_type=self._encode_established_type(snapshot),
            cards_left=self._encode_cards_left(snapshot, seats),
            is_leading=np.array([float(snapshot.is_leading(player_id))], dtype=np.float32),
            legal_mask=self._encode_legal_mask(snapshot, player_id, legal_moves),
        )

    @staticmethod
    def _seat_order(snapshot: GameSnapshot, player_id: str) -> List[str]:
        """以观测者为起点的座位顺序"""
        ids = [p.id for p in snapshot.players]
        start = ids.index(player_id)
        return ids[start:] + ids[:start]

    def _encode_played_cards(self, snapshot: GameSnapshot, seats: List[str]) -> np.ndarray:
        """
        编码各座位已出的牌

        Returns:
            (6, 54) 数组
        """
        result = np.zeros((MAX_PLAYERS, CARDS_PER_DECK), dtype=np.float32)
        played: Dict[str, list] = {pid: [] for pid in seats}
        for record in snapshot.history:
            if record.action == PlayAction.PLAY:
                played[record.player_id].extend(record.meld.cards)

        for i, pid in enumerate(seats):
            if played[pid]:
                result[i] = cards_to_array(played[pid])
        return result

    def _encode_history(self, snapshot: GameSnapshot) -> np.ndarray:
        """
        编码最近 N 步出牌历史，过牌为全 0

        Returns:
            (history_length, 54) 数组
        """
        result = np.zeros((self.history_length, CARDS_PER_DECK), dtype=np.float32)
        recent = snapshot.history[-self.history_length:]
        for i, record in enumerate(recent):
            if record.action == PlayAction.PLAY:
                result[i] = cards_to_array(record.meld.cards)
        return result

    @staticmethod
    def _encode_last_play(snapshot: GameSnapshot) -> np.ndarray:
        if snapshot.trick is None or snapshot.trick.last_play is None:
            return np.zeros(CARDS_PER_DECK, dtype=np.float32)
        return cards_to_array(snapshot.trick.last_play.meld.cards)

    @staticmethod
    def _encode_established_type(snapshot: GameSnapshot) -> np.ndarray:
        result = np.zeros(NUM_MELD_TYPES + 1, dtype=np.float32)
        if snapshot.trick is None or snapshot.trick.established_type is None:
            result[0] = 1
        else:
            result[int(snapshot.trick.established_type)] = 1
        return result

    @staticmethod
    def _encode_cards_left(snapshot: GameSnapshot, seats: List[str]) -> np.ndarray:
        """
        编码各座位剩余牌数

        Returns:
            (6,) 数组，归一化到 [0, 1]
        """
        result = np.zeros(MAX_PLAYERS, dtype=np.float32)
        for i, pid in enumerate(seats):
            result[i] = snapshot.player(pid).card_count / MAX_HAND_SIZE
        return result

    def _encode_legal_mask(self, snapshot: GameSnapshot, player_id: str,
                           legal_moves: Sequence[Meld]) -> np.ndarray:
        """0 号为过牌 (领出时不可用)，i 号对应第 i 个合法出牌"""
        mask = np.zeros(self.max_actions + 1, dtype=np.float32)
        active = snapshot.phase in (Phase.LEAD_OPEN, Phase.FOLLOW_OPEN)
        if active and snapshot.current_player == player_id and not snapshot.is_leading(player_id):
            mask[0] = 1
        n = min(len(legal_moves), self.max_actions)
        mask[1:n + 1] = 1
        return mask
