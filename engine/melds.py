"""
牌型定义

红心五共有 8 种牌型，其中两种为炸弹
"""
from enum import IntEnum
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .cards import Card


class MeldType(IntEnum):
    """牌型"""
    SINGLE = 1               # 单张
    PAIR = 2                 # 对子
    TRIPLE = 3               # 三张
    FULL_HOUSE = 4           # 三带二
    SISTERS = 5              # 姐妹对 (连续的对子或三张)
    RUN = 6                  # 顺子 (至少5张)
    QUAD_BOMB = 7            # 四张炸弹
    STRAIGHT_FLUSH_BOMB = 8  # 同花顺炸弹


BOMB_TYPES = frozenset({MeldType.QUAD_BOMB, MeldType.STRAIGHT_FLUSH_BOMB})

# 需要长度相同才能比较的牌型
LENGTH_BOUND_TYPES = frozenset({MeldType.RUN, MeldType.STRAIGHT_FLUSH_BOMB})

MIN_RUN_LEN = 5       # 顺子至少 5 张
MIN_SISTERS_LEN = 4   # 姐妹对至少 4 张
MIN_SISTERS_GROUPS = 2


@dataclass(frozen=True, slots=True)
class Meld:
    """
    不可变牌型表示

    Attributes:
        meld_type: 牌型
        cards: 组成的牌 (已排序)
        strength: 牌力，由 (meld_type, cards) 决定
    """
    meld_type: MeldType
    cards: Tuple[Card, ...]
    strength: int

    @classmethod
    def from_cards(cls, cards: Sequence[Card]) -> Optional['Meld']:
        """从牌列表识别牌型，无法识别返回 None"""
        from .rules import RuleEngine
        return RuleEngine.classify(cards)

    @property
    def is_bomb(self) -> bool:
        return self.meld_type in BOMB_TYPES

    @property
    def key(self) -> Tuple[str, ...]:
        """去重用的牌面多重集合"""
        return tuple(sorted(c.notation for c in self.cards))

    @property
    def has_distinguished(self) -> bool:
        return any(c.is_distinguished for c in self.cards)

    @property
    def notation(self) -> str:
        return ' '.join(c.notation for c in self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __str__(self) -> str:
        return f"{self.meld_type.name.lower()}[{self.notation}]"
