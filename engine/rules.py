"""
规则引擎 - 牌型识别、牌力计算、大小比较

所有方法都是纯函数，无状态
"""
from typing import Dict, List, Optional, Sequence
from collections import Counter

from .cards import (
    Card,
    ACE_LOW_RUN_VALUE,
    JOKERS,
    SINGLE_RANK_VALUE,
    DISTINGUISHED_VALUE,
    RUN_RANK_VALUE,
    nominal_rank_value,
    single_rank_value,
    sort_by_single_rank,
)
from .melds import (
    Meld,
    MeldType,
    LENGTH_BOUND_TYPES,
    MIN_RUN_LEN,
    MIN_SISTERS_GROUPS,
    MIN_SISTERS_LEN,
)


class RuleEngine:
    """
    红心五规则引擎

    提供牌型识别、牌力计算、大小比较等功能
    所有方法都是静态方法，无状态
    """

    @staticmethod
    def is_consecutive(values: List[int]) -> bool:
        """
        检查已排序的数值列表是否连续

        Args:
            values: 已排序的数值列表

        Returns:
            是否连续
        """
        for i in range(len(values) - 1):
            if values[i + 1] - values[i] != 1:
                return False
        return True

    @staticmethod
    def run_values(cards: Sequence[Card]) -> Optional[Dict[Card, int]]:
        """
        计算顺子中每张牌的位置值

        A 默认在 K 之后 (最大)；若不连续，再尝试把 A 放在 2 之前作小头。
        一个顺子中 A 只能出现一次，不会同时作为两端。

        Args:
            cards: 牌列表

        Returns:
            牌 -> 顺子位置值；不构成连续点数时返回 None
        """
        if any(c.is_joker for c in cards):
            return None
        ranks = [c.rank for c in cards]
        if len(set(ranks)) != len(ranks):
            return None

        values = {c: RUN_RANK_VALUE[c.rank] for c in cards}
        if RuleEngine.is_consecutive(sorted(values.values())):
            return values

        if 'A' in ranks:
            low = {c: (ACE_LOW_RUN_VALUE if c.rank == 'A' else v) for c, v in values.items()}
            if RuleEngine.is_consecutive(sorted(low.values())):
                return low

        return None

    @staticmethod
    def _is_sisters(counter: Counter, n: int) -> bool:
        """所有组同为对子或同为三张，且点数按单张顺序连续"""
        if n < MIN_SISTERS_LEN or len(counter) < MIN_SISTERS_GROUPS:
            return False
        if any(rank in JOKERS for rank in counter):
            return False
        if set(counter.values()) not in ({2}, {3}):
            return False
        return RuleEngine.is_consecutive(sorted(SINGLE_RANK_VALUE[rank] for rank in counter))

    @staticmethod
    def detect_meld_type(cards: Sequence[Card]) -> Optional[MeldType]:
        """
        识别牌型

        Args:
            cards: 牌列表 (不含重复的实体牌)

        Returns:
            牌型，无法识别返回 None
        """
        n = len(cards)
        if n == 0:
            return None

        # 单张
        if n == 1:
            return MeldType.SINGLE

        counter = Counter(c.rank for c in cards)
        has_joker = any(c.is_joker for c in cards)

        # 对子 (王不能成对)
        if n == 2:
            if len(counter) == 1 and not has_joker:
                return MeldType.PAIR
            return None

        # 三张
        if n == 3:
            return MeldType.TRIPLE if len(counter) == 1 else None

        # 四张炸弹
        if n == 4 and len(counter) == 1:
            return MeldType.QUAD_BOMB

        # 三带二 (对子部分不能是王)
        if n == 5 and sorted(counter.values()) == [2, 3]:
            pair_rank = next(rank for rank, count in counter.items() if count == 2)
            if pair_rank not in JOKERS:
                return MeldType.FULL_HOUSE
            return None

        # 姐妹对
        if not has_joker and RuleEngine._is_sisters(counter, n):
            return MeldType.SISTERS

        # 顺子 / 同花顺炸弹
        if n >= MIN_RUN_LEN and RuleEngine.run_values(cards) is not None:
            if len({c.suit for c in cards}) == 1:
                return MeldType.STRAIGHT_FLUSH_BOMB
            return MeldType.RUN

        return None

    @staticmethod
    def meld_strength(meld_type: MeldType, cards: Sequence[Card]) -> int:
        """
        计算牌力

        - 单张/对子/三张/炸弹: 点数的单张大小，含红心 5 时为最大值
        - 三带二: 三张部分的牌力
        - 姐妹对: 最大一张的单张大小 (含红心 5 时为最大值)
        - 顺子/同花顺: 最大一张的顺子大小

        Args:
            meld_type: 牌型
            cards: 牌列表

        Returns:
            牌力
        """
        if meld_type == MeldType.SINGLE:
            return single_rank_value(cards[0])

        if meld_type in (MeldType.PAIR, MeldType.TRIPLE, MeldType.QUAD_BOMB):
            return RuleEngine._group_strength(cards)

        if meld_type == MeldType.FULL_HOUSE:
            counter = Counter(c.rank for c in cards)
            triple_rank = next(rank for rank, count in counter.items() if count == 3)
            return RuleEngine._group_strength([c for c in cards if c.rank == triple_rank])

        if meld_type == MeldType.SISTERS:
            return max(single_rank_value(c) for c in cards)

        if meld_type in (MeldType.RUN, MeldType.STRAIGHT_FLUSH_BOMB):
            values = RuleEngine.run_values(cards)
            return max(values.values()) if values else 0

        return 0

    @staticmethod
    def _group_strength(cards: Sequence[Card]) -> int:
        if any(c.is_distinguished for c in cards):
            return DISTINGUISHED_VALUE
        return nominal_rank_value(cards[0])

    @staticmethod
    def classify(cards: Sequence[Card]) -> Optional[Meld]:
        """
        识别牌型并计算牌力

        对任意输入都不抛异常: 空输入、非 Card 元素、重复的实体牌均返回 None

        Args:
            cards: 牌列表

        Returns:
            Meld，无法识别返回 None
        """
        try:
            cards = list(cards)
        except TypeError:
            return None
        if not cards or not all(isinstance(c, Card) for c in cards):
            return None
        if len(set(cards)) != len(cards):
            return None

        meld_type = RuleEngine.detect_meld_type(cards)
        if meld_type is None:
            return None

        if meld_type in LENGTH_BOUND_TYPES:
            values = RuleEngine.run_values(cards)
            ordered = sorted(cards, key=lambda c: values[c])
        else:
            ordered = sort_by_single_rank(cards)

        return Meld(
            meld_type=meld_type,
            cards=tuple(ordered),
            strength=RuleEngine.meld_strength(meld_type, ordered),
        )

    @staticmethod
    def can_beat(candidate: Meld, current: Meld) -> bool:
        """
        candidate 能否压过 current

        - 炸弹压任何非炸弹
        - 同花顺炸弹压四张炸弹
        - 否则牌型必须相同 (顺子/同花顺还要求张数相同)，且牌力严格更大

        Args:
            candidate: 要出的牌
            current: 桌面上的牌

        Returns:
            是否能压过
        """
        if candidate.is_bomb and not current.is_bomb:
            return True

        if (candidate.meld_type == MeldType.STRAIGHT_FLUSH_BOMB
                and current.meld_type == MeldType.QUAD_BOMB):
            return True

        if candidate.meld_type != current.meld_type:
            return False

        if candidate.meld_type in LENGTH_BOUND_TYPES and len(candidate) != len(current):
            return False

        return candidate.strength > current.strength

    @staticmethod
    def compare(a: Meld, b: Meld) -> int:
        """
        比较两个牌型

        Returns:
            1 if a 压过 b, -1 if b 压过 a, 0 if 不可比较或相等
        """
        if RuleEngine.can_beat(a, b):
            return 1
        if RuleEngine.can_beat(b, a):
            return -1
        return 0

    @staticmethod
    def hand_contains(hand: Sequence[Card], cards: Sequence[Card]) -> bool:
        """手牌中是否有这些实体牌"""
        hand_counter = Counter(hand)
        for card, count in Counter(cards).items():
            if hand_counter.get(card, 0) < count:
                return False
        return True

