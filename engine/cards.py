"""
牌的定义与编码

红心五使用 54 张牌 (6 人局使用两副):
- 3-10, J, Q, K, A, 2 各 4 种花色
- 小王 (jj)、大王 (JJ) 各 1 张
- 红心 5 (5H) 是单张最大的牌
- 红心 3 (3H) 持有者首轮先出
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
from collections import Counter

import numpy as np


RANKS: Tuple[str, ...] = ('3', '4', '5', '6', '7', '8', '9', 'T', 'J', 'Q', 'K', 'A', '2')
SUITS: Tuple[str, ...] = ('C', 'D', 'H', 'S')

SMALL_JOKER = 'jj'
BIG_JOKER = 'JJ'
JOKERS: Tuple[str, ...] = (SMALL_JOKER, BIG_JOKER)

DISTINGUISHED_CARD = '5H'
STARTER_CARD = '3H'

CARDS_PER_DECK = 54

# 单张大小: 3 最小, 2 之后是小王、大王, 红心 5 最大
SINGLE_RANK_VALUE: Dict[str, int] = {
    '3': 1, '4': 2, '5': 3, '6': 4, '7': 5, '8': 6, '9': 7,
    'T': 8, 'J': 9, 'Q': 10, 'K': 11, 'A': 12, '2': 13,
    SMALL_JOKER: 14, BIG_JOKER: 15,
}
DISTINGUISHED_VALUE = 16

# 顺子大小: 2 最小, A 最大 (A 也可以在 2 前面作小头)
RUN_RANK_VALUE: Dict[str, int] = {
    '2': 1, '3': 2, '4': 3, '5': 4, '6': 5, '7': 6, '8': 7,
    '9': 8, 'T': 9, 'J': 10, 'Q': 11, 'K': 12, 'A': 13,
}
ACE_LOW_RUN_VALUE = 0

# 牌面到 54 维向量索引
NOTATION_TO_INDEX: Dict[str, int] = {
    rank + suit: i * 4 + j
    for i, rank in enumerate(RANKS)
    for j, suit in enumerate(SUITS)
}
NOTATION_TO_INDEX[SMALL_JOKER] = 52
NOTATION_TO_INDEX[BIG_JOKER] = 53


class DeckIntegrityError(RuntimeError):
    """牌组数据损坏 (重复的牌、张数不符)，引擎拒绝继续"""


@dataclass(frozen=True, slots=True)
class Card:
    """
    不可变的一张牌

    Attributes:
        rank: 点数 ('3'..'2') 或王 ('jj' / 'JJ')
        suit: 花色，王没有花色
        copy: 第几副牌 (多副牌时区分同面值的实体牌)
    """
    rank: str
    suit: Optional[str] = None
    copy: int = 0

    def __post_init__(self):
        if self.rank in JOKERS:
            if self.suit is not None:
                raise ValueError(f"Joker {self.rank} cannot carry a suit")
        elif self.rank not in SINGLE_RANK_VALUE:
            raise ValueError(f"Unknown rank: {self.rank!r}")
        elif self.suit not in SUITS:
            raise ValueError(f"Unknown suit: {self.suit!r}")

    @property
    def notation(self) -> str:
        if self.suit is None:
            return self.rank
        return self.rank + self.suit

    @property
    def is_joker(self) -> bool:
        return self.rank in JOKERS

    @property
    def is_distinguished(self) -> bool:
        """是否为红心 5"""
        return self.rank == '5' and self.suit == 'H'

    def __str__(self) -> str:
        return self.notation

    def __repr__(self) -> str:
        if self.copy:
            return f"Card({self.notation}#{self.copy})"
        return f"Card({self.notation})"


def parse_card(notation: str, copy: int = 0) -> Card:
    """
    解析牌面字符串

    Args:
        notation: 如 "5H"、"TC"、"jj"
        copy: 副数编号

    Returns:
        Card 对象

    Raises:
        ValueError: 格式错误
    """
    if notation in JOKERS:
        return Card(notation, None, copy)
    if len(notation) != 2:
        raise ValueError(f"Malformed card notation: {notation!r}")
    return Card(notation[0], notation[1], copy)


def str_to_cards(s: str) -> List[Card]:
    """
    将空格分隔的字符串转换为牌列表

    Args:
        s: 如 "5H 5D 5C 7H 7D"

    Returns:
        牌列表
    """
    return [parse_card(token) for token in s.split()]


def cards_to_str(cards: Sequence[Card]) -> str:
    """按单张大小排序后输出，如 "3H 3D 4C" """
    return ' '.join(c.notation for c in sort_by_single_rank(cards))


def single_rank_value(card: Card) -> int:
    """单张大小 (红心 5 为 16)"""
    if card.is_distinguished:
        return DISTINGUISHED_VALUE
    return SINGLE_RANK_VALUE[card.rank]


def nominal_rank_value(card: Card) -> int:
    """按点数的单张大小，不考虑红心 5 的特殊地位 (用于分组/连对判断)"""
    return SINGLE_RANK_VALUE[card.rank]


def run_rank_value(card: Card) -> Optional[int]:
    """顺子大小，王返回 None"""
    return RUN_RANK_VALUE.get(card.rank)


def sort_by_single_rank(cards: Sequence[Card]) -> List[Card]:
    return sorted(cards, key=lambda c: (single_rank_value(c), c.suit or '', c.copy))


def sort_by_suit(cards: Sequence[Card]) -> List[Card]:
    """按花色分组排序，王排在最后"""
    def key(c: Card):
        if c.is_joker:
            return (len(SUITS), SINGLE_RANK_VALUE[c.rank], c.copy)
        return (SUITS.index(c.suit), single_rank_value(c), c.copy)
    return sorted(cards, key=key)


def group_by_rank(cards: Sequence[Card]) -> Dict[str, List[Card]]:
    """按点数分组"""
    groups: Dict[str, List[Card]] = {}
    for card in cards:
        groups.setdefault(card.rank, []).append(card)
    return groups


def deck_count_for(player_count: int) -> int:
    """2-5 人一副牌，6 人两副"""
    return 2 if player_count >= 6 else 1


def build_deck(deck_count: int = 1) -> List[Card]:
    """
    生成完整牌组

    Args:
        deck_count: 副数

    Returns:
        deck_count * 54 张牌
    """
    deck = []
    for copy in range(deck_count):
        for rank in RANKS:
            for suit in SUITS:
                deck.append(Card(rank, suit, copy))
        deck.append(Card(SMALL_JOKER, None, copy))
        deck.append(Card(BIG_JOKER, None, copy))
    return deck


def shuffle_deck(deck: List[Card], rng: np.random.Generator) -> List[Card]:
    """洗牌，返回新列表"""
    order = rng.permutation(len(deck))
    return [deck[i] for i in order]


def deal(deck: Sequence[Card], player_count: int) -> List[List[Card]]:
    """轮流发牌"""
    hands: List[List[Card]] = [[] for _ in range(player_count)]
    for i, card in enumerate(deck):
        hands[i % player_count].append(card)
    return [sort_by_single_rank(h) for h in hands]


def validate_deal(hands: Sequence[Sequence[Card]], deck_count: Optional[int] = None) -> None:
    """
    检查发牌结果

    Args:
        hands: 各玩家手牌
        deck_count: 期望副数 (None 则只检查重复)

    Raises:
        DeckIntegrityError: 有重复的实体牌，或总张数与副数不符
    """
    counter = Counter(card for hand in hands for card in hand)
    duplicates = [card for card, n in counter.items() if n > 1]
    if duplicates:
        raise DeckIntegrityError(f"Duplicate cards across hands: {duplicates}")

    if deck_count is not None:
        total = sum(counter.values())
        expected = deck_count * CARDS_PER_DECK
        if total != expected:
            raise DeckIntegrityError(
                f"Corrupt deck: dealt {total} cards, expected {expected}"
            )
        if any(card.copy >= deck_count for card in counter):
            raise DeckIntegrityError(f"Card copy index out of range for {deck_count} deck(s)")


def cards_to_array(cards: Sequence[Card]) -> np.ndarray:
    """
    将牌列表转换为 54 维计数向量

    编码方式:
    - 前 52 维: 13 种点数 × 4 种花色
    - 后 2 维: [小王, 大王]
    多副牌时同一位置可以大于 1

    Args:
        cards: 牌列表

    Returns:
        54 维 float32 数组
    """
    array = np.zeros(CARDS_PER_DECK, dtype=np.float32)
    for card in cards:
        array[NOTATION_TO_INDEX[card.notation]] += 1
    return array
