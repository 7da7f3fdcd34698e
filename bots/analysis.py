"""
局面分析

机器人共用的手牌强度评估、局势分析与出牌打分
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence
from collections import Counter

from engine.cards import (
    Card,
    ACE_LOW_RUN_VALUE,
    JOKERS,
    RUN_RANK_VALUE,
    SUITS,
    single_rank_value,
)
from engine.melds import Meld, MeldType, MIN_RUN_LEN
from engine.state import GameSnapshot

from .config import BotConfig


HIGH_CARD_VALUE = 13  # 2 及以上计入手牌强度
BOMB_HAND_BONUS = 100
DISTINGUISHED_HAND_BONUS = 50


def has_quad(hand: Sequence[Card]) -> bool:
    counter = Counter(c.rank for c in hand if c.rank not in JOKERS)
    return any(n >= 4 for n in counter.values())


def has_straight_flush(hand: Sequence[Card]) -> bool:
    """某一花色中是否有至少 5 张顺子大小连续的牌"""
    for suit in SUITS:
        values = {RUN_RANK_VALUE[c.rank] for c in hand if c.suit == suit}
        if RUN_RANK_VALUE['A'] in values:
            values.add(ACE_LOW_RUN_VALUE)
        longest = streak = 0
        previous = None
        for v in sorted(values):
            streak = streak + 1 if previous is not None and v == previous + 1 else 1
            longest = max(longest, streak)
            previous = v
        if longest >= MIN_RUN_LEN:
            return True
    return False


def has_bomb(hand: Sequence[Card]) -> bool:
    """手里是否有炸弹 (四张或同花顺)"""
    return has_quad(hand) or has_straight_flush(hand)


def has_distinguished(hand: Sequence[Card]) -> bool:
    return any(c.is_distinguished for c in hand)


def evaluate_hand_strength(hand: Sequence[Card]) -> int:
    """
    手牌强度

    大牌 (2、王、红心 5) 按单张大小累加，有炸弹加 100，有红心 5 再加 50

    Args:
        hand: 手牌

    Returns:
        强度分数
    """
    strength = 0
    for card in hand:
        value = single_rank_value(card)
        if value >= HIGH_CARD_VALUE:
            strength += value
    if has_bomb(hand):
        strength += BOMB_HAND_BONUS
    if has_distinguished(hand):
        strength += DISTINGUISHED_HAND_BONUS
    return strength


@dataclass(frozen=True)
class SituationAnalysis:
    """
    局势分析结果

    Attributes:
        cards_remaining: 自己的手牌数
        is_leading: 是否为本轮领出者
        min_opponent_cards: 对手最少的手牌数
        has_bomb: 手里是否有炸弹
        has_distinguished: 手里是否有红心 5
        in_danger: 是否有对手快要出完
        should_pass: 是否选择过牌保留实力
    """
    cards_remaining: int
    is_leading: bool
    min_opponent_cards: int
    has_bomb: bool
    has_distinguished: bool
    in_danger: bool
    should_pass: bool


def analyze_situation(
    player_id: str,
    snapshot: GameSnapshot,
    config: BotConfig,
    draw: Optional[float] = None,
) -> SituationAnalysis:
    """
    分析当前局势

    Args:
        player_id: 玩家 id
        snapshot: 游戏快照
        config: 机器人配置
        draw: [0, 1) 随机数，用于决定是否过牌 (None 表示不考虑过牌)

    Returns:
        SituationAnalysis
    """
    hand = snapshot.player(player_id).hand
    cards_remaining = len(hand)
    is_leading = snapshot.is_trick_leader(player_id)
    opponent_counts = snapshot.opponent_card_counts(player_id)
    min_opponent_cards = min(opponent_counts) if opponent_counts else 0
    in_danger = min_opponent_cards <= config.danger_threshold

    should_pass = False
    if (draw is not None
            and not is_leading
            and cards_remaining > config.large_hand_cards
            and not in_danger):
        last = snapshot.trick.last_play if snapshot.trick is not None else None
        last_strength = last.meld.strength if last is not None else 0
        if last_strength > config.conserve_strength and draw < config.conserve_pass_probability:
            should_pass = True

    return SituationAnalysis(
        cards_remaining=cards_remaining,
        is_leading=is_leading,
        min_opponent_cards=min_opponent_cards,
        has_bomb=has_bomb(hand),
        has_distinguished=has_distinguished(hand),
        in_danger=in_danger,
        should_pass=should_pass,
    )


def exhausted_groups(meld: Meld, hand: Sequence[Card]) -> int:
    """出这手牌会用完多少个点数组"""
    in_hand = Counter(c.rank for c in hand)
    in_meld = Counter(c.rank for c in meld.cards)
    return sum(1 for rank, n in in_meld.items() if in_hand.get(rank, 0) == n)


def score_meld(
    meld: Meld,
    hand: Sequence[Card],
    analysis: SituationAnalysis,
    config: BotConfig,
) -> int:
    """
    给一手牌打分 (越高越好)

    Args:
        meld: 候选出牌
        hand: 当前手牌
        analysis: 局势分析
        config: 机器人配置

    Returns:
        分数
    """
    score = meld.strength

    if analysis.is_leading:
        # 领出时少出牌以保持控制
        score -= len(meld) * 2
        if analysis.cards_remaining > config.large_hand_cards:
            if meld.meld_type == MeldType.SINGLE:
                score += 10
            elif meld.meld_type == MeldType.PAIR:
                score += 8
    elif analysis.in_danger and not meld.is_bomb:
        score -= 20

    if meld.is_bomb:
        if analysis.in_danger or analysis.cards_remaining <= config.endgame_cards:
            score += 50
        else:
            score -= 30

    if meld.has_distinguished:
        if (analysis.cards_remaining <= config.finish_cards
                or analysis.min_opponent_cards <= config.finish_opponent_cards):
            score += 100
        else:
            score -= 50

    score += 5 * exhausted_groups(meld, hand)
    return score


def rank_moves(
    legal_moves: Sequence[Meld],
    hand: Sequence[Card],
    analysis: SituationAnalysis,
    config: BotConfig,
) -> List[Meld]:
    """按分数从高到低排序 (同分保持原顺序)"""
    return sorted(
        legal_moves,
        key=lambda m: score_meld(m, hand, analysis, config),
        reverse=True,
    )
