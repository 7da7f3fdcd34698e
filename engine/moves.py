"""
合法出牌生成器

先按点数分组 (一次)，再从分组中组合对子/三张/炸弹/三带二/姐妹对；
顺子按顺子大小排序后滑动窗口生成。所有候选都经过 RuleEngine.classify，
保证生成的牌型与独立识别的结果一致。
"""
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import itertools

from .cards import (
    Card,
    ACE_LOW_RUN_VALUE,
    JOKERS,
    RUN_RANK_VALUE,
    SINGLE_RANK_VALUE,
    SUITS,
    group_by_rank,
)
from .melds import (
    Meld,
    MeldType,
    LENGTH_BOUND_TYPES,
    MIN_RUN_LEN,
    MIN_SISTERS_GROUPS,
)
from .rules import RuleEngine


def sort_moves(melds: Iterable[Meld]) -> List[Meld]:
    """稳定排序: 牌型 → 张数 → 牌力 → 牌面"""
    return sorted(melds, key=lambda m: (m.meld_type, len(m), m.strength, m.key))


class MoveGenerator:
    """
    合法出牌生成器

    根据手牌生成所有可能的出牌组合，相同牌面的组合只保留一个
    """

    def __init__(self, hand_cards: Sequence[Card]):
        """
        Args:
            hand_cards: 手牌列表
        """
        self.hand = list(hand_cards)
        self.rank_groups: Dict[str, List[Card]] = group_by_rank(self.hand)

        # 按顺子大小分组 (王不参与)
        self.run_groups: Dict[int, List[Card]] = {}
        for rank, cards in self.rank_groups.items():
            if rank in RUN_RANK_VALUE:
                self.run_groups[RUN_RANK_VALUE[rank]] = cards
        if 'A' in self.rank_groups:
            self.run_groups[ACE_LOW_RUN_VALUE] = self.rank_groups['A']

    # ------------------------------------------------------------------
    # 工具方法
    # ------------------------------------------------------------------

    @staticmethod
    def _collect(candidates: Iterable[Sequence[Card]],
                 allowed: Optional[Iterable[MeldType]] = None) -> List[Meld]:
        """识别候选组合并去重"""
        allowed = set(allowed) if allowed is not None else None
        seen: Dict[Tuple[str, ...], Meld] = {}
        for cards in candidates:
            meld = RuleEngine.classify(cards)
            if meld is None:
                continue
            if allowed is not None and meld.meld_type not in allowed:
                continue
            seen.setdefault(meld.key, meld)
        return list(seen.values())

    @staticmethod
    def _distinct_combinations(cards: Sequence[Card], size: int) -> List[Tuple[Card, ...]]:
        """同一组内大小为 size 的组合，牌面相同的组合只保留一个"""
        result: Dict[Tuple[str, ...], Tuple[Card, ...]] = {}
        for combo in itertools.combinations(cards, size):
            key = tuple(sorted(c.notation for c in combo))
            result.setdefault(key, combo)
        return list(result.values())

    def _groups_of(self, size: int, allow_jokers: bool = True) -> Dict[str, List[Tuple[Card, ...]]]:
        """每个点数下大小为 size 的所有组合"""
        groups = {}
        for rank, cards in self.rank_groups.items():
            if not allow_jokers and rank in JOKERS:
                continue
            if len(cards) >= size:
                groups[rank] = self._distinct_combinations(cards, size)
        return groups

    @staticmethod
    def _contiguous_windows(values: List[int], min_len: int,
                            required_len: int = 0) -> List[List[int]]:
        """
        在已排序的数值中找出所有连续窗口

        Args:
            values: 已排序且不重复的数值
            min_len: 最小窗口长度
            required_len: 指定窗口长度，0 表示不限制

        Returns:
            窗口列表 (包含所有截断)
        """
        windows = []
        for start in range(len(values)):
            for end in range(start + min_len - 1, len(values)):
                window = values[start:end + 1]
                if window[-1] - window[0] != len(window) - 1:
                    break
                if required_len and len(window) != required_len:
                    continue
                windows.append(window)
        return windows

    # ------------------------------------------------------------------
    # 各牌型生成
    # ------------------------------------------------------------------

    def gen_singles(self) -> List[Meld]:
        """生成所有单张"""
        return self._collect([card] for card in self.hand)

    def gen_pairs(self) -> List[Meld]:
        """生成所有对子"""
        groups = self._groups_of(2, allow_jokers=False)
        return self._collect(itertools.chain.from_iterable(groups.values()))

    def gen_triples(self) -> List[Meld]:
        """生成所有三张"""
        groups = self._groups_of(3)
        return self._collect(itertools.chain.from_iterable(groups.values()))

    def gen_quad_bombs(self) -> List[Meld]:
        """生成所有四张炸弹"""
        groups = self._groups_of(4)
        return self._collect(itertools.chain.from_iterable(groups.values()))

    def gen_full_houses(self) -> List[Meld]:
        """生成所有三带二 (三张 × 对子)"""
        triples = self._groups_of(3)
        pairs = self._groups_of(2, allow_jokers=False)
        candidates = []
        for triple_rank, triple_combos in triples.items():
            for pair_rank, pair_combos in pairs.items():
                if pair_rank == triple_rank:
                    continue
                for triple, pair in itertools.product(triple_combos, pair_combos):
                    candidates.append(triple + pair)
        return self._collect(candidates, allowed=[MeldType.FULL_HOUSE])

    def gen_sisters(self) -> List[Meld]:
        """生成所有姐妹对 (连续对子或连续三张，含所有子区间)"""
        candidates = []
        for size in (2, 3):
            groups = self._groups_of(size, allow_jokers=False)
            by_value = {SINGLE_RANK_VALUE[rank]: combos for rank, combos in groups.items()}
            for window in self._contiguous_windows(sorted(by_value), MIN_SISTERS_GROUPS):
                for choice in itertools.product(*(by_value[v] for v in window)):
                    candidates.append(tuple(itertools.chain.from_iterable(choice)))
        return self._collect(candidates, allowed=[MeldType.SISTERS])

    def _run_candidates(self, required_len: int = 0) -> List[Tuple[Card, ...]]:
        values = sorted(self.run_groups)
        candidates = []
        for window in self._contiguous_windows(values, MIN_RUN_LEN, required_len):
            for choice in itertools.product(*(self.run_groups[v] for v in window)):
                candidates.append(choice)
        return candidates

    def gen_runs(self, required_len: int = 0) -> List[Meld]:
        """生成所有顺子 (不含同花顺)"""
        return self._collect(self._run_candidates(required_len), allowed=[MeldType.RUN])

    def gen_straight_flushes(self, required_len: int = 0) -> List[Meld]:
        """生成所有同花顺炸弹 (按花色分别找连续窗口)"""
        candidates = []
        for suit in SUITS:
            by_value = {}
            for value, cards in self.run_groups.items():
                suited = [c for c in cards if c.suit == suit]
                if suited:
                    by_value[value] = suited
            for window in self._contiguous_windows(sorted(by_value), MIN_RUN_LEN, required_len):
                candidates.extend(itertools.product(*(by_value[v] for v in window)))
        return self._collect(candidates, allowed=[MeldType.STRAIGHT_FLUSH_BOMB])

    def gen_bombs(self) -> List[Meld]:
        """生成所有炸弹 (四张 + 同花顺)"""
        return self.gen_quad_bombs() + self.gen_straight_flushes()

    def gen_type(self, meld_type: MeldType, required_len: int = 0) -> List[Meld]:
        """生成指定牌型"""
        if meld_type == MeldType.SINGLE:
            return self.gen_singles()
        if meld_type == MeldType.PAIR:
            return self.gen_pairs()
        if meld_type == MeldType.TRIPLE:
            return self.gen_triples()
        if meld_type == MeldType.FULL_HOUSE:
            return self.gen_full_houses()
        if meld_type == MeldType.SISTERS:
            return self.gen_sisters()
        if meld_type == MeldType.RUN:
            return self.gen_runs(required_len)
        if meld_type == MeldType.QUAD_BOMB:
            return self.gen_quad_bombs()
        if meld_type == MeldType.STRAIGHT_FLUSH_BOMB:
            return self.gen_straight_flushes(required_len)
        raise ValueError(f"Unknown meld type: {meld_type!r}")

    # ------------------------------------------------------------------
    # 对外接口
    # ------------------------------------------------------------------

    def generate_all(self) -> List[Meld]:
        """
        生成所有可能的出牌 (主动出牌)

        Returns:
            所有牌型的组合，已去重排序
        """
        melds = (
            self.gen_singles()
            + self.gen_pairs()
            + self.gen_triples()
            + self.gen_quad_bombs()
            + self.gen_full_houses()
            + self.gen_sisters()
            + self.gen_runs()
            + self.gen_straight_flushes()
        )
        return sort_moves(melds)

    def generate_responses(self, established_type: MeldType,
                           last_play: Optional[Meld]) -> List[Meld]:
        """
        生成跟牌的合法响应

        只允许已确定的牌型 (顺子/同花顺要求张数相同) 以及炸弹，
        并且必须能压过桌面上的牌

        Args:
            established_type: 本轮已确定的牌型
            last_play: 桌面上最后一手牌

        Returns:
            合法响应列表 (不含 PASS)
        """
        required_len = 0
        if established_type in LENGTH_BOUND_TYPES and last_play is not None:
            if last_play.meld_type == established_type:
                required_len = len(last_play)

        candidates: Dict[Tuple[str, ...], Meld] = {}
        for meld in self.gen_type(established_type, required_len):
            candidates.setdefault(meld.key, meld)
        for meld in self.gen_bombs():
            candidates.setdefault(meld.key, meld)

        melds = list(candidates.values())
        if last_play is not None:
            melds = [m for m in melds if RuleEngine.can_beat(m, last_play)]
        return sort_moves(melds)

    def legal_moves(self, established_type: Optional[MeldType],
                    last_play: Optional[Meld], is_leader: bool) -> List[Meld]:
        """
        合法出牌列表

        Args:
            established_type: 本轮牌型 (None 表示尚未出牌)
            last_play: 桌面上最后一手牌
            is_leader: 是否为本轮领出者

        Returns:
            有序、去重的合法出牌列表；无牌可出时为空列表
        """
        if established_type is None:
            return self.generate_all() if is_leader else []
        return self.generate_responses(established_type, last_play)
