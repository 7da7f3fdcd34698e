"""合法出牌生成测试"""
from collections import Counter

import pytest
import numpy as np

from engine.cards import build_deck, deal, shuffle_deck, str_to_cards
from engine.melds import MeldType
from engine.moves import MoveGenerator, sort_moves
from engine.rules import RuleEngine


def classify(s: str):
    return RuleEngine.classify(str_to_cards(s))


def type_counts(melds):
    return Counter(m.meld_type for m in melds)


# 含一个对子、一个三张、一个 5 张顺子的 14 张手牌
FIXED_HAND = "3C 4D 5S 6C 7D 9H 9D JC JD JS KH 2S jj JJ"


class TestGenerateAll:
    """主动出牌生成测试"""

    def test_fixed_hand_count(self):
        melds = MoveGenerator(str_to_cards(FIXED_HAND)).generate_all()
        counts = type_counts(melds)

        assert counts[MeldType.SINGLE] == 14
        assert counts[MeldType.PAIR] == 4
        assert counts[MeldType.TRIPLE] == 1
        assert counts[MeldType.FULL_HOUSE] == 1
        assert counts[MeldType.RUN] == 3
        assert counts[MeldType.SISTERS] == 0
        assert counts[MeldType.QUAD_BOMB] == 0
        assert counts[MeldType.STRAIGHT_FLUSH_BOMB] == 0
        assert len(melds) == 23

    def test_fixed_hand_runs(self):
        runs = MoveGenerator(str_to_cards(FIXED_HAND)).gen_runs()
        notations = sorted(m.notation for m in runs)
        assert notations == [
            "2S 3C 4D 5S 6C",
            "2S 3C 4D 5S 6C 7D",
            "3C 4D 5S 6C 7D",
        ]

    def test_twenty_card_hand(self):
        melds = MoveGenerator(build_deck()[:20]).generate_all()
        counts = type_counts(melds)

        assert counts[MeldType.SINGLE] == 20
        assert counts[MeldType.PAIR] == 30
        assert counts[MeldType.TRIPLE] == 20
        assert counts[MeldType.QUAD_BOMB] == 5
        assert counts[MeldType.FULL_HOUSE] == 480
        assert counts[MeldType.SISTERS] == 12952
        assert counts[MeldType.RUN] == 1020
        assert counts[MeldType.STRAIGHT_FLUSH_BOMB] == 4

    def test_no_duplicates(self):
        melds = MoveGenerator(build_deck()[:20]).generate_all()
        keys = [m.key for m in melds]
        assert len(keys) == len(set(keys))

    def test_sorted(self):
        melds = MoveGenerator(str_to_cards(FIXED_HAND)).generate_all()
        assert melds == sort_moves(melds)

    def test_ace_low_run_included(self):
        runs = MoveGenerator(str_to_cards("AH 2D 3C 4S 5C")).gen_runs()
        assert len(runs) == 1
        assert runs[0].strength == 4

    def test_sisters_windows(self):
        sisters = MoveGenerator(str_to_cards("3H 3D 4H 4D 5H 5D")).gen_sisters()
        lengths = sorted(len(m) for m in sisters)
        # 3-4、4-5、3-4-5
        assert lengths == [4, 4, 6]

    def test_no_joker_pairs(self):
        pairs = MoveGenerator(str_to_cards("jj JJ 3C")).gen_pairs()
        assert pairs == []

    def test_empty_hand(self):
        assert MoveGenerator([]).generate_all() == []


class TestRoundTrip:
    """生成的牌型与独立识别一致"""

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_roundtrip(self, seed):
        hands = deal(shuffle_deck(build_deck(), np.random.default_rng(seed)), 4)
        for hand in hands:
            for meld in MoveGenerator(hand).generate_all():
                again = RuleEngine.classify(meld.cards)
                assert again is not None
                assert (again.meld_type, again.strength) == (meld.meld_type, meld.strength)


class TestResponses:
    """跟牌生成测试"""

    def test_pair_established(self):
        hand = str_to_cards("3C 9H 9D 4S 4D 4H 4C KH")
        legal = MoveGenerator(hand).legal_moves(MeldType.PAIR, classify("7H 7D"), is_leader=False)

        assert all(m.meld_type != MeldType.SINGLE for m in legal)
        assert any(m.meld_type == MeldType.QUAD_BOMB for m in legal)
        assert [m.notation for m in legal] == ["9D 9H", "4C 4D 4H 4S"]

    def test_run_length_bound(self):
        hand = str_to_cards("4H 5C 6D 7S 8H 9C")
        legal = MoveGenerator(hand).legal_moves(
            MeldType.RUN, classify("3C 4D 5S 6C 7D"), is_leader=False
        )
        assert len(legal) == 2
        assert all(len(m) == 5 for m in legal)
        assert [m.strength for m in legal] == [7, 8]

    def test_straight_flush_length_bound(self):
        hand = str_to_cards("4D 5D 6D 7D 8D 9D")
        legal = MoveGenerator(hand).legal_moves(
            MeldType.STRAIGHT_FLUSH_BOMB, classify("3S 4S 5S 6S 7S"), is_leader=False
        )
        assert len(legal) == 2
        assert all(len(m) == 5 for m in legal)

    def test_after_bomb_only_bigger_bombs(self):
        hand = str_to_cards("3C 3D 3H 3S 5C 5D 5H 5S 9C TD JH QS KC")
        legal = MoveGenerator(hand).legal_moves(
            MeldType.RUN, classify("4C 4D 4H 4S"), is_leader=False
        )
        assert [m.notation for m in legal] == ["5C 5D 5S 5H"]

    def test_nothing_beats(self):
        legal = MoveGenerator(str_to_cards("3C 4D")).legal_moves(
            MeldType.SINGLE, classify("5H"), is_leader=False
        )
        assert legal == []

    def test_non_leader_without_established_type(self):
        legal = MoveGenerator(str_to_cards("3C 4D")).legal_moves(None, None, is_leader=False)
        assert legal == []

    def test_leader_gets_everything(self):
        hand = str_to_cards(FIXED_HAND)
        gen = MoveGenerator(hand)
        assert gen.legal_moves(None, None, is_leader=True) == gen.generate_all()

    def test_responses_are_legal(self):
        hand = deal(shuffle_deck(build_deck(), np.random.default_rng(3)), 4)[0]
        last = classify("3C")
        for meld in MoveGenerator(hand).legal_moves(MeldType.SINGLE, last, is_leader=False):
            assert RuleEngine.can_beat(meld, last)
            assert RuleEngine.hand_contains(hand, meld.cards)
