"""牌定义测试"""
import pytest
import numpy as np

from engine.cards import (
    Card,
    DeckIntegrityError,
    BIG_JOKER,
    SMALL_JOKER,
    DISTINGUISHED_VALUE,
    parse_card,
    str_to_cards,
    cards_to_str,
    single_rank_value,
    nominal_rank_value,
    run_rank_value,
    sort_by_single_rank,
    sort_by_suit,
    group_by_rank,
    deck_count_for,
    build_deck,
    shuffle_deck,
    deal,
    validate_deal,
    cards_to_array,
)


class TestCard:
    """Card 测试"""

    def test_parse(self):
        card = parse_card("TC")
        assert card.rank == "T"
        assert card.suit == "C"
        assert card.notation == "TC"

    def test_parse_jokers(self):
        small = parse_card("jj")
        big = parse_card("JJ")
        assert small.is_joker and big.is_joker
        assert small.suit is None
        assert small != big

    def test_distinguished(self):
        assert parse_card("5H").is_distinguished
        assert not parse_card("5D").is_distinguished
        assert not parse_card("4H").is_distinguished

    def test_joker_with_suit_rejected(self):
        with pytest.raises(ValueError):
            Card(SMALL_JOKER, "H")

    @pytest.mark.parametrize("notation", ["10H", "5X", "1H", "", "H"])
    def test_malformed_notation(self, notation):
        with pytest.raises(ValueError):
            parse_card(notation)

    def test_copy_distinguishes_physical_cards(self):
        assert parse_card("7S", copy=0) != parse_card("7S", copy=1)
        assert parse_card("7S", copy=1).notation == "7S"

    def test_frozen(self):
        card = parse_card("3H")
        with pytest.raises(AttributeError):
            card.rank = "4"


class TestRankOrders:
    """单张与顺子两种大小顺序"""

    def test_single_order(self):
        order = str_to_cards("3C 4C 5C 6C 7C 8C 9C TC JC QC KC AC 2C jj JJ 5H")
        values = [single_rank_value(c) for c in order]
        assert values == list(range(1, 17))

    def test_distinguished_beats_every_single(self):
        five = parse_card("5H")
        for card in build_deck():
            if card != five:
                assert single_rank_value(five) > single_rank_value(card)
        assert single_rank_value(five) == DISTINGUISHED_VALUE

    def test_nominal_ignores_distinguished(self):
        assert nominal_rank_value(parse_card("5H")) == nominal_rank_value(parse_card("5S"))

    def test_run_order(self):
        assert run_rank_value(parse_card("2D")) == 1
        assert run_rank_value(parse_card("KD")) == 12
        assert run_rank_value(parse_card("AD")) == 13
        assert run_rank_value(parse_card(BIG_JOKER)) is None


class TestHelpers:
    """辅助函数测试"""

    def test_str_roundtrip(self):
        cards = str_to_cards("5H 3C JJ 2S")
        assert cards_to_str(cards) == "3C 2S JJ 5H"

    def test_sort_by_single_rank(self):
        cards = sort_by_single_rank(str_to_cards("2S JJ 5H 3C"))
        assert [c.notation for c in cards] == ["3C", "2S", "JJ", "5H"]

    def test_sort_by_suit(self):
        cards = sort_by_suit(str_to_cards("jj 4S 3H 9C"))
        assert [c.notation for c in cards] == ["9C", "3H", "4S", "jj"]

    def test_group_by_rank(self):
        groups = group_by_rank(str_to_cards("7H 7D 9C"))
        assert len(groups["7"]) == 2
        assert len(groups["9"]) == 1


class TestDeck:
    """牌组与发牌测试"""

    def test_single_deck(self):
        deck = build_deck()
        assert len(deck) == 54
        assert len(set(deck)) == 54
        assert sum(c.is_distinguished for c in deck) == 1

    def test_double_deck(self):
        deck = build_deck(2)
        assert len(deck) == 108
        assert len(set(deck)) == 108
        assert sum(c.is_distinguished for c in deck) == 2

    @pytest.mark.parametrize("players,decks", [(2, 1), (4, 1), (5, 1), (6, 2)])
    def test_deck_count_for(self, players, decks):
        assert deck_count_for(players) == decks

    def test_shuffle_deterministic(self):
        deck = build_deck()
        a = shuffle_deck(deck, np.random.default_rng(7))
        b = shuffle_deck(deck, np.random.default_rng(7))
        assert a == b
        assert sorted(a, key=repr) == sorted(deck, key=repr)

    def test_deal_round_robin(self):
        hands = deal(build_deck(), 4)
        sizes = sorted(len(h) for h in hands)
        assert sizes == [13, 13, 14, 14]
        validate_deal(hands, 1)

    def test_deal_six_players(self):
        hands = deal(build_deck(2), 6)
        assert all(len(h) == 18 for h in hands)
        validate_deal(hands, 2)

    def test_duplicate_card_rejected(self):
        hands = [str_to_cards("3H 4H"), str_to_cards("3H 5C")]
        with pytest.raises(DeckIntegrityError):
            validate_deal(hands)

    def test_wrong_total_rejected(self):
        hands = deal(build_deck()[:-1], 4)
        with pytest.raises(DeckIntegrityError):
            validate_deal(hands, 1)

    def test_integrity_error_is_runtime_error(self):
        assert issubclass(DeckIntegrityError, RuntimeError)


class TestCardsToArray:
    """numpy 编码测试"""

    def test_shape_and_count(self):
        array = cards_to_array(str_to_cards("3C 3D jj JJ"))
        assert array.shape == (54,)
        assert array.dtype == np.float32
        assert array.sum() == 4
        assert array[52] == 1 and array[53] == 1

    def test_multi_deck_counts(self):
        array = cards_to_array([parse_card("9S", 0), parse_card("9S", 1)])
        assert array.max() == 2
