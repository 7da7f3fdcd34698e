"""配置测试"""
import json

import pytest

from engine.config import GameConfig, VALID_TIERS
from bots import BotConfig


class TestGameConfig:
    """GameConfig 测试"""

    def test_defaults(self):
        config = GameConfig()
        assert config.player_count == 4
        assert config.rounds_to_win == 10
        assert config.validate() == []
        assert config.player_ids() == ["you", "alice", "bob", "cat"]
        assert config.tiers()[0] is None

    def test_deck_count(self):
        assert GameConfig().deck_count == 1
        assert GameConfig(player_count=6).deck_count == 2

    def test_names_padded(self):
        config = GameConfig(player_count=6)
        assert config.names() == ["You", "Alice", "Bob", "Cat", "Dave", "Eve"]
        assert len(config.tiers()) == 6

    def test_names_truncated(self):
        config = GameConfig(player_count=2)
        assert config.names() == ["You", "Alice"]

    @pytest.mark.parametrize("count", [1, 7])
    def test_invalid_player_count(self, count):
        errors = GameConfig(player_count=count).validate()
        assert any("Player count" in e for e in errors)

    @pytest.mark.parametrize("rounds", [0, 101])
    def test_invalid_rounds(self, rounds):
        errors = GameConfig(rounds_to_win=rounds).validate()
        assert any("Rounds to win" in e for e in errors)

    def test_invalid_tier(self):
        errors = GameConfig(seat_tiers=(None, "expert", "advanced", "advanced")).validate()
        assert errors == ["Invalid bot difficulty: expert"]

    def test_duplicate_names(self):
        errors = GameConfig(player_names=("A", "a", "B", "C")).validate()
        assert "Player names must be unique" in errors

    def test_valid_tiers(self):
        assert VALID_TIERS == ("beginner", "intermediate", "advanced")


class TestFromDict:
    """从字典/文件加载"""

    def test_unknown_keys_ignored(self):
        config = GameConfig.from_dict({"rounds_to_win": 3, "colour": "red"})
        assert config.rounds_to_win == 3

    def test_lists_become_tuples(self):
        config = GameConfig.from_dict({
            "player_count": 3,
            "seat_tiers": [None, "beginner", "advanced"],
            "player_names": ["Me", "Ann", "Ben"],
        })
        assert config.seat_tiers == (None, "beginner", "advanced")
        assert config.player_ids() == ["me", "ann", "ben"]
        hash(config)

    def test_lenient_keeps_invalid(self):
        config = GameConfig.from_dict({"player_count": 9})
        assert config.validate()

    def test_strict_raises(self):
        with pytest.raises(ValueError):
            GameConfig.from_dict({"player_count": 9}, strict=True)

    def test_to_dict_roundtrip(self):
        config = GameConfig.speed().with_seed(7)
        assert GameConfig.from_dict(config.to_dict()) == config

    def test_from_json(self, tmp_path):
        path = tmp_path / "game.json"
        path.write_text(json.dumps({"rounds_to_win": 2, "seed": 11}), encoding="utf-8")
        config = GameConfig.from_json(path)
        assert config.rounds_to_win == 2
        assert config.seed == 11

    def test_from_json_strict_by_default(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"rounds_to_win": 0}), encoding="utf-8")
        with pytest.raises(ValueError):
            GameConfig.from_json(path)


class TestPresets:
    """预设配置"""

    def test_speed(self):
        assert GameConfig.speed().rounds_to_win == 3

    def test_tournament(self):
        config = GameConfig.tournament()
        assert config.rounds_to_win == 15
        assert config.tiers()[1:] == ["advanced"] * 3

    def test_beginner(self):
        assert GameConfig.beginner().validate() == []

    def test_all_bots(self):
        config = GameConfig.all_bots(("beginner", "advanced", "advanced"), rounds_to_win=2)
        assert config.player_count == 3
        assert config.rounds_to_win == 2
        assert config.names() == ["Beginner1", "Advanced2", "Advanced3"]
        assert None not in config.tiers()
        assert config.validate() == []

    def test_with_seed(self):
        config = GameConfig().with_seed(5)
        assert config.seed == 5
        assert GameConfig().seed is None


class TestBotConfig:
    """BotConfig 测试"""

    def test_defaults(self):
        config = BotConfig()
        assert config.leader_top_n == 3
        assert config.follower_pass_probability == 0.3
        assert config.strong_hand_threshold == 150
        assert config.conserve_pass_probability == 0.4

    def test_from_dict(self):
        config = BotConfig.from_dict({"endgame_cards": 7, "unknown": 1})
        assert config.endgame_cards == 7
        assert config.danger_threshold == 3

    def test_frozen(self):
        with pytest.raises(AttributeError):
            BotConfig().endgame_cards = 1
