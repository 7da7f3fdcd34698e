"""环境层测试"""
import pytest
import numpy as np

from engine.cards import str_to_cards
from engine.config import GameConfig
from engine.state import Phase


THREE_PLAYERS = GameConfig(
    player_count=3,
    seat_tiers=(None, "intermediate", "intermediate"),
)


def crafted_hands(you: str, alice: str, bob: str):
    return [str_to_cards(you), str_to_cards(alice), str_to_cards(bob)]


class TestObservationBuilder:
    """ObservationBuilder 测试"""

    def make_state(self):
        from engine.state import GameState

        state = GameState(THREE_PLAYERS)
        state.start_round(crafted_hands("3H 4C 9D", "5C 6D 8S", "7S 8C"))
        return state

    def test_shapes(self):
        from env.observation import ObservationBuilder

        state = self.make_state()
        obs = ObservationBuilder().build(state.snapshot(), "you", state.legal_moves("you"))

        assert obs.hand.shape == (54,)
        assert obs.played_cards.shape == (6, 54)
        assert obs.history.shape == (15, 54)
        assert obs.last_play.shape == (54,)
        assert obs.established_type.shape == (9,)
        assert obs.cards_left.shape == (6,)
        assert obs.legal_mask.shape == (257,)

    def test_leading_mask(self):
        from env.observation import ObservationBuilder

        state = self.make_state()
        obs = ObservationBuilder().build(state.snapshot(), "you", state.legal_moves("you"))

        assert obs.is_leading[0] == 1
        assert obs.legal_mask[0] == 0
        assert obs.legal_mask.sum() == 3
        assert obs.established_type[0] == 1

    def test_following_features(self):
        from env.observation import ObservationBuilder
        from engine.rules import RuleEngine

        state = self.make_state()
        state.play("you", RuleEngine.classify(str_to_cards("3H")))
        obs = ObservationBuilder().build(state.snapshot(), "alice", state.legal_moves("alice"))

        assert obs.is_leading[0] == 0
        assert obs.legal_mask[0] == 1
        assert obs.established_type[1] == 1
        assert obs.last_play.sum() == 1
        # alice 为 0 号，you 在最后
        assert obs.played_cards[2].sum() == 1
        assert obs.cards_left[0] == pytest.approx(3 / 27)
        assert obs.cards_left[2] == pytest.approx(2 / 27)
        assert obs.history[0].sum() == 1

    def test_not_my_turn_mask(self):
        from env.observation import ObservationBuilder

        state = self.make_state()
        obs = ObservationBuilder().build(state.snapshot(), "bob")
        assert obs.legal_mask.sum() == 0

    def test_to_flat_array(self):
        from env.observation import ObservationBuilder

        state = self.make_state()
        flat = ObservationBuilder().build(state.snapshot(), "you").to_flat_array()

        assert isinstance(flat, np.ndarray)
        assert flat.ndim == 1
        assert flat.shape == (54 + 6 * 54 + 15 * 54 + 54 + 9 + 6 + 1,)


class TestHeartFiveEnv:
    """HeartFiveEnv 测试"""

    def test_reset(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(seed=0)
        obs, info = env.reset(seed=0)

        assert env.observation_space.contains(obs)
        assert info["current_player"] == env.agent_id
        assert info["round_number"] == 1
        assert not info["round_over"]
        assert len(info["legal_actions"]) > 0 or info["can_pass"]

    def test_crafted_hands(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS)
        obs, info = env.reset(options={"hands": crafted_hands("3H 4C 9D", "5C 6D 8S", "7S 8C")})

        assert info["phase"] == "lead_open"
        assert [m.notation for m in info["legal_actions"]] == ["3H", "4C", "9D"]
        assert not info["can_pass"]
        assert obs["legal_mask"].sum() == 3

    def test_invalid_action_keeps_state(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS)
        env.reset(options={"hands": crafted_hands("3H 4C 9D", "5C 6D 8S", "7S 8C")})
        version = env.state.version

        obs, reward, terminated, truncated, info = env.step(10)

        assert reward == -1.0
        assert not terminated
        assert not truncated
        assert "error" in info
        assert env.state.version == version

    def test_leader_pass_rejected(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS)
        env.reset(options={"hands": crafted_hands("3H 4C 9D", "5C 6D 8S", "7S 8C")})
        version = env.state.version

        _, reward, terminated, _, info = env.step(0)

        assert reward == -1.0
        assert not terminated
        assert "lead_required" in info["error"]
        assert env.state.version == version

    def test_win(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS)
        env.reset(options={"hands": crafted_hands("3H", "5C 6D", "7S 8C")})

        _, reward, terminated, _, info = env.step(1)

        assert terminated
        assert reward == 1.0
        assert info["winner"] == "you"
        assert info["wins"]["you"] == 1

    def test_loss(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS)
        env.reset(options={"hands": crafted_hands("3H 4C", "5C", "7S 8C")})

        _, reward, terminated, _, info = env.step(1)

        assert terminated
        assert reward == -1.0
        assert info["winner"] == "alice"
        assert set(info["losers"]) == {"you", "bob"}

    def test_bot_wins_before_agent_acts(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS)
        _, info = env.reset(options={"hands": crafted_hands("4C 5C", "6C", "3H")})

        assert info["round_over"]
        assert info["winner"] == "bob"
        assert info["legal_actions"] == []
        with pytest.raises(RuntimeError):
            env.step(0)

    def test_legal_actions_capped(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS, max_actions=2)
        obs, info = env.reset(options={"hands": crafted_hands("3H 4C 9D", "5C 6D 8S", "7S 8C")})

        assert [m.notation for m in info["legal_actions"]] == ["3H", "4C"]
        assert obs["legal_mask"].sum() == 2
        assert env.observation_space.contains(obs)

        _, reward, _, _, info = env.step(3)
        assert reward == -1.0
        assert "error" in info

    def test_step_after_round_over(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS)
        env.reset(options={"hands": crafted_hands("3H", "5C 6D", "7S 8C")})
        env.step(1)

        with pytest.raises(RuntimeError):
            env.step(1)

    def test_step_before_reset(self):
        from env import HeartFiveEnv

        with pytest.raises(RuntimeError):
            HeartFiveEnv().step(0)

    def test_next_round_continues_match(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS, seed=1)
        env.reset(options={"hands": crafted_hands("3H 4C", "5C", "7S 8C")})
        env.step(1)

        _, info = env.reset()
        assert info["round_number"] == 2
        assert env.state.player("alice").wins == 1

    def test_seed_restarts_match(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS)
        env.reset(options={"hands": crafted_hands("3H", "5C 6D", "7S 8C")})
        env.step(1)

        _, info = env.reset(seed=4)
        assert info["round_number"] == 1
        assert env.state.player("you").wins == 0

    def test_full_episode(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(seed=3)
        env.reset(seed=3)

        terminated = False
        reward = 0.0
        for _ in range(500):
            obs, reward, terminated, truncated, info = env.step(env.sample_action())
            assert "error" not in info
            assert env.observation_space.contains(obs)
            if terminated:
                break

        assert terminated
        assert reward in (1.0, -1.0)
        assert env.state.phase == Phase.ROUND_OVER

    def test_seeding_deterministic(self):
        from env import HeartFiveEnv

        obs1, _ = HeartFiveEnv().reset(seed=7)
        obs2, _ = HeartFiveEnv().reset(seed=7)
        np.testing.assert_array_equal(obs1["hand"], obs2["hand"])
        np.testing.assert_array_equal(obs1["cards_left"], obs2["cards_left"])

    def test_render_ansi(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS, render_mode="ansi")
        env.reset(options={"hands": crafted_hands("3H 4C 9D", "5C 6D 8S", "7S 8C")})
        output = env.render()

        assert "Round 1 | Phase: lead_open" in output
        assert "3H 4C 9D" in output

    def test_render_disabled(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS)
        env.reset(options={"hands": crafted_hands("3H 4C 9D", "5C 6D 8S", "7S 8C")})
        assert env.render() is None

    def test_agent_seat_out_of_range(self):
        from env import HeartFiveEnv

        with pytest.raises(ValueError):
            HeartFiveEnv(THREE_PLAYERS, agent_seat=3)

    def test_agent_in_later_seat(self):
        from env import HeartFiveEnv

        env = HeartFiveEnv(THREE_PLAYERS, agent_seat=2)
        _, info = env.reset(options={"hands": crafted_hands("3H 4C 9D", "5C 6D 8S", "7S TC")})

        # you 出 3H，alice 跟最大的 8S，轮到 bob
        assert env.agent_id == "bob"
        assert info["current_player"] == "bob"
        assert [m.notation for m in info["legal_actions"]] == ["TC"]
        assert info["can_pass"]


class TestMakeEnv:
    """make_env 测试"""

    def test_make_env(self):
        from env import HeartFiveEnv, make_env

        env = make_env(config=THREE_PLAYERS, max_actions=64)
        assert isinstance(env, HeartFiveEnv)
        assert env.action_space.n == 65
