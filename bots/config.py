"""
机器人配置

定义三个难度共用的决策参数
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class BotConfig:
    """
    机器人决策参数

    Attributes:
        leader_top_n: 初级机器人领出时，从最小的前 N 手牌中随机选
        follower_pass_probability: 初级机器人跟牌时的过牌概率
        endgame_cards: 手牌不多于此数时中级/高级机器人转为进攻
        strong_hand_threshold: 手牌强度超过此值视为强牌，保留炸弹
        danger_threshold: 对手最少手牌不多于此数时视为危险
        finish_cards: 手牌不多于此数时打出红心 5
        finish_opponent_cards: 对手最少手牌不多于此数时打出红心 5
        large_hand_cards: 手牌多于此数时偏好单张/对子，并考虑保留实力
        conserve_strength: 桌面牌力超过此值时考虑过牌
        conserve_pass_probability: 满足保留条件时的过牌概率
    """
    leader_top_n: int = 3
    follower_pass_probability: float = 0.3

    endgame_cards: int = 5
    strong_hand_threshold: int = 150

    danger_threshold: int = 3
    finish_cards: int = 3
    finish_opponent_cards: int = 2
    large_hand_cards: int = 10
    conserve_strength: int = 10
    conserve_pass_probability: float = 0.4

    @classmethod
    def from_dict(cls, d: dict) -> 'BotConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)
