"""
Bot Layer - 机器人决策

Modules:
    config: 机器人参数
    analysis: 手牌强度、局势分析与出牌打分
    policies: 三个难度的决策函数
"""
from .config import BotConfig
from .analysis import (
    SituationAnalysis,
    has_bomb,
    has_distinguished,
    evaluate_hand_strength,
    analyze_situation,
    score_meld,
    rank_moves,
)
from .policies import (
    BotTier,
    Decision,
    BotAgent,
    POLICIES,
    basic_policy,
    heuristic_policy,
    scored_policy,
    decide,
)

__all__ = [
    # config
    "BotConfig",
    # analysis
    "SituationAnalysis",
    "has_bomb",
    "has_distinguished",
    "evaluate_hand_strength",
    "analyze_situation",
    "score_meld",
    "rank_moves",
    # policies
    "BotTier",
    "Decision",
    "BotAgent",
    "POLICIES",
    "basic_policy",
    "heuristic_policy",
    "scored_policy",
    "decide",
]
