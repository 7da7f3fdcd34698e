"""
Evaluation Layer - 比赛与评估

Modules:
    match: 比赛控制器
    arena: 对战竞技场
"""
from .match import (
    MatchResult,
    MatchController,
    play_match,
)
from .arena import (
    TournamentResult,
    Arena,
)

__all__ = [
    # match
    "MatchResult",
    "MatchController",
    "play_match",
    # arena
    "TournamentResult",
    "Arena",
]
